"""
One iteration of adaptive weighted Lloyd relaxation.

Every stipple's Voronoi cell is weighed against the density field. Cells
carrying too little mass are deleted, cells carrying too much are split in
two, and the rest move to their cell centroid. The thresholds sit at
``target_area -/+ error_threshold``; the engine widens the band every
iteration so splitting and deletion eventually stop.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
import structlog

from .density_field import DensityField
from .sampler import Sampler, uniform_point
from .stipple import Stipple, positions
from .tessellation import build_tessellation, polygon_centroid

logger = structlog.get_logger()


@dataclass
class RelaxationResult:
    """Next generation of stipples plus what happened to the previous one."""
    stipples: List[Stipple]
    changed: bool
    deleted: int = 0
    split: int = 0
    moved: int = 0
    injected: bool = False


def target_area(radius: float) -> float:
    """Mass each stipple should end up representing: pi * r^2."""
    return math.pi * radius ** 2


def split_cell(polygon: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split a cell into two child positions.

    The children sit halfway between the centroid and the two vertices
    farthest from it (largest and second largest squared distance, first
    vertex wins ties).

    Args:
        polygon: Cell vertices

    Returns:
        Two [x, y] child positions
    """
    polygon = np.asarray(polygon, dtype=np.float64)
    centroid = polygon_centroid(polygon)

    largest_dir = np.zeros(2)
    second_dir = np.zeros(2)
    largest_distance = 0.0
    second_distance = 0.0

    for vertex in polygon:
        direction = vertex - centroid
        squared_distance = float(direction @ direction)
        if squared_distance > largest_distance:
            second_distance, second_dir = largest_distance, largest_dir
            largest_distance, largest_dir = squared_distance, direction
        elif squared_distance > second_distance:
            second_distance, second_dir = squared_distance, direction

    return centroid + 0.5 * largest_dir, centroid + 0.5 * second_dir


def assign_masses(stipples: Sequence[Stipple], field: DensityField) -> Tuple[List[float], List[np.ndarray]]:
    """Tessellate the stipples and integrate the density over every cell."""
    tessellation = build_tessellation(positions(stipples), field.width, field.height)

    masses = []
    cells = []
    for i in range(len(stipples)):
        polygon = tessellation.cell_or_degenerate(i)
        cells.append(polygon)
        masses.append(field.mass_in_polygon(polygon))

    return masses, cells


def relax_step(stipples: Sequence[Stipple], field: DensityField, area: float,
               error_threshold: float, sampler: Sampler) -> RelaxationResult:
    """
    Run one relaxation iteration.

    Args:
        stipples: Current generation (not modified)
        field: Target density
        area: Target mass per stipple
        error_threshold: Current half width of the keep band
        sampler: Used only when every stipple got deleted

    Returns:
        RelaxationResult with the next generation
    """
    masses, cells = assign_masses(stipples, field)

    delete_threshold = area - error_threshold
    split_threshold = area + error_threshold

    next_generation: List[Stipple] = []
    deleted = split = moved = 0

    for stipple, mass, cell in zip(stipples, masses, cells):
        if mass < delete_threshold:
            deleted += 1
        elif mass > split_threshold:
            split += 1
            first, second = split_cell(cell)
            next_generation.append(Stipple(float(first[0]), float(first[1])))
            next_generation.append(Stipple(float(second[0]), float(second[1])))
        else:
            moved += 1
            cx, cy = polygon_centroid(cell)
            next_generation.append(stipple.moved_to(cx, cy, mass))

    injected = False
    if not next_generation:
        # Keep at least one stipple alive
        x, y = uniform_point(sampler, field.width, field.height)
        next_generation.append(Stipple(x, y))
        injected = True
        logger.debug("All stipples deleted, injecting a random stipple", x=x, y=y)

    return RelaxationResult(
        stipples=next_generation,
        changed=deleted > 0 or split > 0,
        deleted=deleted,
        split=split,
        moved=moved,
        injected=injected,
    )
