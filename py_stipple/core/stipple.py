"""Stipple point data structure."""

from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

import numpy as np

from .density_field import normalize

DEFAULT_DENSITY = 0.5
DEFAULT_RADIUS = 0.5


@dataclass(frozen=True)
class Stipple:
    """A placed point.

    ``density`` holds the cell mass while iterating and the normalized
    density once the run has finished. ``relative_x``/``relative_y`` are
    only filled in on output.
    """
    x: float
    y: float
    density: float = DEFAULT_DENSITY
    radius: float = DEFAULT_RADIUS
    relative_x: float = 0.0
    relative_y: float = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def moved_to(self, x: float, y: float, density: float) -> "Stipple":
        return replace(self, x=float(x), y=float(y), density=float(density))


def positions(stipples: Sequence[Stipple]) -> np.ndarray:
    """(N, 2) array of stipple coordinates."""
    return np.array([[s.x, s.y] for s in stipples], dtype=np.float64).reshape(-1, 2)


def normalize_stipples(stipples: Sequence[Stipple], width: float,
                       height: float) -> List[Stipple]:
    """
    Rescale densities to [0, 1] and fill in relative positions.

    Equal densities (including a single stipple) normalize to 0.
    Returns new Stipple objects; the input is left untouched.
    """
    if not stipples:
        return []

    densities = normalize([s.density for s in stipples])

    normalized = []
    for s, density in zip(stipples, densities):
        normalized.append(replace(
            s,
            density=float(density),
            relative_x=s.x / width,
            relative_y=s.y / height,
        ))
    return normalized
