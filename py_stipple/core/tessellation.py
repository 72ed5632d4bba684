"""
Bounded Voronoi tessellation of the current stipple positions.

scipy's Voronoi only produces finite regions for points strictly inside the
convex hull of the input, so a ring of far boundary points is added around
the domain before triangulating. Each region is then intersected with the
domain box using shapely, which gives cells that exactly partition
[0, width] x [0, height].
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import structlog
from scipy.spatial import QhullError, Voronoi
from shapely.geometry import MultiPoint, Polygon, box
from shapely.geometry.polygon import orient

logger = structlog.get_logger()


def get_boundary_points(width: float, height: float, per_side: int = 4) -> np.ndarray:
    """
    Generate a ring of points around the domain.

    The ring sits further from the domain than the domain's diagonal, so no
    bisector between a ring point and a point in the domain crosses the
    domain. Those cells are clipped to the box afterwards anyway, but their
    shape inside the box stays that of the unbounded diagram.

    Args:
        width: Domain width
        height: Domain height
        per_side: Number of ring points per side (corners included)

    Returns:
        Array of [x, y] boundary point coordinates
    """
    margin = math.ceil(math.hypot(width, height)) + 1.0
    xs = np.linspace(-margin, width + margin, per_side)
    ys = np.linspace(-margin, height + margin, per_side)

    points = []
    for x in xs:
        points.append([x, -margin])
        points.append([x, height + margin])
    for y in ys[1:-1]:
        points.append([-margin, y])
        points.append([width + margin, y])

    return np.array(points)


def polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Falls back to the vertex mean for polygons with (near) zero area, which
    covers the single point degenerate cell.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    if len(vertices) < 3:
        return vertices.mean(axis=0)

    x = vertices[:, 0]
    y = vertices[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)

    cross = x * y_next - x_next * y
    area = cross.sum() * 0.5

    if abs(area) < 1e-10:
        return vertices.mean(axis=0)

    cx = ((x + x_next) * cross).sum() / (6.0 * area)
    cy = ((y + y_next) * cross).sum() / (6.0 * area)
    return np.array([cx, cy])


@dataclass
class Tessellation:
    """Voronoi cells of an ordered point set, clipped to the domain box."""

    points: np.ndarray
    width: float
    height: float
    cells: List[Optional[np.ndarray]]

    def __len__(self) -> int:
        return len(self.cells)

    def cell_polygon(self, i: int) -> Optional[np.ndarray]:
        """
        Counter-clockwise cell polygon of point ``i`` (k x 2, k >= 3).

        Returns None when the point has no cell, e.g. a duplicate of an
        earlier point or a region Qhull could not close.
        """
        return self.cells[i]

    def cell_or_degenerate(self, i: int) -> np.ndarray:
        """Cell polygon of point ``i``, or the single point polygon [[x, y]]."""
        polygon = self.cells[i]
        if polygon is None:
            logger.debug("No cell for point, using degenerate polygon",
                         index=i, x=float(self.points[i][0]), y=float(self.points[i][1]))
            return self.points[i:i + 1].copy()
        return polygon


def _clip_region(vertices: np.ndarray, domain: Polygon) -> Optional[np.ndarray]:
    """Convex hull of the region vertices intersected with the domain box."""
    hull = MultiPoint([tuple(v) for v in vertices]).convex_hull
    clipped = hull.intersection(domain)

    if clipped.is_empty or not isinstance(clipped, Polygon) or clipped.area <= 0:
        return None

    ring = np.asarray(orient(clipped, sign=1.0).exterior.coords)[:-1]
    if len(ring) < 3:
        return None
    return ring


def build_tessellation(points: Sequence[Sequence[float]], width: float,
                       height: float) -> Tessellation:
    """
    Build clipped Voronoi cells for ``points``.

    Args:
        points: N >= 1 [x, y] positions inside the domain
        width: Domain width
        height: Domain height

    Returns:
        Tessellation whose cell i belongs to points[i]
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n_points = len(points)
    if n_points == 0:
        raise ValueError("Cannot tessellate an empty point set")

    cells: List[Optional[np.ndarray]] = [None] * n_points
    domain = box(0.0, 0.0, width, height)

    # Coincident points share one cell: the first occurrence owns it
    unique_points, first_index = np.unique(points, axis=0, return_index=True)
    if len(unique_points) < n_points:
        logger.debug("Duplicate points in tessellation",
                     points=n_points, unique=len(unique_points))

    boundary_points = get_boundary_points(width, height)
    all_points = np.vstack([unique_points, boundary_points])

    try:
        vor = Voronoi(all_points)
    except QhullError as e:
        logger.warning("Voronoi construction failed", points=n_points, error=str(e))
        return Tessellation(points=points, width=width, height=height, cells=cells)

    claimed_regions = set()
    for unique_idx, point_idx in enumerate(first_index):
        region_idx = vor.point_region[unique_idx]
        if region_idx == -1 or region_idx in claimed_regions:
            continue

        region_vertices = vor.regions[region_idx]
        if not region_vertices or -1 in region_vertices or len(region_vertices) < 3:
            logger.debug("Malformed Voronoi region", index=int(point_idx))
            continue

        claimed_regions.add(region_idx)
        cells[point_idx] = _clip_region(vor.vertices[region_vertices], domain)

    return Tessellation(points=points, width=width, height=height, cells=cells)
