"""Normalized 2D density grid used as the stippling target."""

import math
from typing import Callable, Sequence, Tuple, Union

import numpy as np
import shapely
import structlog
from shapely.geometry import Polygon

logger = structlog.get_logger()

PolygonLike = Union[np.ndarray, Sequence[Sequence[float]]]


def normalize(values: np.ndarray) -> np.ndarray:
    """
    Min-max rescale samples into [0, 1].

    A constant input (max == min) has no range to rescale by and becomes an
    all-zero grid instead of NaN.
    """
    values = np.asarray(values, dtype=np.float64)
    v_min = float(values.min())
    v_max = float(values.max())
    value_range = v_max - v_min

    if value_range == 0:
        return np.zeros_like(values)

    return (values - v_min) / value_range


class DensityField:
    """
    Immutable H x W grid of densities in [0, 1].

    Samples are row-major: ``values[y, x]``. The field covers the domain
    [0, width] x [0, height]; lattice point (x, y) carries ``values[y, x]``.
    """

    def __init__(self, samples):
        values = np.asarray(samples, dtype=np.float64)

        if values.ndim != 2:
            raise ValueError(f"Density samples must be 2D, got {values.ndim}D")
        if values.shape[0] == 0 or values.shape[1] == 0:
            raise ValueError("Density samples must have positive width and height")
        if not np.all(np.isfinite(values)):
            raise ValueError("Density samples must be finite")

        self._values = normalize(values)
        self._values.setflags(write=False)
        self.height, self.width = self._values.shape

        logger.debug("Density field created", width=self.width, height=self.height)

    @classmethod
    def from_function(cls, width: int, height: int,
                      fn: Callable[[int, int], float]) -> "DensityField":
        """Sample ``fn(x, y)`` on every lattice point of a width x height grid."""
        if width <= 0 or height <= 0:
            raise ValueError("Density field dimensions must be positive")
        data = [[fn(x, y) for x in range(width)] for y in range(height)]
        return cls(data)

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the normalized samples."""
        return self._values

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Domain box as (min_x, min_y, max_x, max_y)."""
        return 0.0, 0.0, float(self.width), float(self.height)

    def total_mass(self) -> float:
        """Sum of all samples."""
        return float(self._values.sum())

    def density_at(self, x: float, y: float) -> float:
        """
        Sample at (floor(x), floor(y)).

        The far edges x == width and y == height map onto the last column/row.

        Raises:
            IndexError: If (x, y) lies outside the domain
        """
        if not (0 <= x <= self.width and 0 <= y <= self.height):
            raise IndexError(
                f"({x}, {y}) outside density field [0, {self.width}] x [0, {self.height}]"
            )
        col = min(int(math.floor(x)), self.width - 1)
        row = min(int(math.floor(y)), self.height - 1)
        return float(self._values[row, col])

    def mass_in_polygon(self, polygon: PolygonLike) -> float:
        """
        Sum the densities of lattice points covered by ``polygon``.

        Only lattice points inside the polygon's bounding box (and inside the
        grid) are tested. Points on the polygon boundary count as covered.
        Polygons with fewer than three vertices have zero mass.
        """
        vertices = np.asarray(polygon, dtype=np.float64)
        if vertices.ndim != 2 or len(vertices) < 3:
            return 0.0

        x_min = max(0, math.ceil(vertices[:, 0].min()))
        x_max = min(self.width - 1, math.floor(vertices[:, 0].max()))
        y_min = max(0, math.ceil(vertices[:, 1].min()))
        y_max = min(self.height - 1, math.floor(vertices[:, 1].max()))

        if x_max < x_min or y_max < y_min:
            return 0.0

        xs, ys = np.meshgrid(
            np.arange(x_min, x_max + 1), np.arange(y_min, y_max + 1)
        )
        shape = Polygon(vertices)
        if not shape.is_valid or shape.area == 0:
            return 0.0

        inside = shapely.intersects_xy(shape, xs, ys)
        window = self._values[y_min:y_max + 1, x_min:x_max + 1]
        return float(window[inside].sum())

    def __setstate__(self, state):
        # Unpickled arrays come back writable (worker processes)
        self.__dict__.update(state)
        self._values.setflags(write=False)

    def __repr__(self) -> str:
        return f"DensityField(width={self.width}, height={self.height})"
