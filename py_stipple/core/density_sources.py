"""
Builders for DensityField inputs.

Synthetic test functions, image luminance and a Mach banding filter. The
stippling core itself only ever sees the resulting DensityField.
"""

import math
from pathlib import Path
from typing import Callable, List, Union

import numpy as np
import structlog
from PIL import Image, ImageOps
from scipy import ndimage

from .density_field import DensityField

logger = structlog.get_logger()

ColorMapping = Callable[[int, int, int, int], float]


def linear_gradient(width: int, height: int) -> DensityField:
    """Density rising linearly from the left edge to the right edge."""
    return DensityField.from_function(width, height, lambda x, y: x / width * 100)


def rastrigin(width: int, height: int) -> DensityField:
    """Rastrigin function over [0, 100)^2 scaled onto the grid."""

    def fn(x, y):
        xs = x / width * 100
        ys = y / height * 100
        return (20 + xs * xs - 10 * math.cos(2 * math.pi * xs)
                + ys * ys - 10 * math.cos(2 * math.pi * ys))

    return DensityField.from_function(width, height, fn)


def eggholder(width: int, height: int) -> DensityField:
    """Simplified Eggholder-style surface used for visual tests."""

    def fn(x, y):
        xs = x / width * 100
        ys = y / height * 100
        return (20 + xs * xs + ys * ys
                - 10 * (math.cos(2 * math.pi * xs) + math.cos(2 * math.pi * ys)))

    return DensityField.from_function(width, height, fn)


def hot_spot(width: int, height: int, cx: int, cy: int, value: float = 1.0) -> DensityField:
    """All-zero field with a single non-zero sample at (cx, cy)."""
    if not (0 <= cx < width and 0 <= cy < height):
        raise ValueError(f"Hot spot ({cx}, {cy}) outside {width}x{height} grid")
    data = np.zeros((height, width))
    data[cy, cx] = value
    return DensityField(data)


def luminance(r: int, g: int, b: int, a: int) -> float:
    """Rec. 601 grayscale value of an RGBA pixel (alpha ignored)."""
    return round(0.299 * r + 0.587 * g + 0.114 * b)


def from_image(source: Union[str, Path, Image.Image],
               color_mapping: ColorMapping = luminance,
               invert: bool = False) -> DensityField:
    """
    Build a density field from an image.

    Args:
        source: Image path or an already opened PIL image
        color_mapping: Maps an (r, g, b, a) pixel to a density sample
        invert: Use 255 - value so dark pixels attract stipples

    Returns:
        DensityField with one sample per pixel
    """
    if isinstance(source, Image.Image):
        image = source
    else:
        image = Image.open(source)
        image = ImageOps.exif_transpose(image)

    rgba = np.asarray(image.convert("RGBA"), dtype=np.int64)
    height, width = rgba.shape[:2]

    if color_mapping is luminance:
        data = np.round(0.299 * rgba[..., 0] + 0.587 * rgba[..., 1] + 0.114 * rgba[..., 2])
    else:
        data = np.array([
            [color_mapping(*(int(c) for c in rgba[y, x])) for x in range(width)]
            for y in range(height)
        ], dtype=np.float64)

    if invert:
        data = 255 - data

    logger.info("Density field loaded from image", width=width, height=height, invert=invert)
    return DensityField(data)


def create_quantisation(num: int) -> List[float]:
    """Quantisation levels i / num for i in 0..num-1."""
    return [i / num for i in range(num)]


def quantise(values: np.ndarray, levels: List[float]) -> np.ndarray:
    """
    Snap each value down to the level below it.

    Values under the first level map to 0, values at or above every level
    map to 1.
    """
    values = np.asarray(values, dtype=np.float64)
    levels_arr = np.asarray(levels, dtype=np.float64)

    # Index of the first level strictly greater than each value
    idx = np.searchsorted(levels_arr, values, side="right")
    result = np.where(idx > 0, levels_arr[np.maximum(idx - 1, 0)], 0.0)
    return np.where(idx >= len(levels_arr), 1.0, result)


def mach_banding(field: DensityField, levels: int = 5, weight: float = 0.5,
                 blur_radius: float = 4) -> DensityField:
    """
    Exaggerate density steps the way the Mach band illusion does.

    The field is quantised, a blurred copy of the quantised field is blended
    back in with ``weight``, and the result is clipped to [0, 1].
    """
    quantised = quantise(field.values, create_quantisation(levels))
    blurred = ndimage.gaussian_filter(quantised, sigma=blur_radius)
    banded = np.clip(weight * blurred + (1 - weight) * quantised, 0.0, 1.0)
    return DensityField(banded)
