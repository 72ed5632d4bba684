"""Shared fixtures for stippling tests."""

import numpy as np
import pytest

from py_stipple.core.density_field import DensityField
from py_stipple.core.density_sources import linear_gradient
from py_stipple.core.sampler import AleaSampler


@pytest.fixture
def sampler():
    """Deterministic sampler."""
    return AleaSampler("test_seed")


@pytest.fixture
def ramp_field():
    """4x4 field with distinct values 0..15 (normalized)."""
    return DensityField(np.arange(16, dtype=float).reshape(4, 4))


@pytest.fixture
def gradient_field():
    """Small left-to-right gradient."""
    return linear_gradient(12, 10)


@pytest.fixture
def nearly_uniform_field():
    """10x10 ones with a single zero in the corner so it does not normalize away."""
    data = np.ones((10, 10))
    data[0, 0] = 0.0
    return DensityField(data)
