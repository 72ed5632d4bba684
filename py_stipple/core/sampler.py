"""
Uniform samplers used to place random stipples.

The engine only needs an object with a ``random()`` method returning floats
in [0, 1). ``AleaSampler`` is a seedable generator (Baagøe's Alea algorithm)
so that runs are reproducible across processes given the same seed string.
"""

import random
from typing import Optional, Protocol, Tuple


class Sampler(Protocol):
    """Anything with a ``random()`` method yielding floats in [0, 1)."""

    def random(self) -> float:
        ...


_TWO_POW_MINUS_32 = 2.3283064365386963e-10


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class _Mash:
    """Alea's string hashing helper; keeps its state between calls."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        for char in str(data):
            self.n = self.n + ord(char)
            h = 0.02519603282416938 * self.n
            self.n = _uint32(h)
            h -= self.n
            h *= self.n
            self.n = _uint32(h)
            h -= self.n
            self.n += h * 0x100000000
        return _uint32(self.n) * _TWO_POW_MINUS_32


class AleaSampler:
    """
    Seeded Alea PRNG.

    Deterministic for a given seed, independent of Python's and NumPy's
    global random state.
    """

    def __init__(self, seed: str):
        self.seed = seed
        self.call_count = 0

        mash = _Mash()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        self.s0 -= mash(seed)
        if self.s0 < 0:
            self.s0 += 1
        self.s1 -= mash(seed)
        if self.s1 < 0:
            self.s1 += 1
        self.s2 -= mash(seed)
        if self.s2 < 0:
            self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * _TWO_POW_MINUS_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2


def uniform_point(sampler: Sampler, width: float, height: float) -> Tuple[float, float]:
    """Draw a point in [0, width) x [0, height); x is drawn before y."""
    x = sampler.random() * width
    y = sampler.random() * height
    return x, y


def make_sampler(seed: Optional[str] = None) -> Sampler:
    """Seeded Alea sampler when a seed is given, otherwise an unseeded one."""
    if seed is not None:
        return AleaSampler(seed)
    return random.Random()
