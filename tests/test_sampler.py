"""Tests for the uniform samplers."""

import random

from py_stipple.core.sampler import AleaSampler, make_sampler, uniform_point


class TestAleaSampler:
    """Test the seeded Alea generator."""

    def test_range(self):
        sampler = AleaSampler("range")
        values = [sampler.random() for _ in range(1000)]

        assert all(0.0 <= v < 1.0 for v in values)
        assert sampler.call_count == 1000

    def test_same_seed_same_sequence(self):
        first = AleaSampler("seed")
        second = AleaSampler("seed")

        assert [first.random() for _ in range(50)] == [second.random() for _ in range(50)]

    def test_different_seeds(self):
        first = AleaSampler("seed1")
        second = AleaSampler("seed2")

        assert [first.random() for _ in range(10)] != [second.random() for _ in range(10)]

    def test_roughly_uniform(self):
        sampler = AleaSampler("uniform")
        values = [sampler.random() for _ in range(5000)]

        assert 0.45 < sum(values) / len(values) < 0.55
        assert 0.45 < sum(v < 0.5 for v in values) / len(values) < 0.55


class TestHelpers:
    """Test sampler helpers."""

    def test_uniform_point_bounds(self):
        sampler = AleaSampler("points")
        for _ in range(500):
            x, y = uniform_point(sampler, 7.0, 3.0)
            assert 0 <= x < 7.0
            assert 0 <= y < 3.0

    def test_uniform_point_draw_order(self):
        """x is drawn before y."""
        reference = AleaSampler("order")
        rx, ry = reference.random(), reference.random()

        x, y = uniform_point(AleaSampler("order"), 10.0, 20.0)
        assert x == rx * 10.0
        assert y == ry * 20.0

    def test_make_sampler(self):
        assert isinstance(make_sampler("abc"), AleaSampler)
        assert isinstance(make_sampler(None), random.Random)
