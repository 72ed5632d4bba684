"""Tests for the density field."""

import pickle

import numpy as np
import pytest

from py_stipple.core.density_field import DensityField, normalize


class TestNormalize:
    """Test min-max normalization."""

    def test_range(self):
        """Normalized values span exactly [0, 1]."""
        data = np.array([[3.0, 7.0, 5.0], [11.0, 4.0, 9.0]])
        field = DensityField(data)

        assert field.values.min() == 0.0
        assert field.values.max() == 1.0
        assert np.all((field.values >= 0) & (field.values <= 1))

    def test_negative_input(self):
        """Negative raw samples are shifted into range."""
        field = DensityField([[-2.0, 0.0], [2.0, 6.0]])
        np.testing.assert_allclose(field.values, [[0.0, 0.25], [0.5, 1.0]])

    def test_constant_field_becomes_zero(self):
        """A constant field normalizes to zeros, not NaN."""
        field = DensityField(np.full((3, 5), 5.0))

        assert not np.any(np.isnan(field.values))
        assert np.all(field.values == 0.0)

    def test_normalize_helper(self):
        """The helper is shared with the final stipple normalization."""
        np.testing.assert_array_equal(normalize([2.0, 2.0]), [0.0, 0.0])
        np.testing.assert_allclose(normalize([1.0, 3.0, 2.0]), [0.0, 1.0, 0.5])


class TestConstruction:
    """Test input validation and immutability."""

    def test_dimensions(self):
        """Width and height follow the row-major layout."""
        field = DensityField(np.zeros((3, 7)))
        assert field.width == 7
        assert field.height == 3
        assert field.shape == (3, 7)
        assert field.area == 21
        assert field.bounds == (0.0, 0.0, 7.0, 3.0)

    def test_read_only(self, ramp_field):
        """Samples cannot be modified after construction."""
        with pytest.raises(ValueError):
            ramp_field.values[0, 0] = 0.5

    def test_source_not_aliased(self):
        """Changing the raw array afterwards does not affect the field."""
        data = np.arange(4, dtype=float).reshape(2, 2)
        field = DensityField(data)
        data[0, 0] = 100.0
        assert field.values[0, 0] == 0.0

    @pytest.mark.parametrize("samples", [
        [1.0, 2.0, 3.0],
        [[]],
        [[1.0, np.nan], [0.0, 1.0]],
        [[1.0, np.inf], [0.0, 1.0]],
    ])
    def test_invalid_samples(self, samples):
        """Malformed samples are rejected up front."""
        with pytest.raises(ValueError):
            DensityField(samples)

    def test_from_function(self):
        """from_function samples fn(x, y) on every lattice point."""
        field = DensityField.from_function(4, 2, lambda x, y: x + 10 * y)

        assert field.shape == (2, 4)
        assert field.values[0, 0] == 0.0
        assert field.values[1, 3] == 1.0
        assert field.values[0, 3] < field.values[1, 0]

    def test_from_function_invalid_size(self):
        with pytest.raises(ValueError):
            DensityField.from_function(0, 3, lambda x, y: 1.0)

    def test_pickle_round_trip(self, ramp_field):
        """Fields survive pickling (worker transport) and stay read-only."""
        restored = pickle.loads(pickle.dumps(ramp_field))

        np.testing.assert_array_equal(restored.values, ramp_field.values)
        assert restored.width == 4
        with pytest.raises(ValueError):
            restored.values[0, 0] = 1.0


class TestDensityAt:
    """Test point lookup."""

    def test_floor_lookup(self, ramp_field):
        """Coordinates are floored onto the grid."""
        assert ramp_field.density_at(1.7, 2.2) == ramp_field.values[2, 1]
        assert ramp_field.density_at(0, 0) == 0.0

    def test_far_edge_clamps(self, ramp_field):
        """x == width and y == height map onto the last column and row."""
        assert ramp_field.density_at(4, 4) == 1.0
        assert ramp_field.density_at(4.0, 0.5) == ramp_field.values[0, 3]

    @pytest.mark.parametrize("x, y", [(-0.1, 1), (1, -0.1), (4.5, 1), (1, 4.01)])
    def test_out_of_range(self, ramp_field, x, y):
        """Lookups outside the domain are a precondition violation."""
        with pytest.raises(IndexError):
            ramp_field.density_at(x, y)


class TestMassInPolygon:
    """Test polygon integration."""

    def test_full_domain_conserves_mass(self, ramp_field):
        """The full domain polygon holds the sum of every sample."""
        domain = [[0, 0], [4, 0], [4, 4], [0, 4]]
        assert ramp_field.mass_in_polygon(domain) == pytest.approx(ramp_field.values.sum())
        assert ramp_field.total_mass() == pytest.approx(ramp_field.values.sum())

    def test_full_domain_random_field(self):
        """Mass conservation holds for arbitrary samples and non-square grids."""
        rng = np.random.default_rng(3)
        field = DensityField(rng.random((7, 13)))
        domain = [[0, 0], [13, 0], [13, 7], [0, 7]]

        assert field.mass_in_polygon(domain) == pytest.approx(field.total_mass())

    def test_boundary_points_count(self, ramp_field):
        """Lattice points on the polygon boundary are included."""
        square = [[1, 1], [2, 1], [2, 2], [1, 2]]
        expected = (ramp_field.values[1, 1] + ramp_field.values[1, 2]
                    + ramp_field.values[2, 1] + ramp_field.values[2, 2])

        assert ramp_field.mass_in_polygon(square) == pytest.approx(expected)

    def test_interior_point_only(self, ramp_field):
        """A small polygon around a single lattice point picks up just that point."""
        diamond = [[2, 1.5], [2.5, 2], [2, 2.5], [1.5, 2]]
        assert ramp_field.mass_in_polygon(diamond) == pytest.approx(ramp_field.values[2, 2])

    def test_polygon_between_lattice_points(self, ramp_field):
        """Polygons containing no lattice point have zero mass."""
        tiny = [[1.2, 1.2], [1.8, 1.2], [1.8, 1.8], [1.2, 1.8]]
        assert ramp_field.mass_in_polygon(tiny) == 0.0

    def test_degenerate_polygons(self, ramp_field):
        """Single points and segments carry no mass."""
        assert ramp_field.mass_in_polygon([[2.0, 2.0]]) == 0.0
        assert ramp_field.mass_in_polygon([[1.0, 1.0], [3.0, 3.0]]) == 0.0

    def test_polygon_partly_outside(self, ramp_field):
        """Only lattice points inside the grid are scanned."""
        big = [[-5, -5], [10, -5], [10, 10], [-5, 10]]
        assert ramp_field.mass_in_polygon(big) == pytest.approx(ramp_field.total_mass())
