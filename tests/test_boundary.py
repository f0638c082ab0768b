"""Tests for boundary condition policies and pressure rescaling."""

import numpy as np
import pytest

from ldc.boundary import (
    CavityBoundary,
    ManufacturedBoundary,
    create_boundary_condition,
    reference_node,
)
from ldc.datastructures import ACParameters, DerivedQuantities
from ldc.manufactured import ManufacturedSolution
from ldc.rescaling import rescale_pressure


def grid(nx, ny, L=0.05):
    x = np.linspace(0.0, L, nx)
    y = np.linspace(0.0, L, ny)
    return np.meshgrid(x, y, indexing="ij")


class TestCavityBoundary:
    """No-slip walls with moving lid."""

    def test_velocities(self, rng):
        q = rng.random((6, 5, 3))
        CavityBoundary(lid_velocity=1.0, p_ref=0.8).apply(q)

        # Lid interior nodes
        np.testing.assert_array_equal(q[1:-1, -1, 1], 1.0)
        np.testing.assert_array_equal(q[1:-1, -1, 2], 0.0)
        # Bottom and side walls
        np.testing.assert_array_equal(q[:, 0, 1:], 0.0)
        np.testing.assert_array_equal(q[0, :, 1:], 0.0)
        np.testing.assert_array_equal(q[-1, :, 1:], 0.0)

    def test_side_walls_override_lid_at_corners(self, rng):
        q = rng.random((5, 5, 3))
        CavityBoundary(lid_velocity=2.0, p_ref=0.8).apply(q)
        for i in (0, 4):
            assert q[i, 4, 1] == 0.0
            assert q[i, 4, 2] == 0.0

    def test_pressure_extrapolation(self, rng):
        q = rng.random((6, 7, 3))
        CavityBoundary(lid_velocity=1.0, p_ref=0.8).apply(q)
        p = q[:, :, 0]

        for i in range(1, 5):
            assert p[i, 0] == pytest.approx(2 * p[i, 1] - p[i, 2])
            assert p[i, -1] == pytest.approx(2 * p[i, -2] - p[i, -3])
        for j in range(7):
            assert p[0, j] == pytest.approx(2 * p[1, j] - p[2, j])
            assert p[-1, j] == pytest.approx(2 * p[-2, j] - p[-3, j])

    def test_interior_untouched(self, rng):
        q = rng.random((6, 7, 3))
        interior = q[1:-1, 1:-1, :].copy()
        CavityBoundary(lid_velocity=1.0, p_ref=0.8).apply(q)
        np.testing.assert_array_equal(q[1:-1, 1:-1, :], interior)

    def test_reference_pressure(self):
        assert CavityBoundary(1.0, 0.75).reference_pressure() == 0.75
        assert CavityBoundary(1.0, 0.75).exact_field() is None


class TestManufacturedBoundary:
    """Exact values on the ring, extrapolated pressure."""

    @pytest.fixture
    def boundary(self):
        X, Y = grid(9, 7)
        solution = ManufacturedSolution(rho=1.0, rmu=0.005, length=0.05)
        return ManufacturedBoundary(solution, X, Y)

    def test_velocities_exact(self, boundary, rng):
        q = rng.random((9, 7, 3))
        boundary.apply(q)
        exact = boundary.exact_field()

        for k in (1, 2):
            np.testing.assert_array_equal(q[0, :, k], exact[0, :, k])
            np.testing.assert_array_equal(q[-1, :, k], exact[-1, :, k])
            np.testing.assert_array_equal(q[:, 0, k], exact[:, 0, k])
            np.testing.assert_array_equal(q[:, -1, k], exact[:, -1, k])

    def test_pressure_extrapolated(self, boundary, rng):
        q = rng.random((9, 7, 3))
        boundary.apply(q)
        p = q[:, :, 0]

        for j in range(1, 6):
            assert p[0, j] == pytest.approx(2 * p[1, j] - p[2, j])
            assert p[-1, j] == pytest.approx(2 * p[-2, j] - p[-3, j])
        for i in range(9):
            assert p[i, 0] == pytest.approx(2 * p[i, 1] - p[i, 2])
            assert p[i, -1] == pytest.approx(2 * p[i, -2] - p[i, -3])

    def test_reference_pressure_is_exact_value(self, boundary):
        i_ref, j_ref = reference_node(9, 7)
        assert (i_ref, j_ref) == (4, 3)
        assert boundary.reference_pressure() == pytest.approx(boundary.exact_field()[4, 3, 0])


class TestFactory:
    def test_creates_policies(self):
        params = ACParameters(nx=5, ny=5)
        derived = DerivedQuantities.from_parameters(params)
        X, Y = grid(5, 5)

        assert isinstance(create_boundary_condition("cavity", params, derived, X, Y), CavityBoundary)
        assert isinstance(create_boundary_condition("MMS", params, derived, X, Y), ManufacturedBoundary)

    def test_unknown_method_raises(self):
        params = ACParameters(nx=5, ny=5)
        derived = DerivedQuantities.from_parameters(params)
        X, Y = grid(5, 5)
        with pytest.raises(ValueError, match="Unknown boundary method"):
            create_boundary_condition("inflow", params, derived, X, Y)


class TestPressureRescaling:
    def test_reference_node_hits_target(self, rng):
        q = rng.random((9, 9, 3))
        delta = rescale_pressure(q, 0.8)
        assert q[4, 4, 0] == pytest.approx(0.8)
        assert isinstance(delta, float)

    def test_shift_is_uniform(self, rng):
        q = rng.random((9, 7, 3))
        before = q.copy()
        delta = rescale_pressure(q, 0.3)
        np.testing.assert_allclose(q[:, :, 0], before[:, :, 0] - delta)
        np.testing.assert_array_equal(q[:, :, 1:], before[:, :, 1:])

    def test_idempotent(self, rng):
        q = rng.random((8, 8, 3))
        rescale_pressure(q, 0.5)
        once = q.copy()
        delta = rescale_pressure(q, 0.5)
        assert delta == pytest.approx(0.0, abs=1e-15)
        np.testing.assert_allclose(q, once, rtol=0, atol=1e-15)
