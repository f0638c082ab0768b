"""Tests for the manufactured solution and its source terms."""

import numpy as np
import pytest

from ldc.manufactured import ManufacturedSolution


@pytest.fixture
def mms():
    return ManufacturedSolution(rho=1.0, rmu=0.005, length=0.05)


class TestExactSolution:
    def test_values_at_origin(self, mms):
        assert mms.exact(0.0, 0.0, 0) == pytest.approx(0.75)
        assert mms.exact(0.0, 0.0, 1) == pytest.approx(0.5)
        assert mms.exact(0.0, 0.0, 2) == pytest.approx(0.2 + 1.0 / 6.0 + 0.25 + 0.1)

    def test_center_pressure_matches_reference(self, mms):
        """Default reference pressure is the exact pressure at the cavity center."""
        assert mms.exact(0.025, 0.025, 0) == pytest.approx(0.801333844662, abs=1e-9)

    def test_exact_field_shape(self, mms):
        X, Y = np.meshgrid(np.linspace(0, 0.05, 5), np.linspace(0, 0.05, 4), indexing="ij")
        field = mms.exact_field(X, Y)
        assert field.shape == (5, 4, 3)
        np.testing.assert_allclose(field[:, :, 1], mms.exact(X, Y, 1))


class TestSourceTerms:
    """Analytic source terms agree with finite differences of the exact solution."""

    @pytest.mark.parametrize("x, y", [(0.01, 0.02), (0.037, 0.011), (0.025, 0.045)])
    def test_against_finite_differences(self, mms, x, y):
        h = 1e-5
        rho, mu = mms.rho, mms.rmu

        def d(k, ax):
            dx, dy = (h, 0.0) if ax == "x" else (0.0, h)
            return (mms.exact(x + dx, y + dy, k) - mms.exact(x - dx, y - dy, k)) / (2 * h)

        def d2(k, ax):
            dx, dy = (h, 0.0) if ax == "x" else (0.0, h)
            return (
                mms.exact(x + dx, y + dy, k) - 2 * mms.exact(x, y, k) + mms.exact(x - dx, y - dy, k)
            ) / (h * h)

        u, v = mms.exact(x, y, 1), mms.exact(x, y, 2)
        mass_fd = rho * d(1, "x") + rho * d(2, "y")
        xmtm_fd = rho * u * d(1, "x") + rho * v * d(1, "y") + d(0, "x") - mu * (d2(1, "x") + d2(1, "y"))
        ymtm_fd = rho * u * d(2, "x") + rho * v * d(2, "y") + d(0, "y") - mu * (d2(2, "x") + d2(2, "y"))

        mass, xmtm, ymtm = mms.source(x, y)
        assert mass == pytest.approx(mass_fd, rel=1e-5, abs=1e-6)
        assert xmtm == pytest.approx(xmtm_fd, rel=1e-5, abs=1e-6)
        assert ymtm == pytest.approx(ymtm_fd, rel=1e-5, abs=1e-6)
