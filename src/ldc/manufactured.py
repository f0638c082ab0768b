"""Manufactured solution for verifying the order of accuracy.

Each primitive variable (k = 0: p, 1: u, 2: v) is a smooth trigonometric
function of the form

    phi_k = phi0 + phix * f(apx*pi*x/L) + phiy * g(apy*pi*y/L) + phixy * h(apxy*pi*x*y/L^2)

where f, g, h are sine or cosine. The matching source terms are obtained by
inserting the exact solution into the steady equations.
"""

from dataclasses import dataclass

import numpy as np

# Constants for the manufactured solution, ordered (p, u, v)
PHI0 = np.array([0.25, 0.3, 0.2])
PHIX = np.array([0.5, 0.15, 1.0 / 6.0])
PHIY = np.array([0.4, 0.2, 0.25])
PHIXY = np.array([1.0 / 3.0, 0.25, 0.1])
APX = np.array([0.5, 1.0 / 3.0, 7.0 / 17.0])
APY = np.array([0.2, 0.25, 1.0 / 6.0])
APXY = np.array([2.0 / 7.0, 0.4, 1.0 / 3.0])
# 1 selects sine, 0 selects cosine
FSINX = np.array([0.0, 1.0, 0.0])
FSINY = np.array([1.0, 0.0, 0.0])
FSINXY = np.array([1.0, 1.0, 0.0])


def _trig(s, arg):
    """Return s*sin(arg) + (1-s)*cos(arg) and its derivative w.r.t. arg."""
    value = s * np.sin(arg) + (1.0 - s) * np.cos(arg)
    slope = s * np.cos(arg) - (1.0 - s) * np.sin(arg)
    return value, slope


@dataclass(frozen=True)
class ManufacturedSolution:
    """Exact solution and source terms on a cavity of width ``length``.

    Parameters
    ----------
    rho : float
        Density used in the source terms.
    rmu : float
        Dynamic viscosity used in the source terms.
    length : float
        Reference length L (cavity width).
    """

    rho: float
    rmu: float
    length: float

    def _derivatives(self, x, y, k):
        """Value, first and second derivatives of variable k at (x, y)."""
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        L = self.length

        ax = APX[k] * np.pi / L
        ay = APY[k] * np.pi / L
        axy = APXY[k] * np.pi / (L * L)

        tx, tx_d = _trig(FSINX[k], ax * x)
        ty, ty_d = _trig(FSINY[k], ay * y)
        txy, txy_d = _trig(FSINXY[k], axy * x * y)

        value = PHI0[k] + PHIX[k] * tx + PHIY[k] * ty + PHIXY[k] * txy
        ddx = PHIX[k] * ax * tx_d + PHIXY[k] * axy * y * txy_d
        ddy = PHIY[k] * ay * ty_d + PHIXY[k] * axy * x * txy_d
        d2dx2 = -PHIX[k] * ax**2 * tx - PHIXY[k] * (axy * y) ** 2 * txy
        d2dy2 = -PHIY[k] * ay**2 * ty - PHIXY[k] * (axy * x) ** 2 * txy
        return value, ddx, ddy, d2dx2, d2dy2

    def exact(self, x, y, k: int):
        """Exact value of variable k (0: p, 1: u, 2: v) at (x, y)."""
        return self._derivatives(x, y, k)[0]

    def exact_field(self, x, y) -> np.ndarray:
        """Exact (p, u, v) stacked along a trailing axis of length 3."""
        return np.stack([self.exact(x, y, k) for k in range(3)], axis=-1)

    def source(self, x, y):
        """Source terms (mass, x-momentum, y-momentum) at (x, y)."""
        _, dpdx, dpdy, _, _ = self._derivatives(x, y, 0)
        u, dudx, dudy, d2udx2, d2udy2 = self._derivatives(x, y, 1)
        v, dvdx, dvdy, d2vdx2, d2vdy2 = self._derivatives(x, y, 2)

        rho, rmu = self.rho, self.rmu
        mass = rho * dudx + rho * dvdy
        xmtm = rho * u * dudx + rho * v * dudy + dpdx - rmu * (d2udx2 + d2udy2)
        ymtm = rho * u * dvdx + rho * v * dvdy + dpdy - rmu * (d2vdx2 + d2vdy2)
        return mass, xmtm, ymtm
