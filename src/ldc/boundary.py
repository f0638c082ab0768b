"""Boundary condition policies for the cavity grid.

Two policies are available:

1. Cavity: no-slip walls with a moving lid at y = Ly.
   - Wall velocities are imposed, wall pressure is extrapolated from the
     interior with a 2nd order one-sided formula.

2. Manufactured solution (MMS): every boundary node is set to the exact
   solution, then the pressure is overwritten by the same extrapolation.

The policy is chosen once at setup via ``create_boundary_condition``.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .datastructures import ACParameters, DerivedQuantities
from .manufactured import ManufacturedSolution


def reference_node(nx: int, ny: int):
    """Grid index of the node where the pressure level is pinned."""
    return (nx - 1) // 2, (ny - 1) // 2


def _extrapolate_pressure_x(q, rows):
    """Left/right wall pressure from the two nearest interior columns."""
    q[0, rows, 0] = 2.0 * q[1, rows, 0] - q[2, rows, 0]
    q[-1, rows, 0] = 2.0 * q[-2, rows, 0] - q[-3, rows, 0]


def _extrapolate_pressure_y(q, cols):
    """Bottom/top wall pressure from the two nearest interior rows."""
    q[cols, 0, 0] = 2.0 * q[cols, 1, 0] - q[cols, 2, 0]
    q[cols, -1, 0] = 2.0 * q[cols, -2, 0] - q[cols, -3, 0]


# =============================================================================
# Abstract Base Class
# =============================================================================


class BoundaryCondition(ABC):
    """Abstract base class for boundary condition policies."""

    @abstractmethod
    def apply(self, q: np.ndarray) -> None:
        """Overwrite the boundary nodes of q in place. Interior is untouched."""
        pass

    @abstractmethod
    def reference_pressure(self) -> float:
        """Pressure level imposed at the reference node after every iteration."""
        pass

    def exact_field(self) -> Optional[np.ndarray]:
        """Exact (p, u, v) on the full grid, or None when unknown."""
        return None


# =============================================================================
# Driven cavity
# =============================================================================


class CavityBoundary(BoundaryCondition):
    """No-slip walls and a lid moving with constant velocity.

    Parameters
    ----------
    lid_velocity : float
        Tangential velocity of the top wall.
    p_ref : float
        Reference pressure used to pin the pressure level.
    """

    def __init__(self, lid_velocity: float, p_ref: float):
        self.lid_velocity = lid_velocity
        self.p_ref = p_ref

    def apply(self, q: np.ndarray) -> None:
        inner = slice(1, q.shape[0] - 1)

        # Bottom wall
        q[inner, 0, 1] = 0.0
        q[inner, 0, 2] = 0.0

        # Lid
        q[inner, -1, 1] = self.lid_velocity
        q[inner, -1, 2] = 0.0

        _extrapolate_pressure_y(q, inner)

        # Side walls over the full height, corners included
        q[0, :, 1:] = 0.0
        q[-1, :, 1:] = 0.0
        _extrapolate_pressure_x(q, slice(None))

    def reference_pressure(self) -> float:
        return self.p_ref


# =============================================================================
# Manufactured solution
# =============================================================================


class ManufacturedBoundary(BoundaryCondition):
    """Exact manufactured values on the boundary ring.

    Parameters
    ----------
    solution : ManufacturedSolution
        Analytical solution evaluated on the grid.
    X, Y : np.ndarray
        Node coordinates of shape (nx, ny).
    """

    def __init__(self, solution: ManufacturedSolution, X: np.ndarray, Y: np.ndarray):
        self.solution = solution
        self._exact = solution.exact_field(X, Y)
        i_ref, j_ref = reference_node(*X.shape)
        self._p_ref = float(self._exact[i_ref, j_ref, 0])

    def apply(self, q: np.ndarray) -> None:
        exact = self._exact
        q[0, :, :] = exact[0, :, :]
        q[-1, :, :] = exact[-1, :, :]
        q[:, 0, :] = exact[:, 0, :]
        q[:, -1, :] = exact[:, -1, :]

        # Extrapolated pressure replaces the analytic boundary value
        _extrapolate_pressure_x(q, slice(1, q.shape[1] - 1))
        _extrapolate_pressure_y(q, slice(None))

    def reference_pressure(self) -> float:
        return self._p_ref

    def exact_field(self) -> np.ndarray:
        return self._exact


# =============================================================================
# Factory
# =============================================================================


def create_boundary_condition(
    method: str,
    params: ACParameters,
    derived: DerivedQuantities,
    X: np.ndarray,
    Y: np.ndarray,
) -> BoundaryCondition:
    """Factory function to create boundary condition policy.

    Parameters
    ----------
    method : str
        'cavity' or 'mms'
    params : ACParameters
        Run parameters (lid velocity, reference pressure).
    derived : DerivedQuantities
        Derived constants (viscosity, reference length).
    X, Y : np.ndarray
        Node coordinates of shape (nx, ny).
    """
    method = method.lower()
    if method == "cavity":
        return CavityBoundary(params.lid_velocity, params.p_ref)
    elif method == "mms":
        solution = ManufacturedSolution(
            rho=params.rho, rmu=derived.rmu, length=derived.rlength
        )
        return ManufacturedBoundary(solution, X, Y)
    else:
        raise ValueError(f"Unknown boundary method: {method}. Use 'cavity' or 'mms'.")
