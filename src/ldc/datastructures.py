"""Data structures for solver configuration and results.

This module defines the configuration and result data structures
for the artificial-compressibility lid-driven cavity solvers.

Structure:
- Parameters: Input configuration (logged to MLflow at start)
- DerivedQuantities: Physical constants computed once from Parameters
- Metrics: Output results (logged to MLflow at end)
- Fields: Spatial solution data
- TimeSeries: Convergence history
- ACSolverFields: Internal solver arrays
"""

from dataclasses import dataclass, asdict
from typing import Optional, List

import numpy as np
import pandas as pd


RELAXATION_METHODS = ("sgs", "jacobi")
BOUNDARY_METHODS = ("cavity", "mms")


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class Parameters:
    """Base solver parameters - input configuration for all solvers.

    ``nx`` and ``ny`` are node counts (``imax``, ``jmax``) including the
    boundary nodes, so the grid spacing is ``Lx / (nx - 1)``.
    """

    Re: float = 100
    lid_velocity: float = 1.0
    Lx: float = 0.05
    Ly: float = 0.05
    nx: int = 65
    ny: int = 65
    max_iterations: int = 100000
    tolerance: float = 1e-10
    output_interval: int = 500  # field snapshot every n iterations
    residual_interval: int = 10  # residual table row every n iterations
    method: str = ""

    def __post_init__(self):
        if self.nx < 3 or self.ny < 3:
            raise ValueError(
                f"Grid needs at least 3 nodes per direction, got nx={self.nx}, ny={self.ny}"
            )

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ACParameters(Parameters):
    """Artificial compressibility parameters (pseudo-time marching settings)."""

    rho: float = 1.0
    CFL: float = 0.8
    Cx: float = 0.01  # 4th order artificial viscosity in x
    Cy: float = 0.01  # 4th order artificial viscosity in y
    kappa: float = 0.1  # time derivative preconditioning constant
    p_ref: float = 0.801333844662  # initial / reference pressure (MMS value at center)
    relaxation: str = "sgs"
    boundary: str = "cavity"
    restart: bool = False
    restart_file: str = "restart.in"

    def __post_init__(self):
        super().__post_init__()
        self.relaxation = self.relaxation.lower()
        self.boundary = self.boundary.lower()
        if self.relaxation not in RELAXATION_METHODS:
            raise ValueError(
                f"Unknown relaxation: {self.relaxation}. Use 'sgs' or 'jacobi'."
            )
        if self.boundary not in BOUNDARY_METHODS:
            raise ValueError(
                f"Unknown boundary: {self.boundary}. Use 'cavity' or 'mms'."
            )
        self.method = "AC-SGS" if self.relaxation == "sgs" else "AC-PJ"


@dataclass(frozen=True)
class DerivedQuantities:
    """Physical and grid constants derived once from the input parameters."""

    rhoinv: float  # inverse density
    rlength: float  # characteristic length (cavity width)
    rmu: float  # dynamic viscosity
    vel2ref: float  # reference velocity squared
    dx: float
    dy: float

    @classmethod
    def from_parameters(cls, params: ACParameters) -> "DerivedQuantities":
        rlength = params.Lx
        return cls(
            rhoinv=1.0 / params.rho,
            rlength=rlength,
            rmu=params.rho * params.lid_velocity * rlength / params.Re,
            vel2ref=params.lid_velocity * params.lid_velocity,
            dx=params.Lx / (params.nx - 1),
            dy=params.Ly / (params.ny - 1),
        )


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    iterations: int = 0
    converged: bool = False
    diverged: bool = False
    final_residual: float = float("inf")
    wall_time_seconds: float = 0.0
    simulated_time: float = 0.0
    continuity_residual: float = 0.0
    x_momentum_residual: float = 0.0
    y_momentum_residual: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        # MLflow only accepts finite floats
        out = {}
        for k, v in asdict(self).items():
            v = float(v)
            out[k] = v if np.isfinite(v) else -1.0
        return out


# ========================================================
# Fields (Spatial Solution Data)
# ========================================================


@dataclass
class Fields:
    """Spatial solution fields (p, u, v) on grid (x, y), flattened i-major."""

    p: np.ndarray
    u: np.ndarray
    v: np.ndarray
    x: np.ndarray
    y: np.ndarray

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per grid point."""
        return pd.DataFrame(asdict(self))


# ========================================================
# Time Series (Convergence History)
# ========================================================


@dataclass
class TimeSeries:
    """Convergence history (one value per iteration)."""

    iteration: List[int]
    simulated_time: List[float]
    convergence_ratio: List[float]
    continuity_residual: List[float]
    x_momentum_residual: List[float]
    y_momentum_residual: List[float]
    min_time_step: Optional[List[float]] = None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per iteration."""
        return pd.DataFrame({k: v for k, v in asdict(self).items() if v is not None})

    def to_mlflow_batch(self) -> list:
        """Return residual history as a list of MLflow Metric entities."""
        from mlflow.entities import Metric

        batch = []
        for name in (
            "convergence_ratio",
            "continuity_residual",
            "x_momentum_residual",
            "y_momentum_residual",
        ):
            for step, value in zip(self.iteration, getattr(self, name)):
                if np.isfinite(value):
                    batch.append(Metric(key=name, value=float(value), timestamp=0, step=int(step)))
        return batch


# =============================================================
# Artificial compressibility solver arrays
# ============================================================


@dataclass
class ACSolverFields:
    """Internal solver arrays - current state, previous iteration, and work buffers.

    The primitive variables live in one (nx, ny, 3) array per state with the
    channel order (p, u, v).
    """

    # Current and previous pseudo-time level
    q: np.ndarray
    q_old: np.ndarray

    # Source terms (read-only after setup)
    src: np.ndarray

    # Artificial viscosity components
    viscx: np.ndarray
    viscy: np.ndarray

    # Local pseudo-time step
    dt: np.ndarray

    # Steady residuals (work buffer)
    residual: np.ndarray

    @classmethod
    def allocate(cls, nx: int, ny: int):
        """Allocate all arrays with proper sizes."""
        return cls(
            q=np.zeros((nx, ny, 3)),
            q_old=np.zeros((nx, ny, 3)),
            src=np.zeros((nx, ny, 3)),
            viscx=np.zeros((nx, ny)),
            viscy=np.zeros((nx, ny)),
            dt=np.zeros((nx, ny)),
            residual=np.zeros((nx, ny, 3)),
        )

    def swap(self):
        """Exchange current and previous storage (no data copy)."""
        self.q, self.q_old = self.q_old, self.q

    def snapshot(self):
        """Copy the current state into the previous-state buffer."""
        np.copyto(self.q_old, self.q)
