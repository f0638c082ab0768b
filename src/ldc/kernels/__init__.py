"""Numba stencil kernels for the artificial compressibility solver."""

from .time_step import beta_squared, compute_time_step, wave_speed
from .artificial_viscosity import (
    compute_artificial_viscosity,
    damping_interior,
    extrapolate_damping,
)
from .relaxation import (
    point_jacobi_sweep,
    sgs_backward_sweep,
    sgs_forward_sweep,
    steady_residuals,
)
from .residuals import iterative_residual_norms

__all__ = [
    "beta_squared",
    "wave_speed",
    "compute_time_step",
    "compute_artificial_viscosity",
    "damping_interior",
    "extrapolate_damping",
    "sgs_forward_sweep",
    "sgs_backward_sweep",
    "point_jacobi_sweep",
    "steady_residuals",
    "iterative_residual_norms",
]
