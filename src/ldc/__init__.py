"""Lid-driven cavity solver framework.

Artificial compressibility solvers marching a pseudo-time system to the
steady incompressible Navier-Stokes solution.

Solver Hierarchy:
-----------------
LidDrivenCavitySolver (abstract base - pseudo-time loop and convergence)
└── ArtificialCompressibilitySolver (grid, operators, boundary conditions)
    ├── SGSSolver (symmetric Gauss-Seidel relaxation)
    └── PointJacobiSolver (point Jacobi relaxation)
"""

from .base_solver import LidDrivenCavitySolver
from .ac_solver import (
    ArtificialCompressibilitySolver,
    SGSSolver,
    PointJacobiSolver,
    create_solver,
)
from .boundary import (
    BoundaryCondition,
    CavityBoundary,
    ManufacturedBoundary,
    create_boundary_condition,
)
from .datastructures import (
    Parameters,
    ACParameters,
    DerivedQuantities,
    Metrics,
    Fields,
    TimeSeries,
    ACSolverFields,
)
from .io import TecplotWriter, RestartState, read_restart, write_restart
from .manufactured import ManufacturedSolution
from .rescaling import rescale_pressure

__all__ = [
    # Base classes
    "LidDrivenCavitySolver",
    "ArtificialCompressibilitySolver",
    # Concrete solvers
    "SGSSolver",
    "PointJacobiSolver",
    "create_solver",
    # Boundary conditions
    "BoundaryCondition",
    "CavityBoundary",
    "ManufacturedBoundary",
    "create_boundary_condition",
    "ManufacturedSolution",
    "rescale_pressure",
    # Configurations
    "Parameters",
    "ACParameters",
    "DerivedQuantities",
    # Data structures
    "Metrics",
    "Fields",
    "TimeSeries",
    "ACSolverFields",
    # Output
    "TecplotWriter",
    "RestartState",
    "read_restart",
    "write_restart",
]
