"""Pytest configuration and fixtures for artificial compressibility solver tests."""

import os
import sys
from pathlib import Path

import numpy as np
import pytest

# Bounds-checked kernels for the test run (must be set before numba compiles)
os.environ.setdefault("NUMBA_BOUNDSCHECK", "1")

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def small_grid_params():
    """Parameters for a small 9x9 driven cavity at Re=10."""
    return {
        "Re": 10,
        "nx": 9,
        "ny": 9,
        "tolerance": 1e-8,
        "max_iterations": 20000,
        "lid_velocity": 1.0,
        "Lx": 0.05,
        "Ly": 0.05,
        "CFL": 0.8,
        "residual_interval": 100,
    }


@pytest.fixture
def mms_grid_params():
    """Parameters for a manufactured-solution run on a 17x17 grid."""
    return {
        "Re": 10,
        "nx": 17,
        "ny": 17,
        "tolerance": 1e-7,
        "max_iterations": 200000,
        "Lx": 0.05,
        "Ly": 0.05,
        "CFL": 0.5,
        "boundary": "mms",
        "residual_interval": 1000,
    }


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
