"""Iterative residual norms used by the convergence monitor."""

import numpy as np
from numba import njit

from .time_step import beta_squared


@njit(cache=True)
def iterative_residual_norms(q, q_old, dt, rho, kappa, lid_velocity):
    """
    L2 norms of the iterative residuals (pseudo-time rates of change).
    Sums run over interior nodes and are normalized by the total node count.
    """
    nx = q.shape[0]
    ny = q.shape[1]

    sum_mass = 0.0
    sum_xmtm = 0.0
    sum_ymtm = 0.0
    for i in range(1, nx - 1):
        for j in range(1, ny - 1):
            beta2 = beta_squared(q[i, j, 1], q[i, j, 2], kappa, lid_velocity)
            dt_ij = dt[i, j]

            r_mass = (q[i, j, 0] - q_old[i, j, 0]) / (-beta2 * dt_ij)
            r_xmtm = -rho * (q[i, j, 1] - q_old[i, j, 1]) / dt_ij
            r_ymtm = -rho * (q[i, j, 2] - q_old[i, j, 2]) / dt_ij

            sum_mass += r_mass * r_mass
            sum_xmtm += r_xmtm * r_xmtm
            sum_ymtm += r_ymtm * r_ymtm

    n_nodes = nx * ny
    return (
        np.sqrt(sum_mass / n_nodes),
        np.sqrt(sum_xmtm / n_nodes),
        np.sqrt(sum_ymtm / n_nodes),
    )
