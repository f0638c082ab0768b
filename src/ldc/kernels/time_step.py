"""Local pseudo-time step from the convective and viscous stability limits."""

import numpy as np
from numba import njit


@njit(inline="always", cache=True)
def beta_squared(u, v, kappa, lid_velocity):
    """Local time-derivative preconditioning parameter."""
    return max(u * u + v * v, kappa * abs(lid_velocity))


@njit(inline="always", cache=True)
def wave_speed(w, beta2):
    """Max absolute eigenvalue in one direction for velocity component w."""
    return 0.5 * (abs(w) + np.sqrt(w * w + 4.0 * beta2))


@njit(cache=True)
def compute_time_step(q, dt, dx, dy, cfl, kappa, lid_velocity, rmu, rhoinv):
    """
    Fill the local pseudo-time step at every interior node.
    Boundary entries of dt are left untouched.
    Returns the smallest step written (used for simulated time only).
    """
    nx = q.shape[0]
    ny = q.shape[1]

    # Viscous stability limit (constant over the domain)
    dtvisc = (dx * dy) / (4.0 * rmu * rhoinv)
    dmin = min(dx, dy)

    dtmin = 1.0e99
    for i in range(1, nx - 1):
        for j in range(1, ny - 1):
            u = q[i, j, 1]
            v = q[i, j, 2]
            beta2 = beta_squared(u, v, kappa, lid_velocity)

            lambda_x = wave_speed(u, beta2)
            lambda_y = wave_speed(v, beta2)
            lambda_max = max(lambda_x, lambda_y)

            dtconv = dmin / lambda_max
            dt[i, j] = cfl * min(dtconv, dtvisc)
            dtmin = min(dtmin, dt[i, j])

    return dtmin
