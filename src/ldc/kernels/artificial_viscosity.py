"""4th-order artificial viscosity (pressure damping) for the continuity equation.

The collocated artificial-compressibility scheme admits odd-even pressure
decoupling. A damping term proportional to the 4th derivative of pressure is
added to the continuity residual. The 5-point stencil needs two neighbours on
each side, so it is only evaluated two or more cells away from the walls; the
remaining nodes get linearly extrapolated values.
"""

import numpy as np
from numba import njit

from .time_step import beta_squared, wave_speed


@njit(cache=True)
def damping_interior(q, viscx, viscy, dx, dy, Cx, Cy, kappa, lid_velocity):
    """Evaluate both damping components where the 5-point stencil fits."""
    nx = q.shape[0]
    ny = q.shape[1]

    for j in range(2, ny - 2):
        for i in range(2, nx - 2):
            u = q[i, j, 1]
            v = q[i, j, 2]
            beta2 = beta_squared(u, v, kappa, lid_velocity)

            lambda_x = wave_speed(u, beta2)
            lambda_y = wave_speed(v, beta2)

            d4pdx4 = (
                q[i + 2, j, 0]
                - 4.0 * q[i + 1, j, 0]
                + 6.0 * q[i, j, 0]
                - 4.0 * q[i - 1, j, 0]
                + q[i - 2, j, 0]
            ) / dx
            d4pdy4 = (
                q[i, j + 2, 0]
                - 4.0 * q[i, j + 1, 0]
                + 6.0 * q[i, j, 0]
                - 4.0 * q[i, j - 1, 0]
                + q[i, j - 2, 0]
            ) / dy

            viscx[i, j] = -abs(lambda_x) * Cx * d4pdx4 / beta2
            viscy[i, j] = -abs(lambda_y) * Cy * d4pdy4 / beta2


def _extrapolate_outward(visc, lines):
    """Extrapolate along axis 0 from the computed block to the first two and last two lines.

    ``lines`` selects the positions along axis 1 that hold computed values.
    ``visc`` may be a transposed view; writes go to the underlying array.
    """
    n = visc.shape[0]
    n_computed = n - 4

    if n_computed >= 2:
        for i in (1, 0):
            visc[i, lines] = 2.0 * visc[i + 1, lines] - visc[i + 2, lines]
        for i in (n - 2, n - 1):
            visc[i, lines] = 2.0 * visc[i - 1, lines] - visc[i - 2, lines]
    elif n_computed == 1:
        visc[:2, lines] = visc[2, lines]
        visc[n - 2:, lines] = visc[2, lines]
    else:
        visc[:, lines] = 0.0


def extrapolate_damping(visc):
    """Populate the two outer rings of a damping field from its own interior values.

    First along x on the rows where the stencil was evaluated, then along y
    over every column (which also fills the corners).
    """
    nx, ny = visc.shape
    inner_rows = slice(2, ny - 2) if ny > 4 else slice(0, 0)

    _extrapolate_outward(visc, inner_rows)
    _extrapolate_outward(visc.T, slice(0, nx))


def compute_artificial_viscosity(q, viscx, viscy, dx, dy, Cx, Cy, kappa, lid_velocity):
    """Compute x and y damping over the whole grid (in place)."""
    viscx.fill(0.0)
    viscy.fill(0.0)
    damping_interior(q, viscx, viscy, dx, dy, Cx, Cy, kappa, lid_velocity)
    extrapolate_damping(viscx)
    extrapolate_damping(viscy)
