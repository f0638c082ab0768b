"""Relaxation sweeps for the artificial compressibility equations.

Primitive variables are stored as q[i, j, k] with k = 0 (p), 1 (u), 2 (v).
All derivatives are 2nd order central differences. Each node is updated with
its own local pseudo-time step dt[i, j].
"""

from numba import njit

from .time_step import beta_squared


@njit(inline="always", cache=True)
def node_residuals(q, src, viscx, viscy, i, j, dx, dy, rho, rmu):
    """Steady-state residuals of the mass, x-momentum and y-momentum equations at (i, j)."""
    u = q[i, j, 1]
    v = q[i, j, 2]

    # Pressure derivatives
    dpdx = (q[i + 1, j, 0] - q[i - 1, j, 0]) / (2.0 * dx)
    dpdy = (q[i, j + 1, 0] - q[i, j - 1, 0]) / (2.0 * dy)

    # u velocity derivatives
    dudx = (q[i + 1, j, 1] - q[i - 1, j, 1]) / (2.0 * dx)
    dudy = (q[i, j + 1, 1] - q[i, j - 1, 1]) / (2.0 * dy)
    d2udx2 = (q[i + 1, j, 1] - 2.0 * u + q[i - 1, j, 1]) / (dx * dx)
    d2udy2 = (q[i, j + 1, 1] - 2.0 * u + q[i, j - 1, 1]) / (dy * dy)

    # v velocity derivatives
    dvdx = (q[i + 1, j, 2] - q[i - 1, j, 2]) / (2.0 * dx)
    dvdy = (q[i, j + 1, 2] - q[i, j - 1, 2]) / (2.0 * dy)
    d2vdx2 = (q[i + 1, j, 2] - 2.0 * v + q[i - 1, j, 2]) / (dx * dx)
    d2vdy2 = (q[i, j + 1, 2] - 2.0 * v + q[i, j - 1, 2]) / (dy * dy)

    res_mass = rho * dudx + rho * dvdy - viscx[i, j] - viscy[i, j] - src[i, j, 0]
    res_xmtm = (
        rho * u * dudx + rho * v * dudy + dpdx - rmu * (d2udx2 + d2udy2) - src[i, j, 1]
    )
    res_ymtm = (
        rho * u * dvdx + rho * v * dvdy + dpdy - rmu * (d2vdx2 + d2vdy2) - src[i, j, 2]
    )
    return res_mass, res_xmtm, res_ymtm


@njit(inline="always", cache=True)
def relax_node(
    q_in, q_out, src, viscx, viscy, dt, i, j, dx, dy, rho, rhoinv, rmu, kappa, lid_velocity
):
    """Advance node (i, j) one local pseudo-time step.

    Derivatives and beta^2 come from q_in, the result is written to q_out.
    For Gauss-Seidel both are the same array.
    """
    p = q_in[i, j, 0]
    u = q_in[i, j, 1]
    v = q_in[i, j, 2]
    beta2 = beta_squared(u, v, kappa, lid_velocity)

    res_mass, res_xmtm, res_ymtm = node_residuals(
        q_in, src, viscx, viscy, i, j, dx, dy, rho, rmu
    )

    dt_ij = dt[i, j]
    q_out[i, j, 0] = p - beta2 * dt_ij * res_mass
    q_out[i, j, 1] = u - dt_ij * rhoinv * res_xmtm
    q_out[i, j, 2] = v - dt_ij * rhoinv * res_ymtm


@njit(cache=True)
def sgs_forward_sweep(q, src, viscx, viscy, dt, dx, dy, rho, rhoinv, rmu, kappa, lid_velocity):
    """Symmetric Gauss-Seidel forward sweep (j ascending, i ascending), in place."""
    nx = q.shape[0]
    ny = q.shape[1]
    for j in range(1, ny - 1):
        for i in range(1, nx - 1):
            relax_node(
                q, q, src, viscx, viscy, dt, i, j, dx, dy, rho, rhoinv, rmu, kappa, lid_velocity
            )


@njit(cache=True)
def sgs_backward_sweep(q, src, viscx, viscy, dt, dx, dy, rho, rhoinv, rmu, kappa, lid_velocity):
    """Symmetric Gauss-Seidel backward sweep (j descending, i descending), in place."""
    nx = q.shape[0]
    ny = q.shape[1]
    for j in range(ny - 2, 0, -1):
        for i in range(nx - 2, 0, -1):
            relax_node(
                q, q, src, viscx, viscy, dt, i, j, dx, dy, rho, rhoinv, rmu, kappa, lid_velocity
            )


@njit(cache=True)
def point_jacobi_sweep(
    q, q_old, src, viscx, viscy, dt, dx, dy, rho, rhoinv, rmu, kappa, lid_velocity
):
    """Point Jacobi sweep: read only q_old, write q."""
    nx = q.shape[0]
    ny = q.shape[1]
    for i in range(1, nx - 1):
        for j in range(1, ny - 1):
            relax_node(
                q_old, q, src, viscx, viscy, dt, i, j, dx, dy, rho, rhoinv, rmu, kappa, lid_velocity
            )


@njit(cache=True)
def steady_residuals(q, src, viscx, viscy, out, dx, dy, rho, rmu):
    """Write the steady residual of each equation at every interior node into out."""
    nx = q.shape[0]
    ny = q.shape[1]
    for i in range(1, nx - 1):
        for j in range(1, ny - 1):
            r0, r1, r2 = node_residuals(q, src, viscx, viscy, i, j, dx, dy, rho, rmu)
            out[i, j, 0] = r0
            out[i, j, 1] = r1
            out[i, j, 2] = r2
    return out
