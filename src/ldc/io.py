"""Tecplot-style output files and restart checkpoints.

Files written to the output directory:

- ``history.dat``: iterative residual history (one line per logged iteration)
- ``cavity.dat``: one POINT zone per field snapshot
- ``restart.out``: latest checkpoint, overwritten at every snapshot

Restart layout (whitespace separated)::

    iteration time
    res_continuity res_xmtm res_ymtm
    x y p u v        # one line per node, i outer, j inner
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

log = logging.getLogger(__name__)

# 17 significant digits, enough for an exact double round-trip
FLOAT_FMT = "%.16e"


@dataclass
class RestartState:
    """Solver state read back from a restart file."""

    iteration: int
    simulated_time: float
    initial_residual: np.ndarray
    q: np.ndarray


def write_restart(path, iteration, simulated_time, initial_residual, q, X, Y):
    """Write a restart checkpoint for the (nx, ny, 3) field q."""
    path = Path(path)
    if initial_residual is None:
        initial_residual = np.zeros(3)

    nodes = np.column_stack(
        [X.ravel(), Y.ravel(), q[:, :, 0].ravel(), q[:, :, 1].ravel(), q[:, :, 2].ravel()]
    )
    with open(path, "w") as f:
        f.write(f"{int(iteration)} {FLOAT_FMT % simulated_time}\n")
        f.write(" ".join(FLOAT_FMT % r for r in initial_residual) + "\n")
        np.savetxt(f, nodes, fmt=FLOAT_FMT)


def read_restart(path, nx: int, ny: int) -> RestartState:
    """Read a restart checkpoint written for an nx-by-ny grid.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the header or node data cannot be parsed or the node count
        does not match the grid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Restart file not found: {path}")

    with open(path) as f:
        header = f.readline().split()
        residual_line = f.readline().split()
        try:
            iteration = int(header[0])
            simulated_time = float(header[1])
            initial_residual = np.array([float(r) for r in residual_line[:3]])
            nodes = np.loadtxt(f, ndmin=2)
        except (IndexError, ValueError) as exc:
            raise ValueError(f"Malformed restart file {path}: {exc}") from exc

    if len(initial_residual) != 3:
        raise ValueError(f"Malformed restart file {path}: expected 3 initial residuals")
    if nodes.shape != (nx * ny, 5):
        raise ValueError(
            f"Restart file {path} holds {nodes.shape[0]} nodes with "
            f"{nodes.shape[1] if nodes.ndim == 2 else 0} columns, "
            f"expected {nx * ny} nodes with 5 columns"
        )

    q = nodes[:, 2:5].reshape(nx, ny, 3).copy()
    log.info(f"Read restart {path}: iteration {iteration}, time {simulated_time:.6e}")
    return RestartState(
        iteration=iteration,
        simulated_time=simulated_time,
        initial_residual=initial_residual,
        q=q,
    )


class TecplotWriter:
    """Writes residual history, field snapshots and restart files.

    Parameters
    ----------
    output_dir : str or Path
        Directory for history.dat, cavity.dat and restart.out.
    X, Y : np.ndarray
        Node coordinates of shape (nx, ny).
    exact : np.ndarray, optional
        Exact (p, u, v) field; when given, snapshots also carry the exact
        values and the discretization error.
    """

    def __init__(self, output_dir, X: np.ndarray, Y: np.ndarray, exact: Optional[np.ndarray] = None):
        self.output_dir = Path(output_dir)
        self.X = X
        self.Y = Y
        self.exact = exact
        self._history = None
        self._fields = None

    @property
    def history_path(self) -> Path:
        return self.output_dir / "history.dat"

    @property
    def fields_path(self) -> Path:
        return self.output_dir / "cavity.dat"

    @property
    def restart_path(self) -> Path:
        return self.output_dir / "restart.out"

    def open(self):
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self._history = open(self.history_path, "w")
        self._history.write('TITLE = "Cavity Iterative Residual History"\n')
        self._history.write('variables="Iteration""Time(s)""Res1""Res2""Res3"\n')

        self._fields = open(self.fields_path, "w")
        self._fields.write('TITLE = "Cavity Field Data"\n')
        variables = '"x(m)""y(m)""p(N/m^2)""u(m/s)""v(m/s)"'
        if self.exact is not None:
            variables += '"p-exact""u-exact""v-exact""DE-p""DE-u""DE-v"'
        self._fields.write(f"variables={variables}\n")
        return self

    def close(self):
        for f in (self._history, self._fields):
            if f is not None:
                f.close()
        self._history = None
        self._fields = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def write_history(self, iteration: int, simulated_time: float, residuals):
        self._history.write(
            f"{iteration} {simulated_time:e} "
            f"{residuals[0]:e} {residuals[1]:e} {residuals[2]:e}\n"
        )
        self._history.flush()

    def write_fields(self, iteration: int, simulated_time: float, initial_residual, q: np.ndarray):
        """Append a field zone to cavity.dat and overwrite restart.out."""
        nx, ny = q.shape[:2]
        self._fields.write(f'zone T="n={iteration}"\n')
        self._fields.write(f"I= {nx} J= {ny}\n")
        self._fields.write("DATAPACKING=POINT\n")

        columns = [self.X.ravel(), self.Y.ravel()] + [q[:, :, k].ravel() for k in range(3)]
        if self.exact is not None:
            columns += [self.exact[:, :, k].ravel() for k in range(3)]
            columns += [(q[:, :, k] - self.exact[:, :, k]).ravel() for k in range(3)]
        np.savetxt(self._fields, np.column_stack(columns), fmt="%e")
        self._fields.flush()

        write_restart(
            self.restart_path, iteration, simulated_time, initial_residual, q, self.X, self.Y
        )
