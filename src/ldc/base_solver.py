"""Abstract base solver for lid-driven cavity problem."""

from abc import ABC, abstractmethod
import logging
import time

import numpy as np

from .datastructures import TimeSeries, Metrics, Fields

log = logging.getLogger(__name__)

RESIDUAL_HEADER = (
    "  Iter.    Time (s)     dt (s)     Continuity    x-Momentum    y-Momentum"
)


class LidDrivenCavitySolver(ABC):
    """Abstract base solver for lid-driven cavity problem.

    Handles:
    - Parameter management (input configuration)
    - Metrics tracking (output results)
    - Pseudo-time iteration loop with convergence monitoring
    - Residual history logging and optional file output

    Subclasses must:
    - Set Parameters class attribute (e.g., ACParameters)
    - Provide self.arrays with a (nx, ny, 3) field ``q``
    - Call _init_fields(x, y) after setting up grid
    - Implement step() and the time step, rescaling and residual hooks
    """

    Parameters = None  # Subclasses set this to ACParameters

    def __init__(self, params=None, **kwargs):
        """Initialize solver with parameters.

        Parameters
        ----------
        params : Parameters, optional
            Parameters object. If not provided, kwargs are used to create params.
        **kwargs
            Configuration parameters passed to Parameters class if params is None.
        """
        if params is None:
            if self.Parameters is None:
                raise ValueError("Subclass must define Parameters class attribute")
            params = self.Parameters(**kwargs)

        self.params = params
        self.metrics = Metrics()
        self.fields = None  # Initialized by subclass via _init_fields()
        self.time_series = None  # Populated after solve()

        # Pseudo-time state (overwritten when restarting)
        self.start_iteration = 0
        self.simulated_time = 0.0
        self.initial_residual = None
        self.residuals = np.zeros(3)
        self.convergence_ratio = float("inf")
        self.algebraic_residuals = {}

    def _init_fields(self, x: np.ndarray, y: np.ndarray):
        """Initialize output fields with grid coordinates.

        Parameters
        ----------
        x : np.ndarray
            X coordinates of all grid points (1D array)
        y : np.ndarray
            Y coordinates of all grid points (1D array)
        """
        n_points = len(x)
        self.fields = Fields(
            p=np.zeros(n_points),
            u=np.zeros(n_points),
            v=np.zeros(n_points),
            x=x.copy(),
            y=y.copy(),
        )

    @abstractmethod
    def step(self):
        """Perform one pseudo-time iteration (relaxation and boundary conditions)."""
        pass

    @abstractmethod
    def _compute_time_step(self) -> float:
        """Fill the local time step field and return its minimum."""
        pass

    @abstractmethod
    def _rescale_pressure(self) -> float:
        """Pin the pressure level; return the applied shift."""
        pass

    @abstractmethod
    def _compute_iterative_residuals(self) -> np.ndarray:
        """L2 norms of the change between the previous and current iterate."""
        pass

    @abstractmethod
    def _compute_algebraic_residuals(self) -> dict:
        """Compute steady residual norms of the discretized equations.

        Returns
        -------
        dict
            Dictionary with keys 'continuity_residual', 'x_momentum_residual',
            'y_momentum_residual'.
        """
        pass

    def _finalize_fields(self):
        """Copy final solution from internal arrays to output fields."""
        q = self.arrays.q
        self.fields.p[:] = q[:, :, 0].ravel()
        self.fields.u[:] = q[:, :, 1].ravel()
        self.fields.v[:] = q[:, :, 2].ravel()

    def _capture_initial_residual(self, residuals: np.ndarray) -> np.ndarray:
        """Residual vector used to scale the convergence ratio.

        A zero (or non-finite) continuity residual on the first iteration
        cannot scale anything; point-Jacobi from a uniform-pressure start
        produces exactly that. The unit vector is used instead.
        """
        if np.isfinite(residuals[0]) and residuals[0] > 0.0:
            return residuals.copy()
        log.info("Initial continuity residual is zero, using unit scaling for convergence")
        return np.ones_like(residuals)

    def _convergence_ratio(self, residuals: np.ndarray) -> float:
        """Largest residual relative to the L2 norm of the initial continuity residual."""
        n_nodes = self.params.nx * self.params.ny
        scale = max(np.sqrt(self.initial_residual[0] ** 2 / n_nodes), 1e-20)
        return float(np.max(residuals) / scale)

    def _store_results(self, history, final_iter_count, is_converged, is_diverged,
                       wall_time, max_timeseries_points: int = 1000):
        """Store solve results in self.fields, self.time_series, and self.metrics."""
        self._finalize_fields()
        self.algebraic_residuals = self._compute_algebraic_residuals()

        def downsample(data):
            if data is None or len(data) <= max_timeseries_points:
                return data
            indices = np.linspace(0, len(data) - 1, max_timeseries_points, dtype=int)
            return [data[i] for i in indices]

        columns = {key: [h[key] for h in history] for key in (
            "iteration", "simulated_time", "convergence_ratio", "continuity",
            "x_momentum", "y_momentum", "dt_min",
        )}

        self.time_series = TimeSeries(
            iteration=downsample(columns["iteration"]),
            simulated_time=downsample(columns["simulated_time"]),
            convergence_ratio=downsample(columns["convergence_ratio"]),
            continuity_residual=downsample(columns["continuity"]),
            x_momentum_residual=downsample(columns["x_momentum"]),
            y_momentum_residual=downsample(columns["y_momentum"]),
            min_time_step=downsample(columns["dt_min"]),
        )

        # Final values, not downsampled
        self.metrics = Metrics(
            iterations=final_iter_count,
            converged=is_converged,
            diverged=is_diverged,
            final_residual=self.convergence_ratio,
            wall_time_seconds=wall_time,
            simulated_time=self.simulated_time,
            continuity_residual=float(self.residuals[0]),
            x_momentum_residual=float(self.residuals[1]),
            y_momentum_residual=float(self.residuals[2]),
        )

    def _log_residuals(self, row: int, iteration: int, dtmin: float, residuals):
        if row % 20 == 0:
            log.info(RESIDUAL_HEADER)
        log.info(
            f"{iteration:7d} {self.simulated_time:11.4e} {dtmin:11.4e} "
            f"{residuals[0]:13.5e} {residuals[1]:13.5e} {residuals[2]:13.5e}"
        )

    def solve(self, tolerance: float = None, max_iter: int = None, writer=None):
        """Solve the lid-driven cavity problem by pseudo-time marching.

        Each iteration: local time step, one relaxation step, pressure
        rescaling, simulated time update, iterative residuals and the stop
        test. The loop ends when the convergence ratio drops below the
        tolerance, when it becomes non-finite (divergence), or after
        ``max_iter`` (counted from the first iteration of a fresh run).

        Stores results in solver attributes:
        - self.fields : Fields dataclass with solution fields
        - self.time_series : TimeSeries dataclass with residual history
        - self.metrics : Metrics dataclass with solver metrics

        Parameters
        ----------
        tolerance : float, optional
            Convergence tolerance. If None, uses params.tolerance.
        max_iter : int, optional
            Last iteration number. If None, uses params.max_iterations.
        writer : TecplotWriter, optional
            Receives residual history and periodic field snapshots.
        """
        if tolerance is None:
            tolerance = self.params.tolerance
        if max_iter is None:
            max_iter = self.params.max_iterations

        residual_interval = max(1, self.params.residual_interval)
        output_interval = max(1, self.params.output_interval)

        if writer is not None:
            writer.write_fields(
                self.start_iteration, self.simulated_time, self.initial_residual, self.arrays.q
            )

        history = []
        first = self.start_iteration + 1
        final_iter_count = self.start_iteration
        is_converged = False
        is_diverged = False
        rows = 0

        time_start = time.time()
        for n in range(first, max_iter + 1):
            final_iter_count = n

            dtmin = self._compute_time_step()
            self.step()
            self._rescale_pressure()
            self.simulated_time += dtmin

            residuals = self._compute_iterative_residuals()
            if self.initial_residual is None:
                self.initial_residual = self._capture_initial_residual(residuals)
            self.residuals = residuals
            self.convergence_ratio = self._convergence_ratio(residuals)

            history.append({
                "iteration": n,
                "simulated_time": self.simulated_time,
                "convergence_ratio": self.convergence_ratio,
                "continuity": float(residuals[0]),
                "x_momentum": float(residuals[1]),
                "y_momentum": float(residuals[2]),
                "dt_min": dtmin,
            })

            is_diverged = not np.isfinite(self.convergence_ratio)
            is_converged = not is_diverged and self.convergence_ratio < tolerance

            if n == first or n % residual_interval == 0 or is_converged or is_diverged:
                self._log_residuals(rows, n, dtmin, residuals)
                rows += 1
                if writer is not None:
                    writer.write_history(n, self.simulated_time, residuals)

            if is_diverged:
                log.warning(f"Solution diverged at iteration {n} (non-finite residuals)")
                break
            if is_converged:
                log.info(f"Converged at iteration {n} (ratio {self.convergence_ratio:.3e})")
                break

            if writer is not None and n % output_interval == 0:
                writer.write_fields(n, self.simulated_time, self.initial_residual, self.arrays.q)

        wall_time = time.time() - time_start
        if not (is_converged or is_diverged):
            log.warning(f"Stopped after reaching the maximum of {max_iter} iterations")
        log.info(f"Solver finished in {wall_time:.2f} seconds.")

        if writer is not None:
            writer.write_fields(
                final_iter_count, self.simulated_time, self.initial_residual, self.arrays.q
            )

        self._store_results(history, final_iter_count, is_converged, is_diverged, wall_time)
