"""Tests for Tecplot output and restart checkpoints."""

import numpy as np
import pytest

from ldc import SGSSolver, TecplotWriter, read_restart, write_restart


def grid(nx, ny):
    return np.meshgrid(np.linspace(0, 0.05, nx), np.linspace(0, 0.05, ny), indexing="ij")


class TestRestartFile:
    def test_round_trip_is_exact(self, tmp_path, rng):
        X, Y = grid(6, 4)
        q = rng.standard_normal((6, 4, 3))
        resinit = np.array([1.0 / 3.0, 2.0e-7, np.pi])
        path = tmp_path / "restart.out"

        write_restart(path, 1234, 0.1 + 0.2, resinit, q, X, Y)
        state = read_restart(path, 6, 4)

        assert state.iteration == 1234
        assert state.simulated_time == 0.1 + 0.2
        np.testing.assert_array_equal(state.initial_residual, resinit)
        np.testing.assert_array_equal(state.q, q)

    def test_node_order_i_outer(self, tmp_path):
        X, Y = grid(3, 3)
        q = np.zeros((3, 3, 3))
        q[2, 0, 1] = 7.0
        path = tmp_path / "restart.out"
        write_restart(path, 1, 0.0, None, q, X, Y)

        lines = path.read_text().splitlines()
        assert lines[1].split() == ["0.0000000000000000e+00"] * 3
        # i = 2, j = 0 is the 7th node
        fields = [float(v) for v in lines[2 + 6].split()]
        assert fields[0] == pytest.approx(0.05)
        assert fields[1] == pytest.approx(0.0)
        assert fields[3] == 7.0

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_restart(tmp_path / "nope.in", 5, 5)

    def test_wrong_node_count_raises(self, tmp_path, rng):
        X, Y = grid(4, 4)
        path = tmp_path / "restart.out"
        write_restart(path, 10, 0.5, np.ones(3), rng.random((4, 4, 3)), X, Y)
        with pytest.raises(ValueError):
            read_restart(path, 5, 5)

    def test_garbage_header_raises(self, tmp_path):
        path = tmp_path / "restart.in"
        path.write_text("ten 0.5\n1 2 3\n")
        with pytest.raises(ValueError):
            read_restart(path, 3, 3)

    def test_zero_continuity_residual_is_recaptured(self, tmp_path, small_grid_params):
        first = SGSSolver(**small_grid_params)
        path = tmp_path / "restart.in"
        write_restart(path, 5, 0.1, np.array([0.0, 2.0, 3.0]), first.arrays.q, first.X, first.Y)

        restarted = SGSSolver(**dict(small_grid_params, restart=True, restart_file=str(path)))
        assert restarted.initial_residual is None

    def test_solver_restart_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SGSSolver(nx=5, ny=5, restart=True, restart_file=str(tmp_path / "restart.in"))


class TestTecplotWriter:
    def test_files_written(self, tmp_path, small_grid_params):
        solver = SGSSolver(**dict(small_grid_params, output_interval=20, residual_interval=10))
        with TecplotWriter(tmp_path, solver.X, solver.Y) as writer:
            solver.solve(max_iter=45, tolerance=0.0, writer=writer)

        history = (tmp_path / "history.dat").read_text().splitlines()
        assert history[0].startswith("TITLE")
        # Iteration 1, then every 10th
        assert [int(line.split()[0]) for line in history[2:]] == [1, 10, 20, 30, 40]

        fields = (tmp_path / "cavity.dat").read_text()
        # Initial, every 20th and final snapshot
        assert [line for line in fields.splitlines() if line.startswith("zone")] == [
            'zone T="n=0"', 'zone T="n=20"', 'zone T="n=40"', 'zone T="n=45"',
        ]
        assert "I= 9 J= 9" in fields
        assert "DE-p" not in fields

        state = read_restart(tmp_path / "restart.out", 9, 9)
        assert state.iteration == 45
        np.testing.assert_array_equal(state.q, solver.arrays.q)

    def test_mms_snapshot_has_errors(self, tmp_path, mms_grid_params):
        solver = SGSSolver(**mms_grid_params)
        with TecplotWriter(tmp_path, solver.X, solver.Y, solver.boundary.exact_field()) as writer:
            writer.write_fields(0, 0.0, None, solver.arrays.q)

        lines = (tmp_path / "cavity.dat").read_text().splitlines()
        assert '"DE-p""DE-u""DE-v"' in lines[1]
        assert len(lines[5].split()) == 11


class TestSolverRestart:
    """Continuing from a checkpoint reproduces an uninterrupted run."""

    def test_continuation_matches_single_run(self, tmp_path, small_grid_params):
        first = SGSSolver(**small_grid_params)
        with TecplotWriter(tmp_path, first.X, first.Y) as writer:
            first.solve(max_iter=30, tolerance=0.0, writer=writer)

        restarted = SGSSolver(
            **dict(small_grid_params, restart=True, restart_file=str(tmp_path / "restart.out"))
        )
        assert restarted.start_iteration == 30
        np.testing.assert_array_equal(restarted.initial_residual, first.initial_residual)
        np.testing.assert_array_equal(restarted.arrays.q, first.arrays.q)

        restarted.solve(max_iter=60, tolerance=0.0)
        assert restarted.time_series.iteration[0] == 31
        assert restarted.metrics.iterations == 60

        single = SGSSolver(**small_grid_params)
        single.solve(max_iter=60, tolerance=0.0)

        np.testing.assert_allclose(restarted.arrays.q, single.arrays.q, rtol=0, atol=1e-13)
        assert restarted.simulated_time == pytest.approx(single.simulated_time, rel=1e-14)
        np.testing.assert_allclose(
            restarted.time_series.convergence_ratio, single.time_series.convergence_ratio[30:], rtol=1e-10
        )
