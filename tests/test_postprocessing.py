"""Tests for plots and the order-of-accuracy callback."""

import json

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pytest  # noqa: E402
from omegaconf import OmegaConf  # noqa: E402

from callbacks.mms_callback import MMSPlotCallback, observed_order  # noqa: E402
from ldc import SGSSolver  # noqa: E402
from ldc.plotting import plot_convergence, plot_fields  # noqa: E402


class TestObservedOrder:
    def test_second_order_data(self):
        N = np.array([9, 17, 33])
        h = 1.0 / (N - 1)
        errors = 3.0 * h**2
        np.testing.assert_allclose(observed_order(N, errors), [2.0, 2.0])


class TestMMSPlotCallback:
    def test_collects_results_and_plots(self, tmp_path):
        for job, n in enumerate((17, 33)):
            job_dir = tmp_path / str(job)
            job_dir.mkdir()
            h = 1.0 / (n - 1)
            result = {"N": n, "DE_L2_p": h**2, "DE_L2_u": 2 * h**2, "DE_L2_v": 3 * h**2}
            (job_dir / "mms_result.json").write_text(json.dumps(result))

        config = OmegaConf.create({"hydra": {"sweep": {"dir": str(tmp_path)}}})
        MMSPlotCallback().on_multirun_end(config)

        assert (tmp_path / "figures" / "mms_order.pdf").exists()


class TestPlots:
    @pytest.fixture
    def solved(self, small_grid_params):
        solver = SGSSolver(**small_grid_params)
        solver.solve(max_iter=30, tolerance=0.0)
        return solver

    def test_convergence_plot(self, solved, tmp_path):
        path = plot_convergence(solved.time_series.to_dataframe(), "ac_sgs", tmp_path)
        assert path.exists()

    def test_fields_plot(self, solved, tmp_path):
        path = plot_fields(solved.fields.to_dataframe(), "ac_sgs", tmp_path)
        assert path.exists()
