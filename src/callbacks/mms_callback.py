"""Hydra callback for MMS order-of-accuracy plotting after a multirun."""

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from hydra.experimental.callback import Callback
from omegaconf import DictConfig

log = logging.getLogger(__name__)


def observed_order(N_vals: np.ndarray, errors: np.ndarray) -> np.ndarray:
    """Observed order of accuracy between successive grids.

    Grid spacing is h = L / (N - 1), so p = ln(e_coarse / e_fine) / ln(h_coarse / h_fine).
    """
    h = 1.0 / (np.asarray(N_vals, dtype=float) - 1.0)
    errors = np.asarray(errors, dtype=float)
    return np.log(errors[:-1] / errors[1:]) / np.log(h[:-1] / h[1:])


class MMSPlotCallback(Callback):
    """Generate discretization error plots after multirun sweep completes."""

    def __init__(self, output_dir: str = "figures") -> None:
        self.output_dir = output_dir

    def on_multirun_end(self, config: DictConfig, **kwargs: Any) -> None:
        """Collect mms_result.json from every job and plot error vs. grid size."""
        multirun_dir = Path(config.hydra.sweep.dir)
        if not multirun_dir.exists():
            log.warning(f"No multirun directory found at {multirun_dir}")
            return

        results = []
        for result_file in sorted(multirun_dir.glob("*/mms_result.json")):
            with open(result_file) as f:
                results.append(json.load(f))

        if len(results) < 2:
            log.warning(f"Need at least two MMS results in {multirun_dir}, found {len(results)}")
            return

        figures_dir = multirun_dir / self.output_dir
        figures_dir.mkdir(exist_ok=True)
        self._plot_convergence(results, figures_dir)

    def _plot_convergence(self, data: list, output_dir: Path) -> Path:
        """Log-log plot of the L2 discretization error for p, u and v."""
        data = sorted(data, key=lambda x: x["N"])
        N_vals = np.array([d["N"] for d in data])
        h = 1.0 / (N_vals - 1.0)

        sns.set_style("darkgrid")
        fig, ax = plt.subplots(figsize=(8, 6))

        for name, marker in (("p", "o"), ("u", "s"), ("v", "^")):
            errors = np.array([d[f"DE_L2_{name}"] for d in data])
            orders = observed_order(N_vals, errors)
            log.info(f"Observed order ({name}): " + ", ".join(f"{p:.3f}" for p in orders))
            ax.loglog(h, errors, f"{marker}-", label=f"{name} (order {orders[-1]:.2f})", markersize=8)

        # 2nd order reference slope through the finest u error
        e_ref = data[-1]["DE_L2_u"]
        ax.loglog(h, e_ref * (h / h[-1]) ** 2, "k--", alpha=0.6, label="2nd order")

        ax.set_xlabel("h / L", fontsize=12)
        ax.set_ylabel("L2 discretization error", fontsize=12)
        ax.set_title("MMS Order of Accuracy", fontsize=14)
        ax.legend(fontsize=11)

        plt.tight_layout()
        output_file = output_dir / "mms_order.pdf"
        plt.savefig(output_file)
        plt.close()
        log.info(f"Saved: {output_file}")
        return output_file
