"""
Plots for artificial compressibility runs.

Convergence history of the iterative residuals and contour / streamline
plots of the final fields.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy.interpolate import RectBivariateSpline

log = logging.getLogger(__name__)

RESIDUAL_COLUMNS = {
    "convergence_ratio": "Convergence ratio",
    "continuity_residual": "Continuity",
    "x_momentum_residual": "x-momentum",
    "y_momentum_residual": "y-momentum",
}


def plot_convergence(timeseries_df: pd.DataFrame, title: str, output_dir: Path) -> Path:
    """Plot iterative residual history on a log scale."""
    if timeseries_df.empty:
        log.warning("No timeseries data available for convergence plot")
        return None

    sns.set_style("darkgrid")
    fig, ax = plt.subplots()

    for col, label in RESIDUAL_COLUMNS.items():
        if col not in timeseries_df:
            continue
        data = timeseries_df[col].replace([np.inf, -np.inf], np.nan).dropna()
        data = data[data > 0]
        if len(data) > 0:
            ax.semilogy(timeseries_df.loc[data.index, "iteration"], data, label=label)

    ax.set_xlabel("Iteration")
    ax.set_ylabel("Residual")
    ax.set_title(f"Convergence History: {title}")
    ax.legend(frameon=True)

    output_path = Path(output_dir) / "convergence.pdf"
    fig.savefig(output_path, bbox_inches="tight")
    plt.close(fig)
    return output_path


def plot_fields(fields_df: pd.DataFrame, title: str, output_dir: Path) -> Path:
    """Pressure contours and velocity-magnitude streamlines of the final solution."""
    x_unique = np.sort(fields_df["x"].unique())
    y_unique = np.sort(fields_df["y"].unique())
    nx, ny = len(x_unique), len(y_unique)

    sorted_df = fields_df.sort_values(["y", "x"])
    P = sorted_df["p"].values.reshape(ny, nx)
    U = sorted_df["u"].values.reshape(ny, nx)
    V = sorted_df["v"].values.reshape(ny, nx)

    n_fine = 200
    x_fine = np.linspace(x_unique[0], x_unique[-1], n_fine)
    y_fine = np.linspace(y_unique[0], y_unique[-1], n_fine)
    X_fine, Y_fine = np.meshgrid(x_fine, y_fine)

    kx, ky = min(3, nx - 1), min(3, ny - 1)

    def interp(F):
        return RectBivariateSpline(y_unique, x_unique, F, kx=ky, ky=kx)(y_fine, x_fine)

    P_interp, U_interp, V_interp = interp(P), interp(U), interp(V)
    vel_mag = np.sqrt(U_interp**2 + V_interp**2)

    sns.set_style("white")
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    cf_p = axes[0].contourf(X_fine, Y_fine, P_interp, levels=30, cmap="viridis")
    axes[0].set_title("Pressure")
    plt.colorbar(cf_p, ax=axes[0], label="p")

    cf_v = axes[1].contourf(X_fine, Y_fine, vel_mag, levels=30, cmap="coolwarm")
    axes[1].streamplot(
        x_fine, y_fine, U_interp, V_interp,
        density=1.5, linewidth=1.0, arrowsize=1.0, color=(1, 1, 1, 0.7),
    )
    axes[1].set_title("Velocity magnitude")
    plt.colorbar(cf_v, ax=axes[1], label="|u|")

    for ax in axes:
        ax.set_xlabel("x")
        ax.set_ylabel("y")
        ax.set_aspect("equal")

    fig.suptitle(f"Solution Fields: {title}")
    plt.tight_layout()

    output_path = Path(output_dir) / "fields.pdf"
    fig.savefig(output_path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return output_path
