"""
LDC Solver - Hydra + MLflow entry point for the artificial compressibility solvers.

Usage:
    uv run python main.py                                 # SGS, driven cavity
    uv run python main.py solver=jacobi N=33 Re=100
    uv run python main.py boundary=mms N=33               # manufactured solution
    uv run python main.py restart=true restart_file=/path/to/restart.out
    uv run python main.py -m +experiment=mms_order        # order-of-accuracy sweep

MLflow modes:
    local-files  - file-based ./mlruns (default)
    remote       - tracking server (set MLFLOW_TRACKING_URI in .env)
"""

import json
import logging
import math
import os
import sys
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.utils import instantiate
from mlflow.tracking import MlflowClient
from omegaconf import DictConfig, OmegaConf

# Load .env file (for MLflow credentials)
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

log = logging.getLogger(__name__)


def create_solver(cfg: DictConfig):
    """Instantiate solver using Hydra's instantiate on solver subtree.

    Common parameters from root config are passed to the solver constructor.
    """
    solver_cfg = OmegaConf.to_container(cfg.solver, resolve=True)
    solver_cfg.pop("name", None)
    return instantiate(
        solver_cfg,
        Re=cfg.Re,
        lid_velocity=cfg.lid_velocity,
        Lx=cfg.Lx,
        Ly=cfg.Ly,
        nx=cfg.N,
        ny=cfg.N,
        max_iterations=cfg.max_iterations,
        tolerance=cfg.tolerance,
        boundary=cfg.boundary,
        restart=cfg.restart,
        restart_file=cfg.restart_file,
        output_interval=cfg.output_interval,
        residual_interval=cfg.residual_interval,
        _convert_="partial",
    )


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = cfg.experiment_name
    project_prefix = cfg.mlflow.get("project_prefix", "")
    if project_prefix and not experiment_name.startswith("/"):
        experiment_name = f"{project_prefix}/{experiment_name}"

    mlflow.set_experiment(experiment_name)
    return experiment_name


def log_metrics_and_timeseries(solver, run_id: str):
    """Log final metrics and timeseries to MLflow."""
    mlflow.log_metrics(solver.metrics.to_mlflow())

    if solver.time_series is not None:
        batch_metrics = solver.time_series.to_mlflow_batch()
        if batch_metrics:
            MlflowClient().log_batch(run_id=run_id, metrics=batch_metrics)


def write_plots(solver, run_name: str, output_dir: Path):
    """Save convergence and field plots next to the Tecplot files."""
    from ldc.plotting import plot_convergence, plot_fields

    paths = [
        plot_convergence(solver.time_series.to_dataframe(), run_name, output_dir),
        plot_fields(solver.fields.to_dataframe(), run_name, output_dir),
    ]
    return [p for p in paths if p is not None]


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Hydra entry point - runs solver with MLflow tracking."""
    from ldc.io import TecplotWriter

    log.info(f"Solver: {cfg.solver.name}, N={cfg.N}, Re={cfg.Re}, boundary={cfg.boundary}")
    experiment_name = setup_mlflow(cfg)
    log.info(f"MLflow experiment: {experiment_name}")

    solver = create_solver(cfg)
    run_name = f"{cfg.solver.name}_{cfg.boundary}_N{cfg.N}"
    output_dir = Path(hydra.core.hydra_config.HydraConfig.get().runtime.output_dir)

    parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
    run_tags = {"solver": cfg.solver.name, "boundary": cfg.boundary}
    if parent_run_id:
        run_tags.update({"mlflow.parentRunId": parent_run_id, "sweep": "child"})

    with mlflow.start_run(run_name=run_name, tags=run_tags, nested=bool(parent_run_id)) as run:
        mlflow.log_params(solver.params.to_mlflow())
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        exact = solver.boundary.exact_field()
        with TecplotWriter(output_dir, solver.X, solver.Y, exact) as writer:
            solver.solve(writer=writer)

        log_metrics_and_timeseries(solver, run.info.run_id)
        mlflow.log_metrics(
            {f"algebraic_{k}": v for k, v in solver.algebraic_residuals.items() if math.isfinite(v)}
        )

        errors = solver.compute_discretization_errors()
        if errors:
            mlflow.log_metrics(errors)
            result = {"N": cfg.N, "Re": cfg.Re, "solver": cfg.solver.name, **errors}
            with open(output_dir / "mms_result.json", "w") as f:
                json.dump(result, f, indent=2)

        for path in (writer.history_path, writer.fields_path, writer.restart_path):
            mlflow.log_artifact(str(path), artifact_path="tecplot")
        if cfg.get("plots", True):
            for path in write_plots(solver, run_name, output_dir):
                mlflow.log_artifact(str(path), artifact_path="plots")

        log.info(
            f"Done: {solver.metrics.iterations} iter, "
            f"converged={solver.metrics.converged}, diverged={solver.metrics.diverged}, "
            f"time={solver.metrics.wall_time_seconds:.2f}s"
        )


if __name__ == "__main__":
    main()
