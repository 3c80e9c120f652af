"""MLflow I/O utilities for immersed boundary runs."""

import logging
import os
from pathlib import Path

import mlflow
from mlflow.exceptions import MlflowException

log = logging.getLogger(__name__)


def setup_mlflow_tracking(mode: str = "local", tracking_uri: str = None):
    """Configure MLflow tracking.

    Parameters
    ----------
    mode : str
        "local" for a file store under ./mlruns, "remote" to use
        `tracking_uri` (or MLFLOW_TRACKING_URI from the environment).
    tracking_uri : str, optional
        Explicit tracking URI.
    """
    if mode == "local":
        os.environ.pop("MLFLOW_TRACKING_URI", None)
        mlruns_path = Path(tracking_uri) if tracking_uri else Path.cwd() / "mlruns"
        uri = mlruns_path.resolve().as_uri()
        mlflow.set_tracking_uri(uri)
        log.info(f"Using local file-based MLflow tracking backend: {uri}")
    elif mode == "remote":
        uri = tracking_uri or os.environ.get("MLFLOW_TRACKING_URI")
        if not uri:
            raise RuntimeError(
                "Remote MLflow mode requires tracking_uri or MLFLOW_TRACKING_URI (see .env)."
            )
        mlflow.set_tracking_uri(uri)
        log.info(f"Using remote MLflow tracking server: {uri}")
    else:
        log.warning(f"Unknown MLflow mode '{mode}'. Using existing URI: {mlflow.get_tracking_uri()}")
    return mlflow.get_tracking_uri()


def set_experiment(experiment_name: str) -> str:
    """Select the experiment, falling back to a new name if it was deleted."""
    try:
        mlflow.set_experiment(experiment_name)
    except MlflowException as exc:
        fallback = f"{experiment_name}-restored"
        log.warning(
            "MLflow set_experiment failed for '%s' (%s); falling back to '%s'",
            experiment_name,
            exc,
            fallback,
        )
        experiment_name = fallback
        mlflow.set_experiment(experiment_name)
    return experiment_name


def log_ibm_results(ibm, report, artifacts=()):
    """Log parameters, metrics, failures and artifacts of a `GhostCellIBM` run.

    Must be called inside an active MLflow run.
    """
    mlflow.log_params(ibm.params.to_mlflow())
    mlflow.log_metrics(ibm.metrics.to_mlflow())
    mlflow.log_dict(
        {kind.name.lower(): n for kind, n in ibm.summary().items()}, "node_counts.json"
    )
    if report.failures:
        mlflow.log_table(report.to_dataframe(), "reconstruction_failures.json")
        log.info(f"Logged {len(report.failures)} reconstruction failures")
    for path in artifacts:
        mlflow.log_artifact(str(path))
