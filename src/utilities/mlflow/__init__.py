"""MLflow utilities for experiment tracking and artifact management."""

from .io import log_ibm_results, set_experiment, setup_mlflow_tracking

__all__ = [
    "setup_mlflow_tracking",
    "set_experiment",
    "log_ibm_results",
]
