"""Cross-project utilities (Hydra/MLflow)."""
