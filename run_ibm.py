"""
Ghost-cell IBM runner - Hydra + MLflow integration.

Classifies the grid against the configured spheres, applies the immersed
boundary condition to a uniform free stream and logs counts, failures and a
flag-slice figure to MLflow.

Usage:
    uv run python run_ibm.py
    uv run python run_ibm.py scenario=overlapping_spheres
    uv run python run_ibm.py -m grid.nx=10,20,40 grid.ny=10,20,40 grid.nz=10,20,40
    uv run python run_ibm.py mlflow.enabled=false

MLflow modes:
    local   - file-based ./mlruns (default)
    remote  - tracking server from MLFLOW_TRACKING_URI (.env)
"""

import logging
import sys
from pathlib import Path

import hydra
import matplotlib.pyplot as plt
from hydra.core.hydra_config import HydraConfig
import mlflow
from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

# Load .env file (for MLflow credentials)
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from ibm import GeometryStore, GhostCellIBM, Parameters  # noqa: E402
from ibm.plotting import plot_flag_slice  # noqa: E402
from ibm.state import uniform_field  # noqa: E402
from utilities.console import header, print_node_counts  # noqa: E402
from utilities.mlflow import log_ibm_results, set_experiment, setup_mlflow_tracking  # noqa: E402

log = logging.getLogger(__name__)


def create_ibm(cfg: DictConfig) -> GhostCellIBM:
    """Build the IBM driver from the root config."""
    params = Parameters(
        **OmegaConf.to_container(cfg.grid),
        gamma=cfg.gamma,
        flag_offset=cfg.flag_offset,
        rcond_tol=cfg.rcond_tol,
        strict=cfg.strict,
    )
    return GhostCellIBM(params)


def run(cfg: DictConfig, output_dir: Path):
    ibm = create_ibm(cfg)
    geometries = GeometryStore.from_spheres(OmegaConf.to_container(cfg.scenario.spheres))
    log.info(f"Scenario: {cfg.scenario.name}, {geometries.total_n} sphere(s), {ibm.space}")

    ibm.classify(geometries)

    U = uniform_field(ibm.space, gamma=cfg.gamma, **OmegaConf.to_container(cfg.flow))
    report = ibm.apply_boundary_conditions(U)

    header(f"{cfg.scenario.name} ({ibm.space.iMax}x{ibm.space.jMax}x{ibm.space.kMax} nodes)")
    print_node_counts(ibm.summary(), report)

    plot_k = cfg.plot_k
    if plot_k is None:
        plot_k = int(ibm.space.to_node_space(*geometries[0].center)[2]) if len(geometries) else 0
    figure_path = output_dir / f"flags_k{plot_k}.png"
    fig = plot_flag_slice(ibm.flags, ibm.space, plot_k, ibm.encoding, output_path=figure_path)
    plt.close(fig)

    return ibm, report, [figure_path]


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Hydra entry point - runs one scenario with optional MLflow tracking."""
    output_dir = Path(HydraConfig.get().runtime.output_dir)

    if not cfg.mlflow.enabled:
        _, report, _ = run(cfg, output_dir)
        log.info(f"Done: {report.n_reconstructed}/{report.n_attempted} nodes reconstructed")
        return

    setup_mlflow_tracking(cfg.mlflow.mode, cfg.mlflow.get("tracking_uri"))
    experiment_name = set_experiment(cfg.experiment_name)
    log.info(f"MLflow experiment: {experiment_name}")

    run_name = f"{cfg.scenario.name}_N{cfg.grid.nx}"
    with mlflow.start_run(run_name=run_name, tags={"scenario": cfg.scenario.name}):
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")
        ibm, report, artifacts = run(cfg, output_dir)
        log_ibm_results(ibm, report, artifacts)

    log.info(
        f"Done: {report.n_reconstructed}/{report.n_attempted} nodes reconstructed, "
        f"{len(report.failures)} failed"
    )


if __name__ == "__main__":
    main()
