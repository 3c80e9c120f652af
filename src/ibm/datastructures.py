"""Data structures for immersed boundary configuration and results.

Structure:
- Parameters: input configuration (logged to MLflow at start)
- Metrics: output counts and timings (logged to MLflow at end)
- ReconstructionFailure / BoundaryReport: per-call outcome of the boundary applicator
"""

from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

import pandas as pd


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class Parameters:
    """Grid, gas and flag-encoding settings."""

    nx: int = 32
    ny: int = 32
    nz: int = 32
    ng: int = 2
    Lx: float = 1.0
    Ly: float = 1.0
    Lz: float = 1.0
    x_min: float = 0.0
    y_min: float = 0.0
    z_min: float = 0.0
    gamma: float = 1.4
    flag_offset: Optional[int] = None  # None: smallest admissible offset
    rcond_tol: float = 1e-12  # relative pivot threshold for stencil solves
    strict: bool = False  # re-raise the first reconstruction failure

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self):
        """Flat dict of string-able values for mlflow.log_params."""
        return {k: ("auto" if v is None else v) for k, v in asdict(self).items()}


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Node counts after classification and outcome of the last boundary update."""

    n_geometries: int = 0
    n_fluid: int = 0
    n_boundary: int = 0
    n_solid: int = 0
    n_ghost: int = 0
    n_solid_with_ghost: int = 0
    n_reconstructed: int = 0
    n_failed: int = 0
    classify_seconds: float = 0.0
    apply_seconds: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self):
        return {k: float(v) for k, v in asdict(self).items()}


# ========================================================
# Boundary Applicator Results
# ========================================================


@dataclass(frozen=True)
class ReconstructionFailure:
    """A node whose state could not be reconstructed and was left untouched."""

    node: Tuple[int, int, int]
    geometry: int
    kind: str
    reason: str


@dataclass
class BoundaryReport:
    """Outcome of one boundary-condition application."""

    n_ghost: int = 0
    n_solid_with_ghost: int = 0
    failures: List[ReconstructionFailure] = field(default_factory=list)

    @property
    def n_attempted(self):
        return self.n_ghost + self.n_solid_with_ghost

    @property
    def n_reconstructed(self):
        return self.n_attempted - len(self.failures)

    @property
    def ok(self):
        return not self.failures

    def to_dataframe(self) -> pd.DataFrame:
        """One row per failed node."""
        rows = [
            {"i": f.node[0], "j": f.node[1], "k": f.node[2],
             "geometry": f.geometry, "kind": f.kind, "reason": f.reason}
            for f in self.failures
        ]
        return pd.DataFrame(rows, columns=["i", "j", "k", "geometry", "kind", "reason"])
