"""Ghost-cell immersed boundary core for structured 3D grids.

Pipeline:
---------
GeometryStore (spheres) + Space (grid) + DomainPartition
└── compute_node_flags   four-pass node classification
    └── reconstruct_node   image-point linear reconstruction
        └── apply_boundary_condition   writes ghost/solid conserved states
GhostCellIBM wraps the pipeline with Parameters and Metrics.
"""

from .boundary import apply_boundary_condition
from .classifier import compute_node_flags
from .datastructures import BoundaryReport, Metrics, Parameters, ReconstructionFailure
from .errors import (
    DegenerateNormalError,
    GeometryConfigurationError,
    GridConfigurationError,
    IBMError,
    ReconstructionError,
    SetupError,
    SingularSystemError,
    StencilUnderdeterminedError,
)
from .flags import FlagEncoding, NodeFlag, NodeType
from .geometry import GeometryStore, Sphere
from .grid import Space
from .partition import DomainPartition, Region, partition_domain
from .reconstruction import SEARCH_PATH, reconstruct_node
from .solver import GhostCellIBM

__all__ = [
    # Driver
    "GhostCellIBM",
    "Parameters",
    "Metrics",
    # Grid and geometry
    "Space",
    "DomainPartition",
    "Region",
    "partition_domain",
    "GeometryStore",
    "Sphere",
    # Flags
    "FlagEncoding",
    "NodeFlag",
    "NodeType",
    "compute_node_flags",
    # Reconstruction
    "SEARCH_PATH",
    "reconstruct_node",
    "apply_boundary_condition",
    "BoundaryReport",
    "ReconstructionFailure",
    # Errors
    "IBMError",
    "SetupError",
    "GridConfigurationError",
    "GeometryConfigurationError",
    "ReconstructionError",
    "StencilUnderdeterminedError",
    "SingularSystemError",
    "DegenerateNormalError",
]
