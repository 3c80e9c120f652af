"""Exception hierarchy for the ghost-cell immersed boundary core.

Setup errors (bad grid or geometry configuration) abort before any flag is
written. Reconstruction errors are raised per node and carry the node's
extended-grid coordinates and owning geometry so the boundary applicator can
report them without stopping the sweep.
"""


class IBMError(Exception):
    """Base class for all immersed boundary errors."""


# ========================================================
# Setup (fatal)
# ========================================================


class SetupError(IBMError):
    """Invalid configuration detected before classification."""


class GridConfigurationError(SetupError):
    """Grid dimensions, ghost width or lengths are unusable."""


class GeometryConfigurationError(SetupError):
    """A geometry cannot be rasterized, or the flag offset is too small."""

    def __init__(self, message, geometry=None):
        super().__init__(message)
        self.geometry = geometry


# ========================================================
# Reconstruction (recoverable per node)
# ========================================================


class ReconstructionError(IBMError):
    """Reconstruction failed at a single node."""

    kind = "reconstruction"

    def __init__(self, reason, node=None, geometry=None):
        self.reason = reason
        self.node = node
        self.geometry = geometry
        super().__init__(self._format())

    def _format(self):
        if self.node is None:
            return self.reason
        i, j, k = self.node
        return f"{self.reason} at node (i={i}, j={j}, k={k}), geometry {self.geometry}"


class StencilUnderdeterminedError(ReconstructionError):
    """Fewer than four fluid nodes were found around the image point."""

    kind = "underdetermined"

    def __init__(self, found, node=None, geometry=None):
        self.found = found
        super().__init__(
            f"only {found} fluid stencil node(s) found around image point",
            node=node,
            geometry=geometry,
        )


class SingularSystemError(ReconstructionError):
    """The stencil position matrix is rank deficient."""

    kind = "singular"


class DegenerateNormalError(ReconstructionError):
    """The node coincides with the geometry centre, so no normal exists."""

    kind = "degenerate_normal"
