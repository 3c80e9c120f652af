"""Node flags: tagged node categories and their packed-integer encoding.

The flag array stores one int64 per node. Categories occupy disjoint bands:

    1                                   boundary / exterior ghost node
    0                                   interior fluid node
    -offset - g                         interior solid node of geometry g
    +offset + g                         interior ghost node of geometry g
    -offset - g - n_geometries          solid node of geometry g with a ghost neighbour

`NodeFlag` is the decoded form; `FlagEncoding` converts between the two and
offers vectorised queries over whole flag arrays.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import numpy as np

from .errors import GeometryConfigurationError

BOUNDARY_FLAG = 1
FLUID_FLAG = 0
DEFAULT_FLAG_OFFSET = 10
# Values 0 and 1 are reserved below the solid/ghost bands
FLAG_SAFETY_MARGIN = 2


class NodeType(IntEnum):
    BOUNDARY = 0
    FLUID = 1
    SOLID = 2
    GHOST = 3
    SOLID_WITH_GHOST = 4


@dataclass(frozen=True)
class NodeFlag:
    kind: NodeType
    geometry: Optional[int] = None

    def __post_init__(self):
        owned = self.kind in (NodeType.SOLID, NodeType.GHOST, NodeType.SOLID_WITH_GHOST)
        if owned and self.geometry is None:
            raise ValueError(f"{self.kind.name} flag requires a geometry id")
        if not owned and self.geometry is not None:
            raise ValueError(f"{self.kind.name} flag carries no geometry id")


def required_offset(n_geometries):
    """Smallest admissible offset for `n_geometries` geometries."""
    return max(DEFAULT_FLAG_OFFSET, n_geometries + FLAG_SAFETY_MARGIN + 1)


@dataclass(frozen=True)
class FlagEncoding:
    offset: int
    n_geometries: int

    def __post_init__(self):
        if self.offset <= self.n_geometries + FLAG_SAFETY_MARGIN:
            raise GeometryConfigurationError(
                f"flag offset {self.offset} must exceed geometry count "
                f"{self.n_geometries} plus margin {FLAG_SAFETY_MARGIN}"
            )

    @classmethod
    def for_geometries(cls, n_geometries, offset=None):
        """Encoding for `n_geometries`; `offset=None` picks `required_offset`."""
        if offset is None:
            offset = required_offset(n_geometries)
        return cls(int(offset), int(n_geometries))

    # --- Scalar conversion ---

    def encode(self, flag):
        g = flag.geometry
        if g is not None and not 0 <= g < self.n_geometries:
            raise ValueError(f"geometry id {g} out of range [0, {self.n_geometries})")
        if flag.kind is NodeType.BOUNDARY:
            return BOUNDARY_FLAG
        if flag.kind is NodeType.FLUID:
            return FLUID_FLAG
        if flag.kind is NodeType.SOLID:
            return -self.offset - g
        if flag.kind is NodeType.GHOST:
            return self.offset + g
        return -self.offset - g - self.n_geometries

    def decode(self, value):
        value = int(value)
        n = self.n_geometries
        if value == BOUNDARY_FLAG:
            return NodeFlag(NodeType.BOUNDARY)
        if value == FLUID_FLAG:
            return NodeFlag(NodeType.FLUID)
        if self.offset <= value < self.offset + n:
            return NodeFlag(NodeType.GHOST, value - self.offset)
        if -self.offset - n < value <= -self.offset:
            return NodeFlag(NodeType.SOLID, -self.offset - value)
        if -self.offset - 2 * n < value <= -self.offset - n:
            return NodeFlag(NodeType.SOLID_WITH_GHOST, -self.offset - n - value)
        raise ValueError(f"flag value {value} lies in no category band (offset={self.offset}, n={n})")

    # --- Vectorised queries ---

    def ghost_mask(self, flags):
        return flags >= self.offset

    def solid_mask(self, flags):
        """Pure solid nodes (no ghost neighbour)."""
        return (flags <= -self.offset) & (flags > -self.offset - self.n_geometries)

    def solid_with_ghost_mask(self, flags):
        return flags <= -self.offset - self.n_geometries

    def kinds(self, flags):
        """Array of `NodeType` values, same shape as `flags`."""
        flags = np.asarray(flags)
        out = np.full(flags.shape, NodeType.BOUNDARY, dtype=np.int8)
        out[flags == FLUID_FLAG] = NodeType.FLUID
        out[self.solid_mask(flags)] = NodeType.SOLID
        out[self.ghost_mask(flags)] = NodeType.GHOST
        out[self.solid_with_ghost_mask(flags)] = NodeType.SOLID_WITH_GHOST
        return out

    def geometry_ids(self, flags):
        """Owning geometry per node, -1 for fluid and boundary nodes."""
        flags = np.asarray(flags)
        ids = np.full(flags.shape, -1, dtype=np.int64)
        ghost = self.ghost_mask(flags)
        solid = self.solid_mask(flags)
        with_ghost = self.solid_with_ghost_mask(flags)
        ids[ghost] = flags[ghost] - self.offset
        ids[solid] = -self.offset - flags[solid]
        ids[with_ghost] = -self.offset - self.n_geometries - flags[with_ghost]
        return ids

    def count(self, flags):
        """Number of nodes per `NodeType`."""
        counts = np.bincount(self.kinds(flags).ravel(), minlength=len(NodeType))
        return {kind: int(counts[kind]) for kind in NodeType}
