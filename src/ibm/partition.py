"""Domain partition of the extended grid into 13 named regions.

Each region is a box of half-open index ranges [sub, sup) along i, j, k.
Boundary layers and exterior ghost layers only extend out from the interior
along their own axis, so together they form a cross without corner blocks.
"""

from dataclasses import dataclass
from typing import Tuple

REGION_NAMES = (
    "West Ghost",
    "East Ghost",
    "South Ghost",
    "North Ghost",
    "Front Ghost",
    "Back Ghost",
    "Domain West",
    "Domain East",
    "Domain South",
    "Domain North",
    "Domain Front",
    "Domain Back",
    "Interior",
)


@dataclass(frozen=True)
class Region:
    """Index box of one partition region, ranges ordered (i, j, k)."""

    name: str
    sub: Tuple[int, int, int]
    sup: Tuple[int, int, int]
    normal: Tuple[int, int, int] = (0, 0, 0)

    @property
    def shape(self):
        return tuple(max(b - a, 0) for a, b in zip(self.sub, self.sup))

    @property
    def size(self):
        ni, nj, nk = self.shape
        return ni * nj * nk

    def contains(self, k, j, i):
        return all(a <= c < b for c, a, b in zip((i, j, k), self.sub, self.sup))

    def slices(self):
        """Slices addressing this region in a (kMax, jMax, iMax) array."""
        return (
            slice(self.sub[2], self.sup[2]),
            slice(self.sub[1], self.sup[1]),
            slice(self.sub[0], self.sup[0]),
        )


@dataclass(frozen=True)
class DomainPartition:
    regions: Tuple[Region, ...]

    def __getitem__(self, name):
        for region in self.regions:
            if region.name == name:
                return region
        raise KeyError(name)

    @property
    def interior(self):
        return self.regions[-1]


def _axis_ranges(n, ng):
    """Per-axis [sub, sup) pairs: (low ghost, high ghost, low wall, high wall, inner)."""
    inner = (ng + 1, n + ng - 1)
    return {
        "ghost_low": (0, ng),
        "ghost_high": (n + ng, n + 2 * ng),
        "wall_low": (ng, ng + 1),
        "wall_high": (n + ng - 1, n + ng),
        "inner": inner,
    }


def partition_domain(space):
    """Split the extended grid of `space` into the 13 named regions."""
    ranges = [
        _axis_ranges(space.nx, space.ng),
        _axis_ranges(space.ny, space.ng),
        _axis_ranges(space.nz, space.ng),
    ]

    def box(name, axis=None, kind=None, sign=0):
        sub, sup, normal = [], [], [0, 0, 0]
        for a in range(3):
            lo, hi = ranges[a][kind] if a == axis else ranges[a]["inner"]
            sub.append(lo)
            sup.append(hi)
        if axis is not None:
            normal[axis] = sign
        return Region(name, tuple(sub), tuple(sup), tuple(normal))

    regions = []
    # Exterior ghost layers, then boundary layers: W, E, S, N, F, B
    for layer, (low, high) in (("Ghost", ("ghost_low", "ghost_high")),
                               ("Domain", ("wall_low", "wall_high"))):
        for axis, (neg, pos) in enumerate((("West", "East"), ("South", "North"), ("Front", "Back"))):
            for side, kind, sign in ((neg, low, -1), (pos, high, 1)):
                name = f"{side} Ghost" if layer == "Ghost" else f"Domain {side}"
                regions.append(box(name, axis, kind, sign))
    regions.append(box("Interior"))

    return DomainPartition(tuple(regions))
