"""
Space: structured 3D grid descriptor for the ghost-cell immersed boundary core.

Indexing Conventions:
- Nodes live in an extended index space (i, j, k) that includes `ng` layers of
  exterior ghost nodes on every side: iMax = nx + 2*ng (same for j, k).
- Node ng sits on the west wall, node nx + ng - 1 on the east wall, so the
  spacing is dx = Lx / (nx - 1).
- Flat arrays are row-major with i fastest: idx = (k * jMax + j) * iMax + i.
  Reshaping a flat array to `space.shape` = (kMax, jMax, iMax) gives a view
  addressed as a[k, j, i].
"""

import numpy as np

from .errors import GridConfigurationError


class Space:
    def __init__(self, nx, ny, nz, ng=2, lengths=(1.0, 1.0, 1.0), origin=(0.0, 0.0, 0.0)):
        for name, n in (("nx", nx), ("ny", ny), ("nz", nz)):
            if int(n) < 3:
                raise GridConfigurationError(f"{name}={n} must be at least 3")
        if int(ng) < 1:
            raise GridConfigurationError(f"ghost width ng={ng} must be at least 1")
        if any(not np.isfinite(L) or L <= 0.0 for L in lengths):
            raise GridConfigurationError(f"domain lengths {tuple(lengths)} must be positive")

        # --- Node counts ---
        self.nx = int(nx)
        self.ny = int(ny)
        self.nz = int(nz)
        self.ng = int(ng)

        # --- Extended dimensions ---
        self.iMax = self.nx + 2 * self.ng
        self.jMax = self.ny + 2 * self.ng
        self.kMax = self.nz + 2 * self.ng
        self.nMax = self.iMax * self.jMax * self.kMax

        # --- Metrics ---
        self.xMin, self.yMin, self.zMin = (float(c) for c in origin)
        self.dx = float(lengths[0]) / (self.nx - 1)
        self.dy = float(lengths[1]) / (self.ny - 1)
        self.dz = float(lengths[2]) / (self.nz - 1)
        self.ddx = 1.0 / self.dx
        self.ddy = 1.0 / self.dy
        self.ddz = 1.0 / self.dz

    @property
    def shape(self):
        """Shape (kMax, jMax, iMax) for reshaping flat node arrays."""
        return (self.kMax, self.jMax, self.iMax)

    @property
    def origin(self):
        return np.array([self.xMin, self.yMin, self.zMin])

    @property
    def spacing(self):
        return np.array([self.dx, self.dy, self.dz])

    @property
    def inverse_spacing(self):
        return np.array([self.ddx, self.ddy, self.ddz])

    def index(self, k, j, i):
        """Flat node index of (i, j, k)."""
        return (k * self.jMax + j) * self.iMax + i

    def unravel(self, idx):
        """Inverse of `index`, returned as (i, j, k)."""
        k, rem = divmod(int(idx), self.jMax * self.iMax)
        j, i = divmod(rem, self.iMax)
        return i, j, k

    def contains(self, k, j, i):
        return 0 <= i < self.iMax and 0 <= j < self.jMax and 0 <= k < self.kMax

    def node_position(self, k, j, i):
        """Physical coordinates (x, y, z) of node (i, j, k)."""
        return np.array([
            self.xMin + (i - self.ng) * self.dx,
            self.yMin + (j - self.ng) * self.dy,
            self.zMin + (k - self.ng) * self.dz,
        ])

    def to_node_space(self, x, y, z):
        """Continuous node-space coordinates (i, j, k) of a physical point."""
        return np.array([
            (x - self.xMin) * self.ddx + self.ng,
            (y - self.yMin) * self.ddy + self.ng,
            (z - self.zMin) * self.ddz + self.ng,
        ])

    def __repr__(self):
        return (f"Space(nx={self.nx}, ny={self.ny}, nz={self.nz}, ng={self.ng}, "
                f"dx=({self.dx:.4g}, {self.dy:.4g}, {self.dz:.4g}))")
