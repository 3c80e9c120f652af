"""Geometry store: spherical solids immersed in the grid.

Geometries are kept as a flat (N, 4) float array of records [x, y, z, r] so the
classifier kernels can consume them directly. The store is read-only during
classification and reconstruction; the simulation step that advances particle
positions builds a new store (or calls `moved`) between steps.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from .errors import GeometryConfigurationError

log = logging.getLogger(__name__)

# Rasterization search box half-width, in radii
SEARCH_SAFETY_FACTOR = 1.5


@dataclass(frozen=True)
class Sphere:
    x: float
    y: float
    z: float
    r: float

    @property
    def center(self):
        return np.array([self.x, self.y, self.z])


class GeometryStore:
    """Immutable array of sphere records, indexed by geometry id."""

    entry_n = 4

    def __init__(self, records=None):
        if records is None:
            records = np.zeros((0, self.entry_n))
        records = np.array(records, dtype=np.float64, copy=True).reshape(-1, self.entry_n)
        records.setflags(write=False)
        self._records = records

    @classmethod
    def from_spheres(cls, spheres):
        """Build a store from `Sphere` objects, mappings or (x, y, z, r) tuples."""
        rows = []
        for s in spheres:
            if isinstance(s, Sphere):
                rows.append((s.x, s.y, s.z, s.r))
            elif hasattr(s, "keys"):
                center = s.get("center", (s.get("x"), s.get("y"), s.get("z")))
                rows.append((*center, s.get("radius", s.get("r"))))
            else:
                rows.append(tuple(s))
        return cls(rows)

    @property
    def records(self):
        return self._records

    @property
    def total_n(self):
        return self._records.shape[0]

    def __len__(self):
        return self.total_n

    def __getitem__(self, g):
        x, y, z, r = self._records[g]
        return Sphere(float(x), float(y), float(z), float(r))

    def __iter__(self):
        for g in range(self.total_n):
            yield self[g]

    def moved(self, centers):
        """New store with the same radii and updated centres."""
        records = self._records.copy()
        records[:, :3] = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
        return GeometryStore(records)

    def search_box(self, g, space, interior):
        """Clamped node-index box [sub, sup) around geometry `g`, ordered (i, j, k).

        The box is centred on the node containing the sphere centre and
        extends ceil(1.5 * r / d) nodes per axis, clamped to `interior`.
        """
        sphere = self[g]
        center = space.to_node_space(sphere.x, sphere.y, sphere.z)
        half = (
            math.ceil(SEARCH_SAFETY_FACTOR * sphere.r * space.ddx),
            math.ceil(SEARCH_SAFETY_FACTOR * sphere.r * space.ddy),
            math.ceil(SEARCH_SAFETY_FACTOR * sphere.r * space.ddz),
        )
        sub, sup = [], []
        for a in range(3):
            c = math.floor(center[a])
            sub.append(max(c - half[a], interior.sub[a]))
            sup.append(min(c + half[a] + 1, interior.sup[a]))
        return tuple(sub), tuple(sup)

    def validate(self, space, interior):
        """Check every geometry can be rasterized on `space`.

        Raises
        ------
        GeometryConfigurationError
            For non-finite records, non-positive radii, or a search box that
            falls entirely outside the interior region.
        """
        for g in range(self.total_n):
            record = self._records[g]
            if not np.all(np.isfinite(record)):
                raise GeometryConfigurationError(
                    f"geometry {g} has non-finite record {record.tolist()}", geometry=g
                )
            if record[3] <= 0.0:
                raise GeometryConfigurationError(
                    f"geometry {g} has non-positive radius {record[3]}", geometry=g
                )
            sub, sup = self.search_box(g, space, interior)
            if any(lo >= hi for lo, hi in zip(sub, sup)):
                raise GeometryConfigurationError(
                    f"geometry {g} search box {sub}-{sup} lies outside the interior "
                    f"{interior.sub}-{interior.sup}",
                    geometry=g,
                )
            log.debug(f"Geometry {g}: search box i[{sub[0]},{sup[0]}) "
                      f"j[{sub[1]},{sup[1]}) k[{sub[2]},{sup[2]})")

    def __repr__(self):
        return f"GeometryStore(total_n={self.total_n})"
