"""Conserved <-> primitive conversion on node-major flow fields.

The conserved field is a flat array of length nMax * 5 laid out node-major,
variable-minor: U[idx * 5 + c] for c in (rho, rho*u, rho*v, rho*w, rho*E).
`as_nodes` returns the (nMax, 5) view used by the vectorised helpers.
"""

import numpy as np

N_VARIABLES = 5


def as_nodes(U):
    """View a flat conserved field as (n_nodes, 5) without copying."""
    return U.reshape(-1, N_VARIABLES)


def conserved_to_primitive(U, gamma):
    """Map (..., 5) conserved states to (rho, u, v, w, p)."""
    U = np.asarray(U, dtype=np.float64)
    rho = U[..., 0]
    u = U[..., 1] / rho
    v = U[..., 2] / rho
    w = U[..., 3] / rho
    eT = U[..., 4] / rho
    p = (gamma - 1.0) * rho * (eT - 0.5 * (u * u + v * v + w * w))
    return np.stack([rho, u, v, w, p], axis=-1)


def primitive_to_conserved(W, gamma):
    """Map (..., 5) primitive states (rho, u, v, w, p) to conserved states."""
    W = np.asarray(W, dtype=np.float64)
    rho, u, v, w, p = (W[..., m] for m in range(N_VARIABLES))
    return np.stack([
        rho,
        rho * u,
        rho * v,
        rho * w,
        p / (gamma - 1.0) + 0.5 * rho * (u * u + v * v + w * w),
    ], axis=-1)


def uniform_field(space, rho=1.0, u=0.0, v=0.0, w=0.0, p=1.0, gamma=1.4):
    """Flat conserved field holding the same primitive state at every node."""
    state = primitive_to_conserved(np.array([rho, u, v, w, p]), gamma)
    return np.tile(state, space.nMax)


def field_from_primitives(space, primitive_fn, gamma=1.4):
    """Flat conserved field from `primitive_fn(x, y, z) -> (..., 5)` on node coordinates.

    Useful for manufactured states such as linear profiles.
    """
    k, j, i = np.meshgrid(
        np.arange(space.kMax), np.arange(space.jMax), np.arange(space.iMax), indexing="ij"
    )
    x = space.xMin + (i - space.ng) * space.dx
    y = space.yMin + (j - space.ng) * space.dy
    z = space.zMin + (k - space.ng) * space.dz
    W = np.asarray(primitive_fn(x, y, z), dtype=np.float64)
    return primitive_to_conserved(W, gamma).reshape(-1)
