"""
Linear reconstruction of flow states at ghost and solid nodes.

A non-fluid node is mirrored across the sphere surface along the outward
normal to its image point. The primitive variables at the image point are
interpolated from a linear model fitted through four nearby fluid nodes:

    phi_image = a0 + a1 * i + a2 * j + a3 * k

and the node value follows from phi = 2 * phi_wall - phi_image. At a no-slip
wall scalars satisfy phi_wall = phi_image and velocities phi_wall = 0, so
density and pressure are copied while velocity components are negated.

The fit is done in node coordinates rather than physical coordinates; both
span the same linear space and integer node coordinates keep the position
matrix well scaled.
"""

import math

import numpy as np

from .errors import DegenerateNormalError, SingularSystemError, StencilUnderdeterminedError
from .flags import FLUID_FLAG
from .linear_system import solve
from .state import as_nodes, conserved_to_primitive

STENCIL_N = 4

# Probe offsets (di, dj, dk) around the image node. The image node index is
# truncated downward, so 0 and +1 offsets are tried first.
SEARCH_PATH = (
    (0, 0, 0), (1, 1, 1), (1, 1, 0), (1, 0, 1),
    (0, 1, 1), (1, 0, 0), (0, 1, 0), (0, 0, 1),
    (-1, 0, 0), (0, -1, 0), (0, 0, -1), (-1, 1, 0),
    (-1, 0, 1), (1, -1, 0), (0, -1, 1), (1, 0, -1),
    (0, 1, -1), (-1, 1, 1), (1, -1, 1), (1, 1, -1),
    (-1, -1, 0), (-1, 0, -1), (0, -1, -1), (-1, -1, 1),
    (-1, 1, -1), (1, -1, -1), (-1, -1, -1),
)


def image_point(space, sphere, k, j, i):
    """Node-space coordinates (i, j, k) of the mirror image of node (i, j, k).

    Raises
    ------
    DegenerateNormalError
        If the node coincides with the sphere centre.
    """
    dist = space.node_position(k, j, i) - sphere.center
    dist_to_center = math.sqrt(float(np.dot(dist, dist)))
    if dist_to_center == 0.0:
        raise DegenerateNormalError("node coincides with geometry centre, normal undefined")
    normal = dist / dist_to_center
    dist_to_surface = sphere.r - dist_to_center
    return np.array([i, j, k], dtype=np.float64) + 2.0 * dist_to_surface * normal * space.inverse_spacing


def find_stencil(flags, space, anchor):
    """Up to `STENCIL_N` fluid nodes along `SEARCH_PATH` around `anchor` (i, j, k)."""
    ia, ja, ka = anchor
    stencil = []
    for di, dj, dk in SEARCH_PATH:
        ih, jh, kh = ia + di, ja + dj, ka + dk
        if not space.contains(kh, jh, ih):
            continue
        if flags[space.index(kh, jh, ih)] != FLUID_FLAG:
            continue
        stencil.append((ih, jh, kh))
        if len(stencil) == STENCIL_N:
            break
    return stencil


def reconstruct_node(U, flags, space, geometries, k, j, i, geo_id, gamma, rcond_tol=1e-12):
    """Reconstructed primitive state (rho, u, v, w, p) at node (i, j, k).

    Parameters
    ----------
    U : np.ndarray
        Flat conserved field, read only here.
    flags : np.ndarray
        Classified node flags.
    space : Space
    geometries : GeometryStore
    k, j, i : int
        Node to reconstruct.
    geo_id : int
        Owning geometry of the node.
    gamma : float
        Ratio of specific heats.

    Raises
    ------
    StencilUnderdeterminedError
        Fewer than four fluid nodes around the image point.
    SingularSystemError
        The four stencil nodes are coplanar.
    DegenerateNormalError
        The node sits on the geometry centre.
    """
    node = (i, j, k)
    try:
        image = image_point(space, geometries[geo_id], k, j, i)
    except DegenerateNormalError as exc:
        raise DegenerateNormalError(exc.reason, node=node, geometry=geo_id) from exc

    anchor = tuple(int(math.floor(c)) for c in image)
    stencil = find_stencil(flags, space, anchor)
    if len(stencil) < STENCIL_N:
        raise StencilUnderdeterminedError(len(stencil), node=node, geometry=geo_id)

    pos_matrix = np.ones((STENCIL_N, 4))
    pos_matrix[:, 1:] = np.array(stencil, dtype=np.float64)
    stencil_idx = [space.index(kh, jh, ih) for ih, jh, kh in stencil]
    rhs = conserved_to_primitive(as_nodes(U)[stencil_idx], gamma)

    try:
        coeffs = solve(pos_matrix, rhs, rcond_tol=rcond_tol)
    except SingularSystemError as exc:
        raise SingularSystemError(exc.reason, node=node, geometry=geo_id) from exc

    Uo = coeffs[0] + coeffs[1] * image[0] + coeffs[2] * image[1] + coeffs[3] * image[2]

    # wall condition: keep scalars, flip velocity
    Uo[1:4] = -Uo[1:4]
    return Uo
