"""Boundary condition for interior ghost nodes and solid nodes with ghost neighbours.

Both node sets are reconstructed from fluid stencils only, so neither pass
reads a value written by the other and the order of nodes within a pass is
irrelevant. A node whose reconstruction fails keeps its previous state and is
recorded in the returned `BoundaryReport`.
"""

import logging

import numpy as np

from .datastructures import BoundaryReport, ReconstructionFailure
from .errors import ReconstructionError
from .reconstruction import reconstruct_node
from .state import N_VARIABLES, as_nodes, primitive_to_conserved

log = logging.getLogger(__name__)


def _interior_nodes(mask, space, interior):
    """Flat indices of `mask` restricted to the interior region."""
    sub_mask = np.zeros(space.shape, dtype=bool)
    sub_mask[interior.slices()] = mask.reshape(space.shape)[interior.slices()]
    return np.flatnonzero(sub_mask)


def _reconstruct_nodes(nodes, owners, U, flags, space, geometries, gamma, rcond_tol, strict, report):
    Un = as_nodes(U)
    for idx, geo_id in zip(nodes, owners):
        i, j, k = space.unravel(idx)
        try:
            Uo = reconstruct_node(U, flags, space, geometries, k, j, i, int(geo_id), gamma, rcond_tol)
        except ReconstructionError as exc:
            if strict:
                raise
            log.warning(f"Reconstruction skipped: {exc}")
            report.failures.append(ReconstructionFailure((i, j, k), int(geo_id), exc.kind, exc.reason))
            continue
        Un[idx] = primitive_to_conserved(Uo, gamma)


def apply_boundary_condition(U, flags, space, geometries, partition, encoding, gamma,
                             rcond_tol=1e-12, strict=False):
    """Overwrite the conserved state of ghost and solid-with-ghost nodes in place.

    Parameters
    ----------
    U : np.ndarray
        Flat conserved field of length `space.nMax * 5`, modified in place.
    flags : np.ndarray
        Node flags from `compute_node_flags`.
    encoding : FlagEncoding
        Encoding returned alongside `flags`.
    strict : bool, optional
        Re-raise the first `ReconstructionError` instead of recording it.

    Returns
    -------
    BoundaryReport
    """
    if U.shape != (space.nMax * N_VARIABLES,):
        raise ValueError(f"conserved field must have shape ({space.nMax * N_VARIABLES},), got {U.shape}")

    interior = partition.interior
    report = BoundaryReport()

    # Ghost nodes
    ghosts = _interior_nodes(encoding.ghost_mask(flags), space, interior)
    report.n_ghost = len(ghosts)
    _reconstruct_nodes(ghosts, encoding.geometry_ids(flags[ghosts]),
                       U, flags, space, geometries, gamma, rcond_tol, strict, report)

    # Solid nodes with ghost neighbours
    solids = _interior_nodes(encoding.solid_with_ghost_mask(flags), space, interior)
    report.n_solid_with_ghost = len(solids)
    _reconstruct_nodes(solids, encoding.geometry_ids(flags[solids]),
                       U, flags, space, geometries, gamma, rcond_tol, strict, report)

    if report.failures:
        log.warning(f"Boundary condition: {len(report.failures)} of {report.n_attempted} nodes failed")
    else:
        log.info(f"Boundary condition: reconstructed {report.n_attempted} nodes")
    return report
