"""Tests for the boundary applicator and the GhostCellIBM driver."""

import numpy as np
import pytest

from ibm.boundary import apply_boundary_condition
from ibm.classifier import compute_node_flags
from ibm.datastructures import BoundaryReport, Parameters
from ibm.errors import ReconstructionError
from ibm.flags import NodeType
from ibm.solver import GhostCellIBM
from ibm.state import N_VARIABLES, conserved_to_primitive, uniform_field

GAMMA = 1.4
FREE_STREAM = dict(rho=1.1, u=0.4, v=-0.1, w=0.05, p=0.8)
MIRRORED = [1.1, -0.4, 0.1, -0.05, 0.8]


def check_nodes(U, U0, flags, encoding, space, report):
    """Each ghost / solid-with-ghost node is mirrored, or failed and untouched."""
    failed = {space.index(k, j, i) for i, j, k in (f.node for f in report.failures)}
    targets = np.flatnonzero(encoding.ghost_mask(flags) | encoding.solid_with_ghost_mask(flags))
    Un, U0n = U.reshape(-1, N_VARIABLES), U0.reshape(-1, N_VARIABLES)
    for idx in targets:
        if idx in failed:
            np.testing.assert_array_equal(Un[idx], U0n[idx])
        else:
            np.testing.assert_allclose(conserved_to_primitive(Un[idx], GAMMA), MIRRORED,
                                       rtol=1e-9, atol=1e-12)
    return targets


class TestApplyBoundaryCondition:
    """End-to-end application on a uniform free stream."""

    def test_uniform_stream(self, space, partition, offset_sphere):
        """Ghost and solid-with-ghost nodes receive the mirrored free stream."""
        flags, encoding = compute_node_flags(space, offset_sphere, partition)
        U = uniform_field(space, gamma=GAMMA, **FREE_STREAM)
        U0 = U.copy()

        report = apply_boundary_condition(U, flags, space, offset_sphere, partition, encoding, GAMMA)

        counts = encoding.count(flags)
        assert report.n_ghost == counts[NodeType.GHOST]
        assert report.n_solid_with_ghost == counts[NodeType.SOLID_WITH_GHOST]
        targets = check_nodes(U, U0, flags, encoding, space, report)
        assert report.n_reconstructed > 0

        # fluid, pure solid and boundary nodes are untouched
        others = np.setdiff1d(np.arange(space.nMax), targets)
        np.testing.assert_array_equal(
            U.reshape(-1, N_VARIABLES)[others], U0.reshape(-1, N_VARIABLES)[others]
        )

    def test_failure_recorded_and_sweep_continues(self, space, partition, cube_sphere):
        """The centre node has no normal; it is reported and the rest still update."""
        flags, encoding = compute_node_flags(space, cube_sphere, partition)
        U = uniform_field(space, gamma=GAMMA, **FREE_STREAM)
        U0 = U.copy()

        report = apply_boundary_condition(U, flags, space, cube_sphere, partition, encoding, GAMMA)

        assert report.n_attempted == 27
        centre = [f for f in report.failures if f.node == (7, 7, 7)]
        assert len(centre) == 1
        assert centre[0].geometry == 0
        assert centre[0].kind == "degenerate_normal"
        assert not report.ok
        check_nodes(U, U0, flags, encoding, space, report)
        assert report.n_reconstructed >= 1

    def test_strict_mode_raises(self, space, partition, cube_sphere):
        flags, encoding = compute_node_flags(space, cube_sphere, partition)
        U = uniform_field(space, gamma=GAMMA, **FREE_STREAM)
        with pytest.raises(ReconstructionError):
            apply_boundary_condition(U, flags, space, cube_sphere, partition, encoding, GAMMA,
                                     strict=True)

    def test_rejects_wrong_field_shape(self, space, partition, cube_sphere):
        flags, encoding = compute_node_flags(space, cube_sphere, partition)
        with pytest.raises(ValueError):
            apply_boundary_condition(np.zeros((space.nMax, 5)), flags, space, cube_sphere,
                                     partition, encoding, GAMMA)

    def test_report_dataframe(self):
        report = BoundaryReport()
        df = report.to_dataframe()
        assert list(df.columns) == ["i", "j", "k", "geometry", "kind", "reason"]
        assert len(df) == 0


class TestGhostCellIBM:
    """Tests for the driver class."""

    @pytest.fixture
    def ibm(self):
        return GhostCellIBM(nx=10, ny=10, nz=10, ng=2)

    def test_classify_updates_metrics(self, ibm):
        dx = ibm.space.dx
        center = ibm.space.node_position(7, 7, 7)
        ibm.classify([(*center, 2.0 * dx * (1.0 - 1e-6))])

        assert ibm.metrics.n_geometries == 1
        assert ibm.metrics.n_ghost == 26
        assert ibm.metrics.n_solid_with_ghost == 1
        assert ibm.metrics.n_solid == 0
        assert ibm.metrics.n_fluid == ibm.partition.interior.size - 27
        assert ibm.node_flag(7, 7, 7).kind is NodeType.SOLID_WITH_GHOST
        assert ibm.node_flag(7, 7, 8).geometry == 0

    def test_apply_updates_metrics(self, ibm):
        center = ibm.space.node_position(7, 7, 7) + 0.3 * ibm.space.spacing
        ibm.classify([(*center, 2.5 * ibm.space.dx)])
        U = uniform_field(ibm.space, gamma=ibm.params.gamma, **FREE_STREAM)

        report = ibm.apply_boundary_conditions(U)

        assert ibm.metrics.n_reconstructed == report.n_reconstructed
        assert ibm.metrics.n_failed == len(report.failures)
        assert ibm.metrics.n_reconstructed + ibm.metrics.n_failed == (
            ibm.metrics.n_ghost + ibm.metrics.n_solid_with_ghost
        )

    def test_apply_before_classify(self, ibm):
        with pytest.raises(RuntimeError):
            ibm.apply_boundary_conditions(uniform_field(ibm.space))

    def test_params_object(self):
        params = Parameters(nx=8, ny=9, nz=10, ng=1, flag_offset=20)
        ibm = GhostCellIBM(params)
        assert ibm.space.iMax == 10
        assert ibm.params.to_mlflow()["flag_offset"] == 20
        assert Parameters().to_mlflow()["flag_offset"] == "auto"

    def test_metrics_dataframe(self, ibm):
        ibm.classify([])
        df = ibm.metrics.to_dataframe()
        assert len(df) == 1
        assert df["n_fluid"].iloc[0] == ibm.partition.interior.size
