"""Pytest configuration and fixtures for immersed boundary tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def space():
    """10x10x10 interior nodes, ghost width 2, unit cube (dx = 1/9)."""
    from ibm.grid import Space

    return Space(10, 10, 10, ng=2)


@pytest.fixture
def partition(space):
    from ibm.partition import partition_domain

    return partition_domain(space)


@pytest.fixture
def cube_sphere(space):
    """Sphere just under two cells in radius centred on node (7, 7, 7).

    Its solid nodes form the 3x3x3 block of nodes 6..8 on every axis.
    """
    from ibm.geometry import GeometryStore

    center = space.node_position(7, 7, 7)
    return GeometryStore([[*center, 2.0 * space.dx * (1.0 - 1e-6)]])


@pytest.fixture
def offset_sphere(space):
    """Sphere of radius 2.5 cells whose centre sits off the grid nodes."""
    from ibm.geometry import GeometryStore

    center = space.node_position(7, 7, 7) + 0.3 * space.spacing
    return GeometryStore([[*center, 2.5 * space.dx]])


def reference_inside(space, geometries):
    """Owner of each node by brute force over all nodes (-1 outside), last geometry wins.

    Positions are formed with the same arithmetic as the classifier kernels.
    """
    k, j, i = np.meshgrid(
        np.arange(space.kMax), np.arange(space.jMax), np.arange(space.iMax), indexing="ij"
    )
    owner = np.full(space.shape, -1, dtype=np.int64)
    for g, (xc, yc, zc, r) in enumerate(geometries.records):
        dist_x = space.xMin + (i - space.ng) * space.dx - xc
        dist_y = space.yMin + (j - space.ng) * space.dy - yc
        dist_z = space.zMin + (k - space.ng) * space.dz - zc
        owner[dist_x * dist_x + dist_y * dist_y + dist_z * dist_z < r * r] = g
    return owner


@pytest.fixture
def reference_owner():
    return reference_inside
