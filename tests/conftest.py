"""Shared fixtures for the brepCAD test suite."""

import pytest
import structlog

from brepcad.builder import TopologyBuilder


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def captured_logs():
    """Events logged through structlog while the test runs."""
    with structlog.testing.capture_logs() as logs:
        yield logs


TETRA_POINTS = [(0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0)]
TETRA_FACES = [(0, 1, 2), (0, 3, 1), (1, 3, 2), (2, 3, 0)]


def build_tetrahedron(faces=TETRA_FACES, points=TETRA_POINTS, soup=False):
    """Builder holding a tetrahedron shell, ready for ``finalize``.

    With ``soup`` every face gets its own vertices, leaving the merging of
    shared corners and edges to validation.
    """
    b = TopologyBuilder()
    shared = [b.build_vertex(p) for p in points] if not soup else None
    handles = []
    for tri in faces:
        if soup:
            verts = [b.build_vertex(points[i]) for i in tri]
        else:
            verts = [shared[i] for i in tri]
        handles.append(b.build_planar_face(verts))
    b.build_solid([b.build_shell(handles)])
    return b


@pytest.fixture
def tetra_builder():
    return build_tetrahedron()
