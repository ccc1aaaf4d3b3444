"""Tests for assembling solids from planar polygon soups."""

import pytest

from brepcad.errors import OperationError
from brepcad.ops.polymesh import PolyMesh
from brepcad.query import solid_volume


CUBE = {
    'bottom': [(0, 0, 0), (0, 1, 0), (1, 1, 0), (1, 0, 0)],
    'top': [(0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1)],
    'front': [(0, 0, 0), (1, 0, 0), (1, 0, 1), (0, 0, 1)],
    'back': [(0, 1, 0), (0, 1, 1), (1, 1, 1), (1, 1, 0)],
    'left': [(0, 0, 0), (0, 0, 1), (0, 1, 1), (0, 1, 0)],
    'right': [(1, 0, 0), (1, 1, 0), (1, 1, 1), (1, 0, 1)],
}


def _mesh(faces):
    mesh = PolyMesh()
    for points in faces:
        mesh.add_polygon(points)
    return mesh


def test_cube():
    solid = _mesh(CUBE.values()).finalize()
    assert solid.summary() == {
        'shells': 1, 'faces': 6, 'cycles': 6, 'edges': 12, 'vertices': 8,
    }
    assert solid_volume(solid) == pytest.approx(1.0)


def test_vertices_are_pooled():
    mesh = _mesh(CUBE.values())
    assert len(mesh.points) == 8
    assert mesh.vertex((1e-9, 0, 0)) == mesh.vertex((0, 0, 0))


def test_t_junction_and_coplanar_merge():
    faces = [pts for name, pts in CUBE.items() if name != 'top']
    faces.append([(0, 0, 1), (0.5, 0, 1), (0.5, 1, 1), (0, 1, 1)])
    faces.append([(0.5, 0, 1), (1, 0, 1), (1, 1, 1), (0.5, 1, 1)])
    solid = _mesh(faces).finalize()
    assert len(solid.faces) == 6
    assert len(solid.vertices) == 8
    assert solid_volume(solid) == pytest.approx(1.0)


def test_triangulated_faces_are_merged():
    faces = []
    for pts in CUBE.values():
        faces.append(pts[:3])
        faces.append([pts[0], pts[2], pts[3]])
    solid = _mesh(faces).finalize()
    assert len(solid.faces) == 6


def test_degenerate_polygons_are_ignored():
    mesh = _mesh(CUBE.values())
    mesh.add_polygon([(0, 0, 0), (1e-9, 0, 0), (0, 1e-9, 0)])
    assert len(mesh) == 6


def test_empty_mesh():
    assert PolyMesh().finalize().is_empty()


def test_open_mesh():
    faces = [pts for name, pts in CUBE.items() if name != 'top']
    with pytest.raises(OperationError) as info:
        _mesh(faces).finalize('union')
    assert info.value.operation == 'union'


def test_two_shells():
    far = [[(x + 3, y, z) for x, y, z in pts] for pts in CUBE.values()]
    solid = _mesh(list(CUBE.values()) + far).finalize()
    assert len(solid.outer_shells()) == 2
    assert solid_volume(solid) == pytest.approx(2.0)


@pytest.mark.parametrize('offset, contact', [
    ((1, 1, 0), 'edge'),
    ((1, 1, 1), 'vertex'),
])
def test_non_manifold_contact(offset, contact):
    dx, dy, dz = offset
    other = [[(x + dx, y + dy, z + dz) for x, y, z in pts] for pts in CUBE.values()]
    mesh = _mesh(list(CUBE.values()) + other)
    with pytest.raises(OperationError, match='non-manifold contact') as info:
        mesh.finalize()
    assert info.value.details['contact'] == contact
