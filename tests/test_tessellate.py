"""Tests for triangulation, tessellation and solid queries."""

import math

import numpy as np
import pytest

from brepcad.ops.extrude import extrude
from brepcad.ops.primitives import box, cylinder
from brepcad.ops.profile import polygon
from brepcad.query import (Containment, TriangleSet, contains_point, euler_characteristic,
                           solid_bbox, solid_triangles, solid_volume, solids_equivalent)
from brepcad.surfaces import SweptSurface
from brepcad.tessellate import mesh_view, tessellate_solid, triangulate_face
from brepcad.topology import Solid
from brepcad.triangulator import triangulate_indices, triangulate_polygon, triangulate_slabs


def _area(a, b, c):
    return ((b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1])) / 2.0


class TestTriangulator:

    def test_square(self):
        tris = triangulate_polygon([(0, 0), (1, 0), (1, 1), (0, 1)])
        assert len(tris) == 2
        assert sum(_area(*t) for t in tris) == pytest.approx(1.0)

    def test_clockwise_input_gives_ccw_triangles(self):
        points, tris = triangulate_indices([(0, 0), (0, 1), (1, 1), (1, 0)])
        assert all(_area(points[a], points[b], points[c]) > 0 for a, b, c in tris)

    def test_hole(self):
        tris = triangulate_polygon([(0, 0), (4, 0), (4, 4), (0, 4)],
                                   [[(1, 1), (2, 1), (2, 2), (1, 2)]])
        assert sum(_area(*t) for t in tris) == pytest.approx(15.0)

    def test_degenerate_loop(self):
        assert triangulate_indices([(0, 0), (1, 0)]) == ([], [])

    def test_slabs_stay_between_breakpoints(self):
        outer = [(0, 0), (0.25, 0), (0.5, 0), (0.75, 0), (1, 0), (1, 1), (0, 1)]
        points, tris = triangulate_slabs(outer)
        assert sum(_area(points[a], points[b], points[c]) for a, b, c in tris) == \
            pytest.approx(1.0)
        for tri in tris:
            us = [points[i][0] for i in tri]
            assert max(us) - min(us) <= 0.25 + 1e-9

    def test_slabs_with_hole(self):
        points, tris = triangulate_slabs([(0, 0), (4, 0), (4, 4), (0, 4)],
                                         [[(1, 1), (1, 2), (2, 2), (2, 1)]])
        assert sum(_area(points[a], points[b], points[c]) for a, b, c in tris) == \
            pytest.approx(15.0)


class TestTessellate:

    def test_box_mesh(self):
        mesh = tessellate_solid(box(1, 1, 1))
        assert mesh.vertices.shape == (8, 3)
        assert len(mesh) == 12
        assert mesh.volume() == pytest.approx(1.0)
        assert mesh.area() == pytest.approx(6.0)
        assert np.allclose(np.linalg.norm(mesh.triangle_normals(), axis=1), 1.0)
        assert set(mesh.face_ids.tolist()) == set(range(6))

    def test_mesh_view(self):
        tris = list(mesh_view(box(1, 1, 1)))
        assert len(tris) == 12
        normal, a, b, c = tris[0]
        assert math.isclose(sum(x * x for x in normal), 1.0)

    def test_cylinder_side_hugs_surface(self):
        solid = cylinder(1.0, 2.0)
        for fh in solid.iter_faces():
            if not isinstance(solid.face_surface(fh), SweptSurface):
                continue
            for tri in triangulate_face(solid, fh):
                cx = sum(p.x for p in tri) / 3.0
                cy = sum(p.y for p in tri) / 3.0
                assert 0.99 < math.hypot(cx, cy) <= 1.0 + 1e-9

    def test_cylinder_mesh_is_closed(self):
        mesh = tessellate_solid(cylinder(1.0, 2.0))
        edges = {}
        for tri in mesh.triangles.tolist():
            for k in range(3):
                key = (tri[k], tri[(k + 1) % 3])
                edges[key] = edges.get(key, 0) + 1
        assert all(count == 1 for count in edges.values())
        assert all((b, a) in edges for a, b in edges)
        assert mesh.volume() == pytest.approx(2 * math.pi, rel=1e-2)

    def test_empty_solid(self):
        mesh = tessellate_solid(Solid.empty())
        assert len(mesh) == 0


class TestQuery:

    def test_contains_point(self):
        b = box(1, 1, 1)
        assert contains_point(b, (0, 0, 0)) == Containment.INSIDE
        assert contains_point(b, (2, 0, 0)) == Containment.OUTSIDE
        assert contains_point(b, (0.5, 0.1, 0.2)) == Containment.ON_BOUNDARY
        assert contains_point(b, (0.5, 0.5, 0.5)) == Containment.ON_BOUNDARY

    def test_contains_point_in_hole(self):
        ring = extrude(polygon([(0, 0), (4, 0), (4, 4), (0, 4)],
                               holes=[[(1, 1), (3, 1), (3, 3), (1, 3)]]), 1.0)
        assert contains_point(ring, (2, 2, 0.5)) == Containment.OUTSIDE
        assert contains_point(ring, (0.5, 2, 0.5)) == Containment.INSIDE

    def test_triangle_set(self):
        ts = solid_triangles(box(2, 2, 2))
        assert len(ts) == 12
        assert ts.volume() == pytest.approx(8.0)
        assert ts.area() == pytest.approx(24.0)
        assert ts.distance((3, 0, 0)) == pytest.approx(2.0)

    def test_empty_triangle_set(self):
        ts = TriangleSet([])
        assert ts.classify((0, 0, 0)) == Containment.OUTSIDE
        assert ts.volume() == 0.0

    def test_empty_solid(self):
        empty = Solid.empty()
        assert solid_bbox(empty) is None
        assert solid_volume(empty) == 0.0
        assert solids_equivalent(empty, Solid.empty())
        assert not solids_equivalent(empty, box(1, 1, 1))

    def test_equivalence_ignores_face_structure(self):
        # the same cube, split into two halves along x and rejoined
        from brepcad.ops.boolean import union
        halves = union(box(0.5, 1, 1, center=(-0.25, 0, 0)), box(0.5, 1, 1, center=(0.25, 0, 0)))
        assert solids_equivalent(halves, box(1, 1, 1))
        assert not solids_equivalent(box(1, 1, 1), box(1, 1, 1.01))

    def test_euler_characteristic(self):
        b = box(1, 1, 1)
        assert euler_characteristic(b, b.shells()[0]) == 2
