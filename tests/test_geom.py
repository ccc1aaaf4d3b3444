"""Tests for the scalar, vector, plane and predicate layer."""

import math

import pytest

from brepcad.errors import MathError
from brepcad.geom import (
    Aabb, Line, Plane, Point2, Point3, Vector3,
    close, compare, is_zero, epsilon,
    newell_normal, orient2d, point_in_polygon_2d, point_in_region_2d,
    polygon_self_intersects, polygon_signed_area_2d, segment_intersection_2d,
)


class TestScalars:

    def test_close_uses_epsilon(self):
        assert close(1.0, 1.0 + epsilon / 2)
        assert not close(1.0, 1.0 + epsilon * 2)

    def test_compare(self):
        assert compare(1.0, 1.0 + epsilon / 10) == 0
        assert compare(2.0, 1.0) == 1
        assert compare(1.0, 2.0) == -1

    def test_is_zero(self):
        assert is_zero(epsilon / 2)
        assert not is_zero(1e-3)
        assert is_zero(1e-3, tol=1e-2)


class TestVectors:

    def test_point_arithmetic(self):
        a = Point3(1, 2, 3)
        b = Point3(4, 6, 3)
        d = b - a
        assert isinstance(d, Vector3)
        assert d.magnitude() == pytest.approx(5.0)
        assert a + d == b

    def test_cross_and_dot(self):
        x = Vector3(1, 0, 0)
        y = Vector3(0, 1, 0)
        assert x.cross(y) == Vector3(0, 0, 1)
        assert x.dot(y) == 0.0

    def test_normalize_zero_vector_raises(self):
        with pytest.raises(MathError):
            Vector3(0, 0, 0).normalize()
        with pytest.raises(MathError):
            Vector3(epsilon / 10, 0, 0).normalize()

    def test_tolerant_equality(self):
        assert Point3(1, 1, 1) == Point3(1 + epsilon / 10, 1, 1)
        assert Point3(1, 1, 1) != Point3(1 + 1e-4, 1, 1)

    def test_points_are_unhashable(self):
        with pytest.raises(TypeError):
            hash(Point3(0, 0, 0))

    def test_non_finite_coordinates_rejected(self):
        with pytest.raises(MathError):
            Point3(float('nan'), 0, 0)
        with pytest.raises(MathError):
            Vector3(0, float('inf'), 0)
        with pytest.raises(MathError):
            Point3('1', 0, 0)

    def test_any_perpendicular(self):
        for v in (Vector3(0, 0, 1), Vector3(1, 2, 3), Vector3(-1, 0, 0)):
            p = v.any_perpendicular()
            assert abs(p.dot(v)) < 1e-12
            assert p.magnitude() == pytest.approx(1.0)

    def test_angle_to(self):
        assert Vector3(1, 0, 0).angle_to(Vector3(0, 2, 0)) == pytest.approx(math.pi / 2)


class TestPlanes:

    def test_standard_planes(self):
        assert Plane.xy().normal == Vector3(0, 0, 1)
        assert Plane.xz().normal == Vector3(0, -1, 0)
        assert Plane.yz().normal == Vector3(1, 0, 0)

    def test_basis_is_orthonormalized(self):
        p = Plane(Point3(0, 0, 0), Vector3(2, 0, 0), Vector3(1, 1, 0))
        assert p.u_axis == Vector3(1, 0, 0)
        assert p.v_axis == Vector3(0, 1, 0)

    def test_parallel_axes_rejected(self):
        with pytest.raises(MathError):
            Plane(Point3(0, 0, 0), Vector3(1, 0, 0), Vector3(2, 0, 0))

    def test_project_and_lift(self):
        plane = Plane.from_normal(Point3(1, 2, 3), Vector3(1, 1, 1))
        p = Point3(4, -1, 2)
        uv = plane.project(p)
        back = plane.lift(uv.xy)
        # the lifted point is the orthogonal projection
        assert plane.contains(back)
        assert (p - back).is_parallel(plane.normal)

    def test_flipped_plane(self):
        p = Plane.xy(2.0)
        f = p.flipped()
        assert f.normal == Vector3(0, 0, -1)
        assert f.contains(Point3(5, 5, 2))

    def test_signed_distance(self):
        assert Plane.xy(1.0).signed_distance(Point3(0, 0, 3)) == pytest.approx(2.0)
        assert Plane.xz().signed_distance(Point3(0, 2, 0)) == pytest.approx(-2.0)

    def test_intersect_plane(self):
        line = Plane.xy().intersect_plane(Plane.yz())
        assert line.direction.is_parallel(Vector3(0, 1, 0))
        assert line.contains(Point3(0, 7, 0))

    def test_intersect_parallel_planes(self):
        assert Plane.xy().intersect_plane(Plane.xy(3.0)) is None

    def test_plane_from_collinear_points(self):
        with pytest.raises(MathError):
            Plane.from_points((0, 0, 0), (1, 0, 0), (2, 0, 0))

    def test_intersect_line(self):
        line = Line(Point3(0, 0, -1), Vector3(0, 0, 2))
        t = Plane.xy(1.0).intersect_line(line)
        assert t == pytest.approx(2.0)
        assert Plane.xy().intersect_line(Line(Point3(0, 0, 1), Vector3(1, 0, 0))) is None


class TestLines:

    def test_direction_is_unit(self):
        line = Line.from_points((0, 0, 0), (3, 4, 0))
        assert line.direction.magnitude() == pytest.approx(1.0)
        assert line.distance_to((0, 0, 2)) == pytest.approx(2.0)

    def test_coincident_points_rejected(self):
        with pytest.raises(MathError):
            Line.from_points((1, 1, 1), (1, 1, 1))


class TestAabb:

    def test_overlap_and_contains(self):
        a = Aabb.from_points([Point3(0, 0, 0), Point3(1, 1, 1)])
        b = Aabb.from_points([Point3(1, 1, 1), Point3(2, 2, 2)])
        c = Aabb.from_points([Point3(3, 3, 3), Point3(4, 4, 4)])
        assert a.overlaps(b)
        assert not a.overlaps(c)
        assert a.contains(Point3(0.5, 0.5, 0.5))
        assert a.union(c).extent == pytest.approx(4.0)

    def test_empty_box_rejected(self):
        with pytest.raises(MathError):
            Aabb.from_points([])


class TestPredicates:

    def test_orient2d_sign(self):
        assert orient2d((0, 0), (1, 0), (0, 1)) > 0
        assert orient2d((0, 0), (0, 1), (1, 0)) < 0
        assert orient2d((0, 0), (1, 1), (2, 2)) == 0

    def test_orient2d_near_degenerate(self):
        # the float determinant is unreliable here; the exact one is not
        a = (0.5, 0.5)
        b = (12.0, 12.0)
        c = (24.0, 24.0 + 2 ** -47)
        assert orient2d(a, b, c) > 0

    def test_segments_crossing(self):
        hits = segment_intersection_2d((0, 0), (1, 1), (0, 1), (1, 0))
        assert len(hits) == 1
        t, s = hits[0]
        assert t == pytest.approx(0.5)
        assert s == pytest.approx(0.5)

    def test_segments_collinear_overlap(self):
        hits = segment_intersection_2d((0, 0), (2, 0), (1, 0), (3, 0))
        assert len(hits) == 2
        assert hits[0] == pytest.approx((0.5, 0.0))
        assert hits[1] == pytest.approx((1.0, 0.5))

    def test_segments_disjoint(self):
        assert segment_intersection_2d((0, 0), (1, 0), (0, 1), (1, 1)) == []

    def test_point_in_polygon(self):
        square = [(0, 0), (2, 0), (2, 2), (0, 2)]
        assert point_in_polygon_2d((1, 1), square) == 1
        assert point_in_polygon_2d((2, 1), square) == 0
        assert point_in_polygon_2d((3, 1), square) == -1

    def test_point_in_region_with_hole(self):
        outer = [(0, 0), (4, 0), (4, 4), (0, 4)]
        hole = [(1, 1), (1, 3), (3, 3), (3, 1)]
        assert point_in_region_2d((0.5, 0.5), outer, [hole]) == 1
        assert point_in_region_2d((2, 2), outer, [hole]) == -1
        assert point_in_region_2d((1, 2), outer, [hole]) == 0

    def test_bowtie_self_intersects(self):
        assert polygon_self_intersects([(0, 0), (1, 1), (1, 0), (0, 1)])
        assert not polygon_self_intersects([(0, 0), (1, 0), (1, 1), (0, 1)])

    def test_signed_area(self):
        ccw = [(0, 0), (2, 0), (2, 1), (0, 1)]
        assert polygon_signed_area_2d(ccw) == pytest.approx(2.0)
        assert polygon_signed_area_2d(ccw[::-1]) == pytest.approx(-2.0)

    def test_newell_normal(self):
        pts = [Point3(0, 0, 0), Point3(2, 0, 0), Point3(2, 2, 0), Point3(0, 2, 0)]
        n = newell_normal(pts)
        assert n == Vector3(0, 0, 8)
        assert Point2(1, 2).xy == (1.0, 2.0)
