"""Tests for transforming and faceting solids."""

import math

import pytest

from brepcad.errors import OperationError
from brepcad.geom import Plane, Point3
from brepcad.ops.primitives import box, cylinder, tetrahedron
from brepcad.ops.transform import (facet_solid, mirror, rotate, scale, transform_solid,
                                   translate)
from brepcad.query import solid_bbox, solid_volume, solids_equivalent
from brepcad.topology import Solid
from brepcad.validate import validate_solid
from brepcad.xform import Mirror, Rotation, Scale


def test_translate():
    moved = translate(box(1, 1, 1), (2, 0, 0))
    bb = solid_bbox(moved)
    assert bb.min == Point3(1.5, -0.5, -0.5)
    assert solid_volume(moved) == pytest.approx(1.0)


def test_rotate_about_center():
    moved = rotate(box(2, 1, 1, center=(1, 0, 0)), (0, 0, 1), 90, center=(0, 0, 0))
    assert solids_equivalent(moved, box(1, 2, 1, center=(0, 1, 0)))


def test_rotation_keeps_curves():
    c = rotate(cylinder(1, 2), (1, 0, 0), 90)
    assert not c.is_planar()
    assert solid_volume(c) == pytest.approx(2 * math.pi, rel=1e-2)
    bb = solid_bbox(c)
    assert bb.min.y == pytest.approx(-2.0)


def test_inputs_are_not_modified():
    b = box(1, 1, 1)
    translate(b, (5, 5, 5))
    assert solid_bbox(b).min == Point3(-0.5, -0.5, -0.5)


class TestMirror:

    def test_mirror_keeps_volume_positive(self):
        t = tetrahedron((0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1))
        m = mirror(t, 'xy')
        assert solid_volume(m) == pytest.approx(1.0 / 6.0)
        assert solid_bbox(m).min.z == pytest.approx(-1.0)
        assert validate_solid(m).ok

    def test_mirror_through_plane(self):
        m = mirror(box(1, 1, 1), Plane.yz(2.0))
        assert solid_bbox(m).min.x == pytest.approx(3.5)

    def test_mirror_curved_solid(self):
        m = mirror(cylinder(1, 1), 'xz')
        assert solid_volume(m) == pytest.approx(math.pi, rel=1e-2)

    def test_unknown_plane_name(self):
        with pytest.raises(OperationError):
            mirror(box(1, 1, 1), 'ab')

    def test_mirror_needs_permission(self):
        with pytest.raises(OperationError):
            transform_solid(box(1, 1, 1), Mirror(Plane.xy()))


class TestScale:

    def test_uniform(self):
        assert solid_volume(scale(box(1, 1, 1), 2)) == pytest.approx(8.0)

    def test_per_axis(self):
        s = scale(box(1, 1, 1), (1, 2, 3))
        assert solid_volume(s) == pytest.approx(6.0)
        assert solid_bbox(s).max.z == pytest.approx(1.5)

    def test_about_center(self):
        s = scale(box(1, 1, 1, center=(1, 1, 1)), 2, center=(1, 1, 1))
        assert solid_bbox(s).min == Point3(0, 0, 0)

    def test_negative_factor_mirrors(self):
        s = scale(box(1, 1, 1, center=(1, 0, 0)), -1)
        assert solid_volume(s) == pytest.approx(1.0)
        assert solid_bbox(s).max.x == pytest.approx(-0.5)

    def test_non_uniform_scale_of_circle(self):
        with pytest.raises(OperationError):
            scale(cylinder(1, 1), (1, 2, 1))

    def test_singular(self):
        with pytest.raises(OperationError):
            scale(box(1, 1, 1), 0)
        with pytest.raises(OperationError):
            transform_solid(box(1, 1, 1), Scale(1, 0, 1))


def test_empty_solid_transforms_to_empty():
    assert transform_solid(Solid.empty(), Rotation((0, 0, 1), 30)).is_empty()


class TestFacet:

    def test_cylinder(self):
        f = facet_solid(cylinder(1, 2))
        assert f.is_planar()
        assert validate_solid(f).ok
        assert solid_volume(f) == pytest.approx(2 * math.pi, rel=1e-2)

    def test_planar_solid_unchanged(self):
        b = box(1, 1, 1)
        assert facet_solid(b) is b
