"""Tests for union, intersection and difference."""

import math

import pytest

from brepcad.errors import OperationError
from brepcad.ops.boolean import boolean, difference, intersection, union
from brepcad.ops.primitives import box, cylinder
from brepcad.query import Containment, contains_point, solid_volume, solids_equivalent
from brepcad.topology import Solid


@pytest.fixture
def a():
    return box(2, 2, 2)


@pytest.fixture
def b():
    return box(2, 2, 2, center=(1, 1, 1))


class TestOverlappingCubes:
    """Two 2x2x2 cubes sharing a 1x1x1 corner."""

    def test_union(self, a, b):
        u = union(a, b)
        assert solid_volume(u) == pytest.approx(15.0)
        assert len(u.shells()) == 1
        assert contains_point(u, (1.5, 1.5, 1.5)) == Containment.INSIDE
        assert contains_point(u, (-0.5, 1.5, 0.5)) == Containment.OUTSIDE

    def test_intersection(self, a, b):
        i = intersection(a, b)
        assert solid_volume(i) == pytest.approx(1.0)
        assert len(i.faces) == 6
        assert solids_equivalent(i, box(1, 1, 1, center=(0.5, 0.5, 0.5)))

    def test_difference(self, a, b):
        d = difference(a, b)
        assert solid_volume(d) == pytest.approx(7.0)
        assert contains_point(d, (0.5, 0.5, 0.5)) == Containment.OUTSIDE
        assert contains_point(d, (-0.5, -0.5, -0.5)) == Containment.INSIDE

    def test_union_commutes(self, a, b):
        assert solids_equivalent(union(a, b), union(b, a))

    def test_intersection_commutes(self, a, b):
        assert solids_equivalent(intersection(a, b), intersection(b, a))

    def test_results_are_valid_solids(self, a, b):
        for op in ('union', 'intersection', 'difference'):
            result = boolean(a, b, op)
            assert isinstance(result, Solid)
            for eh in result.iter_edges():
                assert len(result.edge_faces(eh)) == 2


class TestIdentities:

    def test_self_union(self, a):
        assert solids_equivalent(union(a, a), a)

    def test_self_intersection(self, a):
        assert solids_equivalent(intersection(a, a), a)

    def test_self_difference(self, a):
        assert difference(a, a).is_empty()

    def test_empty_operands(self, a):
        empty = Solid.empty()
        assert union(a, empty) is a
        assert union(empty, a) is a
        assert difference(a, empty) is a
        assert difference(empty, a).is_empty()
        assert intersection(a, empty).is_empty()


class TestDisjoint:

    def test_far_apart(self, a):
        far = box(1, 1, 1, center=(5, 0, 0))
        u = union(a, far)
        assert len(u.outer_shells()) == 2
        assert solid_volume(u) == pytest.approx(9.0)
        assert difference(a, far) is a
        assert intersection(a, far).is_empty()

    def test_fast_path_is_logged(self, a, captured_logs):
        union(a, box(1, 1, 1, center=(5, 0, 0)))
        assert any(e['event'] == 'boolean fast path' for e in captured_logs)


class TestSharedFaces:

    def test_stacked_boxes_merge(self):
        lower = box(1, 1, 1, center=(0, 0, 0.5))
        upper = box(1, 1, 1, center=(0, 0, 1.5))
        u = union(lower, upper)
        assert solid_volume(u) == pytest.approx(2.0)
        assert len(u.faces) == 6
        assert len(u.vertices) == 8

    def test_pocket(self):
        d = difference(box(4, 4, 2), box(2, 2, 2, center=(0, 0, 1)))
        assert solid_volume(d) == pytest.approx(28.0)
        assert len(d.shells()) == 1

    def test_through_hole(self):
        d = difference(box(4, 4, 2), box(2, 2, 4))
        assert solid_volume(d) == pytest.approx(24.0)
        assert len(d.faces) == 10
        assert len(d.shells()) == 1
        assert contains_point(d, (0, 0, 0)) == Containment.OUTSIDE

    def test_cavity(self):
        d = difference(box(4, 4, 4), box(2, 2, 2))
        assert solid_volume(d) == pytest.approx(56.0)
        assert len(d.outer_shells()) == 1
        assert len(d.void_shells()) == 1
        assert contains_point(d, (0, 0, 0)) == Containment.OUTSIDE


def _unit_cube():
    return box(1, 1, 1, center=(0.5, 0.5, 0.5))


class TestTouchingContact:
    """Operands meeting only along an edge or at a corner share no volume."""

    @pytest.fixture(params=['edge', 'vertex'])
    def touching(self, request):
        z = 0.5 if request.param == 'edge' else 1.5
        return request.param, box(1, 1, 1, center=(1.5, 1.5, z))

    def test_union_is_rejected(self, touching):
        contact, other = touching
        with pytest.raises(OperationError, match='non-manifold contact') as info:
            union(_unit_cube(), other)
        assert info.value.operation == 'union'
        assert info.value.details['contact'] == contact

    def test_intersection_is_empty(self, touching):
        _, other = touching
        assert intersection(_unit_cube(), other).is_empty()

    def test_difference_keeps_first_operand(self, touching):
        _, other = touching
        d = difference(_unit_cube(), other)
        assert solids_equivalent(d, _unit_cube())
        assert solid_volume(d) == pytest.approx(1.0)


class TestCurvedOperands:

    def test_rejected_without_faceting(self):
        with pytest.raises(OperationError):
            difference(box(4, 4, 2), cylinder(1, 4, base=(0, 0, -2)))

    def test_faceted_hole(self):
        d = difference(box(4, 4, 2), cylinder(1, 4, base=(0, 0, -2)), facet_curved=True)
        assert d.is_planar()
        assert solid_volume(d) == pytest.approx(32 - 2 * math.pi, abs=0.1)


def test_unknown_operation(a, b):
    with pytest.raises(OperationError):
        boolean(a, b, 'xor')


def test_operands_must_be_solids(a):
    with pytest.raises(OperationError):
        union(a, 'box')
