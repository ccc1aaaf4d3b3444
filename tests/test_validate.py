"""Tests for full validation and its defect report."""

import dataclasses

import pytest

from brepcad.builder import TopologyBuilder
from brepcad.curves import CircleCurve, LineCurve
from brepcad.errors import ValidationError
from brepcad.geom import Plane
from brepcad.ops.primitives import box
from brepcad.surfaces import PlaneSurface
from brepcad.validate import DefectKind, ValidationReport, validate_draft, validate_solid

from conftest import TETRA_FACES, TETRA_POINTS, build_tetrahedron


def _report(builder):
    report, solid = validate_draft(builder)
    return report, solid


def test_clean_tetrahedron_report():
    report, solid = _report(build_tetrahedron())
    assert report.ok
    assert solid is not None
    assert report.stats['vertices'] == 4
    assert report.stats['edges'] == 6
    assert report.stats['faces'] == 4
    shell = report.stats['per_shell'][0]
    assert shell['euler'] == 2
    assert shell['volume'] == pytest.approx(1.0 / 6.0)
    assert report.format() == 'no defects'


def test_open_shell_reports_boundary_edges():
    report, solid = _report(build_tetrahedron(faces=TETRA_FACES[:3]))
    assert solid is None
    assert report.kinds() == {DefectKind.BOUNDARY_EDGE}
    assert len(report.by_kind(DefectKind.BOUNDARY_EDGE)) == 3


def test_inside_out_shell():
    flipped = [tuple(reversed(f)) for f in TETRA_FACES]
    report, _ = _report(build_tetrahedron(faces=flipped))
    assert DefectKind.INWARD_ORIENTATION in report.kinds()


def test_one_flipped_face():
    faces = list(TETRA_FACES)
    faces[0] = tuple(reversed(faces[0]))
    report, _ = _report(build_tetrahedron(faces=faces, soup=True))
    assert DefectKind.INCONSISTENT_ORIENTATION in report.kinds()
    assert DefectKind.INWARD_ORIENTATION not in report.kinds()


def test_dangling_vertex():
    b = build_tetrahedron()
    extra = b.build_vertex((5.0, 5.0, 5.0))
    report, _ = _report(b)
    dangling = report.by_kind(DefectKind.DANGLING_ENTITY)
    assert len(dangling) == 1
    assert dangling[0].entities == (extra,)


def test_non_manifold_edge():
    b = TopologyBuilder()
    pts = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1), (0, 0, -1), (-1, -1, 1)]
    v = [b.build_vertex(p) for p in pts]
    faces = [
        b.build_planar_face([v[0], v[2], v[1]]),
        b.build_planar_face([v[3], v[4], v[5]]),
    ]
    # a third face on edge 0-1, built from its own copies of the vertices
    w0 = b.build_vertex(pts[0])
    w1 = b.build_vertex(pts[1])
    faces.append(b.build_planar_face([w0, w1, v[3]]))
    faces.append(b.build_planar_face([w1, w0, v[4]]))
    b.build_solid([b.build_shell(faces)])
    report, _ = _report(b)
    assert DefectKind.NON_MANIFOLD_EDGE in report.kinds()


def test_all_defects_are_collected():
    b = build_tetrahedron(faces=TETRA_FACES[:3])
    b.build_vertex((9.0, 9.0, 9.0))
    report, _ = _report(b)
    assert {DefectKind.BOUNDARY_EDGE, DefectKind.DANGLING_ENTITY} <= report.kinds()
    text = report.format()
    assert 'boundary_edge' in text
    assert 'dangling_entity' in text


def test_validation_error_carries_report():
    b = build_tetrahedron(faces=TETRA_FACES[:3])
    with pytest.raises(ValidationError) as info:
        b.finalize()
    assert isinstance(info.value.report, ValidationReport)
    assert 'boundary_edge' in str(info.value)
    assert all(d['kind'] == 'boundary_edge' for d in info.value.details['defects'])


def test_validate_existing_solid():
    report = validate_solid(box(1, 2, 3))
    assert report.ok
    assert report.stats['faces'] == 6
    assert report.stats['per_shell'][0]['volume'] == pytest.approx(6.0)


def test_report_truthiness():
    assert ValidationReport()
    bad = ValidationReport()
    bad.add(DefectKind.DEGENERATE_FACE, 'face has no area')
    assert not bad
    assert bad.by_kind(DefectKind.DEGENERATE_FACE)[0].to_json()['kind'] == 'degenerate_face'


## one draft per defect kind
## --------------------------

def _tetra_faces(b, offset=(0.0, 0.0, 0.0)):
    ox, oy, oz = offset
    v = [b.build_vertex((x + ox, y + oy, z + oz)) for x, y, z in TETRA_POINTS]
    return [b.build_planar_face([v[i] for i in tri]) for tri in TETRA_FACES]


def _kinds(b, *shells):
    b.build_solid(shells)
    report, solid = validate_draft(b)
    assert solid is None
    return report.kinds()


def _cycle(b, verts):
    n = len(verts)
    return b.build_cycle([b.half_edge_between(verts[i], verts[(i + 1) % n])
                          for i in range(n)])


class TestDefectKinds:

    def test_degenerate_edge(self):
        b = TopologyBuilder()
        v = b.build_vertex((2.0, 2.0, 2.0))
        # a short straight curve whose two ends land on the same vertex
        e = b.build_edge(v, v, LineCurve((2.0, 2.0, 2.0), (2.0 + 3e-7, 2.0, 2.0)))
        ch = b.build_cycle([b.half_edges(e)[0]])
        face = b.build_face(PlaneSurface(Plane.xy(2.0)), ch)
        assert DefectKind.DEGENERATE_EDGE in _kinds(b, b.build_shell([face]))

    def test_closed_curve_between_two_vertices(self):
        b = TopologyBuilder()
        v1 = b.build_vertex((1.0, 0.0, 0.0))
        v2 = b.build_vertex((1.0 + 3e-7, 0.0, 0.0))
        circle = CircleCurve.full((0, 0, 0), 1.0, (0, 0, 1), x_axis=(1, 0, 0))
        arc = b.build_edge(v1, v2, circle)
        ch = b.build_cycle([b.half_edges(arc)[0], b.half_edge_between(v2, v1)])
        face = b.build_face(PlaneSurface(Plane.xy()), ch)
        assert DefectKind.EDGE_VERTEX_MISMATCH in _kinds(b, b.build_shell([face]))

    def test_same_face_edge(self):
        b = TopologyBuilder()
        v = [b.build_vertex(p) for p in [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]]
        # the hole runs back along the exterior's own edges
        face = b.build_planar_face(v, [list(reversed(v))])
        assert DefectKind.SAME_FACE_EDGE in _kinds(b, b.build_shell([face]))

    def test_unclosed_cycle(self):
        b = TopologyBuilder()
        faces = _tetra_faces(b)
        ch = b.face(faces[0]).exterior
        cycle = b.cycle(ch)
        b.cycles[ch.index] = dataclasses.replace(cycle, half_edges=cycle.half_edges[:-1])
        assert DefectKind.UNCLOSED_CYCLE in _kinds(b, b.build_shell(faces))

    def test_self_intersecting_cycle(self):
        b = TopologyBuilder()
        v = [b.build_vertex(p) for p in [(0, 0, 0), (2, 2, 0), (2, 0, 0), (0, 1, 0)]]
        face = b.build_planar_face(v)
        assert DefectKind.SELF_INTERSECTING_CYCLE in _kinds(b, b.build_shell([face]))

    def test_loop_off_surface(self):
        b = TopologyBuilder()
        v = [b.build_vertex(p) for p in [(0, 0, 1), (1, 0, 1), (0, 1, 1)]]
        face = b.build_face(PlaneSurface(Plane.xy()), _cycle(b, v))
        assert DefectKind.LOOP_OFF_SURFACE in _kinds(b, b.build_shell([face]))

    def test_hole_outside_face(self):
        b = TopologyBuilder()
        outer = [b.build_vertex(p) for p in [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]]
        hole = [b.build_vertex(p) for p in [(2, 2, 0), (2, 3, 0), (3, 3, 0), (3, 2, 0)]]
        face = b.build_planar_face(outer, [hole])
        assert DefectKind.HOLE_OUTSIDE_FACE in _kinds(b, b.build_shell([face]))

    def test_face_winding(self):
        b = TopologyBuilder()
        # clockwise about the +z normal of the surface
        v = [b.build_vertex(p) for p in [(0, 0, 0), (0, 1, 0), (1, 0, 0)]]
        face = b.build_face(PlaneSurface(Plane.xy()), _cycle(b, v))
        kinds = _kinds(b, b.build_shell([face]))
        assert DefectKind.FACE_WINDING in kinds
        assert DefectKind.LOOP_OFF_SURFACE not in kinds

    def test_flat_shell(self):
        b = TopologyBuilder()
        v = [b.build_vertex(p) for p in [(0, 0, 0), (1, 0, 0), (0, 1, 0)]]
        up = b.build_planar_face(v)
        down = b.build_planar_face(list(reversed(v)))
        assert _kinds(b, b.build_shell([up, down])) == {DefectKind.DEGENERATE_SHELL}

    def test_shell_intersection(self):
        b = TopologyBuilder()
        first = b.build_shell(_tetra_faces(b))
        second = b.build_shell(_tetra_faces(b, offset=(0.1, 0.1, 0.1)))
        assert _kinds(b, first, second) == {DefectKind.SHELL_INTERSECTION}

    def test_disconnected_shell(self):
        b = TopologyBuilder()
        faces = _tetra_faces(b) + _tetra_faces(b, offset=(5.0, 0.0, 0.0))
        assert _kinds(b, b.build_shell(faces)) == {DefectKind.DISCONNECTED_SHELL}

    def test_every_kind_is_covered(self):
        tested = {
            DefectKind.DEGENERATE_EDGE, DefectKind.EDGE_VERTEX_MISMATCH,
            DefectKind.SAME_FACE_EDGE, DefectKind.UNCLOSED_CYCLE,
            DefectKind.SELF_INTERSECTING_CYCLE, DefectKind.LOOP_OFF_SURFACE,
            DefectKind.HOLE_OUTSIDE_FACE, DefectKind.FACE_WINDING,
            DefectKind.DEGENERATE_SHELL, DefectKind.SHELL_INTERSECTION,
            DefectKind.DISCONNECTED_SHELL,
            # covered by the tests above this class
            DefectKind.BOUNDARY_EDGE, DefectKind.NON_MANIFOLD_EDGE,
            DefectKind.DEGENERATE_FACE, DefectKind.INCONSISTENT_ORIENTATION,
            DefectKind.INWARD_ORIENTATION, DefectKind.DANGLING_ENTITY,
        }
        assert tested == set(DefectKind)
