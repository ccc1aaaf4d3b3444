"""Boolean operations on polyhedral solids by face subdivision.

Every planar face of each operand is cut along its intersections with the
faces of the other operand, the pieces are classified against the other
operand and the pieces the operation keeps are reassembled by
:class:`~brepcad.ops.polymesh.PolyMesh`.

Classification of a piece uses one interior point.  If the point lies on
a coplanar face of the other solid the piece is ``ON_SAME`` (normals
agree) or ``ON_OPPOSITE``; otherwise three skewed rays vote for
``INSIDE`` or ``OUTSIDE``.  Coincident boundary is resolved by a single
rule: it belongs to the first operand.

=============  ==========================================================
operation      kept pieces
=============  ==========================================================
union          A outside, A on-same, B outside
intersection   A inside, A on-same, B inside
difference     A outside, A on-opposite, B inside (reversed)
=============  ==========================================================

Operands that touch only along an edge or at a vertex share no volume:
their intersection is empty and their difference is the first operand.
A result in which faces would meet along an edge used more than twice,
or only at a vertex, is not a manifold solid; it is rejected with an
:class:`~brepcad.errors.OperationError` whose ``details['contact']`` is
``'edge'`` or ``'vertex'``.

Operands with curved faces are rejected unless ``facet_curved`` is set,
in which case they are replaced by :func:`~brepcad.ops.transform.facet_solid`
first.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from brepcad.builder import TopologyBuilder
from brepcad.config import get_config
from brepcad.errors import MathError, OperationError, TopologyError, ValidationError
from brepcad.geom import Aabb, Plane, point_in_region_2d
from brepcad.log import get_logger
from brepcad.ops.arrangement import interior_point, split_polygon
from brepcad.ops.polymesh import PolyMesh
from brepcad.ops.transform import copy_topology, facet_solid
from brepcad.query import Containment, solid_bbox, solid_triangles
from brepcad.surfaces import surface_is_planar, surface_plane
from brepcad.topology import Solid

logger = get_logger(__name__)


class Classification(Enum):
    INSIDE = 'inside'
    OUTSIDE = 'outside'
    ON_SAME = 'on_same'
    ON_OPPOSITE = 'on_opposite'


_KEEP = {
    'union': ({Classification.OUTSIDE, Classification.ON_SAME},
              {Classification.OUTSIDE}, False),
    'intersection': ({Classification.INSIDE, Classification.ON_SAME},
                     {Classification.INSIDE}, False),
    'difference': ({Classification.OUTSIDE, Classification.ON_OPPOSITE},
                   {Classification.INSIDE}, True),
}


@dataclass
class _FacePoly:
    """A planar face in the 2D coordinates of its outward oriented plane."""

    plane: Plane
    outer: List[Tuple[float, float]]
    holes: List[List[Tuple[float, float]]]
    box: Aabb

    def contains(self, uv, tol) -> bool:
        return point_in_region_2d(uv, self.outer, self.holes, tol) >= 0

    def edges(self):
        for loop in [self.outer] + self.holes:
            n = len(loop)
            for i in range(n):
                yield loop[i], loop[(i + 1) % n]


def _face_polys(solid: Solid) -> List[_FacePoly]:
    polys = []
    for fh in solid.iter_faces():
        f = solid.face(fh)
        plane = surface_plane(f.surface)
        if not f.outward:
            plane = plane.flipped()
        ext, ints = solid.face_cycles(fh)
        outer_pts = solid.cycle_points(ext)
        polys.append(_FacePoly(plane,
                               [plane.project_xy(p) for p in outer_pts],
                               [[plane.project_xy(p) for p in solid.cycle_points(c)]
                                for c in ints],
                               Aabb.from_points(outer_pts)))
    return polys


def _line_intervals(fp: _FacePoly, line, tol):
    """Parameter intervals of ``line`` lying in the face (boundary included)."""
    o = fp.plane.project_xy(line.origin)
    d = (line.direction.dot(fp.plane.u_axis), line.direction.dot(fp.plane.v_axis))
    ts = []
    for p, q in fp.edges():
        ex, ey = q[0] - p[0], q[1] - p[1]
        denom = d[0] * ey - d[1] * ex
        wx, wy = p[0] - o[0], p[1] - o[1]
        if abs(denom) < 1e-12:
            # parallel edge: only collinear edges contribute their ends
            if abs(wx * d[1] - wy * d[0]) < tol:
                ts.append(wx * d[0] + wy * d[1])
                ts.append((q[0] - o[0]) * d[0] + (q[1] - o[1]) * d[1])
            continue
        s = (wx * d[1] - wy * d[0]) / denom
        elen = math.hypot(ex, ey)
        if -tol / elen <= s <= 1.0 + tol / elen:
            ts.append((wx * ey - wy * ex) / denom)
    if len(ts) < 2:
        return []
    ts.sort()
    intervals = []
    for a, b in zip(ts, ts[1:]):
        if b - a <= tol:
            continue
        m = (a + b) / 2.0
        if fp.contains((o[0] + d[0] * m, o[1] + d[1] * m), tol):
            if intervals and abs(intervals[-1][1] - a) <= tol:
                intervals[-1] = (intervals[-1][0], b)
            else:
                intervals.append((a, b))
    return intervals


def _overlap(xs, ys, tol):
    out = []
    for a0, a1 in xs:
        for b0, b1 in ys:
            lo, hi = max(a0, b0), min(a1, b1)
            if hi - lo > tol:
                out.append((lo, hi))
    return out


def _cuts(fp: _FacePoly, others: List[_FacePoly], tol):
    """Cut segments of ``fp`` (in its 2D coordinates) from the other faces."""
    cuts = []
    coplanar = []
    for g in others:
        if not fp.box.overlaps(g.box, tol):
            continue
        line = fp.plane.intersect_plane(g.plane)
        if line is None:
            if abs(fp.plane.signed_distance(g.plane.origin)) < tol:
                coplanar.append(g)
                for p, q in g.edges():
                    cuts.append((fp.plane.project_xy(g.plane.lift(p)),
                                 fp.plane.project_xy(g.plane.lift(q))))
            continue
        for t0, t1 in _overlap(_line_intervals(fp, line, tol),
                               _line_intervals(g, line, tol), tol):
            cuts.append((fp.plane.project_xy(line.point_at(t0)),
                         fp.plane.project_xy(line.point_at(t1))))
    return cuts, coplanar


def _classify(fp, uv, coplanar, triangles, tol) -> Classification:
    p = fp.plane.lift(uv)
    for g in coplanar:
        if g.contains(g.plane.project_xy(p), tol):
            same = fp.plane.normal.dot(g.plane.normal) > 0.0
            return Classification.ON_SAME if same else Classification.ON_OPPOSITE
    c = triangles.classify(p, tol, boundary=False)
    return Classification.INSIDE if c == Containment.INSIDE else Classification.OUTSIDE


def _fragments(polys, other_polys, other_solid, keep, reverse, mesh, counts, tol):
    triangles = solid_triangles(other_solid)
    for fp in polys:
        cuts, coplanar = _cuts(fp, other_polys, tol)
        if cuts:
            regions = split_polygon(fp.outer, fp.holes, cuts, tol)
        else:
            regions = [(fp.outer, fp.holes)]
        for outer, holes in regions:
            uv = interior_point(outer, holes)
            if uv is None:
                continue
            cls = _classify(fp, uv, coplanar, triangles, tol)
            counts[cls.value] += 1
            if cls not in keep:
                continue
            outer3 = [fp.plane.lift(p) for p in outer]
            holes3 = [[fp.plane.lift(p) for p in h] for h in holes]
            if reverse:
                outer3.reverse()
                for h in holes3:
                    h.reverse()
            mesh.add_polygon(outer3, holes3)


def _combine(a: Solid, b: Solid, operation: str) -> Solid:
    """Both operands as shells of one solid (they must not meet)."""
    builder = TopologyBuilder()
    try:
        shells = copy_topology(builder, a) + copy_topology(builder, b)
        builder.build_solid(shells)
        return builder.finalize()
    except ValidationError as exc:
        raise OperationError(operation, 'operands cannot be combined', exc.report) from exc
    except TopologyError as exc:
        raise OperationError(operation, str(exc)) from exc


def _planar(solid, operation, facet_curved):
    if solid.is_planar():
        return solid
    if not facet_curved:
        raise OperationError(operation,
                             'operands with curved faces need facet_curved=True')
    return facet_solid(solid)


def boolean(a: Solid, b: Solid, operation: str, facet_curved=False) -> Solid:
    """Run ``operation`` ('union', 'intersection' or 'difference') on two solids."""
    if operation not in _KEEP:
        raise OperationError(operation, 'unknown boolean operation')
    if not isinstance(a, Solid) or not isinstance(b, Solid):
        raise OperationError(operation, 'operands must be solids')

    if a.is_empty() or b.is_empty():
        if operation == 'union':
            return b if a.is_empty() else a
        if operation == 'difference':
            return a
        return Solid.empty()

    tol = get_config().distinct_min_distance
    if not solid_bbox(a).overlaps(solid_bbox(b), tol):
        logger.debug('boolean fast path', operation=operation)
        if operation == 'union':
            return _combine(a, b, operation)
        if operation == 'difference':
            return a
        return Solid.empty()

    a = _planar(a, operation, facet_curved)
    b = _planar(b, operation, facet_curved)
    keep_a, keep_b, reverse_b = _KEEP[operation]
    pa = _face_polys(a)
    pb = _face_polys(b)
    mesh = PolyMesh(tol)
    counts_a = Counter({c.value: 0 for c in Classification})
    counts_b = Counter({c.value: 0 for c in Classification})
    try:
        _fragments(pa, pb, b, keep_a, False, mesh, counts_a, tol)
        _fragments(pb, pa, a, keep_b, reverse_b, mesh, counts_b, tol)
    except MathError as exc:
        raise OperationError(operation, f'cannot classify faces: {exc}') from exc
    logger.debug('boolean classification', operation=operation,
                 a=dict(counts_a), b=dict(counts_b), polygons=len(mesh))
    return mesh.finalize(operation)


def union(a: Solid, b: Solid, facet_curved=False) -> Solid:
    return boolean(a, b, 'union', facet_curved)


def intersection(a: Solid, b: Solid, facet_curved=False) -> Solid:
    return boolean(a, b, 'intersection', facet_curved)


def difference(a: Solid, b: Solid, facet_curved=False) -> Solid:
    return boolean(a, b, 'difference', facet_curved)


__all__ = ['Classification', 'boolean', 'union', 'intersection', 'difference']
