"""Reassembly of planar polygons into a validated solid.

Booleans and faceting produce a soup of planar polygons whose vertices
agree only up to round-off.  :class:`PolyMesh` turns such a soup into a
:class:`~brepcad.topology.Solid`:

1. vertices are pooled within tolerance (grid hash)
2. T-junctions are repaired by inserting pooled vertices that lie on a
   polygon edge into that edge
3. adjacent coplanar polygons with matching orientation are merged;
   their shared edges cancel and the remaining boundary is chained into
   outer loops and holes
4. collinear vertices of degree two are removed
5. polygons without area are dropped
6. edges shared by more than two polygons and vertices where polygons
   meet in separate fans are rejected as non-manifold contact
7. shells are the edge-connected components

The result goes through the builder, so any remaining defect surfaces
as an :class:`~brepcad.errors.OperationError` carrying the validation
report.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from brepcad.builder import TopologyBuilder
from brepcad.config import get_config
from brepcad.errors import MathError, OperationError, TopologyError, ValidationError
from brepcad.geom import (Plane, Point3, as_point3, newell_normal, point_in_polygon_2d,
                          polygon_signed_area_2d)
from brepcad.log import get_logger
from brepcad.topology import Solid

logger = get_logger(__name__)

Loop = List[int]


class _Polygon:
    __slots__ = ('outer', 'holes')

    def __init__(self, outer: Loop, holes: Sequence[Loop] = ()):
        self.outer = outer
        self.holes = list(holes)

    def loops(self):
        return [self.outer] + self.holes


def _find(parent, x):
    while parent[x] != x:
        parent[x] = parent[parent[x]]
        x = parent[x]
    return x


class PolyMesh:
    """Collects planar polygons and assembles them into a solid.

    Parameters
    ----------
    tol : float, optional
        Vertex pooling distance; defaults to ``distinct_min_distance``.
    """

    def __init__(self, tol: Optional[float] = None):
        if tol is None:
            tol = get_config().distinct_min_distance
        self.tol = tol
        self.points: List[Point3] = []
        self.polygons: List[_Polygon] = []
        self._grid: Dict[Tuple[int, int, int], List[int]] = {}

    def __len__(self):
        return len(self.polygons)

    def vertex(self, p) -> int:
        """Index of the pooled vertex within tolerance of ``p``."""
        p = as_point3(p)
        tol = self.tol
        key = (math.floor(p.x / tol), math.floor(p.y / tol), math.floor(p.z / tol))
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for dz in (-1, 0, 1):
                    for i in self._grid.get((key[0] + dx, key[1] + dy, key[2] + dz), ()):
                        if self.points[i].distance(p) < tol:
                            return i
        self.points.append(p)
        self._grid.setdefault(key, []).append(len(self.points) - 1)
        return len(self.points) - 1

    def _loop(self, points) -> Loop:
        loop = []
        for p in points:
            i = self.vertex(p)
            if not loop or loop[-1] != i:
                loop.append(i)
        while len(loop) > 1 and loop[0] == loop[-1]:
            loop.pop()
        return loop

    def add_polygon(self, points, holes=()):
        """Add a planar polygon; its normal follows the winding of ``points``.

        Holes wind the other way.  Loops that collapse under vertex pooling
        are ignored.
        """
        outer = self._loop(points)
        if len(outer) < 3:
            return
        inner = [h for h in (self._loop(hole) for hole in holes) if len(h) >= 3]
        self.polygons.append(_Polygon(outer, inner))

    ## cleanup passes
    ## ---------------

    def repair_t_junctions(self):
        """Insert pooled vertices lying inside polygon edges into those edges."""
        if not self.points:
            return 0
        pts = np.array([p.xyz for p in self.points], dtype=float)
        inserted = 0
        for poly in self.polygons:
            for k, loop in enumerate(poly.loops()):
                out = []
                n = len(loop)
                for i in range(n):
                    a, b = loop[i], loop[(i + 1) % n]
                    out.append(a)
                    out.extend(self._on_edge(pts, a, b))
                inserted += len(out) - n
                if k == 0:
                    poly.outer = out
                else:
                    poly.holes[k - 1] = out
        return inserted

    def _on_edge(self, pts, a, b):
        pa = pts[a]
        d = pts[b] - pa
        length = float(np.linalg.norm(d))
        if length < self.tol:
            return []
        lo = np.minimum(pa, pts[b]) - self.tol
        hi = np.maximum(pa, pts[b]) + self.tol
        cand = np.nonzero(np.all((pts >= lo) & (pts <= hi), axis=1))[0]
        found = []
        for c in cand:
            if c == a or c == b:
                continue
            t = float(np.dot(pts[c] - pa, d)) / (length * length)
            if t * length <= self.tol or (1.0 - t) * length <= self.tol:
                continue
            if float(np.linalg.norm(pa + d * t - pts[c])) < self.tol:
                found.append((t, int(c)))
        found.sort()
        return [c for _, c in found]

    def _plane(self, poly) -> Optional[Plane]:
        pts = [self.points[i] for i in poly.outer]
        n = newell_normal(pts)
        if n.magnitude() < self.tol * self.tol:
            return None
        return Plane.from_normal(pts[0], n.normalize())

    def merge_coplanar(self):
        """Merge edge-adjacent coplanar polygons facing the same way."""
        planes = [self._plane(p) for p in self.polygons]
        directed: Dict[Tuple[int, int], List[int]] = {}
        for pi, poly in enumerate(self.polygons):
            for loop in poly.loops():
                n = len(loop)
                for i in range(n):
                    directed.setdefault((loop[i], loop[(i + 1) % n]), []).append(pi)

        parent = list(range(len(self.polygons)))
        for (a, b), owners in directed.items():
            for pi in owners:
                for pj in directed.get((b, a), ()):
                    if pi == pj or planes[pi] is None or planes[pj] is None:
                        continue
                    if self._coplanar(planes[pi], pj, planes[pj]):
                        ri, rj = _find(parent, pi), _find(parent, pj)
                        if ri != rj:
                            parent[max(ri, rj)] = min(ri, rj)

        groups: Dict[int, List[int]] = {}
        for pi in range(len(self.polygons)):
            groups.setdefault(_find(parent, pi), []).append(pi)
        merged = []
        for root, members in groups.items():
            if len(members) == 1:
                merged.append(self.polygons[members[0]])
                continue
            merged.extend(self._merge_group([self.polygons[i] for i in members], planes[root]))
        count = len(self.polygons) - len(merged)
        self.polygons = merged
        return count

    def _coplanar(self, plane, pj, other) -> bool:
        if plane.normal.dot(other.normal) < 1.0 - 1e-6:
            return False
        return all(abs(plane.signed_distance(self.points[i])) < self.tol
                   for i in self.polygons[pj].outer)

    def _merge_group(self, polys, plane):
        edges: Dict[Tuple[int, int], int] = {}
        for poly in polys:
            for loop in poly.loops():
                n = len(loop)
                for i in range(n):
                    e = (loop[i], loop[(i + 1) % n])
                    rev = (e[1], e[0])
                    if edges.get(rev, 0) > 0:
                        edges[rev] -= 1
                    else:
                        edges[e] = edges.get(e, 0) + 1
        remaining = [e for e, c in edges.items() for _ in range(c)]
        uv = {i: plane.project_xy(self.points[i]) for e in remaining for i in e}
        loops = _chain(remaining, uv)
        return _assemble(loops, uv)

    def remove_collinear(self):
        """Drop vertices with exactly two neighbours on a straight line."""
        removed = 0
        while True:
            neighbours: Dict[int, set] = {}
            for poly in self.polygons:
                for loop in poly.loops():
                    n = len(loop)
                    for i in range(n):
                        a, b = loop[i], loop[(i + 1) % n]
                        neighbours.setdefault(a, set()).add(b)
                        neighbours.setdefault(b, set()).add(a)
            drop = set()
            for v, nb in neighbours.items():
                if len(nb) != 2:
                    continue
                a, b = (self.points[i] for i in nb)
                p = self.points[v]
                ab = b - a
                if ab.magnitude() < self.tol:
                    continue
                if ab.cross(p - a).magnitude() / ab.magnitude() < self.tol:
                    drop.add(v)
            if not drop:
                return removed
            # drop one vertex per neighbourhood per round
            chosen = set()
            blocked = set()
            for v in sorted(drop):
                if v in blocked:
                    continue
                chosen.add(v)
                blocked.update(neighbours[v])
            for poly in self.polygons:
                poly.outer = [i for i in poly.outer if i not in chosen]
                poly.holes = [[i for i in h if i not in chosen] for h in poly.holes]
            removed += len(chosen)

    def drop_degenerate(self):
        """Remove polygons (and holes) that enclose no area."""
        kept = []
        for poly in self.polygons:
            if not self._has_area(poly.outer):
                continue
            poly.holes = [h for h in poly.holes if self._has_area(h)]
            kept.append(poly)
        count = len(self.polygons) - len(kept)
        self.polygons = kept
        return count

    def _has_area(self, loop) -> bool:
        if len(loop) < 3:
            return False
        pts = [self.points[i] for i in loop]
        perimeter = sum(pts[i].distance(pts[(i + 1) % len(pts)]) for i in range(len(pts)))
        return newell_normal(pts).magnitude() / 2.0 > self.tol * perimeter * 0.5

    def shells(self) -> List[List[int]]:
        """Polygon indices grouped by edge connectivity."""
        parent = list(range(len(self.polygons)))
        owner: Dict[Tuple[int, int], int] = {}
        for pi, poly in enumerate(self.polygons):
            for loop in poly.loops():
                n = len(loop)
                for i in range(n):
                    a, b = loop[i], loop[(i + 1) % n]
                    key = (min(a, b), max(a, b))
                    other = owner.setdefault(key, pi)
                    ri, rj = _find(parent, pi), _find(parent, other)
                    if ri != rj:
                        parent[max(ri, rj)] = min(ri, rj)
        groups: Dict[int, List[int]] = {}
        for pi in range(len(self.polygons)):
            groups.setdefault(_find(parent, pi), []).append(pi)
        return [groups[k] for k in sorted(groups)]

    def check_manifold(self, operation: str = 'polymesh') -> None:
        """Reject edges used by more than two polygons and pinched vertices.

        A vertex is pinched when the polygon corners meeting there do not
        form a single fan, as where two solids touch at one point.

        Raises
        ------
        OperationError
            With ``details['contact']`` set to ``'edge'`` or ``'vertex'``.
        """
        uses: Dict[Tuple[int, int], int] = {}
        corners: Dict[int, List[Tuple[int, int]]] = {}
        for poly in self.polygons:
            for loop in poly.loops():
                n = len(loop)
                for i in range(n):
                    a, b = loop[i], loop[(i + 1) % n]
                    key = (min(a, b), max(a, b))
                    uses[key] = uses.get(key, 0) + 1
                    corners.setdefault(a, []).append((loop[i - 1], b))
        for (a, b), count in uses.items():
            if count > 2:
                raise self._contact(operation, 'edge', (a, b), f'edge shared by {count} faces')
        for v, fans in corners.items():
            parent = list(range(len(fans)))
            first = {}
            for k, pair in enumerate(fans):
                for w in pair:
                    j = first.setdefault(w, k)
                    ri, rj = _find(parent, k), _find(parent, j)
                    if ri != rj:
                        parent[max(ri, rj)] = min(ri, rj)
            if len({_find(parent, k) for k in range(len(fans))}) > 1:
                raise self._contact(operation, 'vertex', (v,), 'faces meet only at a vertex')

    def _contact(self, operation, kind, indices, what):
        points = [self.points[i].xyz for i in indices]
        return OperationError(
            operation, f'non-manifold contact: {what} at {points[0]}',
            details={'contact': kind, 'points': points})

    ## assembly
    ## ---------

    def finalize(self, operation: str = 'polymesh') -> Solid:
        """Clean up the soup and build the validated solid.

        Raises
        ------
        OperationError
            If the cleaned polygons touch in a non-manifold way or do
            not form a valid solid; the validation report is attached
            when there is one.
        """
        tjunctions = self.repair_t_junctions()
        dropped = self.drop_degenerate()
        merged = self.merge_coplanar()
        collinear = self.remove_collinear()
        dropped += self.drop_degenerate()
        logger.debug('polymesh cleanup', operation=operation, polygons=len(self.polygons),
                     t_junctions=tjunctions, merged=merged, collinear=collinear,
                     dropped=dropped)
        if not self.polygons:
            return Solid.empty()
        self.check_manifold(operation)

        b = TopologyBuilder()
        handles = {}

        def _vh(i):
            if i not in handles:
                handles[i] = b.build_vertex(self.points[i])
            return handles[i]

        try:
            shells = []
            for group in self.shells():
                faces = []
                for pi in group:
                    poly = self.polygons[pi]
                    faces.append(b.build_planar_face([_vh(i) for i in poly.outer],
                                                     [[_vh(i) for i in h] for h in poly.holes]))
                shells.append(b.build_shell(faces))
            b.build_solid(shells)
            return b.finalize()
        except ValidationError as exc:
            raise OperationError(operation, 'result is not a valid solid', exc.report) from exc
        except (TopologyError, MathError) as exc:
            raise OperationError(operation, str(exc)) from exc


## boundary chaining
## ------------------

def _chain(edges, uv) -> List[Loop]:
    """Chain directed edges into closed loops, splitting at pinch vertices.

    At a vertex with several outgoing edges the one turning most sharply
    to the left is taken, which keeps each loop simple.
    """
    outgoing: Dict[int, List[int]] = {}
    for a, b in edges:
        outgoing.setdefault(a, []).append(b)

    def _angle(frm, to):
        return math.atan2(uv[to][1] - uv[frm][1], uv[to][0] - uv[frm][0])

    loops = []
    while any(outgoing.values()):
        start = next(a for a, bs in outgoing.items() if bs)
        loop = [start]
        prev, cur = start, outgoing[start].pop()
        while cur != start:
            loop.append(cur)
            options = outgoing.get(cur)
            if not options:
                raise OperationError('polymesh', 'merged face boundary is open')
            back = _angle(cur, prev)
            # smallest clockwise turn from the way back
            best = min(options, key=lambda w: (back - _angle(cur, w)) % (2.0 * math.pi) or
                       2.0 * math.pi)
            options.remove(best)
            prev, cur = cur, best
        loops.extend(_split_pinches(loop))
    return loops


def _split_pinches(loop: Loop) -> List[Loop]:
    seen: Dict[int, int] = {}
    for i, v in enumerate(loop):
        if v in seen:
            j = seen[v]
            inner = loop[j:i]
            rest = loop[:j] + loop[i:]
            return _split_pinches(inner) + _split_pinches(rest)
        seen[v] = i
    return [loop]


def _assemble(loops: List[Loop], uv) -> List[_Polygon]:
    """Sort loops into outer boundaries and holes."""
    outers = []
    holes = []
    for loop in loops:
        if len(loop) < 3:
            continue
        poly = [uv[i] for i in loop]
        area = polygon_signed_area_2d(poly)
        (outers if area > 0.0 else holes).append((abs(area), loop, poly))
    outers.sort(key=lambda t: t[0])
    result = [_Polygon(loop) for _, loop, _ in outers]
    for _, loop, poly in holes:
        for k, (_, _, opoly) in enumerate(outers):
            inside = [point_in_polygon_2d(p, opoly) for p in poly]
            if min(inside) >= 0 and max(inside) > 0:
                result[k].holes.append(loop)
                break
        else:
            raise OperationError('polymesh', 'merged face has a hole outside every boundary')
    return result


__all__ = ['PolyMesh']
