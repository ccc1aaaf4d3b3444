"""Splitting a planar polygon along cut segments.

:func:`split_polygon` computes the planar arrangement of a polygon's
boundary together with a set of cut segments (all in 2D plane
coordinates) and returns the regions of the polygon it produces:

1. every segment is split at its intersections with every other one
2. split points are pooled within tolerance; dangling chains are pruned
3. regions are traced with the face kept on the left of each directed
   edge; edges with the same region on both sides are removed
4. clockwise traces become holes of the smallest region containing them
5. a region is kept when an interior point lies inside the original
   polygon; regions thinner than the tolerance are discarded

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Dict, List, Sequence, Set, Tuple

from brepcad.config import get_config
from brepcad.geom import (point_in_polygon_2d, point_in_region_2d,
                          polygon_signed_area_2d, segment_intersection_2d)
from brepcad.triangulator import triangulate_indices

Pt = Tuple[float, float]
Region = Tuple[List[Pt], List[List[Pt]]]


class _Pool:
    """2D points pooled on a tolerance grid."""

    def __init__(self, tol):
        self.tol = tol
        self.points: List[Pt] = []
        self._grid: Dict[Tuple[int, int], List[int]] = {}

    def add(self, p) -> int:
        tol = self.tol
        key = (math.floor(p[0] / tol), math.floor(p[1] / tol))
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for i in self._grid.get((key[0] + dx, key[1] + dy), ()):
                    q = self.points[i]
                    if math.hypot(q[0] - p[0], q[1] - p[1]) < tol:
                        return i
        self.points.append((float(p[0]), float(p[1])))
        self._grid.setdefault(key, []).append(len(self.points) - 1)
        return len(self.points) - 1


def _loop_segments(loop):
    n = len(loop)
    return [(loop[i], loop[(i + 1) % n]) for i in range(n)]


def _build_graph(segments, pool) -> Set[Tuple[int, int]]:
    tol = pool.tol
    splits: List[List[float]] = [[0.0, 1.0] for _ in segments]
    for i, (p, q) in enumerate(segments):
        for j in range(i + 1, len(segments)):
            r, s = segments[j]
            for t, u in segment_intersection_2d(p, q, r, s, tol):
                splits[i].append(t)
                splits[j].append(u)
    edges: Set[Tuple[int, int]] = set()
    for (p, q), ts in zip(segments, splits):
        ids = []
        for t in sorted(set(ts)):
            i = pool.add((p[0] + (q[0] - p[0]) * t, p[1] + (q[1] - p[1]) * t))
            if not ids or ids[-1] != i:
                ids.append(i)
        for a, b in zip(ids, ids[1:]):
            if a != b:
                edges.add((min(a, b), max(a, b)))
    return edges


def _prune(edges: Set[Tuple[int, int]]):
    while True:
        degree: Dict[int, int] = {}
        for a, b in edges:
            degree[a] = degree.get(a, 0) + 1
            degree[b] = degree.get(b, 0) + 1
        dangling = {e for e in edges if degree[e[0]] < 2 or degree[e[1]] < 2}
        if not dangling:
            return
        edges -= dangling


def _trace(edges, points) -> List[List[int]]:
    """Boundary walks of the arrangement, face on the left."""
    around: Dict[int, List[int]] = {}
    for a, b in edges:
        around.setdefault(a, []).append(b)
        around.setdefault(b, []).append(a)

    def _angle(frm, to):
        return math.atan2(points[to][1] - points[frm][1], points[to][0] - points[frm][0])

    for v, nb in around.items():
        nb.sort(key=lambda w: _angle(v, w))

    used: Set[Tuple[int, int]] = set()
    walks = []
    for a, b in edges:
        for start in ((a, b), (b, a)):
            if start in used:
                continue
            walk = []
            he = start
            while he not in used:
                used.add(he)
                walk.append(he[0])
                u, v = he
                nb = around[v]
                # next edge clockwise from the way back
                k = nb.index(u)
                he = (v, nb[k - 1])
            walks.append(walk)
    return walks


def _bridges(walks) -> Set[Tuple[int, int]]:
    found = set()
    for walk in walks:
        n = len(walk)
        directed = {(walk[i], walk[(i + 1) % n]) for i in range(n)}
        for a, b in directed:
            if (b, a) in directed:
                found.add((min(a, b), max(a, b)))
    return found


def interior_point(outer, holes):
    """Centroid of the largest triangle of the region, or ``None``."""
    points, tris = triangulate_indices(outer, holes)
    best = None
    best_area = 0.0
    for a, b, c in tris:
        pa, pb, pc = points[a], points[b], points[c]
        area = ((pb[0] - pa[0]) * (pc[1] - pa[1]) - (pc[0] - pa[0]) * (pb[1] - pa[1])) / 2.0
        if area > best_area:
            best_area = area
            best = ((pa[0] + pb[0] + pc[0]) / 3.0, (pa[1] + pb[1] + pc[1]) / 3.0)
    return best


def _perimeter(loop):
    return sum(math.hypot(b[0] - a[0], b[1] - a[1]) for a, b in _loop_segments(loop))


def split_polygon(outer: Sequence[Pt], holes: Sequence[Sequence[Pt]],
                  cuts: Sequence[Tuple[Pt, Pt]], tol=None) -> List[Region]:
    """Regions of the polygon ``outer`` minus ``holes`` cut by ``cuts``.

    ``outer`` winds counter-clockwise and ``holes`` clockwise.  Each region
    is returned as ``(outer, holes)`` with the same winding convention.
    Without effective cuts the result is the polygon itself.
    """
    if tol is None:
        tol = get_config().distinct_min_distance
    segments = []
    for loop in [outer] + list(holes):
        segments.extend(_loop_segments(loop))
    for p, q in cuts:
        if math.hypot(q[0] - p[0], q[1] - p[1]) > tol:
            segments.append((p, q))

    pool = _Pool(tol)
    edges = _build_graph(segments, pool)
    pts = pool.points
    _prune(edges)
    while True:
        walks = _trace(edges, pts)
        bridges = _bridges(walks)
        if not bridges:
            break
        edges -= bridges
        _prune(edges)

    positive = []
    negative = []
    for walk in walks:
        if len(walk) < 3:
            continue
        poly = [pts[i] for i in walk]
        area = polygon_signed_area_2d(poly)
        if area > 0.0:
            positive.append((area, poly))
        elif area < 0.0:
            negative.append(poly)
    positive.sort(key=lambda t: t[0])

    regions: List[Tuple[List[Pt], List[List[Pt]]]] = [(poly, []) for _, poly in positive]
    for poly in negative:
        for k, (_, container) in enumerate(positive):
            cls = [point_in_polygon_2d(p, container, tol) for p in poly]
            if min(cls) >= 0 and max(cls) > 0 and \
                    polygon_signed_area_2d(container) > -polygon_signed_area_2d(poly):
                regions[k][1].append(poly)
                break

    result = []
    for (area, _), (loop, inner) in zip(positive, regions):
        net = area + sum(polygon_signed_area_2d(h) for h in inner)
        if net <= tol * _perimeter(loop) * 0.5:
            continue
        sample = interior_point(loop, inner)
        if sample is None:
            continue
        if point_in_region_2d(sample, outer, holes, tol) > 0:
            result.append((loop, inner))
    return result


__all__ = ['split_polygon', 'interior_point']
