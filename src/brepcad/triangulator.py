"""Triangulation helpers for brepCAD faces.

We delegate to ``mapbox-earcut`` (the fast ear clipping implementation
used by Mapbox GL).  The helpers here normalise loops given in surface
parameter space into the ring format earcut expects and convert the
resulting indices back into triangles.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import mapbox_earcut as _earcut
import numpy as np

from brepcad.geom import epsilon, polygon_signed_area_2d

Point2D = Tuple[float, float]


def triangulate_indices(outer: Sequence[Sequence[float]],
                        holes: Iterable[Sequence[Sequence[float]]] | None = None
                        ) -> Tuple[List[Point2D], List[Tuple[int, int, int]]]:
    """Triangulate ``outer`` minus ``holes``.

    Returns the cleaned vertex list (outer ring first, then each hole) and
    counter-clockwise index triples into it.  Degenerate loops (fewer than
    three distinct points) are ignored.
    """
    if holes is None:
        holes = []

    outer_loop = _prepare_loop(outer, want_ccw=True)
    if len(outer_loop) < 3:
        return [], []

    point_map: List[Point2D] = []
    ring_ends: List[int] = []

    def _append(loop: Sequence[Point2D]) -> None:
        point_map.extend(loop)
        ring_ends.append(len(point_map))

    _append(outer_loop)
    for hole in holes:
        loop = _prepare_loop(hole, want_ccw=False)
        if len(loop) < 3:
            continue
        _append(loop)

    vertices = np.asarray(point_map, dtype=np.float64)
    ring_array = np.asarray(ring_ends, dtype=np.uint32)
    indices = _earcut.triangulate_float64(vertices, ring_array)

    triangles: List[Tuple[int, int, int]] = []
    for i in range(0, len(indices), 3):
        a, b, c = int(indices[i]), int(indices[i + 1]), int(indices[i + 2])
        # earcut output winding is not guaranteed; force CCW
        if _tri_area(point_map[a], point_map[b], point_map[c]) < 0.0:
            b, c = c, b
        triangles.append((a, b, c))
    return point_map, triangles


def triangulate_polygon(outer: Sequence[Sequence[float]],
                        holes: Iterable[Sequence[Sequence[float]]] | None = None
                        ) -> List[List[Point2D]]:
    """Return CCW triangles, each a list of three ``(x, y)`` pairs."""
    points, tris = triangulate_indices(outer, holes)
    return [[points[a], points[b], points[c]] for a, b, c in tris]


def triangulate_slabs(outer: Sequence[Sequence[float]],
                      holes: Iterable[Sequence[Sequence[float]]] | None = None,
                      tol: float = epsilon
                      ) -> Tuple[List[Point2D], List[Tuple[int, int, int]]]:
    """Triangulate in vertical slabs between the boundary ``u`` values.

    No triangle spans more than one sampling interval in ``u``, which keeps
    triangles lifted onto a curved surface close to it.  Returns pooled
    points and counter-clockwise index triples like
    :func:`triangulate_indices`.
    """
    holes = [list(h) for h in (holes or [])]
    us = sorted(p[0] for loop in [outer] + holes for p in loop)
    breaks: List[float] = []
    for u in us:
        if not breaks or u - breaks[-1] > tol:
            breaks.append(float(u))

    points: List[Point2D] = []
    index = {}
    triangles: List[Tuple[int, int, int]] = []

    def _pool(p):
        key = (round(p[0] / tol), round(p[1] / tol))
        i = index.get(key)
        if i is None:
            i = len(points)
            index[key] = i
            points.append(p)
        return i

    for u0, u1 in zip(breaks, breaks[1:]):
        ring = _clip_slab(outer, u0, u1, tol)
        if len(ring) < 3:
            continue
        inner = [h for h in (_clip_slab(h, u0, u1, tol) for h in holes) if len(h) >= 3]
        pts, tris = triangulate_indices(ring, inner)
        ids = [_pool(p) for p in pts]
        for a, b, c in tris:
            if ids[a] != ids[b] and ids[b] != ids[c] and ids[a] != ids[c]:
                triangles.append((ids[a], ids[b], ids[c]))
    return points, triangles


def _clip_slab(loop, u0, u1, tol):
    return _clip(_clip(list(loop), u0, True, tol), u1, False, tol)


def _clip(loop, cut, keep_above, tol):
    # Sutherland-Hodgman against the half plane u >= cut (or u <= cut)
    out = []
    n = len(loop)
    for i in range(n):
        p = loop[i]
        q = loop[(i + 1) % n]
        dp = p[0] - cut if keep_above else cut - p[0]
        dq = q[0] - cut if keep_above else cut - q[0]
        if dp >= -tol:
            out.append((float(p[0]), float(p[1])))
        if (dp >= -tol) != (dq >= -tol) and abs(dp) > tol and abs(dq) > tol:
            t = dp / (dp - dq)
            out.append((cut, p[1] + (q[1] - p[1]) * t))
    return out


def _prepare_loop(points: Sequence[Sequence[float]], *, want_ccw: bool) -> List[Point2D]:
    loop: List[Point2D] = []
    for pt in points:
        x, y = float(pt[0]), float(pt[1])
        if loop and _near(loop[-1], (x, y)):
            continue
        loop.append((x, y))
    if loop and _near(loop[0], loop[-1]):
        loop.pop()
    if len(loop) < 3:
        return loop
    area = polygon_signed_area_2d(loop)
    if want_ccw and area < 0:
        loop.reverse()
    elif not want_ccw and area > 0:
        loop.reverse()
    return loop


def _near(p1: Point2D, p2: Point2D) -> bool:
    return abs(p1[0] - p2[0]) <= epsilon and abs(p1[1] - p2[1]) <= epsilon


def _tri_area(a: Point2D, b: Point2D, c: Point2D) -> float:
    return ((b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1])) / 2.0


__all__ = ['triangulate_indices', 'triangulate_polygon', 'triangulate_slabs']
