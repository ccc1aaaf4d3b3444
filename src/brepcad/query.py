"""Measurements and point classification for brepCAD solids.

Point containment uses ray casting against the triangulated boundary
(Möller–Trumbore intersection, vectorised with numpy).  A point closer
than the tolerance to the boundary is ``ON_BOUNDARY``; otherwise three
skewed rays vote and the majority decides.  Rays that graze a triangle
edge or vertex are ambiguous and are replaced by the next direction.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from brepcad.config import get_config
from brepcad.curves import curve_bbox
from brepcad.errors import MathError
from brepcad.geom import Aabb, Point3, as_point3, epsilon
from brepcad.tessellate import shell_triangles, triangulate_face


class Containment(Enum):
    INSIDE = 'inside'
    OUTSIDE = 'outside'
    ON_BOUNDARY = 'on_boundary'


# unit vectors, deliberately not aligned with any axis or diagonal
_RAY_DIRECTIONS = tuple(
    np.array(d, dtype=float) / np.linalg.norm(d) for d in (
        (0.5773, 0.5774, 0.5775),
        (-0.7071, 0.3162, 0.6325),
        (0.2673, -0.8018, 0.5345),
        (0.9128, 0.1826, -0.3651),
        (-0.3015, -0.9045, -0.3015),
        (0.4082, 0.8165, -0.4082),
        (-0.8729, 0.2182, -0.4364),
    ))


class TriangleSet:
    """Array form of a list of triangles for vectorised queries."""

    def __init__(self, triangles: Sequence[Tuple[Point3, Point3, Point3]]):
        if triangles:
            arr = np.array([[a.xyz, b.xyz, c.xyz] for a, b, c in triangles], dtype=float)
        else:
            arr = np.zeros((0, 3, 3), dtype=float)
        self.a = arr[:, 0, :]
        self.e1 = arr[:, 1, :] - self.a
        self.e2 = arr[:, 2, :] - self.a
        self.normals = np.cross(self.e1, self.e2)
        self.lo = arr.min(axis=1) if len(arr) else np.zeros((0, 3))
        self.hi = arr.max(axis=1) if len(arr) else np.zeros((0, 3))
        self.triangles = arr

    def __len__(self):
        return len(self.a)

    def volume(self) -> float:
        if not len(self):
            return 0.0
        b = self.a + self.e1
        c = self.a + self.e2
        return float(np.einsum('ij,ij->i', self.a, np.cross(b, c)).sum() / 6.0)

    def area(self) -> float:
        return float(np.linalg.norm(self.normals, axis=1).sum() / 2.0)

    def bbox(self) -> Optional[Aabb]:
        if not len(self):
            return None
        lo = self.lo.min(axis=0)
        hi = self.hi.max(axis=0)
        return Aabb(Point3(*lo), Point3(*hi))

    def ray_hits(self, origin, direction, tol=1e-9):
        """Ray parameters of hits, or ``None`` when the ray is ambiguous.

        A ray is ambiguous if it runs within the plane of a triangle it
        touches or if a hit lands within ``tol`` of a triangle edge.
        """
        if not len(self):
            return []
        o = np.asarray(origin, dtype=float)
        d = np.asarray(direction, dtype=float)
        h = np.cross(d, self.e2)
        det = np.einsum('ij,ij->i', self.e1, h)
        parallel = np.abs(det) < 1e-14
        safe = np.where(parallel, 1.0, det)
        f = 1.0 / safe
        s = o - self.a
        u = f * np.einsum('ij,ij->i', s, h)
        q = np.cross(s, self.e1)
        v = f * np.einsum('j,ij->i', d, q)
        t = f * np.einsum('ij,ij->i', self.e2, q)
        w = 1.0 - u - v

        inside = (~parallel) & (u >= -tol) & (v >= -tol) & (w >= -tol) & (t > epsilon)
        if not inside.any():
            return []
        graze = inside & ((np.abs(u) <= tol) | (np.abs(v) <= tol) | (np.abs(w) <= tol))
        if graze.any():
            return None
        return sorted(t[inside].tolist())

    def segment_hits(self, p, q, tol=1e-9) -> bool:
        """True if segment ``pq`` meets any triangle, touching included."""
        if not len(self):
            return False
        p = np.asarray(p, dtype=float)
        q = np.asarray(q, dtype=float)
        lo = np.minimum(p, q)
        hi = np.maximum(p, q)
        cand = np.all((self.lo - tol <= hi) & (lo <= self.hi + tol), axis=1)
        if not cand.any():
            return False
        length = float(np.linalg.norm(q - p))
        if length == 0.0:
            return False
        d = (q - p) / length
        a = self.a[cand]
        e1 = self.e1[cand]
        e2 = self.e2[cand]
        h = np.cross(d, e2)
        det = np.einsum('ij,ij->i', e1, h)
        ok = np.abs(det) >= 1e-14
        f = 1.0 / np.where(ok, det, 1.0)
        s = p - a
        u = f * np.einsum('ij,ij->i', s, h)
        qv = np.cross(s, e1)
        v = f * np.einsum('j,ij->i', d, qv)
        t = f * np.einsum('ij,ij->i', e2, qv)
        hit = ok & (u >= -tol) & (v >= -tol) & (u + v <= 1.0 + tol) & \
            (t >= -tol) & (t <= length + tol)
        return bool(hit.any())

    def distance(self, p) -> float:
        """Distance from ``p`` to the nearest triangle."""
        if not len(self):
            return math.inf
        x = np.asarray(p, dtype=float)
        best = math.inf
        for tri in self.triangles:
            best = min(best, _point_triangle_distance(x, tri[0], tri[1], tri[2]))
            if best == 0.0:
                break
        return best

    def near(self, p, tol) -> bool:
        """True if ``p`` is within ``tol`` of some triangle."""
        if not len(self):
            return False
        x = np.asarray(p, dtype=float)
        cand = np.all((self.lo - tol <= x) & (x <= self.hi + tol), axis=1)
        for tri in self.triangles[cand]:
            if _point_triangle_distance(x, tri[0], tri[1], tri[2]) <= tol:
                return True
        return False

    def classify(self, p, tol=None, boundary=True) -> Containment:
        """Classify ``p`` against the closed surface.

        With ``boundary`` false the proximity test is skipped and the rays
        alone decide between ``INSIDE`` and ``OUTSIDE``.
        """
        if tol is None:
            tol = get_config().distinct_min_distance
        p = as_point3(p)
        x = p.xyz
        if boundary and self.near(x, tol):
            return Containment.ON_BOUNDARY
        if not len(self):
            return Containment.OUTSIDE
        lo = self.lo.min(axis=0)
        hi = self.hi.max(axis=0)
        if np.any(np.asarray(x) < lo - tol) or np.any(np.asarray(x) > hi + tol):
            return Containment.OUTSIDE
        votes = []
        for d in _RAY_DIRECTIONS:
            hits = self.ray_hits(x, d)
            if hits is None:
                continue
            votes.append(len(hits) % 2 == 1)
            if len(votes) == 3:
                break
        if not votes:
            raise MathError(f'cannot classify point {p!r}: every ray is ambiguous')
        inside = sum(votes) * 2 > len(votes)
        return Containment.INSIDE if inside else Containment.OUTSIDE


def _point_triangle_distance(p, a, b, c):
    # Ericson, Real-Time Collision Detection, 5.1.5
    ab = b - a
    ac = c - a
    ap = p - a
    d1 = ab @ ap
    d2 = ac @ ap
    if d1 <= 0.0 and d2 <= 0.0:
        return float(np.linalg.norm(p - a))
    bp = p - b
    d3 = ab @ bp
    d4 = ac @ bp
    if d3 >= 0.0 and d4 <= d3:
        return float(np.linalg.norm(p - b))
    vc = d1 * d4 - d3 * d2
    if vc <= 0.0 and d1 >= 0.0 and d3 <= 0.0:
        v = d1 / (d1 - d3)
        return float(np.linalg.norm(p - (a + ab * v)))
    cp = p - c
    d5 = ab @ cp
    d6 = ac @ cp
    if d6 >= 0.0 and d5 <= d6:
        return float(np.linalg.norm(p - c))
    vb = d5 * d2 - d1 * d6
    if vb <= 0.0 and d2 >= 0.0 and d6 <= 0.0:
        w = d2 / (d2 - d6)
        return float(np.linalg.norm(p - (a + ac * w)))
    va = d3 * d6 - d5 * d4
    if va <= 0.0 and (d4 - d3) >= 0.0 and (d5 - d6) >= 0.0:
        w = (d4 - d3) / ((d4 - d3) + (d5 - d6))
        return float(np.linalg.norm(p - (b + (c - b) * w)))
    denom = va + vb + vc
    if abs(denom) < 1e-300:
        return float(np.linalg.norm(p - a))
    v = vb / denom
    w = vc / denom
    return float(np.linalg.norm(p - (a + ab * v + ac * w)))


## solid level queries
## --------------------

def solid_triangles(solid) -> TriangleSet:
    tris = []
    for fh in solid.iter_faces():
        tris.extend(triangulate_face(solid, fh))
    return TriangleSet(tris)


def shell_volume(view, shell) -> float:
    """Signed volume enclosed by ``shell``; negative for voids."""
    return TriangleSet(shell_triangles(view, shell)).volume()


def solid_volume(solid) -> float:
    """Net volume: outer shells minus voids."""
    return sum(shell_volume(solid, sh) for sh in solid.shells())


def surface_area(solid) -> float:
    return solid_triangles(solid).area()


def solid_bbox(solid) -> Optional[Aabb]:
    """Bounding box of the solid, ``None`` for the empty solid."""
    if solid.is_empty():
        return None
    box = None
    for e in solid.edges:
        b = curve_bbox(e.curve)
        box = b if box is None else box.union(b)
    return box


def contains_point(solid, p, tol=None) -> Containment:
    return solid_triangles(solid).classify(p, tol)


def solids_equivalent(a, b, tol=None) -> bool:
    """Do two solids describe the same point set (within tolerance)?

    Compares shell counts, volumes and bounding boxes, then checks that
    every vertex of each solid lies on the boundary of the other.
    """
    if tol is None:
        tol = get_config().distinct_min_distance * 10
    if a.is_empty() or b.is_empty():
        return a.is_empty() and b.is_empty()
    if len(a.outer_shells()) != len(b.outer_shells()):
        return False
    if len(a.void_shells()) != len(b.void_shells()):
        return False
    ta = solid_triangles(a)
    tb = solid_triangles(b)
    va = ta.volume()
    vb = tb.volume()
    if abs(va - vb) > max(tol, 1e-6 * max(abs(va), abs(vb))):
        return False
    ba = solid_bbox(a)
    bb = solid_bbox(b)
    if not ba.isclose(bb, max(tol, 1e-6 * ba.extent)):
        return False
    for v in a.vertices:
        if not tb.near(v.point.xyz, tol):
            return False
    for v in b.vertices:
        if not ta.near(v.point.xyz, tol):
            return False
    return True


def euler_characteristic(solid, shell) -> int:
    """``V - E + F`` for one shell (2 for a sphere-like shell)."""
    faces = solid.shell_faces(shell)
    edges = set()
    verts = set()
    for fh in faces:
        ext, ints = solid.face_cycles(fh)
        for ch in (ext,) + ints:
            for he in solid.cycle_half_edges(ch):
                e = solid.half_edge(he).edge
                edges.add(e)
                s, t = solid.edge(e).start, solid.edge(e).end
                verts.add(s)
                verts.add(t)
    return len(verts) - len(edges) + len(faces)


__all__ = ['Containment', 'TriangleSet', 'solid_triangles', 'shell_volume',
           'solid_volume', 'surface_area', 'solid_bbox', 'contains_point',
           'solids_equivalent', 'euler_characteristic']
