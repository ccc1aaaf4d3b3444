"""Foundational math primitives for **brepCAD**

====================
OVERVIEW
====================

The ``brepcad.geom`` module provides the scalar, point, vector, line,
plane and bounding box types that every other layer of the kernel is
built on.

scalars
=======

Scalars are ordinary Python ``float`` values.  They are never compared
with exact equality: the helpers ``close``, ``compare`` and ``is_zero``
apply the kernel tolerance ``epsilon`` (see :mod:`brepcad.config`).
Non-finite values are rejected with :class:`~brepcad.errors.MathError`.

points and vectors
==================

``Point2``/``Vector2`` and ``Point3``/``Vector3`` are immutable.  The
difference of two points is a vector, a point plus a vector is a point.
Equality is tolerance based, which also makes these types unhashable;
code that needs to bucket points does so explicitly with a grid.

Normalizing a vector whose magnitude is within ``epsilon`` of zero raises
``MathError`` rather than producing NaN.

lines, planes and boxes
=======================

``Line`` is an infinite line with unit direction.  ``Plane`` carries an
orthonormal ``(u_axis, v_axis)`` basis; its normal is ``u_axis x
v_axis`` and plane coordinates are right-handed with respect to that
normal.  ``Aabb`` is an axis-aligned bounding box.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import mpmath as mpm

from brepcad.config import get_config
from brepcad.errors import MathError

## constants
epsilon = get_config().epsilon
pi2 = 2.0 * math.pi


## operations on scalars
## -----------------------

def isgoodnum(n):
    """True if ``n`` is a real number and not a boolean."""
    return (not isinstance(n, bool)) and isinstance(n, numbers.Real)


def close(a, b, tol=None):
    """Are two scalars the same within ``tol`` (default ``epsilon``)."""
    if tol is None:
        tol = epsilon
    return abs(a - b) < tol


def compare(a, b, tol=None):
    """Tolerance-aware three way comparison: -1, 0 or 1."""
    if tol is None:
        tol = epsilon
    d = a - b
    if abs(d) < tol:
        return 0
    return 1 if d > 0 else -1


def is_zero(a, tol=None):
    if tol is None:
        tol = epsilon
    return abs(a) < tol


def _finite(value, name):
    if not isgoodnum(value):
        raise MathError(f'{name} must be a real number, got {value!r}')
    f = float(value)
    if not math.isfinite(f):
        raise MathError(f'{name} must be finite, got {f}')
    return f


def _coerce(obj, names):
    for name in names:
        object.__setattr__(obj, name, _finite(getattr(obj, name), name))


## vectors and points
## -------------------

@dataclass(frozen=True, eq=False)
class Vector3:
    x: float
    y: float
    z: float = 0.0

    def __post_init__(self):
        _coerce(self, ('x', 'y', 'z'))

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other):
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other):
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, s):
        if not isgoodnum(s):
            return NotImplemented
        return Vector3(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def __truediv__(self, s):
        if not isgoodnum(s):
            return NotImplemented
        if abs(s) < 1e-300:
            raise MathError('division of vector by zero')
        return Vector3(self.x / s, self.y / s, self.z / s)

    def __neg__(self):
        return Vector3(-self.x, -self.y, -self.z)

    def __eq__(self, other):
        if not isinstance(other, Vector3):
            return NotImplemented
        return (self - other).magnitude() < epsilon

    __hash__ = None

    def __repr__(self):
        return f'Vector3({self.x:g}, {self.y:g}, {self.z:g})'

    @property
    def xyz(self):
        return (self.x, self.y, self.z)

    def dot(self, other):
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other):
        return Vector3(self.y * other.z - self.z * other.y,
                       self.z * other.x - self.x * other.z,
                       self.x * other.y - self.y * other.x)

    def magnitude_squared(self):
        return self.x * self.x + self.y * self.y + self.z * self.z

    def magnitude(self):
        return math.sqrt(self.magnitude_squared())

    def is_zero(self, tol=None):
        if tol is None:
            tol = epsilon
        return self.magnitude() < tol

    def normalize(self):
        """Return the unit vector, raising ``MathError`` for a near-zero vector."""
        m = self.magnitude()
        if m < epsilon:
            raise MathError(f'cannot normalize near-zero vector {self!r}')
        return Vector3(self.x / m, self.y / m, self.z / m)

    def is_parallel(self, other, tol=None):
        """True if the vectors are (anti)parallel; both must be nonzero."""
        if tol is None:
            tol = epsilon
        a = self.normalize()
        b = other.normalize()
        return a.cross(b).magnitude() < tol

    def angle_to(self, other):
        """Unsigned angle in radians."""
        a = self.normalize()
        b = other.normalize()
        return math.atan2(a.cross(b).magnitude(), a.dot(b))

    def any_perpendicular(self):
        """A unit vector perpendicular to this one."""
        n = self.normalize()
        if abs(n.z) < 0.9:
            u = Vector3(n.y, -n.x, 0.0)
        else:
            u = Vector3(0.0, n.z, -n.y)
        return u.normalize()

    def to_point(self):
        return Point3(self.x, self.y, self.z)


@dataclass(frozen=True, eq=False)
class Point3:
    x: float
    y: float
    z: float = 0.0

    def __post_init__(self):
        _coerce(self, ('x', 'y', 'z'))

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other):
        if not isinstance(other, Vector3):
            return NotImplemented
        return Point3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other):
        if isinstance(other, Point3):
            return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)
        if isinstance(other, Vector3):
            return Point3(self.x - other.x, self.y - other.y, self.z - other.z)
        return NotImplemented

    def __eq__(self, other):
        if not isinstance(other, Point3):
            return NotImplemented
        return self.distance(other) < epsilon

    __hash__ = None

    def __repr__(self):
        return f'Point3({self.x:g}, {self.y:g}, {self.z:g})'

    @property
    def xyz(self):
        return (self.x, self.y, self.z)

    def distance_squared(self, other):
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def distance(self, other):
        return math.sqrt(self.distance_squared(other))

    def isclose(self, other, tol=None):
        if tol is None:
            tol = epsilon
        return self.distance(other) < tol

    def lerp(self, other, t):
        return Point3(self.x + (other.x - self.x) * t,
                      self.y + (other.y - self.y) * t,
                      self.z + (other.z - self.z) * t)

    def midpoint(self, other):
        return self.lerp(other, 0.5)

    def to_vector(self):
        return Vector3(self.x, self.y, self.z)


@dataclass(frozen=True, eq=False)
class Vector2:
    x: float
    y: float

    def __post_init__(self):
        _coerce(self, ('x', 'y'))

    def __iter__(self):
        yield self.x
        yield self.y

    def __add__(self, other):
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, s):
        if not isgoodnum(s):
            return NotImplemented
        return Vector2(self.x * s, self.y * s)

    __rmul__ = __mul__

    def __neg__(self):
        return Vector2(-self.x, -self.y)

    def __eq__(self, other):
        if not isinstance(other, Vector2):
            return NotImplemented
        return (self - other).magnitude() < epsilon

    __hash__ = None

    def __repr__(self):
        return f'Vector2({self.x:g}, {self.y:g})'

    def dot(self, other):
        return self.x * other.x + self.y * other.y

    def cross(self, other):
        """z component of the 3D cross product."""
        return self.x * other.y - self.y * other.x

    def magnitude(self):
        return math.hypot(self.x, self.y)

    def normalize(self):
        m = self.magnitude()
        if m < epsilon:
            raise MathError(f'cannot normalize near-zero vector {self!r}')
        return Vector2(self.x / m, self.y / m)

    def perpendicular(self):
        """Rotate by +90 degrees."""
        return Vector2(-self.y, self.x)


@dataclass(frozen=True, eq=False)
class Point2:
    x: float
    y: float

    def __post_init__(self):
        _coerce(self, ('x', 'y'))

    def __iter__(self):
        yield self.x
        yield self.y

    def __add__(self, other):
        if not isinstance(other, Vector2):
            return NotImplemented
        return Point2(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        if isinstance(other, Point2):
            return Vector2(self.x - other.x, self.y - other.y)
        if isinstance(other, Vector2):
            return Point2(self.x - other.x, self.y - other.y)
        return NotImplemented

    def __eq__(self, other):
        if not isinstance(other, Point2):
            return NotImplemented
        return self.distance(other) < epsilon

    __hash__ = None

    def __repr__(self):
        return f'Point2({self.x:g}, {self.y:g})'

    @property
    def xy(self):
        return (self.x, self.y)

    def distance(self, other):
        return math.hypot(self.x - other.x, self.y - other.y)

    def lerp(self, other, t):
        return Point2(self.x + (other.x - self.x) * t,
                      self.y + (other.y - self.y) * t)


def as_point3(p):
    """Convert a ``Point3`` or a 2/3 element sequence to a ``Point3``."""
    if isinstance(p, Point3):
        return p
    if isinstance(p, (Vector3, Point2)):
        return Point3(*p)
    if isinstance(p, (list, tuple)) and len(p) in (2, 3):
        return Point3(*p)
    raise MathError(f'cannot interpret {p!r} as a 3D point')


def as_vector3(v):
    if isinstance(v, Vector3):
        return v
    if isinstance(v, (Point3, Vector2)):
        return Vector3(*v)
    if isinstance(v, (list, tuple)) and len(v) in (2, 3):
        return Vector3(*v)
    raise MathError(f'cannot interpret {v!r} as a 3D vector')


def as_point2(p):
    if isinstance(p, Point2):
        return p
    if isinstance(p, (list, tuple)) and len(p) == 2:
        return Point2(*p)
    raise MathError(f'cannot interpret {p!r} as a 2D point')


def dist(a, b):
    """Distance between two points."""
    return a.distance(b)


def newell_normal(points: Sequence[Point3]) -> Vector3:
    """Unnormalized polygon normal by Newell's method.

    The magnitude is twice the polygon area; the direction follows the
    right-hand rule for the vertex order.
    """
    nx = ny = nz = 0.0
    count = len(points)
    for i in range(count):
        a = points[i]
        b = points[(i + 1) % count]
        nx += (a.y - b.y) * (a.z + b.z)
        ny += (a.z - b.z) * (a.x + b.x)
        nz += (a.x - b.x) * (a.y + b.y)
    return Vector3(nx, ny, nz)


def centroid(points: Iterable[Point3]) -> Point3:
    pts = list(points)
    if not pts:
        raise MathError('centroid of no points')
    n = float(len(pts))
    return Point3(sum(p.x for p in pts) / n,
                  sum(p.y for p in pts) / n,
                  sum(p.z for p in pts) / n)


## robust 2D predicates
## ---------------------

_ORIENT_ERRBOUND = 3.3306690738754716e-16


def orient2d(a, b, c):
    """Twice the signed area of triangle ``abc``.

    Positive when ``a, b, c`` wind counter-clockwise.  The float result is
    used when its sign is certain; otherwise the determinant is recomputed
    in extended precision with mpmath.  Arguments are ``(x, y)`` pairs or
    ``Point2``.
    """
    ax, ay = a[0], a[1]
    bx, by = b[0], b[1]
    cx, cy = c[0], c[1]
    detleft = (ax - cx) * (by - cy)
    detright = (ay - cy) * (bx - cx)
    det = detleft - detright
    errbound = _ORIENT_ERRBOUND * (abs(detleft) + abs(detright))
    if abs(det) > errbound:
        return det
    with mpm.workprec(256):
        exact = ((mpm.mpf(ax) - mpm.mpf(cx)) * (mpm.mpf(by) - mpm.mpf(cy)) -
                 (mpm.mpf(ay) - mpm.mpf(cy)) * (mpm.mpf(bx) - mpm.mpf(cx)))
        return float(exact)


def _xy(p):
    return (p[0], p[1])


def point_segment_distance_2d(p, a, b):
    ax, ay = a[0], a[1]
    dx = b[0] - ax
    dy = b[1] - ay
    l2 = dx * dx + dy * dy
    if l2 < 1e-300:
        return math.hypot(p[0] - ax, p[1] - ay)
    t = ((p[0] - ax) * dx + (p[1] - ay) * dy) / l2
    t = max(0.0, min(1.0, t))
    return math.hypot(p[0] - (ax + dx * t), p[1] - (ay + dy * t))


def segment_intersection_2d(p1, p2, q1, q2, tol=None):
    """Intersections of segments ``p1p2`` and ``q1q2``.

    Returns a list of ``(t, s)`` parameter pairs, ``t`` on the first
    segment and ``s`` on the second, both clamped to ``[0, 1]``.  Empty for
    disjoint segments, one pair for a crossing or touching point, two pairs
    (the ends of the shared stretch) for collinear overlaps.
    """
    if tol is None:
        tol = epsilon
    d1x, d1y = p2[0] - p1[0], p2[1] - p1[1]
    d2x, d2y = q2[0] - q1[0], q2[1] - q1[1]
    len1 = math.hypot(d1x, d1y)
    len2 = math.hypot(d2x, d2y)
    if len1 < tol or len2 < tol:
        return []

    # quick reject on padded boxes
    if (max(p1[0], p2[0]) + tol < min(q1[0], q2[0]) or
            max(q1[0], q2[0]) + tol < min(p1[0], p2[0]) or
            max(p1[1], p2[1]) + tol < min(q1[1], q2[1]) or
            max(q1[1], q2[1]) + tol < min(p1[1], p2[1])):
        return []

    dq1 = orient2d(p1, p2, q1) / len1
    dq2 = orient2d(p1, p2, q2) / len1
    if abs(dq1) <= tol and abs(dq2) <= tol:
        # collinear: project q onto p
        s0 = ((q1[0] - p1[0]) * d1x + (q1[1] - p1[1]) * d1y) / (len1 * len1)
        s1 = ((q2[0] - p1[0]) * d1x + (q2[1] - p1[1]) * d1y) / (len1 * len1)
        lo = max(0.0, min(s0, s1))
        hi = min(1.0, max(s0, s1))
        if (hi - lo) * len1 < -tol:
            return []

        def _s_of(t):
            px = p1[0] + d1x * t
            py = p1[1] + d1y * t
            s = ((px - q1[0]) * d2x + (py - q1[1]) * d2y) / (len2 * len2)
            return max(0.0, min(1.0, s))

        if (hi - lo) * len1 <= tol:
            t = max(0.0, min(1.0, (lo + hi) / 2.0))
            return [(t, _s_of(t))]
        return [(lo, _s_of(lo)), (hi, _s_of(hi))]

    denom = d1x * d2y - d1y * d2x
    if abs(denom) < 1e-300:
        return []
    wx, wy = q1[0] - p1[0], q1[1] - p1[1]
    t = (wx * d2y - wy * d2x) / denom
    s = (wx * d1y - wy * d1x) / denom
    ttol = tol / len1
    stol = tol / len2
    if t < -ttol or t > 1.0 + ttol or s < -stol or s > 1.0 + stol:
        return []
    return [(max(0.0, min(1.0, t)), max(0.0, min(1.0, s)))]


def polygon_signed_area_2d(poly):
    """Signed area of a 2D polygon, positive when counter-clockwise."""
    total = 0.0
    count = len(poly)
    for i in range(count):
        x0, y0 = poly[i][0], poly[i][1]
        x1, y1 = poly[(i + 1) % count][0], poly[(i + 1) % count][1]
        total += x0 * y1 - x1 * y0
    return total / 2.0


def point_in_polygon_2d(pt, poly, tol=None):
    """Classify ``pt`` against a closed 2D polygon.

    Returns 1 inside, 0 on the boundary (within ``tol``), -1 outside.
    """
    if tol is None:
        tol = epsilon
    count = len(poly)
    for i in range(count):
        if point_segment_distance_2d(pt, poly[i], poly[(i + 1) % count]) <= tol:
            return 0
    x, y = pt[0], pt[1]
    inside = False
    j = count - 1
    for i in range(count):
        xi, yi = poly[i][0], poly[i][1]
        xj, yj = poly[j][0], poly[j][1]
        if (yi > y) != (yj > y):
            xcross = xi + (y - yi) * (xj - xi) / (yj - yi)
            if x < xcross:
                inside = not inside
        j = i
    return 1 if inside else -1


def point_in_region_2d(pt, outer, holes=(), tol=None):
    """Classify ``pt`` against a polygon with holes (1, 0 or -1)."""
    c = point_in_polygon_2d(pt, outer, tol)
    if c <= 0:
        return c
    for hole in holes:
        h = point_in_polygon_2d(pt, hole, tol)
        if h == 0:
            return 0
        if h > 0:
            return -1
    return 1


def _segments(poly):
    n = len(poly)
    return [(poly[i], poly[(i + 1) % n]) for i in range(n)]


def polygon_self_intersects(poly, tol=None):
    """Does a closed polyline touch itself anywhere but at adjacent joints?"""
    if tol is None:
        tol = epsilon
    segs = _segments(poly)
    n = len(segs)
    order = sorted(range(n), key=lambda i: min(segs[i][0][0], segs[i][1][0]))
    active = []
    for i in order:
        p, q = segs[i]
        xmin = min(p[0], q[0])
        active = [j for j in active if max(segs[j][0][0], segs[j][1][0]) >= xmin - tol]
        for j in active:
            if abs(i - j) == 1 or abs(i - j) == n - 1:
                # adjacent segments share exactly one joint; look for overlap
                hits = segment_intersection_2d(p, q, segs[j][0], segs[j][1], tol)
                if len(hits) > 1:
                    return True
                continue
            if segment_intersection_2d(p, q, segs[j][0], segs[j][1], tol):
                return True
        active.append(i)
    return False


def polygons_cross(a, b, tol=None):
    """Do the boundaries of two closed polygons meet?"""
    if tol is None:
        tol = epsilon
    for p, q in _segments(a):
        for r, s in _segments(b):
            if segment_intersection_2d(p, q, r, s, tol):
                return True
    return False


## lines and planes
## -----------------

@dataclass(frozen=True, eq=False)
class Line:
    """Infinite line through ``origin`` with unit ``direction``."""

    origin: Point3
    direction: Vector3

    def __post_init__(self):
        object.__setattr__(self, 'origin', as_point3(self.origin))
        object.__setattr__(self, 'direction', as_vector3(self.direction).normalize())

    @classmethod
    def from_points(cls, a, b):
        a = as_point3(a)
        b = as_point3(b)
        if a.distance(b) < epsilon:
            raise MathError('cannot build a line from coincident points')
        return cls(a, b - a)

    def point_at(self, t):
        return self.origin + self.direction * t

    def parameter_of(self, p):
        return (as_point3(p) - self.origin).dot(self.direction)

    def closest_point(self, p):
        return self.point_at(self.parameter_of(p))

    def distance_to(self, p):
        p = as_point3(p)
        return p.distance(self.closest_point(p))

    def contains(self, p, tol=None):
        if tol is None:
            tol = epsilon
        return self.distance_to(p) < tol


@dataclass(frozen=True, eq=False)
class Plane:
    """Oriented plane with an orthonormal in-plane basis.

    ``u_axis`` is normalized and ``v_axis`` is orthogonalized against it,
    so any two independent directions are accepted.
    """

    origin: Point3
    u_axis: Vector3
    v_axis: Vector3

    def __post_init__(self):
        u = as_vector3(self.u_axis).normalize()
        v = as_vector3(self.v_axis)
        v = v - u * v.dot(u)
        if v.magnitude() < epsilon:
            raise MathError('plane axes must not be parallel')
        object.__setattr__(self, 'origin', as_point3(self.origin))
        object.__setattr__(self, 'u_axis', u)
        object.__setattr__(self, 'v_axis', v.normalize())

    @classmethod
    def from_points(cls, a, b, c):
        """Plane through three points, ``u`` along ``a -> b``."""
        a, b, c = as_point3(a), as_point3(b), as_point3(c)
        u = b - a
        v = c - a
        if u.magnitude() < epsilon or u.cross(v).magnitude() < epsilon * max(u.magnitude(), 1.0):
            raise MathError('plane points are collinear')
        return cls(a, u, v)

    @classmethod
    def from_normal(cls, origin, normal, u_hint=None):
        n = as_vector3(normal).normalize()
        if u_hint is not None:
            u = as_vector3(u_hint)
            u = u - n * u.dot(n)
            if u.magnitude() < epsilon:
                raise MathError('u_hint is parallel to the plane normal')
        else:
            u = n.any_perpendicular()
        u = u.normalize()
        return cls(origin, u, n.cross(u))

    @classmethod
    def xy(cls, z=0.0):
        return cls(Point3(0, 0, z), Vector3(1, 0, 0), Vector3(0, 1, 0))

    @classmethod
    def xz(cls, y=0.0):
        # normal is -y so that (x, z) coordinates stay right-handed
        return cls(Point3(0, y, 0), Vector3(1, 0, 0), Vector3(0, 0, 1))

    @classmethod
    def yz(cls, x=0.0):
        return cls(Point3(x, 0, 0), Vector3(0, 1, 0), Vector3(0, 0, 1))

    @property
    def normal(self):
        return self.u_axis.cross(self.v_axis)

    @property
    def offset(self):
        """Signed distance of the plane from the world origin."""
        return self.normal.dot(self.origin.to_vector())

    def signed_distance(self, p):
        return (as_point3(p) - self.origin).dot(self.normal)

    def contains(self, p, tol=None):
        if tol is None:
            tol = epsilon
        return abs(self.signed_distance(p)) < tol

    def project(self, p):
        """Plane coordinates of ``p`` (its orthogonal projection)."""
        d = as_point3(p) - self.origin
        return Point2(d.dot(self.u_axis), d.dot(self.v_axis))

    def project_xy(self, p):
        """Like :meth:`project` but returns a plain ``(u, v)`` tuple."""
        o = self.origin
        dx, dy, dz = p.x - o.x, p.y - o.y, p.z - o.z
        u, v = self.u_axis, self.v_axis
        return (dx * u.x + dy * u.y + dz * u.z, dx * v.x + dy * v.y + dz * v.z)

    def lift(self, uv):
        u, v = uv[0], uv[1]
        o = self.origin
        a, b = self.u_axis, self.v_axis
        return Point3(o.x + a.x * u + b.x * v,
                      o.y + a.y * u + b.y * v,
                      o.z + a.z * u + b.z * v)

    def flipped(self):
        """Same point set, opposite normal (plane coordinates swap)."""
        return Plane(self.origin, self.v_axis, self.u_axis)

    def translated(self, delta):
        return Plane(self.origin + as_vector3(delta), self.u_axis, self.v_axis)

    def is_parallel(self, other, tol=None):
        return self.normal.is_parallel(other.normal, tol)

    def is_coplanar(self, other, tol=None):
        if tol is None:
            tol = epsilon
        return self.is_parallel(other, tol) and abs(self.signed_distance(other.origin)) < tol

    def intersect_plane(self, other):
        """Line of intersection with ``other``, or ``None`` if parallel."""
        n1 = self.normal
        n2 = other.normal
        direction = n1.cross(n2)
        if direction.magnitude() < epsilon:
            return None
        d1 = n1.dot(self.origin.to_vector())
        d2 = n2.dot(other.origin.to_vector())
        k = n1.dot(n2)
        denom = 1.0 - k * k
        c1 = (d1 - d2 * k) / denom
        c2 = (d2 - d1 * k) / denom
        return Line((n1 * c1 + n2 * c2).to_point(), direction)

    def intersect_line(self, line):
        """Parameter along ``line`` where it meets the plane, or ``None``."""
        denom = line.direction.dot(self.normal)
        if abs(denom) < epsilon:
            return None
        return (self.origin - line.origin).dot(self.normal) / denom


## bounding boxes
## ---------------

@dataclass(frozen=True, eq=False)
class Aabb:
    min: Point3
    max: Point3

    @classmethod
    def from_points(cls, points: Iterable[Point3]):
        pts = list(points)
        if not pts:
            raise MathError('bounding box of no points')
        return cls(Point3(min(p.x for p in pts), min(p.y for p in pts), min(p.z for p in pts)),
                   Point3(max(p.x for p in pts), max(p.y for p in pts), max(p.z for p in pts)))

    def union(self, other):
        return Aabb(Point3(min(self.min.x, other.min.x), min(self.min.y, other.min.y),
                           min(self.min.z, other.min.z)),
                    Point3(max(self.max.x, other.max.x), max(self.max.y, other.max.y),
                           max(self.max.z, other.max.z)))

    def overlaps(self, other, tol=None):
        if tol is None:
            tol = epsilon
        return not (self.max.x < other.min.x - tol or self.min.x > other.max.x + tol or
                    self.max.y < other.min.y - tol or self.min.y > other.max.y + tol or
                    self.max.z < other.min.z - tol or self.min.z > other.max.z + tol)

    def contains(self, p, tol=None):
        if tol is None:
            tol = epsilon
        return (self.min.x - tol <= p.x <= self.max.x + tol and
                self.min.y - tol <= p.y <= self.max.y + tol and
                self.min.z - tol <= p.z <= self.max.z + tol)

    @property
    def size(self):
        return self.max - self.min

    @property
    def center(self):
        return self.min.midpoint(self.max)

    @property
    def extent(self):
        s = self.size
        return max(s.x, s.y, s.z)

    def expanded(self, d):
        pad = Vector3(d, d, d)
        return Aabb(self.min - pad, self.max + pad)

    def isclose(self, other, tol=None):
        return self.min.isclose(other.min, tol) and self.max.isclose(other.max, tol)


__all__ = [
    'epsilon', 'pi2', 'isgoodnum', 'close', 'compare', 'is_zero',
    'Vector3', 'Point3', 'Vector2', 'Point2',
    'as_point3', 'as_vector3', 'as_point2', 'dist', 'newell_normal', 'centroid',
    'orient2d', 'point_segment_distance_2d', 'segment_intersection_2d',
    'polygon_signed_area_2d', 'point_in_polygon_2d', 'point_in_region_2d',
    'polygon_self_intersects', 'polygons_cross',
    'Line', 'Plane', 'Aabb',
]
