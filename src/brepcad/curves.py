"""Parametric curves for brepCAD.

The curve family is closed: :class:`LineCurve`, :class:`CircleCurve` and
:class:`BSplineCurve`.  Every curve is immutable, carries a ``kind`` tag
and is parametrized over the normalized domain ``[0, 1]``.  The module
level functions dispatch on ``kind``; an unknown curve type is a
:class:`~brepcad.errors.MathError`.

Circles are parametrized by angle: ``t`` maps linearly onto
``[start_angle, end_angle]``, measured from ``x_axis`` towards
``normal x x_axis``.  A negative sweep runs clockwise about ``normal``.

B-spline evaluation uses the Cox--de Boor recursion; knot vectors are
mapped onto ``[0, 1]`` through their active span.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, List, Optional, Sequence, Tuple

from brepcad.config import get_config
from brepcad.errors import MathError
from brepcad.geom import (Aabb, Point3, Vector3, as_point3, as_vector3,
                          epsilon, isgoodnum, pi2)


@dataclass(frozen=True, eq=False)
class LineCurve:
    start: Point3
    end: Point3
    kind: ClassVar[str] = 'line'

    def __post_init__(self):
        object.__setattr__(self, 'start', as_point3(self.start))
        object.__setattr__(self, 'end', as_point3(self.end))
        if self.start.distance(self.end) < epsilon:
            raise MathError('zero-length line')


@dataclass(frozen=True, eq=False)
class CircleCurve:
    center: Point3
    radius: float
    normal: Vector3
    x_axis: Vector3
    start_angle: float = 0.0
    end_angle: float = pi2
    kind: ClassVar[str] = 'circle'

    def __post_init__(self):
        if not isgoodnum(self.radius) or self.radius < epsilon:
            raise MathError(f'circle radius must be positive, got {self.radius!r}')
        n = as_vector3(self.normal).normalize()
        x = as_vector3(self.x_axis)
        x = x - n * x.dot(n)
        if x.magnitude() < epsilon:
            raise MathError('circle x_axis is parallel to its normal')
        sweep = float(self.end_angle) - float(self.start_angle)
        if abs(sweep) < epsilon or abs(sweep) > pi2 + epsilon:
            raise MathError(f'circle sweep must be in (0, 2*pi], got {sweep}')
        object.__setattr__(self, 'center', as_point3(self.center))
        object.__setattr__(self, 'radius', float(self.radius))
        object.__setattr__(self, 'normal', n)
        object.__setattr__(self, 'x_axis', x.normalize())
        object.__setattr__(self, 'start_angle', float(self.start_angle))
        object.__setattr__(self, 'end_angle', float(self.end_angle))

    @property
    def y_axis(self):
        return self.normal.cross(self.x_axis)

    @property
    def sweep(self):
        return self.end_angle - self.start_angle

    @classmethod
    def full(cls, center, radius, normal=Vector3(0, 0, 1), x_axis=None):
        n = as_vector3(normal)
        if x_axis is None:
            x_axis = n.any_perpendicular()
        return cls(center, radius, n, x_axis, 0.0, pi2)

    @classmethod
    def arc(cls, center, start, end, normal=Vector3(0, 0, 1)):
        """Counter-clockwise arc about ``normal`` from ``start`` to ``end``.

        ``start`` and ``end`` must be equidistant from ``center``; if they
        coincide the result is a full circle.  Pass a negated normal for a
        clockwise arc.
        """
        center = as_point3(center)
        start = as_point3(start)
        end = as_point3(end)
        n = as_vector3(normal).normalize()
        rs = start - center
        re = end - center
        radius = rs.magnitude()
        if radius < epsilon:
            raise MathError('arc start coincides with its center')
        if abs(re.magnitude() - radius) > max(epsilon, radius * 1e-9) * 10:
            raise MathError('arc end is not on the circle through start')
        if abs(rs.dot(n)) > epsilon or abs(re.dot(n)) > epsilon:
            raise MathError('arc endpoints are not in the plane of the normal')
        x_axis = rs.normalize()
        y_axis = n.cross(x_axis)
        angle = math.atan2(re.dot(y_axis), re.dot(x_axis))
        if angle <= epsilon:
            angle += pi2
        if start.distance(end) < epsilon:
            angle = pi2
        return cls(center, radius, n, x_axis, 0.0, angle)


@dataclass(frozen=True, eq=False)
class BSplineCurve:
    control_points: Tuple[Point3, ...]
    degree: int
    knots: Tuple[float, ...]
    weights: Optional[Tuple[float, ...]] = None
    kind: ClassVar[str] = 'bspline'

    def __post_init__(self):
        ctrl = tuple(as_point3(p) for p in self.control_points)
        degree = self.degree
        if isinstance(degree, bool) or not isinstance(degree, int) or degree < 1:
            raise MathError(f'degree must be a positive integer, got {degree!r}')
        if len(ctrl) < degree + 1:
            raise MathError('not enough control points for the degree')
        knots = tuple(float(k) for k in self.knots)
        if len(knots) != len(ctrl) + degree + 1:
            raise MathError(f'expected {len(ctrl) + degree + 1} knots, got {len(knots)}')
        if any(b < a for a, b in zip(knots, knots[1:])):
            raise MathError('knot vector must be non-decreasing')
        if knots[-degree - 1] - knots[degree] < epsilon:
            raise MathError('knot vector has an empty active span')
        weights = self.weights
        if weights is not None:
            weights = tuple(float(w) for w in weights)
            if len(weights) != len(ctrl):
                raise MathError('one weight per control point is required')
            if any(w <= 0.0 for w in weights):
                raise MathError('weights must be positive')
        object.__setattr__(self, 'control_points', ctrl)
        object.__setattr__(self, 'knots', knots)
        object.__setattr__(self, 'weights', weights)

    @classmethod
    def clamped(cls, control_points, degree=3, weights=None):
        """B-spline with a uniform clamped knot vector."""
        ctrl = tuple(as_point3(p) for p in control_points)
        n = len(ctrl)
        if n < degree + 1:
            raise MathError('not enough control points for the degree')
        inner = n - degree - 1
        knots = ([0.0] * (degree + 1) +
                 [(i + 1) / (inner + 1) for i in range(inner)] +
                 [1.0] * (degree + 1))
        return cls(ctrl, degree, tuple(knots), weights)


CURVE_TYPES = (LineCurve, CircleCurve, BSplineCurve)


def is_curve(c):
    return isinstance(c, CURVE_TYPES)


def _unknown(curve):
    return MathError(f'unknown curve type {type(curve).__name__}')


def _check_param(t):
    if not isgoodnum(t) or not math.isfinite(float(t)):
        raise MathError(f'bad curve parameter {t!r}')
    if t < -epsilon or t > 1.0 + epsilon:
        raise MathError(f'curve parameter {t} outside [0, 1]')
    return min(1.0, max(0.0, float(t)))


## B-spline basis
## ---------------

def _nip(i, p, u, knots):
    if p == 0:
        if knots[i] <= u < knots[i + 1]:
            return 1.0
        # the closed end of the domain belongs to the last nonempty span
        if u == knots[-1] and knots[i] < knots[i + 1] == knots[-1]:
            return 1.0
        return 0.0

    left = 0.0
    denom = knots[i + p] - knots[i]
    if denom != 0.0:
        left = (u - knots[i]) / denom * _nip(i, p - 1, u, knots)

    right = 0.0
    denom = knots[i + p + 1] - knots[i + 1]
    if denom != 0.0:
        right = (knots[i + p + 1] - u) / denom * _nip(i + 1, p - 1, u, knots)

    return left + right


def _bspline_point(curve, t):
    knots = curve.knots
    degree = curve.degree
    u_start = knots[degree]
    u_end = knots[-degree - 1]
    u = u_start + (u_end - u_start) * t
    if t >= 1.0:
        u = u_end
    weights = curve.weights
    x = y = z = 0.0
    denominator = 0.0
    for i, p in enumerate(curve.control_points):
        basis = _nip(i, degree, u, knots)
        if basis == 0.0:
            continue
        w = basis * (weights[i] if weights is not None else 1.0)
        x += w * p.x
        y += w * p.y
        z += w * p.z
        denominator += w
    if denominator == 0.0:
        return curve.control_points[-1 if t >= 1.0 else 0]
    return Point3(x / denominator, y / denominator, z / denominator)


## evaluation
## -----------

def curve_point(curve, t) -> Point3:
    t = _check_param(t)
    if isinstance(curve, LineCurve):
        return curve.start.lerp(curve.end, t)
    elif isinstance(curve, CircleCurve):
        a = curve.start_angle + curve.sweep * t
        return curve.center + (curve.x_axis * math.cos(a) +
                               curve.y_axis * math.sin(a)) * curve.radius
    elif isinstance(curve, BSplineCurve):
        return _bspline_point(curve, t)
    raise _unknown(curve)


def curve_derivative(curve, t) -> Vector3:
    """First derivative with respect to the normalized parameter."""
    t = _check_param(t)
    if isinstance(curve, LineCurve):
        return curve.end - curve.start
    elif isinstance(curve, CircleCurve):
        a = curve.start_angle + curve.sweep * t
        return (curve.x_axis * -math.sin(a) +
                curve.y_axis * math.cos(a)) * (curve.radius * curve.sweep)
    elif isinstance(curve, BSplineCurve):
        h = 1e-6
        t0 = max(0.0, t - h)
        t1 = min(1.0, t + h)
        return (_bspline_point(curve, t1) - _bspline_point(curve, t0)) / (t1 - t0)
    raise _unknown(curve)


def curve_tangent(curve, t) -> Vector3:
    """Unit tangent in the direction of increasing parameter."""
    return curve_derivative(curve, t).normalize()


def curve_start(curve) -> Point3:
    if isinstance(curve, LineCurve):
        return curve.start
    return curve_point(curve, 0.0)


def curve_end(curve) -> Point3:
    if isinstance(curve, LineCurve):
        return curve.end
    return curve_point(curve, 1.0)


def is_closed_curve(curve) -> bool:
    if isinstance(curve, LineCurve):
        return False
    return curve_start(curve).distance(curve_end(curve)) < epsilon


def segment_count(curve, tol=None) -> int:
    """Number of chords needed to keep the chord error below ``tol``.

    The default tolerance reproduces ``curve_segments`` chords for a full
    circle.
    """
    cfg = get_config()
    if isinstance(curve, LineCurve):
        return 1
    elif isinstance(curve, CircleCurve):
        r = curve.radius
        if tol is None:
            tol = r * (1.0 - math.cos(math.pi / cfg.curve_segments))
        tol = max(tol, epsilon)
        if tol >= r:
            step = math.pi
        else:
            step = 2.0 * math.acos(1.0 - tol / r)
        sweep = abs(curve.sweep)
        n = int(math.ceil(sweep / step - 1e-9))
        return max(n, int(math.ceil(3.0 * sweep / pi2 - 1e-9)), 1)
    elif isinstance(curve, BSplineCurve):
        spans = len(curve.control_points) - curve.degree
        return max(cfg.curve_segments // 4 * spans, cfg.curve_segments)
    raise _unknown(curve)


def sample_curve(curve, count=None) -> List[Point3]:
    """Return ``count + 1`` points at uniform parameter steps."""
    if count is None:
        count = segment_count(curve)
    if count < 1:
        raise MathError('sample count must be at least 1')
    if isinstance(curve, LineCurve):
        return [curve.start.lerp(curve.end, i / count) for i in range(count + 1)]
    pts = [curve_point(curve, i / count) for i in range(count + 1)]
    return pts


def curve_length(curve) -> float:
    if isinstance(curve, LineCurve):
        return curve.start.distance(curve.end)
    elif isinstance(curve, CircleCurve):
        return curve.radius * abs(curve.sweep)
    elif isinstance(curve, BSplineCurve):
        pts = sample_curve(curve, 8 * segment_count(curve))
        return sum(a.distance(b) for a, b in zip(pts, pts[1:]))
    raise _unknown(curve)


def _golden_min(f, lo, hi, iterations=60):
    invphi = (math.sqrt(5.0) - 1.0) / 2.0
    a, b = lo, hi
    c = b - (b - a) * invphi
    d = a + (b - a) * invphi
    fc, fd = f(c), f(d)
    for _ in range(iterations):
        if fc < fd:
            b, d, fd = d, c, fc
            c = b - (b - a) * invphi
            fc = f(c)
        else:
            a, c, fc = c, d, fd
            d = a + (b - a) * invphi
            fd = f(d)
        if b - a < 1e-12:
            break
    return (a + b) / 2.0


def closest_parameter(curve, p) -> float:
    """Parameter of the point on ``curve`` closest to ``p``."""
    p = as_point3(p)
    if isinstance(curve, LineCurve):
        d = curve.end - curve.start
        t = (p - curve.start).dot(d) / d.magnitude_squared()
        return min(1.0, max(0.0, t))
    elif isinstance(curve, CircleCurve):
        rel = p - curve.center
        x = rel.dot(curve.x_axis)
        y = rel.dot(curve.y_axis)
        if math.hypot(x, y) > epsilon:
            a = math.atan2(y, x)
            sweep = curve.sweep
            rel_a = (a - curve.start_angle) if sweep > 0 else (curve.start_angle - a)
            rel_a %= pi2
            t = rel_a / abs(sweep)
            if t <= 1.0:
                return t
            # outside the arc: pick the nearer endpoint
            # past the end vs before the start
            if p.distance(curve_end(curve)) < p.distance(curve_start(curve)):
                return 1.0
            return 0.0
        return 0.0
    elif isinstance(curve, BSplineCurve):
        n = 4 * segment_count(curve)
        best = min(range(n + 1), key=lambda i: curve_point(curve, i / n).distance_squared(p))
        lo = max(0.0, (best - 1) / n)
        hi = min(1.0, (best + 1) / n)
        return _golden_min(lambda t: curve_point(curve, t).distance_squared(p), lo, hi)
    raise _unknown(curve)


def distance_to_curve(curve, p) -> float:
    p = as_point3(p)
    return curve_point(curve, closest_parameter(curve, p)).distance(p)


def reverse_curve(curve):
    """Same point set, parameter running the other way."""
    if isinstance(curve, LineCurve):
        return LineCurve(curve.end, curve.start)
    elif isinstance(curve, CircleCurve):
        return CircleCurve(curve.center, curve.radius, curve.normal, curve.x_axis,
                           curve.end_angle, curve.start_angle)
    elif isinstance(curve, BSplineCurve):
        knots = tuple(curve.knots[0] + curve.knots[-1] - k for k in reversed(curve.knots))
        weights = tuple(reversed(curve.weights)) if curve.weights is not None else None
        return BSplineCurve(tuple(reversed(curve.control_points)), curve.degree, knots, weights)
    raise _unknown(curve)


def transform_curve(curve, xf):
    """Image of ``curve`` under transform ``xf``.

    Circles only survive similarity transforms; anything else raises
    ``MathError``.
    """
    if isinstance(curve, LineCurve):
        return LineCurve(xf.apply_point(curve.start), xf.apply_point(curve.end))
    elif isinstance(curve, CircleCurve):
        if not xf.is_similarity():
            raise MathError('non-uniform scaling of a circle is not supported')
        x = xf.apply_vector(curve.x_axis)
        y = xf.apply_vector(curve.y_axis)
        return CircleCurve(xf.apply_point(curve.center), curve.radius * xf.uniform_scale(),
                           x.cross(y), x, curve.start_angle, curve.end_angle)
    elif isinstance(curve, BSplineCurve):
        return BSplineCurve(tuple(xf.apply_point(p) for p in curve.control_points),
                            curve.degree, curve.knots, curve.weights)
    raise _unknown(curve)


def curve_bbox(curve) -> Aabb:
    if isinstance(curve, LineCurve):
        return Aabb.from_points([curve.start, curve.end])
    if isinstance(curve, BSplineCurve):
        # convex hull property
        return Aabb.from_points(curve.control_points)
    elif isinstance(curve, CircleCurve):
        pts = [curve_start(curve), curve_end(curve)]
        for axis in range(3):
            xk = curve.x_axis.xyz[axis]
            yk = curve.y_axis.xyz[axis]
            if abs(xk) < 1e-15 and abs(yk) < 1e-15:
                continue
            base = math.atan2(yk, xk)
            for a in (base, base + math.pi):
                t = _angle_param(curve, a)
                if t is not None:
                    pts.append(curve_point(curve, t))
        return Aabb.from_points(pts)
    raise _unknown(curve)


def _angle_param(curve, a):
    """Parameter of angle ``a`` on a circle, or ``None`` if outside the arc."""
    sweep = curve.sweep
    rel = (a - curve.start_angle) if sweep > 0 else (curve.start_angle - a)
    rel %= pi2
    t = rel / abs(sweep)
    return t if t <= 1.0 else None


def curves_coincident(a, b, tol=None, samples=None):
    """Compare two curves by sampling.

    Returns ``'same'`` if they coincide with matching parameter direction,
    ``'reversed'`` if they coincide running opposite ways, ``None``
    otherwise.  ``samples`` defaults to ``edge_samples`` (start, middle and
    end).
    """
    if tol is None:
        tol = get_config().distinct_min_distance
    if samples is None:
        samples = get_config().edge_samples
    ts = [i / (samples - 1) for i in range(samples)]
    pa = [curve_point(a, t) for t in ts]
    if all(p.distance(curve_point(b, t)) < tol for p, t in zip(pa, ts)):
        return 'same'
    if all(p.distance(curve_point(b, 1.0 - t)) < tol for p, t in zip(pa, ts)):
        return 'reversed'
    return None


__all__ = [
    'LineCurve', 'CircleCurve', 'BSplineCurve', 'CURVE_TYPES', 'is_curve',
    'curve_point', 'curve_derivative', 'curve_tangent', 'curve_start', 'curve_end',
    'is_closed_curve', 'segment_count', 'sample_curve', 'curve_length',
    'closest_parameter', 'distance_to_curve', 'reverse_curve', 'transform_curve',
    'curve_bbox', 'curves_coincident',
]
