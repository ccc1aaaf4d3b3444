"""Planar profiles: the 2D input of extrude, sweep and revolve.

A :class:`Profile` is a closed outer loop plus optional holes, each loop a
sequence of :class:`ProfileSegment` values (straight lines or circular
arcs) expressed in the coordinates of a :class:`~brepcad.geom.Plane`.
Construction checks the loops and normalizes their winding: the outer
loop runs counter-clockwise about the plane normal, holes clockwise.
Anything that cannot bound a face raises
:class:`~brepcad.errors.OperationError`.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from brepcad.config import get_config
from brepcad.curves import CircleCurve, LineCurve
from brepcad.errors import MathError, OperationError
from brepcad.geom import (Plane, Point2, as_point2, epsilon, pi2,
                          point_in_polygon_2d, polygon_self_intersects,
                          polygon_signed_area_2d, polygons_cross)


@dataclass(frozen=True, eq=False)
class ProfileSegment:
    """Line from ``start`` to ``end``, or an arc when ``center`` is set.

    Arcs run counter-clockwise (in plane coordinates) when ``ccw`` is true.
    """

    start: Point2
    end: Point2
    center: Optional[Point2] = None
    ccw: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'start', as_point2(self.start))
        object.__setattr__(self, 'end', as_point2(self.end))
        if self.center is not None:
            object.__setattr__(self, 'center', as_point2(self.center))

    @property
    def is_arc(self) -> bool:
        return self.center is not None

    @property
    def radius(self) -> float:
        return self.start.distance(self.center)

    def sweep_angle(self) -> float:
        """Signed angle swept by an arc, positive counter-clockwise."""
        c = self.center
        a0 = math.atan2(self.start.y - c.y, self.start.x - c.x)
        a1 = math.atan2(self.end.y - c.y, self.end.x - c.x)
        d = (a1 - a0) % pi2
        if self.ccw:
            return d if d > epsilon else pi2
        d = d - pi2
        return d if d < -epsilon else -pi2

    def points(self, count=None) -> List[Tuple[float, float]]:
        """Polyline along the segment, both ends included."""
        if not self.is_arc:
            return [self.start.xy, self.end.xy]
        theta = self.sweep_angle()
        if count is None:
            count = max(2, int(math.ceil(abs(theta) / pi2 * get_config().curve_segments)))
        c = self.center
        r = self.radius
        a0 = math.atan2(self.start.y - c.y, self.start.x - c.x)
        pts = [self.start.xy]
        for i in range(1, count):
            a = a0 + theta * i / count
            pts.append((c.x + r * math.cos(a), c.y + r * math.sin(a)))
        pts.append(self.end.xy)
        return pts

    def reversed(self) -> 'ProfileSegment':
        return ProfileSegment(self.end, self.start, self.center, not self.ccw)

    def swapped(self) -> 'ProfileSegment':
        """Mirror image across the line ``x == y`` (coordinates swapped)."""
        center = Point2(self.center.y, self.center.x) if self.is_arc else None
        return ProfileSegment(Point2(self.start.y, self.start.x),
                              Point2(self.end.y, self.end.x), center, not self.ccw)


Loop = Tuple[ProfileSegment, ...]


def _loop_polyline(loop: Sequence[ProfileSegment]) -> List[Tuple[float, float]]:
    pts = []
    for seg in loop:
        pts.extend(seg.points()[:-1])
    return pts


def _loop_area(loop: Sequence[ProfileSegment]) -> float:
    """Exact signed area of a loop of lines and arcs."""
    area = 0.0
    for seg in loop:
        area += (seg.start.x * seg.end.y - seg.end.x * seg.start.y) / 2.0
        if seg.is_arc:
            theta = seg.sweep_angle()
            area += seg.radius ** 2 / 2.0 * (theta - math.sin(theta))
    return area


def _reverse_loop(loop: Sequence[ProfileSegment]) -> Loop:
    return tuple(seg.reversed() for seg in reversed(loop))


class Profile:
    """Closed planar region bounded by line and arc segments.

    Parameters
    ----------
    plane : Plane
        Plane whose coordinates the segments are given in.  Its normal is
        the profile normal.
    outer : sequence of ProfileSegment
        The outer boundary, in either winding.
    holes : sequence of sequences of ProfileSegment
        Interior boundaries, in either winding.

    Raises
    ------
    OperationError
        If a loop is open, has fewer than three vertices (two if it
        contains an arc), has no area or crosses itself, or if a hole is
        not strictly inside the outer loop or overlaps another hole.
    """

    def __init__(self, plane: Plane, outer: Sequence[ProfileSegment],
                 holes: Sequence[Sequence[ProfileSegment]] = ()):
        if not isinstance(plane, Plane):
            raise OperationError('profile', f'expected a Plane, got {plane!r}')
        self.plane = plane
        outer = self._check_loop(outer, 'outer loop')
        if _loop_area(outer) < 0.0:
            outer = _reverse_loop(outer)
        checked = []
        for i, hole in enumerate(holes):
            hole = self._check_loop(hole, f'hole {i}')
            if _loop_area(hole) > 0.0:
                hole = _reverse_loop(hole)
            checked.append(hole)
        self.outer: Loop = outer
        self.holes: Tuple[Loop, ...] = tuple(checked)
        self._check_holes()

    @staticmethod
    def _check_loop(loop, what) -> Loop:
        loop = tuple(loop)
        if not loop:
            raise OperationError('profile', f'{what} is empty')
        for seg in loop:
            if not isinstance(seg, ProfileSegment):
                raise OperationError('profile', f'{what}: not a profile segment: {seg!r}')
            if seg.start.distance(seg.end) < epsilon:
                raise OperationError('profile', f'{what}: zero-length segment')
            if seg.is_arc:
                r = seg.radius
                if r < epsilon:
                    raise OperationError('profile', f'{what}: arc with zero radius')
                if abs(seg.end.distance(seg.center) - r) > epsilon * max(1.0, r):
                    raise OperationError('profile',
                                         f'{what}: arc end is not on the circle through its start')
        count = len(loop)
        for i, seg in enumerate(loop):
            nxt = loop[(i + 1) % count]
            if seg.end.distance(nxt.start) >= epsilon:
                raise OperationError('profile', f'{what} is open after segment {i}')
        has_arc = any(seg.is_arc for seg in loop)
        if count < 3 and not (has_arc and count >= 2):
            raise OperationError('profile', f'{what} needs at least three vertices')
        poly = _loop_polyline(loop)
        perimeter = sum(math.dist(poly[i], poly[(i + 1) % len(poly)]) for i in range(len(poly)))
        if abs(_loop_area(loop)) <= epsilon * perimeter:
            raise OperationError('profile', f'{what} has zero area')
        if polygon_self_intersects(poly):
            raise OperationError('profile', f'{what} intersects itself')
        return loop

    def _check_holes(self):
        outer = _loop_polyline(self.outer)
        polys = [_loop_polyline(h) for h in self.holes]
        for i, hole in enumerate(polys):
            if polygons_cross(hole, outer) or \
                    any(point_in_polygon_2d(p, outer) <= 0 for p in hole):
                raise OperationError('profile', f'hole {i} is not inside the outer loop')
            for j in range(i):
                other = polys[j]
                if polygons_cross(hole, other) or \
                        point_in_polygon_2d(hole[0], other) >= 0 or \
                        point_in_polygon_2d(other[0], hole) >= 0:
                    raise OperationError('profile', f'holes {j} and {i} overlap')

    def __repr__(self):
        return (f'Profile(segments={len(self.outer)}, holes={len(self.holes)}, '
                f'area={self.area():g})')

    @property
    def normal(self):
        return self.plane.normal

    def loops(self) -> Tuple[Loop, ...]:
        """Outer loop first, then the holes."""
        return (self.outer,) + self.holes

    def has_arcs(self) -> bool:
        return any(seg.is_arc for loop in self.loops() for seg in loop)

    def area(self) -> float:
        """Exact enclosed area, holes subtracted."""
        return _loop_area(self.outer) + sum(_loop_area(h) for h in self.holes)

    def vertices(self, loop: Sequence[ProfileSegment]):
        """3D start points of the segments of ``loop``."""
        return [self.plane.lift(seg.start.xy) for seg in loop]

    def sample(self, loop: Sequence[ProfileSegment]) -> List[Tuple[float, float]]:
        """Closed 2D polyline along ``loop``; the first point is not repeated."""
        return _loop_polyline(loop)

    def segment_curve(self, seg: ProfileSegment):
        """The 3D curve of one segment on the profile plane."""
        lift = self.plane.lift
        try:
            if not seg.is_arc:
                return LineCurve(lift(seg.start.xy), lift(seg.end.xy))
            n = self.plane.normal
            return CircleCurve.arc(lift(seg.center.xy), lift(seg.start.xy), lift(seg.end.xy),
                                   n if seg.ccw else -n)
        except MathError as exc:
            raise OperationError('profile', f'bad segment {seg!r}: {exc}') from exc

    def faceted(self, count=None) -> 'Profile':
        """Same profile with every arc replaced by chords."""
        if not self.has_arcs():
            return self

        def _facet(loop):
            out = []
            for seg in loop:
                if not seg.is_arc:
                    out.append(seg)
                    continue
                pts = seg.points(count)
                out.extend(ProfileSegment(pts[i], pts[i + 1]) for i in range(len(pts) - 1))
            return out

        return Profile(self.plane, _facet(self.outer), [_facet(h) for h in self.holes])

    def flipped(self) -> 'Profile':
        """The same region seen from the other side (normal reversed)."""
        return Profile(self.plane.flipped(),
                       [seg.swapped() for seg in self.outer],
                       [[seg.swapped() for seg in h] for h in self.holes])

    def with_holes(self, *holes) -> 'Profile':
        """A copy with extra holes, given as segment loops or profiles.

        Hole profiles must lie in the same plane; only their outer loop is
        used.
        """
        loops = list(self.holes)
        for hole in holes:
            if isinstance(hole, Profile):
                loops.append(self._adopt(hole))
            else:
                loops.append(tuple(hole))
        return Profile(self.plane, self.outer, loops)

    def _adopt(self, other: 'Profile') -> Loop:
        if not self.plane.is_coplanar(other.plane) and \
                not self.plane.is_coplanar(other.plane.flipped()):
            raise OperationError('profile', 'hole profile is not in the profile plane')
        same_side = self.plane.normal.dot(other.plane.normal) > 0.0

        def _map(p):
            return self.plane.project(other.plane.lift(p.xy))

        out = []
        for seg in other.outer:
            center = _map(seg.center) if seg.is_arc else None
            ccw = seg.ccw if same_side else not seg.ccw
            out.append(ProfileSegment(_map(seg.start), _map(seg.end), center, ccw))
        return tuple(out)


## constructors
## -------------

def _loop_from_points(points) -> List[ProfileSegment]:
    pts = [as_point2(tuple(p)) for p in points]
    if len(pts) > 1 and pts[0].distance(pts[-1]) < epsilon:
        pts = pts[:-1]
    return [ProfileSegment(pts[i], pts[(i + 1) % len(pts)]) for i in range(len(pts))]


def polygon(points, plane=None, holes=()) -> Profile:
    """Polygonal profile through ``points`` (plane coordinates).

    ``holes`` is a sequence of point lists.  ``plane`` defaults to the XY
    plane.
    """
    if plane is None:
        plane = Plane.xy()
    return Profile(plane, _loop_from_points(points),
                   [_loop_from_points(h) for h in holes])


def rectangle(width, height, plane=None, center=False) -> Profile:
    """Axis-aligned rectangle, corner at the origin unless ``center``."""
    w, h = float(width), float(height)
    x0, y0 = (-w / 2.0, -h / 2.0) if center else (0.0, 0.0)
    return polygon([(x0, y0), (x0 + w, y0), (x0 + w, y0 + h), (x0, y0 + h)], plane)


def circle(radius, plane=None, center=(0.0, 0.0)) -> Profile:
    """Exact circle, built from two counter-clockwise semicircles."""
    if plane is None:
        plane = Plane.xy()
    r = float(radius)
    if not r > epsilon:
        raise OperationError('profile', f'circle radius must be positive, got {radius!r}')
    c = as_point2(tuple(center))
    a = Point2(c.x + r, c.y)
    b = Point2(c.x - r, c.y)
    return Profile(plane, [ProfileSegment(a, b, c, True), ProfileSegment(b, a, c, True)])


def regular_polygon(sides, radius, plane=None, center=(0.0, 0.0), angle=0.0) -> Profile:
    """Regular polygon inscribed in a circle of ``radius``.

    ``angle`` (degrees) rotates the first vertex away from the +u axis.
    """
    sides = int(sides)
    if sides < 3:
        raise OperationError('profile', f'a regular polygon needs at least 3 sides, got {sides}')
    cx, cy = float(center[0]), float(center[1])
    a0 = math.radians(angle)
    pts = [(cx + radius * math.cos(a0 + pi2 * i / sides),
            cy + radius * math.sin(a0 + pi2 * i / sides)) for i in range(sides)]
    return polygon(pts, plane)


__all__ = ['ProfileSegment', 'Profile', 'polygon', 'rectangle', 'circle', 'regular_polygon']
