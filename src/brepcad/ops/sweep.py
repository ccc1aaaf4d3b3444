"""Sweeping a profile along a path.

The path is a polyline (:class:`Path`) or any curve, which is sampled
into one.  The profile is carried along it rigidly by
rotation-minimizing frames: at every path joint the frame turns by the
smallest rotation taking the incoming direction onto the outgoing one.
Sections at interior joints are mitred (projected onto the plane that
bisects the joint), so the side faces of each path segment are planar
trapezoids.  Profile arcs are faceted.

:func:`stitch_sections` is shared with :mod:`brepcad.ops.revolve`.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from brepcad.builder import TopologyBuilder
from brepcad.config import get_config
from brepcad.curves import LineCurve, is_curve, sample_curve
from brepcad.errors import MathError, OperationError, TopologyError, ValidationError
from brepcad.geom import Point3, as_point3, centroid, epsilon, newell_normal
from brepcad.log import get_logger
from brepcad.ops.profile import Profile
from brepcad.xform import Rotation, identity

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class Path:
    """Open polyline in 3D."""

    points: Tuple[Point3, ...]

    def __post_init__(self):
        object.__setattr__(self, 'points', tuple(as_point3(p) for p in self.points))

    @classmethod
    def from_curve(cls, curve, count=None):
        """Sample ``curve``; lines keep their two end points."""
        if isinstance(curve, LineCurve):
            return cls((curve.start, curve.end))
        if count is None:
            count = get_config().sweep_segments
        return cls(tuple(sample_curve(curve, count)))

    def __len__(self):
        return len(self.points)

    def length(self) -> float:
        return sum(self.points[i].distance(self.points[i + 1])
                   for i in range(len(self.points) - 1))


def _segment_distance(p1, q1, p2, q2):
    """Distance between 3D segments ``p1q1`` and ``p2q2``."""
    # Ericson, Real-Time Collision Detection, 5.1.9
    d1 = q1 - p1
    d2 = q2 - p2
    r = p1 - p2
    a = d1.dot(d1)
    e = d2.dot(d2)
    f = d2.dot(r)
    c = d1.dot(r)
    b = d1.dot(d2)
    denom = a * e - b * b
    s = min(1.0, max(0.0, (b * f - c * e) / denom)) if denom > 1e-18 else 0.0
    t = (b * s + f) / e
    if t < 0.0:
        t = 0.0
        s = min(1.0, max(0.0, -c / a))
    elif t > 1.0:
        t = 1.0
        s = min(1.0, max(0.0, (b - c) / a))
    return (p1 + d1 * s).distance(p2 + d2 * t)


def _clean_path(path) -> List[Point3]:
    if is_curve(path):
        path = Path.from_curve(path)
    elif not isinstance(path, Path):
        path = Path(tuple(path))
    pts = [path.points[0]] if path.points else []
    for p in path.points[1:]:
        if p.distance(pts[-1]) >= epsilon:
            pts.append(p)
    if len(pts) < 2:
        raise OperationError('sweep', 'path has zero length')
    if len(pts) > 2 and pts[0].distance(pts[-1]) < get_config().distinct_min_distance:
        raise OperationError('sweep', 'path is closed')
    tol = get_config().distinct_min_distance
    for i in range(len(pts) - 1):
        for j in range(i + 2, len(pts) - 1):
            if _segment_distance(pts[i], pts[i + 1], pts[j], pts[j + 1]) < tol:
                raise OperationError('sweep', f'path intersects itself (segments {i} and {j})')
    return pts


def _frames(directions):
    """Rotation-minimizing frame transforms, one per path segment."""
    frames = [identity()]
    for a, b in zip(directions, directions[1:]):
        axis = a.cross(b)
        cosang = max(-1.0, min(1.0, a.dot(b)))
        if cosang < -1.0 + 1e-9:
            raise OperationError('sweep', 'path doubles back on itself')
        if axis.magnitude() < 1e-12:
            frames.append(frames[-1])
            continue
        turn = Rotation(axis, math.degrees(math.acos(cosang)))
        frames.append(turn @ frames[-1])
    return frames


def stitch_sections(b: TopologyBuilder, sections, caps: bool, operation: str):
    """Connect matching loops of consecutive sections with side faces.

    ``sections[k][l][i]`` is the vertex handle of point ``i`` of loop
    ``l`` in section ``k``.  Loops wind like the profile (outer
    counter-clockwise about the direction of travel).  A vertex handle may
    repeat between sections; degenerate quads become triangles or vanish.
    With ``caps`` the first and last sections are closed by planar faces.
    Returns the list of faces.
    """
    tol = get_config().distinct_min_distance
    faces = []
    for k in range(len(sections) - 1):
        here, there = sections[k], sections[k + 1]
        for lo_loop, hi_loop in zip(here, there):
            n = len(lo_loop)
            for i in range(n):
                j = (i + 1) % n
                quad = [lo_loop[i], lo_loop[j], hi_loop[j], hi_loop[i]]
                corners = [v for idx, v in enumerate(quad) if v != quad[idx - 1]]
                if len(corners) < 3:
                    continue
                if len(corners) == 3:
                    faces.append(b.build_planar_face(corners))
                    continue
                pts = [b.vertex_point(v) for v in corners]
                try:
                    normal = newell_normal(pts).normalize()
                except MathError as exc:
                    raise OperationError(operation, 'degenerate side face') from exc
                c = centroid(pts)
                if max(abs((p - c).dot(normal)) for p in pts) < tol:
                    faces.append(b.build_planar_face(corners))
                else:
                    faces.append(b.build_planar_face(corners[:3]))
                    faces.append(b.build_planar_face([corners[0], corners[2], corners[3]]))
    if caps:
        first, last = sections[0], sections[-1]
        faces.append(b.build_planar_face(list(reversed(first[0])),
                                         [list(reversed(h)) for h in first[1:]]))
        faces.append(b.build_planar_face(list(last[0]), [list(h) for h in last[1:]]))
    return faces


def sweep(profile: Profile, path):
    """Sweep ``profile`` along ``path`` (a :class:`Path` or a curve).

    The first section is the profile itself; later sections are its images
    under the frame transforms, moved along the path.

    Raises
    ------
    OperationError
        For a zero-length, closed or self-intersecting path, a path whose
        initial tangent lies in the profile plane, or sections that fold
        over at a tight bend.
    """
    if not isinstance(profile, Profile):
        raise OperationError('sweep', f'expected a Profile, got {profile!r}')
    pts = _clean_path(path)
    directions = [(pts[i + 1] - pts[i]).normalize() for i in range(len(pts) - 1)]
    t0 = directions[0]
    along = t0.dot(profile.normal)
    if abs(along) < epsilon:
        raise OperationError('sweep', 'path tangent lies in the profile plane')
    if along < 0.0:
        profile = profile.faceted().flipped()
    else:
        profile = profile.faceted()

    frames = _frames(directions)
    origin = pts[0]
    base = [profile.vertices(loop) for loop in profile.loops()]

    sections: List[List[List[Point3]]] = [base]
    last = len(pts) - 1
    for k in range(1, len(pts)):
        xf = frames[k - 1]
        d_in = directions[k - 1]
        moved = [[pts[k] + xf.apply_vector(p - origin) for p in loop] for loop in base]
        if k < last:
            miter = (d_in + directions[k]).normalize()
            denom = d_in.dot(miter)
            moved = [[q - d_in * ((q - pts[k]).dot(miter) / denom) for q in loop]
                     for loop in moved]
        for prev_loop, loop in zip(sections[-1], moved):
            for a, q in zip(prev_loop, loop):
                if (q - a).dot(d_in) <= epsilon:
                    raise OperationError('sweep', f'sections fold over at path point {k}')
        sections.append(moved)

    b = TopologyBuilder()
    try:
        handles = [[[b.build_vertex(p) for p in loop] for loop in sec] for sec in sections]
        faces = stitch_sections(b, handles, True, 'sweep')
        b.build_solid([b.build_shell(faces)])
        solid = b.finalize()
    except ValidationError as exc:
        raise OperationError('sweep', 'swept solid is invalid', exc.report) from exc
    except TopologyError as exc:
        raise OperationError('sweep', str(exc)) from exc
    logger.debug('sweep', path_points=len(pts), faces=len(solid.faces))
    return solid


__all__ = ['Path', 'sweep', 'stitch_sections']
