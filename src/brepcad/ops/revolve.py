"""Faceted rotational sweep of a profile about an axis in its plane.

The profile (arcs faceted) is rotated in equal steps; consecutive
sections are joined by planar trapezoids.  Profile vertices lying on the
axis collapse into one shared vertex, so the trapezoids touching them
become triangles, and profile edges lying on the axis produce no face.
Partial revolutions are closed by the start and end sections.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math

from brepcad.builder import TopologyBuilder
from brepcad.config import get_config
from brepcad.errors import MathError, OperationError, TopologyError, ValidationError
from brepcad.geom import Line, as_point3, as_vector3, epsilon, isgoodnum
from brepcad.log import get_logger
from brepcad.ops.profile import Profile
from brepcad.ops.sweep import stitch_sections
from brepcad.xform import Rotation

logger = get_logger(__name__)


def _as_axis(axis) -> Line:
    if isinstance(axis, Line):
        return axis
    try:
        origin, direction = axis
        return Line(as_point3(origin), as_vector3(direction))
    except (TypeError, ValueError) as exc:
        raise OperationError('revolve', f'bad axis {axis!r}') from exc


def revolve(profile: Profile, axis, angle=360.0, segments=None):
    """Revolve ``profile`` by ``angle`` degrees about ``axis``.

    Parameters
    ----------
    profile : Profile
    axis : Line or (origin, direction)
        Must lie in the profile plane.
    angle : float
        Signed angle in degrees, ``0 < |angle| <= 360``; positive angles
        turn counter-clockwise about the axis direction.
    segments : int, optional
        Number of angular steps; defaults to ``revolve_segments`` scaled by
        the fraction of a full turn.

    Raises
    ------
    OperationError
        For an axis outside the profile plane, a profile crossing the
        axis, or a bad angle or step count.
    """
    if not isinstance(profile, Profile):
        raise OperationError('revolve', f'expected a Profile, got {profile!r}')
    if (not isgoodnum(angle) or not math.isfinite(angle)
            or abs(angle) < epsilon or abs(angle) > 360.0 + epsilon):
        raise OperationError('revolve', f'angle must satisfy 0 < |angle| <= 360, got {angle!r}')
    try:
        axis = _as_axis(axis)
    except MathError as exc:
        raise OperationError('revolve', f'bad axis: {exc}') from exc
    plane = profile.plane
    tol = get_config().distinct_min_distance
    if not plane.contains(axis.origin, tol) or abs(axis.direction.dot(plane.normal)) > epsilon:
        raise OperationError('revolve', 'axis does not lie in the profile plane')

    full = abs(abs(angle) - 360.0) < epsilon
    if segments is None:
        steps = int(math.ceil(get_config().revolve_segments * abs(angle) / 360.0 - 1e-9))
    elif not isgoodnum(segments) or not float(segments).is_integer() or segments < 1:
        raise OperationError('revolve', f'segments must be a positive integer, got {segments!r}')
    else:
        steps = int(segments)
    # every step must turn by less than half a revolution
    steps = max(steps, int(abs(angle) // 180.0) + 1)
    if full and steps < 3:
        raise OperationError('revolve', f'a full revolution needs at least 3 steps, got {steps}')

    profile = profile.faceted()

    def _side(p):
        r = p - axis.origin
        return axis.direction.cross(r).dot(plane.normal)

    sides = [_side(p) for loop in profile.loops() for p in profile.vertices(loop)]
    if max(sides) > tol and min(sides) < -tol:
        raise OperationError('revolve', 'profile crosses the axis')
    side = max(sides) if max(sides) > tol else min(sides)
    if (side < 0.0) != (angle < 0.0):
        profile = profile.flipped()

    loops = [profile.vertices(loop) for loop in profile.loops()]
    on_axis = [[axis.distance_to(p) < tol for p in loop] for loop in loops]

    b = TopologyBuilder()
    try:
        shared = {}
        sections = []
        count = steps if full else steps + 1
        for k in range(count):
            rot = Rotation(axis.direction, angle * k / steps, center=axis.origin)
            section = []
            for li, loop in enumerate(loops):
                handles = []
                for pi, p in enumerate(loop):
                    if on_axis[li][pi]:
                        key = (li, pi)
                        if key not in shared:
                            shared[key] = b.build_vertex(axis.closest_point(p))
                        handles.append(shared[key])
                    else:
                        handles.append(b.build_vertex(rot.apply_point(p)))
                section.append(handles)
            sections.append(section)
        if full:
            sections.append(sections[0])
        faces = stitch_sections(b, sections, not full, 'revolve')
        b.build_solid([b.build_shell(faces)])
        solid = b.finalize()
    except ValidationError as exc:
        raise OperationError('revolve', 'revolved solid is invalid', exc.report) from exc
    except TopologyError as exc:
        raise OperationError('revolve', str(exc)) from exc
    logger.debug('revolve', angle=angle, steps=steps, faces=len(solid.faces))
    return solid


__all__ = ['revolve']
