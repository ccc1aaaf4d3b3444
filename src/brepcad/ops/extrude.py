"""Linear extrusion of a profile.

Every profile segment becomes one side face: a planar face for a line,
a :class:`~brepcad.surfaces.SweptSurface` patch for an arc.  The bottom
cap lies on the profile plane facing against the extrusion direction,
the top cap is its translated copy.  All edge curves are exact.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

from brepcad.builder import TopologyBuilder
from brepcad.curves import LineCurve, transform_curve
from brepcad.errors import OperationError, TopologyError, ValidationError
from brepcad.geom import Plane, epsilon, isgoodnum
from brepcad.log import get_logger
from brepcad.ops.profile import Profile
from brepcad.surfaces import PlaneSurface, SweptSurface
from brepcad.xform import Translation

logger = get_logger(__name__)


def extrude(profile: Profile, height: float):
    """Extrude ``profile`` along its normal by ``height``.

    A negative height extrudes against the normal.

    Raises
    ------
    OperationError
        If ``|height|`` is below the kernel tolerance or the result does
        not validate.
    """
    if not isinstance(profile, Profile):
        raise OperationError('extrude', f'expected a Profile, got {profile!r}')
    if not isgoodnum(height) or abs(height) < epsilon:
        raise OperationError('extrude', f'extrusion height must be nonzero, got {height!r}')
    if height < 0:
        profile = profile.flipped()
        height = -height

    d = profile.normal * height
    shift = Translation(d)
    b = TopologyBuilder()
    try:
        bottom_loops = []
        top_loops = []
        sides = []
        for loop in profile.loops():
            curves = [profile.segment_curve(seg) for seg in loop]
            low = [b.build_vertex(p) for p in profile.vertices(loop)]
            high = [b.build_vertex(p + d) for p in profile.vertices(loop)]
            n = len(loop)
            low_edges = [b.build_edge(low[i], low[(i + 1) % n], curves[i]) for i in range(n)]
            high_edges = [b.build_edge(high[i], high[(i + 1) % n],
                                       transform_curve(curves[i], shift)) for i in range(n)]
            rails = [b.build_edge(low[i], high[i]) for i in range(n)]
            for i, curve in enumerate(curves):
                j = (i + 1) % n
                cycle = b.build_cycle([b.half_edges(low_edges[i])[0],
                                       b.half_edges(rails[j])[0],
                                       b.half_edges(high_edges[i])[1],
                                       b.half_edges(rails[i])[1]])
                if isinstance(curve, LineCurve):
                    surface = PlaneSurface(Plane(curve.start, curve.end - curve.start, d))
                else:
                    surface = SweptSurface(curve, d)
                sides.append(b.build_face(surface, cycle))
            bottom_loops.append(b.build_cycle([b.half_edges(e)[1] for e in reversed(low_edges)]))
            top_loops.append(b.build_cycle([b.half_edges(e)[0] for e in high_edges]))

        bottom = b.build_face(PlaneSurface(profile.plane), bottom_loops[0], bottom_loops[1:],
                              outward=False)
        top = b.build_face(PlaneSurface(profile.plane.translated(d)), top_loops[0],
                           top_loops[1:])
        b.build_solid([b.build_shell([bottom, top] + sides)])
        solid = b.finalize()
    except ValidationError as exc:
        raise OperationError('extrude', 'extruded solid is invalid', exc.report) from exc
    except TopologyError as exc:
        raise OperationError('extrude', str(exc)) from exc
    logger.debug('extrude', height=height, faces=len(solid.faces))
    return solid


__all__ = ['extrude']
