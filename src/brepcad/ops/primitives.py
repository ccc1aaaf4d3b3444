"""Ready-made solids.

``box``, ``cylinder``, ``prism`` and ``faceted_cylinder`` are extrusions
of a profile on a horizontal plane; ``tetrahedron`` is stitched from four
triangles directly.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

from brepcad.builder import TopologyBuilder
from brepcad.config import get_config
from brepcad.errors import MathError, OperationError, TopologyError, ValidationError
from brepcad.geom import Plane, as_point3, isgoodnum, newell_normal
from brepcad.ops.extrude import extrude
from brepcad.ops.profile import circle, polygon, regular_polygon
from brepcad.topology import Solid


def _positive(operation, **sizes):
    for name, value in sizes.items():
        if not isgoodnum(value) or value <= 0.0:
            raise OperationError(operation, f'{name} must be positive, got {value!r}')


def box(length, width, height, center=(0.0, 0.0, 0.0)) -> Solid:
    """Axis-aligned box of the given size centered on ``center``.

    ``length`` runs along x, ``width`` along y and ``height`` along z.
    """
    _positive('box', length=length, width=width, height=height)
    c = as_point3(center)
    l2, w2 = length / 2.0, width / 2.0
    outline = [(c.x - l2, c.y - w2), (c.x + l2, c.y - w2),
               (c.x + l2, c.y + w2), (c.x - l2, c.y + w2)]
    return extrude(polygon(outline, Plane.xy(c.z - height / 2.0)), height)


def cylinder(radius, height, base=(0.0, 0.0, 0.0)) -> Solid:
    """Exact circular cylinder standing on ``base`` along +z."""
    _positive('cylinder', radius=radius, height=height)
    b = as_point3(base)
    return extrude(circle(radius, Plane.xy(b.z), center=(b.x, b.y)), height)


def prism(sides, radius, height, base=(0.0, 0.0, 0.0)) -> Solid:
    """Right prism over a regular polygon inscribed in ``radius``."""
    _positive('prism', radius=radius, height=height)
    b = as_point3(base)
    return extrude(regular_polygon(sides, radius, Plane.xy(b.z), center=(b.x, b.y)), height)


def faceted_cylinder(radius, height, segments=None, base=(0.0, 0.0, 0.0)) -> Solid:
    """Polyhedral cylinder with ``segments`` side faces.

    ``segments`` defaults to the configured ``curve_segments``.
    """
    if segments is None:
        segments = get_config().curve_segments
    return prism(segments, radius, height, base)


def tetrahedron(p0, p1, p2, p3) -> Solid:
    """Tetrahedron with the given corners, in either orientation.

    Raises
    ------
    OperationError
        If the four points are coplanar.
    """
    pts = [as_point3(p) for p in (p0, p1, p2, p3)]
    tol = get_config().distinct_min_distance
    try:
        n = newell_normal(pts[:3]).normalize()
    except MathError as exc:
        raise OperationError('tetrahedron', 'the first three corners are collinear') from exc
    height = (pts[3] - pts[0]).dot(n)
    if abs(height) < tol:
        raise OperationError('tetrahedron', 'the corners are coplanar')
    if height > 0.0:
        # the base triangle must face away from the apex
        pts[1], pts[2] = pts[2], pts[1]

    b = TopologyBuilder()
    try:
        v = [b.build_vertex(p) for p in pts]
        faces = [b.build_planar_face([v[i] for i in tri])
                 for tri in ((0, 1, 2), (0, 3, 1), (1, 3, 2), (2, 3, 0))]
        b.build_solid([b.build_shell(faces)])
        return b.finalize()
    except ValidationError as exc:
        raise OperationError('tetrahedron', 'tetrahedron is invalid', exc.report) from exc
    except TopologyError as exc:
        raise OperationError('tetrahedron', str(exc)) from exc


__all__ = ['box', 'cylinder', 'prism', 'faceted_cylinder', 'tetrahedron']
