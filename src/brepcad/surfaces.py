"""Surfaces for brepCAD.

Two surface kinds are supported:

``PlaneSurface``
    wraps a :class:`~brepcad.geom.Plane`; ``(u, v)`` are plane
    coordinates and the normal is the plane normal.

``SweptSurface``
    a curve translated along a vector, ``P(u, v) = C(u) + v * d`` with
    ``u`` in ``[0, 1]``.  The normal is ``C'(u) x d``.  Extruding an arc
    produces a cylindrical patch of this kind.

For both kinds the parameter space is right-handed with respect to the
surface normal, so a loop that winds counter-clockwise in ``(u, v)``
winds counter-clockwise about the normal in 3D.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Tuple

from brepcad.curves import (LineCurve, closest_parameter, curve_derivative,
                            curve_point, is_curve, transform_curve)
from brepcad.errors import MathError
from brepcad.geom import Plane, Point3, Vector3, as_point3, as_vector3, epsilon


@dataclass(frozen=True, eq=False)
class PlaneSurface:
    plane: Plane
    kind: ClassVar[str] = 'plane'

    def __post_init__(self):
        if not isinstance(self.plane, Plane):
            raise MathError('PlaneSurface needs a Plane')


@dataclass(frozen=True, eq=False)
class SweptSurface:
    curve: object
    direction: Vector3
    kind: ClassVar[str] = 'swept'

    def __post_init__(self):
        if not is_curve(self.curve):
            raise MathError('SweptSurface needs a curve')
        d = as_vector3(self.direction)
        if d.magnitude() < epsilon:
            raise MathError('SweptSurface direction must be nonzero')
        object.__setattr__(self, 'direction', d)


SURFACE_TYPES = (PlaneSurface, SweptSurface)


def _unknown(surface):
    return MathError(f'unknown surface type {type(surface).__name__}')


def surface_point(surface, uv) -> Point3:
    u, v = uv[0], uv[1]
    if isinstance(surface, PlaneSurface):
        return surface.plane.lift((u, v))
    elif isinstance(surface, SweptSurface):
        return curve_point(surface.curve, u) + surface.direction * v
    raise _unknown(surface)


def surface_normal(surface, uv=(0.0, 0.0)) -> Vector3:
    """Unit normal at ``uv``; constant for planes."""
    if isinstance(surface, PlaneSurface):
        return surface.plane.normal
    elif isinstance(surface, SweptSurface):
        u = min(1.0, max(0.0, uv[0]))
        n = curve_derivative(surface.curve, u).cross(surface.direction)
        if n.magnitude() < epsilon:
            raise MathError('swept surface is degenerate (curve tangent along sweep)')
        return n.normalize()
    raise _unknown(surface)


def surface_project(surface, p) -> Tuple[float, float]:
    """Parameters of the surface point closest to ``p``."""
    p = as_point3(p)
    if isinstance(surface, PlaneSurface):
        return surface.plane.project_xy(p)
    elif isinstance(surface, SweptSurface):
        d = surface.direction
        dd = d.magnitude_squared()
        curve = surface.curve
        u = closest_parameter(curve, p)
        v = (p - curve_point(curve, u)).dot(d) / dd
        for _ in range(8):
            u_next = closest_parameter(curve, p - d * v)
            v_next = (p - curve_point(curve, u_next)).dot(d) / dd
            converged = abs(u_next - u) < 1e-12 and abs(v_next - v) < 1e-12
            u, v = u_next, v_next
            if converged:
                break
        return (u, v)
    raise _unknown(surface)


def surface_distance(surface, p) -> float:
    p = as_point3(p)
    if isinstance(surface, PlaneSurface):
        return abs(surface.plane.signed_distance(p))
    return surface_point(surface, surface_project(surface, p)).distance(p)


def surface_is_planar(surface) -> bool:
    if isinstance(surface, PlaneSurface):
        return True
    elif isinstance(surface, SweptSurface):
        return isinstance(surface.curve, LineCurve)
    raise _unknown(surface)


def surface_plane(surface) -> Plane:
    """The supporting plane of a planar surface, oriented like its normal."""
    if isinstance(surface, PlaneSurface):
        return surface.plane
    if isinstance(surface, SweptSurface) and isinstance(surface.curve, LineCurve):
        line = surface.curve
        return Plane(line.start, line.end - line.start, surface.direction)
    raise MathError('surface is not planar')


def transform_surface(surface, xf):
    if isinstance(surface, PlaneSurface):
        return PlaneSurface(xf.apply_plane(surface.plane))
    elif isinstance(surface, SweptSurface):
        return SweptSurface(transform_curve(surface.curve, xf),
                            xf.apply_vector(surface.direction))
    raise _unknown(surface)


def surface_uv_scale(surface) -> float:
    """Rough length of one unit of ``u``, used to scale 2D tolerances."""
    if isinstance(surface, PlaneSurface):
        return 1.0
    elif isinstance(surface, SweptSurface):
        d = curve_derivative(surface.curve, 0.5).magnitude()
        return max(min(d, surface.direction.magnitude()), epsilon)
    raise _unknown(surface)


__all__ = [
    'PlaneSurface', 'SweptSurface', 'SURFACE_TYPES',
    'surface_point', 'surface_normal', 'surface_project', 'surface_distance',
    'surface_is_planar', 'surface_plane', 'transform_surface', 'surface_uv_scale',
]
