"""Rigid and affine transforms of solids, plus polyhedral faceting.

:func:`transform_solid` copies the topology of a solid into a fresh
builder, mapping every vertex, curve and surface through a
:class:`~brepcad.xform.Transform`, and validates the copy.
Orientation-reversing transforms (mirrors) would turn every face inside
out; they are refused unless ``allow_mirror`` is set, in which case every
cycle is reversed and every face flipped so normals stay outward.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

from typing import List

from brepcad.builder import TopologyBuilder
from brepcad.curves import transform_curve
from brepcad.errors import MathError, OperationError, TopologyError, ValidationError
from brepcad.geom import Plane, as_point3
from brepcad.log import get_logger
from brepcad.ops.polymesh import PolyMesh
from brepcad.surfaces import surface_is_planar, transform_surface
from brepcad.tessellate import triangulate_face
from brepcad.topology import Handle, Solid
from brepcad.xform import Mirror, Rotation, Scale, Translation, identity

logger = get_logger(__name__)


def copy_topology(b: TopologyBuilder, solid: Solid, xf=None, reverse=False) -> List[Handle]:
    """Copy every entity of ``solid`` into ``b``; return the new shells.

    Geometry is mapped through ``xf`` when given.  With ``reverse`` every
    cycle runs the other way and every face is flipped.
    """
    if xf is None:
        xf = identity()
    vmap = [b.build_vertex(xf.apply_point(v.point)) for v in solid.vertices]
    emap = []
    for e in solid.edges:
        emap.append(b.build_edge(vmap[e.start.index], vmap[e.end.index],
                                 transform_curve(e.curve, xf)))

    def _new_half_edge(h):
        he = solid.half_edge(h)
        fwd, rev = b.half_edges(emap[he.edge.index])
        if he.forward != reverse:
            return fwd
        return rev

    cmap = []
    for c in solid.cycles:
        hes = c.half_edges[::-1] if reverse else c.half_edges
        cmap.append(b.build_cycle([_new_half_edge(h) for h in hes]))
    fmap = []
    for f in solid.faces:
        fmap.append(b.build_face(transform_surface(f.surface, xf),
                                 cmap[f.exterior.index],
                                 [cmap[c.index] for c in f.interiors],
                                 f.outward != reverse))
    return [b.build_shell([fmap[fh.index] for fh in s.faces]) for s in solid.shell_list]


def transform_solid(solid: Solid, xf, allow_mirror=False) -> Solid:
    """Image of ``solid`` under the affine transform ``xf``.

    Raises
    ------
    OperationError
        For singular transforms, for orientation-reversing transforms
        without ``allow_mirror``, for non-uniform scaling of circular
        geometry, or if the image does not validate.
    """
    if xf.is_singular():
        raise OperationError('transform', 'transform is singular')
    mirrored = not xf.is_orientation_preserving()
    if mirrored and not allow_mirror:
        raise OperationError('transform',
                             'transform reverses orientation; pass allow_mirror=True')
    if solid.is_empty():
        return solid
    b = TopologyBuilder()
    try:
        shells = copy_topology(b, solid, xf, reverse=mirrored)
        b.build_solid(shells)
        return b.finalize()
    except ValidationError as exc:
        raise OperationError('transform', 'transformed solid is invalid', exc.report) from exc
    except (TopologyError, MathError) as exc:
        raise OperationError('transform', str(exc)) from exc


def translate(solid: Solid, delta) -> Solid:
    return transform_solid(solid, Translation(delta))


def rotate(solid: Solid, axis, angle, center=None) -> Solid:
    """Rotate by ``angle`` degrees about ``axis`` through ``center``."""
    return transform_solid(solid, Rotation(axis, angle, center=center))


def scale(solid: Solid, factor, center=None) -> Solid:
    """Scale by ``factor`` (a number or an ``(x, y, z)`` triple) about ``center``.

    Negative factors mirror the solid.
    """
    try:
        xf = Scale(factor)
    except MathError as exc:
        raise OperationError('scale', str(exc)) from exc
    if center is not None:
        c = as_point3(center).to_vector()
        xf = Translation(c) @ xf @ Translation(-c)
    return transform_solid(solid, xf, allow_mirror=True)


_MIRROR_PLANES = {
    'xy': lambda: Plane.xy(),
    'xz': lambda: Plane.xz(),
    'yz': lambda: Plane.yz(),
}


def mirror(solid: Solid, plane) -> Solid:
    """Reflect ``solid`` through ``plane`` (a Plane or 'xy', 'xz', 'yz')."""
    if isinstance(plane, str):
        factory = _MIRROR_PLANES.get(plane.lower())
        if factory is None:
            raise OperationError('mirror', f'unknown mirror plane {plane!r}')
        plane = factory()
    return transform_solid(solid, Mirror(plane), allow_mirror=True)


def facet_solid(solid: Solid) -> Solid:
    """Polyhedral approximation of ``solid``.

    Planar faces keep their (sampled) boundary loops; curved faces are
    replaced by their triangulation.  Already planar solids are returned
    unchanged.
    """
    if solid.is_empty() or solid.is_planar():
        return solid
    mesh = PolyMesh()
    for fh in solid.iter_faces():
        f = solid.face(fh)
        if surface_is_planar(f.surface):
            ext, ints = solid.face_cycles(fh)
            mesh.add_polygon(solid.cycle_points(ext), [solid.cycle_points(c) for c in ints])
        else:
            for tri in triangulate_face(solid, fh):
                mesh.add_polygon(tri)
    result = mesh.finalize('facet')
    logger.debug('facet solid', faces_in=len(solid.faces), faces_out=len(result.faces))
    return result


__all__ = ['copy_topology', 'transform_solid', 'translate', 'rotate', 'scale', 'mirror',
           'facet_solid']
