"""Triangulated views of brepCAD faces and solids.

This is the hand-off point to renderers and mesh exporters.  Faces are
triangulated in their surface parameter space (see
:mod:`brepcad.triangulator`) and lifted back onto the surface.  Boundary
polylines are sampled from the edge curves, so neighbouring faces share
identical boundary points and the resulting mesh is watertight.

Triangles are wound counter-clockwise around the outward face normal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np

from brepcad.geom import Point3, epsilon
from brepcad.surfaces import PlaneSurface, surface_point, surface_project
from brepcad.topology import Handle, TopologyView
from brepcad.triangulator import triangulate_indices, triangulate_slabs

Vec3 = Tuple[float, float, float]
TriTuple = Tuple[Vec3, Vec3, Vec3, Vec3]


def _to_uv(surface, points):
    if isinstance(surface, PlaneSurface):
        plane = surface.plane
        return [plane.project_xy(p) for p in points]
    return [surface_project(surface, p) for p in points]


def face_uv_loops(view: TopologyView, face: Handle):
    """Face boundary loops in parameter space: ``(outer, [holes])``."""
    f = view.face(face)
    outer = _to_uv(f.surface, view.cycle_points(f.exterior))
    holes = [_to_uv(f.surface, view.cycle_points(c)) for c in f.interiors]
    return outer, holes


def triangulate_face(view: TopologyView, face: Handle) -> List[Tuple[Point3, Point3, Point3]]:
    """Triangles covering ``face``, wound around its outward normal."""
    f = view.face(face)
    outer, holes = face_uv_loops(view, face)
    if isinstance(f.surface, PlaneSurface):
        points, tris = triangulate_indices(outer, holes)
        lifted = [f.surface.plane.lift(uv) for uv in points]
    else:
        # curved: keep every triangle within one sampling interval of u
        points, tris = triangulate_slabs(outer, holes)
        lifted = [surface_point(f.surface, uv) for uv in points]
    out = []
    for a, b, c in tris:
        if f.outward:
            out.append((lifted[a], lifted[b], lifted[c]))
        else:
            out.append((lifted[a], lifted[c], lifted[b]))
    return out


def shell_triangles(view: TopologyView, shell: Handle) -> List[Tuple[Point3, Point3, Point3]]:
    tris = []
    for fh in view.shell_faces(shell):
        tris.extend(triangulate_face(view, fh))
    return tris


@dataclass
class Mesh:
    """Indexed triangle mesh.

    ``vertices`` is an ``(N, 3)`` float array, ``triangles`` an ``(M, 3)``
    integer array and ``face_ids`` maps every triangle to the index of the
    solid face it came from.
    """

    vertices: np.ndarray
    triangles: np.ndarray
    face_ids: np.ndarray

    def triangle_normals(self) -> np.ndarray:
        v = self.vertices
        t = self.triangles
        n = np.cross(v[t[:, 1]] - v[t[:, 0]], v[t[:, 2]] - v[t[:, 0]])
        lengths = np.linalg.norm(n, axis=1)
        lengths[lengths == 0.0] = 1.0
        return n / lengths[:, None]

    def area(self) -> float:
        v = self.vertices
        t = self.triangles
        n = np.cross(v[t[:, 1]] - v[t[:, 0]], v[t[:, 2]] - v[t[:, 0]])
        return float(np.linalg.norm(n, axis=1).sum() / 2.0)

    def volume(self) -> float:
        v = self.vertices
        t = self.triangles
        return float(np.einsum('ij,ij->i', v[t[:, 0]],
                               np.cross(v[t[:, 1]], v[t[:, 2]])).sum() / 6.0)

    def __len__(self):
        return len(self.triangles)


def tessellate_solid(solid) -> Mesh:
    """Indexed mesh of every face of ``solid``.

    Vertices closer than the kernel tolerance are shared.
    """
    index: Dict[Tuple[int, int, int], int] = {}
    verts: List[Vec3] = []
    tris: List[Tuple[int, int, int]] = []
    face_ids: List[int] = []

    def _key(p):
        return (int(round(p.x / epsilon)), int(round(p.y / epsilon)), int(round(p.z / epsilon)))

    def _vid(p):
        k = _key(p)
        i = index.get(k)
        if i is None:
            i = len(verts)
            index[k] = i
            verts.append(p.xyz)
        return i

    for fh in solid.iter_faces():
        for a, b, c in triangulate_face(solid, fh):
            ia, ib, ic = _vid(a), _vid(b), _vid(c)
            if ia == ib or ib == ic or ia == ic:
                continue
            tris.append((ia, ib, ic))
            face_ids.append(fh.index)

    return Mesh(np.asarray(verts, dtype=float).reshape(-1, 3),
                np.asarray(tris, dtype=np.int64).reshape(-1, 3),
                np.asarray(face_ids, dtype=np.int64))


def mesh_view(solid) -> Iterator[TriTuple]:
    """Yield triangles as ``(normal, v0, v1, v2)`` tuples.

    Normals are unit vectors; degenerate triangles are skipped.
    """
    for fh in solid.iter_faces():
        for a, b, c in triangulate_face(solid, fh):
            n = (b - a).cross(c - a)
            m = n.magnitude()
            if m == 0.0:
                continue
            yield ((n.x / m, n.y / m, n.z / m), a.xyz, b.xyz, c.xyz)


__all__ = ['face_uv_loops', 'triangulate_face', 'shell_triangles', 'Mesh',
           'tessellate_solid', 'mesh_view']
