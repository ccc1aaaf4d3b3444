"""Full validation of a topology draft.

:func:`validate_draft` runs every check against a
:class:`~brepcad.builder.TopologyBuilder` and accumulates all defects into
one :class:`ValidationReport` instead of stopping at the first problem.
When the report is clean it also returns the compacted, immutable
:class:`~brepcad.topology.Solid`.

The checks run in this order:

1. vertices within tolerance are merged (grid hash plus union-find), then
   edges joining the same merged vertices with coincident geometry
   (sampled at start, middle and end, either direction)
2. degenerate edges and edges whose curve misses its vertices
3. manifoldness: every edge is used exactly twice, by two distinct faces
4. cycles are closed and do not self-intersect in parameter space
5. loops lie on their surface, faces have area, holes are inside
6. orientation: loop winding, opposite traversal of shared edges, edge
   connectivity, shell volume sign and nesting, shell intersection
7. entities not reachable from the solid
8. statistics (V, E, F, loops, Euler characteristic per shell)

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from brepcad.config import get_config
from brepcad.curves import (curve_derivative, curve_end, curve_start,
                            curves_coincident, is_closed_curve)
from brepcad.errors import KernelError
from brepcad.geom import (epsilon, newell_normal, point_in_polygon_2d,
                          polygon_self_intersects, polygon_signed_area_2d,
                          polygons_cross)
from brepcad.log import get_logger
from brepcad.query import Containment, TriangleSet
from brepcad.surfaces import (PlaneSurface, surface_point, surface_project,
                              surface_uv_scale)
from brepcad.tessellate import triangulate_face
from brepcad.topology import (CYCLE, EDGE, FACE, HALF_EDGE, SHELL, VERTEX,
                              Cycle, Edge, Face, HalfEdge, Handle, Shell,
                              Solid, Vertex, _new_solid)

logger = get_logger(__name__)


class DefectKind(Enum):
    DEGENERATE_EDGE = 'degenerate_edge'
    EDGE_VERTEX_MISMATCH = 'edge_vertex_mismatch'
    BOUNDARY_EDGE = 'boundary_edge'
    NON_MANIFOLD_EDGE = 'non_manifold_edge'
    SAME_FACE_EDGE = 'same_face_edge'
    UNCLOSED_CYCLE = 'unclosed_cycle'
    SELF_INTERSECTING_CYCLE = 'self_intersecting_cycle'
    LOOP_OFF_SURFACE = 'loop_off_surface'
    DEGENERATE_FACE = 'degenerate_face'
    HOLE_OUTSIDE_FACE = 'hole_outside_face'
    FACE_WINDING = 'face_winding'
    INCONSISTENT_ORIENTATION = 'inconsistent_orientation'
    INWARD_ORIENTATION = 'inward_orientation'
    DEGENERATE_SHELL = 'degenerate_shell'
    DISCONNECTED_SHELL = 'disconnected_shell'
    SHELL_INTERSECTION = 'shell_intersection'
    DANGLING_ENTITY = 'dangling_entity'


@dataclass(frozen=True)
class Defect:
    kind: DefectKind
    message: str
    entities: Tuple[Handle, ...] = ()

    def to_json(self):
        return {
            'kind': self.kind.value,
            'message': self.message,
            'entities': [repr(h) for h in self.entities],
        }

    def __str__(self):
        ents = ', '.join(repr(h) for h in self.entities)
        return f'{self.kind.value}: {self.message}' + (f' [{ents}]' if ents else '')


@dataclass
class ValidationReport:
    """Every defect found in one validation pass, plus statistics."""

    defects: List[Defect] = field(default_factory=list)
    stats: Dict[str, object] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.defects

    def __bool__(self):
        return self.ok

    def add(self, kind, message, entities=()):
        self.defects.append(Defect(kind, message, tuple(entities)))

    def kinds(self) -> Set[DefectKind]:
        return {d.kind for d in self.defects}

    def by_kind(self, kind) -> List[Defect]:
        return [d for d in self.defects if d.kind == kind]

    def format(self) -> str:
        if not self.defects:
            return 'no defects'
        return '\n'.join(f'  - {d}' for d in self.defects)


class _UnionFind:

    def __init__(self):
        self.parent = {}

    def add(self, x):
        self.parent.setdefault(x, x)

    def find(self, x):
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a, b):
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        # the smaller index represents the group
        if rb < ra:
            ra, rb = rb, ra
        self.parent[rb] = ra


class _Validator:

    def __init__(self, draft):
        cfg = get_config()
        self.d = draft
        self.merge_tol = epsilon
        self.tol = cfg.distinct_min_distance
        self.report = ValidationReport()
        self.shells: Tuple[Handle, ...] = tuple(draft.solid_shells or ())
        self.vmap: Dict[int, int] = {}
        self.emap: Dict[int, Tuple[int, bool]] = {}
        self.uses: Dict[int, List[Tuple[Handle, Handle, bool]]] = {}
        self.cycle_uv: Dict[int, List[Tuple[float, float]]] = {}
        self.shell_volume: Dict[int, float] = {}

    def add(self, kind, message, entities=()):
        self.report.add(kind, message, entities)

    def run(self):
        self._reachability()
        self._merge_vertices()
        self._merge_edges()
        self._check_edges()
        self._check_uses()
        self._check_cycles()
        self._check_faces()
        self._check_orientation()
        if self.report.ok:
            self._check_shells()
        self._check_dangling()
        self._statistics()
        logger.debug('validation finished', defects=len(self.report.defects),
                     shells=len(self.shells), faces=len(self.faces))
        if self.report.ok:
            return self.report, self._compact()
        return self.report, None

    ## reachability
    ## -------------

    def _reachability(self):
        d = self.d
        self.faces: List[Handle] = []
        self.cycles: List[Handle] = []
        self.hes: List[Handle] = []
        self.edges: List[Handle] = []
        self.verts: List[Handle] = []
        self.face_shell: Dict[int, Handle] = {}
        self.cycle_face: Dict[int, Handle] = {}
        seen_e: Set[int] = set()
        seen_v: Set[int] = set()
        for sh in self.shells:
            for fh in d.shell_faces(sh):
                self.faces.append(fh)
                self.face_shell[fh.index] = sh
                f = d.face(fh)
                for ch in (f.exterior,) + f.interiors:
                    self.cycles.append(ch)
                    self.cycle_face[ch.index] = fh
                    for h in d.cycle_half_edges(ch):
                        self.hes.append(h)
                        eh = d.half_edge(h).edge
                        if eh.index in seen_e:
                            continue
                        seen_e.add(eh.index)
                        self.edges.append(eh)
                        e = d.edge(eh)
                        for vh in (e.start, e.end):
                            if vh.index not in seen_v:
                                seen_v.add(vh.index)
                                self.verts.append(vh)

    ## step 1: merging
    ## ----------------

    def _merge_vertices(self):
        tol = self.merge_tol
        grid: Dict[Tuple[int, int, int], List[int]] = {}
        uf = _UnionFind()
        points = {}
        for vh in self.verts:
            p = self.d.vertex_point(vh)
            points[vh.index] = p
            uf.add(vh.index)
            key = (math.floor(p.x / tol), math.floor(p.y / tol), math.floor(p.z / tol))
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    for dz in (-1, 0, 1):
                        for other in grid.get((key[0] + dx, key[1] + dy, key[2] + dz), ()):
                            if points[other].distance(p) < tol:
                                uf.union(other, vh.index)
            grid.setdefault(key, []).append(vh.index)
        merged = 0
        for vh in self.verts:
            rep = uf.find(vh.index)
            self.vmap[vh.index] = rep
            if rep != vh.index:
                merged += 1
        if merged:
            logger.debug('merged coincident vertices', count=merged)

    def _edge_verts(self, eh):
        e = self.d.edge(eh)
        return self.vmap[e.start.index], self.vmap[e.end.index]

    def _merge_edges(self):
        groups: Dict[Tuple[int, int], List[int]] = {}
        for eh in self.edges:
            s, t = self._edge_verts(eh)
            key = (min(s, t), max(s, t))
            reps = groups.setdefault(key, [])
            curve = self.d.edge(eh).curve
            for rep in reps:
                match = curves_coincident(self.d.edges[rep].curve, curve, self.tol)
                if match is not None:
                    self.emap[eh.index] = (rep, match == 'reversed')
                    break
            else:
                reps.append(eh.index)
                self.emap[eh.index] = (eh.index, False)
        self.rep_edges = sorted({rep for rep, _ in self.emap.values()})

    ## step 2: edges
    ## --------------

    def _check_edges(self):
        d = self.d
        for ei in self.rep_edges:
            eh = Handle(EDGE, ei)
            e = d.edge(eh)
            s, t = self._edge_verts(eh)
            closed = is_closed_curve(e.curve)
            if s == t and not closed:
                self.add(DefectKind.DEGENERATE_EDGE,
                         'edge starts and ends on the same vertex', (eh,))
            elif s != t and closed:
                self.add(DefectKind.EDGE_VERTEX_MISMATCH,
                         'closed curve bounded by two distinct vertices', (eh,))
            if (curve_start(e.curve).distance(d.vertex_point(e.start)) > self.tol or
                    curve_end(e.curve).distance(d.vertex_point(e.end)) > self.tol):
                self.add(DefectKind.EDGE_VERTEX_MISMATCH,
                         'edge curve does not end on its vertices', (eh, e.start, e.end))

    ## step 3: manifoldness
    ## ---------------------

    def _check_uses(self):
        d = self.d
        for h in self.hes:
            he = d.half_edge(h)
            rep, flip = self.emap[he.edge.index]
            face = self.cycle_face[he.cycle.index]
            self.uses.setdefault(rep, []).append((h, face, he.forward != flip))

        for ei in self.rep_edges:
            eh = Handle(EDGE, ei)
            uses = self.uses.get(ei, [])
            faces = tuple(u[1] for u in uses)
            if len(uses) == 1:
                self.add(DefectKind.BOUNDARY_EDGE, 'edge is used by only one face',
                         (eh,) + faces)
            elif len(uses) > 2:
                self.add(DefectKind.NON_MANIFOLD_EDGE,
                         f'edge is used {len(uses)} times', (eh,) + faces)
            elif len(uses) == 2:
                if faces[0] == faces[1]:
                    self.add(DefectKind.SAME_FACE_EDGE,
                             'both uses of the edge are in one face', (eh, faces[0]))
                elif self.face_shell[faces[0].index] != self.face_shell[faces[1].index]:
                    self.add(DefectKind.NON_MANIFOLD_EDGE, 'edge is shared by two shells',
                             (eh,) + faces)

    ## step 4: cycles
    ## ---------------

    def _uv(self, surface, points):
        if isinstance(surface, PlaneSurface):
            plane = surface.plane
            return [plane.project_xy(p) for p in points]
        return [surface_project(surface, p) for p in points]

    def _check_cycles(self):
        d = self.d
        for ch in self.cycles:
            hes = d.cycle_half_edges(ch)
            n = len(hes)
            closed = True
            for i, h in enumerate(hes):
                end = self.vmap[d.half_edge_vertices(h)[1].index]
                start = self.vmap[d.half_edge_vertices(hes[(i + 1) % n])[0].index]
                if end != start:
                    closed = False
            if not closed:
                self.add(DefectKind.UNCLOSED_CYCLE, 'cycle is not closed', (ch,))
                continue

            surface = d.face(self.cycle_face[ch.index]).surface
            uv = self._uv(surface, d.cycle_points(ch))
            self.cycle_uv[ch.index] = uv

            verts = [self.vmap[d.half_edge_vertices(h)[0].index] for h in hes]
            if len(set(verts)) != len(verts):
                self.add(DefectKind.SELF_INTERSECTING_CYCLE,
                         'cycle passes through a vertex more than once', (ch,))
                continue
            if len(uv) >= 3 and polygon_self_intersects(uv, self._uv_tol(surface)):
                self.add(DefectKind.SELF_INTERSECTING_CYCLE, 'cycle crosses itself', (ch,))

    def _uv_tol(self, surface):
        return self.tol / surface_uv_scale(surface)

    ## step 5: faces
    ## --------------

    def _check_faces(self):
        d = self.d
        for fh in self.faces:
            f = d.face(fh)
            loops = (f.exterior,) + f.interiors
            off = False
            for ch in loops:
                pts = d.cycle_points(ch)
                uv = self.cycle_uv.get(ch.index)
                if uv is None:
                    continue
                for p, q in zip(pts, uv):
                    if surface_point(f.surface, q).distance(p) > self.tol:
                        off = True
                        break
            if off:
                self.add(DefectKind.LOOP_OFF_SURFACE, 'face loop does not lie on its surface',
                         (fh,))
                continue
            if any(ch.index not in self.cycle_uv for ch in loops):
                continue

            outer = self.cycle_uv[f.exterior.index]
            area = _face_area_3d(f.surface, outer, d.cycle_points(f.exterior))
            perimeter = _perimeter(d.cycle_points(f.exterior))
            if area <= self.tol * perimeter * 0.5:
                self.add(DefectKind.DEGENERATE_FACE, 'face has no area', (fh,))
                continue

            sign = 1.0 if f.outward else -1.0
            if polygon_signed_area_2d(outer) * sign <= 0.0:
                self.add(DefectKind.FACE_WINDING,
                         'exterior cycle does not wind counter-clockwise about the face normal',
                         (fh, f.exterior))
            uv_tol = self._uv_tol(f.surface)
            for ch in f.interiors:
                hole = self.cycle_uv[ch.index]
                if polygon_signed_area_2d(hole) * sign >= 0.0:
                    self.add(DefectKind.FACE_WINDING,
                             'interior cycle does not wind clockwise about the face normal',
                             (fh, ch))
                classes = [point_in_polygon_2d(p, outer, uv_tol) for p in hole]
                if min(classes) < 0 or max(classes) < 1 or \
                        polygons_cross(hole, outer, uv_tol):
                    self.add(DefectKind.HOLE_OUTSIDE_FACE,
                             'interior cycle is not inside the exterior', (fh, ch))
            for i, a in enumerate(f.interiors):
                for b in f.interiors[i + 1:]:
                    ha = self.cycle_uv[a.index]
                    hb = self.cycle_uv[b.index]
                    if polygons_cross(ha, hb, uv_tol) or \
                            point_in_polygon_2d(ha[0], hb, uv_tol) >= 0 or \
                            point_in_polygon_2d(hb[0], ha, uv_tol) >= 0:
                        self.add(DefectKind.HOLE_OUTSIDE_FACE, 'interior cycles overlap',
                                 (fh, a, b))

    ## step 6: orientation and shells
    ## -------------------------------

    def _check_orientation(self):
        d = self.d
        adjacency: Dict[int, List[Tuple[int, int]]] = {}
        for ei, uses in self.uses.items():
            if len(uses) != 2 or uses[0][1] == uses[1][1]:
                continue
            fa, fb = uses[0][1].index, uses[1][1].index
            adjacency.setdefault(fa, []).append((fb, ei))
            adjacency.setdefault(fb, []).append((fa, ei))

        reported: Set[int] = set()
        for sh in self.shells:
            faces = d.shell_faces(sh)
            members = {fh.index for fh in faces}
            start = faces[0].index
            seen = {start}
            queue = deque([start])
            while queue:
                fi = queue.popleft()
                for fj, ei in adjacency.get(fi, ()):
                    if fj not in members:
                        continue
                    uses = self.uses[ei]
                    if uses[0][2] == uses[1][2] and ei not in reported:
                        reported.add(ei)
                        self.add(DefectKind.INCONSISTENT_ORIENTATION,
                                 'neighbouring faces traverse their shared edge in the same direction',
                                 (Handle(EDGE, ei), Handle(FACE, fi), Handle(FACE, fj)))
                    if fj not in seen:
                        seen.add(fj)
                        queue.append(fj)
            missing = [fh for fh in faces if fh.index not in seen]
            if missing:
                self.add(DefectKind.DISCONNECTED_SHELL,
                         f'{len(missing)} face(s) are not edge-connected to the rest of the shell',
                         (sh,) + tuple(missing))

    def _check_shells(self):
        d = self.d
        sets: Dict[int, TriangleSet] = {}
        for sh in self.shells:
            tris = []
            try:
                for fh in d.shell_faces(sh):
                    tris.extend(triangulate_face(d, fh))
            except KernelError as exc:
                self.add(DefectKind.DEGENERATE_SHELL, f'shell cannot be triangulated: {exc}',
                         (sh,))
                continue
            ts = TriangleSet(tris)
            volume = ts.volume()
            area = ts.area()
            sets[sh.index] = ts
            self.shell_volume[sh.index] = volume
            if abs(volume) <= self.tol * max(area, epsilon):
                self.add(DefectKind.DEGENERATE_SHELL, 'shell encloses no volume', (sh,))
        if not self.report.ok:
            return

        outers = [sh for sh in self.shells if self.shell_volume[sh.index] > 0.0]
        voids = [sh for sh in self.shells if self.shell_volume[sh.index] < 0.0]

        # pairwise intersection and touching
        boxes = {i: ts.bbox() for i, ts in sets.items()}
        shells = list(self.shells)
        for i, a in enumerate(shells):
            for b in shells[i + 1:]:
                if not boxes[a.index].overlaps(boxes[b.index], self.tol):
                    continue
                if _shells_meet(sets[a.index], sets[b.index], self.tol):
                    self.add(DefectKind.SHELL_INTERSECTION, 'shells intersect or touch', (a, b))
        if not self.report.ok:
            return

        def _sample(sh):
            return d.vertex_point(d.cycle_vertices(d.face(d.shell_faces(sh)[0]).exterior)[0])

        def _inside(sh, container):
            return sets[container.index].classify(_sample(sh), self.tol) == Containment.INSIDE

        for v in voids:
            if not any(_inside(v, o) for o in outers):
                self.add(DefectKind.INWARD_ORIENTATION,
                         'shell is inside out and not inside an outer shell', (v,))
        for o in outers:
            for other in outers:
                if other == o or not _inside(o, other):
                    continue
                cavities = [v for v in voids if _inside(v, other) and _inside(o, v)]
                if not cavities:
                    self.add(DefectKind.SHELL_INTERSECTION,
                             'outer shell lies inside another outer shell', (o, other))

    ## step 7: unreachable entities
    ## -----------------------------

    def _check_dangling(self):
        d = self.d
        solid_shells = {sh.index for sh in self.shells}
        for i in range(len(d.shell_list)):
            if i not in solid_shells:
                self.add(DefectKind.DANGLING_ENTITY, 'shell is not part of the solid',
                         (Handle(SHELL, i),))
        faces = {fh.index for fh in self.faces}
        for i in range(len(d.faces)):
            if i not in faces:
                self.add(DefectKind.DANGLING_ENTITY, 'face is not part of any shell of the solid',
                         (Handle(FACE, i),))
        cycles = {ch.index for ch in self.cycles}
        for i in range(len(d.cycles)):
            if i not in cycles:
                self.add(DefectKind.DANGLING_ENTITY, 'cycle is not part of any face of the solid',
                         (Handle(CYCLE, i),))
        edges = {eh.index for eh in self.edges}
        for i in range(len(d.edges)):
            if i not in edges:
                self.add(DefectKind.DANGLING_ENTITY, 'edge is not used by the solid',
                         (Handle(EDGE, i),))
        verts = {vh.index for vh in self.verts}
        for i in range(len(d.vertices)):
            if i not in verts:
                self.add(DefectKind.DANGLING_ENTITY, 'vertex is not used by the solid',
                         (Handle(VERTEX, i),))

    ## step 8: statistics
    ## -------------------

    def _statistics(self):
        d = self.d
        per_shell = []
        for sh in self.shells:
            faces = d.shell_faces(sh)
            verts, edges, loops = set(), set(), 0
            for fh in faces:
                f = d.face(fh)
                for ch in (f.exterior,) + f.interiors:
                    loops += 1
                    for h in d.cycle_half_edges(ch):
                        eh = d.half_edge(h).edge
                        edges.add(self.emap[eh.index][0])
                        s, t = self._edge_verts(eh)
                        verts.add(s)
                        verts.add(t)
            v, e, f = len(verts), len(edges), len(faces)
            per_shell.append({
                'shell': sh.index,
                'vertices': v,
                'edges': e,
                'faces': f,
                'loops': loops,
                'euler': v - e + f,
                'volume': self.shell_volume.get(sh.index),
            })
        self.report.stats = {
            'vertices': len(set(self.vmap.values())),
            'edges': len(self.rep_edges),
            'faces': len(self.faces),
            'shells': len(self.shells),
            'per_shell': per_shell,
        }

    ## compaction
    ## -----------

    def _compact(self) -> Solid:
        d = self.d
        vindex: Dict[int, int] = {}
        vertices: List[Vertex] = []
        for vh in self.verts:
            rep = self.vmap[vh.index]
            if rep not in vindex:
                vindex[rep] = len(vertices)
                vertices.append(Vertex(d.vertices[rep].point))

        eindex: Dict[int, int] = {}
        edges: List[Edge] = []
        half_edges: List[Optional[HalfEdge]] = []
        for ei in self.rep_edges:
            e = d.edges[ei]
            k = len(edges)
            eindex[ei] = k
            eh = Handle(EDGE, k)
            edges.append(Edge(e.curve,
                              Handle(VERTEX, vindex[self.vmap[e.start.index]]),
                              Handle(VERTEX, vindex[self.vmap[e.end.index]]),
                              (Handle(HALF_EDGE, 2 * k), Handle(HALF_EDGE, 2 * k + 1))))
            half_edges.append(HalfEdge(eh, True))
            half_edges.append(HalfEdge(eh, False))

        cindex = {ch.index: i for i, ch in enumerate(self.cycles)}
        findex = {fh.index: i for i, fh in enumerate(self.faces)}
        sindex = {sh.index: i for i, sh in enumerate(self.shells)}

        cycles: List[Cycle] = []
        for ch in self.cycles:
            new_hes = []
            new_ch = Handle(CYCLE, len(cycles))
            for h in d.cycle_half_edges(ch):
                he = d.half_edge(h)
                rep, flip = self.emap[he.edge.index]
                k = eindex[rep]
                idx = 2 * k if he.forward != flip else 2 * k + 1
                half_edges[idx] = HalfEdge(Handle(EDGE, k), idx % 2 == 0, new_ch)
                new_hes.append(Handle(HALF_EDGE, idx))
            cycles.append(Cycle(tuple(new_hes),
                                Handle(FACE, findex[self.cycle_face[ch.index].index])))

        faces: List[Face] = []
        for fh in self.faces:
            f = d.face(fh)
            faces.append(Face(f.surface,
                              Handle(CYCLE, cindex[f.exterior.index]),
                              tuple(Handle(CYCLE, cindex[c.index]) for c in f.interiors),
                              f.outward,
                              Handle(SHELL, sindex[self.face_shell[fh.index].index])))

        shells = [Shell(tuple(Handle(FACE, findex[fh.index]) for fh in d.shell_faces(sh)),
                        self.shell_volume.get(sh.index, 1.0) < 0.0)
                  for sh in self.shells]

        return _new_solid(vertices, edges, half_edges, cycles, faces, shells)


## geometric helpers
## ------------------

def _perimeter(points):
    n = len(points)
    return sum(points[i].distance(points[(i + 1) % n]) for i in range(n))


def _face_area_3d(surface, uv, points):
    if isinstance(surface, PlaneSurface):
        return newell_normal(points).magnitude() / 2.0
    # area element of P(u, v) = C(u) + v * d
    scale = curve_derivative(surface.curve, 0.5).cross(surface.direction).magnitude()
    return abs(polygon_signed_area_2d(uv)) * scale


def _shells_meet(a: TriangleSet, b: TriangleSet, tol) -> bool:
    for tri in a.triangles:
        for k in range(3):
            if b.near(tri[k], tol):
                return True
            if b.segment_hits(tri[k], tri[(k + 1) % 3]):
                return True
    for tri in b.triangles:
        for k in range(3):
            if a.segment_hits(tri[k], tri[(k + 1) % 3]):
                return True
    return False


def validate_draft(draft):
    """Validate a builder draft.

    Returns
    -------
    (ValidationReport, Solid or None)
        The solid is only produced when the report has no defects.
    """
    return _Validator(draft).run()


def validate_solid(solid: Solid) -> ValidationReport:
    """Re-run validation over an existing solid (for diagnostics)."""
    from brepcad.builder import TopologyBuilder

    b = TopologyBuilder()
    b.vertices = list(solid.vertices)
    b.edges = list(solid.edges)
    b.half_edge_list = list(solid.half_edge_list)
    b.cycles = list(solid.cycles)
    b.faces = list(solid.faces)
    b.shell_list = list(solid.shell_list)
    b.solid_shells = solid.shells()
    report, _ = validate_draft(b)
    return report


__all__ = ['DefectKind', 'Defect', 'ValidationReport', 'validate_draft', 'validate_solid']
