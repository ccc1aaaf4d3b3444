"""Mutable topology builder for brepCAD.

:class:`TopologyBuilder` accumulates vertices, edges, cycles, faces and
shells.  Each ``build_*`` call performs local consistency checks only and
raises :class:`~brepcad.errors.TopologyError` when a single step is
inconsistent on its own.  Global checks (closure, manifoldness,
orientation, shell nesting) happen in :meth:`TopologyBuilder.finalize`,
which hands the draft to :func:`brepcad.validate.validate_draft` and
either returns an immutable :class:`~brepcad.topology.Solid` or raises
:class:`~brepcad.errors.ValidationError`.

Typical use::

    b = TopologyBuilder()
    v = [b.build_vertex(p) for p in corners]
    ...
    face = b.build_planar_face([v[0], v[1], v[2], v[3]])
    shell = b.build_shell(faces)
    b.build_solid([shell])
    solid = b.finalize()

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from brepcad.config import get_config
from brepcad.curves import LineCurve, curve_end, curve_start, is_curve
from brepcad.errors import MathError, TopologyError, ValidationError
from brepcad.geom import Plane, as_point3, centroid, epsilon, newell_normal
from brepcad.log import get_logger
from brepcad.surfaces import SURFACE_TYPES, PlaneSurface
from brepcad.topology import (CYCLE, EDGE, FACE, HALF_EDGE, SHELL, VERTEX,
                              Cycle, Edge, Face, HalfEdge, Handle, Shell,
                              Solid, TopologyView, Vertex)

logger = get_logger(__name__)


class TopologyBuilder(TopologyView):
    """Accumulates topology entities for one solid."""

    def __init__(self):
        self.vertices: List[Vertex] = []
        self.edges: List[Edge] = []
        self.half_edge_list: List[HalfEdge] = []
        self.cycles: List[Cycle] = []
        self.faces: List[Face] = []
        self.shell_list: List[Shell] = []
        self.solid_shells: Optional[Tuple[Handle, ...]] = None
        self._line_edges: Dict[Tuple[int, int], Handle] = {}
        self._finalized = False

    def is_empty(self):
        return not (self.vertices or self.edges or self.cycles or
                    self.faces or self.shell_list)

    ## construction
    ## -------------

    def build_vertex(self, point) -> Handle:
        self.vertices.append(Vertex(as_point3(point)))
        return Handle(VERTEX, len(self.vertices) - 1)

    def build_edge(self, v1, v2, curve=None) -> Handle:
        """Edge from ``v1`` to ``v2``; a straight line unless ``curve`` is given.

        The curve must start on ``v1`` and end on ``v2``.
        """
        p1 = self.vertex_point(v1)
        p2 = self.vertex_point(v2)
        if curve is None:
            if p1.distance(p2) < epsilon:
                raise TopologyError('straight edge between coincident vertices', (v1, v2))
            curve = LineCurve(p1, p2)
        elif not is_curve(curve):
            raise TopologyError(f'not a curve: {curve!r}', (v1, v2))
        tol = get_config().distinct_min_distance
        if curve_start(curve).distance(p1) > tol or curve_end(curve).distance(p2) > tol:
            raise TopologyError('curve endpoints are not on the edge vertices', (v1, v2))

        index = len(self.edges)
        eh = Handle(EDGE, index)
        fwd = Handle(HALF_EDGE, len(self.half_edge_list))
        rev = Handle(HALF_EDGE, len(self.half_edge_list) + 1)
        self.half_edge_list.append(HalfEdge(eh, True))
        self.half_edge_list.append(HalfEdge(eh, False))
        self.edges.append(Edge(curve, v1, v2, (fwd, rev)))
        if isinstance(curve, LineCurve):
            self._line_edges.setdefault((v1.index, v2.index), eh)
        return eh

    def half_edge_between(self, v1, v2) -> Handle:
        """Half-edge running from ``v1`` to ``v2`` along a straight edge.

        Reuses an existing straight edge between the two vertices when there
        is one, otherwise builds it.
        """
        self.vertex(v1)
        self.vertex(v2)
        eh = self._line_edges.get((v1.index, v2.index))
        if eh is not None:
            return self.edge(eh).half_edges[0]
        eh = self._line_edges.get((v2.index, v1.index))
        if eh is not None:
            return self.edge(eh).half_edges[1]
        return self.edge(self.build_edge(v1, v2)).half_edges[0]

    def build_cycle(self, half_edges: Sequence[Handle]) -> Handle:
        half_edges = tuple(half_edges)
        if not half_edges:
            raise TopologyError('empty cycle')
        seen = set()
        for h in half_edges:
            he = self.half_edge(h)
            if he.cycle is not None or h in seen:
                raise TopologyError(f'half-edge {h!r} is already used by a cycle', (h,))
            seen.add(h)

        count = len(half_edges)
        for i, h in enumerate(half_edges):
            nxt = half_edges[(i + 1) % count]
            end = self.half_edge_vertices(h)[1]
            start = self.half_edge_vertices(nxt)[0]
            if end != start:
                if self.vertex_point(end).distance(self.vertex_point(start)) >= epsilon:
                    what = 'open cycle' if i == count - 1 else 'mismatched shared vertex'
                    raise TopologyError(f'{what} between {h!r} and {nxt!r}', (h, nxt))

        ch = Handle(CYCLE, len(self.cycles))
        self.cycles.append(Cycle(half_edges))
        for h in half_edges:
            self.half_edge_list[h.index] = replace(self.half_edge_list[h.index], cycle=ch)
        return ch

    def build_face(self, surface, exterior, interiors=(), outward=True) -> Handle:
        if not isinstance(surface, SURFACE_TYPES):
            raise TopologyError(f'not a surface: {surface!r}')
        interiors = tuple(interiors)
        cycles = (exterior,) + interiors
        if len(set(cycles)) != len(cycles):
            raise TopologyError('a cycle is listed twice in one face', cycles)
        for ch in cycles:
            if self.cycle(ch).face is not None:
                raise TopologyError(f'cycle {ch!r} is already owned by a face', (ch,))
        fh = Handle(FACE, len(self.faces))
        self.faces.append(Face(surface, exterior, interiors, bool(outward)))
        for ch in cycles:
            self.cycles[ch.index] = replace(self.cycles[ch.index], face=fh)
        return fh

    def build_planar_face(self, exterior: Sequence[Handle],
                          interiors: Iterable[Sequence[Handle]] = ()) -> Handle:
        """Planar face through vertex loops, joined by straight edges.

        The plane normal follows the winding of ``exterior`` (right-hand
        rule); interior loops must wind the other way.
        """
        pts = [self.vertex_point(v) for v in exterior]
        try:
            normal = newell_normal(pts).normalize()
        except MathError as exc:
            raise TopologyError('planar face loop has no area', tuple(exterior)) from exc
        surface = PlaneSurface(Plane.from_normal(centroid(pts), normal))
        outer = self._loop_cycle(exterior)
        inner = [self._loop_cycle(loop) for loop in interiors]
        return self.build_face(surface, outer, inner, True)

    def _loop_cycle(self, loop):
        loop = list(loop)
        count = len(loop)
        if count < 2:
            raise TopologyError('a vertex loop needs at least two vertices', tuple(loop))
        return self.build_cycle([self.half_edge_between(loop[i], loop[(i + 1) % count])
                                 for i in range(count)])

    def build_shell(self, faces: Sequence[Handle]) -> Handle:
        faces = tuple(faces)
        if not faces:
            raise TopologyError('empty shell')
        if len(set(faces)) != len(faces):
            raise TopologyError('a face is listed twice in one shell', faces)
        for fh in faces:
            if self.face(fh).shell is not None:
                raise TopologyError(f'face {fh!r} is already owned by a shell', (fh,))
        sh = Handle(SHELL, len(self.shell_list))
        self.shell_list.append(Shell(faces))
        for fh in faces:
            self.faces[fh.index] = replace(self.faces[fh.index], shell=sh)
        return sh

    def build_solid(self, shells: Sequence[Handle]) -> None:
        if self.solid_shells is not None:
            raise TopologyError('solid has already been built')
        shells = tuple(shells)
        if len(set(shells)) != len(shells):
            raise TopologyError('a shell is listed twice in the solid', shells)
        for sh in shells:
            self.shell(sh)
        self.solid_shells = shells

    ## validation
    ## -----------

    def validate(self):
        """Run full validation and return ``(report, solid_or_None)``."""
        from brepcad.validate import validate_draft
        return validate_draft(self)

    def finalize(self) -> Solid:
        """Validate the draft and return the immutable solid.

        Raises
        ------
        ValidationError
            With the complete report if any defect was found.
        """
        if self._finalized:
            raise TopologyError('builder has already been finalized')
        if self.solid_shells is None:
            if self.is_empty():
                self._finalized = True
                return Solid.empty()
            raise TopologyError('build_solid was not called')
        report, solid = self.validate()
        if not report.ok:
            logger.debug('finalize failed', defects=len(report.defects))
            raise ValidationError(report)
        self._finalized = True
        return solid


__all__ = ['TopologyBuilder']
