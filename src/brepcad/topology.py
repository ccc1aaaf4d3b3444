"""Boundary representation topology for brepCAD.

Topology hierarchy:

- Vertex:   one point in 3D space
- Edge:     a curve bounded by two vertices, with its two mated half-edges
- HalfEdge: one direction of travel along an edge; belongs to at most one
            cycle
- Cycle:    closed, ordered sequence of half-edges
- Face:     surface bounded by one exterior and zero or more interior cycles
- Shell:    edge-connected set of faces enclosing a volume (or a void)
- Solid:    set of shells

Entities live in per-kind arenas and refer to each other through
:class:`Handle` values, which are plain ``(kind, index)`` pairs.  The
arenas of a :class:`Solid` are tuples of frozen dataclasses, so a validated
solid can be shared freely between threads.  Solids are only produced by
:meth:`brepcad.builder.TopologyBuilder.finalize` (and :meth:`Solid.empty`);
calling the :class:`Solid` constructor directly raises
:class:`~brepcad.errors.TopologyError`, so there is no way to obtain a
partially valid one.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from brepcad.curves import reverse_curve, sample_curve, segment_count
from brepcad.errors import TopologyError
from brepcad.geom import Point3, Vector3
from brepcad.surfaces import surface_is_planar, surface_normal, surface_project

VERTEX = 'vertex'
EDGE = 'edge'
HALF_EDGE = 'half_edge'
CYCLE = 'cycle'
FACE = 'face'
SHELL = 'shell'

_MINT = object()

_ARENAS = {
    VERTEX: 'vertices',
    EDGE: 'edges',
    HALF_EDGE: 'half_edge_list',
    CYCLE: 'cycles',
    FACE: 'faces',
    SHELL: 'shell_list',
}


@dataclass(frozen=True, order=True)
class Handle:
    """Opaque, index-stable reference into an arena."""

    kind: str
    index: int

    def __repr__(self):
        return f'{self.kind}#{self.index}'


@dataclass(frozen=True, eq=False)
class Vertex:
    point: Point3


@dataclass(frozen=True, eq=False)
class Edge:
    curve: object
    start: Handle
    end: Handle
    # (forward, reverse)
    half_edges: Tuple[Handle, Handle]


@dataclass(frozen=True, eq=False)
class HalfEdge:
    edge: Handle
    forward: bool
    cycle: Optional[Handle] = None


@dataclass(frozen=True, eq=False)
class Cycle:
    half_edges: Tuple[Handle, ...]
    face: Optional[Handle] = None


@dataclass(frozen=True, eq=False)
class Face:
    surface: object
    exterior: Handle
    interiors: Tuple[Handle, ...] = ()
    outward: bool = True
    shell: Optional[Handle] = None


@dataclass(frozen=True, eq=False)
class Shell:
    faces: Tuple[Handle, ...]
    void: bool = False


class TopologyView:
    """Read-only traversal over a set of arenas.

    Subclasses provide ``vertices``, ``edges``, ``half_edge_list``, ``cycles``,
    ``faces`` and ``shell_list`` sequences.
    """

    def _lookup(self, handle, kind):
        if not isinstance(handle, Handle) or handle.kind != kind:
            raise TopologyError(f'expected a {kind} handle, got {handle!r}', (handle,))
        arena = getattr(self, _ARENAS[kind])
        if not 0 <= handle.index < len(arena):
            raise TopologyError(f'unknown handle {handle!r}', (handle,))
        return arena[handle.index]

    def vertex(self, h) -> Vertex:
        return self._lookup(h, VERTEX)

    def edge(self, h) -> Edge:
        return self._lookup(h, EDGE)

    def half_edge(self, h) -> HalfEdge:
        return self._lookup(h, HALF_EDGE)

    def cycle(self, h) -> Cycle:
        return self._lookup(h, CYCLE)

    def face(self, h) -> Face:
        return self._lookup(h, FACE)

    def shell(self, h) -> Shell:
        return self._lookup(h, SHELL)

    def vertex_point(self, h) -> Point3:
        return self.vertex(h).point

    def half_edges(self, h) -> Tuple[Handle, Handle]:
        """``(forward, reverse)`` half-edges of edge ``h``."""
        return self.edge(h).half_edges

    def half_edge_vertices(self, h) -> Tuple[Handle, Handle]:
        """``(from, to)`` vertex handles in the direction of travel."""
        he = self.half_edge(h)
        e = self.edge(he.edge)
        if he.forward:
            return (e.start, e.end)
        return (e.end, e.start)

    def half_edge_curve(self, h):
        """The edge curve, reversed for backward half-edges."""
        he = self.half_edge(h)
        curve = self.edge(he.edge).curve
        return curve if he.forward else reverse_curve(curve)

    def mate(self, h) -> Handle:
        """The other half-edge of the same edge."""
        he = self.half_edge(h)
        fwd, rev = self.edge(he.edge).half_edges
        return rev if h == fwd else fwd

    def half_edge_points(self, h) -> List[Point3]:
        """Sampled polyline along ``h`` in its direction of travel."""
        he = self.half_edge(h)
        e = self.edge(he.edge)
        pts = sample_curve(e.curve, segment_count(e.curve))
        if not he.forward:
            pts.reverse()
        return pts

    def cycle_half_edges(self, h) -> Tuple[Handle, ...]:
        return self.cycle(h).half_edges

    def cycle_points(self, h) -> List[Point3]:
        """Closed polyline around a cycle; the first point is not repeated."""
        pts = []
        for he in self.cycle(h).half_edges:
            pts.extend(self.half_edge_points(he)[:-1])
        return pts

    def cycle_vertices(self, h) -> List[Handle]:
        return [self.half_edge_vertices(he)[0] for he in self.cycle(h).half_edges]

    def face_surface(self, h):
        return self.face(h).surface

    def face_cycles(self, h) -> Tuple[Handle, Tuple[Handle, ...]]:
        f = self.face(h)
        return (f.exterior, f.interiors)

    def face_normal(self, h, at=None) -> Vector3:
        """Outward unit normal of face ``h``, evaluated near point ``at``.

        ``at`` defaults to the first vertex of the exterior cycle.
        """
        f = self.face(h)
        if at is None:
            first = self.cycle(f.exterior).half_edges[0]
            at = self.vertex_point(self.half_edge_vertices(first)[0])
        n = surface_normal(f.surface, surface_project(f.surface, at))
        return n if f.outward else -n

    def shell_faces(self, h) -> Tuple[Handle, ...]:
        return self.shell(h).faces

    def edge_points(self, h) -> Tuple[Point3, Point3]:
        e = self.edge(h)
        return (self.vertex_point(e.start), self.vertex_point(e.end))


@dataclass(frozen=True, eq=False)
class Solid(TopologyView):
    """Immutable, validated solid.

    Shells with ``void`` set are cavities; all others are outer shells.
    """

    vertices: Tuple[Vertex, ...] = ()
    edges: Tuple[Edge, ...] = ()
    half_edge_list: Tuple[HalfEdge, ...] = ()
    cycles: Tuple[Cycle, ...] = ()
    faces: Tuple[Face, ...] = ()
    shell_list: Tuple[Shell, ...] = ()
    _edge_faces: Mapping[int, Tuple[Handle, ...]] = field(default=None, init=False, repr=False)
    _token: object = field(default=None, repr=False)

    def __post_init__(self):
        if self._token is not _MINT:
            raise TopologyError('solids are only created by TopologyBuilder.finalize')
        object.__setattr__(self, '_token', None)
        mapping: Dict[int, List[Handle]] = {}
        for he in self.half_edge_list:
            if he.cycle is None:
                continue
            face = self.cycles[he.cycle.index].face
            if face is not None:
                mapping.setdefault(he.edge.index, []).append(face)
        object.__setattr__(self, '_edge_faces',
                           MappingProxyType({k: tuple(v) for k, v in mapping.items()}))

    @classmethod
    def empty(cls):
        return _new_solid()

    def shells(self) -> Tuple[Handle, ...]:
        return tuple(Handle(SHELL, i) for i in range(len(self.shell_list)))

    def outer_shells(self) -> Tuple[Handle, ...]:
        return tuple(Handle(SHELL, i) for i, s in enumerate(self.shell_list) if not s.void)

    def void_shells(self) -> Tuple[Handle, ...]:
        return tuple(Handle(SHELL, i) for i, s in enumerate(self.shell_list) if s.void)

    def is_void(self, h) -> bool:
        return self.shell(h).void

    def iter_faces(self) -> Iterator[Handle]:
        for i in range(len(self.faces)):
            yield Handle(FACE, i)

    def iter_edges(self) -> Iterator[Handle]:
        for i in range(len(self.edges)):
            yield Handle(EDGE, i)

    def iter_vertices(self) -> Iterator[Handle]:
        for i in range(len(self.vertices)):
            yield Handle(VERTEX, i)

    def edge_faces(self, h) -> Tuple[Handle, ...]:
        """Faces using edge ``h`` (two for every edge of a valid solid)."""
        self.edge(h)
        return self._edge_faces.get(h.index, ())

    def is_empty(self) -> bool:
        return not self.shell_list

    def is_planar(self) -> bool:
        return all(surface_is_planar(f.surface) for f in self.faces)

    def summary(self) -> Dict[str, int]:
        return {
            'shells': len(self.shell_list),
            'faces': len(self.faces),
            'cycles': len(self.cycles),
            'edges': len(self.edges),
            'vertices': len(self.vertices),
        }

    def __repr__(self):
        s = self.summary()
        return ('Solid(shells={shells}, faces={faces}, edges={edges}, '
                'vertices={vertices})'.format(**s))


def _new_solid(vertices=(), edges=(), half_edges=(), cycles=(), faces=(), shells=()) -> Solid:
    """Create a solid from validated arenas; only validation calls this."""
    return Solid(tuple(vertices), tuple(edges), tuple(half_edges), tuple(cycles),
                 tuple(faces), tuple(shells), _token=_MINT)


__all__ = [
    'VERTEX', 'EDGE', 'HALF_EDGE', 'CYCLE', 'FACE', 'SHELL',
    'Handle', 'Vertex', 'Edge', 'HalfEdge', 'Cycle', 'Face', 'Shell',
    'TopologyView', 'Solid',
]
