"""Evaluation of model descriptions as a dependency graph of operations.

A model description is a mapping (or YAML text) such as ::

    nodes:
      plate:
        op: box
        length: 40
        width: 20
        height: 4
      bore:
        op: cylinder
        radius: 3
        height: 10
        base: [0, 0, -3]
      part:
        op: difference
        inputs: [plate, bore]
        facet_curved: true
    output: part

Every node names an ``op``, its inputs (``input`` for one, ``inputs`` for
several) and the op's parameters.  Profiles for ``extrude``, ``sweep``
and ``revolve`` are given inline, e.g.
``profile: {kind: rectangle, width: 2, height: 1, plane: xz}``.

Each node is a pure function of its inputs, so its result is keyed by a
fingerprint: the SHA-256 digest of the canonical JSON of its op, its
parameters and the fingerprints of its inputs.  A caller-owned
:class:`MemoCache` reuses results across evaluations and threads.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import hashlib
import inspect
import json
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import yaml

from brepcad.errors import DescriptionError, KernelError
from brepcad.geom import Line, Plane, as_point3, as_vector3
from brepcad.log import get_logger
from brepcad.ops import primitives as _primitives
from brepcad.ops import transform as _transform
from brepcad.ops.boolean import difference, intersection, union
from brepcad.ops.extrude import extrude
from brepcad.ops.profile import circle, polygon, rectangle, regular_polygon
from brepcad.ops.revolve import revolve
from brepcad.ops.sweep import Path, sweep
from brepcad.topology import Solid

logger = get_logger(__name__)


## parameter conversion
## ---------------------

_PLANES = {
    'xy': Plane.xy,
    'xz': Plane.xz,
    'yz': Plane.yz,
}


def _plane(spec):
    if spec is None:
        return Plane.xy()
    if isinstance(spec, str):
        factory = _PLANES.get(spec.lower())
        if factory is None:
            raise DescriptionError(f'unknown plane {spec!r}')
        return factory()
    if isinstance(spec, Mapping):
        try:
            return Plane(as_point3(spec.get('origin', (0.0, 0.0, 0.0))),
                         as_vector3(spec['u_axis']), as_vector3(spec['v_axis']))
        except KeyError as exc:
            raise DescriptionError(f'plane is missing {exc.args[0]!r}') from exc
    raise DescriptionError(f'cannot interpret {spec!r} as a plane')


def _profile_polygon(points, holes=(), plane=None):
    return polygon(points, _plane(plane), holes)


def _profile_rectangle(width, height, center=False, plane=None):
    return rectangle(width, height, _plane(plane), center)


def _profile_circle(radius, center=(0.0, 0.0), plane=None):
    return circle(radius, _plane(plane), center)


def _profile_regular_polygon(sides, radius, center=(0.0, 0.0), angle=0.0, plane=None):
    return regular_polygon(sides, radius, _plane(plane), center, angle)


_PROFILES = {
    'polygon': _profile_polygon,
    'rectangle': _profile_rectangle,
    'circle': _profile_circle,
    'regular_polygon': _profile_regular_polygon,
}


def _profile(spec):
    if not isinstance(spec, Mapping) or 'kind' not in spec:
        raise DescriptionError('profile must be a mapping with a "kind"')
    params = dict(spec)
    kind = params.pop('kind')
    factory = _PROFILES.get(kind)
    if factory is None:
        raise DescriptionError(f'unknown profile kind {kind!r}')
    try:
        inspect.signature(factory).bind(**params)
    except TypeError as exc:
        raise DescriptionError(f'bad {kind} profile: {exc}') from exc
    return factory(**params)


## operations
## -----------

def _box(length, width, height, center=(0.0, 0.0, 0.0)):
    return _primitives.box(length, width, height, center)


def _cylinder(radius, height, base=(0.0, 0.0, 0.0)):
    return _primitives.cylinder(radius, height, base)


def _prism(sides, radius, height, base=(0.0, 0.0, 0.0)):
    return _primitives.prism(sides, radius, height, base)


def _faceted_cylinder(radius, height, segments=None, base=(0.0, 0.0, 0.0)):
    return _primitives.faceted_cylinder(radius, height, segments, base)


def _point_list(value, what):
    if not isinstance(value, (list, tuple)):
        raise DescriptionError(f'{what} must be a list of points, got {value!r}')
    return [as_point3(p) for p in value]


def _tetrahedron(points):
    points = _point_list(points, 'tetrahedron points')
    if len(points) != 4:
        raise DescriptionError('tetrahedron needs exactly 4 points')
    return _primitives.tetrahedron(*points)


def _extrude(profile, height):
    return extrude(_profile(profile), height)


def _sweep(profile, path):
    return sweep(_profile(profile), Path(tuple(_point_list(path, 'sweep path'))))


def _revolve(profile, axis, angle=360.0, segments=None):
    if not isinstance(axis, (list, tuple)) or len(axis) != 2:
        raise DescriptionError('axis must be [origin, direction]')
    origin, direction = axis
    return revolve(_profile(profile), Line(as_point3(origin), as_vector3(direction)),
                   angle, segments)


def _fold(fn):
    def _run(*solids, facet_curved=False):
        result = solids[0]
        for other in solids[1:]:
            result = fn(result, other, facet_curved)
        return result
    return _run


def _translate(solid, delta):
    return _transform.translate(solid, delta)


def _rotate(solid, axis, angle, center=None):
    return _transform.rotate(solid, axis, angle, center)


def _scale(solid, factor, center=None):
    return _transform.scale(solid, factor, center)


def _mirror(solid, plane):
    if not isinstance(plane, str):
        plane = _plane(plane)
    return _transform.mirror(solid, plane)


@dataclass(frozen=True)
class OpSpec:
    """An operation usable in a model description.

    ``arity`` is the exact number of inputs, or ``-2`` for two or more.
    """

    func: Callable[..., Solid]
    arity: int

    def check_inputs(self, count) -> bool:
        if self.arity == -2:
            return count >= 2
        return count == self.arity


OPERATIONS: Mapping[str, OpSpec] = {
    'box': OpSpec(_box, 0),
    'cylinder': OpSpec(_cylinder, 0),
    'prism': OpSpec(_prism, 0),
    'faceted_cylinder': OpSpec(_faceted_cylinder, 0),
    'tetrahedron': OpSpec(_tetrahedron, 0),
    'extrude': OpSpec(_extrude, 0),
    'sweep': OpSpec(_sweep, 0),
    'revolve': OpSpec(_revolve, 0),
    'union': OpSpec(_fold(union), -2),
    'difference': OpSpec(_fold(difference), -2),
    'intersection': OpSpec(_fold(intersection), -2),
    'translate': OpSpec(_translate, 1),
    'rotate': OpSpec(_rotate, 1),
    'scale': OpSpec(_scale, 1),
    'mirror': OpSpec(_mirror, 1),
}


## graph
## ------

def _canonical(value, node):
    """JSON-ready copy of a parameter value; numbers become floats."""
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (list, tuple)):
        return [_canonical(v, node) for v in value]
    if isinstance(value, Mapping):
        out = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise DescriptionError(f'parameter keys must be strings, got {k!r}', node)
            out[k] = _canonical(v, node)
        return out
    raise DescriptionError(f'unsupported parameter value {value!r}', node)


def fingerprint(op: str, params: Mapping[str, Any], inputs=()) -> str:
    """SHA-256 over the canonical JSON of an op, its params and input fingerprints."""
    doc = {'op': op, 'params': _canonical(dict(params), None), 'inputs': list(inputs)}
    text = json.dumps(doc, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


@dataclass(frozen=True)
class Node:
    name: str
    op: str
    inputs: Tuple[str, ...]
    params: Mapping[str, Any]


@dataclass
class ModelGraph:
    """A parsed model description.

    ``order`` lists the nodes the output depends on (the output last) in
    an order where every node follows its inputs.
    """

    nodes: Dict[str, Node]
    output: str
    order: List[str] = field(default_factory=list)
    fingerprints: Dict[str, str] = field(default_factory=dict)

    def fingerprint(self, name: str) -> str:
        return self.fingerprints[name]

    def __len__(self):
        return len(self.nodes)


def _parse_node(name, raw) -> Node:
    if not isinstance(raw, Mapping):
        raise DescriptionError('node must be a mapping', name)
    params = dict(raw)
    op = params.pop('op', None)
    if op is None:
        raise DescriptionError('node has no "op"', name)
    spec = OPERATIONS.get(op)
    if spec is None:
        raise DescriptionError(f'unknown op {op!r}', name)
    if 'input' in params and 'inputs' in params:
        raise DescriptionError('give either "input" or "inputs", not both', name)
    if 'input' in params:
        inputs = [params.pop('input')]
    else:
        inputs = params.pop('inputs', [])
        if isinstance(inputs, str):
            inputs = [inputs]
    if not isinstance(inputs, (list, tuple)) or not all(isinstance(i, str) for i in inputs):
        raise DescriptionError('inputs must be node names', name)
    if not spec.check_inputs(len(inputs)):
        wanted = 'at least 2' if spec.arity == -2 else str(spec.arity)
        raise DescriptionError(f'{op} takes {wanted} input(s), got {len(inputs)}', name)
    try:
        inspect.signature(spec.func).bind(*([None] * len(inputs)), **params)
    except TypeError as exc:
        raise DescriptionError(f'bad parameters for {op}: {exc}', name) from exc
    _canonical(params, name)
    return Node(name, op, tuple(inputs), params)


def _topological_order(nodes: Mapping[str, Node]) -> List[str]:
    """Kahn's algorithm; every node follows its inputs."""
    indegree = {name: 0 for name in nodes}
    users: Dict[str, List[str]] = {name: [] for name in nodes}
    for name, node in nodes.items():
        for src in node.inputs:
            indegree[name] += 1
            users[src].append(name)
    ready = deque(n for n, d in indegree.items() if d == 0)
    order = []
    while ready:
        name = ready.popleft()
        order.append(name)
        for user in users[name]:
            indegree[user] -= 1
            if indegree[user] == 0:
                ready.append(user)
    if len(order) != len(nodes):
        stuck = sorted(n for n, d in indegree.items() if d > 0)
        raise DescriptionError(f'dependency cycle among {stuck}', details={'nodes': stuck})
    return order


def _ancestors(nodes: Mapping[str, Node], output: str):
    needed = set()
    stack = [output]
    while stack:
        name = stack.pop()
        if name not in needed:
            needed.add(name)
            stack.extend(nodes[name].inputs)
    return needed


def parse_model(description) -> ModelGraph:
    """Build a :class:`ModelGraph` from a mapping or YAML text.

    Raises
    ------
    DescriptionError
        For malformed YAML, unknown ops, bad parameters, inputs naming
        missing nodes and dependency cycles.
    """
    if isinstance(description, ModelGraph):
        return description
    if isinstance(description, str):
        try:
            description = yaml.safe_load(description)
        except yaml.YAMLError as exc:
            raise DescriptionError(f'invalid YAML: {exc}') from exc
    if not isinstance(description, Mapping):
        raise DescriptionError('model description must be a mapping')
    raw_nodes = description.get('nodes')
    if not isinstance(raw_nodes, Mapping) or not raw_nodes:
        raise DescriptionError('model description needs a non-empty "nodes" mapping')
    nodes = {}
    for name, raw in raw_nodes.items():
        if not isinstance(name, str):
            raise DescriptionError(f'node names must be strings, got {name!r}')
        nodes[name] = _parse_node(name, raw)
    for node in nodes.values():
        for src in node.inputs:
            if src not in nodes:
                raise DescriptionError(f'input {src!r} does not exist', node.name)
    output = description.get('output')
    if output is None and len(nodes) == 1:
        output = next(iter(nodes))
    if output not in nodes:
        raise DescriptionError(f'output {output!r} is not a node')

    order = _topological_order(nodes)
    needed = _ancestors(nodes, output)
    graph = ModelGraph(nodes, output, [name for name in order if name in needed])
    for name in order:
        node = nodes[name]
        graph.fingerprints[name] = fingerprint(
            node.op, node.params, [graph.fingerprints[src] for src in node.inputs])
    return graph


def load_model(path) -> ModelGraph:
    """Parse the YAML model description stored at ``path``."""
    with open(path, 'r', encoding='utf-8') as fp:
        return parse_model(fp.read())


## evaluation
## -----------

class MemoCache:
    """Thread-safe memo of evaluated nodes keyed by fingerprint."""

    def __init__(self):
        self._lock = threading.Lock()
        self._store: Dict[str, Solid] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key) -> Optional[Solid]:
        with self._lock:
            solid = self._store.get(key)
            if solid is None:
                self.misses += 1
            else:
                self.hits += 1
            return solid

    def put(self, key, solid: Solid) -> None:
        with self._lock:
            self._store[key] = solid

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self.hits = 0
            self.misses = 0

    def __contains__(self, key):
        with self._lock:
            return key in self._store

    def __len__(self):
        with self._lock:
            return len(self._store)


def evaluate(description, cache: Optional[MemoCache] = None) -> Solid:
    """Evaluate a model description and return its output solid.

    ``description`` is a :class:`ModelGraph`, a mapping or YAML text.

    Raises
    ------
    DescriptionError
        If the description is malformed.
    OperationError
        If an operation fails; no partial result is returned.
    """
    graph = parse_model(description)
    results: Dict[str, Solid] = {}
    for name in graph.order:
        node = graph.nodes[name]
        key = graph.fingerprints[name]
        solid = cache.get(key) if cache is not None else None
        if solid is not None:
            logger.debug('pipeline cache hit', node=name, op=node.op)
        else:
            args = [results[src] for src in node.inputs]
            try:
                solid = OPERATIONS[node.op].func(*args, **node.params)
            except DescriptionError as exc:
                if exc.node is not None:
                    raise
                raise DescriptionError(str(exc), name, exc.details) from exc
            except KernelError:
                raise
            except (TypeError, ValueError, ArithmeticError) as exc:
                # wrongly typed parameter values
                raise DescriptionError(f'bad parameter values for {node.op}: {exc}',
                                       name) from exc
            logger.debug('pipeline node evaluated', node=name, op=node.op,
                         faces=len(solid.faces))
            if cache is not None:
                cache.put(key, solid)
        results[name] = solid
    return results[graph.output]


@dataclass(frozen=True)
class EvaluationResult:
    """Either a solid or the kernel error that prevented it."""

    solid: Optional[Solid] = None
    error: Optional[KernelError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def evaluate_result(description, cache: Optional[MemoCache] = None) -> EvaluationResult:
    """Like :func:`evaluate`, returning kernel errors instead of raising them."""
    try:
        return EvaluationResult(solid=evaluate(description, cache))
    except KernelError as exc:
        logger.debug('pipeline evaluation failed', error=str(exc))
        return EvaluationResult(error=exc)


__all__ = [
    'OPERATIONS',
    'OpSpec',
    'Node',
    'ModelGraph',
    'MemoCache',
    'EvaluationResult',
    'fingerprint',
    'parse_model',
    'load_model',
    'evaluate',
    'evaluate_result',
]
