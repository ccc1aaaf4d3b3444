"""Tests for model descriptions, fingerprints and cached evaluation."""

import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from brepcad.errors import DescriptionError, KernelError, OperationError
from brepcad.pipeline import (OPERATIONS, MemoCache, evaluate, evaluate_result, fingerprint,
                              load_model, parse_model)
from brepcad.query import solid_bbox, solid_volume

PLATE = """
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
"""


def _two_boxes(offset=1):
    return {
        'nodes': {
            'a': {'op': 'box', 'length': 2, 'width': 2, 'height': 2},
            'b': {'op': 'box', 'length': 2, 'width': 2, 'height': 2,
                  'center': [offset, offset, offset]},
            'cut': {'op': 'difference', 'inputs': ['a', 'b']},
        },
        'output': 'cut',
    }


class TestParse:

    def test_yaml(self):
        graph = parse_model(PLATE)
        assert graph.output == 'part'
        assert graph.order[-1] == 'part'
        assert set(graph.order) == {'plate', 'bore', 'part'}
        assert graph.nodes['part'].inputs == ('plate', 'bore')

    def test_single_node_needs_no_output(self):
        graph = parse_model({'nodes': {'only': {'op': 'box', 'length': 1,
                                                'width': 1, 'height': 1}}})
        assert graph.output == 'only'

    def test_unused_nodes_are_not_ordered(self):
        desc = _two_boxes()
        desc['nodes']['spare'] = {'op': 'box', 'length': 1, 'width': 1, 'height': 1}
        graph = parse_model(desc)
        assert 'spare' not in graph.order
        assert 'spare' in graph.fingerprints

    def test_every_op_is_registered(self):
        assert {'box', 'cylinder', 'extrude', 'sweep', 'revolve', 'union',
                'difference', 'intersection', 'translate', 'rotate', 'scale',
                'mirror'} <= set(OPERATIONS)


class TestParseErrors:

    def _fails(self, desc, text):
        with pytest.raises(DescriptionError) as info:
            parse_model(desc)
        assert text in str(info.value)
        return info.value

    def test_missing_op(self):
        self._fails({'nodes': {'a': {'length': 1}}}, 'has no "op"')

    def test_unknown_op(self):
        err = self._fails({'nodes': {'a': {'op': 'sphere'}}}, 'unknown op')
        assert err.node == 'a'

    def test_input_and_inputs(self):
        desc = _two_boxes()
        desc['nodes']['cut']['input'] = 'a'
        self._fails(desc, 'not both')

    def test_arity(self):
        desc = _two_boxes()
        desc['nodes']['cut']['inputs'] = ['a']
        self._fails(desc, 'takes at least 2 input(s)')

    def test_bad_parameters(self):
        self._fails({'nodes': {'a': {'op': 'box', 'length': 1}}}, 'bad parameters for box')

    def test_missing_input(self):
        desc = _two_boxes()
        desc['nodes']['cut']['inputs'] = ['a', 'nowhere']
        self._fails(desc, "input 'nowhere' does not exist")

    def test_cycle(self):
        desc = {
            'nodes': {
                'a': {'op': 'translate', 'input': 'b', 'delta': [1, 0, 0]},
                'b': {'op': 'translate', 'input': 'a', 'delta': [0, 1, 0]},
            },
            'output': 'a',
        }
        err = self._fails(desc, 'dependency cycle')
        assert err.details['nodes'] == ['a', 'b']

    def test_output_must_exist(self):
        desc = _two_boxes()
        desc['output'] = 'missing'
        self._fails(desc, 'is not a node')

    def test_empty_nodes(self):
        self._fails({'nodes': {}}, 'non-empty "nodes"')

    def test_invalid_yaml(self):
        self._fails('nodes: [unclosed', 'invalid YAML')


class TestFingerprint:

    def test_stable(self):
        assert parse_model(_two_boxes()).fingerprints == parse_model(_two_boxes()).fingerprints

    def test_int_and_float_agree(self):
        assert fingerprint('box', {'length': 1}) == fingerprint('box', {'length': 1.0})

    def test_key_order_does_not_matter(self):
        assert fingerprint('box', {'length': 1, 'width': 2}) == \
            fingerprint('box', {'width': 2, 'length': 1})

    def test_changes_propagate_downstream(self):
        first = parse_model(_two_boxes(1))
        second = parse_model(_two_boxes(0.5))
        assert first.fingerprint('a') == second.fingerprint('a')
        assert first.fingerprint('b') != second.fingerprint('b')
        assert first.fingerprint('cut') != second.fingerprint('cut')


class TestEvaluate:

    def test_difference(self):
        assert solid_volume(evaluate(_two_boxes())) == pytest.approx(7.0)

    @pytest.mark.slow
    def test_plate_with_bore(self):
        part = evaluate(PLATE)
        assert solid_volume(part) == pytest.approx(3200 - 36 * math.pi, rel=1e-3)

    def test_profiles_and_transforms(self):
        desc = {
            'nodes': {
                'bar': {'op': 'extrude', 'height': 3,
                        'profile': {'kind': 'rectangle', 'width': 1, 'height': 2,
                                    'center': True}},
                'moved': {'op': 'translate', 'input': 'bar', 'delta': [0, 0, 1]},
                'big': {'op': 'scale', 'input': 'moved', 'factor': 2},
            },
            'output': 'big',
        }
        solid = evaluate(desc)
        assert solid_volume(solid) == pytest.approx(48.0)
        assert solid_bbox(solid).min.z == pytest.approx(2.0)

    def test_revolve_node(self):
        desc = {'nodes': {'ring': {
            'op': 'revolve', 'angle': 90,
            'axis': [[0, 0, 0], [0, 0, 1]],
            'profile': {'kind': 'polygon', 'plane': 'xz',
                        'points': [[1, 0], [2, 0], [2, 1], [1, 1]]},
        }}}
        assert solid_volume(evaluate(desc)) == pytest.approx(3 * math.pi / 4, rel=1e-2)

    def test_union_of_three(self):
        desc = {
            'nodes': {
                'a': {'op': 'box', 'length': 1, 'width': 1, 'height': 1},
                'b': {'op': 'box', 'length': 1, 'width': 1, 'height': 1, 'center': [3, 0, 0]},
                'c': {'op': 'box', 'length': 1, 'width': 1, 'height': 1, 'center': [6, 0, 0]},
                'all': {'op': 'union', 'inputs': ['a', 'b', 'c']},
            },
            'output': 'all',
        }
        solid = evaluate(desc)
        assert len(solid.outer_shells()) == 3

    def test_unused_failing_node_is_skipped(self):
        desc = _two_boxes()
        desc['nodes']['broken'] = {'op': 'box', 'length': -1, 'width': 1, 'height': 1}
        assert solid_volume(evaluate(desc)) == pytest.approx(7.0)

    def test_operation_error_propagates(self):
        with pytest.raises(OperationError):
            evaluate({'nodes': {'a': {'op': 'box', 'length': -1, 'width': 1, 'height': 1}}})

    def test_node_is_named_in_late_description_errors(self):
        desc = {'nodes': {'bar': {'op': 'extrude', 'height': 1,
                                  'profile': {'kind': 'hexagon'}}}}
        with pytest.raises(DescriptionError) as info:
            evaluate(desc)
        assert info.value.node == 'bar'

    def test_evaluate_result(self):
        bad = evaluate_result({'nodes': {'a': {'op': 'box', 'length': -1,
                                               'width': 1, 'height': 1}}})
        assert not bad.ok
        assert isinstance(bad.error, OperationError)
        assert bad.solid is None
        good = evaluate_result(_two_boxes())
        assert good.ok
        assert solid_volume(good.solid) == pytest.approx(7.0)

    @pytest.mark.parametrize('node', [
        {'op': 'tetrahedron', 'points': 5},
        {'op': 'tetrahedron', 'points': [[0, 0, 0], [1, 0, 0]]},
        {'op': 'sweep', 'path': 3,
         'profile': {'kind': 'rectangle', 'width': 1, 'height': 1}},
        {'op': 'revolve', 'axis': [[0, 0, 0], [0, 0, 1]], 'segments': 'x',
         'profile': {'kind': 'polygon', 'plane': 'xz',
                     'points': [[1, 0], [2, 0], [2, 1], [1, 1]]}},
        {'op': 'revolve', 'axis': 'z',
         'profile': {'kind': 'polygon', 'plane': 'xz',
                     'points': [[1, 0], [2, 0], [2, 1], [1, 1]]}},
        {'op': 'box', 'length': 'long', 'width': 1, 'height': 1},
        {'op': 'extrude', 'height': 1, 'profile': {'kind': 'polygon', 'points': 7}},
    ])
    def test_malformed_values_become_kernel_errors(self, node):
        result = evaluate_result({'nodes': {'n': node}})
        assert not result.ok
        assert isinstance(result.error, KernelError)

    def test_malformed_point_list_names_the_node(self):
        with pytest.raises(DescriptionError) as info:
            evaluate({'nodes': {'t': {'op': 'tetrahedron', 'points': 5}}})
        assert info.value.node == 't'
        assert 'list of points' in str(info.value)

    def test_nan_revolve_angle(self):
        desc = {'nodes': {'r': {
            'op': 'revolve', 'angle': float('nan'),
            'axis': [[0, 0, 0], [0, 0, 1]],
            'profile': {'kind': 'polygon', 'plane': 'xz',
                        'points': [[1, 0], [2, 0], [2, 1], [1, 1]]},
        }}}
        result = evaluate_result(desc)
        assert isinstance(result.error, OperationError)
        assert result.error.operation == 'revolve'

    def test_load_model(self, tmp_path):
        path = tmp_path / 'plate.yaml'
        path.write_text(PLATE, encoding='utf-8')
        graph = load_model(path)
        assert graph.output == 'part'


class TestCache:

    def test_hits_and_misses(self):
        cache = MemoCache()
        first = evaluate(_two_boxes(), cache)
        assert cache.misses == 3
        assert cache.hits == 0
        assert len(cache) == 3
        second = evaluate(_two_boxes(), cache)
        assert second is first
        assert cache.hits == 3

    def test_shared_subgraph(self):
        cache = MemoCache()
        evaluate(_two_boxes(1), cache)
        evaluate(_two_boxes(0.5), cache)
        # 'a' is reused, 'b' and 'cut' are new
        assert cache.hits == 1
        assert len(cache) == 5

    def test_cache_hits_are_logged(self, captured_logs):
        cache = MemoCache()
        evaluate(_two_boxes(), cache)
        evaluate(_two_boxes(), cache)
        events = [e['event'] for e in captured_logs]
        assert events.count('pipeline node evaluated') == 3
        assert events.count('pipeline cache hit') == 3

    def test_clear(self):
        cache = MemoCache()
        graph = parse_model(_two_boxes())
        evaluate(graph, cache)
        assert graph.fingerprint('cut') in cache
        cache.clear()
        assert len(cache) == 0
        assert cache.hits == cache.misses == 0

    def test_concurrent_evaluation(self):
        cache = MemoCache()
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: evaluate(_two_boxes(), cache), range(8)))
        assert len(cache) == 3
        assert all(solid_volume(r) == pytest.approx(7.0) for r in results)
