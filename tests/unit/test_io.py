"""Tests for JSON Lines snapshot I/O."""

import io
import json

from mapweaver.io import (
    NodePosition,
    Reference,
    read_objects,
    read_positions_dict,
    read_snapshot,
    read_updates,
    write_positions,
    write_snapshot,
    write_updates,
)
from mapweaver.model import Node, Viewport
from mapweaver.view.orientation import PositionUpdate

SNAPSHOT = "\n".join([
    '{"type": "node", "id": "root", "parentId": null, "label": "Root"}',
    '{"type": "node", "id": "b", "parentId": "root", "order": 1, "width": 120}',
    '{"type": "node", "id": "a", "parentId": "root", "order": 0}',
    'this is not json',
    '',
    '{"type": "node", "id": "orphan", "parentId": "gone"}',
    '{"type": "reference", "source": "a", "target": "b"}',
    '{"type": "reference", "source": "a", "target": "orphan"}',
    '{"type": "viewport", "zoom": 0.35, "x": 10, "y": -5}',
    '{"type": "mystery"}',
])


class TestReadSnapshot:

    def test_tree_built(self):
        tree, viewport = read_snapshot(io.StringIO(SNAPSHOT))
        assert tree['root'].children == ['a', 'b']
        assert tree['b'].width == 120
        assert 'orphan' not in tree

    def test_references_filtered(self):
        tree, _ = read_snapshot(io.StringIO(SNAPSHOT))
        assert tree.references == [('a', 'b')]

    def test_viewport(self):
        _, viewport = read_snapshot(io.StringIO(SNAPSHOT))
        assert viewport == Viewport(zoom=0.35, x=10, y=-5)

    def test_no_viewport(self):
        _, viewport = read_snapshot(io.StringIO('{"type": "node", "id": "r"}\n'))
        assert viewport is None

    def test_numeric_ids(self):
        stream = io.StringIO(
            '{"type": "node", "id": 1, "parentId": null}\n'
            '{"type": "node", "id": 2, "parentId": 1}\n'
        )
        tree, _ = read_snapshot(stream)
        assert sorted(n.id for n in tree) == ['1', '2']
        assert tree['1'].children == ['2']

    def test_partial_nested_position_skips_line(self, caplog):
        stream = io.StringIO(
            '{"type": "node", "id": "r"}\n'
            '{"type": "node", "id": "a", "parentId": "r", "conceptMapPosition": {"x": 1}}\n'
            '{"type": "node", "id": "b", "parentId": "r"}\n'
        )
        tree, _ = read_snapshot(stream)
        assert tree['r'].children == ['b']
        assert 'malformed' in caplog.text


class TestObjects:

    def test_typed_objects(self):
        objs = list(read_objects(io.StringIO(SNAPSHOT)))
        kinds = [type(o) for o in objs]
        assert kinds.count(Node) == 4
        assert kinds.count(Reference) == 2
        assert kinds.count(Viewport) == 1

    def test_malformed_record_skipped(self):
        stream = io.StringIO('{"type": "position", "id": "a"}\n{"type": "position", "id": "b", "x": 1, "y": 2}\n')
        assert list(read_objects(stream)) == [NodePosition('b', 1, 2)]


class TestWriters:

    def test_positions_roundtrip(self):
        out = io.StringIO()
        write_positions({'a': (1.5, -2.0), 'b': (0.0, 3.0)}, out)
        lines = out.getvalue().splitlines()
        assert json.loads(lines[0]) == {'type': 'position', 'id': 'a', 'x': 1.5, 'y': -2.0}
        out.seek(0)
        assert read_positions_dict(out) == {'a': (1.5, -2.0), 'b': (0.0, 3.0)}

    def test_updates(self):
        out = io.StringIO()
        write_updates([PositionUpdate('a', 1.0, 2.0)], out)
        assert json.loads(out.getvalue()) == {'type': 'update', 'nodeId': 'a', 'newX': 1.0, 'newY': 2.0}
        out.seek(0)
        assert read_updates(out) == [PositionUpdate('a', 1.0, 2.0)]

    def test_snapshot_roundtrip(self):
        tree, viewport = read_snapshot(io.StringIO(SNAPSHOT))
        out = io.StringIO()
        write_snapshot(tree, out, viewport)
        out.seek(0)
        again, viewport2 = read_snapshot(out)
        assert again['root'].children == ['a', 'b']
        assert again.references == [('a', 'b')]
        assert viewport2 == viewport
