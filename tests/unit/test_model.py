"""Tests for the tree model and its editing operations."""

import pytest

from mapweaver.errors import LayoutInvariantError, MapweaverError, TopologyError
from mapweaver.model import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    Node,
    Rect,
    TreeModel,
    ViewKind,
    ViewPosition,
)


class TestRect:
    """Tests for the derived rectangle helper."""

    def test_edges_and_center(self):
        r = Rect(10, 20, 100, 50)
        assert r.right == 110
        assert r.bottom == 70
        assert r.center == (60, 45)

    def test_padded_grows_half_on_each_side(self):
        assert Rect(0, 0, 10, 10).padded(10) == Rect(-5, -5, 20, 20)
        assert Rect(0, 0, 10, 10).padded(4, 8) == Rect(-2, -4, 14, 18)

    def test_union(self):
        u = Rect(0, 0, 10, 10).union(Rect(20, -5, 10, 10))
        assert u == Rect(0, -5, 30, 15)


class TestEditing:
    """Tests for add/remove/reparent operations."""

    def test_add_child_keeps_order(self, small_tree):
        assert small_tree['root'].children == ['a', 'b', 'c']
        assert small_tree['a1'].parent_id == 'a'

    def test_add_child_at_index(self, small_tree):
        small_tree.add_child('root', 'first', index=0)
        assert small_tree['root'].children[0] == 'first'

    def test_add_sibling_inserts_after(self, small_tree):
        small_tree.add_sibling('a', 'after_a')
        assert small_tree['root'].children == ['a', 'after_a', 'b', 'c']

    def test_add_sibling_of_root(self, small_tree):
        small_tree.add_sibling('root', 'root2')
        assert [r.id for r in small_tree.roots()] == ['root', 'root2']

    def test_defaults_for_missing_size(self):
        tree = TreeModel()
        node = tree.add_root('r', width=None)
        assert node.width == DEFAULT_WIDTH
        assert node.height == DEFAULT_HEIGHT

    def test_generated_ids_are_unique(self):
        tree = TreeModel()
        ids = {tree.add_root().id for _ in range(20)}
        assert len(ids) == 20

    def test_duplicate_id_rejected(self, small_tree):
        with pytest.raises(TopologyError):
            small_tree.add_child('root', 'a')

    def test_unknown_parent_rejected(self, small_tree):
        with pytest.raises(TopologyError):
            small_tree.add_child('nope', 'x')

    def test_remove_returns_subtree(self, small_tree):
        small_tree.add_reference('a1', 'b')
        removed = small_tree.remove('a')
        assert set(removed) == {'a', 'a1', 'a2'}
        assert 'a1' not in small_tree
        assert small_tree['root'].children == ['b', 'c']
        assert small_tree.references == []

    def test_remove_unknown_is_empty(self, small_tree):
        assert small_tree.remove('missing') == []

    def test_reparent(self, small_tree):
        small_tree.reparent('b', 'a', index=0)
        assert small_tree['a'].children == ['b', 'a1', 'a2']
        assert small_tree['root'].children == ['a', 'c']
        assert small_tree.depth('b') == 2

    def test_reparent_to_root(self, small_tree):
        small_tree.reparent('a', None)
        assert [r.id for r in small_tree.roots()] == ['root', 'a']
        assert small_tree['a'].is_root

    def test_reparent_into_own_subtree_rejected(self, small_tree):
        with pytest.raises(TopologyError):
            small_tree.reparent('a', 'a1')
        with pytest.raises(TopologyError):
            small_tree.reparent('a', 'a')

    def test_topology_error_is_value_error(self):
        assert issubclass(TopologyError, ValueError)
        assert issubclass(TopologyError, MapweaverError)
        assert issubclass(LayoutInvariantError, MapweaverError)

    def test_move_sibling(self, small_tree):
        small_tree.move_sibling('c', 0)
        assert small_tree['root'].children == ['c', 'a', 'b']


class TestTraversal:
    """Tests for lookups and walks."""

    def test_depths(self, deep_tree):
        assert deep_tree.depth('root') == 0
        assert deep_tree.depth('a2') == 3
        assert deep_tree.max_depth() == 3
        assert deep_tree.depths()['b'] == 1

    def test_ancestors_and_root(self, deep_tree):
        assert [n.id for n in deep_tree.ancestors('a2')] == ['a1', 'a', 'root']
        assert deep_tree.root_of('a2').id == 'root'

    def test_descendants_preorder(self, small_tree):
        assert [n.id for n in small_tree.descendants('root')] == ['a', 'a1', 'a2', 'b', 'c']

    def test_breadth_first(self, small_tree):
        order = [(n.id, d) for n, d in small_tree.walk_breadth_first()]
        assert order[:4] == [('root', 0), ('a', 1), ('b', 1), ('c', 1)]
        assert order[-1] == ('a2', 2)

    def test_children_of_none_are_roots(self, small_tree):
        assert [n.id for n in small_tree.children_of(None)] == ['root']

    def test_siblings(self, small_tree):
        assert [n.id for n in small_tree.siblings_of('b', include_self=False)] == ['a', 'c']

    def test_deep_chain_does_not_recurse(self):
        tree = TreeModel()
        tree.add_root('n0')
        for i in range(1, 3000):
            tree.add_child(f'n{i - 1}', f'n{i}')
        assert tree.max_depth() == 2999
        assert len(tree.descendants('n0')) == 2999


class TestNodeViews:
    """Tests for per-view position caches."""

    def test_set_position_mindmap(self):
        node = Node(id='x')
        node.set_position(5, 6)
        assert (node.x, node.y) == (5, 6)
        assert node.mindmap_position == ViewPosition(5, 6)

    def test_set_position_concept_map_leaves_active_position(self):
        node = Node(id='x', x=1, y=2)
        node.set_position(5, 6, ViewKind.CONCEPT_MAP)
        assert (node.x, node.y) == (1, 2)
        assert node.view_position(ViewKind.CONCEPT_MAP) == ViewPosition(5, 6)

    def test_apply_measured_size(self):
        node = Node.from_dict({'id': 'x', 'measuredSize': {'width': 90, 'height': 30}})
        assert node.apply_measured_size() is True
        assert (node.width, node.height) == (90, 30)
        assert node.apply_measured_size() is False


class TestSnapshot:
    """Tests for building a tree from snapshot records."""

    def test_order_field_sorts_children(self):
        tree = TreeModel.from_snapshot([
            {'id': 'b', 'parentId': 'r', 'order': 1},
            {'id': 'a', 'parentId': 'r', 'order': 0},
            {'id': 'r', 'parentId': None},
        ])
        assert tree['r'].children == ['a', 'b']

    def test_unresolvable_parents_skipped(self):
        tree = TreeModel.from_snapshot([
            {'id': 'r'},
            {'id': 'orphan', 'parentId': 'missing'},
            {'id': 'orphan_child', 'parentId': 'orphan'},
            {'id': 'x', 'parentId': 'y'},
            {'id': 'y', 'parentId': 'x'},
        ])
        assert len(tree) == 1
        assert tree.validate() == []

    def test_duplicate_ids_skipped(self):
        tree = TreeModel.from_snapshot([
            {'id': 'r', 'label': 'first'},
            {'id': 'r', 'label': 'second'},
        ])
        assert len(tree) == 1
        assert tree['r'].label == 'first'

    def test_view_caches_loaded(self):
        tree = TreeModel.from_snapshot([{
            'id': 'r',
            'mindmapPosition': {'x': 1, 'y': 2},
            'conceptMapPosition': {'x': 3, 'y': 4},
            'conceptMapSize': {'width': 200, 'height': 100},
        }])
        node = tree['r']
        assert node.mindmap_position == ViewPosition(1, 2)
        assert node.concept_map_position == ViewPosition(3, 4)
        assert node.concept_map_size.width == 200

    def test_to_snapshot_roundtrip_keeps_order(self, small_tree):
        records = small_tree.to_snapshot()
        rebuilt = TreeModel.from_snapshot(reversed(records))
        assert rebuilt['root'].children == ['a', 'b', 'c']
        assert rebuilt['a'].children == ['a1', 'a2']

    def test_validate_reports_inconsistent_child(self, small_tree):
        small_tree['b'].parent_id = 'c'
        problems = small_tree.validate()
        assert any('declares parent' in p for p in problems)

    def test_numeric_ids(self):
        tree = TreeModel.from_snapshot([
            {'id': 1, 'parentId': None},
            {'id': 2, 'parentId': 1, 'order': 0},
            {'id': 3, 'parentId': 2},
        ])
        assert len(tree) == 3
        assert tree['1'].children == ['2']
        assert tree['3'].parent_id == '2'
        assert tree.validate() == []

    @pytest.mark.parametrize('bad', [
        {'conceptMapPosition': {'x': 1}},
        {'conceptMapSize': 'big'},
        {'mindmapPosition': {'y': 4}},
        {'order': 'first'},
    ])
    def test_malformed_record_skipped(self, bad, caplog):
        tree = TreeModel.from_snapshot([
            {'id': 'r'},
            dict({'id': 'broken', 'parentId': 'r'}, **bad),
            {'id': 'ok', 'parentId': 'r', 'order': 1},
        ])
        assert 'broken' not in tree
        assert tree['r'].children == ['ok']
        assert 'malformed node record' in caplog.text

    def test_record_without_id_skipped(self):
        tree = TreeModel.from_snapshot([{'id': 'r'}, {'parentId': 'r'}, 'junk'])
        assert [n.id for n in tree] == ['r']


class TestMalformedTopology:
    """A children list pointing back up the tree must not hang the walkers."""

    @pytest.fixture
    def cyclic(self, small_tree):
        small_tree['a'].children.append('root')
        return small_tree

    def test_preorder_visits_each_node_once(self, cyclic, caplog):
        ids = [n.id for n in cyclic.walk_preorder()]
        assert ids == ['root', 'a', 'a1', 'a2', 'b', 'c']
        assert 'reached twice' in caplog.text

    def test_breadth_first_depths(self, cyclic):
        assert cyclic.depths() == {'root': 0, 'a': 1, 'b': 1, 'c': 1, 'a1': 2, 'a2': 2}
        assert cyclic.max_depth() == 2

    def test_descendants_terminate(self, cyclic):
        ids = [n.id for n in cyclic.descendants('a')]
        assert len(ids) == len(set(ids))
        assert 'a' not in ids

    def test_validate_reports_cycle(self, cyclic):
        problems = cyclic.validate()
        assert any('root: reached twice' in p for p in problems)
        assert any('a: child root declares parent None' in p for p in problems)

    def test_validate_reports_shared_child(self, small_tree):
        small_tree['b'].children.append('a1')
        problems = small_tree.validate()
        assert any('a1: reached twice' in p for p in problems)
        assert any('b: child a1 declares parent a' in p for p in problems)

    def test_parent_cycle_raises_on_ancestors(self, small_tree):
        small_tree['root'].parent_id = 'a1'
        with pytest.raises(LayoutInvariantError):
            small_tree.ancestors('a1')
