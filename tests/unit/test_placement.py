"""Tests for initial and incremental placement."""

import pytest

from mapweaver.config import LayoutConfig
from mapweaver.layout.placement import ConceptMapPlacement, MindmapPlacement, initialize_view
from mapweaver.model import TreeModel, ViewKind, ViewPosition, ViewSize


class TestMindmapPlacement:

    def test_root_centred_on_origin(self):
        tree = TreeModel()
        tree.add_root('r')
        assert MindmapPlacement(tree).initialize_layout() is True
        assert (tree['r'].x, tree['r'].y) == (-75, -25)

    def test_first_children_go_right_and_stack(self):
        tree = TreeModel()
        tree.add_root('r')
        for cid in ('a', 'b', 'c'):
            tree.add_child('r', cid)
        MindmapPlacement(tree).initialize_layout()
        assert [tree[c].x for c in ('a', 'b', 'c')] == [125, 125, 125]
        assert [tree[c].y for c in ('a', 'b', 'c')] == [-25, 45, 115]

    def test_idempotent(self, small_tree):
        placement = MindmapPlacement(small_tree)
        placement.initialize_layout()
        before = {n.id: (n.x, n.y) for n in small_tree}
        assert placement.initialize_layout() is False
        assert {n.id: (n.x, n.y) for n in small_tree} == before

    def test_new_child_balances_sides(self, small_tree):
        placement = MindmapPlacement(small_tree)
        placement.initialize_layout()
        small_tree.add_child('root', 'late')
        placement.initialize_layout()
        assert small_tree['late'].x == small_tree['root'].x - 200
        assert placement.node_side('late') == 'left'
        assert placement.node_side('a') == 'right'
        assert placement.node_side('root') is None

    def test_grandchildren_follow_parent_side(self, small_tree):
        MindmapPlacement(small_tree).initialize_layout()
        assert small_tree['a1'].x == small_tree['a'].x + 200
        assert small_tree['a2'].y > small_tree['a1'].y

    def test_new_root_after_existing(self):
        tree = TreeModel()
        tree.add_root('r1')
        placement = MindmapPlacement(tree)
        placement.initialize_layout()
        tree.add_root('r2')
        placement.initialize_layout()
        assert tree['r2'].x > tree['r1'].x + tree['r1'].width

    def test_recalculate(self, small_tree):
        placement = MindmapPlacement(small_tree)
        placement.initialize_layout()
        small_tree['a'].set_position(999, 999)
        placement.recalculate_layout()
        assert small_tree['a'].x == 125


class TestConceptMapPlacement:

    @pytest.fixture
    def container(self):
        tree = TreeModel()
        tree.add_root('r')
        tree.add_child('r', 'a')
        tree.add_child('r', 'b')
        return tree

    def test_sizes_and_positions(self, container):
        ConceptMapPlacement(container).initialize_layout()
        assert container['a'].concept_map_size == ViewSize(100, 40)
        assert container['r'].concept_map_size == ViewSize(140, 160)
        assert container['a'].concept_map_position == ViewPosition(20, 50)
        assert container['b'].concept_map_position == ViewPosition(20, 100)
        assert container['r'].concept_map_position == ViewPosition(0, 0)

    def test_roots_in_a_row(self):
        tree = TreeModel()
        tree.add_root('r1')
        tree.add_root('r2')
        ConceptMapPlacement(tree).initialize_layout()
        assert tree['r2'].concept_map_position == ViewPosition(130, 0)

    def test_idempotent(self, container):
        placement = ConceptMapPlacement(container)
        assert placement.initialize_layout() is True
        container['a'].concept_map_position = ViewPosition(77, 88)
        assert placement.initialize_layout() is False
        assert container['a'].concept_map_position == ViewPosition(77, 88)

    def test_place_new_node(self, container):
        placement = ConceptMapPlacement(container)
        placement.initialize_layout()
        container.add_child('r', 'c')
        assert placement.place_new_node('c') is True
        assert container['c'].concept_map_position == ViewPosition(20, 150)
        assert placement.place_new_node('c') is False

    def test_container_size(self, container):
        placement = ConceptMapPlacement(container)
        placement.initialize_layout()
        assert placement.container_size('r') == ViewSize(140, 130)
        assert placement.container_size('a') == ViewSize(100, 40)

    def test_does_not_touch_mindmap_view(self, container):
        ConceptMapPlacement(container).initialize_layout()
        assert all(n.mindmap_position is None for n in container)


class TestInitializeView:

    def test_dispatch(self, small_tree):
        config = LayoutConfig()
        assert initialize_view(small_tree, ViewKind.MINDMAP, config) is True
        assert initialize_view(small_tree, ViewKind.CONCEPT_MAP, config) is True
        assert initialize_view(small_tree, ViewKind.CONCEPT_MAP) is False
        assert all(n.mindmap_position is not None for n in small_tree)
        assert all(n.concept_map_position is not None for n in small_tree)
