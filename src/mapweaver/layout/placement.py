# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Initial and incremental placement for the mind-map and concept-map views.

"""
Initial placement of nodes that have no position in a view yet.

A view is initialized lazily: a node whose view cache is None gets a
position computed here, a node that already has one keeps it. Both
placements are idempotent; call ``recalculate_layout`` to discard the
cache and start over.

- MindmapPlacement: roots in a row, children to the left or right of
  their parent, stacked below already placed siblings.
- ConceptMapPlacement: nested containers; children are stacked vertically
  inside their parent below its header, positions relative to the parent.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from ..config import CollisionConfig, ConceptMapConfig, MindmapConfig
from ..model import Node, TreeModel, ViewKind, ViewPosition, ViewSize

logger = logging.getLogger(__name__)


class MindmapPlacement:
    """Left/right branch placement for the mind-map view."""

    def __init__(self, tree: TreeModel, config: Optional[MindmapConfig] = None):
        self.tree = tree
        self.config = config or MindmapConfig()

    def is_initialized(self) -> bool:
        if not self.tree.roots():
            return True
        return any(n.mindmap_position is not None for n in self.tree)

    @staticmethod
    def node_needs_layout(node: Node) -> bool:
        return node.mindmap_position is None

    def node_side(self, node_id: str) -> Optional[str]:
        """'left' or 'right' of the node's root; None for roots and unknown ids."""
        node = self.tree.get(node_id)
        if node is None or node.is_root:
            return None
        root = self.tree.root_of(node_id)
        return 'left' if node.x < root.x else 'right'

    def initialize_layout(self) -> bool:
        """Place every node without a mind-map position. Returns True if any were placed."""
        pending = [n for n in self.tree if self.node_needs_layout(n)]
        if not pending:
            logger.debug("Mindmap: all nodes already have positions")
            return False
        logger.info(f"Mindmap: calculating layout for {len(pending)} nodes")
        self.calculate_positions(pending)
        return True

    def recalculate_layout(self) -> None:
        for node in self.tree:
            node.mindmap_position = None
        self.calculate_positions(self.tree.nodes())

    def calculate_positions(self, nodes: List[Node]) -> None:
        pending = {n.id for n in nodes}
        self.layout_root_nodes([n for n in nodes if n.is_root])
        # Breadth-first so a parent is always placed before its children
        groups: Dict[str, List[Node]] = OrderedDict()
        for node, _ in self.tree.walk_breadth_first():
            if node.id in pending and not node.is_root:
                groups.setdefault(node.parent_id, []).append(node)
        for parent_id, children in groups.items():
            self.layout_child_nodes(parent_id, children, pending)

    def layout_root_nodes(self, roots: List[Node]) -> None:
        """Place new roots in a row after the already positioned ones."""
        if not roots:
            return
        cfg = self.config
        new_ids = {r.id for r in roots}
        current_x = 0.0
        for existing in self.tree.roots():
            if existing.id in new_ids or existing.mindmap_position is None:
                continue
            current_x = max(current_x, existing.x + existing.width + cfg.horizontal_spacing)

        for root in roots:
            root.set_position(current_x - root.width / 2, -root.height / 2)
            logger.debug(f"Root {root.id}: pos=({root.x}, {root.y})")
            current_x += root.width + cfg.horizontal_spacing

    def layout_child_nodes(self, parent_id: str, children: List[Node], pending: set) -> None:
        parent = self.tree.get(parent_id)
        if parent is None:
            logger.warning(f"Mindmap: parent {parent_id} not found, skipping {len(children)} nodes")
            return
        cfg = self.config
        side = self.determine_side_for_children(parent, pending)
        existing = [c for c in self.tree.children_of(parent_id)
                    if c.id not in pending and c.mindmap_position is not None]

        start_y = parent.y
        if existing:
            start_y = max(c.y + c.height for c in existing) + cfg.vertical_spacing
        offset_x = -cfg.horizontal_spacing if side == 'left' else cfg.horizontal_spacing

        y = start_y
        for child in children:
            child.set_position(parent.x + offset_x, y)
            logger.debug(f"Child {child.id}: pos=({child.x}, {child.y}), side={side}")
            y += child.height + cfg.vertical_spacing
        for child in children:
            pending.discard(child.id)

    def determine_side_for_children(self, parent: Node, pending: Optional[set] = None) -> str:
        """Roots balance their two sides; deeper nodes inherit their side."""
        pending = pending or set()
        if parent.is_root:
            placed = [c for c in self.tree.children_of(parent.id) if c.id not in pending]
            if not placed:
                return 'right'
            left = sum(1 for c in placed if c.x < parent.x)
            right = len(placed) - left
            return 'left' if left <= right else 'right'
        root = self.tree.root_of(parent.id)
        if root is None:
            return 'right'
        return 'left' if parent.x < root.x else 'right'


class ConceptMapPlacement:
    """Nested-container placement for the concept-map view."""

    def __init__(self, tree: TreeModel,
                 collision: Optional[CollisionConfig] = None,
                 config: Optional[ConceptMapConfig] = None):
        self.tree = tree
        self.collision = collision or CollisionConfig()
        self.config = config or ConceptMapConfig()

    @property
    def content_top(self) -> float:
        """First y inside a container, below its header."""
        return self.collision.container_padding + self.collision.header_height

    def is_initialized(self) -> bool:
        return any(n.concept_map_position is not None for n in self.tree)

    def initialize_layout(self) -> bool:
        if self.is_initialized():
            logger.debug("ConceptMap: already initialized, using existing positions")
            return False
        logger.info("ConceptMap: calculating initial layout from hierarchy")
        self.calculate_positions()
        return True

    def recalculate_layout(self) -> None:
        for node in self.tree:
            node.concept_map_position = None
            node.concept_map_size = None
        self.calculate_positions()

    def _leaf_size(self) -> ViewSize:
        return ViewSize(self.config.leaf_width, self.config.leaf_height)

    def container_size(self, parent_id: str) -> ViewSize:
        """Bounding size of a container's children plus padding on both sides."""
        children = self.tree.children_of(parent_id)
        if not children:
            return self._leaf_size()
        pad = self.collision.container_padding
        rects = []
        for c in children:
            pos = c.concept_map_position or ViewPosition(c.x, c.y)
            size = c.concept_map_size or ViewSize(c.width, c.height)
            rects.append((pos.x, pos.y, pos.x + size.width, pos.y + size.height))
        min_x = min(r[0] for r in rects)
        min_y = min(r[1] for r in rects)
        max_x = max(r[2] for r in rects)
        max_y = max(r[3] for r in rects)
        return ViewSize(max_x - min_x + pad * 2, max_y - min_y + pad * 2)

    def bottom_up_order(self) -> List[Node]:
        return list(reversed(list(self.tree.walk_preorder())))

    def calculate_positions(self) -> None:
        roots = self.tree.roots()
        if not roots:
            return
        for node in self.bottom_up_order():
            self.calculate_node_size(node)
        for root in roots:
            self.position_children(root.id)

        spacing = self.config.node_spacing
        current_x = 0.0
        for root in roots:
            size = root.concept_map_size or self._leaf_size()
            root.concept_map_position = ViewPosition(current_x, 0.0)
            current_x += size.width + spacing * 3

    def calculate_node_size(self, node: Node) -> None:
        """Leaves get the minimum size; containers fit a vertical stack of children."""
        children = self.tree.children_of(node.id)
        if not children:
            node.concept_map_size = self._leaf_size()
            return
        pad = self.collision.container_padding
        spacing = self.config.node_spacing
        sizes = [c.concept_map_size or self._leaf_size() for c in children]
        height = self.content_top + sum(s.height + spacing for s in sizes) - spacing + pad
        node.concept_map_size = ViewSize(max(s.width for s in sizes) + pad * 2, height)

    def position_children(self, parent_id: str) -> None:
        """Stack children below the header; positions are relative to the parent."""
        stack = [parent_id]
        while stack:
            pid = stack.pop()
            y = self.content_top
            for child in self.tree.children_of(pid):
                size = child.concept_map_size or self._leaf_size()
                child.concept_map_position = ViewPosition(self.collision.container_padding, y)
                y += size.height + self.config.node_spacing
                stack.append(child.id)

    def place_new_node(self, node_id: str) -> bool:
        """
        Give a freshly added node a concept-map position below its placed
        siblings (or after the last root). Returns False if it already had one.
        """
        node = self.tree[node_id]
        if node.concept_map_position is not None:
            return False
        if node.concept_map_size is None:
            node.concept_map_size = self._leaf_size()
        placed = [s for s in self.tree.siblings_of(node_id, include_self=False)
                  if s.concept_map_position is not None]
        if node.is_root:
            x = 0.0
            for s in placed:
                size = s.concept_map_size or self._leaf_size()
                x = max(x, s.concept_map_position.x + size.width + self.config.node_spacing * 3)
            node.concept_map_position = ViewPosition(x, 0.0)
            return True

        y = self.content_top
        for s in placed:
            size = s.concept_map_size or self._leaf_size()
            y = max(y, s.concept_map_position.y + size.height + self.config.node_spacing)
        node.concept_map_position = ViewPosition(self.collision.container_padding, y)
        return True


def initialize_view(tree: TreeModel, view: ViewKind, config=None) -> bool:
    """Initialize one view's positions using the matching placement."""
    if view is ViewKind.MINDMAP:
        mindmap = config.mindmap if config is not None else None
        return MindmapPlacement(tree, mindmap).initialize_layout()
    collision = config.collision if config is not None else None
    concept = config.concept_map if config is not None else None
    return ConceptMapPlacement(tree, collision, concept).initialize_layout()
