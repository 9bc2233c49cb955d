# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Subtree overlap resolution for the mind-map view.

"""
Overlap removal between sibling subtrees in absolute mind-map coordinates.

Unlike the concept-map resolver, a sibling here stands for its whole
subtree: the comparison uses the bounding rectangle of the node and its
expanded descendants, and a push moves the node together with every
descendant. Pushes are capped per step and the number of passes is small,
so a single call is cheap and repeated edits converge over time.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from ..config import MindmapConfig
from ..model import Node, Rect, TreeModel
from .collision import ResolveResult, ResolveStatus, get_overlap, rectangles_overlap

logger = logging.getLogger(__name__)


class SubtreeOverlapResolver:
    """
    Sibling subtree separation for the mind-map view.

    Args:
        tree: The model to operate on.
        config: Subtree padding, push cap and pass count.
    """

    def __init__(self, tree: TreeModel, config: Optional[MindmapConfig] = None):
        self.tree = tree
        self.config = config or MindmapConfig()

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def subtree_bounds(self, node_id: str) -> Rect:
        """
        Bounding rectangle of a node and its expanded descendants.

        Every non-collapsed level is padded by the subtree padding on each
        side, so deeper subtrees carry proportionally more margin. A
        collapsed node contributes only its own rectangle.
        """
        pad_x = self.config.subtree_padding_x
        pad_y = self.config.subtree_padding_y
        order: List[Node] = []
        stack = [self.tree[node_id]]
        while stack:
            node = stack.pop()
            order.append(node)
            if not node.collapsed:
                stack.extend(self.tree.children_of(node.id))

        bounds: Dict[str, Rect] = {}
        for node in reversed(order):
            rect = node.rect()
            if node.collapsed:
                bounds[node.id] = rect
                continue
            for child in self.tree.children_of(node.id):
                rect = rect.union(bounds[child.id])
            bounds[node.id] = rect.padded(pad_x * 2, pad_y * 2)
        return bounds[node_id]

    def move_subtree(self, node_id: str, dx: float, dy: float) -> None:
        """Translate a node and all its descendants (collapsed ones included)."""
        if dx == 0 and dy == 0:
            return
        node = self.tree[node_id]
        for n in [node] + self.tree.descendants(node_id):
            n.set_position(n.x + dx, n.y + dy)

    # ------------------------------------------------------------------
    # One sibling level
    # ------------------------------------------------------------------

    def resolve_sibling_overlaps(self, siblings: List[Node]) -> ResolveResult:
        """Push overlapping sibling subtrees apart and off their parent's rectangle."""
        if not siblings:
            return ResolveResult(None, ResolveStatus.NO_OP)
        cfg = self.config
        parent_id = siblings[0].parent_id
        parent = self.tree.get(parent_id)
        bounds = [(node, self.subtree_bounds(node.id)) for node in siblings]
        moved: List[str] = []

        def push(entry_index: int, dx: float, dy: float) -> None:
            node, rect = bounds[entry_index]
            self.move_subtree(node.id, dx, dy)
            bounds[entry_index] = (node, rect.translated(dx, dy))
            if node.id not in moved:
                moved.append(node.id)

        iterations = 0
        had_overlap = True
        while had_overlap and iterations < cfg.max_iterations:
            had_overlap = False
            iterations += 1

            for i in range(len(bounds)):
                for j in range(i + 1, len(bounds)):
                    rect_a = bounds[i][1]
                    rect_b = bounds[j][1]
                    if not rectangles_overlap(rect_a, rect_b):
                        continue
                    had_overlap = True
                    overlap_x, overlap_y = get_overlap(rect_a, rect_b)
                    if overlap_x < overlap_y:
                        amount = min(overlap_x / 2, cfg.max_push)
                        sign = -1 if rect_a.x < rect_b.x else 1
                        push(i, sign * amount, 0)
                        push(j, -sign * amount, 0)
                    else:
                        amount = min(overlap_y / 2, cfg.max_push)
                        sign = -1 if rect_a.y < rect_b.y else 1
                        push(i, 0, sign * amount)
                        push(j, 0, -sign * amount)

            if parent is not None:
                parent_rect = parent.rect()
                for k in range(len(bounds)):
                    rect = bounds[k][1]
                    if not rectangles_overlap(rect, parent_rect):
                        continue
                    had_overlap = True
                    overlap_x, overlap_y = get_overlap(rect, parent_rect)
                    if overlap_x < overlap_y:
                        amount = min(overlap_x + cfg.subtree_padding_x, cfg.max_push)
                        push(k, -amount if rect.x < parent_rect.x else amount, 0)
                    else:
                        amount = min(overlap_y + cfg.subtree_padding_y, cfg.max_push)
                        push(k, 0, -amount if rect.y < parent_rect.y else amount)

        if had_overlap:
            logger.debug(f"Subtree resolution under {parent_id} stopped after {iterations} passes")
            return ResolveResult(parent_id, ResolveStatus.MAX_ITERATIONS, iterations, moved)
        status = ResolveStatus.CONVERGED if moved else ResolveStatus.NO_OP
        return ResolveResult(parent_id, status, iterations, moved)

    # ------------------------------------------------------------------
    # Whole tree
    # ------------------------------------------------------------------

    def _level(self, parent_id: Optional[str], visible: Optional[Set[str]]) -> List[Node]:
        level = self.tree.children_of(parent_id)
        if visible is None:
            return level
        return [n for n in level if n.id in visible]

    def resolve_all(self, visible_ids: Optional[Iterable[str]] = None) -> List[ResolveResult]:
        """
        Resolve every sibling level deepest-first, then the roots.

        With ``visible_ids`` only visible siblings are compared (and only
        visible parents descended into), while bounds still include every
        expanded descendant.
        """
        visible = set(visible_ids) if visible_ids is not None else None
        results = []
        roots = self._level(None, visible)
        for root in roots:
            results.extend(self._resolve_subtree(root.id, visible))
        results.append(self.resolve_sibling_overlaps(roots))
        return results

    def _resolve_subtree(self, root_id: str, visible: Optional[Set[str]]) -> List[ResolveResult]:
        order: List[str] = []
        stack = [root_id]
        while stack:
            nid = stack.pop()
            order.append(nid)
            stack.extend(n.id for n in self._level(nid, visible))
        results = []
        for nid in reversed(order):
            children = self._level(nid, visible)
            if children:
                results.append(self.resolve_sibling_overlaps(children))
        return results

    def resolve_bottom_up(self, affected_ids: Iterable[str],
                          visible_ids: Optional[Iterable[str]] = None) -> List[ResolveResult]:
        """
        Resolve only the sibling levels on the ancestor chains of the
        affected nodes, each level once, then the roots.
        """
        visible = set(visible_ids) if visible_ids is not None else None
        processed: Set[Optional[str]] = set()
        results = []
        for node_id in affected_ids:
            node = self.tree.get(node_id)
            if node is None:
                logger.debug(f"resolve_bottom_up: unknown node {node_id}, skipping")
                continue
            for member in [node] + self.tree.ancestors(node_id):
                if member.parent_id in processed:
                    continue
                processed.add(member.parent_id)
                siblings = self._level(member.parent_id, visible)
                if len(siblings) > 1:
                    results.append(self.resolve_sibling_overlaps(siblings))

        roots = self._level(None, visible)
        if len(roots) > 1 and None not in processed:
            results.append(self.resolve_sibling_overlaps(roots))
        return results

    def resolve_affected_roots(self, affected_ids: Iterable[str],
                               visible_ids: Optional[Iterable[str]] = None) -> List[ResolveResult]:
        """Fully resolve every tree containing an affected node, then the roots."""
        visible = set(visible_ids) if visible_ids is not None else None
        root_ids: List[str] = []
        for node_id in affected_ids:
            root = self.tree.root_of(node_id)
            if root is not None and root.id not in root_ids:
                root_ids.append(root.id)
        results = []
        for root_id in root_ids:
            if visible is None or root_id in visible:
                results.extend(self._resolve_subtree(root_id, visible))
        results.append(self.resolve_sibling_overlaps(self._level(None, visible)))
        return results
