# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# AABB collision resolution for nested concept-map containers.

"""
Overlap resolution between sibling nodes inside concept-map containers.

Siblings are kept apart by a minimum gap and every container grows or
shrinks to enclose its children. Positions are relative to the parent
container; only nodes that already have a concept-map position take part,
a node without one is never placed implicitly.

After a node moves, ``resolve_overlaps_for_node`` resolves its own level
and then walks up the ancestor chain: each ancestor is resized to fit its
children and then separated from its own siblings, since a resized
container can start overlapping its neighbours.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from ..config import CollisionConfig
from ..model import Node, Rect, TreeModel, ViewPosition, ViewSize

logger = logging.getLogger(__name__)


# ============================================================================
# AABB PRIMITIVES
# ============================================================================

def rectangles_overlap(a: Rect, b: Rect) -> bool:
    """True when the interiors intersect (touching edges do not overlap)."""
    return not (
        a.x + a.width <= b.x
        or b.x + b.width <= a.x
        or a.y + a.height <= b.y
        or b.y + b.height <= a.y
    )


def get_overlap(a: Rect, b: Rect) -> Tuple[float, float]:
    """Overlap extent along x and y; positive values mean overlap."""
    overlap_x = min(a.x + a.width, b.x + b.width) - max(a.x, b.x)
    overlap_y = min(a.y + a.height, b.y + b.height) - max(a.y, b.y)
    return overlap_x, overlap_y


def overlap_matrix(rects: Sequence[Rect], gap: float = 0.0) -> np.ndarray:
    """
    Pairwise overlap test for many rectangles at once.

    Each rectangle is padded by gap/2 on every side. Returns an (n, n)
    boolean matrix with a False diagonal.
    """
    n = len(rects)
    if n == 0:
        return np.zeros((0, 0), dtype=bool)
    arr = np.array([[r.x, r.y, r.width, r.height] for r in rects], dtype=float)
    half = gap / 2
    x0 = arr[:, 0] - half
    y0 = arr[:, 1] - half
    x1 = arr[:, 0] + arr[:, 2] + half
    y1 = arr[:, 1] + arr[:, 3] + half

    separated_x = (x1[:, np.newaxis] <= x0[np.newaxis, :]) | (x1[np.newaxis, :] <= x0[:, np.newaxis])
    separated_y = (y1[:, np.newaxis] <= y0[np.newaxis, :]) | (y1[np.newaxis, :] <= y0[:, np.newaxis])
    overlaps = ~(separated_x | separated_y)
    np.fill_diagonal(overlaps, False)
    return overlaps


def find_overlapping_pairs(rects: Sequence[Rect], gap: float = 0.0) -> List[Tuple[int, int]]:
    """Index pairs (i < j) of rectangles that overlap once padded by the gap."""
    matrix = overlap_matrix(rects, gap)
    return [(int(i), int(j)) for i, j in np.argwhere(np.triu(matrix, k=1))]


# ============================================================================
# RESULTS
# ============================================================================

class ResolveStatus(Enum):
    """Outcome of one relaxation run."""
    NO_OP = "no_op"                    # nothing overlapped
    CONVERGED = "converged"            # overlaps found and removed
    MAX_ITERATIONS = "max_iterations"  # gave up; best-effort result


@dataclass
class ResolveResult:
    """Status of resolving one sibling level."""
    parent_id: Optional[str]
    status: ResolveStatus
    iterations: int = 0
    moved: List[str] = field(default_factory=list)
    remaining_overlaps: int = 0

    @property
    def converged(self) -> bool:
        return self.status is not ResolveStatus.MAX_ITERATIONS


@dataclass
class PropagationResult:
    """Status of resolving a node's level and every ancestor level above it."""
    node_id: str
    levels: List[ResolveResult] = field(default_factory=list)
    resized: List[str] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return all(level.converged for level in self.levels)

    @property
    def iterations(self) -> int:
        return sum(level.iterations for level in self.levels)


# ============================================================================
# RESOLVER
# ============================================================================

class AABBCollisionResolver:
    """
    Sibling overlap resolution and container auto-sizing for the concept-map view.

    Args:
        tree: The model to operate on.
        config: Gap, padding, header height, minimum container size and
            iteration cap.
        measure_container: Optional callback giving a container's size when
            it has children but no stored concept-map size yet.
    """

    def __init__(self, tree: TreeModel, config: Optional[CollisionConfig] = None,
                 measure_container: Optional[Callable[[str], ViewSize]] = None):
        self.tree = tree
        self.config = config or CollisionConfig()
        self.measure_container = measure_container

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def get_node_rect(self, node: Node) -> Optional[Rect]:
        """Rectangle in the parent's frame, or None if the node is not placed yet."""
        pos = node.concept_map_position
        if pos is None:
            return None
        if node.concept_map_size is not None:
            size = node.concept_map_size
        elif node.children and self.measure_container is not None:
            size = self.measure_container(node.id)
        else:
            size = ViewSize(node.width, node.height)
        return Rect(pos.x, pos.y, size.width, size.height)

    def min_y(self, parent_id: Optional[str]) -> float:
        """Topmost y a child may take: below the header inside a container."""
        if parent_id is None:
            return 0.0
        return self.config.container_padding + self.config.header_height

    def update_x(self, node: Node, x: float) -> bool:
        if node.concept_map_position is None:
            logger.warning(f"update_x: node {node.id} has no concept-map position, skipping")
            return False
        node.concept_map_position.x = x
        return True

    def update_y(self, node: Node, y: float, parent_id: Optional[str]) -> bool:
        if node.concept_map_position is None:
            logger.warning(f"update_y: node {node.id} has no concept-map position, skipping")
            return False
        node.concept_map_position.y = max(y, self.min_y(parent_id))
        return True

    def _placed(self, nodes: List[Node]) -> List[Node]:
        return [n for n in nodes if n.concept_map_position is not None]

    # ------------------------------------------------------------------
    # Sibling overlaps
    # ------------------------------------------------------------------

    def _moves_horizontally(self, overlap_x: float, overlap_y: float) -> bool:
        if overlap_x == overlap_y:
            return self.config.tie_axis == 'x'
        return overlap_x < overlap_y

    def resolve_sibling_overlaps(self, parent_id: Optional[str]) -> ResolveResult:
        """
        Push overlapping siblings apart.

        Each overlapping pair moves apart along the axis with the smaller
        overlap, the displacement split evenly between the two. Runs until
        a full pass finds no overlap or the iteration cap is hit.
        """
        siblings = self._placed(self.tree.children_of(parent_id))
        if len(siblings) < 2:
            return ResolveResult(parent_id, ResolveStatus.NO_OP)

        gap = self.config.minimum_gap
        max_iterations = self.config.max_iterations
        moved = []
        has_overlap = True
        iterations = 0

        while has_overlap and iterations < max_iterations:
            has_overlap = False
            iterations += 1
            for i in range(len(siblings)):
                for j in range(i + 1, len(siblings)):
                    node_a, node_b = siblings[i], siblings[j]
                    rect_a = self.get_node_rect(node_a)
                    rect_b = self.get_node_rect(node_b)
                    padded_a = rect_a.padded(gap)
                    padded_b = rect_b.padded(gap)
                    if not rectangles_overlap(padded_a, padded_b):
                        continue

                    has_overlap = True
                    overlap_x, overlap_y = get_overlap(padded_a, padded_b)
                    if self._moves_horizontally(overlap_x, overlap_y):
                        move = (overlap_x + gap) / 2
                        if rect_a.x < rect_b.x:
                            self.update_x(node_a, rect_a.x - move)
                            self.update_x(node_b, rect_b.x + move)
                        else:
                            self.update_x(node_a, rect_a.x + move)
                            self.update_x(node_b, rect_b.x - move)
                    else:
                        move = (overlap_y + gap) / 2
                        if rect_a.y < rect_b.y:
                            self.update_y(node_a, rect_a.y - move, parent_id)
                            self.update_y(node_b, rect_b.y + move, parent_id)
                        else:
                            self.update_y(node_a, rect_a.y + move, parent_id)
                            self.update_y(node_b, rect_b.y - move, parent_id)
                    for node in (node_a, node_b):
                        if node.id not in moved:
                            moved.append(node.id)

        if has_overlap:
            rects = [self.get_node_rect(n) for n in siblings]
            remaining = len(find_overlapping_pairs(rects, gap))
            logger.warning(
                f"resolve_sibling_overlaps: max iterations ({max_iterations}) reached "
                f"for parent {parent_id}, {remaining} overlapping pairs left"
            )
            return ResolveResult(parent_id, ResolveStatus.MAX_ITERATIONS,
                                 iterations, moved, remaining)
        status = ResolveStatus.CONVERGED if moved else ResolveStatus.NO_OP
        return ResolveResult(parent_id, status, iterations, moved)

    # ------------------------------------------------------------------
    # Container sizing
    # ------------------------------------------------------------------

    def adjust_parent_size(self, parent_id: str) -> bool:
        """
        Fit a container around its placed children.

        Children left of / above the minimum offset make the container grow
        in that direction (the container moves, children shift back so
        their absolute position is unchanged). Slack on the left / top is
        removed the same way. Right and bottom edges fit the content plus
        padding exactly. Returns True if the container's size or position
        changed.
        """
        parent = self.tree.get(parent_id)
        if parent is None:
            return False
        children = self._placed(self.tree.children_of(parent_id))
        if not children:
            return False

        cfg = self.config
        before = (parent.concept_map_position and
                  (parent.concept_map_position.x, parent.concept_map_position.y),
                  parent.concept_map_size and
                  (parent.concept_map_size.width, parent.concept_map_size.height))

        rects = [self.get_node_rect(c) for c in children]
        min_x = min(r.x for r in rects)
        min_y = min(r.y for r in rects)
        min_allowed_x = cfg.container_padding
        min_allowed_y = cfg.container_padding + cfg.header_height

        # Expansion towards the left / top
        expand_left = min_allowed_x - min_x if min_x < min_allowed_x else 0.0
        expand_top = min_allowed_y - min_y if min_y < min_allowed_y else 0.0
        if expand_left > 0 or expand_top > 0:
            self._shift_container(parent, children, -expand_left, -expand_top)

        # Contraction of left / top slack
        min_x = min(c.concept_map_position.x for c in children)
        min_y = min(c.concept_map_position.y for c in children)
        contract_x = max(min_x - min_allowed_x, 0.0)
        contract_y = max(min_y - min_allowed_y, 0.0)
        if contract_x > 0 or contract_y > 0:
            self._shift_container(parent, children, contract_x, contract_y)

        # Right / bottom edges fit the content exactly
        rects = [self.get_node_rect(c) for c in children]
        max_right = max(0.0, max(r.right for r in rects))
        max_bottom = max(0.0, max(r.bottom for r in rects))
        parent.concept_map_size = ViewSize(
            max(cfg.min_node_width, max_right + cfg.container_padding),
            max(cfg.min_node_height, max_bottom + cfg.container_padding),
        )
        logger.debug(
            f"adjust_parent_size: {parent_id} -> "
            f"{parent.concept_map_size.width}x{parent.concept_map_size.height}"
        )

        after = (parent.concept_map_position and
                 (parent.concept_map_position.x, parent.concept_map_position.y),
                 (parent.concept_map_size.width, parent.concept_map_size.height))
        return before != after

    @staticmethod
    def _shift_container(parent: Node, children: List[Node], dx: float, dy: float) -> None:
        """Move the container by (dx, dy) and its children by the opposite amount."""
        if parent.concept_map_position is not None:
            parent.concept_map_position = ViewPosition(
                parent.concept_map_position.x + dx, parent.concept_map_position.y + dy
            )
        for child in children:
            child.concept_map_position = ViewPosition(
                child.concept_map_position.x - dx, child.concept_map_position.y - dy
            )

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def resolve_overlaps_for_node(self, node_id: str) -> PropagationResult:
        """Entry point after a node moved or resized."""
        result = PropagationResult(node_id)
        node = self.tree.get(node_id)
        if node is None:
            logger.warning(f"resolve_overlaps_for_node: unknown node {node_id}")
            return result

        result.levels.append(self.resolve_sibling_overlaps(node.parent_id))
        current_id = node.parent_id
        while current_id is not None:
            if self.adjust_parent_size(current_id):
                result.resized.append(current_id)
            parent = self.tree.get(current_id)
            if parent is None:
                break
            result.levels.append(self.resolve_sibling_overlaps(parent.parent_id))
            current_id = parent.parent_id
        return result

    def resolve_all(self) -> List[ResolveResult]:
        """Resolve every level bottom-up, resizing each container after its children."""
        results = []
        for node in reversed(list(self.tree.walk_preorder())):
            if node.children:
                results.append(self.resolve_sibling_overlaps(node.id))
                self.adjust_parent_size(node.id)
        results.append(self.resolve_sibling_overlaps(None))
        return results
