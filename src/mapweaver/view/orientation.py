# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Orientation modes for child ordering around a parent.

"""
Orientation-based child ordering and orientation transitions.

Children are ordered by their angle around the parent centre (the canvas
centre for roots), measured clockwise from 12 o'clock:

- clockwise:          12 -> 3 -> 6 -> 9 -> 12
- counter-clockwise:  12 -> 9 -> 6 -> 3 -> 12
- left-right:         left side top to bottom, then right side top to bottom
- right-left:         right side top to bottom, then left side top to bottom

Switching modes does not relayout the map. Each transition is a short
sequence of operations: mirroring the whole tree about the canvas centre
(swap-sides) and reversing the top-to-bottom order of the children on one
side of each parent (reverse-left / reverse-right).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..model import Node, TreeModel

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class OrientationMode(Enum):
    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counter-clockwise"
    LEFT_RIGHT = "left-right"
    RIGHT_LEFT = "right-left"


class TransitionOp(Enum):
    SWAP_SIDES = "swap-sides"
    REVERSE_LEFT = "reverse-left"
    REVERSE_RIGHT = "reverse-right"


@dataclass
class PositionUpdate:
    """New top-left position of a node after a transition."""
    node_id: str
    new_x: float
    new_y: float

    def to_dict(self) -> Dict:
        return {"type": "update", "nodeId": self.node_id, "newX": self.new_x, "newY": self.new_y}


_CW = OrientationMode.CLOCKWISE
_CCW = OrientationMode.COUNTER_CLOCKWISE
_LR = OrientationMode.LEFT_RIGHT
_RL = OrientationMode.RIGHT_LEFT
_SWAP = TransitionOp.SWAP_SIDES
_REV_L = TransitionOp.REVERSE_LEFT
_REV_R = TransitionOp.REVERSE_RIGHT

TRANSITIONS: Dict[Tuple[OrientationMode, OrientationMode], Tuple[TransitionOp, ...]] = {
    (_CW, _CCW): (_SWAP,),
    (_CW, _LR): (_SWAP, _REV_R),
    (_CW, _RL): (_REV_L,),
    (_CCW, _CW): (_SWAP,),
    (_CCW, _LR): (_REV_R,),
    (_CCW, _RL): (_SWAP, _REV_L),
    (_LR, _CW): (_SWAP, _REV_L),
    (_LR, _CCW): (_REV_R,),
    (_LR, _RL): (_SWAP,),
    (_RL, _CW): (_REV_L,),
    (_RL, _CCW): (_SWAP, _REV_R),
    (_RL, _LR): (_SWAP,),
}


# ============================================================================
# ORDERING
# ============================================================================

def clockwise_angle(x: float, y: float, width: float, height: float,
                    ref_x: float, ref_y: float) -> float:
    """Angle of the box centre around (ref_x, ref_y): 0 at 12 o'clock, increasing clockwise."""
    dx = x + width / 2 - ref_x
    dy = y + height / 2 - ref_y
    return (math.degrees(math.atan2(dy, dx)) + 90 + 360) % 360


def orientation_sort_key(node: Node, ref_x: float, ref_y: float,
                         mode: OrientationMode) -> float:
    """Lower keys come first in the given orientation."""
    angle = clockwise_angle(node.x, node.y, node.width, node.height, ref_x, ref_y)
    if mode is OrientationMode.COUNTER_CLOCKWISE:
        return (360 - angle) % 360
    if mode is OrientationMode.LEFT_RIGHT:
        # Left half first (top-left 0 .. bottom-left 180), then the right half
        return 360 - angle if angle >= 180 else 180 + angle
    if mode is OrientationMode.RIGHT_LEFT:
        return angle if angle < 180 else 540 - angle
    return angle


def reference_point(parent: Optional[Node], canvas_center: Point) -> Point:
    """Parent centre, or the canvas centre for roots."""
    if parent is None:
        return canvas_center
    return (parent.x + parent.width / 2, parent.y + parent.height / 2)


def sort_children_by_orientation(children: Sequence[Node], parent: Optional[Node],
                                 canvas_center: Point, mode: OrientationMode) -> List[Node]:
    ref_x, ref_y = reference_point(parent, canvas_center)
    return sorted(children, key=lambda n: orientation_sort_key(n, ref_x, ref_y, mode))


def child_order_index(child: Node, siblings: Sequence[Node], parent: Optional[Node],
                      canvas_center: Point, mode: OrientationMode) -> int:
    """0-based index of ``child`` among its siblings in orientation order, -1 if absent."""
    ordered = sort_children_by_orientation(siblings, parent, canvas_center, mode)
    for i, node in enumerate(ordered):
        if node.id == child.id:
            return i
    return -1


# ============================================================================
# TRANSITIONS
# ============================================================================

def transition_operations(from_mode: OrientationMode,
                          to_mode: OrientationMode) -> Tuple[TransitionOp, ...]:
    """Operations turning ``from_mode`` into ``to_mode`` (empty for the same mode)."""
    return TRANSITIONS.get((from_mode, to_mode), ())


def _is_left(x: float, y: float, width: float, height: float, ref: Point) -> bool:
    return clockwise_angle(x, y, width, height, ref[0], ref[1]) >= 180


def calculate_orientation_transition(children: Sequence[Node], parent: Optional[Node],
                                     canvas_center: Point,
                                     from_mode: OrientationMode, to_mode: OrientationMode,
                                     skip_mirror: bool = False) -> List[PositionUpdate]:
    """
    New positions for one sibling group.

    Sides are re-classified after each operation. With ``skip_mirror`` the
    swap-sides step is left out (the tree has already been mirrored as a
    whole). The model is not modified; only nodes that move are returned.
    """
    if not children or from_mode is to_mode:
        return []
    ops = transition_operations(from_mode, to_mode)
    if skip_mirror:
        ops = tuple(op for op in ops if op is not TransitionOp.SWAP_SIDES)
    if not ops:
        return []

    ref = reference_point(parent, canvas_center)
    positions: Dict[str, Point] = {n.id: (n.x, n.y) for n in children}

    def side(left: bool) -> List[Node]:
        group = [n for n in children
                 if _is_left(positions[n.id][0], positions[n.id][1], n.width, n.height, ref) == left]
        return sorted(group, key=lambda n: positions[n.id][1])

    for op in ops:
        if op is TransitionOp.SWAP_SIDES:
            for n in children:
                x, y = positions[n.id]
                positions[n.id] = (2 * ref[0] - (x + n.width), y)
        else:
            group = side(op is TransitionOp.REVERSE_LEFT)
            count = len(group)
            for i in range(count // 2):
                a, b = group[i], group[count - 1 - i]
                positions[a.id], positions[b.id] = positions[b.id], positions[a.id]

    updates = []
    for n in children:
        new_x, new_y = positions[n.id]
        if (new_x, new_y) != (n.x, n.y):
            updates.append(PositionUpdate(n.id, new_x, new_y))
    return updates


def swap_sides(tree: TreeModel, canvas_center_x: float = 0.0) -> None:
    """Mirror every node about the vertical axis x == canvas_center_x."""
    for node in tree:
        node.set_position(2 * canvas_center_x - (node.x + node.width), node.y)


class OrientationTransformer:
    """
    Applies orientation transitions to a whole tree.

    The mirror step runs once over the whole tree. The reversals then run
    breadth-first over parents; a child that trades places with a sibling
    carries its subtree along so the branch stays attached.
    """

    def __init__(self, canvas_center: Point = (0.0, 0.0)):
        self.canvas_center = canvas_center

    def transition(self, tree: TreeModel, from_mode: OrientationMode,
                   to_mode: OrientationMode) -> List[PositionUpdate]:
        """
        Rewrite positions for a mode change.

        Returns one update per node whose position changed; the new
        positions are also written to the model (x/y and the mind-map cache).
        """
        ops = transition_operations(from_mode, to_mode)
        if not ops:
            return []
        logger.info(
            f"Orientation: {from_mode.value} -> {to_mode.value} "
            f"({', '.join(op.value for op in ops)})"
        )
        before = {n.id: (n.x, n.y) for n in tree}

        if TransitionOp.SWAP_SIDES in ops:
            swap_sides(tree, self.canvas_center[0])

        if any(op is not TransitionOp.SWAP_SIDES for op in ops):
            parents: List[Optional[Node]] = [None]
            parents.extend(node for node, _ in tree.walk_breadth_first() if node.children)
            for parent in parents:
                children = tree.children_of(parent.id if parent else None)
                group_updates = calculate_orientation_transition(
                    children, parent, self.canvas_center, from_mode, to_mode, skip_mirror=True
                )
                for update in group_updates:
                    self._move_branch(tree, update)

        updates = []
        for node in tree:
            if (node.x, node.y) != before[node.id]:
                updates.append(PositionUpdate(node.id, node.x, node.y))
        logger.debug(f"Orientation: {len(updates)} nodes moved")
        return updates

    @staticmethod
    def _move_branch(tree: TreeModel, update: PositionUpdate) -> None:
        node = tree[update.node_id]
        dx = update.new_x - node.x
        dy = update.new_y - node.y
        for n in [node] + tree.descendants(node.id):
            n.set_position(n.x + dx, n.y + dy)
