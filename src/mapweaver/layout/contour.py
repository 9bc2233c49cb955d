# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Linear-time contour tree layout for mind maps.

"""
Contour-based tree layout for nodes of varying size.

Implements the linear-time non-layered tidy tree algorithm (Walker's
algorithm as improved by Buchheim et al. and extended to variable node
heights by van der Ploeg). Subtrees are packed left to right; each new
subtree is separated from its left siblings by walking the right contour
of the already placed siblings against its own left contour. Threads
let a contour continue into a neighbouring subtree once a subtree runs
out of children, which keeps the contour walk linear.

Node state lives in an arena of parallel lists indexed by integer; the
threads and extreme nodes are optional indices into that arena. The
arena is built from a TreeShape and discarded after the run.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import TreeLayoutConfig
from ..errors import LayoutInvariantError
from ..model import TreeModel, ViewKind

logger = logging.getLogger(__name__)

Position = Tuple[float, float]

DIRECTIONS = ('top-down', 'bottom-up', 'left-right', 'right-left')


# ============================================================================
# INPUT SHAPE
# ============================================================================

@dataclass(frozen=True)
class TreeShape:
    """
    Immutable tree shape handed to the layout.

    ``children[i]`` lists the arena indexes of node i's children in
    sibling order; index ``root`` is the root. Sizes are the node's
    screen width and height.
    """
    ids: Tuple[str, ...]
    children: Tuple[Tuple[int, ...], ...]
    widths: Tuple[float, ...]
    heights: Tuple[float, ...]
    root: int = 0

    def __len__(self) -> int:
        return len(self.ids)

    @classmethod
    def from_model(cls, tree: TreeModel, root_id: str,
                   skip_collapsed: bool = True) -> 'TreeShape':
        """Capture the subtree under ``root_id``. Collapsed nodes act as leaves."""
        ids: List[str] = []
        index: Dict[str, int] = {}
        sizes: List[Tuple[float, float]] = []
        for node in tree.walk_preorder(root_id):
            index[node.id] = len(ids)
            ids.append(node.id)
            sizes.append((node.width, node.height))

        children: List[Tuple[int, ...]] = []
        claimed = {0}
        for nid in ids:
            node = tree[nid]
            if skip_collapsed and node.collapsed:
                children.append(())
                continue
            kids = tuple(index[c] for c in node.children if c in index)
            for c in kids:
                if c in claimed:
                    raise LayoutInvariantError(
                        f"Node {ids[c]} reached twice under {root_id}: children form a cycle"
                    )
                claimed.add(c)
            children.append(kids)

        if skip_collapsed:
            # Drop everything hidden below collapsed nodes
            return cls._reachable(ids, children, sizes)
        return cls(
            ids=tuple(ids),
            children=tuple(children),
            widths=tuple(w for w, _ in sizes),
            heights=tuple(h for _, h in sizes),
        )

    @classmethod
    def _reachable(cls, ids, children, sizes) -> 'TreeShape':
        keep: List[int] = []
        stack = [0]
        while stack:
            i = stack.pop()
            keep.append(i)
            stack.extend(reversed(children[i]))
        remap = {old: new for new, old in enumerate(keep)}
        return cls(
            ids=tuple(ids[i] for i in keep),
            children=tuple(tuple(remap[c] for c in children[i]) for i in keep),
            widths=tuple(sizes[i][0] for i in keep),
            heights=tuple(sizes[i][1] for i in keep),
        )

    def check(self) -> None:
        """Fail fast when the shape is not a tree rooted at ``root``."""
        n = len(self.ids)
        if not (len(self.children) == len(self.widths) == len(self.heights) == n):
            raise LayoutInvariantError("TreeShape field lengths differ")
        if n == 0:
            return
        if not 0 <= self.root < n:
            raise LayoutInvariantError(f"Root index {self.root} out of range")
        seen = [False] * n
        seen[self.root] = True
        for i, kids in enumerate(self.children):
            for c in kids:
                if not 0 <= c < n:
                    raise LayoutInvariantError(f"Child index {c} of node {self.ids[i]} out of range")
                if seen[c]:
                    raise LayoutInvariantError(f"Node {self.ids[c]} has more than one parent")
                seen[c] = True
        if not all(seen):
            raise LayoutInvariantError("TreeShape contains nodes unreachable from the root")


# ============================================================================
# ARENA
# ============================================================================

class _IYL:
    """Linked list of left-sibling indexes and the lowest y their subtree reaches."""
    __slots__ = ('low_y', 'index', 'next')

    def __init__(self, low_y: float, index: int, next_: Optional['_IYL']):
        self.low_y = low_y
        self.index = index
        self.next = next_


def _update_iyl(min_y: float, i: int, ih: Optional[_IYL]) -> _IYL:
    # Siblings hidden behind the new subtree can never interact again
    while ih is not None and min_y >= ih.low_y:
        ih = ih.next
    return _IYL(min_y, i, ih)


class _Arena:
    """Per-run layout state for every node of a TreeShape."""

    def __init__(self, c: Sequence[Tuple[int, ...]], w: List[float],
                 h: List[float], y: List[float]):
        n = len(c)
        self.c = c
        self.w = w
        self.h = h
        self.y = y
        self.x = [0.0] * n
        self.prelim = [0.0] * n
        self.mod = [0.0] * n
        self.shift = [0.0] * n
        self.change = [0.0] * n
        self.tl: List[Optional[int]] = [None] * n
        self.tr: List[Optional[int]] = [None] * n
        self.el: List[int] = list(range(n))
        self.er: List[int] = list(range(n))
        self.msel = [0.0] * n
        self.mser = [0.0] * n

    def bottom(self, v: int) -> float:
        return self.y[v] + self.h[v]

    def set_extremes(self, t: int) -> None:
        kids = self.c[t]
        if not kids:
            self.el[t] = t
            self.er[t] = t
            self.msel[t] = self.mser[t] = 0.0
        else:
            first, last = kids[0], kids[-1]
            self.el[t] = self.el[first]
            self.msel[t] = self.msel[first]
            self.er[t] = self.er[last]
            self.mser[t] = self.mser[last]

    def next_left_contour(self, v: int) -> Optional[int]:
        kids = self.c[v]
        return kids[0] if kids else self.tl[v]

    def next_right_contour(self, v: int) -> Optional[int]:
        kids = self.c[v]
        return kids[-1] if kids else self.tr[v]

    def distribute_extra(self, t: int, i: int, si: int, distance: float) -> None:
        # Spread the shift over the intermediate children
        if si != i - 1:
            nr = i - si
            kids = self.c[t]
            self.shift[kids[si + 1]] += distance / nr
            self.shift[kids[i]] -= distance / nr
            self.change[kids[i]] -= distance - distance / nr

    def move_subtree(self, t: int, i: int, si: int, distance: float) -> None:
        v = self.c[t][i]
        self.mod[v] += distance
        self.msel[v] += distance
        self.mser[v] += distance
        self.distribute_extra(t, i, si, distance)

    def set_left_thread(self, t: int, i: int, cl: int, modsumcl: float) -> None:
        kids = self.c[t]
        first = kids[0]
        li = self.el[first]
        self.tl[li] = cl
        # Keep the modifier sum along the thread equal to cl's absolute sum
        diff = (modsumcl - self.mod[cl]) - self.msel[first]
        self.mod[li] += diff
        self.prelim[li] -= diff
        self.el[first] = self.el[kids[i]]
        self.msel[first] = self.msel[kids[i]]

    def set_right_thread(self, t: int, i: int, sr: int, modsumsr: float) -> None:
        kids = self.c[t]
        cur = kids[i]
        ri = self.er[cur]
        self.tr[ri] = sr
        diff = (modsumsr - self.mod[sr]) - self.mser[cur]
        self.mod[ri] += diff
        self.prelim[ri] -= diff
        self.er[cur] = self.er[kids[i - 1]]
        self.mser[cur] = self.mser[kids[i - 1]]

    def separate(self, t: int, i: int, ih: _IYL) -> None:
        kids = self.c[t]
        # Right contour of the left siblings and its modifier sum
        sr: Optional[int] = kids[i - 1]
        mssr = self.mod[sr]
        # Left contour of the current subtree and its modifier sum
        cl: Optional[int] = kids[i]
        mscl = self.mod[cl]
        while sr is not None and cl is not None:
            if self.bottom(sr) > ih.low_y and ih.next is not None:
                ih = ih.next
            distance = mssr + self.prelim[sr] + self.w[sr] - (mscl + self.prelim[cl])
            if distance > 0:
                mscl += distance
                self.move_subtree(t, i, ih.index, distance)

            sy = self.bottom(sr)
            cy = self.bottom(cl)
            if sy <= cy:
                sr = self.next_right_contour(sr)
                if sr is not None:
                    mssr += self.mod[sr]
            if sy >= cy:
                cl = self.next_left_contour(cl)
                if cl is not None:
                    mscl += self.mod[cl]

        if sr is None and cl is not None:
            # Current subtree is taller than the left siblings
            self.set_left_thread(t, i, cl, mscl)
        elif sr is not None and cl is None:
            self.set_right_thread(t, i, sr, mssr)

    def position_root(self, t: int) -> None:
        kids = self.c[t]
        first, last = kids[0], kids[-1]
        self.prelim[t] = (
            self.prelim[first] + self.mod[first]
            + self.mod[last] + self.prelim[last] + self.w[last]
        ) / 2 - self.w[t] / 2

    def first_walk(self, root: int) -> None:
        # Reverse pre-order visits every subtree before its parent
        order: List[int] = []
        stack = [root]
        while stack:
            v = stack.pop()
            order.append(v)
            stack.extend(self.c[v])

        for t in reversed(order):
            kids = self.c[t]
            if not kids:
                self.set_extremes(t)
                continue
            ih = _update_iyl(self.bottom(self.el[kids[0]]), 0, None)
            for i in range(1, len(kids)):
                min_y = self.bottom(self.er[kids[i]])
                self.separate(t, i, ih)
                ih = _update_iyl(min_y, i, ih)
            self.position_root(t)
            self.set_extremes(t)

    def add_child_spacing(self, t: int) -> None:
        d = 0.0
        modsumdelta = 0.0
        for v in self.c[t]:
            d += self.shift[v]
            modsumdelta += d + self.change[v]
            self.mod[v] += modsumdelta

    def second_walk(self, root: int) -> None:
        stack: List[Tuple[int, float]] = [(root, 0.0)]
        while stack:
            t, modsum = stack.pop()
            modsum += self.mod[t]
            self.x[t] = self.prelim[t] + modsum
            self.add_child_spacing(t)
            for v in reversed(self.c[t]):
                stack.append((v, modsum))


# ============================================================================
# PUBLIC API
# ============================================================================

def _depth_coordinates(shape: TreeShape, breadth_gap_heights: List[float],
                       level_gap: float, level_aligned: bool) -> List[float]:
    """Top coordinate along the depth axis for every node."""
    n = len(shape)
    y = [0.0] * n
    depth = [0] * n
    order = [shape.root]
    for v in order:
        for c in shape.children[v]:
            depth[c] = depth[v] + 1
            order.append(c)

    if level_aligned:
        level_height: Dict[int, float] = {}
        for v in range(n):
            level_height[depth[v]] = max(level_height.get(depth[v], 0.0), breadth_gap_heights[v])
        level_top = [0.0] * (max(depth) + 1)
        for d in range(1, len(level_top)):
            level_top[d] = level_top[d - 1] + level_height[d - 1] + level_gap
        return [level_top[depth[v]] for v in range(n)]

    for v in order:
        for c in shape.children[v]:
            y[c] = y[v] + breadth_gap_heights[v] + level_gap
    return y


def _layout_breadth_depth(shape: TreeShape, sibling_gap: float, level_gap: float,
                          level_aligned: bool, horizontal: bool
                          ) -> Dict[str, Tuple[float, float, float, float]]:
    """
    Run both walks. Returns {id: (breadth, depth, breadth_size, depth_size)}
    with the root centred on breadth 0 and its top at depth 0.
    """
    shape.check()
    if len(shape) == 0:
        return {}

    if horizontal:
        breadth_size = list(shape.heights)
        depth_size = list(shape.widths)
    else:
        breadth_size = list(shape.widths)
        depth_size = list(shape.heights)

    y = _depth_coordinates(shape, depth_size, level_gap, level_aligned)
    # Pad each node by the sibling gap; the node sits centred in its slot
    arena = _Arena(shape.children, [b + sibling_gap for b in breadth_size], depth_size, y)
    arena.first_walk(shape.root)
    arena.second_walk(shape.root)

    root = shape.root
    offset = arena.x[root] + arena.w[root] / 2
    return {
        shape.ids[v]: (
            arena.x[v] + sibling_gap / 2 - offset,
            y[v],
            breadth_size[v],
            depth_size[v],
        )
        for v in range(len(shape))
    }


def _orient(bd: Dict[str, Tuple[float, float, float, float]], direction: str) -> Dict[str, Position]:
    """Map (breadth, depth) boxes to top-left (x, y) for the requested direction."""
    positions: Dict[str, Position] = {}
    for nid, (b, d, bsize, dsize) in bd.items():
        if direction == 'top-down':
            positions[nid] = (b, d)
        elif direction == 'bottom-up':
            positions[nid] = (b, -(d + dsize))
        elif direction == 'left-right':
            positions[nid] = (d, b)
        else:  # right-left
            positions[nid] = (-(d + dsize), b)
    return positions


def contour_layout(shape: TreeShape,
                   options: Optional[TreeLayoutConfig] = None) -> Dict[str, Position]:
    """
    Compute a tidy layout for one rooted tree.

    Args:
        shape: Tree shape (ids, ordered children, sizes).
        options: Spacing and direction (default: TreeLayoutConfig()).

    Returns:
        Dictionary mapping node IDs to top-left (x, y) positions. The root
        is centred on x == 0 (top-down) with its top edge at y == 0.
    """
    options = options or TreeLayoutConfig()
    if options.direction not in DIRECTIONS:
        raise ValueError(f"Unknown layout direction: {options.direction}")
    horizontal = options.direction in ('left-right', 'right-left')
    bd = _layout_breadth_depth(
        shape, options.sibling_gap, options.level_gap, options.level_aligned, horizontal
    )
    return _orient(bd, options.direction)


class ContourTreeLayout:
    """Lays out trees of a TreeModel and commits the result to the mind-map view."""

    def __init__(self, config: Optional[TreeLayoutConfig] = None):
        self.config = config or TreeLayoutConfig()

    def layout_tree(self, tree: TreeModel, root_id: str) -> Dict[str, Position]:
        """Positions for the subtree under ``root_id`` (model is not modified)."""
        if root_id not in tree:
            logger.warning(f"layout_tree: unknown root {root_id}, nothing to lay out")
            return {}
        return contour_layout(TreeShape.from_model(tree, root_id), self.config)

    def layout_forest(self, tree: TreeModel) -> Dict[str, Position]:
        """Lay out every root and place the trees side by side along the breadth axis."""
        cfg = self.config
        if cfg.direction not in DIRECTIONS:
            raise ValueError(f"Unknown layout direction: {cfg.direction}")
        horizontal = cfg.direction in ('left-right', 'right-left')

        combined: Dict[str, Tuple[float, float, float, float]] = {}
        cursor = 0.0
        for root in tree.roots():
            bd = _layout_breadth_depth(
                TreeShape.from_model(tree, root.id),
                cfg.sibling_gap, cfg.level_gap, cfg.level_aligned, horizontal,
            )
            low = min(b for b, _, _, _ in bd.values())
            high = max(b + size for b, _, size, _ in bd.values())
            shift = cursor - low
            for nid, (b, d, bsize, dsize) in bd.items():
                combined[nid] = (b + shift, d, bsize, dsize)
            cursor += (high - low) + cfg.root_gap
            logger.debug(f"Laid out tree {root.id}: {len(bd)} nodes, extent {high - low:.1f}")
        return _orient(combined, cfg.direction)

    def apply_to_model(self, tree: TreeModel, positions: Dict[str, Position]) -> int:
        """Write positions into node x/y and the mind-map cache. Returns count written."""
        written = 0
        for nid, (x, y) in positions.items():
            node = tree.get(nid)
            if node is None:
                logger.warning(f"apply_to_model: node {nid} no longer in the model, skipping")
                continue
            node.set_position(x, y, ViewKind.MINDMAP)
            written += 1
        return written

    def relayout(self, tree: TreeModel) -> Dict[str, Position]:
        """Full layout of the forest, committed to the model."""
        positions = self.layout_forest(tree)
        self.apply_to_model(tree, positions)
        return positions
