# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Zoom-driven level of detail.

"""
Level-of-detail visibility for large maps.

Each zoom threshold passed reveals one more tree level:

    thresholds [10, 30, 50, 70, 90] (percent)
      zoom <  10%        -> roots only (depth 0)
      10% <= zoom < 30%  -> depth 0-1
      30% <= zoom < 50%  -> depth 0-2
      zoom >= 90%        -> every node

There is one threshold per tree level, with at least ``min_levels`` of
them, so deep trees keep revealing levels as the user zooms in.
"""

import logging
from typing import List, Optional, Sequence, Set

import numpy as np

from ..config import LODConfig, MindmapConfig
from ..model import Node, Rect, TreeModel, Viewport
from ..optimize.subtree import SubtreeOverlapResolver

logger = logging.getLogger(__name__)


class LODVisibilityFilter:
    """
    Decides which nodes are visible for a viewport.

    Args:
        tree: The model to filter.
        config: Thresholds and the on/off switch.
        mindmap: Subtree padding used for hidden-children bounds.
    """

    def __init__(self, tree: TreeModel, config: Optional[LODConfig] = None,
                 mindmap: Optional[MindmapConfig] = None):
        self.tree = tree
        self.config = config or LODConfig()
        self._bounds = SubtreeOverlapResolver(tree, mindmap)

    def thresholds(self) -> List[float]:
        """Zoom percentages at which one more level becomes visible."""
        cfg = self.config
        levels = max(self.tree.max_depth(), cfg.min_levels)
        return [cfg.start_percent + i * cfg.increment_percent for i in range(levels)]

    def max_depth_to_show(self, viewport: Viewport) -> Optional[int]:
        """
        Deepest visible level for the viewport.

        Returns None when every node is visible (LOD disabled, or zoom at or
        above the last threshold).
        """
        if not self.config.enabled:
            return None
        thresholds = self.thresholds()
        zoom = viewport.zoom_percent
        if thresholds and zoom >= thresholds[-1]:
            return None
        depth = 0
        for i, threshold in enumerate(thresholds):
            if zoom >= threshold:
                depth = i + 1
            else:
                break
        return depth

    def current_lod_level(self, viewport: Viewport) -> int:
        """1-based LOD level; past the last threshold (or disabled) it is one beyond."""
        if not self.config.enabled:
            return self.tree.max_depth() + 1
        thresholds = self.thresholds()
        zoom = viewport.zoom_percent
        for i, threshold in enumerate(thresholds):
            if zoom < threshold:
                return i + 1
        return len(thresholds) + 1

    def visible_nodes(self, viewport: Viewport) -> List[Node]:
        max_depth = self.max_depth_to_show(viewport)
        if max_depth is None:
            return [node for node, _ in self.tree.walk_breadth_first()]
        visible = [node for node, depth in self.tree.walk_breadth_first() if depth <= max_depth]
        logger.debug(
            f"LOD: zoom {viewport.zoom_percent:.0f}% shows depth <= {max_depth}, "
            f"{len(visible)}/{len(self.tree)} nodes"
        )
        return visible

    def visible_ids(self, viewport: Viewport) -> Set[str]:
        return {n.id for n in self.visible_nodes(viewport)}

    def hidden_children(self, node_id: str, viewport: Viewport) -> List[Node]:
        """Children of a visible node that the current zoom hides."""
        max_depth = self.max_depth_to_show(viewport)
        if max_depth is None or node_id not in self.tree:
            return []
        if self.tree.depth(node_id) + 1 <= max_depth:
            return []
        return self.tree.children_of(node_id)

    def hidden_children_bounds(self, children: Sequence[Node]) -> Rect:
        """Union of the subtree bounds of hidden children (zero rect when empty)."""
        if not children:
            return Rect(0.0, 0.0, 0.0, 0.0)
        rects = [self._bounds.subtree_bounds(child.id) for child in children]
        edges = np.array([[r.x, r.y, r.right, r.bottom] for r in rects], dtype=float)
        min_x, min_y = edges[:, 0].min(), edges[:, 1].min()
        max_x, max_y = edges[:, 2].max(), edges[:, 3].max()
        return Rect(float(min_x), float(min_y), float(max_x - min_x), float(max_y - min_y))
