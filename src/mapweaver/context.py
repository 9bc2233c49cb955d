# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Editor session state.

"""
Per-document session state handed to layout passes.

The viewport, orientation mode and configuration belong to one open
document. Components are built from the context on demand instead of
reading module-level settings.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import LayoutConfig
from .layout.contour import ContourTreeLayout
from .layout.placement import ConceptMapPlacement, MindmapPlacement
from .model import Node, TreeModel, Viewport
from .optimize.collision import AABBCollisionResolver, PropagationResult
from .optimize.subtree import SubtreeOverlapResolver
from .view.lod import LODVisibilityFilter
from .view.orientation import OrientationMode, OrientationTransformer, PositionUpdate

logger = logging.getLogger(__name__)


@dataclass
class EditorContext:
    """Session state for one open map."""
    tree: TreeModel
    config: LayoutConfig = field(default_factory=LayoutConfig)
    viewport: Viewport = field(default_factory=Viewport)
    orientation: OrientationMode = OrientationMode.CLOCKWISE
    canvas_center: Tuple[float, float] = (0.0, 0.0)

    def tree_layout(self) -> ContourTreeLayout:
        return ContourTreeLayout(self.config.layout)

    def mindmap_placement(self) -> MindmapPlacement:
        return MindmapPlacement(self.tree, self.config.mindmap)

    def concept_map_placement(self) -> ConceptMapPlacement:
        return ConceptMapPlacement(self.tree, self.config.collision, self.config.concept_map)

    def collision_resolver(self) -> AABBCollisionResolver:
        placement = self.concept_map_placement()
        return AABBCollisionResolver(self.tree, self.config.collision, placement.container_size)

    def subtree_resolver(self) -> SubtreeOverlapResolver:
        return SubtreeOverlapResolver(self.tree, self.config.mindmap)

    def lod_filter(self) -> LODVisibilityFilter:
        return LODVisibilityFilter(self.tree, self.config.lod, self.config.mindmap)

    def visible_nodes(self) -> List[Node]:
        return self.lod_filter().visible_nodes(self.viewport)

    def node_moved(self, node_id: str) -> PropagationResult:
        """Concept-map node dragged or resized: resolve its level and every ancestor's."""
        return self.collision_resolver().resolve_overlaps_for_node(node_id)

    def set_orientation(self, mode: OrientationMode) -> List[PositionUpdate]:
        """Switch orientation mode, rewriting positions. No-op for the current mode."""
        if mode is self.orientation:
            return []
        updates = OrientationTransformer(self.canvas_center).transition(
            self.tree, self.orientation, mode
        )
        self.orientation = mode
        return updates

    def set_zoom(self, zoom: float, x: Optional[float] = None,
                 y: Optional[float] = None) -> None:
        self.viewport.zoom = zoom
        if x is not None:
            self.viewport.x = x
        if y is not None:
            self.viewport.y = y
