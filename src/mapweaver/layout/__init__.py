# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Mind map layout algorithms.

"""
Layout algorithms for mind map and concept map views.

Provides:
- Contour tree layout (linear-time tidy tree for variable node sizes)
- Incremental mind-map placement (left/right branches)
- Concept-map placement (nested containers)
"""

from .contour import ContourTreeLayout, TreeShape, contour_layout
from .placement import ConceptMapPlacement, MindmapPlacement, initialize_view

__all__ = [
    'ContourTreeLayout',
    'TreeShape',
    'contour_layout',
    'MindmapPlacement',
    'ConceptMapPlacement',
    'initialize_view',
]
