# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Overlap resolution for mind map and concept map views.

"""
Post-placement overlap resolution.

Provides:
- AABB sibling resolution with container auto-sizing (concept map)
- Subtree overlap resolution (mind map)
"""

from .collision import (
    AABBCollisionResolver,
    PropagationResult,
    ResolveResult,
    ResolveStatus,
    find_overlapping_pairs,
    get_overlap,
    overlap_matrix,
    rectangles_overlap,
)
from .subtree import SubtreeOverlapResolver

__all__ = [
    'AABBCollisionResolver',
    'PropagationResult',
    'ResolveResult',
    'ResolveStatus',
    'find_overlapping_pairs',
    'get_overlap',
    'overlap_matrix',
    'rectangles_overlap',
    'SubtreeOverlapResolver',
]
