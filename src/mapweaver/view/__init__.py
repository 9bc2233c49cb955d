# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# View-level transforms: level of detail and orientation.

"""
View-level transforms on top of a laid-out tree.

Provides:
- LODVisibilityFilter: zoom-driven visible subset
- OrientationTransformer: orientation mode transitions
"""

from .lod import LODVisibilityFilter
from .orientation import (
    OrientationMode,
    OrientationTransformer,
    PositionUpdate,
    TransitionOp,
    calculate_orientation_transition,
    child_order_index,
    clockwise_angle,
    orientation_sort_key,
    sort_children_by_orientation,
    swap_sides,
    transition_operations,
)

__all__ = [
    'LODVisibilityFilter',
    'OrientationMode',
    'OrientationTransformer',
    'PositionUpdate',
    'TransitionOp',
    'calculate_orientation_transition',
    'child_order_index',
    'clockwise_angle',
    'orientation_sort_key',
    'sort_children_by_orientation',
    'swap_sides',
    'transition_operations',
]
