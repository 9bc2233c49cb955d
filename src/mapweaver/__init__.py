# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Layout and collision engine for mind maps and concept maps.

"""
Layout, overlap resolution and view transforms for mind maps and concept maps.

The model module holds the tree; layout places nodes, optimize removes
overlaps, view derives level of detail and orientation changes. The io
module provides JSON Lines I/O so the engine can run behind a pipe.
"""

from . import layout
from . import optimize
from . import view
from . import io
from .config import LayoutConfig, load_config
from .context import EditorContext
from .errors import LayoutInvariantError, MapweaverError, TopologyError
from .model import Node, Rect, TreeModel, ViewKind, Viewport

__version__ = '0.1.0'

__all__ = [
    'layout',
    'optimize',
    'view',
    'io',
    'LayoutConfig',
    'load_config',
    'EditorContext',
    'LayoutInvariantError',
    'MapweaverError',
    'TopologyError',
    'Node',
    'Rect',
    'TreeModel',
    'ViewKind',
    'Viewport',
]
