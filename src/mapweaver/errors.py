# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Exception types for the layout engine.

"""
Exceptions raised by mapweaver.

Expected data incompleteness (missing positions, unresolvable parents while
laying out) is never raised; it is logged and skipped. These exceptions are
reserved for editing requests that would corrupt the tree and for internal
invariant violations during a layout run.
"""


class MapweaverError(Exception):
    """Base class for mapweaver errors."""


class TopologyError(MapweaverError, ValueError):
    """An editing operation would break the rooted-forest invariants."""


class LayoutInvariantError(MapweaverError, RuntimeError):
    """The tree handed to a layout pass is internally inconsistent."""
