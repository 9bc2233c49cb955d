# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Command-line driver for the layout engine.

"""
mapweaver command line.

Reads a JSON Lines snapshot (file argument or stdin) and writes JSON Lines
results to stdout:

    mapweaver layout map.jsonl --direction left-right   # position lines
    mapweaver place map.jsonl --view concept-map        # snapshot lines
    mapweaver resolve map.jsonl --node a --node b       # snapshot lines
    mapweaver lod map.jsonl --zoom 0.35                 # visible node ids
    mapweaver orient map.jsonl --from clockwise --to left-right   # update lines
"""

import argparse
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional, TextIO

from .config import LayoutConfig, load_config
from .context import EditorContext
from .io import read_snapshot, write_jsonl, write_positions, write_snapshot, write_updates
from .layout.contour import DIRECTIONS
from .layout.placement import initialize_view
from .model import ViewKind, Viewport
from .view.orientation import OrientationMode

logger = logging.getLogger(__name__)

_MODES = [m.value for m in OrientationMode]


@contextmanager
def _open_input(path: Optional[str]) -> Iterator[TextIO]:
    if path is None or path == '-':
        yield sys.stdin
    else:
        with open(path, encoding='utf-8') as f:
            yield f


def _load_context(args: argparse.Namespace, config: LayoutConfig) -> EditorContext:
    with _open_input(args.input) as stream:
        tree, viewport = read_snapshot(stream)
    logger.info(f"Loaded {len(tree)} nodes")
    return EditorContext(tree=tree, config=config, viewport=viewport or Viewport())


def cmd_layout(args: argparse.Namespace, config: LayoutConfig) -> int:
    if args.direction:
        config.layout.direction = args.direction
    if args.sibling_gap is not None:
        config.layout.sibling_gap = args.sibling_gap
    if args.level_gap is not None:
        config.layout.level_gap = args.level_gap
    ctx = _load_context(args, config)
    positions = ctx.tree_layout().layout_forest(ctx.tree)
    write_positions(positions, sys.stdout)
    return 0


def cmd_place(args: argparse.Namespace, config: LayoutConfig) -> int:
    ctx = _load_context(args, config)
    view = ViewKind.CONCEPT_MAP if args.view == 'concept-map' else ViewKind.MINDMAP
    if args.recalculate:
        for node in ctx.tree:
            if view is ViewKind.MINDMAP:
                node.mindmap_position = None
            else:
                node.concept_map_position = None
                node.concept_map_size = None
    initialize_view(ctx.tree, view, config)
    write_snapshot(ctx.tree, sys.stdout)
    return 0


def cmd_resolve(args: argparse.Namespace, config: LayoutConfig) -> int:
    ctx = _load_context(args, config)
    initialize_view(ctx.tree, ViewKind.CONCEPT_MAP, config)
    status = 0
    if args.node:
        for node_id in args.node:
            result = ctx.node_moved(node_id)
            if not result.converged:
                status = 2
    else:
        results = ctx.collision_resolver().resolve_all()
        if not all(r.converged for r in results):
            status = 2
    if status:
        logger.warning("Some levels did not converge; positions are best-effort")
    write_snapshot(ctx.tree, sys.stdout)
    return status


def cmd_lod(args: argparse.Namespace, config: LayoutConfig) -> int:
    ctx = _load_context(args, config)
    if args.zoom is not None:
        ctx.set_zoom(args.zoom)
    lod = ctx.lod_filter()
    visible = lod.visible_nodes(ctx.viewport)
    logger.info(
        f"Zoom {ctx.viewport.zoom_percent:.0f}%: LOD level "
        f"{lod.current_lod_level(ctx.viewport)}, {len(visible)} visible"
    )
    for node in visible:
        write_jsonl({"type": "visible", "id": node.id}, sys.stdout)
    return 0


def cmd_orient(args: argparse.Namespace, config: LayoutConfig) -> int:
    ctx = _load_context(args, config)
    ctx.orientation = OrientationMode(args.from_mode)
    ctx.canvas_center = (args.center_x, args.center_y)
    updates = ctx.set_orientation(OrientationMode(args.to_mode))
    write_updates(updates, sys.stdout)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mapweaver',
        description='Layout and collision engine for mind maps and concept maps'
    )
    parser.add_argument('--config', '-c', help='YAML configuration file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('layout', help='Contour tree layout, prints position lines')
    p.add_argument('input', nargs='?', help='Snapshot file (default: stdin)')
    p.add_argument('--direction', choices=DIRECTIONS)
    p.add_argument('--sibling-gap', type=float)
    p.add_argument('--level-gap', type=float)
    p.set_defaults(func=cmd_layout)

    p = sub.add_parser('place', help='Place nodes without a position in a view')
    p.add_argument('input', nargs='?', help='Snapshot file (default: stdin)')
    p.add_argument('--view', choices=['mindmap', 'concept-map'], default='mindmap')
    p.add_argument('--recalculate', action='store_true', help='Discard cached positions first')
    p.set_defaults(func=cmd_place)

    p = sub.add_parser('resolve', help='Concept-map overlap resolution')
    p.add_argument('input', nargs='?', help='Snapshot file (default: stdin)')
    p.add_argument('--node', '-n', action='append',
                   help='Node that moved (repeatable; default: whole map)')
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser('lod', help='Visible nodes for a zoom level')
    p.add_argument('input', nargs='?', help='Snapshot file (default: stdin)')
    p.add_argument('--zoom', '-z', type=float, help='Zoom factor, 1.0 == 100%% (default: snapshot viewport)')
    p.set_defaults(func=cmd_lod)

    p = sub.add_parser('orient', help='Orientation transition, prints update lines')
    p.add_argument('input', nargs='?', help='Snapshot file (default: stdin)')
    p.add_argument('--from', dest='from_mode', choices=_MODES, required=True)
    p.add_argument('--to', dest='to_mode', choices=_MODES, required=True)
    p.add_argument('--center-x', type=float, default=0.0)
    p.add_argument('--center-y', type=float, default=0.0)
    p.set_defaults(func=cmd_orient)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s: %(message)s'
    )

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return args.func(args, config)


if __name__ == '__main__':
    sys.exit(main())
