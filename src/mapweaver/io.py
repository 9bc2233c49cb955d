# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# JSON Lines I/O for map snapshots and layout results
#
# Provides streaming I/O so the engine can sit behind a pipe: the editor
# writes a snapshot, the engine answers with positions or updates.

"""
JSON Lines I/O for mapweaver objects.

Every line is one JSON object with a ``type`` field:

    {"type": "node", "id": "a", "parentId": "root", "order": 0, "width": 150, ...}
    {"type": "reference", "source": "a", "target": "b"}
    {"type": "viewport", "zoom": 0.35, "x": 0, "y": 0}
    {"type": "position", "id": "a", "x": 10.0, "y": 110.0}
    {"type": "update", "nodeId": "a", "newX": -160.0, "newY": 110.0}

Blank and malformed lines are skipped.

Usage:
    from mapweaver.io import read_snapshot, write_positions

    tree, viewport = read_snapshot(sys.stdin)
    write_positions(positions, sys.stdout)
"""

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO, Tuple, Union

from .model import Node, TreeModel, Viewport
from .view.orientation import PositionUpdate

logger = logging.getLogger(__name__)


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class NodePosition:
    """A node position."""
    id: str
    x: float
    y: float

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "position", "id": self.id, "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'NodePosition':
        return cls(id=str(d["id"]), x=d["x"], y=d["y"])


@dataclass
class Reference:
    """A non-hierarchical link between two nodes."""
    source: str
    target: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "reference", "source": self.source, "target": self.target}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Reference':
        return cls(source=str(d["source"]), target=str(d["target"]))


def _update_from_dict(d: Dict[str, Any]) -> PositionUpdate:
    return PositionUpdate(node_id=str(d["nodeId"]), new_x=d["newX"], new_y=d["newY"])


MapObject = Union[Node, Reference, Viewport, NodePosition, PositionUpdate]

_DECODERS = {
    "node": Node.from_dict,
    "reference": Reference.from_dict,
    "viewport": Viewport.from_dict,
    "position": NodePosition.from_dict,
    "update": _update_from_dict,
}


# ============================================================================
# PROTOCOL
# ============================================================================

class JsonLinesProtocol:
    """JSON Lines protocol implementation."""

    def read(self, stream: TextIO) -> Iterator[MapObject]:
        for lineno, line in enumerate(stream, 1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"Line {lineno}: not valid JSON, skipping")
                continue
            if not isinstance(obj, dict):
                continue
            decoder = _DECODERS.get(obj.get("type"))
            if decoder is None:
                logger.debug(f"Line {lineno}: unknown type {obj.get('type')!r}, skipping")
                continue
            try:
                yield decoder(obj)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Line {lineno}: malformed {obj.get('type')} record ({e}), skipping")

    def write(self, obj: MapObject, stream: TextIO) -> None:
        print(json.dumps(obj.to_dict(), ensure_ascii=False), file=stream)


DEFAULT_PROTOCOL = JsonLinesProtocol()


# ============================================================================
# READER FUNCTIONS
# ============================================================================

def read_jsonl(stream: TextIO = sys.stdin) -> Iterator[Dict[str, Any]]:
    """Read raw JSON objects from a JSON Lines stream."""
    for line in stream:
        line = line.strip()
        if line:
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def read_objects(stream: TextIO = sys.stdin) -> Iterator[MapObject]:
    yield from DEFAULT_PROTOCOL.read(stream)


def read_snapshot(stream: TextIO = sys.stdin) -> Tuple[TreeModel, Optional[Viewport]]:
    """
    Read a full snapshot.

    Node lines build the tree (records whose parent cannot be resolved are
    dropped); reference lines become reference edges; the last viewport
    line wins.

    Returns:
        (tree, viewport or None)
    """
    records: List[Dict[str, Any]] = []
    references: List[Reference] = []
    viewport: Optional[Viewport] = None
    for lineno, raw in enumerate(read_jsonl(stream), 1):
        if not isinstance(raw, dict):
            continue
        kind = raw.get("type")
        if kind == "node":
            if "id" not in raw:
                logger.warning(f"Record {lineno}: node without id, skipping")
                continue
            records.append(raw)
        elif kind == "reference":
            try:
                references.append(Reference.from_dict(raw))
            except KeyError:
                logger.warning(f"Record {lineno}: incomplete reference, skipping")
        elif kind == "viewport":
            viewport = Viewport.from_dict(raw)

    tree = TreeModel.from_snapshot(records)
    for ref in references:
        if ref.source in tree and ref.target in tree:
            tree.add_reference(ref.source, ref.target)
        else:
            logger.warning(f"Reference {ref.source} -> {ref.target}: unknown node, skipping")
    logger.debug(f"Read snapshot: {len(tree)} nodes, {len(tree.references)} references")
    return tree, viewport


def read_positions_dict(stream: TextIO = sys.stdin) -> Dict[str, Tuple[float, float]]:
    """Read position lines as {id: (x, y)}."""
    return {
        obj.id: (obj.x, obj.y)
        for obj in read_objects(stream)
        if isinstance(obj, NodePosition)
    }


def read_updates(stream: TextIO = sys.stdin) -> List[PositionUpdate]:
    return [obj for obj in read_objects(stream) if isinstance(obj, PositionUpdate)]


# ============================================================================
# WRITER FUNCTIONS
# ============================================================================

def write_jsonl(obj: Dict[str, Any], stream: TextIO = sys.stdout) -> None:
    """Write a JSON object as a single line."""
    print(json.dumps(obj, ensure_ascii=False), file=stream)


def write_object(obj: MapObject, stream: TextIO = sys.stdout) -> None:
    DEFAULT_PROTOCOL.write(obj, stream)


def write_snapshot(tree: TreeModel, stream: TextIO = sys.stdout,
                   viewport: Optional[Viewport] = None) -> None:
    """Write the tree (nodes in pre-order, then references, then the viewport)."""
    for record in tree.to_snapshot():
        write_jsonl(record, stream)
    for source, target in tree.references:
        write_object(Reference(source, target), stream)
    if viewport is not None:
        write_object(viewport, stream)


def write_positions(positions: Dict[str, Tuple[float, float]],
                    stream: TextIO = sys.stdout) -> None:
    """Write a positions dict as position lines."""
    for node_id, (x, y) in positions.items():
        write_object(NodePosition(node_id, x, y), stream)


def write_updates(updates: Iterable[PositionUpdate], stream: TextIO = sys.stdout) -> None:
    for update in updates:
        write_object(update, stream)
