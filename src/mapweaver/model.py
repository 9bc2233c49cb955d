# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# In-memory tree model shared by every layout pass.

"""
Tree model for mind maps and concept maps.

A document is a rooted forest of nodes. Each node carries its topology
(parent id and an ordered child list), its size, its active position and
per-view position caches. Layout passes only ever touch the geometry
fields; the editing operations on TreeModel own the topology.

Usage:
    from mapweaver.model import TreeModel

    tree = TreeModel()
    root = tree.add_root('root', label='Topic')
    tree.add_child('root', 'a', width=120, height=40)
    tree.add_sibling('a', 'b')
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import LayoutInvariantError, TopologyError

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 150.0
DEFAULT_HEIGHT = 50.0


class ViewKind(Enum):
    """Views that keep their own position cache on each node."""
    MINDMAP = "mindmap"
    CONCEPT_MAP = "concept_map"


@dataclass
class ViewPosition:
    """Position of a node in one view."""
    x: float
    y: float


@dataclass
class ViewSize:
    """Size of a node in one view (concept-map containers grow)."""
    width: float
    height: float


@dataclass
class Rect:
    """Axis-aligned rectangle. Always derived, never stored on a node."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def padded(self, pad_x: float, pad_y: Optional[float] = None) -> 'Rect':
        """Grow the rectangle by pad_x/2 (pad_y/2) on every side."""
        if pad_y is None:
            pad_y = pad_x
        return Rect(
            self.x - pad_x / 2,
            self.y - pad_y / 2,
            self.width + pad_x,
            self.height + pad_y,
        )

    def union(self, other: 'Rect') -> 'Rect':
        """Smallest rectangle containing both."""
        x = min(self.x, other.x)
        y = min(self.y, other.y)
        return Rect(x, y, max(self.right, other.right) - x, max(self.bottom, other.bottom) - y)

    def translated(self, dx: float, dy: float) -> 'Rect':
        return Rect(self.x + dx, self.y + dy, self.width, self.height)


@dataclass
class Viewport:
    """Canvas viewport: zoom factor (1.0 == 100%) and pan offset."""
    zoom: float = 1.0
    x: float = 0.0
    y: float = 0.0

    @property
    def zoom_percent(self) -> float:
        return self.zoom * 100

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "viewport", "zoom": self.zoom, "x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Viewport':
        return cls(zoom=d.get("zoom", 1.0), x=d.get("x", 0.0), y=d.get("y", 0.0))


def _warn_revisit(node_id: str) -> None:
    logger.warning(f"Node {node_id} reached twice while walking the tree, skipping (children cycle?)")


def _view_position(value: Any) -> Optional[ViewPosition]:
    if not value:
        return None
    return ViewPosition(x=value["x"], y=value["y"])


def _view_size(value: Any) -> Optional[ViewSize]:
    if not value:
        return None
    return ViewSize(width=value["width"], height=value["height"])


@dataclass
class Node:
    """A mind map node."""
    id: str
    parent_id: Optional[str] = None
    children: List[str] = field(default_factory=list)
    label: str = ""
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    x: float = 0.0
    y: float = 0.0
    # View caches: None means "not laid out for this view yet"
    mindmap_position: Optional[ViewPosition] = None
    concept_map_position: Optional[ViewPosition] = None
    concept_map_size: Optional[ViewSize] = None
    measured_size: Optional[ViewSize] = None
    collapsed: bool = False

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def rect(self) -> Rect:
        """Rectangle at the active position."""
        return Rect(self.x, self.y, self.width, self.height)

    def view_position(self, view: ViewKind) -> Optional[ViewPosition]:
        if view is ViewKind.MINDMAP:
            return self.mindmap_position
        return self.concept_map_position

    def set_position(self, x: float, y: float, view: ViewKind = ViewKind.MINDMAP) -> None:
        """Move the node and commit the position to the given view cache."""
        if view is ViewKind.MINDMAP:
            self.x = x
            self.y = y
            self.mindmap_position = ViewPosition(x, y)
        else:
            self.concept_map_position = ViewPosition(x, y)

    def apply_measured_size(self) -> bool:
        """Adopt the size reported by the renderer. Returns True if it changed."""
        if self.measured_size is None:
            return False
        changed = (self.width, self.height) != (self.measured_size.width, self.measured_size.height)
        self.width = self.measured_size.width
        self.height = self.measured_size.height
        return changed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a snapshot record (camelCase keys, as the editor sends them)."""
        d: Dict[str, Any] = {
            "type": "node",
            "id": self.id,
            "parentId": self.parent_id,
            "label": self.label,
            "width": self.width,
            "height": self.height,
            "x": self.x,
            "y": self.y,
            "collapsed": self.collapsed,
        }
        if self.mindmap_position is not None:
            d["mindmapPosition"] = {"x": self.mindmap_position.x, "y": self.mindmap_position.y}
        if self.concept_map_position is not None:
            d["conceptMapPosition"] = {
                "x": self.concept_map_position.x, "y": self.concept_map_position.y
            }
        if self.concept_map_size is not None:
            d["conceptMapSize"] = {
                "width": self.concept_map_size.width, "height": self.concept_map_size.height
            }
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Node':
        """Create from a snapshot record. Missing sizes fall back to defaults."""
        parent_id = d.get("parentId")
        return cls(
            id=str(d["id"]),
            parent_id=None if parent_id is None else str(parent_id),
            label=d.get("label", ""),
            width=d.get("width") or DEFAULT_WIDTH,
            height=d.get("height") or DEFAULT_HEIGHT,
            x=d.get("x", 0.0),
            y=d.get("y", 0.0),
            mindmap_position=_view_position(d.get("mindmapPosition")),
            concept_map_position=_view_position(d.get("conceptMapPosition")),
            concept_map_size=_view_size(d.get("conceptMapSize")),
            measured_size=_view_size(d.get("measuredSize")),
            collapsed=bool(d.get("collapsed", False)),
        )


class TreeModel:
    """Rooted forest of nodes plus optional non-hierarchical reference edges."""

    def __init__(self):
        self._nodes: Dict[str, Node] = {}
        self._roots: List[str] = []
        # (source, target) pairs; never used for positioning
        self.references: List[Tuple[str, str]] = []

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def __getitem__(self, node_id: str) -> Node:
        return self._nodes[node_id]

    def get(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def roots(self) -> List[Node]:
        return [self._nodes[r] for r in self._roots]

    def children_of(self, node_id: Optional[str]) -> List[Node]:
        """Ordered children; for None, the roots. Unknown ids have none."""
        if node_id is None:
            return self.roots()
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._nodes[c] for c in node.children if c in self._nodes]

    def parent_of(self, node_id: str) -> Optional[Node]:
        node = self._nodes.get(node_id)
        return self.get(node.parent_id) if node else None

    def siblings_of(self, node_id: str, include_self: bool = True) -> List[Node]:
        node = self._nodes[node_id]
        level = self.children_of(node.parent_id)
        if include_self:
            return level
        return [n for n in level if n.id != node_id]

    def ancestors(self, node_id: str) -> List[Node]:
        """Parent, grandparent, ... up to the root."""
        chain: List[Node] = []
        node = self._nodes.get(node_id)
        seen = {node_id}
        while node is not None and node.parent_id is not None:
            if node.parent_id in seen:
                raise LayoutInvariantError(f"Cycle through node {node.parent_id}")
            seen.add(node.parent_id)
            parent = self._nodes.get(node.parent_id)
            if parent is None:
                break
            chain.append(parent)
            node = parent
        return chain

    def root_of(self, node_id: str) -> Optional[Node]:
        if node_id not in self._nodes:
            return None
        chain = self.ancestors(node_id)
        return chain[-1] if chain else self._nodes[node_id]

    def depth(self, node_id: str) -> int:
        """Number of edges from the node up to its root (roots are depth 0)."""
        return len(self.ancestors(node_id))

    def depths(self) -> Dict[str, int]:
        """Depth of every reachable node, computed in one breadth-first pass."""
        return {node.id: d for node, d in self.walk_breadth_first()}

    def max_depth(self) -> int:
        return max(self.depths().values(), default=0)

    def descendants(self, node_id: str) -> List[Node]:
        """All descendants in pre-order (the node itself excluded)."""
        result: List[Node] = []
        seen = {node_id}
        stack = list(reversed(self.children_of(node_id)))
        while stack:
            node = stack.pop()
            if node.id in seen:
                _warn_revisit(node.id)
                continue
            seen.add(node.id)
            result.append(node)
            stack.extend(reversed(self.children_of(node.id)))
        return result

    def walk_preorder(self, root_id: Optional[str] = None) -> Iterator[Node]:
        """
        Yield nodes depth-first, parents before children.

        A node listed twice (a children cycle or a child shared by two
        parents) is yielded once; the repeat is skipped with a warning.
        """
        starts = self.roots() if root_id is None else [self._nodes[root_id]]
        seen = set()
        stack = list(reversed(starts))
        while stack:
            node = stack.pop()
            if node.id in seen:
                _warn_revisit(node.id)
                continue
            seen.add(node.id)
            yield node
            stack.extend(reversed(self.children_of(node.id)))

    def walk_breadth_first(self, root_id: Optional[str] = None) -> Iterator[Tuple[Node, int]]:
        """Yield (node, depth) level by level, each node once."""
        starts = self.roots() if root_id is None else [self._nodes[root_id]]
        seen = set()
        queue = deque((n, 0) for n in starts)
        while queue:
            node, depth = queue.popleft()
            if node.id in seen:
                _warn_revisit(node.id)
                continue
            seen.add(node.id)
            yield node, depth
            for child in self.children_of(node.id):
                queue.append((child, depth + 1))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _new_node(self, node_id: Optional[str], parent_id: Optional[str], **props) -> Node:
        if node_id is None:
            node_id = uuid.uuid4().hex[:12]
        if node_id in self._nodes:
            raise TopologyError(f"Duplicate node id: {node_id}")
        if props.get("width") is None:
            props.pop("width", None)
        if props.get("height") is None:
            props.pop("height", None)
        node = Node(id=node_id, parent_id=parent_id, **props)
        self._nodes[node_id] = node
        return node

    def add_root(self, node_id: Optional[str] = None, **props) -> Node:
        node = self._new_node(node_id, None, **props)
        self._roots.append(node.id)
        return node

    def add_child(self, parent_id: str, node_id: Optional[str] = None,
                  index: Optional[int] = None, **props) -> Node:
        """Add a child at ``index`` (default: last)."""
        parent = self._nodes.get(parent_id)
        if parent is None:
            raise TopologyError(f"Unknown parent: {parent_id}")
        node = self._new_node(node_id, parent_id, **props)
        if index is None:
            parent.children.append(node.id)
        else:
            parent.children.insert(index, node.id)
        return node

    def add_sibling(self, sibling_id: str, node_id: Optional[str] = None, **props) -> Node:
        """Add a node directly after ``sibling_id`` in the same level."""
        sibling = self._nodes.get(sibling_id)
        if sibling is None:
            raise TopologyError(f"Unknown sibling: {sibling_id}")
        if sibling.parent_id is None:
            node = self._new_node(node_id, None, **props)
            self._roots.insert(self._roots.index(sibling_id) + 1, node.id)
            return node
        parent = self._nodes[sibling.parent_id]
        return self.add_child(parent.id, node_id, index=parent.children.index(sibling_id) + 1, **props)

    def _detach(self, node: Node) -> None:
        if node.parent_id is None:
            self._roots.remove(node.id)
        else:
            parent = self._nodes.get(node.parent_id)
            if parent is not None and node.id in parent.children:
                parent.children.remove(node.id)

    def remove(self, node_id: str) -> List[str]:
        """Remove a node together with its descendants. Returns removed ids."""
        node = self._nodes.get(node_id)
        if node is None:
            return []
        removed = [node_id] + [d.id for d in self.descendants(node_id)]
        self._detach(node)
        for rid in removed:
            del self._nodes[rid]
        gone = set(removed)
        self.references = [(s, t) for s, t in self.references if s not in gone and t not in gone]
        return removed

    def reparent(self, node_id: str, new_parent_id: Optional[str],
                 index: Optional[int] = None) -> None:
        """Move a node (and its subtree) under a new parent, or make it a root."""
        node = self._nodes.get(node_id)
        if node is None:
            raise TopologyError(f"Unknown node: {node_id}")
        if new_parent_id is not None:
            if new_parent_id not in self._nodes:
                raise TopologyError(f"Unknown parent: {new_parent_id}")
            if new_parent_id == node_id or any(
                a.id == node_id for a in self.ancestors(new_parent_id)
            ):
                raise TopologyError(f"Cannot move {node_id} into its own subtree")
        self._detach(node)
        node.parent_id = new_parent_id
        target = self._roots if new_parent_id is None else self._nodes[new_parent_id].children
        if index is None:
            target.append(node_id)
        else:
            target.insert(index, node_id)

    def move_sibling(self, node_id: str, index: int) -> None:
        """Change a node's position within its sibling order."""
        node = self._nodes[node_id]
        order = self._roots if node.parent_id is None else self._nodes[node.parent_id].children
        order.remove(node_id)
        order.insert(index, node_id)

    def add_reference(self, source_id: str, target_id: str) -> None:
        if source_id not in self._nodes or target_id not in self._nodes:
            raise TopologyError(f"Reference between unknown nodes: {source_id} -> {target_id}")
        self.references.append((source_id, target_id))

    # ------------------------------------------------------------------
    # Validation and snapshots
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        """Return a list of topology problems (empty when the tree is sound)."""
        problems = []
        for node in self._nodes.values():
            if node.parent_id is not None and node.parent_id not in self._nodes:
                problems.append(f"{node.id}: missing parent {node.parent_id}")
            if len(set(node.children)) != len(node.children):
                problems.append(f"{node.id}: duplicate children")
            for cid in node.children:
                child = self._nodes.get(cid)
                if child is None:
                    problems.append(f"{node.id}: unknown child {cid}")
                elif child.parent_id != node.id:
                    problems.append(f"{node.id}: child {cid} declares parent {child.parent_id}")
        reachable = set()
        stack = list(reversed(self._roots))
        while stack:
            nid = stack.pop()
            if nid in reachable:
                problems.append(f"{nid}: reached twice, children form a cycle or are shared")
                continue
            reachable.add(nid)
            stack.extend(c for c in reversed(self._nodes[nid].children) if c in self._nodes)
        for nid in self._nodes:
            if nid not in reachable:
                problems.append(f"{nid}: unreachable from any root")
        return problems

    @classmethod
    def from_snapshot(cls, records: Iterable[Dict[str, Any]]) -> 'TreeModel':
        """
        Build a tree from snapshot records ``{id, parentId, order, ...}``.

        Records whose parent cannot be resolved (and anything below them,
        or caught in a cycle) are skipped with a warning so a partially
        broken document still renders.
        """
        tree = cls()
        decoded: List[Tuple[float, int, Node]] = []
        for idx, record in enumerate(records):
            try:
                node = Node.from_dict(record)
                order = float(record.get("order") or 0)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed node record #{idx}: {e!r}")
                continue
            decoded.append((order, idx, node))
        decoded.sort(key=lambda item: (item[0], item[1]))

        for _, _, node in decoded:
            if node.id in tree._nodes:
                logger.warning(f"Duplicate node id in snapshot: {node.id}, skipping")
                continue
            tree._nodes[node.id] = node

        for node in list(tree._nodes.values()):
            if node.parent_id is None:
                tree._roots.append(node.id)
            elif node.parent_id in tree._nodes:
                tree._nodes[node.parent_id].children.append(node.id)

        reachable = {n.id for n in tree.walk_preorder()}
        for nid in list(tree._nodes):
            if nid not in reachable:
                logger.warning(f"Skipping node {nid}: parent cannot be resolved")
                del tree._nodes[nid]
        for node in tree._nodes.values():
            node.children = [c for c in node.children if c in tree._nodes]
        return tree

    def to_snapshot(self) -> List[Dict[str, Any]]:
        records = []
        for node in self.walk_preorder():
            level = self.children_of(node.parent_id)
            record = node.to_dict()
            record["order"] = next(i for i, n in enumerate(level) if n.id == node.id)
            records.append(record)
        return records
