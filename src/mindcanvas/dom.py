"""
DOM - Document Object Model for mindcanvas

The document is an ownership tree of MindNodes. Ownership runs strictly
parent -> children; the parent link is a weak back reference used only for
upward navigation.

Key invariants:
- The tree is acyclic and every node has at most one parent.
- n in p.children  <=>  n.parent is p.
- Cached rect/center are dropped by every geometry setter.
- Tags hold no duplicates.
"""

from __future__ import annotations

import copy
import logging
import random
import string
import time
import weakref
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from .geometry import Bounds, Point, Rect, bounds_of
from .styles import Style, default_style, merge_style

logger = logging.getLogger(__name__)

DEFAULT_TEXT = "New node"

# Returned by a traverse() visitor to skip that node's subtree.
SKIP_CHILDREN = object()

TextRun = dict[str, Any]
Text = str | list[TextRun]
NodeData = dict[str, Any]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id(prefix: str = "node") -> str:
    """Unique id: prefix, millisecond timestamp and 9 random base36 chars."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def _unique(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(tags))


class MindNode:
    """A node in the mind map tree."""

    def __init__(self, data: Mapping[str, Any] | None = None):
        data = data or {}
        self.id: str = data.get("id") or generate_id("node")
        self.text: Text = copy.deepcopy(data.get("text")) or DEFAULT_TEXT
        self.children: list[MindNode] = []
        self._parent_ref: weakref.ref[MindNode] | None = None
        self.style: Style = merge_style(data.get("style"))
        self.data: dict[str, Any] = copy.deepcopy(data.get("data") or {})

        self.expanded: bool = data.get("expanded") is not False
        self.selected: bool = bool(data.get("selected", False))
        self.hidden: bool = bool(data.get("hidden", False))

        self.tags: list[str] = _unique(list(data.get("tags") or []))
        self.type: str | None = data.get("type")

        # Written by the layout stage through the set_* methods only
        self._x: float = data.get("x") or 0
        self._y: float = data.get("y") or 0
        self._width: float = data.get("width") or 0
        self._height: float = data.get("height") or 0
        self._rect: Rect | None = None
        self._center: Point | None = None

        for child_data in data.get("children") or []:
            self.add_child(child_data)

    def __repr__(self) -> str:
        return f"MindNode(id={self.id!r}, text={self.plain_text()[:30]!r}, children={len(self.children)})"

    # -- structure ---------------------------------------------------------

    @property
    def parent(self) -> MindNode | None:
        return self._parent_ref() if self._parent_ref is not None else None

    def _set_parent(self, parent: MindNode | None) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def depth(self) -> int:
        """Distance from the root (root is 0)."""
        return len(self.ancestors)

    @property
    def level(self) -> int:
        """Depth counted from 1."""
        return self.depth + 1

    @property
    def root(self) -> MindNode:
        node = self
        while (parent := node.parent) is not None:
            node = parent
        return node

    @property
    def ancestors(self) -> list[MindNode]:
        """Ancestors, nearest first."""
        result = []
        node = self.parent
        while node is not None:
            result.append(node)
            node = node.parent
        return result

    @property
    def descendants(self) -> list[MindNode]:
        """All descendants in pre-order (self excluded)."""
        result = list(self.walk())
        return result[1:]

    @property
    def visible_children(self) -> list[MindNode]:
        if not self.expanded:
            return []
        return [child for child in self.children if not child.hidden]

    @property
    def siblings(self) -> list[MindNode]:
        parent = self.parent
        if parent is None:
            return []
        return [child for child in parent.children if child is not self]

    @property
    def previous_sibling(self) -> MindNode | None:
        index = self.index_in_parent()
        if index is None or index == 0:
            return None
        return self.parent.children[index - 1]  # type: ignore[union-attr]

    @property
    def next_sibling(self) -> MindNode | None:
        index = self.index_in_parent()
        if index is None:
            return None
        siblings = self.parent.children  # type: ignore[union-attr]
        return siblings[index + 1] if index + 1 < len(siblings) else None

    def index_in_parent(self) -> int | None:
        parent = self.parent
        if parent is None:
            return None
        for i, child in enumerate(parent.children):
            if child is self:
                return i
        return None

    def is_descendant_of(self, node: MindNode) -> bool:
        return any(ancestor is node for ancestor in self.ancestors)

    def is_ancestor_of(self, node: MindNode) -> bool:
        return node.is_descendant_of(self)

    def add_child(self, child: MindNode | Mapping[str, Any], index: int | None = None) -> MindNode:
        """
        Attach a node (or a node built from a data record) and return it.

        The index is clamped into [0, len(children)]; None appends. A node
        that still has a parent is detached from it first.
        """
        node = child if isinstance(child, MindNode) else MindNode(child)
        if node is self or self.is_descendant_of(node):
            raise ValueError(f"Cannot add {node.id!r} under {self.id!r}: it would create a cycle")

        old_parent = node.parent
        if old_parent is not None:
            old_parent.remove_child(node)

        node._set_parent(self)
        if index is None:
            self.children.append(node)
        else:
            self.children.insert(max(0, min(index, len(self.children))), node)
        return node

    def remove_child(self, child: MindNode | str) -> bool:
        """Detach a direct child given by reference or id."""
        for i, candidate in enumerate(self.children):
            if candidate is child or (isinstance(child, str) and candidate.id == child):
                candidate._set_parent(None)
                del self.children[i]
                return True
        return False

    def remove_all_children(self) -> None:
        for child in self.children:
            child._set_parent(None)
        self.children = []

    def remove(self) -> bool:
        """Detach self from its parent."""
        parent = self.parent
        if parent is None:
            return False
        return parent.remove_child(self)

    def move_to(self, new_parent: MindNode, index: int | None = None) -> bool:
        """
        Re-parent under new_parent at index.

        Returns False without touching the tree when new_parent is self or
        one of self's descendants.
        """
        if new_parent is self or new_parent.is_descendant_of(self):
            logger.debug("Rejected move of %s under %s: would create a cycle", self.id, new_parent.id)
            return False
        self.remove()
        new_parent.add_child(self, index)
        return True

    # -- state -------------------------------------------------------------

    def expand(self) -> None:
        self.expanded = True

    def collapse(self) -> None:
        self.expanded = False

    def toggle_expand(self) -> None:
        self.expanded = not self.expanded

    def expand_all(self) -> None:
        for node in self.walk():
            node.expanded = True

    def collapse_all(self) -> None:
        for node in self.walk():
            node.expanded = False

    def select(self) -> None:
        self.selected = True

    def deselect(self) -> None:
        self.selected = False

    def toggle_select(self) -> None:
        self.selected = not self.selected

    def set_text(self, text: Text) -> None:
        self.text = copy.deepcopy(text)

    def plain_text(self) -> str:
        if isinstance(self.text, str):
            return self.text
        return "".join(run.get("text", "") for run in self.text)

    def update_style(self, style: Mapping[str, Any]) -> None:
        """Shallow-merge a partial style; fields not mentioned are kept."""
        self.style = merge_style(self.style, style)

    def reset_style(self) -> None:
        self.style = default_style(self.is_root)

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        if tag in self.tags:
            self.tags.remove(tag)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    # -- geometry ----------------------------------------------------------

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def rect(self) -> Rect:
        if self._rect is None:
            self._rect = Rect(self._x, self._y, self._width, self._height)
        return self._rect

    @property
    def center_point(self) -> Point:
        if self._center is None:
            self._center = Point(self._x + self._width / 2, self._y + self._height / 2)
        return self._center

    def _invalidate_geometry(self) -> None:
        self._rect = None
        self._center = None

    def set_position(self, x: float, y: float) -> None:
        self._x, self._y = x, y
        self._invalidate_geometry()

    def set_size(self, width: float, height: float) -> None:
        self._width, self._height = width, height
        self._invalidate_geometry()

    def set_rect(self, rect: Rect) -> None:
        self._x, self._y = rect.x, rect.y
        self._width, self._height = rect.width, rect.height
        self._invalidate_geometry()

    def tree_bounds(self, include_hidden: bool = False) -> Bounds | None:
        """Union of node rects over the subtree (visible part unless include_hidden)."""
        if include_hidden:
            nodes: Iterator[MindNode] = self.walk()
        else:
            nodes = self.walk_visible()
        return bounds_of(node.rect for node in nodes)

    # -- traversal ---------------------------------------------------------

    def walk(self) -> Iterator[MindNode]:
        """Traverse depth-first, yielding self then children."""
        yield self
        for child in self.children:
            yield from child.walk()

    def walk_visible(self) -> Iterator[MindNode]:
        """Depth-first over what a renderer would show."""
        yield self
        for child in self.visible_children:
            yield from child.walk_visible()

    def breadth_first(self) -> Iterator[MindNode]:
        queue: list[MindNode] = [self]
        while queue:
            node = queue.pop(0)
            yield node
            queue.extend(node.children)

    def traverse(self, visitor: Callable[[MindNode, int], Any], depth: int = 0) -> None:
        """
        Pre-order visit. A visitor returning SKIP_CHILDREN (or False) prunes
        the subtree below that node; the rest of the traversal continues.
        """
        result = visitor(self, depth)
        if result is SKIP_CHILDREN or result is False:
            return
        for child in list(self.children):
            child.traverse(visitor, depth + 1)

    def find(self, predicate: Callable[[MindNode], bool]) -> MindNode | None:
        for node in self.walk():
            if predicate(node):
                return node
        return None

    def find_all(self, predicate: Callable[[MindNode], bool]) -> list[MindNode]:
        return [node for node in self.walk() if predicate(node)]

    def find_by_id(self, node_id: str) -> MindNode | None:
        return self.find(lambda node: node.id == node_id)

    def count(self) -> int:
        """Number of nodes in the subtree, self included."""
        return sum(1 for _ in self.walk())

    def max_depth(self) -> int:
        """Height of the subtree counted in levels (a leaf is 1)."""
        if not self.children:
            return 1
        return 1 + max(child.max_depth() for child in self.children)

    # -- copying and serialization -----------------------------------------

    def clone(self, include_children: bool = True) -> MindNode:
        """Deep copy with fresh ids for the copy and every copied descendant."""
        data = self.to_json()
        if not include_children:
            data.pop("children", None)
        for record in _iter_records(data):
            record["id"] = generate_id("node")
        return MindNode(data)

    def to_json(self) -> NodeData:
        data: NodeData = {
            "id": self.id,
            "text": copy.deepcopy(self.text),
            "style": copy.deepcopy(self.style),
            "expanded": self.expanded,
            "selected": self.selected,
            "hidden": self.hidden,
            "tags": list(self.tags),
            "data": copy.deepcopy(self.data),
            "x": self._x,
            "y": self._y,
            "width": self._width,
            "height": self._height,
        }
        if self.type:
            data["type"] = self.type
        if self.children:
            data["children"] = [child.to_json() for child in self.children]
        return data

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> MindNode:
        return cls(data)


def check_invariants(root: MindNode) -> list[str]:
    """Return a description of every structural invariant the tree breaks."""
    problems = []
    if root.parent is not None:
        problems.append(f"root {root.id!r} has a parent")
    seen_ids: set[str] = set()
    seen_nodes: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen_nodes:
            problems.append(f"node {node.id!r} is reachable twice")
            continue
        seen_nodes.add(id(node))
        if node.id in seen_ids:
            problems.append(f"duplicate id {node.id!r}")
        seen_ids.add(node.id)
        if len(set(node.tags)) != len(node.tags):
            problems.append(f"node {node.id!r} has duplicate tags")
        for child in node.children:
            if child.parent is not node:
                problems.append(f"child {child.id!r} does not point back to {node.id!r}")
            stack.append(child)
    return problems


# -- plain data record helpers ---------------------------------------------


def _iter_records(record: NodeData) -> Iterator[NodeData]:
    yield record
    for child in record.get("children") or []:
        yield from _iter_records(child)


def traverse_tree(
    record: NodeData,
    visitor: Callable[[NodeData, int, NodeData | None], Any],
    depth: int = 0,
    parent: NodeData | None = None,
) -> None:
    """Pre-order visit over plain records; a False return prunes that subtree."""
    if visitor(record, depth, parent) is False:
        return
    for child in record.get("children") or []:
        traverse_tree(child, visitor, depth + 1, record)


def find_node(record: NodeData, predicate: Callable[[NodeData], bool]) -> NodeData | None:
    for candidate in _iter_records(record):
        if predicate(candidate):
            return candidate
    return None


def find_parent_node(record: NodeData, target_id: str) -> NodeData | None:
    for candidate in _iter_records(record):
        if any(child.get("id") == target_id for child in candidate.get("children") or []):
            return candidate
    return None


def get_node_path(record: NodeData, target_id: str) -> list[NodeData]:
    """Records from the root down to the target, or [] if absent."""
    if record.get("id") == target_id:
        return [record]
    for child in record.get("children") or []:
        path = get_node_path(child, target_id)
        if path:
            return [record, *path]
    return []


def count_nodes(record: NodeData) -> int:
    return sum(1 for _ in _iter_records(record))


def get_tree_depth(record: NodeData) -> int:
    children = record.get("children") or []
    if not children:
        return 1
    return 1 + max(get_tree_depth(child) for child in children)
