"""
Node tree commands.

Each command captures the minimal delta it needs to reverse itself: the
parent and index a node left, the text or style it replaced, and so on.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..config import get_config
from ..dom import MindNode, Text
from ..styles import Style
from .base import BaseCommand


class AddNodeCommand(BaseCommand):
    """Attach a new node (or a data record) under parent."""

    def __init__(self, parent: MindNode, child: MindNode | Mapping[str, Any], index: int | None = None):
        self.parent = parent
        self.node = child if isinstance(child, MindNode) else MindNode(child)
        self.index = index

    @property
    def name(self) -> str:
        return "Add node"

    def execute(self) -> None:
        self.parent.add_child(self.node, self.index)
        # pin the actual slot so redo lands in the same place
        self.index = self.node.index_in_parent()

    def undo(self) -> None:
        self.parent.remove_child(self.node)


class RemoveNodeCommand(BaseCommand):
    """Detach a node (and with it its subtree) from its parent."""

    def __init__(self, node: MindNode):
        self.node = node
        self.parent: MindNode | None = None
        self.index: int | None = None

    @property
    def name(self) -> str:
        return "Remove node"

    def execute(self) -> None:
        self.parent = self.node.parent
        self.index = self.node.index_in_parent()
        self.node.remove()

    def undo(self) -> None:
        if self.parent is not None:
            self.parent.add_child(self.node, self.index)


class MoveNodeCommand(BaseCommand):
    """Re-parent a node. A move the tree rejects is recorded as a no-op."""

    def __init__(self, node: MindNode, new_parent: MindNode, index: int | None = None):
        self.node = node
        self.new_parent = new_parent
        self.index = index
        self.old_parent: MindNode | None = None
        self.old_index: int | None = None
        self.moved = False

    @property
    def name(self) -> str:
        return "Move node"

    def execute(self) -> None:
        old_parent = self.node.parent
        old_index = self.node.index_in_parent()
        self.moved = self.node.move_to(self.new_parent, self.index)
        if self.moved:
            self.old_parent, self.old_index = old_parent, old_index

    def undo(self) -> None:
        if not self.moved:
            return
        if self.old_parent is not None:
            self.node.move_to(self.old_parent, self.old_index)
        else:
            self.node.remove()


class SetTextCommand(BaseCommand):
    """
    Replace a node's text.

    Consecutive edits of the same node within merge_window seconds coalesce
    into one undo step: the first old text and the latest new text survive.
    """

    def __init__(
        self,
        node: MindNode,
        text: Text,
        merge_window: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.node = node
        self.text = copy.deepcopy(text)
        self.old_text: Text | None = None
        self.merge_window = get_config().history.merge_window if merge_window is None else merge_window
        self._clock = clock
        self.timestamp = clock()

    @property
    def name(self) -> str:
        return "Edit text"

    def execute(self) -> None:
        self.old_text = copy.deepcopy(self.node.text)
        self.node.set_text(self.text)

    def undo(self) -> None:
        self.node.set_text(self.old_text)

    def redo(self) -> None:
        self.node.set_text(self.text)

    def can_merge(self, other: BaseCommand) -> bool:
        return (
            isinstance(other, SetTextCommand)
            and other.node is self.node
            and other.timestamp - self.timestamp <= self.merge_window
        )

    def merge(self, other: BaseCommand) -> None:
        assert isinstance(other, SetTextCommand)
        self.text = copy.deepcopy(other.text)
        # sliding window: the next keystroke is compared with this one
        self.timestamp = other.timestamp


class UpdateStyleCommand(BaseCommand):
    def __init__(self, node: MindNode, style: Mapping[str, Any]):
        self.node = node
        self.style = dict(style)
        self.old_style: Style | None = None

    @property
    def name(self) -> str:
        return "Update style"

    def execute(self) -> None:
        self.old_style = copy.deepcopy(self.node.style)
        self.node.update_style(self.style)

    def undo(self) -> None:
        if self.old_style is not None:
            self.node.style = copy.deepcopy(self.old_style)


class SetExpandedCommand(BaseCommand):
    def __init__(self, node: MindNode, expanded: bool):
        self.node = node
        self.expanded = expanded
        self.was_expanded: bool | None = None

    @property
    def name(self) -> str:
        return "Expand node" if self.expanded else "Collapse node"

    def execute(self) -> None:
        self.was_expanded = self.node.expanded
        self.node.expanded = self.expanded

    def undo(self) -> None:
        if self.was_expanded is not None:
            self.node.expanded = self.was_expanded


class TagCommand(BaseCommand):
    """Add or remove one tag; undo only reverts a change that happened."""

    def __init__(self, node: MindNode, tag: str, add: bool = True):
        self.node = node
        self.tag = tag
        self.add = add
        self.changed = False

    @property
    def name(self) -> str:
        return "Add tag" if self.add else "Remove tag"

    def execute(self) -> None:
        had = self.node.has_tag(self.tag)
        if self.add:
            self.node.add_tag(self.tag)
        else:
            self.node.remove_tag(self.tag)
        self.changed = had != self.node.has_tag(self.tag)

    def undo(self) -> None:
        if not self.changed:
            return
        if self.add:
            self.node.remove_tag(self.tag)
        else:
            self.node.add_tag(self.tag)


class MacroCommand(BaseCommand):
    """A batch of commands applied in order and undone in reverse."""

    def __init__(self, name: str, commands: Iterable[BaseCommand]):
        self._name = name
        self.commands = list(commands)

    @property
    def name(self) -> str:
        return self._name

    def execute(self) -> None:
        for command in self.commands:
            command.execute()

    def undo(self) -> None:
        for command in reversed(self.commands):
            command.undo()

    def redo(self) -> None:
        for command in self.commands:
            command.redo()
