"""
Command history: undo/redo over BaseCommand instances.

Two stacks (oldest first): undo_stack holds executed commands, redo_stack
holds undone ones with the most recently undone on top. A re-entrancy guard
turns nested execute/undo/redo calls into no-ops, and the undo stack is
capped by evicting its oldest entry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .commands.base import BaseCommand
from .config import get_config
from .events import EventBus, Events

if TYPE_CHECKING:
    from .dom import MindNode, NodeData

logger = logging.getLogger(__name__)


@dataclass
class HistoryState:
    """A full tree snapshot a host may record per history entry."""
    timestamp: float
    data: NodeData
    description: str | None = None

    @classmethod
    def capture(cls, root: MindNode, description: str | None = None) -> HistoryState:
        return cls(timestamp=time.time(), data=root.to_json(), description=description)


@dataclass
class HistoryEntry:
    name: str
    type: str  # "undo" or "redo"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type}


class CommandHistory:
    def __init__(self, max_stack_size: int | None = None, events: EventBus | None = None):
        if max_stack_size is None:
            max_stack_size = get_config().history.max_stack_size
        if max_stack_size < 1:
            raise ValueError(f"max_stack_size must be >= 1, got {max_stack_size}")
        self.max_stack_size = max_stack_size
        self.events = events
        self._undo_stack: list[BaseCommand] = []
        self._redo_stack: list[BaseCommand] = []
        self._executing = False

    @property
    def is_executing(self) -> bool:
        return self._executing

    def execute(self, command: BaseCommand) -> bool:
        """
        Run a command and record it. Returns False (and does nothing) when
        called from inside another command's execute/undo/redo.

        Exceptions from the command propagate; the stacks stay as they were
        and the guard is released.
        """
        if self._executing:
            logger.debug("Ignoring re-entrant execute of %s", command.name)
            return False

        self._executing = True
        try:
            command.execute()

            top = self._undo_stack[-1] if self._undo_stack else None
            if top is not None and top.can_merge(command):
                top.merge(command)
            else:
                self._undo_stack.append(command)
                if len(self._undo_stack) > self.max_stack_size:
                    evicted = self._undo_stack.pop(0)
                    logger.debug("History full, dropped oldest entry %s", evicted.name)

            self._redo_stack.clear()
        finally:
            self._executing = False

        self._notify()
        return True

    def undo(self) -> bool:
        if not self._undo_stack or self._executing:
            return False

        self._executing = True
        try:
            command = self._undo_stack.pop()
            command.undo()
            self._redo_stack.append(command)
        finally:
            self._executing = False

        self._notify()
        return True

    def redo(self) -> bool:
        if not self._redo_stack or self._executing:
            return False

        self._executing = True
        try:
            command = self._redo_stack.pop()
            command.redo()
            self._undo_stack.append(command)
        finally:
            self._executing = False

        self._notify()
        return True

    def clear(self) -> None:
        """Drop both stacks without undoing anything."""
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._notify()

    def can_undo(self) -> bool:
        return bool(self._undo_stack) and not self._executing

    def can_redo(self) -> bool:
        return bool(self._redo_stack) and not self._executing

    @property
    def undo_stack_size(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_stack_size(self) -> int:
        return len(self._redo_stack)

    def get_history(self) -> list[dict[str, str]]:
        """Undo entries (oldest first) followed by redo entries, in stack order."""
        entries = [HistoryEntry(cmd.name, "undo") for cmd in self._undo_stack]
        entries += [HistoryEntry(cmd.name, "redo") for cmd in self._redo_stack]
        return [entry.to_dict() for entry in entries]

    def _notify(self) -> None:
        if self.events is None:
            return
        payload: dict[str, Any] = {
            "can_undo": self.can_undo(),
            "can_redo": self.can_redo(),
            "undo_size": self.undo_stack_size,
            "redo_size": self.redo_stack_size,
        }
        self.events.emit(Events.HISTORY_CHANGE, payload)
