"""
Base command interface.

A command is a stateful, reversible change to some mutable target (usually
the node tree). It remembers what it changed so that undo() can reverse it.
CommandHistory only talks to this interface, so it stays generic over the
target.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseCommand(ABC):
    """Base class for reversible edits."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable command name (shown in history listings)."""
        ...

    @abstractmethod
    def execute(self) -> None:
        """Apply the change and record whatever undo() needs."""
        ...

    @abstractmethod
    def undo(self) -> None:
        """Reverse the effect of the last execute()/redo()."""
        ...

    def redo(self) -> None:
        """Re-apply after an undo. Default: run execute() again."""
        self.execute()

    def can_merge(self, other: BaseCommand) -> bool:
        """
        True if `other`, executed right after this command, may be folded
        into it so that one undo reverses both.
        """
        return False

    def merge(self, other: BaseCommand) -> None:
        """Absorb `other` (only called when can_merge(other) is True)."""
        return None
