"""
Undo/redo for redaction edits.

Every redaction replaces a timeline item's state as a whole, so undo keeps
serialized snapshots of the item before and after each operation.
"""

import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class UndoAction:
    """A single undoable operation on one timeline item."""
    name: str
    item_id: str
    before: Dict[str, Any]
    after: Dict[str, Any]


class UndoManager:
    """
    Bounded undo/redo stack of item snapshots.

    Usage:
        before = item.to_dict()
        toggle_detection(item, detection)
        undo_manager.push("Toggle 'John'", item.id, before, item.to_dict())

        action = undo_manager.undo()
        if action:
            restore(action.item_id, action.before)
    """

    MAX_UNDO_LEVELS = 50

    def __init__(self, max_levels: int = MAX_UNDO_LEVELS):
        self.max_levels = max_levels
        self.undo_stack: List[UndoAction] = []
        self.redo_stack: List[UndoAction] = []
        self.on_change_callbacks: List[Callable[[], None]] = []

    def push(self, name: str, item_id: str, before: Dict[str, Any], after: Dict[str, Any]):
        """
        Record an operation. Clears the redo stack.

        Args:
            name: Human-readable action name (e.g., "Redact 2.00-4.00s")
            item_id: Timeline item the snapshots belong to
            before: Item state to restore on undo
            after: Item state to restore on redo
        """
        self.undo_stack.append(UndoAction(
            name=name,
            item_id=item_id,
            before=deepcopy(before),
            after=deepcopy(after),
        ))
        self.redo_stack.clear()

        if len(self.undo_stack) > self.max_levels:
            self.undo_stack.pop(0)

        self._notify_change()

    def undo(self) -> Optional[UndoAction]:
        """Pop the last operation, or None if there is nothing to undo."""
        if not self.can_undo():
            return None

        action = self.undo_stack.pop()
        self.redo_stack.append(action)
        self._notify_change()
        return action

    def redo(self) -> Optional[UndoAction]:
        """Re-apply the last undone operation, or None."""
        if not self.can_redo():
            return None

        action = self.redo_stack.pop()
        self.undo_stack.append(action)
        self._notify_change()
        return action

    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    def get_undo_name(self) -> Optional[str]:
        return self.undo_stack[-1].name if self.can_undo() else None

    def get_redo_name(self) -> Optional[str]:
        return self.redo_stack[-1].name if self.can_redo() else None

    def forget_item(self, item_id: str):
        """Drop history for an item removed from the timeline."""
        self.undo_stack = [a for a in self.undo_stack if a.item_id != item_id]
        self.redo_stack = [a for a in self.redo_stack if a.item_id != item_id]
        self._notify_change()

    def clear(self):
        self.undo_stack.clear()
        self.redo_stack.clear()
        self._notify_change()

    def on_change(self, callback: Callable[[], None]):
        """Register callback for stack changes."""
        self.on_change_callbacks.append(callback)

    def remove_callback(self, callback: Callable[[], None]):
        if callback in self.on_change_callbacks:
            self.on_change_callbacks.remove(callback)

    def _notify_change(self):
        for cb in self.on_change_callbacks:
            try:
                cb()
            except Exception:
                logger.exception("Undo change callback failed")
