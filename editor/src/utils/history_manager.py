"""
Undo/Redo History Manager for the Text Editor

Manages a bounded, linear sequence of layer collection snapshots with one
cursor. Snapshots are tuples of frozen TextLayer values, so entries can be
stored and handed out without copying: nothing can mutate them later.

Replay discrimination: undo()/redo() arm a one-shot "replay in progress"
flag. The engine installs the returned snapshot, which makes the LayerStore
report a change; the next record() call consumes the flag instead of
recording, so replays never create history-of-history.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from models.text_layer import TextLayer
from constants import MAX_HISTORY_ENTRIES

Snapshot = Tuple[TextLayer, ...]


class HistoryManager:
    """Manages undo/redo history with immutable state snapshots"""

    def __init__(self, max_history: int = MAX_HISTORY_ENTRIES):
        """
        Initialize the history manager

        Args:
            max_history: Maximum number of snapshots to keep in history
        """
        if max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {max_history}")
        self.max_history = max_history
        self._history: List[Snapshot] = []
        self._current_index = -1  # -1 only while the history is empty
        self._replaying = False
        self._listeners: List[Callable[[bool, bool], None]] = []
        self._logger = logging.getLogger('History')

    # ========================================
    # Properties
    # ========================================

    @property
    def history(self) -> Tuple[Snapshot, ...]:
        """All snapshots, oldest first (read-only view)"""
        return tuple(self._history)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def is_replaying(self) -> bool:
        """True between undo()/redo() and the record() call it suppresses"""
        return self._replaying

    def __len__(self) -> int:
        return len(self._history)

    # ========================================
    # Recording
    # ========================================

    def record(self, snapshot: Sequence[TextLayer]) -> bool:
        """
        Record a new snapshot after the cursor

        If the change came from an undo/redo replay this is a no-op that
        consumes the replay flag.

        Args:
            snapshot: The layer collection after the mutation

        Returns:
            True if the snapshot was recorded, False if it was a replay
        """
        if self._replaying:
            self._replaying = False
            self._logger.debug("Replay snapshot consumed, not recorded")
            return False

        # Drop the redo branch
        if self._current_index < len(self._history) - 1:
            del self._history[self._current_index + 1:]

        self._history.append(tuple(snapshot))
        self._current_index += 1

        # Evict oldest, keeping the newest entry under the cursor
        if len(self._history) > self.max_history:
            self._history.pop(0)
            self._current_index -= 1

        self._notify_listeners()
        self._logger.debug(f"State recorded (index: {self._current_index}, total: {len(self._history)})")
        return True

    # ========================================
    # Time travel
    # ========================================

    def undo(self) -> Optional[Snapshot]:
        """
        Move back one snapshot

        Returns:
            The snapshot to install, or None if already at the first entry
        """
        if not self.can_undo():
            self._logger.debug("Cannot undo - at beginning of history")
            return None

        self._replaying = True
        self._current_index -= 1
        self._notify_listeners()
        self._logger.debug(f"Undo to index {self._current_index}")
        return self._history[self._current_index]

    def redo(self) -> Optional[Snapshot]:
        """
        Move forward one snapshot

        Returns:
            The snapshot to install, or None if already at the last entry
        """
        if not self.can_redo():
            self._logger.debug("Cannot redo - at end of history")
            return None

        self._replaying = True
        self._current_index += 1
        self._notify_listeners()
        self._logger.debug(f"Redo to index {self._current_index}")
        return self._history[self._current_index]

    def cancel_replay(self):
        """Disarm the replay flag when a returned snapshot was not installed"""
        self._replaying = False

    def can_undo(self) -> bool:
        """Check if undo is available"""
        return self._current_index > 0

    def can_redo(self) -> bool:
        """Check if redo is available"""
        return 0 <= self._current_index < len(self._history) - 1

    def current(self) -> Optional[Snapshot]:
        """Snapshot under the cursor, or None when empty"""
        if 0 <= self._current_index < len(self._history):
            return self._history[self._current_index]
        return None

    # ========================================
    # Bulk state (autosave restore)
    # ========================================

    def clear(self):
        """Clear all history"""
        self._history = []
        self._current_index = -1
        self._replaying = False
        self._notify_listeners()
        self._logger.debug("History cleared")

    def load(self, entries: Sequence[Sequence[TextLayer]], cursor: int):
        """
        Replace the whole history, e.g. from an autosave record

        Oversized histories keep their newest entries. An out-of-range
        cursor is clamped rather than rejected.

        Args:
            entries: Snapshots, oldest first
            cursor: Index of the live snapshot
        """
        snapshots = [tuple(entry) for entry in entries]
        overflow = max(0, len(snapshots) - self.max_history)
        if overflow:
            snapshots = snapshots[overflow:]
            cursor -= overflow

        self._history = snapshots
        self._replaying = False
        if not snapshots:
            self._current_index = -1
        else:
            clamped = max(0, min(cursor, len(snapshots) - 1))
            if clamped != cursor:
                self._logger.warning(f"History cursor {cursor} out of range, clamped to {clamped}")
            self._current_index = clamped
        self._notify_listeners()
        self._logger.debug(f"History loaded (index: {self._current_index}, total: {len(self._history)})")

    # ========================================
    # Listeners
    # ========================================

    def add_listener(self, callback: Callable[[bool, bool], None]):
        """
        Add a listener to be notified when history state changes

        Args:
            callback: Function to call when history changes (receives can_undo, can_redo)
        """
        self._listeners.append(callback)

    def remove_listener(self, callback):
        """Remove a listener"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self):
        """Notify all listeners of history state change"""
        for callback in self._listeners:
            try:
                callback(self.can_undo(), self.can_redo())
            except Exception:
                self._logger.exception("Error notifying history listener")
