"""
history.py — Snapshot Log with Cursor
======================================
Append-only list of Snapshots plus the index currently on display.
Stepping back and forth moves the cursor over stored Snapshots and never
recomputes anything.

Branching is not kept: appending while the cursor sits behind the tip
throws away everything past the cursor first, so the log is always a
single line and `len(log) == log.cursor + 1` right after an append.

Only PlaybackController writes to a HistoryLog.
"""

from typing import List, Optional, Tuple

from algorithms.step import Snapshot


class HistoryLog:
    """
    Attributes:
        _snapshots : Every Snapshot kept so far, oldest first.
        _cursor    : Index of the Snapshot currently on display (-1 when empty).
    """

    def __init__(self):
        self._snapshots: List[Snapshot] = []
        self._cursor:    int            = -1

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def append(self, snapshot: Snapshot) -> int:
        """Truncate anything past the cursor, append, move the cursor onto it."""
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(snapshot)
        self._cursor = len(self._snapshots) - 1
        return self._cursor

    def restore(self, index: int) -> Snapshot:
        """Move the cursor to `index` and return the stored Snapshot as-is."""
        if not 0 <= index < len(self._snapshots):
            raise IndexError(f"History index {index} out of range (length {len(self._snapshots)})")
        self._cursor = index
        return self._snapshots[index]

    def clear(self) -> None:
        self._snapshots = []
        self._cursor = -1

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[Snapshot]:
        if 0 <= self._cursor < len(self._snapshots):
            return self._snapshots[self._cursor]
        return None

    @property
    def at_tip(self) -> bool:
        return self._cursor == len(self._snapshots) - 1

    def snapshots(self) -> Tuple[Snapshot, ...]:
        return tuple(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def __repr__(self) -> str:
        return f"HistoryLog(length={len(self._snapshots)}, cursor={self._cursor})"
