from __future__ import annotations

"""Undo/redo history.

Entries before the cursor are undoable, entries at and after it are
redoable. History stores the inverse (a :class:`~palette.operations.Restore`
of the prior states) next to the applied operation, so memory grows with the
edit sequence rather than with palette size.
"""

from dataclasses import dataclass
from typing import List, Optional

from .address import Address
from .errors import InvalidOperationArguments, NothingToRedo, NothingToUndo
from .operations import Operation, OperationInfo, Restore


@dataclass(frozen=True)
class HistoryEntry:
    operation: Operation
    inverse: Restore
    info: OperationInfo
    # 適用前の配置カーソル（undo で戻し、redo で同じ位置から再配置する）
    cursor: Optional[Address] = None


class History:
    """Cursor-tracked list of applied operations.

    Parameters
    ----------
    limit:
        Maximum number of undoable entries kept; the oldest are evicted.
        ``None`` keeps everything.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0):
            raise InvalidOperationArguments(f"history limit must be a positive integer, got {limit!r}")
        self._limit = limit
        self._entries: List[HistoryEntry] = []
        self._cursor = 0

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    @property
    def depth(self) -> int:
        """Number of undoable entries."""
        return self._cursor

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def push(self, entry: HistoryEntry) -> None:
        """Record a newly applied entry, discarding the redo tail."""
        del self._entries[self._cursor :]
        self._entries.append(entry)
        if self._limit is not None and len(self._entries) > self._limit:
            del self._entries[: len(self._entries) - self._limit]
        self._cursor = len(self._entries)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries)

    def peek_undo(self) -> HistoryEntry:
        if not self.can_undo():
            raise NothingToUndo()
        return self._entries[self._cursor - 1]

    def peek_redo(self) -> HistoryEntry:
        if not self.can_redo():
            raise NothingToRedo()
        return self._entries[self._cursor]

    def step_back(self) -> HistoryEntry:
        entry = self.peek_undo()
        self._cursor -= 1
        return entry

    def step_forward(self, replacement: Optional[HistoryEntry] = None) -> HistoryEntry:
        """Advance past the next redo entry, optionally replacing it.

        Redo re-runs the original operation, which yields a fresh inverse;
        ``replacement`` carries it.
        """
        entry = self.peek_redo()
        if replacement is not None:
            self._entries[self._cursor] = replacement
            entry = replacement
        self._cursor += 1
        return entry

    def undo_description(self) -> Optional[str]:
        return str(self._entries[self._cursor - 1].info) if self.can_undo() else None

    def redo_description(self) -> Optional[str]:
        return str(self._entries[self._cursor].info) if self.can_redo() else None

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = 0


__all__ = ["History", "HistoryEntry"]
