from __future__ import annotations

"""The palette aggregate.

A :class:`Palette` owns an element graph, an evaluator, a history and the
format policy chosen at creation time. All mutation goes through
:meth:`Palette.apply`, :meth:`Palette.undo` and :meth:`Palette.redo`, each of
which runs validate → mutate → invalidate → record under the write side of a
reader/writer lock. Reads (values, queries, description, rendering) take the
read side and may run concurrently with each other.

Listeners registered with :meth:`Palette.subscribe` are notified with the
summary of each successful mutation after the lock has been released.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from common.rwlock import ReadWriteLock
from common.settings import get as _get_settings

from .address import Address, AddressLike, AddressSpace, PatternLike, Select, Wrap, as_select
from .color_types import Color
from .element import ColorElement, order
from .errors import EmptyAddress, InvalidOperationArguments
from .evaluator import Evaluator
from .formats import FormatPolicy, get_format
from .graph import ElementGraph
from .history import History, HistoryEntry
from .operations import Operation, OperationContext, OperationInfo, Restore, Summary, inverse_of
from .render import render_palette
from .snapshot import PaletteSnapshot

logger = logging.getLogger(__name__)

Listener = Callable[[Summary], None]

_UNSET = object()


@dataclass(frozen=True)
class PaletteDescription:
    """Metadata snapshot returned by :meth:`Palette.describe`.

    ``line_count`` counts occupied lines; ``column_count`` is the widest
    occupied column span (highest occupied column + 1).
    """

    name: str
    format: str
    title: str
    version: Tuple[int, int, int]
    history_depth: int
    element_count: int
    page_count: int
    line_count: int
    column_count: int
    wrap: Wrap
    cursor: Address = Address(0, 0, 0)
    space_remaining: int = 0


class PaletteQuery:
    """Restartable, lazy view of ``(Address, Color, order)`` rows.

    Each iteration takes a fresh snapshot of matching addresses and evaluates
    colors one row at a time; rows removed in between are skipped.
    """

    def __init__(self, palette: "Palette", pattern: Select) -> None:
        self._palette = palette
        self._pattern = pattern

    @property
    def pattern(self) -> Select:
        return self._pattern

    def __iter__(self) -> Iterator[Tuple[Address, Color, int]]:
        palette = self._palette
        with palette._lock.read():
            addresses = [a for a in palette._graph.addresses() if self._pattern.contains(a)]
        for address in addresses:
            with palette._lock.read():
                element = palette._graph.get(address)
                if element is None:
                    continue
                row = (address, palette._evaluator.value_of(address), order(element))
            yield row


class Palette:
    """Structured color palette.

    Parameters
    ----------
    name:
        Palette name shown by the renderer.
    format:
        Format name or :class:`FormatPolicy`; defaults to the configured
        ``DEFAULT_FORMAT``.
    history_limit:
        Maximum undo depth (``0`` or ``None`` = unbounded); defaults to the
        configured ``HISTORY_LIMIT``.
    cursor:
        Where auto-placement starts scanning for a free slot (``0:0:0``).
    """

    def __init__(
        self,
        name: str = "",
        format: "str | FormatPolicy | None" = None,
        *,
        history_limit: "int | None | object" = _UNSET,
        cursor: Optional[AddressLike] = None,
    ) -> None:
        settings = _get_settings()
        self._policy = get_format(format if format is not None else settings.DEFAULT_FORMAT)
        limit = settings.HISTORY_LIMIT if history_limit is _UNSET else history_limit
        if isinstance(limit, int) and not isinstance(limit, bool) and limit == 0:
            limit = None
        self._name = name
        self._graph = ElementGraph()
        self._space = AddressSpace(self._policy)
        self._evaluator = Evaluator(self._graph, channel_max=self._policy.channel_max)
        self._history = History(limit)  # type: ignore[arg-type]
        self._lock = ReadWriteLock()
        self._ctx = OperationContext(self._graph, self._space, self._policy)
        if cursor is not None:
            self._ctx.cursor = self._space.normalize(cursor)
        self._names: Dict[Select, str] = {}
        self._listeners: List[Listener] = []
        self._listeners_lock = threading.Lock()
        logger.info("palette created: %r (%s %s)", name, self._policy.title, self._policy.version_string)

    # ---- properties -----------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def policy(self) -> FormatPolicy:
        return self._policy

    @property
    def space(self) -> AddressSpace:
        return self._space

    @property
    def history(self) -> History:
        return self._history

    @property
    def cursor(self) -> Address:
        """Address the next auto-placed element is searched from."""
        with self._lock.read():
            return self._ctx.cursor

    @cursor.setter
    def cursor(self, address: AddressLike) -> None:
        with self._lock.write():
            self._ctx.cursor = self._space.normalize(address)

    def space_remaining(self) -> int:
        """Number of empty slots left in the format's address space."""
        with self._lock.read():
            return self._ctx.space_remaining()

    # ---- mutation -------------------------------------------------------------
    def apply(self, operation: Operation) -> Summary:
        """Apply ``operation`` and record it for undo.

        Raises a :class:`~palette.errors.PaletteError` subclass on failure, in
        which case neither the elements nor the history changed.
        """
        if isinstance(operation, Restore):
            raise InvalidOperationArguments("Restore is reserved for undo and snapshot import")
        return self._apply(operation, record=True)

    def _apply(self, operation: Operation, *, record: bool) -> Summary:
        if not isinstance(operation, Operation):
            raise InvalidOperationArguments(f"not an operation: {operation!r}")
        with self._lock.write():
            cursor = self._ctx.cursor
            prior = self._execute(operation, cursor)
            info = operation.info()
            summary = self._settle(info, prior)
            if record:
                self._history.push(HistoryEntry(operation, inverse_of(prior), info, cursor))
        logger.debug(
            "apply %s: %d touched, %d invalidated",
            info,
            len(summary.touched),
            len(summary.invalidated),
        )
        self._notify(summary)
        return summary

    def undo(self) -> Summary:
        """Revert the most recent operation (raises ``NothingToUndo``)."""
        with self._lock.write():
            entry = self._history.peek_undo()
            prior = entry.inverse.execute(self._ctx)
            self._history.step_back()
            if entry.cursor is not None:
                self._ctx.cursor = entry.cursor
            summary = self._settle(OperationInfo("Undo", str(entry.info)), prior)
        logger.debug("undo %s: %d invalidated", entry.info, len(summary.invalidated))
        self._notify(summary)
        return summary

    def redo(self) -> Summary:
        """Re-apply the most recently undone operation (raises ``NothingToRedo``)."""
        with self._lock.write():
            entry = self._history.peek_redo()
            cursor = entry.cursor if entry.cursor is not None else self._ctx.cursor
            prior = self._execute(entry.operation, cursor)
            self._history.step_forward(
                HistoryEntry(entry.operation, inverse_of(prior), entry.info, cursor)
            )
            summary = self._settle(OperationInfo("Redo", str(entry.info)), prior)
        logger.debug("redo %s: %d invalidated", entry.info, len(summary.invalidated))
        self._notify(summary)
        return summary

    def _execute(
        self, operation: Operation, cursor: Address
    ) -> Dict[Address, Optional[ColorElement]]:
        # 失敗時は配置カーソルも元に戻す
        before = self._ctx.cursor
        self._ctx.cursor = cursor
        try:
            return operation.execute(self._ctx)
        except Exception:
            self._ctx.cursor = before
            raise

    def _settle(self, info: OperationInfo, prior: Dict[Address, Optional[ColorElement]]) -> Summary:
        touched = frozenset(prior)
        invalidated = frozenset(self._evaluator.invalidate(touched))
        return Summary(info, touched, invalidated)

    def can_undo(self) -> bool:
        with self._lock.read():
            return self._history.can_undo()

    def can_redo(self) -> bool:
        with self._lock.read():
            return self._history.can_redo()

    # ---- notification ---------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, summary: Summary) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(summary)

    # ---- reads ----------------------------------------------------------------
    def value_of(self, address: AddressLike) -> Color:
        with self._lock.read():
            return self._evaluator.value_of(self._space.normalize(address))

    def element_at(self, address: AddressLike) -> Optional[ColorElement]:
        with self._lock.read():
            return self._graph.get(self._space.normalize(address))

    def order_of(self, address: AddressLike) -> int:
        with self._lock.read():
            target = self._space.normalize(address)
            element = self._graph.get(target)
            if element is None:
                raise EmptyAddress(address=target)
            return order(element)

    def dependents_of(self, address: AddressLike) -> frozenset[Address]:
        with self._lock.read():
            return self._graph.dependents_of(self._space.normalize(address))

    def dependencies_of(self, address: AddressLike) -> Tuple[Address, ...]:
        with self._lock.read():
            return self._graph.dependencies_of(self._space.normalize(address))

    def query(self, pattern: PatternLike = None) -> PaletteQuery:
        """Rows matching ``pattern`` ordered by page, line, column."""
        return PaletteQuery(self, as_select(pattern))

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._graph)

    def __contains__(self, address: object) -> bool:
        with self._lock.read():
            return address in self._graph

    def addresses(self) -> List[Address]:
        with self._lock.read():
            return self._graph.addresses()

    def is_acyclic(self) -> bool:
        with self._lock.read():
            return self._graph.is_acyclic()

    # ---- group names ----------------------------------------------------------
    def set_name(self, group: PatternLike, name: Optional[str]) -> None:
        """Override the display name of a page or line group (``None`` clears it)."""
        select = as_select(group)
        with self._lock.write():
            if name is None:
                self._names.pop(select, None)
            else:
                self._names[select] = name

    def name_of(self, group: PatternLike) -> Optional[str]:
        """User-set name, else the format's default name for the group."""
        select = as_select(group)
        with self._lock.read():
            custom = self._names.get(select)
        if custom is not None:
            return custom
        if select.page is not None and select.line is None:
            return self._policy.page_name(select.page)
        return None

    def label_of(self, group: PatternLike) -> Optional[str]:
        """Format-defined label for a page or line group."""
        select = as_select(group)
        if select.page is None:
            return None
        if select.line is None:
            return self._policy.page_label(select.page)
        if select.column is None:
            return self._policy.line_label(select.page, select.line)
        return None

    def group_names(self) -> Dict[Select, str]:
        with self._lock.read():
            return dict(self._names)

    # ---- description / output -------------------------------------------------
    def describe(self) -> PaletteDescription:
        with self._lock.read():
            addresses = self._graph.addresses()
            depth = self._history.depth
            cursor = self._ctx.cursor
            remaining = self._ctx.space_remaining()
        return PaletteDescription(
            name=self._name,
            format=self._policy.name,
            title=self._policy.title,
            version=self._policy.version,
            history_depth=depth,
            element_count=len(addresses),
            page_count=len({a.page for a in addresses}),
            line_count=len({(a.page, a.line) for a in addresses}),
            column_count=max((a.column for a in addresses), default=-1) + 1,
            wrap=self._policy.wrap,
            cursor=cursor,
            space_remaining=remaining,
        )

    def render(self) -> str:
        return render_palette(self)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Palette(name={self._name!r}, format={self._policy.name!r}, elements={len(self)})"

    # ---- snapshots ------------------------------------------------------------
    def export(self) -> PaletteSnapshot:
        """Consistent snapshot of the elements (checked against the format's limits)."""
        with self._lock.read():
            elements = tuple(self._graph.items())
            names = dict(self._names)
        self._policy.check_export(len(elements))
        return PaletteSnapshot(
            format=self._policy.name, name=self._name, elements=elements, names=names
        )

    @classmethod
    def from_snapshot(
        cls, snapshot: PaletteSnapshot, *, history_limit: "int | None | object" = _UNSET
    ) -> "Palette":
        """Rebuild a palette from ``snapshot`` with an empty history."""
        palette = cls(snapshot.name, snapshot.format, history_limit=history_limit)
        palette._policy.check_export(len(snapshot.elements))
        if snapshot.elements:
            palette._apply(Restore(dict(snapshot.elements)), record=False)
        for group, group_name in snapshot.names.items():
            palette.set_name(group, group_name)
        logger.info("palette imported: %r (%d elements)", snapshot.name, len(snapshot.elements))
        return palette


__all__ = ["Palette", "PaletteDescription", "PaletteQuery", "Listener"]
