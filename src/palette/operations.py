from __future__ import annotations

"""Operation value objects.

Every mutation of a palette is described by an immutable operation. An
operation validates itself against the palette's format policy and address
space, then delegates the actual change to the element graph, which reports
the states it replaced. Those prior states are all the engine needs to build
the inverse (a :class:`Restore`).

Operations never mutate anything on failure: validation happens before the
graph is touched, and composites (:class:`Sequence`, :class:`Repeat`) roll back
their already-applied parts before re-raising.
"""

from dataclasses import dataclass, field
from typing import Any, Collection, Dict, Mapping, Optional, Tuple

from .address import Address, AddressSpace
from .color_types import BLACK, Color
from .element import ColorElement, Ramp, Raw, Watch, dependencies, element_kind
from .errors import (
    AddressOutOfRange,
    CyclicDependency,
    InternalInvariantError,
    InvalidOperationArguments,
    PaletteError,
)
from .formats import FormatPolicy
from .graph import ElementGraph, States
from .interpolation import InterpolationKind

PriorStates = Dict[Address, Optional[ColorElement]]


@dataclass(frozen=True)
class OperationInfo:
    """Short human-readable description of an operation."""

    name: str
    details: str = ""

    def __str__(self) -> str:
        return f"{self.name} {self.details}".strip()


@dataclass(frozen=True)
class Summary:
    """Outcome of a successful apply/undo/redo.

    Attributes
    ----------
    operation:
        Description of what was applied.
    touched:
        Addresses whose stored element changed.
    invalidated:
        Addresses whose evaluated color may have changed (``touched`` plus
        transitive dependents).
    """

    operation: OperationInfo
    touched: frozenset[Address]
    invalidated: frozenset[Address]


@dataclass
class OperationContext:
    """What an operation needs from the palette while it runs.

    ``cursor`` is where the scan for a free slot starts when an operation is
    given no address; auto-placement advances it past the placed addresses.
    """

    graph: ElementGraph
    space: AddressSpace
    policy: FormatPolicy
    cursor: Address = Address(0, 0, 0)

    def space_remaining(self) -> int:
        return max(self.policy.capacity - len(self.graph), 0)

    def locate(self, address: Any, reserved: Collection[Address] = ()) -> Address:
        """Normalize ``address`` or pick the first free slot after the cursor.

        ``reserved`` addresses count as occupied (placeholders not yet stored).
        """
        if address is not None:
            return self.space.normalize(address)
        if self.space_remaining() <= len(reserved):
            raise AddressOutOfRange("no free address remains in the palette")
        return self.space.first_free(
            lambda a: a in self.graph or a in reserved, start=self.cursor
        )

    def advance_cursor(self, last: Address) -> None:
        """Move the cursor to the slot after ``last`` (wrapping to ``0:0:0``)."""
        try:
            self.cursor = self.space.next_address(last)
        except AddressOutOfRange:
            self.cursor = Address(0, 0, 0)

    def check_element(self, element: ColorElement) -> None:
        self.policy.check_kind(element_kind(element))
        if isinstance(element, Raw) and not element.color.within(self.policy.channel_max):
            raise InvalidOperationArguments(
                f"color {element.color.as_tuple()} outside 0..{self.policy.channel_max}"
            )
        for dep in dependencies(element):
            self.space.normalize(dep)


class Operation:
    """Base class; subclasses are frozen dataclasses."""

    def info(self) -> OperationInfo:
        return OperationInfo(type(self).__name__)

    def execute(self, ctx: OperationContext) -> PriorStates:
        """Apply to ``ctx`` and return the prior states of every changed address."""
        raise NotImplementedError


def _sources(
    ctx: OperationContext, addresses: Tuple[Address, ...], make_sources: bool
) -> Dict[Address, ColorElement]:
    """Placeholder elements for missing source addresses (when requested)."""
    if not make_sources:
        return {}
    return {a: Raw(BLACK) for a in addresses if a not in ctx.graph}


@dataclass(frozen=True)
class InsertColor(Operation):
    color: Color
    address: Optional[Address] = None
    overwrite: bool = False

    def info(self) -> OperationInfo:
        where = "next free" if self.address is None else str(self.address)
        return OperationInfo("Insert Color", f"{self.color} at {where}")

    def execute(self, ctx: OperationContext) -> PriorStates:
        if not isinstance(self.color, Color):
            raise InvalidOperationArguments(f"not a color: {self.color!r}")
        target = ctx.locate(self.address)
        element = Raw(self.color)
        ctx.check_element(element)
        prior = ctx.graph.insert_many([(target, element)], self.overwrite)
        if self.address is None:
            ctx.advance_cursor(target)
        return prior


@dataclass(frozen=True)
class InsertRamp(Operation):
    """Interpolate ``count`` colors between ``start`` and ``end``.

    The steps occupy ``count`` consecutive addresses from ``address`` (or
    from the first free address after the placement cursor), advancing under
    the format's wrap.
    """

    start: Address
    end: Address
    count: int
    address: Optional[Address] = None
    overwrite: bool = False
    kind: InterpolationKind = InterpolationKind.RGB
    make_sources: bool = False

    def info(self) -> OperationInfo:
        where = "next free" if self.address is None else str(self.address)
        return OperationInfo(
            "Insert Ramp", f"{self.count} steps {self.start}..{self.end} at {where}"
        )

    def execute(self, ctx: OperationContext) -> PriorStates:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count <= 0:
            raise InvalidOperationArguments(f"ramp count must be positive, got {self.count!r}")
        kind = InterpolationKind.from_value(self.kind)
        start = ctx.space.normalize(self.start)
        end = ctx.space.normalize(self.end)
        sources = _sources(ctx, (start, end), self.make_sources)
        base = ctx.locate(self.address, sources)
        targets = list(ctx.space.iter_from(base, self.count))
        for endpoint in (start, end):
            if endpoint in targets:
                raise CyclicDependency(
                    f"ramp at {base} would overwrite its own endpoint {endpoint}", address=endpoint
                )

        template = Ramp(start, end, self.count, 0, kind)
        ctx.check_element(template)
        items = list(sources.items())
        items.extend((t, template.step(i)) for i, t in enumerate(targets))
        prior = ctx.graph.insert_many(items, self.overwrite)
        if self.address is None:
            ctx.advance_cursor(targets[-1])
        return prior


@dataclass(frozen=True)
class InsertWatcher(Operation):
    """Place an element that mirrors ``source``."""

    source: Address
    address: Optional[Address] = None
    overwrite: bool = False
    make_sources: bool = False

    def info(self) -> OperationInfo:
        where = "next free" if self.address is None else str(self.address)
        return OperationInfo("Insert Watcher", f"{self.source} at {where}")

    def execute(self, ctx: OperationContext) -> PriorStates:
        source = ctx.space.normalize(self.source)
        element = Watch(source)
        ctx.check_element(element)
        sources = _sources(ctx, (source,), self.make_sources)
        items = list(sources.items())
        target = ctx.locate(self.address, sources)
        items.append((target, element))
        prior = ctx.graph.insert_many(items, self.overwrite)
        if self.address is None:
            ctx.advance_cursor(target)
        return prior


@dataclass(frozen=True)
class Remove(Operation):
    """Remove the element at ``address``; ``force`` cascades to dependents."""

    address: Address
    force: bool = False

    def info(self) -> OperationInfo:
        return OperationInfo("Remove", f"{self.address}{' (forced)' if self.force else ''}")

    def execute(self, ctx: OperationContext) -> PriorStates:
        return ctx.graph.remove(ctx.space.normalize(self.address), self.force)


@dataclass(frozen=True)
class Restore(Operation):
    """Put each address back into the given state (``None`` = empty).

    This is the inverse form the engine records in history; it is also how
    snapshots are loaded into a fresh palette. It replaces occupied addresses
    without an overwrite check, so :meth:`Palette.apply` and :class:`Sequence`
    do not accept it.
    """

    states: Mapping[Address, Optional[ColorElement]] = field(default_factory=dict)

    def info(self) -> OperationInfo:
        return OperationInfo("Restore", f"{len(self.states)} address(es)")

    def execute(self, ctx: OperationContext) -> PriorStates:
        checked: Dict[Address, Optional[ColorElement]] = {}
        for address, element in self.states.items():
            target = ctx.space.normalize(address)
            if element is not None:
                ctx.check_element(element)
            checked[target] = element
        return ctx.graph.restore(checked)


def _merge_priors(priors: list[PriorStates]) -> PriorStates:
    merged: PriorStates = {}
    for prior in priors:
        for address, element in prior.items():
            merged.setdefault(address, element)
    return merged


def _rollback(ctx: OperationContext, priors: list[PriorStates]) -> None:
    for prior in reversed(priors):
        try:
            ctx.graph.restore(prior)
        except PaletteError as exc:
            raise InternalInvariantError("rollback of a partially applied composite failed") from exc


@dataclass(frozen=True)
class Sequence(Operation):
    """Apply several operations as one all-or-nothing step."""

    operations: Tuple[Operation, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "operations", tuple(self.operations))
        if any(isinstance(op, Restore) for op in self.operations):
            raise InvalidOperationArguments("Restore is reserved for undo and snapshot import")

    def info(self) -> OperationInfo:
        inner = ", ".join(op.info().name for op in self.operations)
        return OperationInfo("Sequence", f"[{inner}]")

    def execute(self, ctx: OperationContext) -> PriorStates:
        priors: list[PriorStates] = []
        try:
            for op in self.operations:
                priors.append(op.execute(ctx))
        except PaletteError:
            _rollback(ctx, priors)
            raise
        return _merge_priors(priors)


@dataclass(frozen=True)
class Repeat(Operation):
    """Apply ``operation`` ``count`` times as one step."""

    operation: Operation
    count: int

    def info(self) -> OperationInfo:
        return OperationInfo("Repeat", f"{self.operation.info()} x{self.count}")

    def execute(self, ctx: OperationContext) -> PriorStates:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count <= 0:
            raise InvalidOperationArguments(f"repeat count must be positive, got {self.count!r}")
        return Sequence((self.operation,) * self.count).execute(ctx)


def inverse_of(prior: States) -> Restore:
    return Restore(dict(prior))


__all__ = [
    "InsertColor",
    "InsertRamp",
    "InsertWatcher",
    "Operation",
    "OperationContext",
    "OperationInfo",
    "PriorStates",
    "Remove",
    "Repeat",
    "Restore",
    "Sequence",
    "Summary",
    "inverse_of",
]
