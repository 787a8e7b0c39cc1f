from __future__ import annotations

"""Page:Line:Column addressing for structured palettes.

This module defines :class:`Address` (a concrete slot), :class:`Select`
(a wildcard pattern used by queries), :class:`Wrap` (columns-per-line and
lines-per-page) and :class:`AddressSpace`, which validates addresses and
advances them under the wrap rules of a palette format.

Wrap rule: incrementing past ``columns_per_line - 1`` rolls the column to 0
and increments the line; incrementing past the page's last line rolls the line
to 0 and increments the page.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Tuple, Union

from .errors import AddressOutOfRange, InvalidOperationArguments

if TYPE_CHECKING:  # pragma: no cover
    from .formats import FormatPolicy


def _check_component(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise AddressOutOfRange(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise AddressOutOfRange(f"{name} must be non-negative, got {value}")
    return value


@dataclass(frozen=True, order=True)
class Address:
    """Immutable ``(page, line, column)`` triple ordered page-major."""

    page: int
    line: int
    column: int

    def __post_init__(self) -> None:
        _check_component("page", self.page)
        _check_component("line", self.line)
        _check_component("column", self.column)

    def __str__(self) -> str:
        return f"{self.page}:{self.line}:{self.column}"

    def label(self) -> str:
        """Zero-padded ``PP:LL:CC`` form used by the text renderer."""
        return f"{self.page:02d}:{self.line:02d}:{self.column:02d}"

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.page, self.line, self.column)

    def page_group(self) -> "Select":
        return Select.page_of(self.page)

    def line_group(self) -> "Select":
        return Select.line_of(self.page, self.line)

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Parse ``"P:L:C"`` (decimal, optional zero padding).

        Negative components are rejected with :class:`AddressOutOfRange`.
        """
        parts = text.strip().split(":")
        if len(parts) != 3 or not all(re.fullmatch(r"-?\d+", p) for p in parts):
            raise InvalidOperationArguments(f"invalid address literal: {text!r}")
        page, line, column = (int(p) for p in parts)
        return cls(page, line, column)


AddressLike = Union[Address, Tuple[int, int, int], str]


def as_address(value: AddressLike) -> Address:
    """Coerce an address literal, tuple or :class:`Address`."""
    if isinstance(value, Address):
        return value
    if isinstance(value, str):
        return Address.parse(value)
    if isinstance(value, tuple) and len(value) == 3:
        return Address(*value)
    raise InvalidOperationArguments(f"not an address: {value!r}")


@dataclass(frozen=True)
class Wrap:
    """Wrap configuration ``(columns_per_line, lines_per_page)``."""

    columns_per_line: int
    lines_per_page: int

    def __post_init__(self) -> None:
        for name in ("columns_per_line", "lines_per_page"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidOperationArguments(f"{name} must be a positive integer")

    def __str__(self) -> str:
        return f"{self.columns_per_line}:{self.lines_per_page}"


def wrap(base: Address, index: int, wrap_config: Wrap) -> Address:
    """Return the address ``index`` steps after ``base`` under ``wrap_config``.

    Pure arithmetic; the page component is unbounded here; range checks are
    the caller's concern (see :meth:`AddressSpace.wrap`).
    """
    if index < 0:
        raise InvalidOperationArguments("wrap index must be non-negative")
    cols = wrap_config.columns_per_line
    lines = wrap_config.lines_per_page
    flat = base.line * cols + base.column + index
    line_total, column = divmod(flat, cols)
    page_offset, line = divmod(line_total, lines)
    return Address(base.page + page_offset, line, column)


@dataclass(frozen=True)
class Select:
    """Wildcard address pattern.

    ``None`` components are wildcards. Wildcards only extend to the right:
    a concrete column requires a concrete line and page.
    """

    page: Optional[int] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def __post_init__(self) -> None:
        if self.column is not None and self.line is None:
            raise InvalidOperationArguments("a column pattern requires a line")
        if self.line is not None and self.page is None:
            raise InvalidOperationArguments("a line pattern requires a page")
        for name in ("page", "line", "column"):
            value = getattr(self, name)
            if value is not None:
                _check_component(name, value)

    @classmethod
    def all(cls) -> "Select":
        return cls()

    @classmethod
    def page_of(cls, page: int) -> "Select":
        return cls(page=page)

    @classmethod
    def line_of(cls, page: int, line: int) -> "Select":
        return cls(page=page, line=line)

    @classmethod
    def address(cls, address: Address) -> "Select":
        return cls(address.page, address.line, address.column)

    @property
    def is_address(self) -> bool:
        return self.column is not None

    def contains(self, address: Address) -> bool:
        return (
            (self.page is None or address.page == self.page)
            and (self.line is None or address.line == self.line)
            and (self.column is None or address.column == self.column)
        )

    def base_address(self) -> Address:
        """First address located within the selection."""
        return Address(self.page or 0, self.line or 0, self.column or 0)

    def __str__(self) -> str:
        parts = ["*" if v is None else str(v) for v in (self.page, self.line, self.column)]
        return ":".join(parts)

    @classmethod
    def parse(cls, text: str) -> "Select":
        """Parse ``"0:*:*"`` style patterns (``"*"`` alone selects everything)."""
        t = text.strip()
        if t == "*":
            return cls()
        parts = t.split(":")
        if len(parts) != 3:
            raise InvalidOperationArguments(f"invalid address pattern: {text!r}")
        values: list[Optional[int]] = []
        for p in parts:
            if p == "*":
                values.append(None)
            elif re.fullmatch(r"-?\d+", p):
                values.append(int(p))
            else:
                raise InvalidOperationArguments(f"invalid address pattern: {text!r}")
        return cls(*values)


PatternLike = Union[Select, Address, str, None]


def as_select(value: PatternLike) -> Select:
    if value is None:
        return Select.all()
    if isinstance(value, Select):
        return value
    if isinstance(value, Address):
        return Select.address(value)
    if isinstance(value, str):
        return Select.parse(value)
    raise InvalidOperationArguments(f"not an address pattern: {value!r}")


class AddressSpace:
    """Validates and advances addresses under a :class:`FormatPolicy`."""

    def __init__(self, policy: "FormatPolicy") -> None:
        self._policy = policy

    @property
    def policy(self) -> "FormatPolicy":
        return self._policy

    def normalize(self, value: object) -> Address:
        """Return a validated :class:`Address` or raise :class:`AddressOutOfRange`.

        Accepts an :class:`Address`, a ``(page, line, column)`` tuple or a
        ``"P:L:C"`` literal. Patterns are rejected: they are never mutation
        targets.
        """
        if isinstance(value, Select):
            if not value.is_address:
                raise AddressOutOfRange(f"wildcard pattern {value} is not a concrete address")
            value = value.base_address()
        if isinstance(value, Address):
            address = value
        elif isinstance(value, str):
            address = Address.parse(value)
        elif isinstance(value, (tuple, list)) and len(value) == 3:
            address = Address(*value)
        else:
            raise AddressOutOfRange(f"not an address: {value!r}")

        policy = self._policy
        if address.page >= policy.max_pages:
            raise AddressOutOfRange(
                f"page {address.page} exceeds {policy.max_pages} pages", address=address
            )
        if address.line >= policy.lines_on_page(address.page):
            raise AddressOutOfRange(
                f"line {address.line} exceeds {policy.lines_on_page(address.page)} lines "
                f"on page {address.page}",
                address=address,
            )
        if address.column >= policy.wrap.columns_per_line:
            raise AddressOutOfRange(
                f"column {address.column} exceeds {policy.wrap.columns_per_line} columns",
                address=address,
            )
        return address

    def contains(self, address: Address) -> bool:
        try:
            self.normalize(address)
        except AddressOutOfRange:
            return False
        return True

    def wrap(self, base: Address, index: int) -> Address:
        """Address ``index`` steps after ``base`` honoring per-page line counts."""
        base = self.normalize(base)
        policy = self._policy
        if not policy.page_line_counts:
            out = wrap(base, index, policy.wrap)
        else:
            if index < 0:
                raise InvalidOperationArguments("wrap index must be non-negative")
            cols = policy.wrap.columns_per_line
            flat = base.line * cols + base.column + index
            page = base.page
            while flat >= policy.lines_on_page(page) * cols:
                flat -= policy.lines_on_page(page) * cols
                page += 1
                if page >= policy.max_pages:
                    break
            line, column = divmod(flat, cols)
            out = Address(page, line, column)
        if out.page >= policy.max_pages:
            raise AddressOutOfRange(
                f"advancing {index} from {base} runs past the last page", address=base
            )
        return out

    def next_address(self, address: Address) -> Address:
        return self.wrap(address, 1)

    def iter_from(self, base: Address, count: int) -> Iterator[Address]:
        """Yield ``count`` consecutive addresses starting at ``base``."""
        current = self.normalize(base)
        for i in range(count):
            if i:
                current = self.next_address(current)
            yield current

    def first_free(
        self,
        is_occupied: Callable[[Address], bool],
        start: Optional[Address] = None,
    ) -> Address:
        """Return the first empty address at or after ``start``.

        The scan wraps from the last page back to ``0:0:0`` and fails with
        :class:`AddressOutOfRange` once it returns to ``start``.
        """
        origin = self.normalize(start if start is not None else Address(0, 0, 0))
        current = origin
        while is_occupied(current):
            try:
                current = self.next_address(current)
            except AddressOutOfRange:
                current = Address(0, 0, 0)
            if current == origin:
                raise AddressOutOfRange("no free address remains in the palette")
        return current


__all__ = [
    "Address",
    "AddressLike",
    "AddressSpace",
    "PatternLike",
    "Select",
    "Wrap",
    "as_address",
    "as_select",
    "wrap",
]
