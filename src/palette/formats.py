from __future__ import annotations

"""Palette format policies.

A :class:`FormatPolicy` is chosen when a palette is created and fixes its
address bounds, default wrap, permitted element kinds, group naming and
export constraints. Policies are read-only; the engine consults them for
validation and the renderer/snapshot code consults them for naming and
limits.

Built-in formats are registered in a :class:`common.base_registry.BaseRegistry`
under normalized keys (``"default"``, ``"small"``, ``"zpl"``).
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Mapping, Optional, Tuple

from common.base_registry import BaseRegistry

from .address import Wrap
from .color_types import DEFAULT_CHANNEL_MAX
from .element import ElementKind
from .errors import ElementKindNotAllowed, ExportLimitExceeded, UnknownFormat

logger = logging.getLogger(__name__)

ALL_KINDS: FrozenSet[ElementKind] = frozenset(ElementKind)

GroupNamer = Callable[[int], Optional[str]]
LineNamer = Callable[[int, int], Optional[str]]


def _no_page_name(page: int) -> Optional[str]:
    return None


def _no_line_name(page: int, line: int) -> Optional[str]:
    return None


@dataclass(frozen=True, eq=False)
class FormatPolicy:
    """Per-palette-type rules.

    Attributes
    ----------
    name:
        Registry key (e.g. ``"zpl"``).
    title:
        Display name used in rendered headers (e.g. ``"ZplPalette"``).
    version:
        ``(major, minor, patch)``.
    wrap:
        Default ``(columns_per_line, lines_per_page)``.
    max_pages:
        Number of addressable pages.
    page_line_counts:
        Per-page overrides of ``wrap.lines_per_page``.
    allowed_kinds:
        Element kinds this format can store.
    channel_max:
        Upper bound of the color channel domain.
    max_elements:
        Largest element count that can be exported (``None`` = unlimited).
    """

    name: str
    title: str
    version: Tuple[int, int, int] = (1, 0, 0)
    wrap: Wrap = field(default_factory=lambda: Wrap(16, 16))
    max_pages: int = 0x10000
    page_line_counts: Mapping[int, int] = field(default_factory=dict)
    allowed_kinds: FrozenSet[ElementKind] = ALL_KINDS
    channel_max: float = DEFAULT_CHANNEL_MAX
    max_elements: Optional[int] = None
    page_namer: GroupNamer = _no_page_name
    page_labeler: GroupNamer = _no_page_name
    line_labeler: LineNamer = _no_line_name

    @property
    def version_string(self) -> str:
        return ".".join(str(v) for v in self.version)

    def lines_on_page(self, page: int) -> int:
        return self.page_line_counts.get(page, self.wrap.lines_per_page)

    @property
    def capacity(self) -> int:
        """Total number of addressable slots."""
        overrides = {p: n for p, n in self.page_line_counts.items() if 0 <= p < self.max_pages}
        lines = sum(overrides.values()) + (self.max_pages - len(overrides)) * self.wrap.lines_per_page
        return lines * self.wrap.columns_per_line

    def page_name(self, page: int) -> Optional[str]:
        return self.page_namer(page)

    def page_label(self, page: int) -> Optional[str]:
        return self.page_labeler(page)

    def line_label(self, page: int, line: int) -> Optional[str]:
        return self.line_labeler(page, line)

    def allows(self, kind: ElementKind) -> bool:
        return kind in self.allowed_kinds

    def check_kind(self, kind: ElementKind) -> None:
        if not self.allows(kind):
            raise ElementKindNotAllowed(f"{self.title} does not permit {kind.value} elements")

    def check_export(self, count: int) -> None:
        if self.max_elements is not None and count > self.max_elements:
            raise ExportLimitExceeded(
                f"{self.title} can serialize at most {self.max_elements} elements, got {count}"
            )


# ---- ZPL naming -------------------------------------------------------------

_ZPL_MAIN_PAGE_LIMIT = 0
_ZPL_LEVEL_PAGE_LIMIT = 512


def _zpl_page_name(page: int) -> Optional[str]:
    return "Main" if page <= _ZPL_MAIN_PAGE_LIMIT else None


def _zpl_page_label(page: int) -> Optional[str]:
    if page <= _ZPL_LEVEL_PAGE_LIMIT:
        return f"Level {page}"
    return f"Sprite Page {page}"


def _zpl_cset_group(line: int) -> int:
    if line in (0, 4, 7, 10):
        return 2
    if line in (1, 5, 8, 11):
        return 3
    if line in (2, 6, 9, 12):
        return 4
    return 9


def _zpl_line_label(page: int, line: int) -> Optional[str]:
    if page <= _ZPL_MAIN_PAGE_LIMIT:
        return f"Main CSET {line}"
    if page <= _ZPL_LEVEL_PAGE_LIMIT:
        return f"CSET {line} ({_zpl_cset_group(line)})"
    return f"Sprite CSET {page - _ZPL_LEVEL_PAGE_LIMIT + line}"


# ---- registry ---------------------------------------------------------------

DEFAULT_FORMAT = FormatPolicy(name="default", title="DefaultPalette", version=(1, 0, 0))

SMALL_FORMAT = FormatPolicy(
    name="small",
    title="SmallPalette",
    version=(0, 1, 0),
    wrap=Wrap(16, 16),
    max_pages=8,
    allowed_kinds=frozenset({ElementKind.RAW, ElementKind.RAMP}),
    max_elements=8 * 16 * 16,
)

ZPL_FORMAT = FormatPolicy(
    name="zpl",
    title="ZplPalette",
    version=(1, 0, 0),
    wrap=Wrap(16, 16),
    max_pages=0x203,
    page_line_counts={0: 14},
    page_namer=_zpl_page_name,
    page_labeler=_zpl_page_label,
    line_labeler=_zpl_line_label,
)

_FORMATS = BaseRegistry()
for _policy in (DEFAULT_FORMAT, SMALL_FORMAT, ZPL_FORMAT):
    _FORMATS.add(_policy)


def register_format(policy: FormatPolicy, *, replace: bool = False) -> FormatPolicy:
    """Register ``policy`` under its normalized name."""
    _FORMATS.add(policy, replace=replace)
    logger.debug("registered palette format %s", policy.name)
    return policy


def get_format(name: "str | FormatPolicy") -> FormatPolicy:
    """Look up a format by name (case/camel-case insensitive)."""
    if isinstance(name, FormatPolicy):
        return name
    try:
        return _FORMATS.get(name)
    except (KeyError, TypeError, ValueError) as exc:
        raise UnknownFormat(f"unknown palette format: {name!r}") from exc


def available_formats() -> list[str]:
    return _FORMATS.list_all()


__all__ = [
    "ALL_KINDS",
    "DEFAULT_FORMAT",
    "FormatPolicy",
    "SMALL_FORMAT",
    "ZPL_FORMAT",
    "available_formats",
    "get_format",
    "register_format",
]
