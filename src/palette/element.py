from __future__ import annotations

"""Color elements stored at palette addresses.

Elements form a closed variant: :class:`Raw` holds a literal color,
:class:`Ramp` is one step of an interpolated run between two endpoint
addresses, and :class:`Watch` mirrors the value of another address. All
dispatch over the variant lives in the helper functions below so a new kind
only touches this module, the evaluator and the format policy.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from .address import Address
from .color_types import Color
from .errors import InvalidOperationArguments
from .interpolation import InterpolationKind


class ElementKind(Enum):
    RAW = "raw"
    RAMP = "ramp"
    WATCH = "watch"


@dataclass(frozen=True)
class Raw:
    """Literal color value (order 0)."""

    color: Color


@dataclass(frozen=True)
class Ramp:
    """Step ``index`` of a ``count``-step ramp from ``start`` to ``end``.

    A ramp inserted at ``A`` occupies ``count`` consecutive addresses; each
    one stores its own ``Ramp`` naming the step it evaluates to. Steps share
    ``(start, end, count, kind)`` so they hit the same interpolation cache
    entry.
    """

    start: Address
    end: Address
    count: int
    index: int = 0
    kind: InterpolationKind = InterpolationKind.RGB

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count <= 0:
            raise InvalidOperationArguments(f"ramp count must be positive, got {self.count!r}")
        if not 0 <= self.index < self.count:
            raise InvalidOperationArguments(
                f"ramp step {self.index} outside 0..{self.count - 1}"
            )

    def step(self, index: int) -> "Ramp":
        return Ramp(self.start, self.end, self.count, index, self.kind)


@dataclass(frozen=True)
class Watch:
    """Mirror of the element at ``source`` (order 1)."""

    source: Address


ColorElement = Union[Raw, Ramp, Watch]


def element_kind(element: ColorElement) -> ElementKind:
    if isinstance(element, Raw):
        return ElementKind.RAW
    if isinstance(element, Ramp):
        return ElementKind.RAMP
    if isinstance(element, Watch):
        return ElementKind.WATCH
    raise InvalidOperationArguments(f"not a color element: {element!r}")


def dependencies(element: ColorElement) -> Tuple[Address, ...]:
    """Addresses ``element`` reads from, in declaration order (ramp: start, end)."""
    kind = element_kind(element)
    if kind is ElementKind.RAW:
        return ()
    if kind is ElementKind.RAMP:
        return (element.start, element.end)  # type: ignore[union-attr]
    return (element.source,)  # type: ignore[union-attr]


def order(element: ColorElement) -> int:
    """Number of direct dependencies declared by ``element``."""
    return len(dependencies(element))


__all__ = [
    "ColorElement",
    "ElementKind",
    "Raw",
    "Ramp",
    "Watch",
    "dependencies",
    "element_kind",
    "order",
]
