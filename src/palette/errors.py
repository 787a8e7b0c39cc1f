from __future__ import annotations

"""Error types raised by palette operations.

Every :class:`PaletteError` is recoverable: the operation that raised it left
the palette exactly as it was before the call. :class:`InternalInvariantError`
signals a defect in the engine itself and is deliberately *not* a
``PaletteError`` so that callers handling user-facing errors never swallow it.
"""

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .address import Address


class PaletteError(Exception):
    """Base class for recoverable palette errors."""

    default_message = "palette operation failed"

    def __init__(self, message: Optional[str] = None, *, address: "Address | None" = None) -> None:
        self.address = address
        if message is None:
            message = self.default_message
            if address is not None:
                message = f"{message}: {address}"
        super().__init__(message)


class AddressOccupied(PaletteError):
    default_message = "address is occupied and overwrite was not requested"


class AddressOutOfRange(PaletteError):
    default_message = "address lies outside the range allowed for the palette"


class CyclicDependency(PaletteError):
    default_message = "operation would introduce a dependency cycle"


class UnresolvedDependency(PaletteError):
    default_message = "referenced address holds no element"


class DependentsExist(PaletteError):
    """Raised when removing an element other elements still read from."""

    default_message = "element has dependents"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        address: "Address | None" = None,
        dependents: Iterable["Address"] = (),
    ) -> None:
        self.dependents = tuple(sorted(dependents))
        if message is None and address is not None and self.dependents:
            listed = ", ".join(str(a) for a in self.dependents)
            message = f"{self.default_message}: {address} is read by {listed}"
        super().__init__(message, address=address)


class InvalidOperationArguments(PaletteError):
    default_message = "invalid operation arguments"


class NothingToUndo(PaletteError):
    default_message = "history has nothing to undo"


class NothingToRedo(PaletteError):
    default_message = "history has nothing to redo"


class EmptyAddress(PaletteError):
    default_message = "no element stored at address"


class ElementKindNotAllowed(PaletteError):
    default_message = "element kind is not permitted by the palette format"


class ExportLimitExceeded(PaletteError):
    default_message = "palette exceeds the element count its format can serialize"


class UnknownFormat(PaletteError):
    default_message = "palette format is not registered"


class InternalInvariantError(AssertionError):
    """Engine contract breach (e.g. cache entry for a removed address)."""


__all__ = [
    "PaletteError",
    "AddressOccupied",
    "AddressOutOfRange",
    "CyclicDependency",
    "UnresolvedDependency",
    "DependentsExist",
    "InvalidOperationArguments",
    "NothingToUndo",
    "NothingToRedo",
    "EmptyAddress",
    "ElementKindNotAllowed",
    "ExportLimitExceeded",
    "UnknownFormat",
    "InternalInvariantError",
]
