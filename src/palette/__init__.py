"""Public entrypoint for the structured palette engine.

This module re-exports the main user-facing types so that applications can
simply import from ``palette`` instead of individual submodules.
"""

from .address import Address, AddressSpace, Select, Wrap, wrap
from .color_types import Color
from .commands import CommandQueue
from .element import ElementKind, Ramp, Raw, Watch, order
from .errors import (
    AddressOccupied,
    AddressOutOfRange,
    CyclicDependency,
    DependentsExist,
    ElementKindNotAllowed,
    EmptyAddress,
    ExportLimitExceeded,
    InternalInvariantError,
    InvalidOperationArguments,
    NothingToRedo,
    NothingToUndo,
    PaletteError,
    UnknownFormat,
    UnresolvedDependency,
)
from .formats import FormatPolicy, available_formats, get_format, register_format
from .interpolation import InterpolationKind, interpolate
from .operations import (
    InsertColor,
    InsertRamp,
    InsertWatcher,
    Operation,
    OperationInfo,
    Remove,
    Repeat,
    Sequence,
    Summary,
)
from .palette import Palette, PaletteDescription
from .snapshot import PaletteSnapshot

__all__ = [
    "Address",
    "AddressSpace",
    "Select",
    "Wrap",
    "wrap",
    "Color",
    "CommandQueue",
    "ElementKind",
    "Raw",
    "Ramp",
    "Watch",
    "order",
    "FormatPolicy",
    "available_formats",
    "get_format",
    "register_format",
    "InterpolationKind",
    "interpolate",
    "InsertColor",
    "InsertRamp",
    "InsertWatcher",
    "Operation",
    "OperationInfo",
    "Remove",
    "Repeat",
    "Sequence",
    "Summary",
    "Palette",
    "PaletteDescription",
    "PaletteSnapshot",
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
