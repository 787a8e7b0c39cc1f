from __future__ import annotations

"""Consistent palette snapshots and their JSON-compatible form.

:meth:`Palette.export` captures a :class:`PaletteSnapshot` under the read
lock; :meth:`Palette.from_snapshot` rebuilds a palette from one with an empty
history. ``to_dict``/``from_dict`` convert to plain ``dict``/``list``/``str``
values suitable for ``json`` or YAML.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from .address import Address, Select
from .color_types import DEFAULT_CHANNEL_MAX, Color
from .element import ColorElement, ElementKind, Ramp, Raw, Watch, element_kind
from .errors import InvalidOperationArguments
from .interpolation import InterpolationKind

SNAPSHOT_VERSION = 1


def _color_to_data(color: Color) -> Any:
    values = color.as_tuple()
    if all(isinstance(v, int) and 0 <= v <= DEFAULT_CHANNEL_MAX for v in values):
        return color.to_hex()
    return list(values)


def _color_from_data(data: Any) -> Color:
    if isinstance(data, str):
        return Color.from_hex(data)
    if isinstance(data, (list, tuple)) and len(data) == 3:
        return Color(*data)
    raise InvalidOperationArguments(f"invalid color data: {data!r}")


def element_to_data(element: ColorElement) -> Dict[str, Any]:
    kind = element_kind(element)
    if kind is ElementKind.RAW:
        return {"kind": kind.value, "color": _color_to_data(element.color)}  # type: ignore[union-attr]
    if kind is ElementKind.RAMP:
        return {
            "kind": kind.value,
            "start": str(element.start),  # type: ignore[union-attr]
            "end": str(element.end),  # type: ignore[union-attr]
            "count": element.count,  # type: ignore[union-attr]
            "index": element.index,  # type: ignore[union-attr]
            "interpolation": element.kind.value,  # type: ignore[union-attr]
        }
    return {"kind": kind.value, "source": str(element.source)}  # type: ignore[union-attr]


def element_from_data(data: Mapping[str, Any]) -> ColorElement:
    try:
        kind = ElementKind(data["kind"])
        if kind is ElementKind.RAW:
            return Raw(_color_from_data(data["color"]))
        if kind is ElementKind.RAMP:
            return Ramp(
                Address.parse(data["start"]),
                Address.parse(data["end"]),
                int(data["count"]),
                int(data.get("index", 0)),
                InterpolationKind.from_value(data.get("interpolation", "rgb")),
            )
        return Watch(Address.parse(data["source"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidOperationArguments(f"invalid element data: {data!r}") from exc


@dataclass(frozen=True)
class PaletteSnapshot:
    """Immutable copy of a palette's elements and group names."""

    format: str
    name: str
    elements: Tuple[Tuple[Address, ColorElement], ...] = ()
    names: Mapping[Select, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.elements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "format": self.format,
            "name": self.name,
            "names": {str(group): text for group, text in self.names.items()},
            "elements": [
                {"address": str(address), **element_to_data(element)}
                for address, element in self.elements
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaletteSnapshot":
        version = data.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise InvalidOperationArguments(f"unsupported snapshot version: {version!r}")
        try:
            elements = tuple(
                (Address.parse(item["address"]), element_from_data(item))
                for item in data.get("elements", ())
            )
            names = {Select.parse(k): str(v) for k, v in dict(data.get("names") or {}).items()}
            return cls(
                format=str(data.get("format", "default")),
                name=str(data.get("name", "")),
                elements=elements,
                names=names,
            )
        except (KeyError, TypeError) as exc:
            raise InvalidOperationArguments("malformed palette snapshot") from exc


__all__ = ["PaletteSnapshot", "SNAPSHOT_VERSION", "element_from_data", "element_to_data"]
