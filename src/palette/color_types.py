from __future__ import annotations

"""Core color type stored in palette elements.

A :class:`Color` is an RGB triple. Channels are plain numbers; the numeric
domain (``0..channel_max``) is owned by the palette's format policy, 255 by
default.
"""

from dataclasses import dataclass
from numbers import Real
from typing import Tuple

import numpy as np

from .errors import InvalidOperationArguments

RGB = Tuple[float, float, float]

DEFAULT_CHANNEL_MAX = 255


@dataclass(frozen=True)
class Color:
    """RGB color value.

    Attributes
    ----------
    r, g, b:
        Channel values in ``[0, channel_max]``. Integers for the default
        8-bit domain; floats are accepted for other domains.
    """

    r: float
    g: float
    b: float

    def __post_init__(self) -> None:
        for name, v in (("r", self.r), ("g", self.g), ("b", self.b)):
            if isinstance(v, bool) or not isinstance(v, Real):
                raise InvalidOperationArguments(f"channel {name} must be a number, got {v!r}")
            if v < 0:
                raise InvalidOperationArguments(f"channel {name} must be non-negative")

    def as_tuple(self) -> RGB:
        return (self.r, self.g, self.b)

    def as_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=np.float64)

    def within(self, channel_max: float) -> bool:
        """Return True if every channel lies in ``[0, channel_max]``."""
        return all(0 <= v <= channel_max for v in self.as_tuple())

    def to_hex(self, channel_max: float = DEFAULT_CHANNEL_MAX) -> str:
        """Return ``#RRGGBB`` (upper case), rescaling from ``channel_max``."""
        if channel_max == DEFAULT_CHANNEL_MAX and all(isinstance(v, int) for v in self.as_tuple()):
            r, g, b = (int(v) for v in self.as_tuple())
        else:
            r, g, b = (
                int(round(max(0.0, min(1.0, float(v) / float(channel_max))) * 255))
                for v in self.as_tuple()
            )
        return f"#{r:02X}{g:02X}{b:02X}"

    @classmethod
    def from_hex(cls, hex_str: str) -> "Color":
        """Create a Color from ``#RRGGBB`` / ``0xRRGGBB`` / ``RRGGBB``."""
        s = hex_str.strip()
        if s.startswith("#"):
            s = s[1:]
        elif s.lower().startswith("0x"):
            s = s[2:]
        if len(s) != 6:
            raise InvalidOperationArguments(f"HEX string must be 6 hex digits: {hex_str!r}")
        try:
            return cls(int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
        except ValueError as exc:
            raise InvalidOperationArguments(f"invalid hex color: {hex_str!r}") from exc

    @classmethod
    def from_array(cls, values: np.ndarray, *, integral: bool = True) -> "Color":
        if integral:
            r, g, b = (int(v) for v in values[:3])
        else:
            r, g, b = (float(v) for v in values[:3])
        return cls(r, g, b)

    def __str__(self) -> str:
        return self.to_hex()


BLACK = Color(0, 0, 0)


__all__ = ["Color", "RGB", "BLACK", "DEFAULT_CHANNEL_MAX"]
