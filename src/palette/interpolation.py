"""
どこで: `palette.interpolation`
何を: ランプ要素の色列（2 端点間の補間）を numpy でまとめて計算し、LRU で再利用する。
なぜ: 同じ端点/段数のランプは複数アドレスから参照されるため、1 回の計算で全段を得て共有するため。

補間規約:
- 段 i（0 始まり）の比率は `(i + 1) / (count + 1)`。端点そのものは列に含めない。
- `RGB`（既定）: チャネル空間で線形補間。整数ドメインでは比率と積を単精度（float32）で求めて切り捨て（小さい側の端点から数える）。
- `LINEAR_LIGHT`: sRGB をリニア化して補間し、再エンコード後に四捨五入。
- `OKLAB`: OKLab 空間で補間し、sRGB へ戻して [0, 1] にクリップ後、四捨五入。
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from enum import Enum
from typing import Tuple

import numpy as np

from common.settings import get as _get_settings

from .color_types import DEFAULT_CHANNEL_MAX, Color
from .errors import InvalidOperationArguments


class InterpolationKind(Enum):
    """Color space used to interpolate ramp steps."""

    RGB = "rgb"
    LINEAR_LIGHT = "linear_light"
    OKLAB = "oklab"

    @classmethod
    def from_value(cls, value: "InterpolationKind | str") -> "InterpolationKind":
        if isinstance(value, cls):
            return value
        for kind in cls:
            if kind.value == str(value).strip().lower():
                return kind
        raise InvalidOperationArguments(f"unknown interpolation kind: {value!r}")


# ---- sRGB / OKLab 変換（配列一括） ------------------------------------------


def _srgb_to_linear(c: np.ndarray) -> np.ndarray:
    return np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)


def _linear_to_srgb(c: np.ndarray) -> np.ndarray:
    c = np.clip(c, 0.0, 1.0)
    return np.where(c <= 0.0031308, 12.92 * c, 1.055 * np.power(c, 1 / 2.4) - 0.055)


_RGB_TO_LMS = np.array(
    [
        [0.4122214708, 0.5363325363, 0.0514459929],
        [0.2119034982, 0.6806995451, 0.1073969566],
        [0.0883024619, 0.2817188376, 0.6299787005],
    ]
)
_LMS_TO_OKLAB = np.array(
    [
        [0.2104542553, 0.7936177850, -0.0040720468],
        [1.9779984951, -2.4285922050, 0.4505937099],
        [0.0259040371, 0.7827717662, -0.8086757660],
    ]
)
_OKLAB_TO_LMS = np.array(
    [
        [1.0, 0.3963377774, 0.2158037573],
        [1.0, -0.1055613458, -0.0638541728],
        [1.0, -0.0894841775, -1.2914855480],
    ]
)
_LMS_TO_RGB = np.array(
    [
        [4.0767416621, -3.3077115913, 0.2309699292],
        [-1.2684380046, 2.6097574011, -0.3413193965],
        [-0.0041960863, -0.7034186147, 1.7076147010],
    ]
)


def srgb_to_oklab(rgb: np.ndarray) -> np.ndarray:
    """(N, 3) の sRGB [0, 1] を OKLab へ変換する。"""
    lms = _srgb_to_linear(rgb) @ _RGB_TO_LMS.T
    return np.cbrt(lms) @ _LMS_TO_OKLAB.T


def oklab_to_srgb(lab: np.ndarray) -> np.ndarray:
    """(N, 3) の OKLab を sRGB [0, 1]（クリップ済み）へ変換する。"""
    lms = (lab @ _OKLAB_TO_LMS.T) ** 3
    return _linear_to_srgb(lms @ _LMS_TO_RGB.T)


# ---- 補間本体 -----------------------------------------------------------------


def ramp_fractions(count: int) -> np.ndarray:
    """段ごとの補間比率 `(i + 1) / (count + 1)` を返す。"""
    return np.arange(1, count + 1, dtype=np.float64) / float(count + 1)


def _is_integral(*colors: Color) -> bool:
    return all(isinstance(v, int) for c in colors for v in c.as_tuple())


def _lerp_truncating(start: Color, end: Color, count: int) -> np.ndarray:
    s = np.array(start.as_tuple(), dtype=np.int64)
    e = np.array(end.as_tuple(), dtype=np.int64)
    # 比率・積は単精度で計算し切り捨てる（降順チャネルは 1 - t、小さい側から数える）
    step = np.float32(1.0) / np.float32(count + 1)
    am = step * np.arange(1, count + 1, dtype=np.float32)[:, None]
    a = np.where(s > e, np.float32(1.0) - am, am).astype(np.float32)
    lo = np.minimum(s, e)
    hi = np.maximum(s, e)
    return lo + ((hi - lo).astype(np.float32) * a).astype(np.int64)


def _compute(
    start: Color, end: Color, count: int, kind: InterpolationKind, channel_max: float
) -> Tuple[Color, ...]:
    integral = _is_integral(start, end) and isinstance(channel_max, int)

    if kind is InterpolationKind.RGB:
        if integral:
            rows = _lerp_truncating(start, end, count)
            return tuple(Color.from_array(row) for row in rows)
        t = ramp_fractions(count)[:, None]
        s = start.as_array()
        rows = s + (end.as_array() - s) * t
        return tuple(Color.from_array(row, integral=False) for row in rows)

    scale = float(channel_max)
    pair = np.stack([start.as_array(), end.as_array()]) / scale
    t = ramp_fractions(count)[:, None]
    if kind is InterpolationKind.LINEAR_LIGHT:
        lin = _srgb_to_linear(pair)
        rgb = _linear_to_srgb(lin[0] + (lin[1] - lin[0]) * t)
    elif kind is InterpolationKind.OKLAB:
        lab = srgb_to_oklab(pair)
        rgb = oklab_to_srgb(lab[0] + (lab[1] - lab[0]) * t)
    else:  # pragma: no cover - 列挙は閉じている
        raise InvalidOperationArguments(f"unsupported interpolation kind: {kind!r}")

    out = rgb * scale
    if integral:
        rows = np.rint(out).astype(np.int64)
        return tuple(Color.from_array(row) for row in rows)
    return tuple(Color.from_array(row, integral=False) for row in out)


# ---- ランプ LRU（プロセス内で共有） -------------------------------------------

_RampKey = Tuple[Tuple[float, float, float], Tuple[float, float, float], int, str, float, bool]

_RAMP_CACHE: "OrderedDict[_RampKey, Tuple[Color, ...]]" = OrderedDict()
_RAMP_LOCK = threading.Lock()
_RAMP_STATS = {"hits": 0, "misses": 0}


def interpolate(
    start: Color,
    end: Color,
    count: int,
    kind: InterpolationKind | str = InterpolationKind.RGB,
    channel_max: float = DEFAULT_CHANNEL_MAX,
) -> Tuple[Color, ...]:
    """`start` と `end` の間を `count` 段で補間した色列を返す。

    Parameters
    ----------
    start, end:
        端点の色（列には含まれない）。
    count:
        段数（1 以上）。
    kind:
        補間空間。
    channel_max:
        チャネルの上限値（フォーマットのチャネルドメイン）。
    """
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise InvalidOperationArguments(f"ramp count must be a positive integer, got {count!r}")
    kind = InterpolationKind.from_value(kind)
    maxsize = _get_settings().RAMP_CACHE_MAXSIZE
    key: _RampKey = (
        start.as_tuple(),
        end.as_tuple(),
        count,
        kind.value,
        channel_max,
        _is_integral(start, end),
    )
    if maxsize > 0:
        with _RAMP_LOCK:
            hit = _RAMP_CACHE.get(key)
            if hit is not None:
                _RAMP_CACHE.move_to_end(key)
                _RAMP_STATS["hits"] += 1
                return hit
            _RAMP_STATS["misses"] += 1

    colors = _compute(start, end, count, kind, channel_max)

    if maxsize > 0:
        with _RAMP_LOCK:
            _RAMP_CACHE[key] = colors
            while len(_RAMP_CACHE) > maxsize:
                _RAMP_CACHE.popitem(last=False)
    return colors


def ramp_cache_info() -> dict[str, int]:
    """ランプ LRU の統計（hits/misses/size）。"""
    with _RAMP_LOCK:
        return {**_RAMP_STATS, "size": len(_RAMP_CACHE)}


def clear_ramp_cache() -> None:
    with _RAMP_LOCK:
        _RAMP_CACHE.clear()
        _RAMP_STATS["hits"] = 0
        _RAMP_STATS["misses"] = 0


__all__ = [
    "InterpolationKind",
    "interpolate",
    "ramp_fractions",
    "srgb_to_oklab",
    "oklab_to_srgb",
    "ramp_cache_info",
    "clear_ramp_cache",
]
