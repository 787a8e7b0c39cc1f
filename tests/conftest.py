"""共通フィクスチャ。

- 設定の再読込（環境変数の影響を遮断）
- ランプ LRU のリセット
- 空パレット / 参照シナリオのパレット
"""

from __future__ import annotations

from typing import Iterator

import pytest

from common import settings
from palette import Address, Color, InsertColor, InsertRamp, Palette
from palette.interpolation import clear_ramp_cache

_PXP_ENV = (
    "PXP_DEFAULT_FORMAT",
    "PXP_HISTORY_LIMIT",
    "PXP_EVAL_CACHE_ENABLED",
    "PXP_RAMP_CACHE_MAXSIZE",
    "PXP_QUEUE_MAXSIZE",
    "PXP_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """各テストを既定設定で開始し、終了後にも既定へ戻す。"""
    for name in _PXP_ENV:
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env({})
    clear_ramp_cache()
    yield
    for name in _PXP_ENV:
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env({})
    clear_ramp_cache()


@pytest.fixture()
def palette() -> Palette:
    return Palette("Test")


@pytest.fixture()
def scenario() -> Palette:
    """0:0:0 / 0:0:1 の 2 色と、その間の 6 段ランプ（0:1:0 から）。"""
    pal = Palette("Example")
    pal.apply(InsertColor(Color(50, 50, 78), Address(0, 0, 0)))
    pal.apply(InsertColor(Color(0, 0, 255), Address(0, 0, 1)))
    pal.apply(InsertRamp(Address(0, 0, 0), Address(0, 0, 1), 6, Address(0, 1, 0)))
    return pal
