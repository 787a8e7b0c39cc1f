from __future__ import annotations

import pytest

from common.base_registry import BaseRegistry


class _Named:
    def __init__(self, name: str) -> None:
        self.name = name


def test_name_attribute_and_normalized_lookup() -> None:
    reg = BaseRegistry()
    fmt = reg.add(_Named("SmallPalette"))

    assert reg.is_registered("small_palette")
    assert reg.get("SmallPalette") is fmt
    assert reg.get("small-palette") is fmt
    assert reg.get("small palette") is fmt
    assert "small_palette" in reg.list_all()


def test_decorator_falls_back_to_dunder_name() -> None:
    reg = BaseRegistry()

    @reg.register()
    class ZplPalette:  # noqa: N801 (テスト用)
        pass

    assert reg.get("zpl_palette") is ZplPalette


def test_duplicate_replace_and_unregister() -> None:
    reg = BaseRegistry()
    first = reg.add(_Named("default"))
    # 同一オブジェクトの再登録は許容
    assert reg.add(first) is first
    with pytest.raises(ValueError):
        reg.add(_Named("Default"))
    second = reg.add(_Named("default"), replace=True)
    assert reg.get("default") is second

    reg.unregister("DEFAULT")
    assert not reg.is_registered("default")
    reg.unregister("nonexistent")  # 例外にならない
    with pytest.raises(KeyError):
        reg.get("default")


def test_invalid_keys() -> None:
    reg = BaseRegistry()
    with pytest.raises(ValueError):
        reg.get("  ")
    with pytest.raises(TypeError):
        reg.get(3)  # type: ignore[arg-type]
    assert reg.registry == {}
