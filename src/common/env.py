"""
どこで: `common.env`
何を: 環境変数の軽量パースヘルパ（int/bool/str）を提供。
なぜ: settings 層で `os.getenv` + 例外/境界ガードを都度書かずに済ませるため。
"""

from __future__ import annotations

import os
from typing import Optional

_TRUE_WORDS = {"true", "t", "yes", "y", "on"}
_FALSE_WORDS = {"false", "f", "no", "n", "off"}


def env_int(
    name: str, default: Optional[int] = None, *, min_value: Optional[int] = None
) -> Optional[int]:
    """整数環境変数を取得（存在しない/不正値は既定値）。

    Parameters
    ----------
    name : str
        環境変数名。
    default : Optional[int]
        既定値（`None` を渡すと `None` を許容）。
    min_value : Optional[int]
        下限（指定時、結果が下回れば下限に丸める）。

    Returns
    -------
    Optional[int]
        取得した整数値。未設定/不正時は `default` を返す。
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        val = int(raw.strip())
    except ValueError:
        return default
    if min_value is not None and val < min_value:
        val = min_value
    return val


def env_bool(name: str, default: bool = False) -> bool:
    """真偽環境変数を取得（0/1, true/false, on/off を許容）。"""
    raw = os.getenv(name)
    if raw is None:
        return bool(default)
    s = raw.strip().lower()
    try:
        # 数値優先
        return int(s) != 0
    except ValueError:
        pass
    if s in _TRUE_WORDS:
        return True
    if s in _FALSE_WORDS:
        return False
    return bool(default)


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    """文字列環境変数を取得（空白のみは未設定扱い）。"""
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip()
    return s if s else default


__all__ = ["env_int", "env_bool", "env_str"]
