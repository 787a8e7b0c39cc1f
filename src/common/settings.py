"""
どこで: `common.settings`
何を: パレットエンジンの設定を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` や YAML 参照の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。

優先順位: dataclass 既定値 → `configs/default.yaml` / `config.yaml` の `palette:` → 環境変数。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from util.utils import palette_section

from .env import env_bool, env_int, env_str


@dataclass
class _Settings:
    # Palette
    DEFAULT_FORMAT: str = "default"
    HISTORY_LIMIT: int | None = None  # None/0 は無制限

    # Evaluator caches
    EVAL_CACHE_ENABLED: bool = True
    RAMP_CACHE_MAXSIZE: int = 256

    # Command queue
    QUEUE_MAXSIZE: int = 0  # 0 は無制限

    # Logging
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def _as_int(value: Any, default: int | None) -> int | None:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _apply_config(section: Mapping[str, Any]) -> None:
    """YAML の `palette:` セクションを反映（不正値は無視）。"""
    fmt = section.get("default_format")
    if isinstance(fmt, str) and fmt.strip():
        _settings.DEFAULT_FORMAT = fmt.strip()
    _settings.HISTORY_LIMIT = _as_int(section.get("history_limit"), _settings.HISTORY_LIMIT)
    cache_enabled = section.get("eval_cache_enabled")
    if isinstance(cache_enabled, bool):
        _settings.EVAL_CACHE_ENABLED = cache_enabled
    ramp_max = _as_int(section.get("ramp_cache_maxsize"), _settings.RAMP_CACHE_MAXSIZE)
    _settings.RAMP_CACHE_MAXSIZE = max(0, ramp_max or 0)
    queue_max = _as_int(section.get("queue_maxsize"), _settings.QUEUE_MAXSIZE)
    _settings.QUEUE_MAXSIZE = max(0, queue_max or 0)
    level = section.get("log_level")
    if isinstance(level, str) and level.strip():
        _settings.LOG_LEVEL = level.strip().upper()


def reload_from_env(config: Mapping[str, Any] | None = None) -> None:
    """構成ファイルと環境変数から設定を再読込。

    - `config` を渡した場合はファイルを読まずにそれを `palette:` セクションとして扱う。
    - 下限丸め: 履歴上限・キャッシュ・キューサイズは 0 未満にしない。
    """
    defaults = _Settings()
    for name in defaults.__dataclass_fields__:
        setattr(_settings, name, getattr(defaults, name))

    _apply_config(palette_section() if config is None else config)

    _settings.DEFAULT_FORMAT = env_str("PXP_DEFAULT_FORMAT", _settings.DEFAULT_FORMAT) or "default"
    limit = env_int("PXP_HISTORY_LIMIT", _settings.HISTORY_LIMIT, min_value=0)
    _settings.HISTORY_LIMIT = limit if limit else None
    _settings.EVAL_CACHE_ENABLED = env_bool("PXP_EVAL_CACHE_ENABLED", _settings.EVAL_CACHE_ENABLED)
    _settings.RAMP_CACHE_MAXSIZE = (
        env_int("PXP_RAMP_CACHE_MAXSIZE", _settings.RAMP_CACHE_MAXSIZE, min_value=0) or 0
    )
    _settings.QUEUE_MAXSIZE = env_int("PXP_QUEUE_MAXSIZE", _settings.QUEUE_MAXSIZE, min_value=0) or 0
    _settings.LOG_LEVEL = (env_str("PXP_LOG_LEVEL", _settings.LOG_LEVEL) or "INFO").upper()


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
