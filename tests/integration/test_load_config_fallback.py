from __future__ import annotations

from pathlib import Path

import pytest

from common import settings
from util.utils import load_config, palette_section


@pytest.mark.integration
# What this tests
# - load_config reads configs/default.yaml of the repository (palette section present).
def test_load_config_reads_repository_defaults() -> None:
    cfg = load_config()
    section = palette_section(cfg)
    assert section.get("default_format") == "default"
    assert section.get("ramp_cache_maxsize") == 256


@pytest.mark.integration
# - configs/default.yaml is the base, root config.yaml overrides top-level keys.
def test_root_config_overrides_default(tmp_path: Path) -> None:
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text(
        "palette:\n  default_format: small\n  history_limit: 5\nother: 1\n", encoding="utf-8"
    )
    (tmp_path / "config.yaml").write_text("palette:\n  default_format: zpl\n", encoding="utf-8")
    cfg = load_config(tmp_path)
    assert cfg["other"] == 1
    # トップレベル単位の上書き（palette セクションは丸ごと置き換わる）
    assert palette_section(cfg) == {"default_format": "zpl"}


@pytest.mark.integration
# - Broken YAML is fail-soft (empty dict).
def test_invalid_yaml_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("palette: [unclosed\n", encoding="utf-8")
    assert load_config(tmp_path) == {}


@pytest.mark.integration
# - YAML values feed settings; environment variables win over YAML.
def test_settings_layering(monkeypatch: pytest.MonkeyPatch) -> None:
    settings.reload_from_env({"default_format": "zpl", "history_limit": 3, "log_level": "debug"})
    s = settings.get()
    assert s.DEFAULT_FORMAT == "zpl"
    assert s.HISTORY_LIMIT == 3
    assert s.LOG_LEVEL == "DEBUG"

    monkeypatch.setenv("PXP_HISTORY_LIMIT", "0")
    monkeypatch.setenv("PXP_EVAL_CACHE_ENABLED", "off")
    settings.reload_from_env({"history_limit": 3})
    s = settings.get()
    assert s.HISTORY_LIMIT is None
    assert s.EVAL_CACHE_ENABLED is False
