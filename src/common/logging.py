"""
Lightweight logging utilities for the palette engine.

Default behavior: modules import logging and obtain a logger via
`logging.getLogger(__name__)`. This helper ensures a sane default
configuration if the application hasn't configured logging yet.
"""

from __future__ import annotations

import logging


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        from common.settings import get as _get_settings  # local import

        level = _get_settings().LOG_LEVEL
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def setup_default_logging(level: int | str | None = None) -> None:
    """Setup a minimal logging configuration once.

    - No-op if root logger already has handlers
    - ``level=None`` uses ``common.settings.get().LOG_LEVEL``
    - Intended to be called from front ends driving the engine
    """
    root = logging.getLogger()
    if root.handlers:
        # Assume the app has configured logging
        return
    logging.basicConfig(
        level=_resolve_level(level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


__all__ = ["setup_default_logging"]
