"""Structured logging setup shared by the composer, renderer and HTTP entry point."""

from __future__ import annotations

import logging
from typing import Optional

import structlog

from .settings import JSON_LOGS, LOG_LEVEL


def _resolve_level(level: Optional[int | str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName((level or LOG_LEVEL or "INFO").strip().upper())
    # getLevelName hands back a "Level X" string for unknown names
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Optional[int | str] = None, json: Optional[bool] = None) -> None:
    """Configure structlog and standard logging for mailblocks.

    Calling it more than once is a no-op. ``level`` and ``json`` fall back to
    ``MAILBLOCKS_LOG_LEVEL`` and ``MAILBLOCKS_JSON_LOGS`` when omitted.
    """

    if getattr(setup_logging, "_configured", False):  # type: ignore[attr-defined]
        return

    use_json = JSON_LOGS if json is None else json
    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    processors = [
        structlog.processors.TimeStamper(fmt="ISO", utc=True),
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=_resolve_level(level))

    setup_logging._configured = True  # type: ignore[attr-defined]
