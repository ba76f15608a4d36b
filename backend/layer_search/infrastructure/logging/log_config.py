"""Logging setup for the layer search service.

Levels are set per category from Settings, so that SQL echo from the local
layer store or httpx chatter from remote feature services can be turned up
without flooding the search pipeline output (and vice versa).

    from layer_search.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once, from the FastAPI lifespan
"""

import logging
import re
import sys

from layer_search.config import get_settings

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

# Settings field -> loggers it controls. SearchLogger names its loggers after
# the component (e.g. "SearchExecutor"), not the module path.
_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("log_level_sql", ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite")),
    ("log_level_http", ("httpx", "httpcore")),
    ("log_level_uvicorn", ("uvicorn", "uvicorn.access", "uvicorn.error")),
    ("log_level_search", (
        "SearchExecutor",
        "SearchSession",
        "FieldValueSampler",
        "SearchExporter",
        "layer_search.application",
        "layer_search.infrastructure.catalog",
        "layer_search.infrastructure.collections",
    )),
)


class StripAnsiFilter(logging.Filter):
    """Removes SearchLogger colour codes for sinks that are not terminals."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _ANSI_RE.sub("", record.msg)
        return True


def setup_logging() -> None:
    """Apply root and per-category levels; add a stderr handler if none exists."""
    settings = get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        root.addHandler(handler)

    if not settings.log_color:
        for handler in root.handlers:
            if not any(isinstance(f, StripAnsiFilter) for f in handler.filters):
                handler.addFilter(StripAnsiFilter())

    for field, names in _CATEGORIES:
        level = _parse_level(getattr(settings, field, "INFO"))
        for name in names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s sql=%s http=%s uvicorn=%s search=%s color=%s",
        settings.log_level,
        settings.log_level_sql,
        settings.log_level_http,
        settings.log_level_uvicorn,
        settings.log_level_search,
        settings.log_color,
    )


def _parse_level(raw: str) -> int:
    """Level name to logging constant; unknown names fall back to INFO."""
    level = logging.getLevelName(str(raw).upper())
    return level if isinstance(level, int) else logging.INFO
