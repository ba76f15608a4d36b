"""Stage-coloured console logging for the search pipeline.

One search fans out to many layers; tagging every line with its pipeline
stage keeps the interleaved output readable:

    🧾 VALIDATE  green     🛠️ COMPILE  yellow    🗺️ RESOLVE  blue
    🔎 QUERY     magenta   📊 AGGREGATE / 🔤 SAMPLE / 📤 EXPORT  cyan
    ❌ ERROR     red       ✅ COMPLETE  green

Colour codes can be stripped for log files with ``LOG_COLOR=false``
(see log_config.StripAnsiFilter).
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, NamedTuple

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
MAGENTA = "\033[95m"
CYAN = "\033[96m"
GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class SearchStage:
    """Pipeline stages, in the order a search passes through them."""

    VALIDATE = Stage("VALIDATE", GREEN, "🧾")
    COMPILE = Stage("COMPILE", YELLOW, "🛠️")
    RESOLVE = Stage("RESOLVE", BLUE, "🗺️")
    QUERY = Stage("QUERY", MAGENTA, "🔎")
    AGGREGATE = Stage("AGGREGATE", CYAN, "📊")
    SAMPLE = Stage("SAMPLE", CYAN, "🔤")
    EXPORT = Stage("EXPORT", CYAN, "📤")
    ERROR = Stage("ERROR", RED, "❌")
    COMPLETE = Stage("COMPLETE", GREEN, "✅")


def _paint(color: str, text: str) -> str:
    return f"{color}{text}{RESET}"


def _kv(fields: dict[str, Any], sep: str = "=") -> str:
    return " | ".join(f"{k}{sep}{v}" for k, v in fields.items())


class SearchLogger:
    """Logger wrapper that prefixes each line with a coloured stage tag.

        slog = SearchLogger("SearchExecutor")
        slog.step_start(SearchStage.QUERY, "Querying 3 layers", generation=4)
        slog.detail("layer:0 returned 5 records")
        slog.step_complete(SearchStage.AGGREGATE, "7 records")

    Keyword arguments are appended as dimmed ``key=value`` context.
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def _line(self, tag_color: str, stage: Stage, body: str, context: dict[str, Any]) -> str:
        line = f"{tag_color}{stage.icon} [{stage.label}]{RESET} {body}"
        if context:
            line += " " + _paint(GRAY, f"({_kv(context)})")
        return line

    def step_start(self, stage: Stage, message: str, **context: Any) -> None:
        self._logger.info(
            self._line(stage.color + BOLD, stage, _paint(stage.color, message), context)
        )

    def step_complete(self, stage: Stage, message: str, **context: Any) -> None:
        self._logger.info(
            self._line(stage.color, stage, _paint(GREEN, f"✓ {message}"), context)
        )

    def step_warning(self, stage: Stage, message: str, **context: Any) -> None:
        """Non-fatal problem, such as a single layer failing its query."""
        self._logger.warning(
            self._line(YELLOW, stage, _paint(YELLOW, f"⚠ {message}"), context)
        )

    def step_error(self, stage: Stage, message: str, error: Exception | None = None) -> None:
        line = f"{RED}{BOLD}❌ [{stage.label}]{RESET} {_paint(RED, message)}"
        if error is not None:
            line += " " + _paint(DIM, f"→ {type(error).__name__}: {error}")
        self._logger.error(line)

    def detail(self, message: str, **context: Any) -> None:
        line = "   " + _paint(GRAY, f"├─ {message}")
        if context:
            line += " " + _paint(DIM, f"({_kv(context)})")
        self._logger.info(line)

    def stats(self, **values: Any) -> None:
        self._logger.info("   " + _paint(GRAY, f"📈 {_kv(values, ': ')}"))

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **context: Any):
        """Wrap a block in step_start/step_complete and report its duration.

        On an exception the failure is logged with step_error and re-raised.
        """
        self.step_start(stage, message, **context)
        started = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.step_error(
                stage, f"{message}: failed after {time.perf_counter() - started:.2f}s", error=exc
            )
            raise
        self.step_complete(stage, f"{message}: {time.perf_counter() - started:.2f}s", **context)
