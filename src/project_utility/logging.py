"""
Structured logging helpers backed by Rich.

Log calls across the relay use dotted event names as the message and pass context through
`extra` (`request_id`, `user_id`, `status_code`, ...). `configure_logging()` renders those
fields on the console as a small tree under the event, collapses repeated warnings for the same
request, and writes rotating info/error files with the extras appended as `key=value` pairs.
"""

from __future__ import annotations

import logging
import threading
import time
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from rich.console import Console
from rich.text import Text

from project_utility.config.paths import get_log_root
from project_utility.telemetry import setup_telemetry

INFO_LOG_FILENAME = "daily-log-info.log"
ERROR_LOG_FILENAME = "daily-log-error.log"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_REPEAT_WINDOW_SECONDS = 60.0
_REPEAT_MAX_ENTRIES = 1024

_configure_lock = threading.Lock()


def record_extras(record: logging.LogRecord) -> List[Tuple[str, Any]]:
    """Return the `extra=` fields of a record in insertion order, skipping empty values."""

    return [
        (key, value)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_") and value not in (None, "", [], {}, ())
    ]


class _RepeatFilter:
    """Collapse identical warnings (same logger, event and request) inside a time window."""

    def __init__(
        self,
        window: float = _REPEAT_WINDOW_SECONDS,
        *,
        max_entries: int = _REPEAT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._seen: Dict[str, Tuple[float, int]] = {}
        self._pruned_at = clock()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._seen)

    def admit(self, record: logging.LogRecord) -> Optional[int]:
        key = f"{record.name}|{record.getMessage()}|{getattr(record, 'request_id', '')}"
        now = self._clock()
        with self._lock:
            if key not in self._seen and (
                len(self._seen) >= self._max_entries or now - self._pruned_at >= self._window
            ):
                self._prune(now)
            first_seen, repeats = self._seen.get(key, (now - self._window, 0))
            if now - first_seen < self._window:
                self._seen[key] = (first_seen, repeats + 1)
                return None
            self._seen[key] = (now, 0)
            return repeats

    def _prune(self, now: float) -> None:
        # Request ids are unique per interaction, so expired keys never come back.
        for key in [key for key, (first_seen, _) in self._seen.items() if now - first_seen >= self._window]:
            del self._seen[key]
        while len(self._seen) >= self._max_entries:
            del self._seen[next(iter(self._seen))]
        self._pruned_at = now


class RichConsoleHandler(logging.Handler):
    _LEVEL_STYLES = {
        logging.DEBUG: "dim",
        logging.INFO: "bold cyan",
        logging.WARNING: "bold yellow",
        logging.ERROR: "bold red",
        logging.CRITICAL: "bold white on red",
    }

    def __init__(self, console: Optional[Console] = None, *, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self._console = console or Console(stderr=True)
        self._repeats = _RepeatFilter()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            suppressed = 0
            if record.levelno >= logging.WARNING:
                admitted = self._repeats.admit(record)
                if admitted is None:
                    return
                suppressed = admitted
            self._console.print(self.render(record, suppressed=suppressed))
        except Exception:
            self.handleError(record)

    def render(self, record: logging.LogRecord, *, suppressed: int = 0) -> Text:
        text = Text()
        text.append(datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3], style="dim")
        text.append(" ")
        text.append(f"{record.levelname:<8}", style=self._LEVEL_STYLES.get(record.levelno, "white"))
        text.append(f" [{record.name}] ", style="bold white")
        text.append(record.getMessage())
        if suppressed:
            text.append(f" (+{suppressed} repeats)", style="dim")

        entries = [(key, str(value), "white") for key, value in record_extras(record)]
        if record.exc_info:
            entries.append(("traceback", "".join(traceback.format_exception(*record.exc_info)).rstrip(), "italic red"))
        for index, (key, value, style) in enumerate(entries):
            last = index == len(entries) - 1
            branch = "└── " if last else "├── "
            continuation = "\n    " + ("    " if last else "│   ") + " " * (len(key) + 2)
            text.append("\n    " + branch + f"{key}: ", style="dim")
            text.append(value.replace("\n", continuation), style=style)
        return text


class ExtrasFormatter(logging.Formatter):
    """Plain-text formatter that appends `extra=` fields as `key=value` pairs."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-8s %(name)s :: %(message)s", "%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = " ".join(f"{key}={value}" for key, value in record_extras(record))
        if not extras:
            return line
        head, sep, tail = line.partition("\n")
        return f"{head} | {extras}{sep}{tail}"


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


def _rotating_file_handler(path: Path, *, min_level: int, max_level: Optional[int] = None) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=2 * 1024 * 1024, backupCount=10, encoding="utf-8")
    handler.setLevel(min_level)
    handler.setFormatter(ExtrasFormatter())
    if max_level is not None:
        handler.addFilter(_MaxLevelFilter(max_level))
    return handler


def configure_logging(
    *,
    log_root: Optional[Path] = None,
    level: int = logging.INFO,
    console: Optional[Console] = None,
    extra_loggers: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Path:
    """
    Install console and file handlers on the root logger and point telemetry at the same root.

    Safe to call more than once; every call replaces the previously installed handlers.
    `extra_loggers` maps logger names to `{"level": ...}` overrides. Returns the log root.
    """

    with _configure_lock:
        root = (log_root or get_log_root()).resolve()
        root.mkdir(parents=True, exist_ok=True)
        setup_telemetry(log_root=root)
        logging.captureWarnings(True)

        handlers: List[logging.Handler] = [
            RichConsoleHandler(console, level=level),
            _rotating_file_handler(root / INFO_LOG_FILENAME, min_level=logging.DEBUG, max_level=logging.INFO),
            _rotating_file_handler(root / ERROR_LOG_FILENAME, min_level=logging.WARNING),
        ]
        logging.basicConfig(level=level, handlers=handlers, force=True)
        # aiogram logs every handled update at INFO; keep only its warnings.
        logging.getLogger("aiogram.event").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        for name, options in (extra_loggers or {}).items():
            if "level" in options:
                logging.getLogger(name).setLevel(options["level"])
        return root


__all__ = [
    "ERROR_LOG_FILENAME",
    "ExtrasFormatter",
    "INFO_LOG_FILENAME",
    "RichConsoleHandler",
    "configure_logging",
    "record_extras",
]
