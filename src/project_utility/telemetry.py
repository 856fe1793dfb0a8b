from __future__ import annotations

"""
Telemetry events for the relay: one JSON object per line in `telemetry.jsonl`, a short Rich
summary on the console, and in-process listeners (tests subscribe through these).

Events are flat dictionaries: `event_type`, `level`, `timestamp`, any keyword fields passed to
`emit()` (`request_id`, `form_id`, `state`, ...), and a nested `payload`.
"""

import os
import threading
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, Mapping, Optional, Sequence

import structlog
from rich.console import Console
from rich.text import Text

from project_utility.config.paths import get_log_root

TELEMETRY_FILENAME = "telemetry.jsonl"

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40, "critical": 50}
_CONSOLE_STYLES = {"debug": "dim", "info": "cyan", "warning": "yellow", "error": "bold red", "critical": "bold white on red"}
_SUMMARY_KEYS = ("request_id", "form_id", "state", "span")

Listener = Callable[[Mapping[str, Any]], None]


def _level_value(level: str) -> int:
    return _LEVELS.get(level.lower(), 20)


def _preview(value: str, *, length: int = 160) -> str:
    return value if len(value) <= length else value[: length - 3] + "..."


class TelemetryEmitter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handle: Optional[IO[str]] = None
        self._file_logger: Any = None
        self._console = Console(stderr=True)
        self._listeners: List[Listener] = []
        self.console_level = os.getenv("TELEMETRY_CONSOLE_LEVEL", "info").lower()
        self.file_level = os.getenv("TELEMETRY_FILE_LEVEL", "debug").lower()
        self.event_prefixes = tuple(
            prefix.strip() for prefix in (os.getenv("TELEMETRY_EVENT_FILTER") or "").split(",") if prefix.strip()
        )
        self._diagnostics = structlog.get_logger("project_utility.telemetry")

    def configure(self, *, log_root: Optional[Path] = None) -> Path:
        """(Re)open the JSONL sink under `log_root`; returns the sink path."""

        path = (log_root or get_log_root()).resolve() / TELEMETRY_FILENAME
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            self._close_locked()
            self._handle = path.open("a", encoding="utf-8")
            self._file_logger = structlog.wrap_logger(
                structlog.WriteLogger(file=self._handle),
                processors=[
                    structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
                    structlog.processors.EventRenamer("event_type"),
                    structlog.processors.JSONRenderer(ensure_ascii=False, default=str),
                ],
            )
        return path

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def _close_locked(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._file_logger = None

    def add_listener(self, callback: Listener) -> None:
        with self._lock:
            if callback not in self._listeners:
                self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def emit(
        self,
        event_type: str,
        *,
        level: str = "info",
        payload: Optional[Mapping[str, Any]] = None,
        sensitive: Optional[Sequence[str]] = None,
        **fields: Any,
    ) -> None:
        if self.event_prefixes and not event_type.startswith(self.event_prefixes):
            return
        level = level.lower()
        body: Dict[str, Any] = {"level": level, **fields, "payload": dict(payload or {})}

        if _level_value(level) >= _level_value(self.file_level):
            with self._lock:
                file_logger = self._file_logger
            if file_logger is None:
                self.configure()
                file_logger = self._file_logger
            file_logger.msg(event_type, **body)
        if _level_value(level) >= _level_value(self.console_level):
            self._print(event_type, body, sensitive or ())
        self._notify({"event_type": event_type, **body})

    def _print(self, event_type: str, body: Mapping[str, Any], sensitive: Sequence[str]) -> None:
        level = body["level"]
        line = Text()
        line.append(f"[{level.upper()}] {event_type}", style=_CONSOLE_STYLES.get(level, "white"))
        summary = [f"{key}={body[key]}" for key in _SUMMARY_KEYS if body.get(key)]
        for key, value in body["payload"].items():
            if value in (None, ""):
                continue
            if key in sensitive:
                value = _preview(str(value))
            summary.append(f"{key}={value}")
        if summary:
            line.append(" " + " ".join(summary), style="dim")
        self._console.print(line)

    def _notify(self, event: Mapping[str, Any]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(event)
            except Exception as exc:
                self._diagnostics.warning("telemetry.listener_failed", event_type=event.get("event_type"), error=str(exc))


_EMITTER: Optional[TelemetryEmitter] = None
_EMITTER_LOCK = threading.Lock()


def get_telemetry() -> TelemetryEmitter:
    global _EMITTER
    if _EMITTER is None:
        with _EMITTER_LOCK:
            if _EMITTER is None:
                _EMITTER = TelemetryEmitter()
    return _EMITTER


def setup_telemetry(log_root: Optional[Path] = None) -> Path:
    return get_telemetry().configure(log_root=log_root)


def emit(event_type: str, **kwargs: Any) -> None:
    get_telemetry().emit(event_type, **kwargs)


def register_listener(callback: Listener) -> None:
    get_telemetry().add_listener(callback)


def unregister_listener(callback: Listener) -> None:
    get_telemetry().remove_listener(callback)


__all__ = [
    "TELEMETRY_FILENAME",
    "TelemetryEmitter",
    "emit",
    "get_telemetry",
    "register_listener",
    "setup_telemetry",
    "unregister_listener",
]
