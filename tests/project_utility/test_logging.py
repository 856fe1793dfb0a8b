from __future__ import annotations

import io
import logging
from pathlib import Path

from rich.console import Console

from project_utility.logging import (
    ERROR_LOG_FILENAME,
    INFO_LOG_FILENAME,
    ExtrasFormatter,
    RichConsoleHandler,
    _RepeatFilter,
    configure_logging,
    record_extras,
)


def _record(level: int = logging.INFO, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("demo", level, __file__, 1, "daily_log.delivery.rejected", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_record_extras_returns_only_non_empty_extra_fields() -> None:
    record = _record(request_id="req-1", status_code=200, error="")

    assert record_extras(record) == [("request_id", "req-1"), ("status_code", 200)]


def test_extras_formatter_appends_key_value_pairs() -> None:
    line = ExtrasFormatter().format(_record(request_id="req-1", user_id="7"))

    assert line.endswith("daily_log.delivery.rejected | request_id=req-1 user_id=7")


def test_console_handler_collapses_repeated_warnings() -> None:
    console = Console(record=True, width=200)
    handler = RichConsoleHandler(console)

    for _ in range(3):
        handler.emit(_record(logging.WARNING, request_id="req-1"))
    output = console.export_text()

    assert output.count("daily_log.delivery.rejected") == 1
    assert "request_id: req-1" in output


def test_configure_logging_splits_info_and_error_files(tmp_path: Path) -> None:
    root = configure_logging(log_root=tmp_path, console=Console(file=open(tmp_path / "console.txt", "w")))
    logger = logging.getLogger("tests.logging")
    try:
        logger.info("daily_log.delivery.accepted", extra={"request_id": "req-1"})
        logger.error("daily_log.delivery.transport_failure", extra={"request_id": "req-2"})
        for handler in logging.getLogger().handlers:
            handler.flush()
    finally:
        for handler in list(logging.getLogger().handlers):
            handler.close()
            logging.getLogger().removeHandler(handler)

    info_text = (root / INFO_LOG_FILENAME).read_text(encoding="utf-8")
    error_text = (root / ERROR_LOG_FILENAME).read_text(encoding="utf-8")
    assert "daily_log.delivery.accepted | request_id=req-1" in info_text
    assert "transport_failure" not in info_text
    assert "daily_log.delivery.transport_failure | request_id=req-2" in error_text


def test_repeat_filter_forgets_expired_requests() -> None:
    now = [0.0]
    repeats = _RepeatFilter(window=60.0, clock=lambda: now[0])

    for index in range(50):
        assert repeats.admit(_record(logging.WARNING, request_id=f"req-{index}")) == 0
    assert len(repeats) == 50

    now[0] = 61.0
    repeats.admit(_record(logging.WARNING, request_id="req-late"))

    assert len(repeats) == 1


def test_repeat_filter_is_bounded_within_one_window() -> None:
    repeats = _RepeatFilter(window=60.0, max_entries=100, clock=lambda: 0.0)

    for index in range(5000):
        repeats.admit(_record(logging.WARNING, request_id=f"req-{index}"))

    assert len(repeats) <= 100


def test_repeat_filter_still_collapses_after_pruning() -> None:
    now = [0.0]
    repeats = _RepeatFilter(window=60.0, clock=lambda: now[0])

    assert repeats.admit(_record(logging.WARNING, request_id="req-1")) == 0
    now[0] = 10.0
    assert repeats.admit(_record(logging.WARNING, request_id="req-1")) is None
    now[0] = 70.0
    assert repeats.admit(_record(logging.WARNING, request_id="req-1")) == 1


def test_console_handler_memory_does_not_grow_with_request_ids() -> None:
    handler = RichConsoleHandler(Console(file=io.StringIO(), width=200))
    logger = logging.getLogger("tests.logging.repeats")
    logger.propagate = False
    logger.addHandler(handler)
    try:
        for index in range(5000):
            logger.warning("daily_log.delivery.rejected", extra={"request_id": f"req-{index}"})
    finally:
        logger.removeHandler(handler)
        logger.propagate = True

    assert len(handler._repeats) <= 1024
