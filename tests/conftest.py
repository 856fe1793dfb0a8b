from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Keep log files and telemetry JSONL out of the working tree.
os.environ.setdefault("DAILY_LOG_LOG_ROOT", tempfile.mkdtemp(prefix="daily-log-tests-"))

_REPLY_TEXT_VARS = (
    "DAILY_LOG_FORM_PROMPT_TEXT",
    "DAILY_LOG_PROCESSING_TEXT",
    "DAILY_LOG_SUCCESS_TEXT",
    "DAILY_LOG_REJECTED_TEXT",
    "DAILY_LOG_TRANSPORT_FAILURE_TEXT",
    "DAILY_LOG_UNEXPECTED_ERROR_TEXT",
    "DAILY_LOG_PRIVATE_CHAT_ONLY_TEXT",
)


@pytest.fixture(autouse=True)
def _isolate_reply_texts(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _REPLY_TEXT_VARS:
        monkeypatch.delenv(name, raising=False)
