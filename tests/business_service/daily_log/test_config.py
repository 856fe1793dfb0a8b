from __future__ import annotations

import pytest

from business_service.daily_log.config import DEFAULT_SUCCESS_TEXT, ReplyTexts, load_reply_texts


def test_load_reply_texts_uses_defaults_without_overrides() -> None:
    assert load_reply_texts() == ReplyTexts()


def test_load_reply_texts_reads_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DAILY_LOG_SUCCESS_TEXT", "Saved!")
    monkeypatch.setenv("DAILY_LOG_FORM_PROMPT_TEXT", "Open {title} please")

    texts = load_reply_texts()

    assert texts.success == "Saved!"
    assert texts.prompt_for("Daily Log") == "Open Daily Log please"


def test_blank_override_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DAILY_LOG_SUCCESS_TEXT", "   ")

    assert load_reply_texts().success == DEFAULT_SUCCESS_TEXT


def test_reply_texts_are_distinct_per_outcome() -> None:
    texts = ReplyTexts()

    assert len({texts.success, texts.rejected, texts.transport_failure}) == 3
