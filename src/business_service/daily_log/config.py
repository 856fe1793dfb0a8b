from __future__ import annotations

"""User-facing reply texts for the daily-log interaction, overridable from the environment."""

import os
from dataclasses import dataclass
from typing import Any, Optional

__all__ = [
    "ReplyTexts",
    "load_reply_texts",
]

DEFAULT_FORM_PROMPT_TEXT = "Tap “{title}” below to fill in today's log."
DEFAULT_PROCESSING_TEXT = "⏳ Logging your entry..."
DEFAULT_SUCCESS_TEXT = "✅ Your daily log has been recorded."
DEFAULT_REJECTED_TEXT = "❌ Failed to log your entry. Please try again."
DEFAULT_TRANSPORT_FAILURE_TEXT = "❌ There was an error submitting your log. Please try again."
DEFAULT_UNEXPECTED_ERROR_TEXT = "❌ An error occurred. Please try again."
DEFAULT_PRIVATE_CHAT_ONLY_TEXT = "The daily log form only opens in a private chat. Message me directly and send /log there."


@dataclass(slots=True, frozen=True)
class ReplyTexts:
    form_prompt: str = DEFAULT_FORM_PROMPT_TEXT
    processing: str = DEFAULT_PROCESSING_TEXT
    success: str = DEFAULT_SUCCESS_TEXT
    rejected: str = DEFAULT_REJECTED_TEXT
    transport_failure: str = DEFAULT_TRANSPORT_FAILURE_TEXT
    unexpected_error: str = DEFAULT_UNEXPECTED_ERROR_TEXT
    private_chat_only: str = DEFAULT_PRIVATE_CHAT_ONLY_TEXT

    def prompt_for(self, title: str) -> str:
        return self.form_prompt.replace("{title}", title)


def load_reply_texts(defaults: Optional[ReplyTexts] = None) -> ReplyTexts:
    """Load reply texts from environment to allow operator override."""

    base = defaults or ReplyTexts()
    return ReplyTexts(
        form_prompt=_coerce_text(os.getenv("DAILY_LOG_FORM_PROMPT_TEXT"), base.form_prompt),
        processing=_coerce_text(os.getenv("DAILY_LOG_PROCESSING_TEXT"), base.processing),
        success=_coerce_text(os.getenv("DAILY_LOG_SUCCESS_TEXT"), base.success),
        rejected=_coerce_text(os.getenv("DAILY_LOG_REJECTED_TEXT"), base.rejected),
        transport_failure=_coerce_text(os.getenv("DAILY_LOG_TRANSPORT_FAILURE_TEXT"), base.transport_failure),
        unexpected_error=_coerce_text(os.getenv("DAILY_LOG_UNEXPECTED_ERROR_TEXT"), base.unexpected_error),
        private_chat_only=_coerce_text(os.getenv("DAILY_LOG_PRIVATE_CHAT_ONLY_TEXT"), base.private_chat_only),
    )


def _coerce_text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default
