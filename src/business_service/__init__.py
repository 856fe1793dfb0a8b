from __future__ import annotations

"""Business Service layer entrypoints."""

from business_service.daily_log import ReplyTexts, load_reply_texts

__all__ = [
    "ReplyTexts",
    "load_reply_texts",
]
