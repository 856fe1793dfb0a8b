from __future__ import annotations

"""Daily-log business services."""

from business_service.daily_log.config import ReplyTexts, load_reply_texts

__all__ = ["ReplyTexts", "load_reply_texts"]
