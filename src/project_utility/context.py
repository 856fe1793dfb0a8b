"""
Context utilities for request-id propagation across async boundaries.

Every inbound Telegram update is processed under its own request id so the acknowledgment, the
delivery call and the final reply of one interaction can be correlated in logs and telemetry.
"""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")


@dataclass(slots=True)
class ContextBridge:
    """ContextVar-backed helper that guarantees a request identifier is always available."""

    @staticmethod
    def request_id() -> str:
        rid = _request_id.get()
        if not rid:
            rid = ContextBridge.set_request_id()
        return rid

    @staticmethod
    def set_request_id(value: Optional[str] = None) -> str:
        rid = value or uuid.uuid4().hex
        _request_id.set(rid)
        return rid

    @staticmethod
    def clear() -> None:
        _request_id.set("")

    @staticmethod
    @contextmanager
    def interaction(value: Optional[str] = None) -> Iterator[str]:
        """Bind a fresh request id for the duration of one interaction."""

        token = _request_id.set(value or uuid.uuid4().hex)
        try:
            yield _request_id.get()
        finally:
            _request_id.reset(token)


__all__ = ["ContextBridge"]
