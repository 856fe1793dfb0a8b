from __future__ import annotations

"""Typed models for the daily-log interaction lifecycle."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

__all__ = [
    "CommandEvent",
    "InteractionEvent",
    "InteractionState",
    "SubmissionEvent",
    "TERMINAL_STATES",
]


class InteractionState(str, Enum):
    IDLE = "idle"
    FORM_PRESENTED = "form_presented"
    ACKNOWLEDGING = "acknowledging"
    DELIVERING = "delivering"
    REPLIED_OK = "replied_ok"
    REPLIED_REJECTED = "replied_rejected"
    REPLIED_FAILED = "replied_failed"
    IGNORED = "ignored"


TERMINAL_STATES = frozenset(
    {
        InteractionState.FORM_PRESENTED,
        InteractionState.REPLIED_OK,
        InteractionState.REPLIED_REJECTED,
        InteractionState.REPLIED_FAILED,
        InteractionState.IGNORED,
    }
)


@dataclass(slots=True, frozen=True)
class InteractionEvent:
    user_id: str
    user_tag: str
    chat_id: Optional[int] = None


@dataclass(slots=True, frozen=True)
class CommandEvent(InteractionEvent):
    command: str = ""


@dataclass(slots=True, frozen=True)
class SubmissionEvent(InteractionEvent):
    form_id: str = ""
    fields: Mapping[str, str] = field(default_factory=dict)
