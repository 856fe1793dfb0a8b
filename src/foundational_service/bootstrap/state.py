"""Process-wide holder for the aiogram connection built at startup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from aiogram import Bot, Dispatcher

__all__ = [
    "BootstrapState",
    "clear_bootstrap_state",
    "get_bootstrap_state",
    "set_bootstrap_state",
]


@dataclass(slots=True)
class BootstrapState:
    """One per process; handlers never receive it, they get their dependencies from `workflow_data`."""

    bot: Bot
    dispatcher: Dispatcher
    forms_base_url: str
    command_scope_chat_id: Optional[int] = None
    timeline: List[Dict[str, Any]] = field(default_factory=list)
    request_id: str = ""


_BOOTSTRAP_STATE: Optional[BootstrapState] = None


def set_bootstrap_state(state: BootstrapState) -> None:
    global _BOOTSTRAP_STATE
    _BOOTSTRAP_STATE = state


def get_bootstrap_state() -> BootstrapState:
    if _BOOTSTRAP_STATE is None:
        raise RuntimeError("bootstrap state not initialised")
    return _BOOTSTRAP_STATE


def clear_bootstrap_state() -> None:
    global _BOOTSTRAP_STATE
    _BOOTSTRAP_STATE = None
