"""
Telegram handlers bridging aiogram updates to the daily-log orchestrator.

`/log` opens the form as a Telegram Web App; the Web App posts the filled form back as a
`web_app_data` service message, which is turned into a `SubmissionEvent`.
"""
from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

from aiogram import F, Router
from aiogram.enums import ChatType
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command
from aiogram.types import ErrorEvent, KeyboardButton, Message, ReplyKeyboardMarkup, User, WebAppInfo

from business_logic.daily_log import (
    CommandEvent,
    DailyLogOrchestrator,
    FormDescriptor,
    InteractionState,
    SubmissionEvent,
)
from foundational_service.contracts.daily_log import LOG_COMMAND
from foundational_service.diagnostics.metrics import increment
from project_utility.context import ContextBridge
from project_utility.telemetry import emit as telemetry_emit

__all__ = [
    "TelegramResponder",
    "build_command_event",
    "build_form_keyboard",
    "create_router",
    "form_page_url",
    "parse_web_app_submission",
]

log = logging.getLogger("interface_entry.telegram.handlers")

_STATE_COUNTERS = {
    InteractionState.FORM_PRESENTED: "daily_log_forms_presented_total",
    InteractionState.REPLIED_OK: "daily_log_delivered_total",
    InteractionState.REPLIED_REJECTED: "daily_log_rejected_total",
    InteractionState.REPLIED_FAILED: "daily_log_transport_failures_total",
    InteractionState.IGNORED: "telegram_ignored_total",
}

# Acknowledgment sent for the update being handled; the error handler edits it instead of replying twice.
_ACKNOWLEDGMENT: ContextVar[Optional[Message]] = ContextVar("daily_log_acknowledgment", default=None)


def form_page_url(forms_base_url: str, form_id: str) -> str:
    return f"{forms_base_url.rstrip('/')}/{form_id}"


def build_form_keyboard(form: FormDescriptor, forms_base_url: str) -> ReplyKeyboardMarkup:
    button = KeyboardButton(text=form.title, web_app=WebAppInfo(url=form_page_url(forms_base_url, form.form_id)))
    return ReplyKeyboardMarkup(keyboard=[[button]], resize_keyboard=True, one_time_keyboard=True)


class TelegramResponder:
    """Per-interaction adapter; the bot's private chat plays the role of an ephemeral reply."""

    def __init__(self, message: Message, *, forms_base_url: str = "") -> None:
        self._message = message
        self._forms_base_url = forms_base_url
        self._ack: Optional[Message] = None

    async def present_form(self, form: FormDescriptor, *, prompt: str) -> None:
        await self._message.answer(prompt, reply_markup=build_form_keyboard(form, self._forms_base_url))

    async def acknowledge(self, text: str) -> None:
        self._ack = await self._message.answer(text)
        _ACKNOWLEDGMENT.set(self._ack)

    async def finalize(self, text: str) -> None:
        if self._ack is None:
            await self._message.answer(text)
            return
        await self._ack.edit_text(text)

    async def announce(self, text: str) -> None:
        await self._message.answer(text)


def _user_tag(user: User) -> str:
    if user.username:
        return f"@{user.username}"
    return user.full_name


def build_command_event(message: Message, command: str) -> Optional[CommandEvent]:
    user = message.from_user
    if user is None:
        return None
    return CommandEvent(user_id=str(user.id), user_tag=_user_tag(user), chat_id=message.chat.id, command=command)


def parse_web_app_submission(message: Message) -> Optional[SubmissionEvent]:
    """Decode `web_app_data`; returns None for payloads this bot never produces."""

    user = message.from_user
    if user is None or message.web_app_data is None:
        return None
    try:
        payload = json.loads(message.web_app_data.data)
    except (TypeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    form_id = payload.get("form_id")
    fields = payload.get("fields")
    if not isinstance(form_id, str) or not isinstance(fields, dict):
        return None
    return SubmissionEvent(
        user_id=str(user.id),
        user_tag=_user_tag(user),
        chat_id=message.chat.id,
        form_id=form_id,
        fields={str(key): str(value) for key, value in fields.items() if value is not None},
    )


async def handle_log_command(
    message: Message,
    orchestrator: DailyLogOrchestrator,
    forms_base_url: str,
    metrics: Dict[str, Any],
) -> None:
    _ACKNOWLEDGMENT.set(None)
    event = build_command_event(message, LOG_COMMAND)
    if event is None:
        increment(metrics, "telegram_ignored_total")
        return
    if message.chat.type != ChatType.PRIVATE:
        # Web App keyboard buttons are rejected outside private chats.
        increment(metrics, "daily_log_private_chat_redirects_total")
        log.info(
            "daily_log.command.redirected_to_private",
            extra={
                "request_id": ContextBridge.request_id(),
                "chat_id": message.chat.id,
                "chat_type": message.chat.type,
            },
        )
        await message.answer(orchestrator.replies.private_chat_only)
        return
    with ContextBridge.interaction():
        state = await orchestrator.dispatch(event, TelegramResponder(message, forms_base_url=forms_base_url))
    _count_state(metrics, state)


async def handle_web_app_data(
    message: Message,
    orchestrator: DailyLogOrchestrator,
    metrics: Dict[str, Any],
) -> None:
    _ACKNOWLEDGMENT.set(None)
    event = parse_web_app_submission(message)
    if event is None:
        increment(metrics, "telegram_ignored_total")
        telemetry_emit(
            "telegram.web_app_data.unrecognised",
            level="debug",
            request_id=ContextBridge.request_id(),
            payload={"chat_id": message.chat.id},
        )
        return
    if event.form_id == orchestrator.form_id:
        increment(metrics, "daily_log_submissions_total")
    with ContextBridge.interaction():
        state = await orchestrator.dispatch(event, TelegramResponder(message))
    _count_state(metrics, state)


async def handle_error(event: ErrorEvent, orchestrator: DailyLogOrchestrator, metrics: Dict[str, Any]) -> bool:
    increment(metrics, "telegram_handler_errors_total")
    message = event.update.message
    log.error(
        "telegram.handler.unhandled_error",
        exc_info=event.exception,
        extra={
            "request_id": ContextBridge.request_id(),
            "chat_id": message.chat.id if message is not None else "",
            "error": str(event.exception),
        },
    )
    acknowledgment = _ACKNOWLEDGMENT.get()
    _ACKNOWLEDGMENT.set(None)
    if message is None:
        return True
    try:
        if acknowledgment is not None:
            await acknowledgment.edit_text(orchestrator.replies.unexpected_error)
        else:
            await message.answer(orchestrator.replies.unexpected_error)
    except TelegramAPIError as exc:
        log.warning(
            "telegram.handler.error_reply_failed",
            extra={"request_id": ContextBridge.request_id(), "chat_id": message.chat.id, "error": str(exc)},
        )
    return True


def _count_state(metrics: Dict[str, Any], state: InteractionState) -> None:
    counter = _STATE_COUNTERS.get(state)
    if counter is not None:
        increment(metrics, counter)


def create_router() -> Router:
    """Build a fresh router; one per dispatcher since aiogram routers attach to a single parent."""

    router = Router(name="daily_log_router")
    router.message.register(handle_log_command, Command(LOG_COMMAND))
    router.message.register(handle_web_app_data, F.web_app_data)
    router.errors.register(handle_error)
    return router
