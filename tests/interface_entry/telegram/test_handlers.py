from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from aiogram.exceptions import TelegramAPIError
from aiogram.types import ReplyKeyboardMarkup, User, WebAppData

from business_logic.daily_log import DailyLogOrchestrator, render_form
from foundational_service.contracts.daily_log import DeliveryEnvelope, DeliveryOutcome
from foundational_service.diagnostics.metrics import default_metrics_state
from interface_entry.telegram.handlers import (
    TelegramResponder,
    build_form_keyboard,
    create_router,
    handle_error,
    handle_log_command,
    handle_web_app_data,
    parse_web_app_submission,
)

FORMS_BASE_URL = "https://relay.example.com/forms"


class _SentMessage:
    def __init__(self, text: str, options: Dict[str, Any], *, fail_edits: int = 0) -> None:
        self.text = text
        self.options = options
        self.edits: List[str] = []
        self.fail_edits = fail_edits

    async def edit_text(self, text: str, **_: Any) -> "_SentMessage":
        if self.fail_edits:
            self.fail_edits -= 1
            raise TelegramAPIError(method=None, message="message can't be edited")  # type: ignore[arg-type]
        self.edits.append(text)
        return self


class _FakeMessage:
    def __init__(
        self,
        *,
        user: Optional[User] = None,
        web_app_data: Optional[WebAppData] = None,
        chat_id: int = 7,
        chat_type: str = "private",
        fail_answer: bool = False,
        fail_edits: int = 0,
    ) -> None:
        self.from_user = user
        self.chat = SimpleNamespace(id=chat_id, type=chat_type)
        self.web_app_data = web_app_data
        self.sent: List[_SentMessage] = []
        self.fail_answer = fail_answer
        self.fail_edits = fail_edits

    async def answer(self, text: str, **options: Any) -> _SentMessage:
        if self.fail_answer:
            raise TelegramAPIError(method=None, message="chat not found")  # type: ignore[arg-type]
        message = _SentMessage(text, options, fail_edits=self.fail_edits)
        self.sent.append(message)
        return message


class _FakeDelivery:
    def __init__(self, outcome: DeliveryOutcome) -> None:
        self.outcome = outcome
        self.envelopes: List[DeliveryEnvelope] = []

    async def deliver(self, envelope: DeliveryEnvelope, *, endpoint: Optional[str] = None) -> DeliveryOutcome:
        self.envelopes.append(envelope)
        return self.outcome


ADA = User(id=7, is_bot=False, first_name="Ada", last_name="Lovelace", username="ada")


def _web_app_data(payload: Any) -> WebAppData:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return WebAppData(data=data, button_text="Daily Log")


def test_parse_web_app_submission_builds_submission_event() -> None:
    message = _FakeMessage(
        user=ADA,
        web_app_data=_web_app_data({"form_id": "daily_log", "fields": {"priority1": "Read - 1 - book", "notes": None}}),
    )

    event = parse_web_app_submission(message)  # type: ignore[arg-type]

    assert event is not None
    assert event.user_id == "7"
    assert event.user_tag == "@ada"
    assert event.form_id == "daily_log"
    assert dict(event.fields) == {"priority1": "Read - 1 - book"}


def test_parse_web_app_submission_falls_back_to_full_name() -> None:
    user = User(id=8, is_bot=False, first_name="Grace", last_name="Hopper")
    message = _FakeMessage(user=user, web_app_data=_web_app_data({"form_id": "daily_log", "fields": {}}))

    event = parse_web_app_submission(message)  # type: ignore[arg-type]

    assert event is not None
    assert event.user_tag == "Grace Hopper"


@pytest.mark.parametrize(
    "payload",
    ["not json", "[1, 2]", {"fields": {}}, {"form_id": "daily_log", "fields": "oops"}, {"form_id": 3, "fields": {}}],
)
def test_parse_web_app_submission_ignores_undecodable_payloads(payload: Any) -> None:
    message = _FakeMessage(user=ADA, web_app_data=_web_app_data(payload))

    assert parse_web_app_submission(message) is None  # type: ignore[arg-type]


def test_build_form_keyboard_opens_form_page_as_web_app() -> None:
    keyboard = build_form_keyboard(render_form(), FORMS_BASE_URL + "/")

    assert isinstance(keyboard, ReplyKeyboardMarkup)
    [[button]] = keyboard.keyboard
    assert button.text == "Daily Log"
    assert button.web_app is not None
    assert button.web_app.url == "https://relay.example.com/forms/daily_log"


@pytest.mark.asyncio
async def test_responder_edits_the_acknowledgment_in_place() -> None:
    message = _FakeMessage(user=ADA)
    responder = TelegramResponder(message)  # type: ignore[arg-type]

    await responder.acknowledge("processing")
    await responder.finalize("done")

    [ack] = message.sent
    assert ack.text == "processing"
    assert ack.edits == ["done"]


@pytest.mark.asyncio
async def test_responder_finalize_without_ack_sends_a_new_message() -> None:
    message = _FakeMessage(user=ADA)

    await TelegramResponder(message).finalize("done")  # type: ignore[arg-type]

    assert [sent.text for sent in message.sent] == ["done"]


@pytest.mark.asyncio
async def test_log_command_presents_form_keyboard_and_counts_it() -> None:
    message = _FakeMessage(user=ADA)
    metrics = default_metrics_state()
    orchestrator = DailyLogOrchestrator(delivery=_FakeDelivery(DeliveryOutcome.success()))

    await handle_log_command(message, orchestrator, FORMS_BASE_URL, metrics)  # type: ignore[arg-type]

    [prompt] = message.sent
    assert "Daily Log" in prompt.text
    assert isinstance(prompt.options["reply_markup"], ReplyKeyboardMarkup)
    assert metrics["daily_log_forms_presented_total"] == 1


@pytest.mark.asyncio
async def test_web_app_submission_is_delivered_and_acknowledgment_is_edited() -> None:
    delivery = _FakeDelivery(DeliveryOutcome.success(status_code=200))
    orchestrator = DailyLogOrchestrator(delivery=delivery)
    metrics = default_metrics_state()
    message = _FakeMessage(
        user=ADA,
        web_app_data=_web_app_data({"form_id": "daily_log", "fields": {"priority1": "Deploy - 3 - tasks"}}),
    )

    await handle_web_app_data(message, orchestrator, metrics)  # type: ignore[arg-type]

    [ack] = message.sent
    assert ack.text == orchestrator.replies.processing
    assert ack.edits == [orchestrator.replies.success]
    [envelope] = delivery.envelopes
    assert envelope.to_payload()["userTag"] == "@ada"
    assert envelope.record["priority1_label"] == "Deploy"
    assert metrics["daily_log_submissions_total"] == 1
    assert metrics["daily_log_delivered_total"] == 1


@pytest.mark.asyncio
async def test_web_app_submission_for_foreign_form_gets_no_reply() -> None:
    delivery = _FakeDelivery(DeliveryOutcome.success())
    metrics = default_metrics_state()
    message = _FakeMessage(user=ADA, web_app_data=_web_app_data({"form_id": "other", "fields": {}}))

    await handle_web_app_data(message, DailyLogOrchestrator(delivery=delivery), metrics)  # type: ignore[arg-type]

    assert message.sent == []
    assert delivery.envelopes == []
    assert metrics["daily_log_submissions_total"] == 0
    assert metrics["telegram_ignored_total"] == 1


@pytest.mark.asyncio
async def test_undecodable_web_app_data_is_ignored() -> None:
    metrics = default_metrics_state()
    message = _FakeMessage(user=ADA, web_app_data=_web_app_data("{broken"))
    orchestrator = DailyLogOrchestrator(delivery=_FakeDelivery(DeliveryOutcome.success()))

    await handle_web_app_data(message, orchestrator, metrics)  # type: ignore[arg-type]

    assert message.sent == []
    assert metrics["telegram_ignored_total"] == 1
    assert metrics["daily_log_submissions_total"] == 0


@pytest.mark.asyncio
async def test_error_handler_replies_with_generic_text() -> None:
    message = _FakeMessage(user=ADA)
    metrics = default_metrics_state()
    orchestrator = DailyLogOrchestrator(delivery=_FakeDelivery(DeliveryOutcome.success()))
    event = SimpleNamespace(update=SimpleNamespace(message=message), exception=RuntimeError("boom"))

    handled = await handle_error(event, orchestrator, metrics)  # type: ignore[arg-type]

    assert handled is True
    assert [sent.text for sent in message.sent] == [orchestrator.replies.unexpected_error]
    assert metrics["telegram_handler_errors_total"] == 1


@pytest.mark.asyncio
async def test_error_handler_survives_failed_error_reply() -> None:
    message = _FakeMessage(user=ADA, fail_answer=True)
    orchestrator = DailyLogOrchestrator(delivery=_FakeDelivery(DeliveryOutcome.success()))
    event = SimpleNamespace(update=SimpleNamespace(message=message), exception=RuntimeError("boom"))

    assert await handle_error(event, orchestrator, default_metrics_state()) is True  # type: ignore[arg-type]


def test_create_router_returns_independent_routers() -> None:
    first = create_router()
    second = create_router()

    assert first is not second
    assert len(first.message.handlers) == 2
    assert len(first.errors.handlers) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("chat_type", ["group", "supergroup"])
async def test_log_command_in_group_redirects_to_private_chat(chat_type: str) -> None:
    message = _FakeMessage(user=ADA, chat_id=-100200300, chat_type=chat_type)
    metrics = default_metrics_state()
    orchestrator = DailyLogOrchestrator(delivery=_FakeDelivery(DeliveryOutcome.success()))

    await handle_log_command(message, orchestrator, FORMS_BASE_URL, metrics)  # type: ignore[arg-type]

    [reply] = message.sent
    assert reply.text == orchestrator.replies.private_chat_only
    assert "reply_markup" not in reply.options
    assert metrics["daily_log_private_chat_redirects_total"] == 1
    assert metrics["daily_log_forms_presented_total"] == 0


@pytest.mark.asyncio
async def test_error_after_acknowledgment_edits_it_instead_of_replying_again() -> None:
    metrics = default_metrics_state()
    orchestrator = DailyLogOrchestrator(delivery=_FakeDelivery(DeliveryOutcome.success()))
    message = _FakeMessage(
        user=ADA,
        web_app_data=_web_app_data({"form_id": "daily_log", "fields": {}}),
        fail_edits=1,
    )

    with pytest.raises(TelegramAPIError):
        await handle_web_app_data(message, orchestrator, metrics)  # type: ignore[arg-type]
    event = SimpleNamespace(update=SimpleNamespace(message=message), exception=RuntimeError("edit failed"))
    await handle_error(event, orchestrator, metrics)  # type: ignore[arg-type]

    [ack] = message.sent
    assert ack.text == orchestrator.replies.processing
    assert ack.edits == [orchestrator.replies.unexpected_error]


@pytest.mark.asyncio
async def test_error_without_acknowledgment_sends_a_new_message() -> None:
    orchestrator = DailyLogOrchestrator(delivery=_FakeDelivery(DeliveryOutcome.success()))
    first = _FakeMessage(user=ADA, web_app_data=_web_app_data({"form_id": "daily_log", "fields": {}}))
    await handle_web_app_data(first, orchestrator, default_metrics_state())  # type: ignore[arg-type]

    second = _FakeMessage(user=ADA)
    await handle_log_command(second, orchestrator, FORMS_BASE_URL, default_metrics_state())  # type: ignore[arg-type]
    event = SimpleNamespace(update=SimpleNamespace(message=second), exception=RuntimeError("boom"))
    await handle_error(event, orchestrator, default_metrics_state())  # type: ignore[arg-type]

    assert first.sent[0].edits == [orchestrator.replies.success]
    assert [sent.text for sent in second.sent][-1] == orchestrator.replies.unexpected_error
