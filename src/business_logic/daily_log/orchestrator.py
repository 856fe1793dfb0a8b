from __future__ import annotations

"""Interaction orchestrator for the daily-log pipeline.

Owns one interaction from inbound event to terminal reply:

    IDLE --command--> FORM_PRESENTED
    IDLE --submission (own form id)--> ACKNOWLEDGING --> DELIVERING --> REPLIED_{OK,REJECTED,FAILED}
    IDLE --anything else--> IGNORED

The orchestrator is platform-neutral: it only sees `InteractionEvent`s and talks back through an
`InteractionResponder`. It keeps no state between invocations, so concurrent interactions never
interfere with each other.
"""

import logging
from typing import Mapping, Optional, Protocol

from business_logic.daily_log.form import DAILY_LOG_FORM, FormDescriptor, render_form
from business_logic.daily_log.models import CommandEvent, InteractionEvent, InteractionState, SubmissionEvent
from business_logic.daily_log.parser import build_normalized_record
from business_service.daily_log.config import ReplyTexts
from foundational_service.contracts.daily_log import (
    LOG_COMMAND,
    DeliveryEnvelope,
    DeliveryOutcome,
    FormSpec,
    OutcomeKind,
)
from project_utility.context import ContextBridge
from project_utility.telemetry import emit as telemetry_emit

__all__ = ["DailyLogOrchestrator", "DeliveryPort", "InteractionResponder"]

log = logging.getLogger("business_logic.daily_log.orchestrator")


class DeliveryPort(Protocol):
    async def deliver(self, envelope: DeliveryEnvelope, *, endpoint: Optional[str] = None) -> DeliveryOutcome:
        ...


class InteractionResponder(Protocol):
    async def present_form(self, form: FormDescriptor, *, prompt: str) -> None:
        ...

    async def acknowledge(self, text: str) -> None:
        ...

    async def finalize(self, text: str) -> None:
        ...

    async def announce(self, text: str) -> None:
        ...


_OUTCOME_STATES: Mapping[OutcomeKind, InteractionState] = {
    OutcomeKind.SUCCESS: InteractionState.REPLIED_OK,
    OutcomeKind.ENDPOINT_REJECTED: InteractionState.REPLIED_REJECTED,
    OutcomeKind.TRANSPORT_FAILURE: InteractionState.REPLIED_FAILED,
}


class DailyLogOrchestrator:
    def __init__(
        self,
        *,
        delivery: DeliveryPort,
        form_spec: FormSpec = DAILY_LOG_FORM,
        replies: Optional[ReplyTexts] = None,
        command: str = LOG_COMMAND,
    ) -> None:
        self._delivery = delivery
        self._form_spec = form_spec
        self._replies = replies or ReplyTexts()
        self._command = command

    @property
    def form_spec(self) -> FormSpec:
        return self._form_spec

    @property
    def form_id(self) -> str:
        return self._form_spec.form_id

    @property
    def replies(self) -> ReplyTexts:
        return self._replies

    async def dispatch(self, event: InteractionEvent, responder: InteractionResponder) -> InteractionState:
        if isinstance(event, CommandEvent):
            return await self.handle_command(event, responder)
        if isinstance(event, SubmissionEvent):
            return await self.handle_submission(event, responder)
        return self._ignore(event, reason="unsupported_event")

    async def handle_command(self, event: CommandEvent, responder: InteractionResponder) -> InteractionState:
        if event.command != self._command:
            return self._ignore(event, reason="unknown_command")
        descriptor = render_form(self._form_spec)
        await responder.present_form(descriptor, prompt=self._replies.prompt_for(descriptor.title))
        return self._transition(InteractionState.FORM_PRESENTED, event)

    async def handle_submission(self, event: SubmissionEvent, responder: InteractionResponder) -> InteractionState:
        if event.form_id != self._form_spec.form_id:
            return self._ignore(event, reason="foreign_form", form_id=event.form_id)

        # Acknowledgment goes out before any network I/O.
        self._transition(InteractionState.ACKNOWLEDGING, event)
        await responder.acknowledge(self._replies.processing)

        envelope = DeliveryEnvelope(
            submitter_id=event.user_id,
            submitter_display_name=event.user_tag,
            record=build_normalized_record(event.fields),
        )
        self._transition(InteractionState.DELIVERING, event)
        outcome = await self._deliver(envelope)

        await responder.finalize(self.reply_for(outcome))
        if outcome.ok and outcome.milestone:
            await self._announce(responder, outcome.milestone)
        return self._transition(
            _OUTCOME_STATES[outcome.kind],
            event,
            outcome=outcome.kind.value,
            status_code=outcome.status_code,
            error=outcome.error,
        )

    def reply_for(self, outcome: DeliveryOutcome) -> str:
        if outcome.kind is OutcomeKind.SUCCESS:
            return outcome.message or self._replies.success
        if outcome.kind is OutcomeKind.ENDPOINT_REJECTED:
            return self._replies.rejected
        return self._replies.transport_failure

    async def _deliver(self, envelope: DeliveryEnvelope) -> DeliveryOutcome:
        try:
            return await self._delivery.deliver(envelope)
        except Exception as exc:
            log.exception(
                "daily_log.delivery.unexpected_error",
                extra={"request_id": ContextBridge.request_id(), "user_id": envelope.submitter_id},
            )
            return DeliveryOutcome.transport_failure(error=f"{type(exc).__name__}: {exc}")

    async def _announce(self, responder: InteractionResponder, text: str) -> None:
        # The entry is already stored at this point.
        try:
            await responder.announce(text)
        except Exception as exc:
            log.warning(
                "daily_log.milestone.announce_failed",
                extra={"request_id": ContextBridge.request_id(), "error": str(exc)},
            )

    def _ignore(self, event: InteractionEvent, *, reason: str, form_id: str = "") -> InteractionState:
        return self._transition(InteractionState.IGNORED, event, level="debug", reason=reason, foreign_form_id=form_id)

    def _transition(
        self,
        state: InteractionState,
        event: InteractionEvent,
        *,
        level: str = "info",
        **details: object,
    ) -> InteractionState:
        telemetry_emit(
            "daily_log.interaction",
            level=level,
            request_id=ContextBridge.request_id(),
            form_id=self._form_spec.form_id,
            state=state.value,
            payload={
                "event": type(event).__name__,
                "user_id": event.user_id,
                **{key: value for key, value in details.items() if value not in (None, "")},
            },
        )
        return state
