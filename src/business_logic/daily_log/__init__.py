from __future__ import annotations

from business_logic.daily_log.form import DAILY_LOG_FORM, DAILY_LOG_FORM_ID, FormDescriptor, FormRow, render_form
from business_logic.daily_log.models import CommandEvent, InteractionEvent, InteractionState, SubmissionEvent
from business_logic.daily_log.orchestrator import DailyLogOrchestrator, DeliveryPort, InteractionResponder
from business_logic.daily_log.parser import build_normalized_record, parse_priority

__all__ = [
    "CommandEvent",
    "DAILY_LOG_FORM",
    "DAILY_LOG_FORM_ID",
    "DailyLogOrchestrator",
    "DeliveryPort",
    "FormDescriptor",
    "FormRow",
    "InteractionEvent",
    "InteractionResponder",
    "InteractionState",
    "SubmissionEvent",
    "build_normalized_record",
    "parse_priority",
    "render_form",
]
