from __future__ import annotations

"""Static daily-log form and its declarative rendering."""

from dataclasses import dataclass
from typing import Tuple

from foundational_service.contracts.daily_log import FieldKind, FieldSpec, FormSpec

__all__ = [
    "DAILY_LOG_FORM",
    "DAILY_LOG_FORM_ID",
    "FormDescriptor",
    "FormRow",
    "render_form",
]

DAILY_LOG_FORM_ID = "daily_log"

DAILY_LOG_FORM = FormSpec(
    form_id=DAILY_LOG_FORM_ID,
    title="Daily Log",
    fields=(
        FieldSpec(
            identifier="priority1",
            label="Priority 1 (label - value - unit)",
            placeholder="e.g. Exercise - 30 - minutes",
        ),
        FieldSpec(
            identifier="priority2",
            label="Priority 2 (label - value - unit)",
            placeholder="e.g. Meditation - 15 - minutes",
        ),
        FieldSpec(
            identifier="priority3",
            label="Priority 3 (label - value - unit)",
            placeholder="e.g. Focus - 8 - effort",
        ),
        FieldSpec(
            identifier="satisfaction",
            label="Satisfaction (0-10)",
            placeholder="Rate your day from 0 to 10",
        ),
        FieldSpec(
            identifier="notes",
            label="Notes",
            kind=FieldKind.MULTI_LINE,
            placeholder="Anything worth remembering about today",
        ),
    ),
)


@dataclass(slots=True, frozen=True)
class FormRow:
    field_id: str
    label: str
    style: str
    required: bool
    placeholder: str = ""


@dataclass(slots=True, frozen=True)
class FormDescriptor:
    form_id: str
    title: str
    rows: Tuple[FormRow, ...]


_ROW_STYLES = {
    FieldKind.SINGLE_LINE: "short",
    FieldKind.MULTI_LINE: "paragraph",
}


def render_form(form_spec: FormSpec = DAILY_LOG_FORM) -> FormDescriptor:
    """One row per field, in form order. No input validation happens here."""

    return FormDescriptor(
        form_id=form_spec.form_id,
        title=form_spec.title,
        rows=tuple(
            FormRow(
                field_id=spec.identifier,
                label=spec.label,
                style=_ROW_STYLES[spec.kind],
                required=spec.required,
                placeholder=spec.placeholder,
            )
            for spec in form_spec.fields
        ),
    )
