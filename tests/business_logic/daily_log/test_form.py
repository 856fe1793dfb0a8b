from __future__ import annotations

import pytest

from business_logic.daily_log.form import DAILY_LOG_FORM, DAILY_LOG_FORM_ID, render_form
from foundational_service.contracts.daily_log import FieldKind, FieldSpec, FormSpec


def test_render_form_emits_one_row_per_field_in_order() -> None:
    descriptor = render_form()

    assert descriptor.form_id == DAILY_LOG_FORM_ID
    assert descriptor.title == "Daily Log"
    assert [row.field_id for row in descriptor.rows] == [
        "priority1",
        "priority2",
        "priority3",
        "satisfaction",
        "notes",
    ]


def test_render_form_maps_field_kinds_to_row_styles() -> None:
    rows = {row.field_id: row for row in render_form().rows}

    assert rows["priority1"].style == "short"
    assert rows["notes"].style == "paragraph"
    assert not any(row.required for row in rows.values())
    assert rows["priority1"].placeholder


def test_render_form_is_deterministic() -> None:
    assert render_form(DAILY_LOG_FORM) == render_form(DAILY_LOG_FORM)


def test_render_form_handles_custom_form_specs() -> None:
    spec = FormSpec(
        form_id="retro",
        title="Retro",
        fields=(FieldSpec(identifier="went_well", label="Went well", kind=FieldKind.MULTI_LINE, required=True),),
    )

    descriptor = render_form(spec)

    assert descriptor.form_id == "retro"
    assert descriptor.rows[0].required is True
    assert descriptor.rows[0].style == "paragraph"


def test_form_spec_rejects_duplicate_identifiers() -> None:
    with pytest.raises(ValueError, match="duplicate field identifier"):
        FormSpec(
            form_id="broken",
            title="Broken",
            fields=(FieldSpec(identifier="a", label="A"), FieldSpec(identifier="a", label="A again")),
        )
