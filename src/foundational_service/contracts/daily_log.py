from __future__ import annotations

"""Typed contracts shared by the daily log pipeline.

Everything here is created and discarded within a single interaction; nothing is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

__all__ = [
    "DEFAULT_UNIT",
    "LOG_COMMAND",
    "LOG_COMMAND_DESCRIPTION",
    "NORMALIZED_KEYS",
    "PRIORITY_FIELDS",
    "DeliveryEnvelope",
    "DeliveryOutcome",
    "FieldKind",
    "FieldSpec",
    "FormSpec",
    "NormalizedRecord",
    "OutcomeKind",
    "PriorityEntry",
    "RawSubmission",
]

LOG_COMMAND = "log"
LOG_COMMAND_DESCRIPTION = "Log your daily metrics"

DEFAULT_UNIT = "effort"
PRIORITY_FIELDS: Tuple[str, ...] = ("priority1", "priority2", "priority3")

NORMALIZED_KEYS: Tuple[str, ...] = (
    *(f"{name}_{part}" for name in PRIORITY_FIELDS for part in ("label", "value", "unit")),
    "experiment",
    "satisfaction",
    "notes",
)

RawSubmission = Mapping[str, Optional[str]]
NormalizedRecord = Dict[str, str]


class FieldKind(str, Enum):
    SINGLE_LINE = "single_line"
    MULTI_LINE = "multi_line"


@dataclass(slots=True, frozen=True)
class FieldSpec:
    identifier: str
    label: str
    kind: FieldKind = FieldKind.SINGLE_LINE
    required: bool = False
    placeholder: str = ""


@dataclass(slots=True, frozen=True)
class FormSpec:
    form_id: str
    title: str
    fields: Tuple[FieldSpec, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for spec in self.fields:
            if spec.identifier in seen:
                raise ValueError(f"duplicate field identifier '{spec.identifier}' in form '{self.form_id}'")
            seen.add(spec.identifier)


@dataclass(slots=True, frozen=True)
class PriorityEntry:
    label: str = ""
    value: str = ""
    unit: str = DEFAULT_UNIT


@dataclass(slots=True, frozen=True)
class DeliveryEnvelope:
    submitter_id: str
    submitter_display_name: str
    record: Mapping[str, str]

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape expected by the logging endpoint."""

        return {
            "userId": self.submitter_id,
            "userTag": self.submitter_display_name,
            "data": dict(self.record),
        }


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    ENDPOINT_REJECTED = "endpoint_rejected"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(slots=True, frozen=True)
class DeliveryOutcome:
    """Three-way delivery result; `kind` is the tag, the rest is diagnostics."""

    kind: OutcomeKind
    status_code: Optional[int] = None
    error: str = ""
    message: str = ""
    milestone: str = ""
    body: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        *,
        status_code: Optional[int] = None,
        message: str = "",
        milestone: str = "",
        body: Optional[Mapping[str, Any]] = None,
    ) -> "DeliveryOutcome":
        return cls(
            kind=OutcomeKind.SUCCESS,
            status_code=status_code,
            message=message,
            milestone=milestone,
            body=dict(body or {}),
        )

    @classmethod
    def rejected(
        cls,
        *,
        status_code: Optional[int] = None,
        error: str = "",
        body: Optional[Mapping[str, Any]] = None,
    ) -> "DeliveryOutcome":
        return cls(
            kind=OutcomeKind.ENDPOINT_REJECTED,
            status_code=status_code,
            error=error,
            body=dict(body or {}),
        )

    @classmethod
    def transport_failure(cls, *, error: str, status_code: Optional[int] = None) -> "DeliveryOutcome":
        return cls(kind=OutcomeKind.TRANSPORT_FAILURE, status_code=status_code, error=error)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS
