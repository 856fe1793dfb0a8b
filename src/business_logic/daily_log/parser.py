from __future__ import annotations

"""Field parser: raw form text into the delivery-ready record.

Parsing is permissive on purpose: any malformed or missing input degrades to empty/default values
instead of raising, because the form is best-effort rather than a validated contract.
"""

from typing import Optional

from foundational_service.contracts.daily_log import (
    DEFAULT_UNIT,
    NORMALIZED_KEYS,
    PRIORITY_FIELDS,
    NormalizedRecord,
    PriorityEntry,
    RawSubmission,
)

__all__ = ["PRIORITY_DELIMITER", "build_normalized_record", "parse_priority"]

PRIORITY_DELIMITER = "-"


def parse_priority(raw: Optional[str]) -> PriorityEntry:
    """Parse a ``label - value - unit`` string; segments past the third are ignored."""

    segments = [segment.strip() for segment in (raw or "").split(PRIORITY_DELIMITER)]
    return PriorityEntry(
        label=segments[0] if len(segments) > 0 else "",
        value=segments[1] if len(segments) > 1 else "",
        unit=segments[2] if len(segments) > 2 else DEFAULT_UNIT,
    )


def build_normalized_record(raw_submission: RawSubmission) -> NormalizedRecord:
    record: NormalizedRecord = dict.fromkeys(NORMALIZED_KEYS, "")
    for name in PRIORITY_FIELDS:
        entry = parse_priority(raw_submission.get(name))
        record[f"{name}_label"] = entry.label
        record[f"{name}_value"] = entry.value
        record[f"{name}_unit"] = entry.unit
    # Legacy column kept for the endpoint's sheet layout; never populated.
    record["experiment"] = ""
    record["satisfaction"] = raw_submission.get("satisfaction") or ""
    record["notes"] = raw_submission.get("notes") or ""
    return record
