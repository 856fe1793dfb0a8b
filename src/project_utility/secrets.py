from __future__ import annotations

"""Helpers for masking sensitive values before they reach logs."""

from typing import Optional
from urllib.parse import urlsplit, urlunsplit

__all__ = [
    "mask_secret",
    "mask_url",
]


def mask_secret(value: Optional[str], *, head: int = 6, tail: int = 4) -> str:
    if not value:
        return ""
    if len(value) <= head + tail:
        return "*" * len(value)
    return f"{value[:head]}****{value[-tail:]}"


def mask_url(value: Optional[str]) -> str:
    """Keep scheme and host of an endpoint URL, mask its path (script ids act as credentials)."""

    if not value:
        return ""
    parts = urlsplit(value)
    if not parts.netloc:
        return mask_secret(value)
    path = mask_secret(parts.path, head=4, tail=4) if parts.path else ""
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))
