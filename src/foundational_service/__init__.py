"""Foundational services: aiogram bootstrap, delivery client, shared contracts and counters."""

from __future__ import annotations

__all__ = [
    "bootstrap",
    "contracts",
    "diagnostics",
    "integrations",
]
