from __future__ import annotations

"""Business Logic layer entrypoints."""

from business_logic.daily_log import DailyLogOrchestrator

__all__ = [
    "DailyLogOrchestrator",
]
