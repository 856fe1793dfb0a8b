"""Process-wide counters exposed on `/metrics`."""

from __future__ import annotations

from typing import Any, MutableMapping, TypedDict

__all__ = ["MetricsSnapshot", "default_metrics_state", "increment"]


class MetricsSnapshot(TypedDict, total=False):
    telegram_updates_total: int
    telegram_ignored_total: int
    telegram_handler_errors_total: int
    webhook_signature_failures: int
    webhook_rtt_ms_sum: float
    webhook_rtt_ms_count: int
    last_webhook_latency_ms: float
    daily_log_forms_presented_total: int
    daily_log_private_chat_redirects_total: int
    daily_log_submissions_total: int
    daily_log_delivered_total: int
    daily_log_rejected_total: int
    daily_log_transport_failures_total: int


def default_metrics_state() -> MetricsSnapshot:
    """Return a fresh metrics snapshot with zeroed counters."""

    return MetricsSnapshot(
        telegram_updates_total=0,
        telegram_ignored_total=0,
        telegram_handler_errors_total=0,
        webhook_signature_failures=0,
        webhook_rtt_ms_sum=0.0,
        webhook_rtt_ms_count=0,
        last_webhook_latency_ms=0.0,
        daily_log_forms_presented_total=0,
        daily_log_private_chat_redirects_total=0,
        daily_log_submissions_total=0,
        daily_log_delivered_total=0,
        daily_log_rejected_total=0,
        daily_log_transport_failures_total=0,
    )


def increment(store: MutableMapping[str, Any], key: str, amount: float = 1) -> None:
    store[key] = store.get(key, 0) + amount
