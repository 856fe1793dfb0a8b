"""
FastAPI routing for the Telegram webhook, the Web App form pages and the operator probes.
"""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional, Set

from aiogram import Bot, Dispatcher
from fastapi import APIRouter, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse, PlainTextResponse

from business_logic.daily_log import FormDescriptor
from foundational_service.bootstrap.webhook import behavior_webhook_request
from foundational_service.diagnostics.metrics import default_metrics_state, increment
from interface_entry.telegram.form_page import render_form_page
from project_utility.context import ContextBridge
from project_utility.tracing import trace_span

__all__ = ["WEBHOOK_LATENCY_BUCKETS", "register_routes", "render_metrics"]

log = logging.getLogger(__name__)


# Histogram bucket boundaries in milliseconds for webhook latency.
WEBHOOK_LATENCY_BUCKETS: List[float] = [100.0, 250.0, 500.0, 1000.0]


def _update_latency_histogram(store: Dict[str, Any], latency_ms: float) -> None:
    buckets = store.setdefault(
        "webhook_rtt_ms_buckets",
        {str(boundary): 0 for boundary in WEBHOOK_LATENCY_BUCKETS} | {"+Inf": 0},
    )
    for boundary in WEBHOOK_LATENCY_BUCKETS:
        if latency_ms <= boundary:
            key = str(boundary)
            buckets[key] = buckets.get(key, 0) + 1
            return
    buckets["+Inf"] = buckets.get("+Inf", 0) + 1


def render_metrics(metrics_state: Mapping[str, Any]) -> str:
    """Plain-text exposition; histogram buckets are cumulative."""

    lines = [
        f"{key} {value}"
        for key, value in metrics_state.items()
        if isinstance(value, (int, float)) and not key.startswith("webhook_rtt_ms")
    ]
    buckets = metrics_state.get("webhook_rtt_ms_buckets", {})
    cumulative = 0
    for boundary in WEBHOOK_LATENCY_BUCKETS:
        cumulative += buckets.get(str(boundary), 0)
        lines.append(f"webhook_rtt_ms_bucket{{le=\"{boundary/1000:.3f}\"}} {cumulative}")
    cumulative += buckets.get("+Inf", 0)
    lines.append(f"webhook_rtt_ms_bucket{{le=\"+Inf\"}} {cumulative}")
    lines.append(f"webhook_rtt_ms_sum {metrics_state.get('webhook_rtt_ms_sum', 0.0)}")
    lines.append(f"webhook_rtt_ms_count {metrics_state.get('webhook_rtt_ms_count', 0)}")
    return "\n".join(lines) + "\n"


def register_routes(
    app: FastAPI,
    dispatcher: Dispatcher,
    bot: Bot,
    webhook_path: str,
    webhook_secret: str,
    *,
    forms: Optional[Mapping[str, FormDescriptor]] = None,
    handle_in_background: bool = True,
) -> None:
    router = APIRouter()
    metrics_state = dispatcher.workflow_data.get("metrics")
    if metrics_state is None:
        metrics_state = default_metrics_state()
        dispatcher.workflow_data["metrics"] = metrics_state
    app.state.telegram_metrics = metrics_state
    form_pages: Dict[str, FormDescriptor] = dict(forms or {})
    pending: Set[asyncio.Task] = set()
    app.state.telegram_pending_updates = pending

    async def _feed(payload: Dict[str, Any], request_id: str) -> None:
        # Handler exceptions are already turned into replies by the router's error handler.
        with ContextBridge.interaction(request_id):
            try:
                await dispatcher.feed_raw_update(bot, payload)
            except Exception:
                log.exception("webhook.update.failed", extra={"request_id": request_id})

    @router.post(webhook_path)
    async def telegram_webhook(request: Request) -> Response:
        start = perf_counter()
        request_id = ContextBridge.request_id()
        async with trace_span("telegram.webhook", request_id=request_id) as span:
            try:
                behavior_webhook_request(request.headers, webhook_secret, metrics_state)
            except HTTPException as exc:
                span.set_attribute("status_code", exc.status_code)
                span.set_attribute("error", "invalid_signature")
                log.warning("webhook.signature.rejected", extra={"request_id": request_id})
                raise
            payload = await request.json()
            log.debug(
                "webhook.update.received",
                extra={
                    "request_id": request_id,
                    "update_type": next((key for key in payload if key != "update_id"), ""),
                    "has_web_app_data": "web_app_data" in (payload.get("message") or {}),
                },
            )

            # Telegram only needs a fast 200; the interaction itself may outlive the request.
            if handle_in_background:
                task = asyncio.create_task(_feed(payload, request_id), name=f"telegram-update-{request_id}")
                pending.add(task)
                task.add_done_callback(pending.discard)
            else:
                await _feed(payload, request_id)

            latency_ms = round((perf_counter() - start) * 1000, 3)
            increment(metrics_state, "telegram_updates_total")
            increment(metrics_state, "webhook_rtt_ms_sum", latency_ms)
            increment(metrics_state, "webhook_rtt_ms_count")
            metrics_state["last_webhook_latency_ms"] = latency_ms
            _update_latency_histogram(metrics_state, latency_ms)
            span.set_attribute("status_code", status.HTTP_200_OK)
            span.set_attribute("latency_ms", latency_ms)
        log.info("webhook.accepted", extra={"request_id": request_id, "latency_ms": latency_ms})
        return Response(status_code=status.HTTP_200_OK)

    @router.get("/forms/{form_id}", response_class=HTMLResponse)
    async def form_page(form_id: str) -> HTMLResponse:
        descriptor = form_pages.get(form_id)
        if descriptor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="form not found")
        return HTMLResponse(render_form_page(descriptor))

    @router.get("/metrics")
    async def metrics() -> Response:
        return PlainTextResponse(render_metrics(metrics_state))

    @router.get("/healthz")
    async def healthz() -> Dict[str, object]:
        return {
            "status": "ok",
            "forms": sorted(form_pages),
            "pending_updates": len(pending),
        }

    app.include_router(router)
