"""Webhook utilities for foundational services."""

from __future__ import annotations

import asyncio
import hmac
import logging
from typing import Any, Dict, Mapping, MutableMapping, Optional, TypedDict

from fastapi import HTTPException
from starlette import status

from foundational_service.diagnostics.metrics import increment
from project_utility.context import ContextBridge

__all__ = [
    "SECRET_HEADER",
    "WebhookResponse",
    "behavior_webhook_request",
    "behavior_webhook_startup",
    "call_register_webhook",
    "call_verify_signature",
]

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

log = logging.getLogger("foundational_service.bootstrap.webhook")


class WebhookResponse(TypedDict, total=False):
    status: str
    request_id: str
    telemetry: Dict[str, Any]


def call_verify_signature(headers: Mapping[str, str], secret: str) -> bool:
    """Compare the webhook header token with the configured secret."""

    provided = (headers.get(SECRET_HEADER) or "").strip()
    expected = (secret or "").strip()
    return bool(expected) and hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def behavior_webhook_request(
    headers: Mapping[str, str],
    secret: str,
    metrics_store: Optional[MutableMapping[str, Any]] = None,
) -> WebhookResponse:
    request_id = headers.get("X-Request-ID") or ContextBridge.request_id()
    if not call_verify_signature(headers, secret):
        if metrics_store is not None:
            increment(metrics_store, "webhook_signature_failures")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="invalid webhook signature")
    return {
        "status": "accepted",
        "request_id": request_id,
        "telemetry": {"signature_status": "accepted"},
    }


async def call_register_webhook(
    bot: Any,
    url: str,
    secret: str,
    *,
    drop_pending_updates: bool = False,
    allowed_updates: Optional[list[str]] = None,
) -> Dict[str, Any]:
    if bot is None or not hasattr(bot, "set_webhook"):
        raise RuntimeError("bot_object_invalid")
    result = await bot.set_webhook(
        url=url,
        secret_token=secret,
        drop_pending_updates=drop_pending_updates,
        allowed_updates=allowed_updates or ["message"],
    )
    return {
        "status": "ok" if bool(result) else "retry",
        "webhook_url": url,
        "drop_pending_updates": drop_pending_updates,
    }


async def behavior_webhook_startup(
    bot: Any,
    webhook_url: str,
    secret: str,
    *,
    retries: int = 2,
    retry_delay: float = 1.0,
    drop_pending_updates: bool = False,
) -> Dict[str, Any]:
    """Register the Telegram webhook, retrying a bounded number of times."""

    if not webhook_url.startswith("https://"):
        raise RuntimeError("webhook_url_must_be_https")
    if not secret:
        raise RuntimeError("webhook_secret_missing")

    stages: list[Dict[str, Any]] = []
    attempt = 0
    while attempt < max(1, retries):
        attempt += 1
        stage: Dict[str, Any] = {"stage": "register_webhook", "attempt": attempt, "url": webhook_url}
        try:
            result = await call_register_webhook(
                bot,
                webhook_url,
                secret,
                drop_pending_updates=drop_pending_updates,
            )
        except Exception as exc:
            stage.update(status="error", error=str(exc))
            stages.append(stage)
            log.warning(
                "webhook.register.retry",
                extra={"webhook_url": webhook_url, "step": f"attempt_{attempt}", "error": str(exc)},
            )
            if attempt >= retries:
                raise RuntimeError("webhook_register_failed") from exc
            await asyncio.sleep(retry_delay)
            continue

        stage.update(status=result["status"])
        stages.append(stage)
        if result["status"] == "ok":
            break
        if attempt >= retries:
            raise RuntimeError("webhook_register_failed")
        await asyncio.sleep(retry_delay)

    return {
        "status": "ok",
        "stages": stages,
        "request_id": ContextBridge.request_id(),
    }
