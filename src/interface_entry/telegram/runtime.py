"""
Runtime bootstrap for the Telegram channel.

Builds the long-lived objects of one process: the delivery client, the orchestrator, and the
aiogram bot/dispatcher pair, then binds the HTTP routes onto a FastAPI app.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from aiogram import Bot
from fastapi import FastAPI

from business_logic.daily_log import DailyLogOrchestrator, render_form
from business_service.daily_log import load_reply_texts
from foundational_service.bootstrap.aiogram import BootstrapState, bootstrap_aiogram
from foundational_service.integrations.log_endpoint_client import LogEndpointClient
from interface_entry.config.settings import AppSettings
from interface_entry.telegram.routes import register_routes
from project_utility.context import ContextBridge
from project_utility.secrets import mask_url

log = logging.getLogger(__name__)

WEBHOOK_PATH = "/telegram/webhook"
FORMS_PATH = "/forms"


@dataclass(slots=True)
class TelegramRuntime:
    state: BootstrapState
    delivery: LogEndpointClient
    orchestrator: DailyLogOrchestrator
    metrics: Dict[str, Any]

    async def aclose(self) -> None:
        await self.delivery.aclose()
        await self.state.bot.session.close()


def bootstrap_telegram_runtime(
    settings: AppSettings,
    *,
    bot: Optional[Bot] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> TelegramRuntime:
    ContextBridge.set_request_id()
    delivery = LogEndpointClient(
        settings.log_endpoint_url,
        timeout=settings.delivery_timeout_seconds,
        client=http_client,
    )
    orchestrator = DailyLogOrchestrator(delivery=delivery, replies=load_reply_texts())
    bootstrap_info = bootstrap_aiogram(
        token=settings.telegram_bot_token,
        forms_base_url=f"{settings.public_url}{FORMS_PATH}",
        orchestrator=orchestrator,
        command_scope_chat_id=settings.command_scope_chat_id,
        bot=bot,
    )
    log.info(
        "bootstrap.success",
        extra={
            "request_id": ContextBridge.request_id(),
            "router": bootstrap_info["router"] or "-",
            "log_endpoint": mask_url(settings.log_endpoint_url),
            "stages": bootstrap_info["timeline"],
        },
    )
    return TelegramRuntime(
        state=bootstrap_info["state"],
        delivery=delivery,
        orchestrator=orchestrator,
        metrics=bootstrap_info["metrics"],
    )


def bind_telegram_routes(
    app: FastAPI,
    runtime: TelegramRuntime,
    webhook_secret: str,
    *,
    handle_in_background: bool = True,
) -> None:
    descriptor = render_form(runtime.orchestrator.form_spec)
    register_routes(
        app,
        runtime.state.dispatcher,
        runtime.state.bot,
        WEBHOOK_PATH,
        webhook_secret,
        forms={descriptor.form_id: descriptor},
        handle_in_background=handle_in_background,
    )
    app.state.telegram = runtime.state
    app.state.telegram_runtime = runtime
