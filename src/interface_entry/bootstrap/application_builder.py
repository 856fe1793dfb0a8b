from __future__ import annotations

import logging
from typing import Optional

import httpx
from aiogram import Bot
from dotenv import load_dotenv  # type: ignore[import]
from fastapi import FastAPI, HTTPException

from interface_entry.bootstrap.runtime_lifespan import (
    TelegramWebhookUnavailableError,
    configure_runtime_lifespan,
)
from interface_entry.config.settings import AppSettings, get_settings
from interface_entry.http.errors import http_exception_handler, unhandled_exception_handler
from interface_entry.http.middleware import FastAPIRequestIDMiddleware, LoggingMiddleware
from interface_entry.telegram.runtime import bind_telegram_routes, bootstrap_telegram_runtime
from project_utility.config.paths import get_repo_root
from project_utility.logging import configure_logging
from project_utility.secrets import mask_url

REPO_ROOT = get_repo_root()

load_dotenv(dotenv_path=str(REPO_ROOT / ".env"))


log = logging.getLogger("interface_entry.app")

__all__ = ["TelegramWebhookUnavailableError", "configure_application"]


def configure_application(
    app: FastAPI,
    *,
    settings: Optional[AppSettings] = None,
    bot: Optional[Bot] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    register_webhook: bool = True,
    handle_in_background: bool = True,
) -> FastAPI:
    configure_logging()
    settings = settings or get_settings()
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(FastAPIRequestIDMiddleware)

    log.info(
        "startup.step",
        extra={
            "step": "bootstrap_aiogram.start",
            "public_url": settings.public_url,
            "log_endpoint": mask_url(settings.log_endpoint_url),
        },
    )
    runtime = bootstrap_telegram_runtime(settings, bot=bot, http_client=http_client)
    bind_telegram_routes(app, runtime, settings.webhook_secret, handle_in_background=handle_in_background)
    app.state.public_url = settings.public_url
    configure_runtime_lifespan(
        app,
        runtime=runtime,
        public_url=settings.public_url,
        webhook_secret=settings.webhook_secret,
        register_webhook=register_webhook,
    )
    log.info("startup.step", extra={"step": "bootstrap.complete", "webhook_registration": register_webhook})
    return app
