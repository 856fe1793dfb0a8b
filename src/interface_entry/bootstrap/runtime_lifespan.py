from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from foundational_service.bootstrap.commands import register_commands
from foundational_service.bootstrap.webhook import behavior_webhook_startup
from interface_entry.telegram.runtime import WEBHOOK_PATH, TelegramRuntime
from project_utility.context import ContextBridge
from project_utility.secrets import mask_url

log = logging.getLogger("interface_entry.app")


class TelegramWebhookUnavailableError(RuntimeError):
    """Raised when the Telegram webhook cannot be registered during startup."""


def configure_runtime_lifespan(
    app: FastAPI,
    *,
    runtime: TelegramRuntime,
    public_url: str,
    webhook_secret: str,
    register_webhook: bool = True,
) -> None:
    """Attach the async lifespan: command + webhook registration on startup, cleanup on shutdown."""

    @asynccontextmanager
    async def lifespan(app_context: FastAPI):
        request_id = ContextBridge.set_request_id()
        state = runtime.state
        # A failed registration leaves the previously registered commands in place.
        app_context.state.command_registration = await register_commands(
            state.bot,
            scope_chat_id=state.command_scope_chat_id,
        )
        if register_webhook:
            webhook_url = f"{public_url}{WEBHOOK_PATH}"
            try:
                app_context.state.webhook_registration = await behavior_webhook_startup(
                    state.bot,
                    webhook_url,
                    webhook_secret,
                )
            except RuntimeError as exc:
                log.critical(
                    "startup.webhook_unavailable",
                    extra={"request_id": request_id, "webhook_url": mask_url(webhook_url), "error": str(exc)},
                )
                await runtime.aclose()
                raise TelegramWebhookUnavailableError(str(exc)) from exc
        log.info("startup.complete", extra={"request_id": request_id})
        try:
            yield
        except asyncio.CancelledError:
            log.info("shutdown.cancelled", extra={"origin": "lifespan"})
        finally:
            # In-flight interactions are abandoned; at most one delivery attempt was promised.
            pending = list(getattr(app_context.state, "telegram_pending_updates", ()))
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            await runtime.aclose()
            log.info("shutdown.complete", extra={"pending_updates": len(pending)})

    app.router.lifespan_context = lifespan


__all__ = ["TelegramWebhookUnavailableError", "configure_runtime_lifespan"]
