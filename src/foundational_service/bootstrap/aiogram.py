"""Aiogram bootstrap orchestration."""

from __future__ import annotations

import logging
from importlib import import_module
from typing import Any, Dict, Optional

from aiogram import Bot, Dispatcher

from foundational_service.bootstrap.state import BootstrapState, get_bootstrap_state, set_bootstrap_state
from foundational_service.diagnostics.metrics import default_metrics_state
from project_utility.context import ContextBridge
from project_utility.secrets import mask_secret

__all__ = ["bootstrap_aiogram", "BootstrapState", "get_bootstrap_state"]


logger = logging.getLogger("foundational_service.bootstrap.aiogram")

_HANDLERS_MODULE = "interface_entry.telegram.handlers"


def bootstrap_aiogram(
    *,
    token: str,
    forms_base_url: str,
    orchestrator: Any,
    command_scope_chat_id: Optional[int] = None,
    attach_handlers: bool = True,
    bot: Optional[Bot] = None,
) -> Dict[str, Any]:
    """Initialise the aiogram bot + dispatcher pair and inject pipeline dependencies."""

    request_id = ContextBridge.request_id()
    timeline: list[Dict[str, Any]] = []

    token = (token or "").strip()
    if not token:
        raise RuntimeError("bootstrap_refused_missing_token")
    timeline.append({"stage": "env_load", "status": "ok", "token": mask_secret(token)})

    # Telegram only opens Web Apps served over HTTPS.
    if not forms_base_url.lower().startswith("https://"):
        timeline.append({"stage": "forms_base_url", "status": "error", "forms_base_url": forms_base_url})
        raise RuntimeError("bootstrap_refused_insecure_form_url")
    timeline.append({"stage": "forms_base_url", "status": "ok", "forms_base_url": forms_base_url})

    bot = bot or Bot(token=token)
    dispatcher = Dispatcher()

    router_name: Optional[str] = None
    if attach_handlers:
        try:
            handlers_module = import_module(_HANDLERS_MODULE)
            router = handlers_module.create_router()
        except Exception as exc:  # pragma: no cover - import failures should abort startup
            timeline.append({"stage": "router_attach", "status": "error", "error": str(exc)})
            raise
        dispatcher.include_router(router)
        router_name = router.name
        timeline.append({"stage": "router_attach", "status": "ok", "router": router_name})
    else:
        timeline.append({"stage": "router_attach", "status": "skipped"})

    metrics_state = default_metrics_state()
    dispatcher.workflow_data["metrics"] = metrics_state
    dispatcher.workflow_data["orchestrator"] = orchestrator
    dispatcher.workflow_data["forms_base_url"] = forms_base_url

    state = BootstrapState(
        bot=bot,
        dispatcher=dispatcher,
        forms_base_url=forms_base_url,
        command_scope_chat_id=command_scope_chat_id,
        timeline=list(timeline),
        request_id=request_id,
    )
    set_bootstrap_state(state)
    logger.info(
        "bootstrap.aiogram.ready",
        extra={"request_id": request_id, "router": router_name or "-", "step": "bootstrap_aiogram"},
    )

    return {
        "state": state,
        "metrics": metrics_state,
        "timeline": list(timeline),
        "router": router_name,
        "telemetry": {"request_id": request_id, "stages": list(timeline)},
    }
