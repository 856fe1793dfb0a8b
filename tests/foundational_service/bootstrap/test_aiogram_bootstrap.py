from __future__ import annotations

import pytest
from aiogram import Bot

from business_logic.daily_log import DailyLogOrchestrator
from foundational_service.bootstrap.aiogram import bootstrap_aiogram, get_bootstrap_state
from foundational_service.bootstrap.state import clear_bootstrap_state

TOKEN = "123456:TEST-token"


class _NoDelivery:
    async def deliver(self, envelope, *, endpoint=None):  # pragma: no cover - never reached
        raise AssertionError("delivery not expected")


@pytest.fixture(autouse=True)
def _reset_state():
    yield
    clear_bootstrap_state()


def test_bootstrap_injects_pipeline_dependencies() -> None:
    orchestrator = DailyLogOrchestrator(delivery=_NoDelivery())

    info = bootstrap_aiogram(
        token=TOKEN,
        forms_base_url="https://relay.example.com/forms",
        orchestrator=orchestrator,
        command_scope_chat_id=99,
        bot=Bot(token=TOKEN),
    )

    state = get_bootstrap_state()
    assert state is info["state"]
    assert state.command_scope_chat_id == 99
    assert info["router"] == "daily_log_router"
    workflow_data = state.dispatcher.workflow_data
    assert workflow_data["orchestrator"] is orchestrator
    assert workflow_data["forms_base_url"] == "https://relay.example.com/forms"
    assert workflow_data["metrics"] is info["metrics"]


def test_bootstrap_builds_a_fresh_router_per_dispatcher() -> None:
    orchestrator = DailyLogOrchestrator(delivery=_NoDelivery())
    kwargs = dict(token=TOKEN, forms_base_url="https://relay.example.com/forms", orchestrator=orchestrator)

    first = bootstrap_aiogram(**kwargs, bot=Bot(token=TOKEN))
    second = bootstrap_aiogram(**kwargs, bot=Bot(token=TOKEN))

    assert first["state"].dispatcher is not second["state"].dispatcher
    assert second["router"] == "daily_log_router"


def test_bootstrap_refuses_missing_token() -> None:
    with pytest.raises(RuntimeError, match="bootstrap_refused_missing_token"):
        bootstrap_aiogram(
            token="  ",
            forms_base_url="https://relay.example.com/forms",
            orchestrator=DailyLogOrchestrator(delivery=_NoDelivery()),
        )


def test_bootstrap_refuses_insecure_form_url() -> None:
    with pytest.raises(RuntimeError, match="bootstrap_refused_insecure_form_url"):
        bootstrap_aiogram(
            token=TOKEN,
            forms_base_url="http://relay.example.com/forms",
            orchestrator=DailyLogOrchestrator(delivery=_NoDelivery()),
        )
