"""Run-once registration of the bot's slash commands."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from aiogram.types import BotCommand, BotCommandScopeAllPrivateChats, BotCommandScopeChat

from foundational_service.contracts.daily_log import LOG_COMMAND, LOG_COMMAND_DESCRIPTION
from project_utility.context import ContextBridge

__all__ = ["DEFAULT_COMMANDS", "register_commands", "resolve_scope"]

log = logging.getLogger("foundational_service.bootstrap.commands")

DEFAULT_COMMANDS: Sequence[BotCommand] = (BotCommand(command=LOG_COMMAND, description=LOG_COMMAND_DESCRIPTION),)


def resolve_scope(chat_id: Optional[int]) -> BotCommandScopeChat | BotCommandScopeAllPrivateChats:
    # The form opens as a Web App, which Telegram only allows in private chats.
    if chat_id is None:
        return BotCommandScopeAllPrivateChats()
    if chat_id < 0:
        log.warning(
            "commands.scope_not_private",
            extra={"chat_id": chat_id, "hint": "group members will be redirected to a private chat"},
        )
    return BotCommandScopeChat(chat_id=chat_id)


async def register_commands(
    bot: Any,
    *,
    scope_chat_id: Optional[int] = None,
    commands: Sequence[BotCommand] = DEFAULT_COMMANDS,
) -> Dict[str, Any]:
    """
    Register `commands` for the given scope.

    Never raises: a failed registration is logged and reported in the returned status, and the
    event loop keeps serving commands that were registered by an earlier run.
    """

    scope = resolve_scope(scope_chat_id)
    names = [command.command for command in commands]
    request_id = ContextBridge.request_id()
    try:
        accepted = await bot.set_my_commands(commands=list(commands), scope=scope)
    except Exception as exc:
        log.error(
            "commands.register_failed",
            extra={"request_id": request_id, "scope": scope.type, "commands": names, "error": str(exc)},
        )
        return {"status": "error", "scope": scope.type, "commands": names, "error": str(exc)}

    if not accepted:
        log.error(
            "commands.register_rejected",
            extra={"request_id": request_id, "scope": scope.type, "commands": names},
        )
        return {"status": "rejected", "scope": scope.type, "commands": names}

    log.info(
        "commands.registered",
        extra={"request_id": request_id, "scope": scope.type, "commands": names, "step": "register_commands"},
    )
    return {"status": "ok", "scope": scope.type, "commands": names}
