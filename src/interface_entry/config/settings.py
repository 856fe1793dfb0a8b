from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from foundational_service.integrations.log_endpoint_client import DEFAULT_TIMEOUT

log = logging.getLogger("interface_entry.config.settings")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    telegram_bot_token: str = Field(..., alias="TELEGRAM_BOT_TOKEN")
    webhook_secret: str = Field(..., alias="TELEGRAM_BOT_SECRETS")
    public_url: str = Field(..., alias="WEB_HOOK")
    command_scope_chat_id: Optional[int] = Field(default=None, alias="COMMAND_SCOPE_CHAT_ID")
    log_endpoint_url: str = Field(..., alias="LOG_ENDPOINT_URL")
    delivery_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT, alias="DELIVERY_TIMEOUT_SECONDS", gt=0)

    @field_validator("command_scope_chat_id", mode="before")
    @classmethod
    def _blank_scope_is_default(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("public_url")
    @classmethod
    def _require_https(cls, value: str) -> str:
        if not value.lower().startswith("https://"):
            raise ValueError("WEB_HOOK must be an https:// URL")
        return value.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return application settings loaded from environment / .env."""

    return AppSettings()  # type: ignore[call-arg]


__all__ = ["AppSettings", "get_settings"]
