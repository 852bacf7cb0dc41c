"""Environment-driven settings for the Cliq client."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_BASE_URL = "https://cliq.zoho.com/api/v2"
DEFAULT_TOKEN_URL = "https://accounts.zoho.com/oauth/v2/token"  # noqa: S105
DEFAULT_CACHE_FILENAME = ".cliq-api-config.json"

_ENV_VARS = {
    "base_url": "CLIQ_BASE_URL",
    "token_url": "CLIQ_TOKEN_URL",
    "access_token": "CLIQ_ACCESS_TOKEN",
    "webhook_token": "CLIQ_WEBHOOK_TOKEN",
    "op_item": "CLIQ_OP_ITEM",
    "webhook_op_item": "CLIQ_WEBHOOK_OP_ITEM",
    "token_cache_path": "CLIQ_TOKEN_CACHE",
    "mode": "CLIQ_MODE",
    "default_channel": "CLIQ_DEFAULT_CHANNEL",
    "bot_name": "CLIQ_BOT_NAME",
}


class CliqMode(str, Enum):
    """Deployment variants: full OAuth API access or bot webhook posting."""

    OAUTH = "oauth"
    WEBHOOK = "webhook"


class CliqSettings(BaseModel):
    """Resolved configuration for one process."""

    base_url: str = DEFAULT_BASE_URL
    token_url: str = DEFAULT_TOKEN_URL
    access_token: str | None = None
    webhook_token: str | None = None
    op_item: str = "cliq.zoho.com"
    webhook_op_item: str = "Cliq luminous-agent-api"
    token_cache_path: Path = Field(default_factory=lambda: Path.home() / DEFAULT_CACHE_FILENAME)
    mode: CliqMode = CliqMode.OAUTH
    default_channel: str = "luminous"
    bot_name: str = "luminousagent"
    request_timeout_seconds: float = 30.0
    refresh_timeout_seconds: float = 15.0

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("token_cache_path")
    @classmethod
    def _expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def sends_via_webhook(self) -> bool:
        """Return True when messages go through the bot incoming webhook."""
        return self.mode is CliqMode.WEBHOOK

    @property
    def supports_reply(self) -> bool:
        """Return True when threaded replies are available in this deployment."""
        return self.mode is CliqMode.OAUTH

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CliqSettings:
        """Build settings from CLIQ_* environment variables; unset or empty values keep defaults."""
        env = os.environ if environ is None else environ
        values = {field: env[name] for field, name in _ENV_VARS.items() if env.get(name)}
        return cls.model_validate(values)
