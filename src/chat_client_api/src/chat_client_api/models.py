"""Shared request/result schemas for chat clients."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

__all__ = [
    "Channel",
    "ChannelListResult",
    "ErrorCode",
    "MessageResult",
    "ReplyRequest",
    "ReplyResult",
    "SendMessageRequest",
]


class ErrorCode(str, Enum):
    """Tags for the failures a chat client can report."""

    INVALID_INPUT = "invalid_input"
    NO_CREDENTIAL_AVAILABLE = "no_credential_available"
    CREDENTIAL_REFRESH_FAILED = "credential_refresh_failed"
    UPSTREAM_HTTP_ERROR = "upstream_http_error"
    UNEXPECTED_RESPONSE_SHAPE = "unexpected_response_shape"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    REQUEST_FAILED = "request_failed"


class Channel(BaseModel):
    """Read-only projection of a remote channel."""

    id: str
    name: str
    unique_name: str

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Channel:
        """Copy the channel fields from a raw API entry without transformation."""
        return cls(id=raw["id"], name=raw["name"], unique_name=raw["unique_name"])


class SendMessageRequest(BaseModel):
    """Message text plus one destination selector."""

    text: str = ""
    channel_id: str | None = Field(default=None, alias="channelId")
    channel_name: str | None = Field(default=None, alias="channelName")
    chat_id: str | None = Field(default=None, alias="chatId")
    user_id: str | None = Field(default=None, alias="userId")

    model_config = {"populate_by_name": True}

    def selectors(self) -> dict[str, str]:
        """Return the destination selectors that carry a value, keyed by alias."""
        candidates = {
            "channelId": self.channel_id,
            "channelName": self.channel_name,
            "chatId": self.chat_id,
            "userId": self.user_id,
        }
        return {key: value for key, value in candidates.items() if value}


class ReplyRequest(BaseModel):
    """Threaded reply keyed to a parent message id."""

    message_id: str = Field(default="", alias="messageId")
    text: str = ""

    model_config = {"populate_by_name": True}


class _Result(BaseModel):
    error: str | None = None
    error_code: ErrorCode | None = None

    @property
    def ok(self) -> bool:
        """Return True when the operation succeeded."""
        return self.error is None


class ChannelListResult(_Result):
    """Outcome of a channel listing."""

    channels: list[Channel] = Field(default_factory=list)


class MessageResult(_Result):
    """Outcome of a message send; ``message`` is the raw API object.

    ``webhook_channel`` is set when the message went out through a bot webhook.
    """

    message: Any = None
    webhook_channel: str | None = None


class ReplyResult(_Result):
    """Outcome of a threaded reply; ``reply`` is the raw API object."""

    reply: Any = None
