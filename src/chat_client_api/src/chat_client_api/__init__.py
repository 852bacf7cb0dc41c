"""Public export surface for ``chat_client_api``."""

from chat_client_api.client import Client, get_client
from chat_client_api.models import (
    Channel,
    ChannelListResult,
    ErrorCode,
    MessageResult,
    ReplyRequest,
    ReplyResult,
    SendMessageRequest,
)

__all__ = [
    "Channel",
    "ChannelListResult",
    "Client",
    "ErrorCode",
    "MessageResult",
    "ReplyRequest",
    "ReplyResult",
    "SendMessageRequest",
    "get_client",
]
