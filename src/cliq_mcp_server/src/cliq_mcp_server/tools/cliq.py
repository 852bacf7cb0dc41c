"""Cliq tools for the MCP server."""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from chat_client_api import ReplyRequest, SendMessageRequest
from cliq_mcp_server.models import ToolDefinition, ToolResult
from cliq_mcp_server.tools.registry import register_tool

if TYPE_CHECKING:
    from chat_client_api import ChannelListResult, Client, MessageResult, ReplyResult

load_dotenv()

SECRET_STORE_PROVIDER = os.environ.get("SECRET_STORE_PROVIDER", "1password")
if SECRET_STORE_PROVIDER == "1password":
    import onepassword_store_impl  # noqa: F401
else:
    raise RuntimeError("Unsupported SECRET_STORE_PROVIDER")  # noqa: EM101, TRY003

import cliq_client_impl  # noqa: E402, F401
from chat_client_api import get_client  # noqa: E402

_CLIENT: Client | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_client() -> Client:
    """Return the process-wide client, creating it (and its token cache) on first use."""
    global _CLIENT  # noqa: PLW0603
    if _CLIENT is None:
        _CLIENT = get_client()
    return _CLIENT


def _to_json(payload: Any) -> str:  # noqa: ANN401
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _failure(result: ChannelListResult | MessageResult | ReplyResult) -> ToolResult:
    code = result.error_code.value if result.error_code else None
    return ToolResult.failure(result.error or "Unknown error", code=code)


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------


def list_channels() -> ToolResult:
    """Return the workspace channels as JSON."""
    result = _get_client().list_channels()
    if not result.ok:
        return _failure(result)
    return ToolResult.success(_to_json([channel.model_dump() for channel in result.channels]))


def send_message(  # noqa: PLR0913
    text: str = "",
    channelId: str | None = None,  # noqa: N803
    channelName: str | None = None,  # noqa: N803
    chatId: str | None = None,  # noqa: N803
    userId: str | None = None,  # noqa: N803
) -> ToolResult:
    """Send a message and return the API message object or a bot confirmation."""
    request = SendMessageRequest(
        text=text,
        channel_id=channelId,
        channel_name=channelName,
        chat_id=chatId,
        user_id=userId,
    )
    result = _get_client().send_message(request)
    if not result.ok:
        return _failure(result)
    if result.webhook_channel:
        return ToolResult.success(f"Message sent to #{result.webhook_channel} as bot.")
    return ToolResult.success(_to_json(result.message))


def reply_to_message(messageId: str = "", text: str = "") -> ToolResult:  # noqa: N803
    """Post a threaded reply and return the API reply object."""
    result = _get_client().reply_to_message(ReplyRequest(message_id=messageId, text=text))
    if not result.ok:
        return _failure(result)
    return ToolResult.success(_to_json(result.reply))


# ---------------------------------------------------------------------------
# Tool registrations
# ---------------------------------------------------------------------------


register_tool(
    ToolDefinition(
        name="cliq_list_channels",
        description="List all channels in your Zoho Cliq workspace.",
        input_schema={"type": "object", "properties": {}},
    ),
    list_channels,
)

register_tool(
    ToolDefinition(
        name="cliq_send_message",
        description=(
            "Send a message to Zoho Cliq. Specify one of: channelId, channelName (unique name), "
            "chatId, or userId. When posting as the bot, only channelName is accepted and it "
            "defaults to the configured channel."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Message text to send (required)."},
                "channelId": {"type": "string", "description": "Channel ID."},
                "channelName": {
                    "type": "string",
                    "description": "Channel unique name (e.g., 'engineering-team').",
                },
                "chatId": {"type": "string", "description": "Chat ID."},
                "userId": {"type": "string", "description": "User ID for a direct message."},
            },
            "required": ["text"],
        },
    ),
    send_message,
)

register_tool(
    ToolDefinition(
        name="cliq_reply_to_message",
        description="Reply to a specific message in Zoho Cliq (creates a threaded reply).",
        input_schema={
            "type": "object",
            "properties": {
                "messageId": {"type": "string", "description": "The ID of the message to reply to."},
                "text": {"type": "string", "description": "Reply text."},
            },
            "required": ["messageId", "text"],
        },
    ),
    reply_to_message,
)
