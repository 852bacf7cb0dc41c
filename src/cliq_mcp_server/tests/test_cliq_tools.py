"""Tests for the Cliq tool handlers and their rendering."""

from __future__ import annotations

import json
from unittest.mock import Mock

import pytest

from chat_client_api import (
    Channel,
    ChannelListResult,
    Client,
    ErrorCode,
    MessageResult,
    ReplyRequest,
    ReplyResult,
    SendMessageRequest,
)
from cliq_mcp_server.tools import cliq, registry


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Mock:
    """Replace the process-wide Cliq client with a mock."""
    mock_client = Mock(spec=Client)
    monkeypatch.setattr(cliq, "_get_client", lambda: mock_client)
    return mock_client


def test_tools_are_registered() -> None:
    """The three Cliq tools are available with their required arguments."""
    definitions = {definition.name: definition for definition in registry.list_definitions()}

    assert {"cliq_list_channels", "cliq_send_message", "cliq_reply_to_message"} <= set(definitions)
    assert definitions["cliq_send_message"].input_schema["required"] == ["text"]
    assert definitions["cliq_reply_to_message"].input_schema["required"] == ["messageId", "text"]
    assert set(definitions["cliq_send_message"].input_schema["properties"]) == {
        "text",
        "channelId",
        "channelName",
        "chatId",
        "userId",
    }


def test_list_channels_renders_json(client: Mock) -> None:
    """Channels are rendered as a pretty-printed JSON array."""
    client.list_channels.return_value = ChannelListResult(
        channels=[Channel(id="1", name="General", unique_name="general")],
    )

    result = registry.run_tool("cliq_list_channels", {})

    assert not result.is_error
    assert json.loads(result.text) == [{"id": "1", "name": "General", "unique_name": "general"}]


def test_list_channels_error(client: Mock) -> None:
    """Failures render as Error: <message> and keep the code."""
    client.list_channels.return_value = ChannelListResult(
        error="Unexpected response format",
        error_code=ErrorCode.UNEXPECTED_RESPONSE_SHAPE,
    )

    result = registry.run_tool("cliq_list_channels", {})

    assert result.is_error
    assert result.text == "Error: Unexpected response format"
    assert result.code == "unexpected_response_shape"


def test_send_message_builds_request(client: Mock) -> None:
    """camelCase tool arguments map onto the request model."""
    client.send_message.return_value = MessageResult(message={"id": "m1"})

    result = registry.run_tool("cliq_send_message", {"text": "hi", "channelName": "eng"})

    assert json.loads(result.text) == {"id": "m1"}
    client.send_message.assert_called_once_with(SendMessageRequest(text="hi", channel_name="eng"))


def test_send_message_webhook_confirmation(client: Mock) -> None:
    """Bot webhook deliveries render as a confirmation line."""
    client.send_message.return_value = MessageResult(message={}, webhook_channel="luminous")

    result = registry.run_tool("cliq_send_message", {"text": "hi"})

    assert result.text == "Message sent to #luminous as bot."


def test_send_message_missing_text_is_error(client: Mock) -> None:
    """Validation errors from the client reach the caller."""
    client.send_message.return_value = MessageResult(
        error="Message text is required",
        error_code=ErrorCode.INVALID_INPUT,
    )

    result = registry.run_tool("cliq_send_message", {"channelId": "42"})

    assert result.is_error
    assert result.text == "Error: Message text is required"
    assert result.code == "invalid_input"


def test_reply_to_message(client: Mock) -> None:
    """Replies render the API reply object."""
    client.reply_to_message.return_value = ReplyResult(reply={"id": "r1"})

    result = registry.run_tool("cliq_reply_to_message", {"messageId": "p1", "text": "ok"})

    assert json.loads(result.text) == {"id": "r1"}
    client.reply_to_message.assert_called_once_with(ReplyRequest(message_id="p1", text="ok"))


def test_reply_unsupported(client: Mock) -> None:
    """Unsupported replies surface their message."""
    client.reply_to_message.return_value = ReplyResult(
        error="Reply-to-message is not yet supported via bot webhook.",
        error_code=ErrorCode.UNSUPPORTED_OPERATION,
    )

    result = registry.run_tool("cliq_reply_to_message", {"messageId": "p1", "text": "ok"})

    assert result.text == "Error: Reply-to-message is not yet supported via bot webhook."
    assert result.code == "unsupported_operation"


def test_client_created_once(monkeypatch: pytest.MonkeyPatch) -> None:
    """The client (and its token cache) is shared across tool calls."""
    factory = Mock(return_value=Mock(spec=Client))
    monkeypatch.setattr(cliq, "_CLIENT", None)
    monkeypatch.setattr(cliq, "get_client", factory)

    first = cliq._get_client()
    second = cliq._get_client()

    assert first is second
    factory.assert_called_once_with()
