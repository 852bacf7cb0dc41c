"""Tests for the chat_client_api contract surface and shared models.

These tests document how consumers interact with the contract, using mocks to
exercise the expected signatures and data shapes.
"""

from __future__ import annotations

import importlib
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


def test_client_is_abstract() -> None:
    """Client cannot be instantiated without the three operations."""
    with pytest.raises(TypeError):
        Client()  # type: ignore[abstract]


def test_unbound_get_client_raises() -> None:
    """The contract-level factory raises until an implementation binds it."""
    client_module = importlib.import_module("chat_client_api.client")
    with pytest.raises(NotImplementedError):
        client_module.get_client()


def test_mock_client_follows_contract() -> None:
    """Consumers call the operations with request models and read tagged results."""
    client = Mock(spec=Client)
    client.send_message.return_value = MessageResult(message={"id": "m1"})

    result = client.send_message(SendMessageRequest(text="hi", channel_id="42"))

    assert result.ok
    assert result.message == {"id": "m1"}
    client.send_message.assert_called_once()


def test_channel_from_api_preserves_fields() -> None:
    """Channel projection copies id/name/unique_name verbatim and drops the rest."""
    raw = {"id": "C-01", "name": "General Chat ", "unique_name": "general", "participant_count": 7}

    channel = Channel.from_api(raw)

    assert channel.model_dump() == {"id": "C-01", "name": "General Chat ", "unique_name": "general"}


def test_send_message_request_accepts_aliases() -> None:
    """Requests can be built from the camelCase tool arguments."""
    request = SendMessageRequest.model_validate({"text": "hi", "channelName": "eng", "chatId": ""})

    assert request.channel_name == "eng"
    assert request.selectors() == {"channelName": "eng"}


def test_send_message_request_selectors_empty() -> None:
    """No selector yields an empty mapping."""
    assert SendMessageRequest(text="hi").selectors() == {}


def test_reply_request_defaults() -> None:
    """Reply requests default to empty strings so validation stays in the client."""
    request = ReplyRequest()
    assert request.message_id == ""
    assert request.text == ""


def test_results_report_ok_and_error() -> None:
    """Results are ok exactly when no error is set."""
    ok = ChannelListResult(channels=[Channel(id="1", name="General", unique_name="general")])
    failed = ReplyResult(error="nope", error_code=ErrorCode.INVALID_INPUT)

    assert ok.ok
    assert ok.error is None
    assert not failed.ok
    assert failed.error_code is ErrorCode.INVALID_INPUT
    assert failed.reply is None


def test_error_codes_are_strings() -> None:
    """Error codes serialize as plain strings."""
    assert ErrorCode.UPSTREAM_HTTP_ERROR.value == "upstream_http_error"
    assert MessageResult(error="x", error_code=ErrorCode.REQUEST_FAILED).model_dump()["error_code"] == "request_failed"
