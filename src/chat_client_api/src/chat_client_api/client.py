"""Abstract interfaces for chat platform APIs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chat_client_api.models import (
        ChannelListResult,
        MessageResult,
        ReplyRequest,
        ReplyResult,
        SendMessageRequest,
    )

__all__ = ["Client", "get_client"]


class Client(ABC):
    """The contract for chat services.

    Implementations never raise for expected failures (bad input, missing
    credentials, upstream errors); they return a result whose ``error`` and
    ``error_code`` fields are set instead.
    """

    @abstractmethod
    def list_channels(self) -> ChannelListResult:
        """List the channels visible to the authenticated account.

        Returns:
            ChannelListResult with the channels, or an empty list and an error.

        """
        raise NotImplementedError

    @abstractmethod
    def send_message(self, request: SendMessageRequest) -> MessageResult:
        """Send a message to exactly one destination.

        Args:
            request: Message text plus one destination selector.

        Returns:
            MessageResult holding the raw API message object, or an error.

        """
        raise NotImplementedError

    @abstractmethod
    def reply_to_message(self, request: ReplyRequest) -> ReplyResult:
        """Post a threaded reply to an existing message.

        Args:
            request: Parent message id and reply text.

        Returns:
            ReplyResult holding the raw API reply object, or an error.

        """
        raise NotImplementedError


def get_client() -> Client:
    """Return the default chat client implementation.

    Returns:
        Client implementation.

    """
    raise NotImplementedError
