"""Cliq Client Implementation.

Concrete chat_client_api.Client backed by the Zoho Cliq REST API v2. Credentials come from a
``TokenResolver``; requests go through a ``requests.Session``. Every public operation returns
a tagged result model and never raises for expected failures.

References:
    - https://www.zoho.com/cliq/help/restapi/v2/
    - https://www.zoho.com/cliq/help/platform/post-to-channel.html
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple
from urllib.parse import quote

import requests
from pydantic import ValidationError

import chat_client_api
import secret_store_api
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
from cliq_client_impl.settings import CliqSettings
from cliq_client_impl.token_resolver import (
    CredentialKind,
    NoCredentialAvailable,
    TokenResolver,
    build_resolver,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger("cliq_client_impl.client")

AUTH_REJECTION_CODES = frozenset({"INVALID_OAUTH", "OAUTH_EXPIRED"})
SEND_ENDPOINTS = {
    "channelId": "/channels/{}/messages",
    "channelName": "/channelsbyname/{}/message",
    "chatId": "/chats/{}/messages",
    "userId": "/users/{}/messages",
}
REPLY_ENDPOINT = "/messages"
CHANNELS_ENDPOINT = "/channels"

NO_TOKEN_MESSAGE = "No access token available. Check CLIQ_ACCESS_TOKEN env var or 1Password item."
NO_WEBHOOK_KEY_MESSAGE = "No webhook key available. Check CLIQ_WEBHOOK_TOKEN env var or 1Password item."
REFRESH_FAILED_MESSAGE = "Failed to refresh access token"
TEXT_REQUIRED_MESSAGE = "Message text is required"
SELECTOR_REQUIRED_MESSAGE = "Must specify channelId, channelName, chatId, or userId"
SELECTOR_CONFLICT_MESSAGE = "Specify only one of: channelId, channelName, chatId, or userId"
WEBHOOK_SELECTOR_MESSAGE = "Bot webhook delivery only supports channelName"
REPLY_REQUIRED_MESSAGE = "Message ID and text are required"
REPLY_UNSUPPORTED_MESSAGE = "Reply-to-message is not yet supported via bot webhook."
UNEXPECTED_FORMAT_MESSAGE = "Unexpected response format"


class CliqRequestError(Exception):
    """Failure of a single Cliq call, tagged with an ErrorCode."""

    def __init__(self, message: str, code: ErrorCode, status: int | None = None) -> None:
        """Create an error carrying its code and, for HTTP failures, the status."""
        super().__init__(message)
        self.code = code
        self.status = status


class ApiResponse(NamedTuple):
    """Parsed HTTP response; ``data`` is None when the body is not JSON."""

    status: int
    data: Any
    raw: str

    @property
    def is_success(self) -> bool:
        """Return True for 2xx statuses."""
        return 200 <= self.status < 300  # noqa: PLR2004

    @property
    def auth_rejected(self) -> bool:
        """Return True when the body carries an invalid/expired token code."""
        return isinstance(self.data, dict) and self.data.get("code") in AUTH_REJECTION_CODES


class _RetryState(Enum):
    INITIAL = "initial"
    RETRIED = "retried"
    DONE = "done"


# ---------------------------------------------------------------------------
# Client implementation
# ---------------------------------------------------------------------------


class CliqClient(Client):
    """Concrete chat_client_api.Client for Zoho Cliq.

    Deployment mode comes from ``settings.mode``:
        - oauth: all operations use the OAuth token, with one refresh-and-retry on
          an auth rejection.
        - webhook: messages are posted as a bot through its incoming webhook and
          replies are unsupported. Channel listing still uses the OAuth token.

    Attributes:
        _settings: Resolved configuration.
        _resolver: Credential resolver owning the token cache.
        _session: HTTP session used for API calls.

    """

    def __init__(
        self,
        settings: CliqSettings,
        resolver: TokenResolver,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client with its settings, resolver, and HTTP session."""
        self._settings = settings
        self._resolver = resolver
        self._session = session or requests.Session()

    @property
    def settings(self) -> CliqSettings:
        """Get the client settings."""
        return self._settings

    def list_channels(self) -> ChannelListResult:
        """List workspace channels as id/name/unique_name projections."""
        try:
            response = self._call("GET", CHANNELS_ENDPOINT)
        except CliqRequestError as exc:
            return ChannelListResult(error=str(exc), error_code=exc.code)

        raw_channels = response.data.get("channels") if isinstance(response.data, dict) else None
        if not isinstance(raw_channels, list):
            return ChannelListResult(error=UNEXPECTED_FORMAT_MESSAGE, error_code=ErrorCode.UNEXPECTED_RESPONSE_SHAPE)
        try:
            channels = [Channel.from_api(entry) for entry in raw_channels]
        except (KeyError, TypeError, ValidationError):
            logger.warning("Channel listing contained malformed entries")
            return ChannelListResult(error=UNEXPECTED_FORMAT_MESSAGE, error_code=ErrorCode.UNEXPECTED_RESPONSE_SHAPE)
        return ChannelListResult(channels=channels)

    def send_message(self, request: SendMessageRequest) -> MessageResult:
        """Send ``request.text`` to the single destination selected in ``request``."""
        if not request.text:
            return _invalid_message(TEXT_REQUIRED_MESSAGE)
        if self._settings.sends_via_webhook:
            return self._send_via_webhook(request)

        selectors = request.selectors()
        if not selectors:
            return _invalid_message(SELECTOR_REQUIRED_MESSAGE)
        if len(selectors) > 1:
            return _invalid_message(SELECTOR_CONFLICT_MESSAGE)
        ((selector, value),) = selectors.items()
        endpoint = SEND_ENDPOINTS[selector].format(quote(value, safe=""))

        try:
            response = self._call("POST", endpoint, {"text": request.text, "sync_message": True})
        except CliqRequestError as exc:
            return MessageResult(error=str(exc), error_code=exc.code)
        return MessageResult(message=response.data)

    def reply_to_message(self, request: ReplyRequest) -> ReplyResult:
        """Post a threaded reply under ``request.message_id``."""
        if not self._settings.supports_reply:
            return ReplyResult(error=REPLY_UNSUPPORTED_MESSAGE, error_code=ErrorCode.UNSUPPORTED_OPERATION)
        if not request.text or not request.message_id:
            return ReplyResult(error=REPLY_REQUIRED_MESSAGE, error_code=ErrorCode.INVALID_INPUT)

        payload = {"text": request.text, "parent_message_id": request.message_id}
        try:
            response = self._call("POST", REPLY_ENDPOINT, payload)
        except CliqRequestError as exc:
            return ReplyResult(error=str(exc), error_code=exc.code)
        return ReplyResult(reply=response.data)

    # -----------------------------------------------------------------------
    # Request helpers
    # -----------------------------------------------------------------------

    def _call(self, method: str, endpoint: str, body: dict[str, Any] | None = None) -> ApiResponse:
        """Issue an OAuth-authenticated call, refreshing and retrying at most once."""
        token = self._resolve(CredentialKind.OAUTH_TOKEN, NO_TOKEN_MESSAGE, ErrorCode.NO_CREDENTIAL_AVAILABLE)
        url = f"{self._settings.base_url}{endpoint}"

        state = _RetryState.INITIAL
        while state is not _RetryState.DONE:
            response = self._send(method, url, headers=_auth_headers(token), body=body)
            if state is _RetryState.INITIAL and response.auth_rejected:
                logger.info("Cliq rejected the token (%s); refreshing once", response.data.get("code"))
                self._resolver.invalidate(CredentialKind.OAUTH_TOKEN)
                token = self._resolve(
                    CredentialKind.OAUTH_TOKEN,
                    REFRESH_FAILED_MESSAGE,
                    ErrorCode.CREDENTIAL_REFRESH_FAILED,
                )
                state = _RetryState.RETRIED
            else:
                state = _RetryState.DONE
        return _checked(response)

    def _send_via_webhook(self, request: SendMessageRequest) -> MessageResult:
        """Post ``{text, channel}`` to the bot incoming webhook."""
        selectors = request.selectors()
        if set(selectors) - {"channelName"}:
            return _invalid_message(WEBHOOK_SELECTOR_MESSAGE)
        channel = request.channel_name or self._settings.default_channel

        try:
            key = self._resolve(CredentialKind.WEBHOOK_KEY, NO_WEBHOOK_KEY_MESSAGE, ErrorCode.NO_CREDENTIAL_AVAILABLE)
            url = f"{self._settings.base_url}/bots/{quote(self._settings.bot_name, safe='')}/incoming"
            response = self._send(
                "POST",
                url,
                headers={"Content-Type": "application/json"},
                body={"text": request.text, "channel": channel},
                params={"zapikey": key},
                secret=key,
            )
            response = _checked(response)
        except CliqRequestError as exc:
            return MessageResult(error=str(exc), error_code=exc.code)
        return MessageResult(message=response.data, webhook_channel=channel)

    def _resolve(self, kind: CredentialKind, message: str, code: ErrorCode) -> str:
        try:
            return self._resolver.resolve(kind).value
        except NoCredentialAvailable as exc:
            raise CliqRequestError(message, code) from exc

    def _send(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        secret: str | None = None,
    ) -> ApiResponse:
        """Perform one HTTP request and parse its body."""
        try:
            response = self._session.request(
                method,
                url,
                headers=dict(headers),
                json=body,
                params=params,
                timeout=self._settings.request_timeout_seconds,
            )
        except requests.RequestException as exc:
            detail = str(exc)
            if secret:
                detail = detail.replace(secret, "***")
            raise CliqRequestError(f"Request failed: {detail}", ErrorCode.REQUEST_FAILED) from exc
        return parse_response(response)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_response(response: requests.Response) -> ApiResponse:
    """Parse a response body as JSON, treating an empty body as ``{}``."""
    raw = response.text or ""
    if not raw.strip():
        return ApiResponse(status=response.status_code, data={}, raw=raw)
    try:
        data = response.json()
    except ValueError:
        data = None
    return ApiResponse(status=response.status_code, data=data, raw=raw)


def _checked(response: ApiResponse) -> ApiResponse:
    """Raise for non-2xx statuses, leftover auth rejections, and non-JSON bodies."""
    if not response.is_success or response.auth_rejected:
        raise CliqRequestError(
            f"HTTP {response.status}: {response.raw}",
            ErrorCode.UPSTREAM_HTTP_ERROR,
            status=response.status,
        )
    if response.data is None:
        raise CliqRequestError(UNEXPECTED_FORMAT_MESSAGE, ErrorCode.UNEXPECTED_RESPONSE_SHAPE)
    return response


def _auth_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Zoho-oauthtoken {token}",
        "Content-Type": "application/json",
    }


def _invalid_message(message: str) -> MessageResult:
    return MessageResult(error=message, error_code=ErrorCode.INVALID_INPUT)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_client_impl() -> CliqClient:
    """Return a new CliqClient using env settings and the registered secret store."""
    settings = CliqSettings.from_env()
    session = requests.Session()
    resolver = build_resolver(settings, secret_store_api.get_store(), session)
    logger.info("Cliq client ready (mode=%s, resolvers=%s)", settings.mode.value, resolver.strategy_names)
    return CliqClient(settings, resolver, session)


# ---------------------------------------------------------------------------
# Factory registration
# ---------------------------------------------------------------------------


def register() -> None:
    """Bind the Cliq client factory into chat_client_api.get_client."""
    chat_client_api.get_client = get_client_impl
