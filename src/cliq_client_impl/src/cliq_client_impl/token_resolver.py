"""Credential resolution for the Cliq client.

A ``TokenResolver`` walks an ordered list of strategies and keeps the first credential it
gets in a per-kind in-memory slot:

1. ``OverrideStrategy``: token or webhook key given directly through settings.
2. ``CacheFileStrategy``: unexpired OAuth token persisted by an earlier refresh.
3. ``SecretStoreStrategy``: webhook key read from the secret manager.
4. ``RefreshStrategy``: OAuth refresh-token exchange using secret-manager fields.

Every strategy is soft: it returns None when it has nothing to offer and the resolver
moves on. Only the resolver itself raises, with ``NoCredentialAvailable``.
"""

from __future__ import annotations

import json
import logging
import os
import time
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import requests
from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from cliq_client_impl.settings import CliqSettings
    from secret_store_api import SecretStore

logger = logging.getLogger("cliq_client_impl.resolver")

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
CACHE_FILE_MODE = 0o600
WEBHOOK_KEY_FIELD = "credential"
REFRESH_TOKEN_FIELD = "refresh_token"  # noqa: S105
CLIENT_ID_FIELD = "client_id"
CLIENT_SECRET_FIELD = "client_secret"  # noqa: S105


def now_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class CredentialKind(str, Enum):
    """The two credential kinds the client uses."""

    OAUTH_TOKEN = "oauth_token"  # noqa: S105
    WEBHOOK_KEY = "webhook_key"


class Credential(BaseModel):
    """A resolved secret; ``expires_at`` is epoch milliseconds, None for no expiry."""

    model_config = {"frozen": True}

    kind: CredentialKind
    value: str
    expires_at: int | None = None

    def is_valid(self, at_ms: int) -> bool:
        """Return True when the credential has not expired at ``at_ms``."""
        return self.expires_at is None or at_ms < self.expires_at


class TokenCacheRecord(BaseModel):
    """Persisted OAuth token, as stored in the cache file."""

    access_token: str
    expires_at: int
    created: str = ""
    source: str = ""


class NoCredentialAvailable(RuntimeError):  # noqa: N818
    """Raised when every resolution strategy came up empty."""

    def __init__(self, kind: CredentialKind) -> None:
        """Record which credential kind could not be resolved."""
        super().__init__(f"No {kind.value} credential available.")
        self.kind = kind


# ---------------------------------------------------------------------------
# Cache file
# ---------------------------------------------------------------------------


class TokenCacheFile:
    """Owner-only JSON file holding a single TokenCacheRecord."""

    def __init__(self, path: Path) -> None:
        """Bind the cache to a file path; the file is created lazily."""
        self._path = path

    @property
    def path(self) -> Path:
        """Get the cache file path."""
        return self._path

    def read(self) -> TokenCacheRecord | None:
        """Return the stored record, or None when missing, cleared, or malformed."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read token cache %s: %s", self._path, exc)
            return None
        try:
            return TokenCacheRecord.model_validate_json(raw)
        except ValidationError:
            logger.debug("Token cache %s holds no usable record", self._path)
            return None

    def write(self, record: TokenCacheRecord) -> None:
        """Overwrite the cache with ``record``; failures are logged, never raised."""
        self._write_text(record.model_dump_json())

    def clear(self) -> None:
        """Reset an existing cache file to an empty object."""
        if self._path.exists():
            self._write_text(json.dumps({}))

    def _write_text(self, payload: str) -> None:
        try:
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CACHE_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            # os.open only applies the mode when it creates the file.
            os.chmod(self._path, CACHE_FILE_MODE)
        except OSError as exc:
            logger.warning("Could not write token cache %s: %s", self._path, exc)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class ResolverStrategy(Protocol):
    """One step of the resolution chain."""

    @property
    def name(self) -> str:
        """Return the strategy name used in logs."""
        ...

    def resolve(self, kind: CredentialKind) -> Credential | None:
        """Return a credential of ``kind``, or None to defer to the next strategy."""
        ...


class OverrideStrategy:
    """Directly supplied credentials, trusted verbatim and never expiring."""

    name = "override"

    def __init__(self, access_token: str | None = None, webhook_key: str | None = None) -> None:
        """Store the optional override values."""
        self._values = {
            CredentialKind.OAUTH_TOKEN: access_token,
            CredentialKind.WEBHOOK_KEY: webhook_key,
        }

    def resolve(self, kind: CredentialKind) -> Credential | None:
        """Return the override for ``kind`` when one was supplied."""
        value = self._values.get(kind)
        if not value:
            return None
        return Credential(kind=kind, value=value)


class CacheFileStrategy:
    """OAuth token persisted by a previous refresh, accepted only before expiry."""

    name = "cache-file"

    def __init__(self, cache: TokenCacheFile, clock: Callable[[], int] = now_ms) -> None:
        """Bind the strategy to a cache file and clock."""
        self._cache = cache
        self._clock = clock

    def resolve(self, kind: CredentialKind) -> Credential | None:
        """Return the cached token when it is present and strictly unexpired."""
        if kind is not CredentialKind.OAUTH_TOKEN:
            return None
        record = self._cache.read()
        if record is None or not record.access_token:
            return None
        if self._clock() >= record.expires_at:
            logger.debug("Cached token expired at %s", record.expires_at)
            return None
        return Credential(kind=kind, value=record.access_token, expires_at=record.expires_at)


class SecretStoreStrategy:
    """Webhook key stored as a single field in the secret manager."""

    name = "secret-store"

    def __init__(self, store: SecretStore, item: str, field: str = WEBHOOK_KEY_FIELD) -> None:
        """Bind the strategy to a store item and field label."""
        self._store = store
        self._item = item
        self._field = field

    def resolve(self, kind: CredentialKind) -> Credential | None:
        """Look up the webhook key; a missing field defers to the next strategy."""
        if kind is not CredentialKind.WEBHOOK_KEY:
            return None
        value = self._store.lookup_field(self._item, self._field)
        if not value:
            logger.info("Secret store item %r has no %r field", self._item, self._field)
            return None
        return Credential(kind=kind, value=value)


class RefreshStrategy:
    """OAuth refresh-token exchange, persisting the new token to the cache file."""

    name = "oauth-refresh"

    def __init__(  # noqa: PLR0913
        self,
        *,
        store: SecretStore,
        item: str,
        token_url: str,
        cache: TokenCacheFile,
        session: requests.Session | None = None,
        timeout_seconds: float = 15.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Bind the strategy to its secret source, token endpoint, and cache."""
        self._store = store
        self._item = item
        self._token_url = token_url
        self._cache = cache
        self._session = session or requests.Session()
        self._timeout = timeout_seconds
        self._clock = clock

    def resolve(self, kind: CredentialKind) -> Credential | None:
        """Exchange the stored refresh token for a fresh access token."""
        if kind is not CredentialKind.OAUTH_TOKEN:
            return None
        refresh_token = self._store.lookup_field(self._item, REFRESH_TOKEN_FIELD)
        if not refresh_token:
            logger.info("Secret store item %r has no refresh token", self._item)
            return None
        client_id = self._store.lookup_field(self._item, CLIENT_ID_FIELD)
        client_secret = self._store.lookup_field(self._item, CLIENT_SECRET_FIELD)
        if not client_id or not client_secret:
            logger.warning("Secret store item %r is missing client_id or client_secret", self._item)
            return None

        payload = self._exchange(refresh_token, client_id, client_secret)
        if payload is None:
            return None
        access_token = payload.get("access_token")
        if not access_token:
            logger.warning("Token refresh returned no access_token (error=%s)", payload.get("error", "unknown"))
            return None

        expires_at = self._clock() + _lifetime_seconds(payload) * 1000
        self._cache.write(
            TokenCacheRecord(
                access_token=access_token,
                expires_at=expires_at,
                created=datetime.now(timezone.utc).isoformat(),
                source=f"{self._store.name}-refresh",
            )
        )
        logger.info("Refreshed Cliq access token")
        return Credential(kind=kind, value=access_token, expires_at=expires_at)

    def _exchange(self, refresh_token: str, client_id: str, client_secret: str) -> dict | None:
        try:
            response = self._session.post(
                self._token_url,
                data={
                    "refresh_token": refresh_token,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "grant_type": "refresh_token",
                },
                timeout=self._timeout,
            )
            payload = response.json()
        except requests.RequestException as exc:
            logger.warning("Token refresh request failed: %s", exc)
            return None
        except ValueError:
            logger.warning("Token refresh returned a non-JSON body")
            return None
        if not isinstance(payload, dict):
            logger.warning("Token refresh returned an unexpected payload")
            return None
        return payload


def _lifetime_seconds(payload: dict) -> int:
    """Read ``expires_in`` from a token response, defaulting to one hour."""
    try:
        return int(payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
    except (TypeError, ValueError):
        return DEFAULT_TOKEN_LIFETIME_SECONDS


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class TokenResolver:
    """Ordered strategy chain with one in-memory slot per credential kind.

    Not thread-safe: the slots and the cache file assume one tool call at a time.
    """

    def __init__(
        self,
        strategies: Sequence[ResolverStrategy],
        *,
        cache: TokenCacheFile | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Create a resolver over ``strategies``, tried in order."""
        self._strategies = list(strategies)
        self._cache = cache
        self._clock = clock
        self._slots: dict[CredentialKind, Credential] = {}

    @property
    def strategy_names(self) -> list[str]:
        """Get the strategy names in resolution order."""
        return [strategy.name for strategy in self._strategies]

    def resolve(self, kind: CredentialKind) -> Credential:
        """Return a usable credential of ``kind``.

        Raises:
            NoCredentialAvailable: If no strategy produced one.

        """
        cached = self._slots.get(kind)
        if cached is not None and cached.is_valid(self._clock()):
            return cached
        self._slots.pop(kind, None)

        for strategy in self._strategies:
            credential = strategy.resolve(kind)
            if credential is not None:
                logger.info("Resolved %s via %s", kind.value, strategy.name)
                self._slots[kind] = credential
                return credential
        raise NoCredentialAvailable(kind)

    def invalidate(self, kind: CredentialKind = CredentialKind.OAUTH_TOKEN) -> None:
        """Drop the in-memory credential and, for OAuth, empty the cache file."""
        self._slots.pop(kind, None)
        if kind is CredentialKind.OAUTH_TOKEN and self._cache is not None:
            self._cache.clear()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_resolver(
    settings: CliqSettings,
    store: SecretStore,
    session: requests.Session | None = None,
) -> TokenResolver:
    """Assemble the standard strategy chain for ``settings``."""
    cache = TokenCacheFile(settings.token_cache_path)
    strategies: list[ResolverStrategy] = [
        OverrideStrategy(access_token=settings.access_token, webhook_key=settings.webhook_token),
        CacheFileStrategy(cache),
        SecretStoreStrategy(store, settings.webhook_op_item),
        RefreshStrategy(
            store=store,
            item=settings.op_item,
            token_url=settings.token_url,
            cache=cache,
            session=session,
            timeout_seconds=settings.refresh_timeout_seconds,
        ),
    ]
    return TokenResolver(strategies, cache=cache)
