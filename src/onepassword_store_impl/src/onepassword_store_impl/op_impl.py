"""1Password Secret Store Implementation.

Concrete secret_store_api.SecretStore backed by the 1Password CLI (``op``). Each lookup
runs ``op item get <item> --fields label=<label> --format json`` and reads the field value
from the JSON output. The CLI must already be signed in (desktop integration or a service
account token in ``OP_SERVICE_ACCOUNT_TOKEN``).
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from typing import Any

import secret_store_api
from secret_store_api import SecretStore

logger = logging.getLogger("onepassword_store_impl")

DEFAULT_TIMEOUT_SECONDS = 30.0

# ---------------------------------------------------------------------------
# Store implementation
# ---------------------------------------------------------------------------


class OnePasswordStore(SecretStore):
    """Concrete secret_store_api.SecretStore that shells out to the ``op`` CLI.

    Configuration:
        - OP_CLI (optional, defaults to ``op`` on PATH)

    Attributes:
        _cli: Executable used for lookups.
        _timeout: Per-lookup timeout in seconds.

    """

    def __init__(self, cli: str | None = None, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        """Initialize the store, resolving the CLI path from the environment."""
        self._cli = cli or os.environ.get("OP_CLI", "op")
        self._timeout = timeout_seconds

    @property
    def name(self) -> str:
        """Get the store identifier."""
        return "1password"

    def lookup_field(self, item: str, label: str) -> str | None:
        """Read one labelled field from a 1Password item, or None when unavailable."""
        command = [self._cli, "item", "get", item, "--fields", f"label={label}", "--format", "json"]
        try:
            completed = subprocess.run(  # noqa: S603
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self._timeout,
            )
        except subprocess.CalledProcessError as exc:
            logger.debug("op lookup failed for %s/%s: %s", item, label, (exc.stderr or "").strip())
            return None
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("op CLI unavailable for %s/%s: %s", item, label, exc)
            return None

        try:
            parsed = json.loads(completed.stdout)
        except json.JSONDecodeError:
            logger.debug("op returned non-JSON output for %s/%s", item, label)
            return None
        return extract_field(parsed, label)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def extract_field(parsed: Any, label: str) -> str | None:  # noqa: ANN401
    """Pick the field value out of ``op`` JSON output.

    ``op`` prints a single object when one field is requested and a list when several
    match, so both shapes are accepted.
    """
    fields = parsed if isinstance(parsed, list) else [parsed]
    for field in fields:
        if isinstance(field, dict) and field.get("label") == label:
            value = field.get("value")
            return str(value) if value else None
    return None


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_store_impl() -> OnePasswordStore:
    """Return a new OnePasswordStore using env defaults."""
    return OnePasswordStore()


# ---------------------------------------------------------------------------
# Factory registration
# ---------------------------------------------------------------------------


def register() -> None:
    """Bind the 1Password store factory into secret_store_api.get_store."""
    secret_store_api.get_store = get_store_impl
