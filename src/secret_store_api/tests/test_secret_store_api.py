"""Tests for the secret_store_api contract."""

from __future__ import annotations

import importlib
from unittest.mock import Mock

import pytest

from secret_store_api import SecretStore


class _DictStore(SecretStore):
    """In-memory store keyed by (item, label)."""

    def __init__(self, fields: dict[tuple[str, str], str]) -> None:
        self._fields = fields

    @property
    def name(self) -> str:
        return "memory"

    def lookup_field(self, item: str, label: str) -> str | None:
        return self._fields.get((item, label))


def test_secret_store_is_abstract() -> None:
    """SecretStore requires name and lookup_field."""
    with pytest.raises(TypeError):
        SecretStore()  # type: ignore[abstract]


def test_unbound_get_store_raises() -> None:
    """The contract-level factory raises until an implementation binds it."""
    store_module = importlib.import_module("secret_store_api.store")
    with pytest.raises(NotImplementedError):
        store_module.get_store()


def test_subclass_lookup_is_soft() -> None:
    """Missing fields come back as None rather than raising."""
    store = _DictStore({("cliq.zoho.com", "client_id"): "abc"})

    assert store.lookup_field("cliq.zoho.com", "client_id") == "abc"
    assert store.lookup_field("cliq.zoho.com", "refresh_token") is None
    assert store.name == "memory"


def test_mock_store_matches_contract() -> None:
    """Mocks built from SecretStore expose the single lookup method."""
    store = Mock(spec=SecretStore)
    store.lookup_field.return_value = "secret"

    assert store.lookup_field("item", "label") == "secret"
    store.lookup_field.assert_called_once_with("item", "label")
