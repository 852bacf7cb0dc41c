"""Abstract interface for secret-manager lookups."""

from __future__ import annotations

from abc import ABC, abstractmethod

__all__ = ["SecretStore", "get_store"]


class SecretStore(ABC):
    """The contract for secret managers.

    A store exposes named items, each holding labelled fields. Lookups are soft:
    a missing item, a missing field, or an unreachable manager all yield None.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a short identifier for the store (e.g. ``1password``)."""
        raise NotImplementedError

    @abstractmethod
    def lookup_field(self, item: str, label: str) -> str | None:
        """Return the value of one field of an item.

        Args:
            item: Item name or id in the secret manager.
            label: Field label within the item (e.g. ``refresh_token``).

        Returns:
            The field value, or None when it cannot be read.

        """
        raise NotImplementedError


def get_store() -> SecretStore:
    """Return the default secret store implementation.

    Returns:
        SecretStore implementation.

    """
    raise NotImplementedError
