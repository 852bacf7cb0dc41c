"""Public export surface for ``secret_store_api``."""

from secret_store_api.store import SecretStore, get_store

__all__ = ["SecretStore", "get_store"]
