"""Public exports for the 1Password secret store implementation package."""

from onepassword_store_impl.op_impl import register as _register_store


def register() -> None:
    """Register the 1Password store implementation."""
    _register_store()


register()
