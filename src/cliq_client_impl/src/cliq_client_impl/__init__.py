"""Public exports for the Cliq client implementation package."""

from cliq_client_impl.cliq_impl import register as _register_client


def register() -> None:
    """Register the Cliq client implementation."""
    _register_client()


register()
