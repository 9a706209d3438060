"""HTTP API for the update registry."""

from update_registry.api.router import create_router

__all__ = ["create_router"]
