"""Bearer token authentication for the admin and CI APIs."""

from update_registry.auth.token_client import ApiKeyPrincipal, Scope, TokenClient

__all__ = ["ApiKeyPrincipal", "Scope", "TokenClient"]
