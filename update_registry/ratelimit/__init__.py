"""In-process rate limiting."""

from update_registry.ratelimit.store import (
    RateLimitPolicy,
    RateLimitResult,
    RateLimitStore,
    client_key,
    default_policies,
)

__all__ = [
    "RateLimitPolicy",
    "RateLimitResult",
    "RateLimitStore",
    "client_key",
    "default_policies",
]
