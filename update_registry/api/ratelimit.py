"""Rate-limit dependency for the HTTP routes."""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request

from update_registry.api.deps import get_app_settings, get_rate_limiter, verify_api_token
from update_registry.auth.token_client import ApiKeyPrincipal
from update_registry.config import Settings
from update_registry.exceptions import RateLimitExceededError
from update_registry.ratelimit.store import RateLimitResult, RateLimitStore, client_key, default_policies

logger = logging.getLogger(__name__)


def rate_limit(policy_name: str) -> Callable:
    """Create a dependency enforcing a named rate-limit policy.

    The result is stored on ``request.state.rate_limit``; the application
    middleware copies it into ``X-RateLimit-*`` response headers.

    Args:
        policy_name: ``public``, ``admin`` or ``ci``.

    Returns:
        Dependency returning the RateLimitResult.

    Raises:
        RateLimitExceededError: When the client is over its limit.
    """

    async def dependency(
        request: Request,
        limiter: RateLimitStore = Depends(get_rate_limiter),
        settings: Settings = Depends(get_app_settings),
        principal: Optional[ApiKeyPrincipal] = Depends(verify_api_token),
    ) -> RateLimitResult:
        policy = default_policies(settings)[policy_name]
        client = client_key(
            request.headers,
            peer=request.client.host if request.client else None,
            api_key_id=principal.key_id if principal else None,
            trust_forwarded_headers=settings.trust_forwarded_headers,
        )

        result = limiter.check_policy(policy, client)
        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {policy.key_for(client)} on {request.url.path}")
            raise RateLimitExceededError(
                limit=result.limit,
                reset=result.reset,
                retry_after=result.retry_after,
            )

        request.state.rate_limit = result
        return result

    return dependency
