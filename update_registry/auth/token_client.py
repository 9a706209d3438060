"""
API token client for the admin and CI APIs.

Release pipelines and operators authenticate with HS256 JWTs signed with
the shared ``auth_jwt_secret``. The registry never stores keys itself;
it only checks the signature and the claims.

Token Structure:
{
    "sub": str,     # API key id, also the rate-limit identity
    "scope": str,   # "admin" or "ci"
    "app": str,     # optional, app slug a CI key is bound to
    "exp": int,     # Unix timestamp
    "iat": int      # Issued at
}
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class Scope(str, Enum):
    """Token scopes."""

    ADMIN = "admin"
    CI = "ci"


@dataclass
class ApiKeyPrincipal:
    """Verified token claims."""

    key_id: str
    scope: Scope
    app_slug: Optional[str]
    exp: int  # Expiry timestamp

    def can_release(self, app_slug: str) -> bool:
        """Whether this key may publish releases of ``app_slug``.

        Admin keys may release any app; CI keys only the app they are
        bound to, or any app when unbound.
        """
        if self.scope == Scope.ADMIN:
            return True
        return self.app_slug is None or self.app_slug == app_slug


class TokenClient:
    """Issue and validate API tokens."""

    def __init__(self, jwt_secret: str):
        """Initialize client.

        Args:
            jwt_secret: Shared secret for JWT signing and validation (HS256)
        """
        self.jwt_secret = jwt_secret

    @property
    def enabled(self) -> bool:
        return bool(self.jwt_secret)

    def issue_token(
        self,
        key_id: str,
        scope: Scope,
        app_slug: Optional[str] = None,
        ttl_seconds: int = 3600,
    ) -> str:
        """Sign a token for an API key.

        Args:
            key_id: API key id.
            scope: Token scope.
            app_slug: App a CI key is bound to.
            ttl_seconds: Lifetime of the token.

        Returns:
            Encoded JWT.
        """
        if not self.enabled:
            raise ValueError("auth_jwt_secret is not configured")

        now = int(time.time())
        payload = {
            "sub": key_id,
            "scope": Scope(scope).value,
            "iat": now,
            "exp": now + ttl_seconds,
        }
        if app_slug:
            payload["app"] = app_slug
        return jwt.encode(payload, self.jwt_secret, algorithm=ALGORITHM)

    def validate_token(self, token: str) -> Optional[ApiKeyPrincipal]:
        """Validate a token locally.

        Args:
            token: JWT token string

        Returns:
            ApiKeyPrincipal if valid, None if invalid
        """
        if not self.enabled:
            logger.warning("Token rejected: auth_jwt_secret is not configured")
            return None

        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "scope", "exp"]},
            )
            return ApiKeyPrincipal(
                key_id=str(payload["sub"]),
                scope=Scope(payload["scope"]),
                app_slug=payload.get("app"),
                exp=payload["exp"],
            )

        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Invalid token scope: {e}")
            return None
