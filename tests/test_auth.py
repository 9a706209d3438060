"""Tests for API tokens and route protection."""

import time

import jwt
import pytest
from fastapi.testclient import TestClient

from update_registry.auth.token_client import ALGORITHM, ApiKeyPrincipal, Scope, TokenClient


class TestTokenClient:
    """Issuing and validating tokens."""

    def test_round_trip_claims(self, token_client: TokenClient) -> None:
        token = token_client.issue_token("key_ci", Scope.CI, app_slug="acme", ttl_seconds=60)

        principal = token_client.validate_token(token)

        assert principal is not None
        assert principal.key_id == "key_ci"
        assert principal.scope == Scope.CI
        assert principal.app_slug == "acme"
        assert principal.exp > time.time()

    def test_expired_token(self, token_client: TokenClient) -> None:
        token = token_client.issue_token("key_admin", Scope.ADMIN, ttl_seconds=-10)

        assert token_client.validate_token(token) is None

    def test_wrong_secret(self, token_client: TokenClient) -> None:
        token = TokenClient("another-secret").issue_token("key_admin", Scope.ADMIN)

        assert token_client.validate_token(token) is None

    def test_unknown_scope(self, token_client: TokenClient) -> None:
        token = jwt.encode(
            {"sub": "key_x", "scope": "superuser", "exp": int(time.time()) + 60},
            token_client.jwt_secret,
            algorithm=ALGORITHM,
        )

        assert token_client.validate_token(token) is None

    def test_missing_claims(self, token_client: TokenClient) -> None:
        token = jwt.encode({"sub": "key_x", "exp": int(time.time()) + 60}, token_client.jwt_secret, algorithm=ALGORITHM)

        assert token_client.validate_token(token) is None

    def test_garbage(self, token_client: TokenClient) -> None:
        assert token_client.validate_token("not-a-jwt") is None

    def test_disabled_without_secret(self) -> None:
        client = TokenClient("")

        assert not client.enabled
        assert client.validate_token("anything") is None
        with pytest.raises(ValueError):
            client.issue_token("key_admin", Scope.ADMIN)


class TestPrincipal:
    @pytest.mark.parametrize(
        "scope, bound, target, expected",
        [
            (Scope.ADMIN, None, "acme", True),
            (Scope.ADMIN, "other", "acme", True),
            (Scope.CI, None, "acme", True),
            (Scope.CI, "acme", "acme", True),
            (Scope.CI, "other", "acme", False),
        ],
    )
    def test_can_release(self, scope: Scope, bound: str, target: str, expected: bool) -> None:
        principal = ApiKeyPrincipal(key_id="k", scope=scope, app_slug=bound, exp=0)

        assert principal.can_release(target) is expected


class TestRouteProtection:
    """Admin routes need an admin token; the update check needs none."""

    def test_admin_without_token(self, client: TestClient) -> None:
        response = client.get("/admin/apps")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_admin_with_invalid_token(self, client: TestClient) -> None:
        response = client.get("/admin/apps", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_admin_with_ci_token(self, client: TestClient, ci_headers: dict[str, str]) -> None:
        response = client.get("/admin/apps", headers=ci_headers)

        assert response.status_code == 403

    def test_admin_with_admin_token(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.get("/admin/apps", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "1000"

    def test_update_check_is_public(self, client: TestClient, acme) -> None:
        response = client.get("/acme/update/darwin-aarch64/1.0.0")

        assert response.status_code == 200
