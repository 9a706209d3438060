"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from update_registry.app import create_app
from update_registry.auth.token_client import Scope, TokenClient
from update_registry.config import Settings
from update_registry.db.database import Database

JWT_SECRET = "test_jwt_secret_for_update_registry"


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with temporary database.

    Args:
        tmp_path: Pytest temporary path fixture.

    Returns:
        Test settings.
    """
    db_path = tmp_path / "test_updates.db"
    return Settings(
        debug=True,
        database_url=f"sqlite:///{db_path}",
        cors_origins=["http://localhost:3000"],
        auth_jwt_secret=JWT_SECRET,
        rate_limit_public=60,
        rate_limit_admin=1000,
        rate_limit_ci=1000,
    )


@pytest.fixture
def app(test_settings: Settings, monkeypatch):
    """Create test application.

    Args:
        test_settings: Test settings.
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        FastAPI application.
    """
    # Monkeypatch get_settings to return test settings
    monkeypatch.setattr("update_registry.app.get_settings", lambda: test_settings)
    monkeypatch.setattr("update_registry.config.get_settings", lambda: test_settings)
    monkeypatch.setattr("update_registry.db.database.get_settings", lambda: test_settings)
    return create_app(test_settings)


@pytest.fixture
def client(app) -> TestClient:
    """Create test client with lifespan.

    Args:
        app: FastAPI application.

    Returns:
        Test client.
    """
    # Use context manager to trigger lifespan events
    with TestClient(app) as client:
        yield client


@pytest.fixture
def token_client() -> TokenClient:
    return TokenClient(jwt_secret=JWT_SECRET)


@pytest.fixture
def admin_headers(token_client: TokenClient) -> dict[str, str]:
    """Authorization headers of an admin key."""
    token = token_client.issue_token("key_admin", Scope.ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def ci_headers(token_client: TokenClient) -> dict[str, str]:
    """Authorization headers of a CI key bound to the ``acme`` app."""
    token = token_client.issue_token("key_ci_acme", Scope.CI, app_slug="acme")
    return {"Authorization": f"Bearer {token}"}


def _create_published_release(
    client: TestClient,
    headers: dict[str, str],
    app_id: str,
    version: str,
    artifacts: list[dict[str, Any]],
    notes: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"version": version}
    if notes is not None:
        payload["notes"] = notes
    response = client.post(f"/admin/apps/{app_id}/releases", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    release = response.json()

    for artifact in artifacts:
        response = client.post(
            f"/admin/apps/{app_id}/releases/{release['id']}/artifacts",
            json=artifact,
            headers=headers,
        )
        assert response.status_code == 201, response.text

    response = client.post(f"/admin/apps/{app_id}/releases/{release['id']}/publish", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def publish_release(client: TestClient, admin_headers: dict[str, str]) -> Callable[..., dict[str, Any]]:
    """Create a release with artifacts through the admin API and publish it.

    Returns:
        Function taking (app_id, version, artifacts, notes=None) and
        returning the published release.
    """

    def publish(app_id: str, version: str, artifacts: list[dict[str, Any]], notes: str | None = None):
        return _create_published_release(client, admin_headers, app_id, version, artifacts, notes)

    return publish


@pytest.fixture
def acme(client: TestClient, admin_headers: dict[str, str]) -> dict[str, Any]:
    """App ``acme`` with one published release 1.1.0 carrying a darwin-universal artifact."""
    response = client.post(
        "/admin/apps",
        json={"slug": "acme", "name": "Acme Desktop"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    app = response.json()

    release = _create_published_release(
        client,
        admin_headers,
        app["id"],
        "1.1.0",
        [
            {
                "platform": "darwin-universal",
                "download_url": "https://cdn.example.com/acme/1.1.0/Acme.app.tar.gz",
                "signature": "dW50cnVzdGVkIGNvbW1lbnQ=",
            }
        ],
        notes="Bug fixes",
    )
    return {"app": app, "release": release}


@pytest_asyncio.fixture
async def db(test_settings: Settings):
    """Initialized database for repository and service tests."""
    database = Database(test_settings.database_url)
    await database.initialize()
    yield database
    await database.close()
