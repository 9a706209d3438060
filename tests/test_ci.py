"""Tests for the CI release endpoint and service."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from update_registry.auth.token_client import Scope, TokenClient
from update_registry.exceptions import PlatformConflictError
from update_registry.models.app import App
from update_registry.models.release import Artifact, CIReleaseCreate, Release
from update_registry.services.ci_service import CIReleaseService

ARTIFACTS = [
    {
        "platform": "darwin-universal",
        "download_url": "https://cdn.example.com/acme/2.0.0/Acme.app.tar.gz",
        "signature": "c2lnLWRhcndpbg==",
    },
    {
        "platform": "windows-x86_64",
        "download_url": "https://cdn.example.com/acme/2.0.0/Acme_x64-setup.nsis.zip",
        "signature": "c2lnLXdpbmRvd3M=",
    },
]


def test_auto_publish_is_served_immediately(
    client: TestClient,
    acme: dict[str, Any],
    ci_headers: dict[str, str],
) -> None:
    response = client.post(
        "/ci/apps/acme/releases",
        json={"version": "2.0.0", "notes": "Big one", "artifacts": ARTIFACTS, "auto_publish": True},
        headers=ci_headers,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["release"]["status"] == "published"
    assert {a["platform"] for a in body["artifacts"]} == {"darwin-universal", "windows-x86_64"}

    update = client.get("/acme/update/windows-x86_64/1.1.0")
    assert update.status_code == 200
    assert update.json()["version"] == "2.0.0"
    assert update.json()["signature"] == "c2lnLXdpbmRvd3M="


def test_without_auto_publish_stays_draft(
    client: TestClient,
    acme: dict[str, Any],
    ci_headers: dict[str, str],
) -> None:
    response = client.post(
        "/ci/apps/acme/releases",
        json={"version": "2.0.0", "artifacts": ARTIFACTS},
        headers=ci_headers,
    )

    assert response.status_code == 201
    assert response.json()["release"]["status"] == "draft"
    assert client.get("/acme/update/windows-x86_64/1.1.0").status_code == 204


def test_duplicate_platforms_rejected(
    client: TestClient,
    acme: dict[str, Any],
    ci_headers: dict[str, str],
    admin_headers: dict[str, str],
) -> None:
    response = client.post(
        "/ci/apps/acme/releases",
        json={"version": "2.0.0", "artifacts": [ARTIFACTS[0], ARTIFACTS[0]]},
        headers=ci_headers,
    )

    assert response.status_code == 400
    assert response.json()["field"] == "artifacts.1.platform"
    releases = client.get(f"/admin/apps/{acme['app']['id']}/releases", headers=admin_headers).json()
    assert releases["total"] == 1


def test_non_ascii_version_rejected(
    client: TestClient,
    acme: dict[str, Any],
    ci_headers: dict[str, str],
    admin_headers: dict[str, str],
) -> None:
    response = client.post(
        "/ci/apps/acme/releases",
        json={"version": "٢.0.0", "artifacts": ARTIFACTS, "auto_publish": True},
        headers=ci_headers,
    )

    assert response.status_code == 400
    releases = client.get(f"/admin/apps/{acme['app']['id']}/releases", headers=admin_headers).json()
    assert releases["total"] == 1


def test_existing_version_is_conflict(
    client: TestClient,
    acme: dict[str, Any],
    ci_headers: dict[str, str],
) -> None:
    response = client.post(
        "/ci/apps/acme/releases",
        json={"version": "1.1.0", "artifacts": ARTIFACTS},
        headers=ci_headers,
    )

    assert response.status_code == 409


def test_key_bound_to_other_app_is_forbidden(
    client: TestClient,
    acme: dict[str, Any],
    token_client: TokenClient,
) -> None:
    token = token_client.issue_token("key_ci_other", Scope.CI, app_slug="other-app")

    response = client.post(
        "/ci/apps/acme/releases",
        json={"version": "2.0.0", "artifacts": ARTIFACTS},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403


def test_admin_key_may_release(client: TestClient, acme: dict[str, Any], admin_headers: dict[str, str]) -> None:
    response = client.post(
        "/ci/apps/acme/releases",
        json={"version": "2.0.0", "artifacts": ARTIFACTS},
        headers=admin_headers,
    )

    assert response.status_code == 201


def test_requires_token(client: TestClient, acme: dict[str, Any]) -> None:
    response = client.post("/ci/apps/acme/releases", json={"version": "2.0.0"})

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_unknown_app(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post("/ci/apps/ghost/releases", json={"version": "2.0.0"}, headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_failed_artifact_removes_draft() -> None:
    app = App(id="app_1", slug="acme", name="Acme")
    draft = Release(id="rel_1", app_id=app.id, version="2.0.0")
    releases = MagicMock()
    releases.create_release = AsyncMock(return_value=draft)
    releases.delete_release = AsyncMock()
    releases.publish_release = AsyncMock()
    artifacts = MagicMock()
    artifacts.create_artifact = AsyncMock(
        side_effect=[
            Artifact(id="art_1", release_id=draft.id, platform="darwin-universal"),
            PlatformConflictError("artifact", draft.id, "windows-x86_64"),
        ]
    )
    service = CIReleaseService(releases, artifacts)

    with pytest.raises(PlatformConflictError):
        await service.create_release(
            app,
            CIReleaseCreate(version="2.0.0", artifacts=ARTIFACTS, auto_publish=True),
        )

    releases.delete_release.assert_awaited_once_with(app.id, draft.id)
    releases.publish_release.assert_not_awaited()
