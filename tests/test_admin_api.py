"""Tests for the admin API: apps, releases, files and analytics."""

from typing import Any

import pytest
from fastapi.testclient import TestClient


def create_app(client: TestClient, headers: dict[str, str], slug: str = "notes") -> dict[str, Any]:
    response = client.post("/admin/apps", json={"slug": slug, "name": slug.title()}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestApps:
    """App CRUD."""

    def test_create_and_get(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)

        response = client.get(f"/admin/apps/{app['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["slug"] == "notes"
        assert response.json()["public_key"] is None

    def test_duplicate_slug(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        create_app(client, admin_headers)

        response = client.post("/admin/apps", json={"slug": "notes", "name": "Other"}, headers=admin_headers)

        assert response.status_code == 409
        assert "notes" in response.json()["detail"]

    def test_invalid_slug(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        for slug in ["Notes", "no--dash", "-notes", "x"]:
            response = client.post("/admin/apps", json={"slug": slug, "name": "N"}, headers=admin_headers)
            assert response.status_code == 400, slug

    def test_list_with_pagination(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        for slug in ["one-app", "two-app", "three-app"]:
            create_app(client, admin_headers, slug)

        response = client.get("/admin/apps", params={"page": 2, "per_page": 2}, headers=admin_headers)

        body = response.json()
        assert body["total"] == 3
        assert body["page"] == 2
        assert len(body["apps"]) == 1

    def test_update_only_sent_fields(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)
        client.patch(f"/admin/apps/{app['id']}", json={"description": "Desk notes"}, headers=admin_headers)

        response = client.patch(f"/admin/apps/{app['id']}", json={"name": "Notes Pro"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Notes Pro"
        assert response.json()["description"] == "Desk notes"

    def test_delete(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)

        assert client.delete(f"/admin/apps/{app['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"/admin/apps/{app['id']}", headers=admin_headers).status_code == 404
        assert client.delete(f"/admin/apps/{app['id']}", headers=admin_headers).status_code == 404

    def test_delete_removes_releases(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        client.delete(f"/admin/apps/{acme['app']['id']}", headers=admin_headers)

        assert client.get("/acme/update/darwin-aarch64/1.0.0").status_code == 404


class TestReleases:
    """Release lifecycle through the admin API."""

    def test_create_draft(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)

        response = client.post(
            f"/admin/apps/{app['id']}/releases",
            json={"version": "1.0.0-beta.1", "notes": "First beta"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        release = response.json()
        assert release["status"] == "draft"
        assert release["pub_date"] is None

    def test_duplicate_version(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)
        url = f"/admin/apps/{app['id']}/releases"
        client.post(url, json={"version": "1.0.0"}, headers=admin_headers)

        response = client.post(url, json={"version": "1.0.0"}, headers=admin_headers)

        assert response.status_code == 409

    @pytest.mark.parametrize("version", ["1.0", "٢.0.0", "1.0.٣-beta"])
    def test_invalid_version(self, client: TestClient, admin_headers: dict[str, str], version: str) -> None:
        app = create_app(client, admin_headers)
        url = f"/admin/apps/{app['id']}/releases"

        response = client.post(url, json={"version": version}, headers=admin_headers)

        assert response.status_code == 400
        assert client.get(url, headers=admin_headers).json()["total"] == 0

    def test_release_of_unknown_app(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post("/admin/apps/missing/releases", json={"version": "1.0.0"}, headers=admin_headers)

        assert response.status_code == 404

    def test_publish_twice_is_conflict(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)
        release = client.post(
            f"/admin/apps/{app['id']}/releases",
            json={"version": "1.0.0"},
            headers=admin_headers,
        ).json()
        url = f"/admin/apps/{app['id']}/releases/{release['id']}/publish"

        first = client.post(url, headers=admin_headers)
        second = client.post(url, headers=admin_headers)

        assert first.status_code == 200
        assert first.json()["status"] == "published"
        assert first.json()["pub_date"] is not None
        assert second.status_code == 409

    def test_published_release_cannot_be_deleted(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        url = f"/admin/apps/{acme['app']['id']}/releases/{acme['release']['id']}"

        response = client.delete(url, headers=admin_headers)

        assert response.status_code == 409
        assert client.get(url, headers=admin_headers).status_code == 200

    def test_draft_can_be_deleted(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)
        release = client.post(
            f"/admin/apps/{app['id']}/releases",
            json={"version": "1.0.0"},
            headers=admin_headers,
        ).json()
        url = f"/admin/apps/{app['id']}/releases/{release['id']}"

        assert client.delete(url, headers=admin_headers).status_code == 204
        assert client.get(url, headers=admin_headers).status_code == 404

    def test_archive_keeps_pub_date(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        url = f"/admin/apps/{acme['app']['id']}/releases/{acme['release']['id']}"

        response = client.post(f"{url}/archive", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "archived"
        assert response.json()["pub_date"] == acme["release"]["pub_date"]
        assert client.post(f"{url}/archive", headers=admin_headers).status_code == 409
        assert client.post(f"{url}/publish", headers=admin_headers).status_code == 409

    def test_patch_notes_and_status(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        app = create_app(client, admin_headers)
        release = client.post(
            f"/admin/apps/{app['id']}/releases",
            json={"version": "1.0.0"},
            headers=admin_headers,
        ).json()
        url = f"/admin/apps/{app['id']}/releases/{release['id']}"

        response = client.patch(url, json={"notes": "Now public", "status": "published"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["notes"] == "Now public"
        assert response.json()["status"] == "published"
        assert client.patch(url, json={"status": "draft"}, headers=admin_headers).status_code == 409

    def test_list_filtered_by_status(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        url = f"/admin/apps/{acme['app']['id']}/releases"
        client.post(url, json={"version": "1.2.0"}, headers=admin_headers)

        everything = client.get(url, headers=admin_headers).json()
        drafts = client.get(url, params={"status": "draft"}, headers=admin_headers).json()

        assert everything["total"] == 2
        assert drafts["total"] == 1
        assert drafts["releases"][0]["version"] == "1.2.0"

    def test_release_of_other_app_is_not_found(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        other = create_app(client, admin_headers)

        response = client.get(
            f"/admin/apps/{other['id']}/releases/{acme['release']['id']}",
            headers=admin_headers,
        )

        assert response.status_code == 404


class TestArtifactsAndInstallers:
    """Files attached to releases."""

    def test_platform_conflict(self, client: TestClient, acme: dict[str, Any], admin_headers: dict[str, str]) -> None:
        url = f"/admin/apps/{acme['app']['id']}/releases/{acme['release']['id']}/artifacts"

        response = client.post(
            url,
            json={"platform": "darwin-universal", "download_url": "https://cdn.example.com/again.tar.gz"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert "darwin-universal" in response.json()["detail"]

    def test_unknown_platform(self, client: TestClient, acme: dict[str, Any], admin_headers: dict[str, str]) -> None:
        url = f"/admin/apps/{acme['app']['id']}/releases/{acme['release']['id']}/artifacts"

        response = client.post(
            url,
            json={"platform": "beos-x86", "download_url": "https://cdn.example.com/a"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_archived_release_rejects_files(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        base = f"/admin/apps/{acme['app']['id']}/releases/{acme['release']['id']}"
        client.post(f"{base}/archive", headers=admin_headers)

        artifact = client.post(
            f"{base}/artifacts",
            json={"platform": "linux-x86_64", "download_url": "https://cdn.example.com/a.AppImage"},
            headers=admin_headers,
        )
        installer = client.post(
            f"{base}/installers",
            json={
                "platform": "linux-x86_64",
                "filename": "acme.deb",
                "download_url": "https://cdn.example.com/acme.deb",
            },
            headers=admin_headers,
        )

        assert artifact.status_code == 409
        assert installer.status_code == 409

    def test_artifact_crud(self, client: TestClient, acme: dict[str, Any], admin_headers: dict[str, str]) -> None:
        base = f"/admin/apps/{acme['app']['id']}/releases/{acme['release']['id']}/artifacts"
        created = client.post(
            base,
            json={
                "platform": "linux-x86_64",
                "download_url": "https://cdn.example.com/acme.AppImage",
                "signature": "c2ln",
                "file_size": 1024,
            },
            headers=admin_headers,
        ).json()

        listed = client.get(base, headers=admin_headers).json()
        fetched = client.get(f"{base}/{created['id']}", headers=admin_headers)

        assert [a["platform"] for a in listed] == ["darwin-universal", "linux-x86_64"]
        assert fetched.json()["file_size"] == 1024
        assert client.get("/acme/update/linux-x86_64/1.0.0").status_code == 200

        assert client.delete(f"{base}/{created['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"{base}/{created['id']}", headers=admin_headers).status_code == 404
        assert client.get("/acme/update/linux-x86_64/1.0.0").status_code == 204

    def test_installer_crud(self, client: TestClient, acme: dict[str, Any], admin_headers: dict[str, str]) -> None:
        base = f"/admin/apps/{acme['app']['id']}/releases/{acme['release']['id']}/installers"
        payload = {
            "platform": "windows-x86_64",
            "filename": "Acme_1.1.0_x64-setup.exe",
            "display_name": "Windows installer",
            "download_url": "https://cdn.example.com/Acme_1.1.0_x64-setup.exe",
        }

        created = client.post(base, json=payload, headers=admin_headers)
        duplicate = client.post(base, json=payload, headers=admin_headers)

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert [i["filename"] for i in client.get(base, headers=admin_headers).json()] == [payload["filename"]]

        installer_id = created.json()["id"]
        assert client.delete(f"{base}/{installer_id}", headers=admin_headers).status_code == 204
        assert client.delete(f"{base}/{installer_id}", headers=admin_headers).status_code == 404


class TestAnalytics:
    """Analytics endpoints."""

    def test_time_series_defaults_to_24h(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        client.get("/acme/update/darwin-aarch64/1.0.0")

        response = client.get(f"/admin/apps/{acme['app']['id']}/analytics/timeseries", headers=admin_headers)

        body = response.json()
        assert response.status_code == 200
        assert body["period"] == "24h"
        assert len(body["data"]) == 25
        assert body["data"][-1]["count"] == 1

    def test_time_series_rejects_unknown_period(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        response = client.get(
            f"/admin/apps/{acme['app']['id']}/analytics/timeseries",
            params={"period": "1y"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_summary_and_release_stats(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        client.get("/acme/update/darwin-aarch64/1.0.0")
        client.get("/acme/update/darwin-x86_64/1.0.0")
        app_id = acme["app"]["id"]

        summary = client.get(f"/admin/apps/{app_id}/analytics/summary", headers=admin_headers).json()
        release = client.get(
            f"/admin/apps/{app_id}/releases/{acme['release']['id']}/analytics",
            headers=admin_headers,
        ).json()

        assert summary == {"total_downloads": 2, "last_24h": 2, "last_7d": 2, "last_30d": 2}
        assert release["version"] == "1.1.0"
        assert release["total_downloads"] == 2

    def test_stats_without_countries_omit_the_key(
        self,
        client: TestClient,
        acme: dict[str, Any],
        admin_headers: dict[str, str],
    ) -> None:
        response = client.get(f"/admin/apps/{acme['app']['id']}/analytics", headers=admin_headers)

        assert response.status_code == 200
        assert "by_country" not in response.json()

    def test_inverted_date_range(self, client: TestClient, acme: dict[str, Any], admin_headers: dict[str, str]) -> None:
        response = client.get(
            f"/admin/apps/{acme['app']['id']}/analytics",
            params={"start_date": "2024-02-01T00:00:00Z", "end_date": "2024-01-01T00:00:00Z"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["field"] == "start_date"

    def test_unknown_app(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.get("/admin/apps/missing/analytics/summary", headers=admin_headers)

        assert response.status_code == 404
