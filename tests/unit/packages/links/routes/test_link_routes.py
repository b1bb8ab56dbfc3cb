"""
Integration tests for the link endpoints and the root redirect.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from common.core.security import hash_password
from packages.links.models.domain.link import LinkCreateModel
from packages.links.repositories.link_repository import LinkRepository


def _from_ip(ip: str) -> dict:
    return {"X-Forwarded-For": f"{ip}, 10.0.0.1"}


@pytest.mark.asyncio
class TestShorten:
    async def test_anonymous_quota_runs_out(self, client):
        headers = _from_ip("1.2.3.4")

        first = await client.post(
            "/api/v1/shorten", json={"url": "https://example.com/1"}, headers=headers
        )
        second = await client.post(
            "/api/v1/shorten", json={"url": "https://example.com/2"}, headers=headers
        )
        third = await client.post(
            "/api/v1/shorten", json={"url": "https://example.com/3"}, headers=headers
        )

        assert first.status_code == 201
        assert first.json()["quota"] == {"used": 1, "limit": 2, "remaining": 1}
        assert second.status_code == 201
        assert second.json()["quota"]["remaining"] == 0
        assert third.status_code == 403
        body = third.json()
        assert body["error"] == "quota_exceeded"
        assert body["usage"] == {"used": 2, "limit": 2, "remaining": 0}

    async def test_other_ip_has_its_own_quota(self, client):
        for i in range(2):
            await client.post(
                "/api/v1/shorten",
                json={"url": f"https://example.com/{i}"},
                headers=_from_ip("1.2.3.4"),
            )

        response = await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com/other"},
            headers=_from_ip("5.6.7.8"),
        )

        assert response.status_code == 201

    async def test_response_shape(self, client):
        response = await client.post(
            "/api/v1/shorten",
            json={
                "url": "https://example.com/doc",
                "alias": "team-doc",
                "metadata": {"isChatbotEnable": True, "isScreenShotEnable": True},
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["shortCode"] == "team-doc"
        assert data["shortUrl"].endswith("/team-doc")
        assert data["originalUrl"] == "https://example.com/doc"
        assert data["urlType"] == "standard"
        assert data["metadata"]["isChatbotEnable"] is True
        assert data["metadata"]["isScreenShotEnable"] is True

    async def test_signed_in_user_uses_plan_quota(
        self, client, individual_account, auth_headers
    ):
        response = await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com"},
            headers=auth_headers(individual_account),
        )

        assert response.status_code == 201
        assert response.json()["quota"] == {"used": 1, "limit": 2, "remaining": 1}

    async def test_unknown_token_is_treated_as_anonymous(self, client):
        response = await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com"},
            headers={"Authorization": "Bearer lm_" + "0" * 64, **_from_ip("7.7.7.7")},
        )

        assert response.status_code == 201
        link = await LinkRepository().get_by_code(response.json()["data"]["shortCode"])
        assert link.ip_address == "7.7.7.7"

    async def test_pending_enterprise_has_no_plan(
        self, client, pending_enterprise, auth_headers
    ):
        account, _ = pending_enterprise

        response = await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com"},
            headers=auth_headers(account),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "no_active_plan"

    async def test_taken_alias(self, client):
        await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com", "alias": "launch"},
            headers=_from_ip("1.1.1.1"),
        )

        response = await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com/b", "alias": "launch"},
            headers=_from_ip("2.2.2.2"),
        )

        assert response.status_code == 409

    async def test_invalid_alias(self, client):
        response = await client.post(
            "/api/v1/shorten", json={"url": "https://example.com", "alias": "a b"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_alias"

    async def test_invalid_url(self, client):
        response = await client.post("/api/v1/shorten", json={"url": "example.com"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["errors"]

    async def test_past_expiry(self, client):
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()

        response = await client.post(
            "/api/v1/shorten", json={"url": "https://example.com", "expiryTime": past}
        )

        assert response.status_code == 400


@pytest.mark.asyncio
class TestRedirect:
    async def test_redirects_and_counts(self, client):
        created = await client.post(
            "/api/v1/shorten", json={"url": "https://example.com/landing"}
        )
        code = created.json()["data"]["shortCode"]

        response = await client.get(f"/{code}", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/landing"
        stats = await client.get(f"/api/v1/stats/{code}")
        assert stats.json()["clicks"] == 1

    async def test_unknown_code(self, client):
        response = await client.get("/missing1", follow_redirects=False)

        assert response.status_code == 404

    async def test_expired_link(self, client):
        await LinkRepository().create(
            LinkCreateModel(
                code="old-one",
                original_url="https://example.com",
                ip_address="1.2.3.4",
                expires_at=datetime.now(timezone.utc) - timedelta(minutes=5),
            )
        )

        response = await client.get("/old-one", follow_redirects=False)

        assert response.status_code == 410
        assert "expiredAt" in response.json()

    async def test_password_protected(self, client):
        await LinkRepository().create(
            LinkCreateModel(
                code="locked",
                original_url="https://example.com/secret",
                ip_address="1.2.3.4",
                is_password_protected=True,
                password_hash=hash_password("s3cret"),
            )
        )

        missing = await client.get("/locked", follow_redirects=False)
        wrong = await client.get("/locked?password=nope", follow_redirects=False)
        right = await client.get("/locked?password=s3cret", follow_redirects=False)

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert right.status_code == 302
        assert right.headers["location"] == "https://example.com/secret"


@pytest.mark.asyncio
class TestStats:
    async def test_stats(self, client):
        created = await client.post(
            "/api/v1/shorten",
            json={"url": "https://example.com", "alias": "stats-me"},
        )
        assert created.status_code == 201

        response = await client.get("/api/v1/stats/stats-me")

        assert response.status_code == 200
        body = response.json()
        assert body["shortCode"] == "stats-me"
        assert body["customAlias"] == "stats-me"
        assert body["clicks"] == 0
        assert body["createdBy"] == "anonymous"

    async def test_stats_not_found(self, client):
        response = await client.get("/api/v1/stats/nothing")

        assert response.status_code == 404


@pytest.mark.asyncio
class TestUpload:
    async def test_upload_pdf(self, client, mock_storage):
        response = await client.post(
            "/api/v1/upload",
            files={"file": ("report.pdf", b"%PDF-1.4 body", "application/pdf")},
            data={"metadata": json.dumps({"isDownloadEnable": True})},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["fileName"] == "report.pdf"
        assert data["fileType"] == "application/pdf"
        assert data["fileSizeBytes"] == len(b"%PDF-1.4 body")
        assert data["isPasswordProtected"] is False
        assert data["metadata"]["isDownloadEnable"] is True
        mock_storage.upload.assert_awaited_once()

    async def test_upload_then_redirect_to_signed_url(self, client):
        created = await client.post(
            "/api/v1/upload",
            files={"file": ("pic.png", b"\x89PNG data", "image/png")},
        )
        code = created.json()["data"]["shortCode"]

        response = await client.get(f"/{code}", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://files.example.com/signed?sig=abc"

    async def test_rejects_bad_type(self, client):
        response = await client.post(
            "/api/v1/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400

    async def test_rejects_bad_metadata(self, client):
        response = await client.post(
            "/api/v1/upload",
            files={"file": ("report.pdf", b"%PDF", "application/pdf")},
            data={"metadata": "{not json"},
        )

        assert response.status_code == 400
        assert response.json()["errors"]

    async def test_password_form_fields(self, client):
        response = await client.post(
            "/api/v1/upload",
            files={"file": ("report.pdf", b"%PDF", "application/pdf")},
            data={"isPasswordProtected": "true", "password": "hunter22"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["isPasswordProtected"] is True


@pytest.mark.asyncio
class TestUserFiles:
    async def test_requires_account(self, client):
        response = await client.get("/api/v1/user/files")

        assert response.status_code == 401

    async def test_lists_files_with_pagination(
        self, client, enterprise_account, auth_headers
    ):
        headers = auth_headers(enterprise_account)
        for name in ("a.pdf", "b.pdf", "c.pdf"):
            await client.post(
                "/api/v1/upload",
                files={"file": (name, b"%PDF data", "application/pdf")},
                headers=headers,
            )

        response = await client.get(
            "/api/v1/user/files?page=1&limit=2&type=pdf", headers=headers
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["files"]) == 2
        assert body["pagination"] == {
            "page": 1,
            "limit": 2,
            "totalFiles": 3,
            "totalPages": 2,
            "hasNextPage": True,
            "hasPrevPage": False,
        }
        assert body["summary"]["totalFiles"] == 3
        assert body["files"][0]["isExpired"] is False

    async def test_invalid_filter(self, client, individual_account, auth_headers):
        response = await client.get(
            "/api/v1/user/files?type=video", headers=auth_headers(individual_account)
        )

        assert response.status_code == 400
