"""
EcoAdmin Backend: API Endpoint Tests
=====================================

What:  End-to-end HTTP behavior through the FastAPI app: JSON envelopes,
       status codes, error mapping and the review scenarios.
How:   HTTPX AsyncClient over ASGITransport; each test has its own SQLite
       file and storage directory.
"""

import uuid

import pytest

from conftest import ADMIN_KEY, GIF_BYTES, JPEG_BYTES, PNG_BYTES, padded
from ecoadmin.config import Settings

MIB = 1024 * 1024

RIVERBANK = {"name": "Riverbank", "description": "Cleanup along the east bank", "link": "http://x"}

APPLICANT = {
    "fullName": "Jordan Lee",
    "age": "27",
    "email": "jordan@example.org",
    "phone": "555-0199",
    "address": "4 Harbor Road",
}


async def submit_location(client, fields=None, image=None):
    files = {"image": image or ("river.png", padded(PNG_BYTES, 2 * MIB), "image/png")}
    return await client.post("/api/submit-location", data=fields or RIVERBANK, files=files)


async def submit_join(client, location_id, fields=None, image=None):
    data = {"locationId": location_id, **(fields or APPLICANT)}
    files = {"image": image or ("me.gif", padded(GIF_BYTES, MIB), "image/gif")}
    return await client.post("/api/submit-user", data=data, files=files)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_rejected_location_refuses_joins(self, test_client):
        response = await submit_location(test_client)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        location = body["data"]
        assert location["status"] == "pending"
        assert location["imageUrl"] == f"/api/image/{location['id']}"

        response = await test_client.post(
            f"/api/admin/reject/{location['id']}",
            json={"adminId": "alice", "reason": "duplicate"},
        )
        assert response.status_code == 200
        rejected = response.json()["data"]
        assert rejected["status"] == "rejected"
        assert rejected["rejectionReason"] == "duplicate"
        assert rejected["processedBy"] == "alice"
        assert rejected["processedAt"] is not None

        response = await submit_join(test_client, location["id"])
        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "invalid_state"

    @pytest.mark.asyncio
    async def test_approved_location_accepts_joins(self, test_client):
        location = (await submit_location(test_client)).json()["data"]

        response = await test_client.post(f"/api/admin/approve/{location['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "approved"
        assert response.json()["data"]["processedBy"] == "admin"

        response = await submit_join(test_client, location["id"])
        assert response.status_code == 201
        join = response.json()["data"]
        assert join["locationId"] == location["id"]
        assert join["location"]["name"] == "Riverbank"

        response = await test_client.get(f"/api/location/{location['id']}/users")
        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["data"][0]["id"] == join["id"]

    @pytest.mark.asyncio
    async def test_second_transition_conflicts(self, test_client):
        location = (await submit_location(test_client)).json()["data"]

        first = await test_client.post(f"/api/admin/approve/{location['id']}", json={})
        second = await test_client.post(f"/api/admin/reject/{location['id']}", json={})

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["details"]["currentStatus"] == "approved"


class TestSubmission:
    @pytest.mark.asyncio
    async def test_missing_field(self, test_client):
        response = await submit_location(test_client, fields={"name": "Riverbank", "link": "http://x"})
        assert response.status_code == 400
        body = response.json()
        assert body == {
            "success": False,
            "error": "validation_error",
            "message": "Description is required",
            "details": {"field": "description"},
            "requestId": response.headers["X-Request-ID"],
        }

    @pytest.mark.asyncio
    async def test_missing_image(self, test_client):
        response = await test_client.post("/api/submit-location", data=RIVERBANK)
        assert response.status_code == 400
        assert response.json()["message"] == "Image file is required"

    @pytest.mark.asyncio
    async def test_oversized_image(self, test_client):
        response = await submit_location(
            test_client, image=("big.jpg", padded(JPEG_BYTES, 6 * MIB), "image/jpeg")
        )
        assert response.status_code == 400
        assert "too large" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_text_renamed_to_jpg(self, test_client):
        response = await submit_location(
            test_client, image=("photo.jpg", b"definitely not an image", "image/jpeg")
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_profile_age_out_of_range(self, test_client):
        response = await test_client.post(
            "/api/profiles",
            data={**APPLICANT, "age": "17"},
            files={"image": ("me.jpg", JPEG_BYTES, "image/jpeg")},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Age must be between 18 and 100"

    @pytest.mark.asyncio
    async def test_join_missing_location_id(self, test_client):
        response = await test_client.post(
            "/api/submit-user",
            data=APPLICANT,
            files={"image": ("me.gif", GIF_BYTES, "image/gif")},
        )
        assert response.status_code == 400
        assert response.json()["details"] == {"field": "locationId"}

    @pytest.mark.asyncio
    async def test_join_unknown_location(self, test_client):
        response = await submit_join(test_client, str(uuid.uuid4()))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestRetrieval:
    @pytest.mark.asyncio
    async def test_image_round_trip(self, test_client):
        content = padded(JPEG_BYTES, 4 * MIB)
        location = (
            await submit_location(test_client, image=("photo.jpeg", content, "image/jpeg"))
        ).json()["data"]

        response = await test_client.get(location["imageUrl"])

        assert response.status_code == 200
        assert response.content == content
        assert response.headers["content-type"] == "image/jpeg"
        assert response.headers["cache-control"] == "public, max-age=86400"

    @pytest.mark.asyncio
    async def test_status_projection(self, test_client):
        location = (await submit_location(test_client)).json()["data"]

        response = await test_client.get(f"/api/location-status/{location['id']}")

        assert response.status_code == 200
        assert set(response.json()["data"]) == {
            "id", "status", "submittedAt", "processedAt", "rejectionReason",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        [
            "/api/locations/{id}",
            "/api/location-status/{id}",
            "/api/image/{id}",
            "/api/profiles/{id}",
            "/api/users/{id}/image",
        ],
    )
    @pytest.mark.parametrize("record_id", ["not-a-uuid", str(uuid.uuid4())])
    async def test_unknown_ids_are_404(self, test_client, path, record_id):
        response = await test_client.get(path.format(id=record_id))
        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_pending_and_approved_listings(self, test_client):
        ids = [
            (await submit_location(test_client, fields={**RIVERBANK, "name": f"L{i}"})).json()["data"]["id"]
            for i in range(3)
        ]
        await test_client.post(f"/api/admin/approve/{ids[0]}")

        pending = (await test_client.get("/api/admin/pending-locations")).json()
        approved = (await test_client.get("/api/locations/approved")).json()

        assert pending["count"] == 2
        assert {item["id"] for item in pending["data"]} == set(ids[1:])
        assert approved["count"] == 1
        assert approved["data"][0]["id"] == ids[0]

    @pytest.mark.asyncio
    async def test_filtered_listing_pagination(self, test_client):
        for i in range(3):
            await submit_location(test_client, fields={**RIVERBANK, "name": f"L{i}"})

        response = await test_client.get("/api/admin/locations", params={"status": "pending", "limit": 2})

        body = response.json()
        assert response.status_code == 200
        assert len(body["data"]) == 2
        assert body["pagination"] == {"current": 1, "pages": 2, "total": 3, "limit": 2}

    @pytest.mark.asyncio
    async def test_filtered_listing_bad_status(self, test_client):
        response = await test_client.get("/api/admin/locations", params={"status": "bogus"})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_limit_out_of_range(self, test_client):
        response = await test_client.get("/api/admin/users", params={"limit": 500})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_profile_workflow(self, test_client):
        response = await test_client.post(
            "/api/profiles",
            data=APPLICANT,
            files={"image": ("me.png", PNG_BYTES, "image/png")},
        )
        assert response.status_code == 201
        profile = response.json()["data"]

        response = await test_client.post(f"/api/admin/profiles/{profile['id']}/reject")
        assert response.json()["data"]["rejectionReason"] == "No reason provided"

        response = await test_client.get(f"/api/profile-status/{profile['id']}")
        assert response.json()["data"]["status"] == "rejected"

        response = await test_client.get(f"/api/profiles/{profile['id']}/image")
        assert response.content == PNG_BYTES


class TestAdmin:
    @pytest.mark.asyncio
    async def test_valid_key(self, test_client):
        response = await test_client.post("/validate-admin-key", json={"key": ADMIN_KEY})
        assert response.status_code == 200
        assert response.json()["valid"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["wrong-key", ""])
    async def test_invalid_key(self, test_client, key):
        response = await test_client.post("/validate-admin-key", json={"key": key})
        assert response.status_code == 401
        assert response.json()["valid"] is False

    @pytest.mark.asyncio
    async def test_unset_key_never_validates(self, tmp_path):
        from httpx import ASGITransport, AsyncClient

        from ecoadmin.main import create_app

        settings = Settings(
            _env_file=None,
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'nokey.db'}",
            storage_root=str(tmp_path / "uploads"),
            admin_access_key="",
        )
        app = create_app(settings)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/validate-admin-key", json={"key": ""})
        await app.state.database.dispose()

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_send_email(self, test_client):
        response = await test_client.post("/api/send-email", json={"email": "sam@example.org"})
        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_send_email_requires_address(self, test_client):
        response = await test_client.post("/api/send-email", json={})
        assert response.status_code == 400


class TestHealthAndStoreFailures:
    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["database"] == "connected"
        assert body["environment"] == "test"

    @pytest.mark.asyncio
    async def test_unreachable_store(self, tmp_path):
        from httpx import ASGITransport, AsyncClient

        from ecoadmin.main import create_app

        settings = Settings(
            _env_file=None,
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'store.db'}",
            storage_root=str(tmp_path / "uploads"),
            db_connect_timeout=1,
        )
        app = create_app(settings)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            listing = await client.get("/api/admin/pending-locations")
            health = await client.get("/api/health")
        await app.state.database.dispose()

        assert listing.status_code == 503
        assert listing.json()["error"] == "store_unavailable"
        assert "Retry-After" in listing.headers
        assert health.status_code == 503
        assert health.json()["database"] == "disconnected"
