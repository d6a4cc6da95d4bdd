"""
EcoAdmin Backend: Submission Service Tests
===========================================

What:  The review workflow against a real (SQLite) record store.

What we test:
    ✅ create() validates fields and image, stores a pending record
    ✅ approve/reject are terminal: the second transition always fails
    ✅ concurrent transitions: exactly one succeeds
    ✅ default actor and rejection reason
    ✅ list ordering: pending by submitted_at, approved by processed_at
    ✅ status filter validation and pagination totals
    ✅ unknown and malformed ids raise NotFoundError
    ✅ a failed insert removes the already-written image blob
"""

import asyncio
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from conftest import JPEG_BYTES, PNG_BYTES, padded
from ecoadmin.exceptions import (
    InvalidStateError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from ecoadmin.services.image_service import ImageUpload
from ecoadmin.services.location_service import LocationService
from ecoadmin.services.profile_service import ProfileService

RIVERBANK = {"name": "Riverbank", "description": "Cleanup along the east bank", "link": "http://x"}

APPLICANT = {
    "fullName": "Sam Rivera",
    "age": "34",
    "email": "sam@example.org",
    "phone": "555-0100",
    "address": "12 Elm Street",
}


def png_upload(size: int = 0) -> ImageUpload:
    content = padded(PNG_BYTES, size) if size else PNG_BYTES
    return ImageUpload("river.png", "image/png", content)


@pytest.fixture
def locations(image_service, clock) -> LocationService:
    return LocationService(image_service, clock=clock)


@pytest.fixture
def profiles(image_service, clock) -> ProfileService:
    return ProfileService(image_service, clock=clock)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_location_is_pending(self, locations, db_session):
        location = await locations.create(db_session, RIVERBANK, png_upload(2 * 1024 * 1024))

        assert location.status == "pending"
        assert location.name == "Riverbank"
        assert location.processed_at is None
        assert location.processed_by is None
        assert location.image_mimetype == "image/png"
        assert location.image_url == f"/api/image/{location.id}"

    @pytest.mark.asyncio
    async def test_create_trims_fields(self, locations, db_session):
        location = await locations.create(
            db_session, {**RIVERBANK, "name": "  Riverbank  "}, png_upload()
        )
        assert location.name == "Riverbank"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["name", "description", "link"])
    async def test_missing_field(self, locations, db_session, missing):
        fields = {**RIVERBANK, missing: "   "}
        with pytest.raises(ValidationError) as exc_info:
            await locations.create(db_session, fields, png_upload())
        assert exc_info.value.field == missing

    @pytest.mark.asyncio
    async def test_invalid_image_stores_nothing(self, locations, db_session, image_service):
        with pytest.raises(ValidationError):
            await locations.create(
                db_session, RIVERBANK, ImageUpload("notes.jpg", "image/jpeg", b"hello")
            )

        items, total = await locations.list_filtered(db_session)
        assert total == 0
        assert not any(p.is_file() for p in image_service.storage_root.rglob("*"))

    @pytest.mark.asyncio
    async def test_create_profile(self, profiles, db_session):
        profile = await profiles.create(db_session, APPLICANT, png_upload())
        assert profile.status == "pending"
        assert profile.age == 34
        assert profile.full_name == "Sam Rivera"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("age", ["17", "101"])
    async def test_profile_age_out_of_range(self, profiles, db_session, age):
        with pytest.raises(ValidationError, match="between 18 and 100"):
            await profiles.create(db_session, {**APPLICANT, "age": age}, png_upload())

    @pytest.mark.asyncio
    async def test_profile_age_not_a_number(self, profiles, db_session):
        with pytest.raises(ValidationError, match="whole number"):
            await profiles.create(db_session, {**APPLICANT, "age": "thirty"}, png_upload())

    @pytest.mark.asyncio
    async def test_failed_insert_removes_blob(self, locations, mock_db_session, image_service):
        mock_db_session.commit.side_effect = OperationalError("INSERT", {}, Exception("timeout"))

        with pytest.raises(StoreUnavailableError):
            await locations.create(mock_db_session, RIVERBANK, png_upload())

        assert not any(p.is_file() for p in image_service.storage_root.rglob("*"))


class TestTransitions:
    @pytest.mark.asyncio
    async def test_reject_records_reason(self, locations, db_session):
        location = await locations.create(db_session, RIVERBANK, png_upload())

        rejected = await locations.reject(db_session, location.id, actor="alice", reason="duplicate")

        assert rejected.status == "rejected"
        assert rejected.rejection_reason == "duplicate"
        assert rejected.processed_by == "alice"
        assert rejected.processed_at is not None

    @pytest.mark.asyncio
    async def test_defaults_for_actor_and_reason(self, locations, db_session):
        first = await locations.create(db_session, RIVERBANK, png_upload())
        second = await locations.create(db_session, RIVERBANK, png_upload())

        approved = await locations.approve(db_session, first.id)
        rejected = await locations.reject(db_session, second.id, actor="  ", reason="")

        assert approved.processed_by == "admin"
        assert approved.rejection_reason is None
        assert rejected.processed_by == "admin"
        assert rejected.rejection_reason == "No reason provided"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "first, second",
        [("approve", "approve"), ("approve", "reject"), ("reject", "approve"), ("reject", "reject")],
    )
    async def test_second_transition_fails(self, locations, db_session, first, second):
        location = await locations.create(db_session, RIVERBANK, png_upload())

        done = await getattr(locations, first)(db_session, location.id)
        with pytest.raises(InvalidStateError) as exc_info:
            await getattr(locations, second)(db_session, str(location.id))

        assert exc_info.value.current_status == done.status
        current = await locations.get(db_session, location.id)
        assert current.status == done.status
        assert current.processed_at == done.processed_at

    @pytest.mark.asyncio
    async def test_concurrent_transitions_one_wins(self, locations, database):
        async with database.session_factory() as session:
            location = await locations.create(session, RIVERBANK, png_upload())

        async def act(action):
            async with database.session_factory() as session:
                return await getattr(locations, action)(session, location.id)

        results = await asyncio.gather(act("approve"), act("reject"), return_exceptions=True)

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidStateError)

    @pytest.mark.asyncio
    async def test_transition_unknown_id(self, locations, db_session):
        with pytest.raises(NotFoundError):
            await locations.approve(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_transition_malformed_id(self, locations, db_session):
        with pytest.raises(NotFoundError):
            await locations.reject(db_session, "not-a-uuid")

    @pytest.mark.asyncio
    async def test_profiles_share_the_workflow(self, profiles, db_session):
        profile = await profiles.create(db_session, APPLICANT, png_upload())
        await profiles.approve(db_session, profile.id, actor="bob")
        with pytest.raises(InvalidStateError):
            await profiles.reject(db_session, profile.id)


class TestReads:
    @pytest.mark.asyncio
    async def test_pending_ordered_by_submission(self, locations, db_session):
        a = await locations.create(db_session, {**RIVERBANK, "name": "A"}, png_upload())
        b = await locations.create(db_session, {**RIVERBANK, "name": "B"}, png_upload())
        c = await locations.create(db_session, {**RIVERBANK, "name": "C"}, png_upload())

        pending = await locations.list_pending(db_session)

        assert [p.id for p in pending] == [c.id, b.id, a.id]

    @pytest.mark.asyncio
    async def test_approved_ordered_by_processing_not_submission(self, locations, db_session):
        a = await locations.create(db_session, {**RIVERBANK, "name": "A"}, png_upload())
        b = await locations.create(db_session, {**RIVERBANK, "name": "B"}, png_upload())
        c = await locations.create(db_session, {**RIVERBANK, "name": "C"}, png_upload())

        # Approve in an order different from submission order
        await locations.approve(db_session, c.id)
        await locations.approve(db_session, a.id)
        await locations.approve(db_session, b.id)

        approved = await locations.list_approved(db_session)

        assert [p.id for p in approved] == [b.id, a.id, c.id]

    @pytest.mark.asyncio
    async def test_list_filtered_by_status_with_total(self, locations, db_session):
        created = [
            await locations.create(db_session, {**RIVERBANK, "name": f"L{i}"}, png_upload())
            for i in range(5)
        ]
        await locations.reject(db_session, created[0].id)

        pending, total = await locations.list_filtered(db_session, status="pending", offset=0, limit=2)
        assert total == 4
        assert len(pending) == 2
        assert all(p.status == "pending" for p in pending)

        everything, total = await locations.list_filtered(db_session, offset=4, limit=10)
        assert total == 5
        assert len(everything) == 1

    @pytest.mark.asyncio
    async def test_list_filtered_rejects_unknown_status(self, locations, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await locations.list_filtered(db_session, status="bogus")
        assert exc_info.value.field == "status"

    @pytest.mark.asyncio
    async def test_status_projection(self, locations, db_session):
        location = await locations.create(db_session, RIVERBANK, png_upload())
        await locations.reject(db_session, location.id, reason="duplicate")

        status = await locations.get_status(db_session, str(location.id))

        assert status.id == location.id
        assert status.status == "rejected"
        assert status.rejection_reason == "duplicate"
        assert "image_url" not in status.model_dump()

    @pytest.mark.asyncio
    async def test_get_image_round_trip(self, locations, db_session):
        upload = ImageUpload("photo.jpg", "image/jpeg", padded(JPEG_BYTES, 4096))
        location = await locations.create(db_session, RIVERBANK, upload)

        content, mime_type = await locations.get_image(db_session, location.id)

        assert content == upload.content
        assert mime_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, locations, db_session):
        with pytest.raises(NotFoundError):
            await locations.get(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_get_image_missing_blob(self, locations, db_session, image_service):
        location = await locations.create(db_session, RIVERBANK, png_upload())
        for path in image_service.storage_root.rglob("*.png"):
            path.unlink()

        with pytest.raises(NotFoundError):
            await locations.get_image(db_session, location.id)
