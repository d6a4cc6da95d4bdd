"""
EcoAdmin Backend: Join Request Service
=======================================

What:  Records applications to join an approved location.
How:   A join request is not reviewed. It is accepted only while its parent
       location is approved; the parent check happens before the image blob
       is written, so a refused request leaves nothing behind.
Who:   Called by the join-request route handlers.
"""

import logging
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ecoadmin.database import store_errors
from ecoadmin.exceptions import InvalidStateError, NotFoundError, ValidationError
from ecoadmin.models import JoinRequest, Location, SubmissionStatus
from ecoadmin.schemas.submission import JoinRequestInput, JoinRequestResponse, parse_input
from ecoadmin.services.image_service import ImageService, ImageUpload
from ecoadmin.services.submission_service import Clock, parse_record_id, utcnow

logger = logging.getLogger(__name__)


class JoinRequestService:
    def __init__(self, images: ImageService, clock: Clock = utcnow):
        self.images = images
        self._clock = clock

    async def _get_location(self, db: AsyncSession, raw_location_id: Any) -> Location:
        location_id = parse_record_id(raw_location_id, "location")
        async with store_errors("get location"):
            location = await db.get(Location, location_id)
        if location is None:
            raise NotFoundError(resource="location", resource_id=str(location_id))
        return location

    async def create(
        self,
        db: AsyncSession,
        raw_location_id: Any,
        raw_fields: Mapping[str, Any],
        upload: Optional[ImageUpload],
    ) -> JoinRequestResponse:
        """
        Validate → check parent → store image → insert.

        Raises:
            ValidationError: missing locationId, bad fields or bad image
            NotFoundError: location id malformed or unknown
            InvalidStateError: location exists but is not approved
        """
        if raw_location_id is None or not str(raw_location_id).strip():
            raise ValidationError(message="Location ID is required", field="locationId")

        fields = parse_input(JoinRequestInput, raw_fields)
        image = self.images.validate(upload)

        location = await self._get_location(db, raw_location_id)
        if location.status != SubmissionStatus.APPROVED.value:
            logger.info("Join refused for location %s (status=%s)", location.id, location.status)
            raise InvalidStateError(
                message="Can only join approved locations",
                current_status=location.status,
                context={"location_id": str(location.id)},
            )

        address = await self.images.put(image)
        record = JoinRequest(
            **fields.model_dump(),
            location_id=location.id,
            image_path=address,
            image_mimetype=image.mime_type,
            joined_at=self._clock(),
        )

        try:
            async with store_errors("create join request"):
                db.add(record)
                await db.commit()
        except Exception:
            await self.images.cleanup(address)
            raise

        logger.info("Join request %s created for location %s", record.id, location.id)
        return JoinRequestResponse.from_record(record, location)

    async def list_all(
        self, db: AsyncSession, offset: int = 0, limit: int = 10
    ) -> Tuple[List[JoinRequestResponse], int]:
        """All join requests, newest first, each with its location summary."""
        query = (
            select(JoinRequest, Location)
            .join(Location, JoinRequest.location_id == Location.id)
            .order_by(JoinRequest.joined_at.desc())
            .offset(offset)
            .limit(limit)
        )
        count_query = select(func.count()).select_from(JoinRequest)

        async with store_errors("list join requests"):
            rows = (await db.execute(query)).all()
            total = (await db.execute(count_query)).scalar() or 0

        return [JoinRequestResponse.from_record(jr, loc) for jr, loc in rows], total

    async def list_for_location(
        self, db: AsyncSession, raw_location_id: Any
    ) -> List[JoinRequestResponse]:
        """Join requests for one location, newest first."""
        location = await self._get_location(db, raw_location_id)
        query = (
            select(JoinRequest)
            .where(JoinRequest.location_id == location.id)
            .order_by(JoinRequest.joined_at.desc())
        )
        async with store_errors("list join requests for location"):
            result = await db.execute(query)
            records = list(result.scalars().all())
        return [JoinRequestResponse.from_record(jr, location) for jr in records]

    async def get_image(self, db: AsyncSession, raw_id: Any) -> Tuple[bytes, str]:
        record_id = parse_record_id(raw_id, "join request")
        async with store_errors("get join request"):
            record = await db.get(JoinRequest, record_id)
        if record is None:
            raise NotFoundError(resource="join request", resource_id=str(record_id))

        blob = await self.images.get(record.image_path)
        if blob is None:
            logger.warning("Image blob missing for join request %s: %s", record.id, record.image_path)
            raise NotFoundError(resource="image", resource_id=str(record.id))
        return blob[0], record.image_mimetype
