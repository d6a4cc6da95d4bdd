"""
EcoAdmin Backend: Submission Service (Review Workflow)
======================================================

What:  Create, list, fetch and review image-bearing submissions.
How:   SubmissionService is generic over the ORM model; LocationService and
       ProfileService bind it to a table, an input model and a response
       model. All methods take the request's AsyncSession explicitly.
Who:   Called by the location and profile route handlers.

State machine:
    ┌─────────┐  approve   ┌──────────┐
    │ pending │──────────▶│ approved │  (terminal)
    └─────────┘            └──────────┘
         │       reject    ┌──────────┐
         └───────────────▶│ rejected │  (terminal)
                           └──────────┘

    transition() is the only code path that writes `status`. It issues one
    conditional UPDATE ... WHERE id = :id AND status = 'pending' and treats
    exactly one affected row as success, so two admins acting on the same
    record concurrently cannot both succeed.

Error Handling Strategy:
    Store failures are translated by store_errors() into
    StoreUnavailableError / DatabaseError. If the record insert fails after
    the image blob was written, the blob is removed before the error
    propagates.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ecoadmin.database import store_errors
from ecoadmin.exceptions import InvalidStateError, NotFoundError, ValidationError
from ecoadmin.models import DEFAULT_ACTOR, DEFAULT_REJECTION_REASON, SubmissionStatus
from ecoadmin.schemas.common import CamelModel
from ecoadmin.schemas.submission import StatusResponse, parse_input
from ecoadmin.services.image_service import ImageService, ImageUpload

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")
ResponseT = TypeVar("ResponseT", bound=CamelModel)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_record_id(raw_id: Any, resource: str) -> uuid.UUID:
    """
    Parse a client-supplied identifier.

    An id that is not a UUID cannot resolve to any record, so it is
    reported as NotFoundError rather than as a validation failure.
    """
    if isinstance(raw_id, uuid.UUID):
        return raw_id
    try:
        return uuid.UUID(str(raw_id).strip())
    except ValueError:
        raise NotFoundError(resource=resource, resource_id=str(raw_id))


def parse_status_filter(status: Optional[str]) -> Optional[SubmissionStatus]:
    if status is None or not status.strip():
        return None
    try:
        return SubmissionStatus(status.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in SubmissionStatus)
        raise ValidationError(
            message=f"Invalid status '{status}'. Must be one of: {allowed}",
            field="status",
        )


class SubmissionService(Generic[RecordT, ResponseT]):
    """
    Business logic for one reviewable record family.

    Subclasses set:
        model:          ORM class (must use SubmissionMixin)
        input_model:    pydantic model validated by parse_input()
        response_model: response schema exposing from_record()
        resource:       noun used in messages and logs ("location")
    """

    model: Type[Any]
    input_model: Type[CamelModel]
    response_model: Type[Any]
    resource: str = "submission"

    def __init__(self, images: ImageService, clock: Clock = utcnow):
        self.images = images
        self._clock = clock

    # ── Create ────────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        raw_fields: Mapping[str, Any],
        upload: Optional[ImageUpload],
    ) -> ResponseT:
        """
        Validate → store image → insert pending record.

        Workflow Steps:
            1. parse_input(): typed, trimmed descriptive fields
            2. ImageService.validate(): type/size/content checks
            3. ImageService.put(): blob written, address returned
            4. Insert with status=pending, submitted_at=now; commit

        Raises:
            ValidationError: bad fields or image (nothing is stored)
            StoreUnavailableError / DatabaseError: insert failed (blob removed)
            FileStorageError: blob write failed
        """
        fields = parse_input(self.input_model, raw_fields)
        image = self.images.validate(upload)
        address = await self.images.put(image)

        record = self.model(
            **fields.model_dump(),
            image_path=address,
            image_mimetype=image.mime_type,
            status=SubmissionStatus.PENDING.value,
            submitted_at=self._clock(),
        )

        try:
            async with store_errors(f"create {self.resource}"):
                db.add(record)
                await db.commit()
        except Exception:
            await self.images.cleanup(address)
            raise

        logger.info("%s %s submitted (status=pending)", self.resource.capitalize(), record.id)
        return self.response_model.from_record(record)

    # ── Read ──────────────────────────────────────────────────────────────

    async def get_record(self, db: AsyncSession, raw_id: Any) -> RecordT:
        record_id = parse_record_id(raw_id, self.resource)
        async with store_errors(f"get {self.resource}"):
            record = await db.get(self.model, record_id)
        if record is None:
            raise NotFoundError(resource=self.resource, resource_id=str(record_id))
        return record

    async def get(self, db: AsyncSession, raw_id: Any) -> ResponseT:
        return self.response_model.from_record(await self.get_record(db, raw_id))

    async def get_status(self, db: AsyncSession, raw_id: Any) -> StatusResponse:
        """Status projection for polling clients (no image data)."""
        record = await self.get_record(db, raw_id)
        return StatusResponse(
            id=record.id,
            status=record.status,
            submitted_at=record.submitted_at,
            processed_at=record.processed_at,
            rejection_reason=record.rejection_reason,
        )

    async def get_image(self, db: AsyncSession, raw_id: Any) -> Tuple[bytes, str]:
        """
        Stored image bytes and MIME type for a record.

        Raises:
            NotFoundError: unknown record, or its blob is missing
        """
        record = await self.get_record(db, raw_id)
        blob = await self.images.get(record.image_path)
        if blob is None:
            logger.warning("Image blob missing for %s %s: %s", self.resource, record.id, record.image_path)
            raise NotFoundError(resource="image", resource_id=str(record.id))
        content, _ = blob
        return content, record.image_mimetype

    async def list_pending(self, db: AsyncSession) -> List[ResponseT]:
        """Review queue: pending records, newest submission first."""
        query = (
            select(self.model)
            .where(self.model.status == SubmissionStatus.PENDING.value)
            .order_by(self.model.submitted_at.desc())
        )
        async with store_errors(f"list pending {self.resource}s"):
            result = await db.execute(query)
            records = list(result.scalars().all())
        return [self.response_model.from_record(r) for r in records]

    async def list_filtered(
        self,
        db: AsyncSession,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[ResponseT], int]:
        """
        Admin listing with optional status filter and offset/limit paging.

        Returns:
            (page of records ordered by submitted_at DESC, total matching count)
        """
        status_filter = parse_status_filter(status)

        query = select(self.model)
        count_query = select(func.count()).select_from(self.model)
        if status_filter is not None:
            query = query.where(self.model.status == status_filter.value)
            count_query = count_query.where(self.model.status == status_filter.value)

        query = query.order_by(self.model.submitted_at.desc()).offset(offset).limit(limit)

        async with store_errors(f"list {self.resource}s"):
            result = await db.execute(query)
            records = list(result.scalars().all())
            total = (await db.execute(count_query)).scalar() or 0

        return [self.response_model.from_record(r) for r in records], total

    async def list_approved(self, db: AsyncSession) -> List[ResponseT]:
        """Public listing: approved records, most recently approved first."""
        query = (
            select(self.model)
            .where(self.model.status == SubmissionStatus.APPROVED.value)
            .order_by(self.model.processed_at.desc())
        )
        async with store_errors(f"list approved {self.resource}s"):
            result = await db.execute(query)
            records = list(result.scalars().all())
        return [self.response_model.from_record(r) for r in records]

    # ── Review ────────────────────────────────────────────────────────────

    async def transition(
        self,
        db: AsyncSession,
        raw_id: Any,
        target: SubmissionStatus,
        actor: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ResponseT:
        """
        Move a pending record to approved or rejected, at most once.

        Raises:
            NotFoundError: id malformed or unknown
            InvalidStateError: record is no longer pending
        """
        if not target.is_terminal:
            raise ValueError(f"Cannot transition a {self.resource} to '{target.value}'")

        record_id = parse_record_id(raw_id, self.resource)
        values = {
            "status": target.value,
            "processed_at": self._clock(),
            "processed_by": (actor or "").strip() or DEFAULT_ACTOR,
        }
        if target is SubmissionStatus.REJECTED:
            values["rejection_reason"] = (reason or "").strip() or DEFAULT_REJECTION_REASON

        stmt = (
            update(self.model)
            .where(
                self.model.id == record_id,
                self.model.status == SubmissionStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        async with store_errors(f"{target.value} {self.resource}"):
            result = await db.execute(stmt)
            if result.rowcount != 1:
                await db.rollback()
                current = await db.get(self.model, record_id)
                if current is None:
                    raise NotFoundError(resource=self.resource, resource_id=str(record_id))
                logger.warning(
                    "Refused to %s %s %s: already %s",
                    "approve" if target is SubmissionStatus.APPROVED else "reject",
                    self.resource,
                    record_id,
                    current.status,
                )
                raise InvalidStateError(
                    message=f"{self.resource.capitalize()} has already been processed",
                    current_status=current.status,
                    context={"resource_id": str(record_id)},
                )
            await db.commit()
            record = await db.get(self.model, record_id, populate_existing=True)

        logger.info(
            "%s %s %s by %s",
            self.resource.capitalize(),
            record_id,
            target.value,
            values["processed_by"],
        )
        return self.response_model.from_record(record)

    async def approve(
        self, db: AsyncSession, raw_id: Any, actor: Optional[str] = None
    ) -> ResponseT:
        return await self.transition(db, raw_id, SubmissionStatus.APPROVED, actor=actor)

    async def reject(
        self,
        db: AsyncSession,
        raw_id: Any,
        actor: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ResponseT:
        return await self.transition(db, raw_id, SubmissionStatus.REJECTED, actor=actor, reason=reason)
