"""
EcoAdmin Backend: Shared Submission Columns
============================================

What:  The review-status enum and the column mixins shared by every
       image-bearing record.
How:   Declarative mixins; Location and Profile combine SubmissionMixin with
       their descriptive columns, JoinRequest uses ImageMixin and
       ApplicantMixin only (join requests are never reviewed).

Status lifecycle:
    pending ──approve──▶ approved   (terminal)
        └────reject───▶ rejected   (terminal)
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not SubmissionStatus.PENDING


DEFAULT_ACTOR = "admin"
DEFAULT_REJECTION_REASON = "No reason provided"


class IdMixin:
    # Generated in Python so the id is known before the insert is flushed
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )


class ImageMixin:
    """
    Columns locating the record's image in the blob store.

    image_path:     relative blob address, YYYY/MM/DD/<uuid>.<ext>
    image_mimetype: MIME type detected at ingestion, returned on retrieval
    """

    image_path: Mapped[str] = mapped_column(String(255), nullable=False)
    image_mimetype: Mapped[str] = mapped_column(String(50), nullable=False)


class ApplicantMixin:
    """Personal details collected from profile applicants and join requests."""

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)


class SubmissionMixin(IdMixin, ImageMixin):
    """
    Review-workflow columns.

    processed_at and processed_by are written together, exactly once, by the
    conditional update in SubmissionService.transition(). rejection_reason
    is only ever written on rejection.
    """

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubmissionStatus.PENDING.value,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )
    processed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
