"""
EcoAdmin Backend: Join Request Model
=====================================

What:  ORM model for the `join_requests` table: an applicant joining an
       approved Location.

The location reference is checked (exists, approved) once, at creation.
It is never re-validated; join requests carry no review status of their own.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecoadmin.database import Base
from ecoadmin.models.location import Location
from ecoadmin.models.submission import ApplicantMixin, IdMixin, ImageMixin


class JoinRequest(IdMixin, ApplicantMixin, ImageMixin, Base):
    __tablename__ = "join_requests"

    location_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("locations.id"),
        nullable=False,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    location: Mapped[Location] = relationship(
        back_populates="join_requests",
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_join_requests_location_id", "location_id"),
        Index("idx_join_requests_joined_at", "joined_at"),
    )

    def __repr__(self) -> str:
        return f"<JoinRequest(id={self.id}, location_id={self.location_id})>"
