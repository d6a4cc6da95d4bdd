"""
EcoAdmin Backend: Location Model
=================================

What:  ORM model for the `locations` table, the submission record of the
       two-tier deployment. Approved locations accept join requests.

Query Patterns:
    - Pending queue: WHERE status = 'pending' ORDER BY submitted_at DESC
      → idx_locations_status_submitted
    - Public list:   WHERE status = 'approved' ORDER BY processed_at DESC
      → idx_locations_processed_at
"""

from typing import List

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecoadmin.database import Base
from ecoadmin.models.submission import SubmissionMixin


class Location(SubmissionMixin, Base):
    __tablename__ = "locations"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str] = mapped_column(String(2048), nullable=False)

    join_requests: Mapped[List["JoinRequest"]] = relationship(  # noqa: F821
        back_populates="location",
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_locations_status_submitted", "status", "submitted_at"),
        Index("idx_locations_processed_at", "processed_at"),
    )

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name='{self.name}', status='{self.status}')>"
