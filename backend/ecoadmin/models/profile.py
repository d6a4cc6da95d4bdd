"""
EcoAdmin Backend: Profile Model
================================

What:  ORM model for the `profiles` table, the submission record of the
       single-tier deployment: an applicant's personal profile with a photo,
       reviewed through the same status workflow as locations.
"""

from sqlalchemy import Index

from ecoadmin.database import Base
from ecoadmin.models.submission import ApplicantMixin, SubmissionMixin


class Profile(SubmissionMixin, ApplicantMixin, Base):
    __tablename__ = "profiles"

    __table_args__ = (
        Index("idx_profiles_status_submitted", "status", "submitted_at"),
        Index("idx_profiles_processed_at", "processed_at"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, full_name='{self.full_name}', status='{self.status}')>"
