"""ORM models. Importing this package registers every table on Base.metadata."""

from ecoadmin.models.join_request import JoinRequest
from ecoadmin.models.location import Location
from ecoadmin.models.profile import Profile
from ecoadmin.models.submission import (
    DEFAULT_ACTOR,
    DEFAULT_REJECTION_REASON,
    SubmissionStatus,
)

__all__ = [
    "DEFAULT_ACTOR",
    "DEFAULT_REJECTION_REASON",
    "JoinRequest",
    "Location",
    "Profile",
    "SubmissionStatus",
]
