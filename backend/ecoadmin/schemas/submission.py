"""
EcoAdmin Backend: Submission Request/Response Schemas
======================================================

What:  Validated input models for each create operation, and the response
       models for locations, profiles, join requests and status polling.
How:   Multipart form fields arrive as loose strings; parse_input() turns
       them into a typed input model or raises ValidationError naming the
       first offending field. It is pure: no I/O, no side effects.
"""

import uuid
from datetime import datetime
from typing import Annotated, Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from ecoadmin.exceptions import ValidationError
from ecoadmin.models import JoinRequest, Location, Profile
from ecoadmin.schemas.common import CamelModel

MIN_AGE = 18
MAX_AGE = 100

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════


class LocationInput(CamelModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    description: RequiredText
    link: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2048)]


class ApplicantInput(CamelModel):
    full_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    age: int = Field(ge=MIN_AGE, le=MAX_AGE)
    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=320)]
    phone: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
    address: RequiredText


class ProfileInput(ApplicantInput):
    pass


class JoinRequestInput(ApplicantInput):
    pass


InputT = TypeVar("InputT", bound=CamelModel)

_FIELD_LABELS = {
    "name": "Name",
    "description": "Description",
    "link": "Link",
    "fullName": "Full name",
    "age": "Age",
    "email": "Email",
    "phone": "Phone",
    "address": "Address",
}


def parse_input(model: Type[InputT], raw: Mapping[str, Any]) -> InputT:
    """
    Validate raw form fields into `model`.

    Blank values count as missing. Only the first error is reported; the
    client corrects one field at a time, matching what the forms display.

    Raises:
        ValidationError: with `field` set to the camelCase field name
    """
    cleaned: Dict[str, Any] = {
        key: value for key, value in raw.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }
    try:
        return model.model_validate(cleaned)
    except PydanticValidationError as e:
        err = e.errors()[0]
        field = str(err["loc"][0]) if err["loc"] else None
        label = _FIELD_LABELS.get(field, field or "Input")

        if err["type"] in ("missing", "string_too_short"):
            message = f"{label} is required"
        elif field == "age" and err["type"] in ("greater_than_equal", "less_than_equal"):
            message = f"Age must be between {MIN_AGE} and {MAX_AGE}"
        elif field == "age":
            message = "Age must be a whole number"
        elif err["type"] == "string_too_long":
            message = f"{label} is too long"
        else:
            message = f"{label}: {err['msg']}"

        raise ValidationError(message=message, field=field, context={"error_type": err["type"]})


# ══════════════════════════════════════════════════════════════════════════
# Request Bodies
# ══════════════════════════════════════════════════════════════════════════


class TransitionRequest(CamelModel):
    """Body of approve/reject calls. Both fields are optional."""
    admin_id: Optional[str] = Field(default=None, max_length=100)
    reason: Optional[str] = Field(default=None)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class LocationResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: str
    link: str
    status: str
    image_url: str = Field(description="URL path serving the submitted image")
    image_mimetype: str
    submitted_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    rejection_reason: Optional[str] = None

    @classmethod
    def from_record(cls, location: Location) -> "LocationResponse":
        return cls(
            id=location.id,
            name=location.name,
            description=location.description,
            link=location.link,
            status=location.status,
            image_url=location_image_url(location.id),
            image_mimetype=location.image_mimetype,
            submitted_at=location.submitted_at,
            processed_at=location.processed_at,
            processed_by=location.processed_by,
            rejection_reason=location.rejection_reason,
        )


class ProfileResponse(CamelModel):
    id: uuid.UUID
    full_name: str
    age: int
    email: str
    phone: str
    address: str
    status: str
    image_url: str
    image_mimetype: str
    submitted_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    rejection_reason: Optional[str] = None

    @classmethod
    def from_record(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            full_name=profile.full_name,
            age=profile.age,
            email=profile.email,
            phone=profile.phone,
            address=profile.address,
            status=profile.status,
            image_url=profile_image_url(profile.id),
            image_mimetype=profile.image_mimetype,
            submitted_at=profile.submitted_at,
            processed_at=profile.processed_at,
            processed_by=profile.processed_by,
            rejection_reason=profile.rejection_reason,
        )


class LocationSummary(CamelModel):
    """Subset of a location embedded in join-request listings."""
    id: uuid.UUID
    name: str
    description: str
    image_url: str


class JoinRequestResponse(CamelModel):
    id: uuid.UUID
    location_id: uuid.UUID
    full_name: str
    age: int
    email: str
    phone: str
    address: str
    image_url: str
    image_mimetype: str
    joined_at: datetime
    location: Optional[LocationSummary] = None

    @classmethod
    def from_record(
        cls, join_request: JoinRequest, location: Optional[Location] = None
    ) -> "JoinRequestResponse":
        summary = None
        if location is not None:
            summary = LocationSummary(
                id=location.id,
                name=location.name,
                description=location.description,
                image_url=location_image_url(location.id),
            )
        return cls(
            id=join_request.id,
            location_id=join_request.location_id,
            full_name=join_request.full_name,
            age=join_request.age,
            email=join_request.email,
            phone=join_request.phone,
            address=join_request.address,
            image_url=join_request_image_url(join_request.id),
            image_mimetype=join_request.image_mimetype,
            joined_at=join_request.joined_at,
            location=summary,
        )


class StatusResponse(CamelModel):
    """Reduced projection for polling clients; never carries the image."""
    id: uuid.UUID
    status: str
    submitted_at: datetime
    processed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


# ── Image URLs ────────────────────────────────────────────────────────────
# Kept next to the response models so every serializer resolves the same
# paths the image routes are mounted on.

def location_image_url(location_id: uuid.UUID) -> str:
    return f"/api/image/{location_id}"


def profile_image_url(profile_id: uuid.UUID) -> str:
    return f"/api/profiles/{profile_id}/image"


def join_request_image_url(join_request_id: uuid.UUID) -> str:
    return f"/api/users/{join_request_id}/image"
