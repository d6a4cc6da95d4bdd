"""Location submissions: the review workflow bound to the `locations` table."""

from ecoadmin.models import Location
from ecoadmin.schemas.submission import LocationInput, LocationResponse
from ecoadmin.services.submission_service import SubmissionService


class LocationService(SubmissionService[Location, LocationResponse]):
    model = Location
    input_model = LocationInput
    response_model = LocationResponse
    resource = "location"
