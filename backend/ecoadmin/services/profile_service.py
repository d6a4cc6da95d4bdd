"""Profile submissions: the review workflow bound to the `profiles` table."""

from ecoadmin.models import Profile
from ecoadmin.schemas.submission import ProfileInput, ProfileResponse
from ecoadmin.services.submission_service import SubmissionService


class ProfileService(SubmissionService[Profile, ProfileResponse]):
    model = Profile
    input_model = ProfileInput
    response_model = ProfileResponse
    resource = "profile"
