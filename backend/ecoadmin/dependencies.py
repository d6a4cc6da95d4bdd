"""
FastAPI dependencies resolving per-application components.

Each component is built once in create_app() and stored on app.state, so a
test can build an app around its own Settings without touching globals.
"""

from fastapi import Request

from ecoadmin.config import Settings
from ecoadmin.services.admin_service import AdminService
from ecoadmin.services.image_service import ImageService
from ecoadmin.services.join_service import JoinRequestService
from ecoadmin.services.location_service import LocationService
from ecoadmin.services.profile_service import ProfileService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


def get_location_service(request: Request) -> LocationService:
    return request.app.state.location_service


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service


def get_join_service(request: Request) -> JoinRequestService:
    return request.app.state.join_service


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.admin_service
