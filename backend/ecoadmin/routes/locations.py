"""
EcoAdmin Backend: Location Route Handlers
==========================================

What:  Submission, review and public listing of locations.
How:   Each handler reads the request, calls LocationService, and wraps the
       result in the JSON envelope. Errors propagate to the global
       exception handlers registered in main.py.
Who:   Called by the public submission form, the admin console and the
       public map of approved locations.

Routes:
    POST /api/submit-location            multipart: name, description, link, image
    GET  /api/admin/pending-locations    review queue
    GET  /api/admin/locations            filtered + paginated admin list
    GET  /api/locations/approved         public list
    GET  /api/locations/{id}             single record
    GET  /api/location-status/{id}       status projection for polling
    GET  /api/image/{id}                 stored image bytes
    POST /api/admin/approve/{id}         JSON body: {"adminId"}
    POST /api/admin/reject/{id}          JSON body: {"adminId", "reason"}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ecoadmin.database import get_db_session
from ecoadmin.dependencies import get_location_service
from ecoadmin.routes.media import image_response, read_upload
from ecoadmin.schemas.common import ApiResponse, ErrorResponse, ListResponse, PageResponse, Pagination
from ecoadmin.schemas.submission import LocationResponse, StatusResponse, TransitionRequest
from ecoadmin.services.location_service import LocationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Locations"])


@router.post(
    "/submit-location",
    status_code=201,
    response_model=ApiResponse[LocationResponse],
    responses={
        400: {"description": "Missing field or invalid image", "model": ErrorResponse},
        503: {"description": "Record store unavailable", "model": ErrorResponse},
    },
    summary="Submit a location for review",
)
async def submit_location(
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    link: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None, description="JPG, PNG or GIF, max 5MB"),
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> ApiResponse[LocationResponse]:
    """
    Create a pending location from a multipart form.

    Nothing is stored unless every field and the image pass validation.
    """
    upload = await read_upload(image)
    location = await service.create(
        db,
        {"name": name, "description": description, "link": link},
        upload,
    )
    return ApiResponse(
        message="Location submitted successfully! It will be reviewed by an admin.",
        data=location,
    )


@router.get(
    "/admin/pending-locations",
    response_model=ListResponse[LocationResponse],
    summary="List locations awaiting review",
)
async def list_pending_locations(
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> ListResponse[LocationResponse]:
    locations = await service.list_pending(db)
    return ListResponse(count=len(locations), data=locations)


@router.get(
    "/admin/locations",
    response_model=PageResponse[LocationResponse],
    responses={400: {"description": "Invalid status filter", "model": ErrorResponse}},
    summary="List locations with optional status filter",
)
async def list_locations(
    status: Optional[str] = Query(default=None, description="pending, approved or rejected"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> PageResponse[LocationResponse]:
    locations, total = await service.list_filtered(
        db, status=status, offset=(page - 1) * limit, limit=limit
    )
    return PageResponse(data=locations, pagination=Pagination.build(page, limit, total))


@router.get(
    "/locations/approved",
    response_model=ListResponse[LocationResponse],
    summary="List approved locations",
)
async def list_approved_locations(
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> ListResponse[LocationResponse]:
    locations = await service.list_approved(db)
    return ListResponse(count=len(locations), data=locations)


@router.get(
    "/locations/{location_id}",
    response_model=ApiResponse[LocationResponse],
    responses={404: {"description": "Location not found", "model": ErrorResponse}},
    summary="Get a single location",
)
async def get_location(
    location_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> ApiResponse[LocationResponse]:
    return ApiResponse(data=await service.get(db, location_id))


@router.get(
    "/location-status/{location_id}",
    response_model=ApiResponse[StatusResponse],
    responses={404: {"description": "Location not found", "model": ErrorResponse}},
    summary="Poll the review status of a location",
)
async def get_location_status(
    location_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> ApiResponse[StatusResponse]:
    return ApiResponse(data=await service.get_status(db, location_id))


@router.get(
    "/image/{location_id}",
    response_class=Response,
    responses={
        200: {"content": {"image/jpeg": {}, "image/png": {}, "image/gif": {}}},
        404: {"description": "Location or image not found", "model": ErrorResponse},
    },
    summary="Serve the image submitted with a location",
)
async def get_location_image(
    location_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> Response:
    content, mime_type = await service.get_image(db, location_id)
    return image_response(content, mime_type)


@router.post(
    "/admin/approve/{location_id}",
    response_model=ApiResponse[LocationResponse],
    responses={
        404: {"description": "Location not found", "model": ErrorResponse},
        409: {"description": "Location already processed", "model": ErrorResponse},
    },
    summary="Approve a pending location",
)
async def approve_location(
    location_id: str,
    body: Optional[TransitionRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> ApiResponse[LocationResponse]:
    actor = body.admin_id if body else None
    location = await service.approve(db, location_id, actor=actor)
    return ApiResponse(message="Location approved successfully", data=location)


@router.post(
    "/admin/reject/{location_id}",
    response_model=ApiResponse[LocationResponse],
    responses={
        404: {"description": "Location not found", "model": ErrorResponse},
        409: {"description": "Location already processed", "model": ErrorResponse},
    },
    summary="Reject a pending location",
)
async def reject_location(
    location_id: str,
    body: Optional[TransitionRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> ApiResponse[LocationResponse]:
    actor = body.admin_id if body else None
    reason = body.reason if body else None
    location = await service.reject(db, location_id, actor=actor, reason=reason)
    return ApiResponse(message="Location rejected", data=location)
