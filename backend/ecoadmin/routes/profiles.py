"""
EcoAdmin Backend: Profile Route Handlers
=========================================

What:  Submission, review and listing of applicant profiles (the
       single-tier deployment, where applicants are reviewed directly).
How:   Mirrors the location routes, backed by ProfileService.

Routes:
    POST /api/profiles                        multipart: fullName, age, email, phone, address, image
    GET  /api/admin/pending-profiles          review queue
    GET  /api/admin/profiles                  filtered + paginated admin list
    GET  /api/profiles/approved               approved profiles
    GET  /api/profiles/{id}                   single record
    GET  /api/profile-status/{id}             status projection
    GET  /api/profiles/{id}/image             stored image bytes
    POST /api/admin/profiles/{id}/approve
    POST /api/admin/profiles/{id}/reject
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ecoadmin.database import get_db_session
from ecoadmin.dependencies import get_profile_service
from ecoadmin.routes.media import image_response, read_upload
from ecoadmin.schemas.common import ApiResponse, ErrorResponse, ListResponse, PageResponse, Pagination
from ecoadmin.schemas.submission import ProfileResponse, StatusResponse, TransitionRequest
from ecoadmin.services.profile_service import ProfileService

router = APIRouter(prefix="/api", tags=["Profiles"])


@router.post(
    "/profiles",
    status_code=201,
    response_model=ApiResponse[ProfileResponse],
    responses={400: {"description": "Missing field or invalid image", "model": ErrorResponse}},
    summary="Submit a profile for review",
)
async def submit_profile(
    full_name: Optional[str] = Form(default=None, alias="fullName"),
    age: Optional[str] = Form(default=None),
    email: Optional[str] = Form(default=None),
    phone: Optional[str] = Form(default=None),
    address: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> ApiResponse[ProfileResponse]:
    upload = await read_upload(image)
    profile = await service.create(
        db,
        {
            "fullName": full_name,
            "age": age,
            "email": email,
            "phone": phone,
            "address": address,
        },
        upload,
    )
    return ApiResponse(
        message="Profile submitted successfully! It will be reviewed by an admin.",
        data=profile,
    )


@router.get(
    "/admin/pending-profiles",
    response_model=ListResponse[ProfileResponse],
    summary="List profiles awaiting review",
)
async def list_pending_profiles(
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> ListResponse[ProfileResponse]:
    profiles = await service.list_pending(db)
    return ListResponse(count=len(profiles), data=profiles)


@router.get(
    "/admin/profiles",
    response_model=PageResponse[ProfileResponse],
    responses={400: {"description": "Invalid status filter", "model": ErrorResponse}},
    summary="List profiles with optional status filter",
)
async def list_profiles(
    status: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> PageResponse[ProfileResponse]:
    profiles, total = await service.list_filtered(
        db, status=status, offset=(page - 1) * limit, limit=limit
    )
    return PageResponse(data=profiles, pagination=Pagination.build(page, limit, total))


@router.get(
    "/profiles/approved",
    response_model=ListResponse[ProfileResponse],
    summary="List approved profiles",
)
async def list_approved_profiles(
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> ListResponse[ProfileResponse]:
    profiles = await service.list_approved(db)
    return ListResponse(count=len(profiles), data=profiles)


@router.get(
    "/profiles/{profile_id}",
    response_model=ApiResponse[ProfileResponse],
    responses={404: {"description": "Profile not found", "model": ErrorResponse}},
)
async def get_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> ApiResponse[ProfileResponse]:
    return ApiResponse(data=await service.get(db, profile_id))


@router.get(
    "/profile-status/{profile_id}",
    response_model=ApiResponse[StatusResponse],
    responses={404: {"description": "Profile not found", "model": ErrorResponse}},
)
async def get_profile_status(
    profile_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> ApiResponse[StatusResponse]:
    return ApiResponse(data=await service.get_status(db, profile_id))


@router.get(
    "/profiles/{profile_id}/image",
    response_class=Response,
    responses={404: {"description": "Profile or image not found", "model": ErrorResponse}},
)
async def get_profile_image(
    profile_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> Response:
    content, mime_type = await service.get_image(db, profile_id)
    return image_response(content, mime_type)


@router.post(
    "/admin/profiles/{profile_id}/approve",
    response_model=ApiResponse[ProfileResponse],
    responses={
        404: {"description": "Profile not found", "model": ErrorResponse},
        409: {"description": "Profile already processed", "model": ErrorResponse},
    },
)
async def approve_profile(
    profile_id: str,
    body: Optional[TransitionRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> ApiResponse[ProfileResponse]:
    profile = await service.approve(db, profile_id, actor=body.admin_id if body else None)
    return ApiResponse(message="Profile approved successfully", data=profile)


@router.post(
    "/admin/profiles/{profile_id}/reject",
    response_model=ApiResponse[ProfileResponse],
    responses={
        404: {"description": "Profile not found", "model": ErrorResponse},
        409: {"description": "Profile already processed", "model": ErrorResponse},
    },
)
async def reject_profile(
    profile_id: str,
    body: Optional[TransitionRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: ProfileService = Depends(get_profile_service),
) -> ApiResponse[ProfileResponse]:
    profile = await service.reject(
        db,
        profile_id,
        actor=body.admin_id if body else None,
        reason=body.reason if body else None,
    )
    return ApiResponse(message="Profile rejected", data=profile)
