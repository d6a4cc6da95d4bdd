"""
EcoAdmin Backend: Join Request Route Handlers
==============================================

What:  Applications to join an approved location, and their admin listings.
How:   Thin handlers over JoinRequestService. A join request against a
       location that is pending or rejected is refused with 409.

Routes:
    POST /api/submit-user              multipart: locationId, fullName, age,
                                       email, phone, address, image
    GET  /api/admin/users              all join requests, paginated
    GET  /api/location/{id}/users      join requests for one location
    GET  /api/users/{id}/image         stored image bytes
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ecoadmin.database import get_db_session
from ecoadmin.dependencies import get_join_service
from ecoadmin.routes.media import image_response, read_upload
from ecoadmin.schemas.common import ApiResponse, ErrorResponse, ListResponse, PageResponse, Pagination
from ecoadmin.schemas.submission import JoinRequestResponse
from ecoadmin.services.join_service import JoinRequestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Join Requests"])


@router.post(
    "/submit-user",
    status_code=201,
    response_model=ApiResponse[JoinRequestResponse],
    responses={
        400: {"description": "Missing field or invalid image", "model": ErrorResponse},
        404: {"description": "Location not found", "model": ErrorResponse},
        409: {"description": "Location is not approved", "model": ErrorResponse},
    },
    summary="Apply to join an approved location",
)
async def submit_join_request(
    location_id: Optional[str] = Form(default=None, alias="locationId"),
    full_name: Optional[str] = Form(default=None, alias="fullName"),
    age: Optional[str] = Form(default=None),
    email: Optional[str] = Form(default=None),
    phone: Optional[str] = Form(default=None),
    address: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: JoinRequestService = Depends(get_join_service),
) -> ApiResponse[JoinRequestResponse]:
    upload = await read_upload(image)
    join_request = await service.create(
        db,
        location_id,
        {
            "fullName": full_name,
            "age": age,
            "email": email,
            "phone": phone,
            "address": address,
        },
        upload,
    )
    return ApiResponse(message="Successfully joined the location!", data=join_request)


@router.get(
    "/admin/users",
    response_model=PageResponse[JoinRequestResponse],
    summary="List all join requests with their locations",
)
async def list_join_requests(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
    service: JoinRequestService = Depends(get_join_service),
) -> PageResponse[JoinRequestResponse]:
    items, total = await service.list_all(db, offset=(page - 1) * limit, limit=limit)
    return PageResponse(data=items, pagination=Pagination.build(page, limit, total))


@router.get(
    "/location/{location_id}/users",
    response_model=ListResponse[JoinRequestResponse],
    responses={404: {"description": "Location not found", "model": ErrorResponse}},
    summary="List join requests for one location",
)
async def list_location_join_requests(
    location_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: JoinRequestService = Depends(get_join_service),
) -> ListResponse[JoinRequestResponse]:
    items = await service.list_for_location(db, location_id)
    return ListResponse(count=len(items), data=items)


@router.get(
    "/users/{join_request_id}/image",
    response_class=Response,
    responses={404: {"description": "Join request or image not found", "model": ErrorResponse}},
)
async def get_join_request_image(
    join_request_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: JoinRequestService = Depends(get_join_service),
) -> Response:
    content, mime_type = await service.get_image(db, join_request_id)
    return image_response(content, mime_type)
