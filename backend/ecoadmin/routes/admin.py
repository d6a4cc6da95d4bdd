"""
EcoAdmin Backend: Admin Utility Routes
=======================================

Routes:
    POST /validate-admin-key    JSON {"key"}: 200 {"valid": true} / 401 {"valid": false}
    POST /api/send-email        JSON {"email"}: acknowledges a notification intent

The admin key check gates the admin console UI only; the review endpoints
themselves are not authenticated.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ecoadmin.dependencies import get_admin_service
from ecoadmin.schemas.admin import (
    AdminKeyRequest,
    AdminKeyResponse,
    EmailIntentRequest,
    EmailIntentResponse,
)
from ecoadmin.services.admin_service import AdminService

router = APIRouter(tags=["Admin"])


@router.post(
    "/validate-admin-key",
    response_model=AdminKeyResponse,
    responses={401: {"description": "Key rejected", "model": AdminKeyResponse}},
    summary="Check the admin access key",
)
async def validate_admin_key(
    body: AdminKeyRequest,
    service: AdminService = Depends(get_admin_service),
):
    if service.check_admin_key(body.key):
        return AdminKeyResponse(valid=True, message="Access granted")
    return JSONResponse(
        status_code=401,
        content=AdminKeyResponse(valid=False, message="Invalid access key").model_dump(by_alias=True),
    )


@router.post(
    "/api/send-email",
    response_model=EmailIntentResponse,
    summary="Record a request to email an applicant",
)
async def send_email(
    body: EmailIntentRequest,
    service: AdminService = Depends(get_admin_service),
) -> EmailIntentResponse:
    address = service.record_email_intent(body.email)
    return EmailIntentResponse(message=f"Email request recorded for {address}")
