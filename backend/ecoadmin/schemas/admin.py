"""
EcoAdmin Backend: Admin Utility Schemas
========================================

Bodies for the shared-secret check and the notification-intent stub.
"""

from typing import Optional

from pydantic import Field

from ecoadmin.schemas.common import CamelModel


class AdminKeyRequest(CamelModel):
    key: str = Field(default="", description="Caller-supplied admin access key")


class AdminKeyResponse(CamelModel):
    valid: bool
    message: str


class EmailIntentRequest(CamelModel):
    email: Optional[str] = Field(default=None, max_length=320)


class EmailIntentResponse(CamelModel):
    success: bool = True
    message: str
