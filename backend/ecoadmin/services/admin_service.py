"""
EcoAdmin Backend: Admin Access & Email Intent
==============================================

What:  The shared-secret check used by the admin console login screen, and
       the stub that records a request to email an applicant.
How:   The key is compared in constant time against ADMIN_ACCESS_KEY. When no
       key is configured, nothing validates.
"""

import logging
import secrets
from typing import Optional

from ecoadmin.config import Settings
from ecoadmin.exceptions import ValidationError

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, settings: Settings):
        self._admin_key: Optional[str] = settings.admin_access_key or None

    def check_admin_key(self, candidate: Optional[str]) -> bool:
        if not self._admin_key or not candidate:
            return False
        return secrets.compare_digest(candidate.encode("utf-8"), self._admin_key.encode("utf-8"))

    def record_email_intent(self, email: Optional[str]) -> str:
        """
        Acknowledge a request to email an applicant.

        No mail is sent; the intent is logged so an operator can follow up.
        """
        address = (email or "").strip()
        if not address:
            raise ValidationError(message="Email is required", field="email")
        logger.info("Email intent recorded for %s", address)
        return address
