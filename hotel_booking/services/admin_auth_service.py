from __future__ import annotations

import logging
import secrets

from hotel_booking.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AdminAuthService:
    """Single credential comparison against the configured admin account."""

    def __init__(self, username: str | None, password: str | None) -> None:
        self._username = username
        self._password = password

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdminAuthService":
        return cls(settings.admin_username, settings.admin_password)

    def is_configured(self) -> bool:
        return bool(self._username and self._password)

    def check_credentials(self, username: str, password: str) -> bool:
        if not self.is_configured():
            logger.warning("Admin login attempted but no admin credentials are configured")
            return False
        username_ok = secrets.compare_digest(username.encode(), self._username.encode())
        password_ok = secrets.compare_digest(password.encode(), self._password.encode())
        return username_ok and password_ok


def get_admin_auth_service() -> AdminAuthService:
    return AdminAuthService.from_settings(get_settings())
