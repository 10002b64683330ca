"""
Auth Service.

Single shared admin credential from config/.env. A successful login issues
a JWT that admin endpoints accept from the ``admin_token`` cookie or a
Bearer header.
"""

from modules.backend.core.config import get_app_config, get_settings
from modules.backend.core.exceptions import AuthenticationError, ConfigurationError
from modules.backend.core.logging import get_logger
from modules.backend.core.security import create_access_token, credentials_match, decode_token
from modules.backend.schemas.auth import LoginResponse

logger = get_logger(__name__)


class AuthService:
    """Login and token verification for the shared admin credential."""

    def login(self, username: str, password: str) -> LoginResponse:
        """
        Check the credential and issue a token.

        Raises:
            ConfigurationError: If ADMIN_USERNAME or ADMIN_PASSWORD is unset
            AuthenticationError: If the credential does not match
        """
        settings = get_settings()
        if not settings.admin_username or not settings.admin_password:
            logger.error("Admin credentials are not configured")
            raise ConfigurationError("Server configuration error")

        username_ok = credentials_match(username, settings.admin_username)
        password_ok = credentials_match(password, settings.admin_password)
        if not (username_ok and password_ok):
            logger.warning("Admin login rejected", extra={"username": username})
            raise AuthenticationError("Invalid credentials")

        expires_in = get_app_config().security.admin_cookie.max_age_seconds
        token = create_access_token({"sub": username, "role": "admin"})
        logger.info("Admin logged in", extra={"username": username})
        return LoginResponse(username=username, access_token=token, expires_in=expires_in)

    def verify(self, token: str | None) -> str:
        """
        Validate an admin token and return the username it was issued to.

        Raises:
            AuthenticationError: If the token is missing, invalid or not an admin token
        """
        if not token:
            raise AuthenticationError("Authentication required")
        payload = decode_token(token)
        username = payload.get("sub")
        if payload.get("role") != "admin" or not username:
            raise AuthenticationError("Invalid or expired token")
        return username
