"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.config import get_app_config
from modules.backend.core.database import get_db_session
from modules.backend.core.exceptions import AuthenticationError
from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]

# Username recorded when admin auth is disabled by feature flag
ANONYMOUS_ADMIN = "admin"


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


def extract_admin_token(
    authorization: str | None,
    cookie_token: str | None,
) -> str | None:
    """Bearer header wins over the admin cookie."""
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return cookie_token or None


async def require_admin(
    request: Request,
    authorization: str | None = Header(None),
) -> str:
    """
    Resolve the authenticated admin's username.

    Accepts a Bearer token or the admin cookie named in security.yaml. When the
    auth_require_admin feature flag is off every caller is treated as admin.

    Raises:
        AuthenticationError: If no valid admin token was presented
    """
    app_config = get_app_config()
    if not app_config.features.auth_require_admin:
        return ANONYMOUS_ADMIN

    cookie_token = request.cookies.get(app_config.security.admin_cookie.name)

    from modules.backend.services.auth import AuthService

    return AuthService().verify(extract_admin_token(authorization, cookie_token))


AdminUser = Annotated[str, Depends(require_admin)]


async def optional_admin(
    request: Request,
    authorization: str | None = Header(None),
) -> str | None:
    """Like ``require_admin`` but returns None instead of failing."""
    try:
        return await require_admin(request, authorization)
    except AuthenticationError:
        return None


OptionalAdmin = Annotated[str | None, Depends(optional_admin)]
