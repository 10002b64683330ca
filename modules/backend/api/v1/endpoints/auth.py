"""
Auth Endpoints.

Shared-credential admin login. The token is returned in the body and set
as an HTTP-only cookie.
"""

from fastapi import APIRouter, Response

from modules.backend.core.config import get_app_config
from modules.backend.core.dependencies import AdminUser, RequestId
from modules.backend.schemas.auth import AdminIdentity, LoginRequest, LoginResponse
from modules.backend.schemas.base import ApiResponse
from modules.backend.services.auth import AuthService

router = APIRouter()


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Admin login",
)
async def login(
    data: LoginRequest,
    response: Response,
    request_id: RequestId,
) -> ApiResponse[LoginResponse]:
    """Check the admin credential and issue a token cookie."""
    result = AuthService().login(data.username, data.password)
    cookie = get_app_config().security.admin_cookie
    response.set_cookie(
        key=cookie.name,
        value=result.access_token,
        max_age=cookie.max_age_seconds,
        httponly=True,
        secure=cookie.secure,
        samesite=cookie.same_site,
        path="/",
    )
    return ApiResponse(data=result)


@router.get(
    "/verify",
    response_model=ApiResponse[AdminIdentity],
    summary="Verify the admin session",
)
async def verify(
    admin: AdminUser,
    request_id: RequestId,
) -> ApiResponse[AdminIdentity]:
    """Return the authenticated admin, or 401."""
    return ApiResponse(data=AdminIdentity(username=admin))


@router.post(
    "/logout",
    response_model=ApiResponse[AdminIdentity],
    summary="Admin logout",
)
async def logout(
    response: Response,
    request_id: RequestId,
) -> ApiResponse[AdminIdentity]:
    """Clear the admin cookie."""
    cookie = get_app_config().security.admin_cookie
    response.delete_cookie(key=cookie.name, path="/")
    return ApiResponse(data=AdminIdentity(username="", authenticated=False))
