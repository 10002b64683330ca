"""
Auth Schemas.

Request/response schemas for the shared admin credential login.
"""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)


class LoginResponse(BaseModel):
    """Issued token; also set as an HTTP-only cookie."""

    username: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")


class AdminIdentity(BaseModel):
    """The authenticated admin."""

    username: str
    authenticated: bool = True
