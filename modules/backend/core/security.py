"""
Security Utilities.

The board has one shared admin credential (ADMIN_USERNAME/ADMIN_PASSWORD
in config/.env). A successful login is exchanged for a signed JWT that is
carried as a Bearer header or the admin cookie.

ADMIN_PASSWORD may hold plaintext or a bcrypt hash produced by
``hash_password``. Either form is checked in constant time.
"""

import hmac
from datetime import timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from modules.backend.core.config import get_app_config, get_settings
from modules.backend.core.exceptions import AuthenticationError
from modules.backend.core.logging import get_logger
from modules.backend.core.utils import utc_now

logger = get_logger(__name__)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    """bcrypt hash suitable for ADMIN_PASSWORD."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def credentials_match(supplied: str, configured: str) -> bool:
    """True when ``supplied`` matches the configured secret, hashed or not."""
    if configured.startswith(_BCRYPT_PREFIXES):
        return verify_password(supplied, configured)
    return hmac.compare_digest(supplied.encode("utf-8"), configured.encode("utf-8"))


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Sign ``data`` as an admin session token.

    ``exp``, ``type`` and ``aud`` are added to a copy of the claims; the
    lifetime defaults to security.jwt.access_token_expire_minutes.
    """
    jwt_config = get_app_config().security.jwt
    lifetime = expires_delta or timedelta(minutes=jwt_config.access_token_expire_minutes)
    claims = {
        **data,
        "exp": utc_now() + lifetime,
        "type": TOKEN_TYPE,
        "aud": jwt_config.audience,
    }
    return jwt.encode(claims, get_settings().jwt_secret, algorithm=jwt_config.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify signature, expiry and audience, and return the claims.

    Raises:
        AuthenticationError: If any check fails
    """
    jwt_config = get_app_config().security.jwt
    try:
        return jwt.decode(
            token,
            get_settings().jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Rejected admin token", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token") from e
