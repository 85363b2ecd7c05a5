"""FastAPI dependencies for authentication and cookie configuration."""

from typing import Optional
from uuid import UUID

from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from vidtube.config import get_settings
from vidtube.exceptions import UnauthorizedError
from vidtube.models.auth import CookieOptions
from vidtube.models.user import User
from vidtube.services.auth_service import AuthService
from vidtube.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_cookie_options() -> CookieOptions:
    """Build the token cookie flags from settings."""
    settings = get_settings()
    return CookieOptions(
        httponly=settings.cookie_httponly,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite.lower(),
    )


async def get_current_user(
    access_cookie: Optional[str] = Cookie(default=None, alias="accessToken"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """Resolve the caller from the accessToken cookie or a Bearer header.

    Raises:
        UnauthorizedError: If no token is sent, it is invalid or expired,
            or its user no longer exists
    """
    token = access_cookie or (credentials.credentials if credentials else None)
    if not token:
        raise UnauthorizedError("Unauthorized request")

    try:
        payload = AuthService().validate_access_token(token)
    except ValueError as e:
        raise UnauthorizedError("Invalid or expired access token", detail=str(e)) from e

    try:
        user_id = UUID(payload.get("sub") or "")
    except (ValueError, TypeError, AttributeError) as e:
        raise UnauthorizedError("Invalid token payload") from e

    user = await UserService().get_by_id(user_id)
    if user is None:
        raise UnauthorizedError("Invalid access token")

    return user
