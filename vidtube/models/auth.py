"""Auth request and response models."""

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from vidtube.models.response import CamelModel
from vidtube.models.user import User


class LoginRequest(BaseModel):
    """Login credentials.

    Presence rules ((username or email) and password) are enforced by the
    login handler so that they surface as the standard 400 envelope.

    Attributes:
        username: Username; ``userName`` is accepted as well
        email: Email address, alternative to username
        password: Plain-text password
    """

    username: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("username", "userName")
    )
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(CamelModel):
    """Body form of the refresh call, used when no refresh cookie is sent."""

    refresh_token: Optional[str] = None


class TokenPair(CamelModel):
    """Access + refresh token pair issued on login and refresh."""

    access_token: str
    refresh_token: str


class LoginData(CamelModel):
    """Payload of a successful login."""

    logged_in_user: User
    access_token: str
    refresh_token: str


class CookieOptions(BaseModel):
    """Flags applied to the accessToken/refreshToken cookies."""

    httponly: bool = True
    secure: bool = True
    samesite: Literal["lax", "strict", "none"] = "lax"
    path: str = "/"
