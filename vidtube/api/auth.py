"""User registration, login, logout and token refresh endpoints."""

import secrets
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Body, Cookie, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from vidtube.api.dependencies import get_cookie_options, get_current_user
from vidtube.api.responses import api_response, clear_token_cookies, set_token_cookies
from vidtube.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    UploadError,
    ValidationError,
)
from vidtube.models.auth import CookieOptions, LoginData, LoginRequest, RefreshRequest
from vidtube.models.user import User
from vidtube.services.auth_service import MAX_PASSWORD_BYTES, AuthService
from vidtube.services.media_service import MediaService, UploadedAsset
from vidtube.services.token_service import TokenService
from vidtube.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            "Password is too long",
            errors=[{
                "field": "password",
                "message": f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            }],
        )


async def _upload_asset(
    media_service: MediaService, upload: UploadFile
) -> Optional[UploadedAsset]:
    """Save an incoming file locally and push it to the media host."""
    async with media_service.temporary_upload(upload) as local_path:
        return await media_service.upload(local_path)


@router.post("/register", status_code=201)
async def register_user(
    full_name: Optional[str] = Form(default=None, alias="fullName"),
    email: Optional[str] = Form(default=None),
    username: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    avatar: Optional[UploadFile] = File(default=None),
    cover_image: Optional[UploadFile] = File(default=None, alias="coverImage"),
) -> JSONResponse:
    """Register a new user with an avatar and an optional cover image.

    Raises:
        ValidationError 400: If a text field or the avatar is missing,
            or the password is longer than bcrypt accepts
        ConflictError 409: If the email or username is taken
        UploadError 400: If the avatar could not be uploaded
        InternalError 500: If the created user cannot be read back
    """
    required = {
        "fullName": full_name,
        "email": email,
        "username": username,
        "password": password,
    }
    missing = [name for name, value in required.items() if _is_blank(value)]
    if not _has_file(avatar):
        missing.append("avatar")
    if missing:
        raise ValidationError(
            "All fields are required",
            errors=[{"field": name, "message": "This field is required"} for name in missing],
        )
    _check_password_length(password)

    user_service = UserService()
    existing = await user_service.find_by_email_or_username(
        email=email.strip(), username=username.strip()
    )
    if existing is not None:
        raise ConflictError("User with email or username already exists")

    media_service = MediaService()
    try:
        avatar_asset = await _upload_asset(media_service, avatar)
        if avatar_asset is None:
            raise UploadError("Error while uploading avatar")

        cover_asset = None
        if _has_file(cover_image):
            cover_asset = await _upload_asset(media_service, cover_image)
            if cover_asset is None:
                logger.warning("cover_image_upload_failed", username=username.strip().lower())
    finally:
        await media_service.close()

    user_id = await user_service.create_user(
        username=username.strip(),
        email=email.strip(),
        full_name=full_name.strip(),
        password=password,
        avatar=avatar_asset.secure_url,
        cover_image=cover_asset.secure_url if cover_asset else "",
    )

    created_user = await user_service.get_by_id(user_id)
    if created_user is None:
        raise InternalError(
            "Something went wrong while registering the user",
            detail=f"user {user_id} missing after insert",
        )

    logger.info("user_registered", user_id=str(user_id), username=created_user.username)
    return api_response(201, created_user, "User registered successfully")


@router.post("/login")
async def login_user(
    payload: LoginRequest,
    cookie_options: CookieOptions = Depends(get_cookie_options),
) -> JSONResponse:
    """Log in with username or email plus password.

    Sets accessToken/refreshToken cookies and returns both tokens.

    Raises:
        ValidationError 400: If identifier or password is missing,
            or the password is too long
        NotFoundError 404: If no such user exists
        UnauthorizedError 401: If the password is wrong
    """
    if (_is_blank(payload.username) and _is_blank(payload.email)) or _is_blank(payload.password):
        raise ValidationError("Username or email and password are required")
    _check_password_length(payload.password)

    user_service = UserService()
    auth_service = AuthService()

    result = await user_service.get_credentials(
        email=None if _is_blank(payload.email) else payload.email.strip(),
        username=None if _is_blank(payload.username) else payload.username.strip(),
    )
    if result is None:
        raise NotFoundError("User does not exist, please register first")

    user, password_hash = result

    if not auth_service.verify_password(payload.password, password_hash):
        logger.warning("login_invalid_password", user_id=str(user.id))
        raise UnauthorizedError("Invalid user credentials")

    tokens = await TokenService().generate_access_and_refresh_token(user.id)

    logger.info("user_logged_in", user_id=str(user.id), username=user.username)

    response = api_response(
        200,
        LoginData(
            logged_in_user=user,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
        "User logged in successfully",
    )
    set_token_cookies(response, tokens, cookie_options)
    return response


@router.post("/logout")
async def logout_user(
    current_user: User = Depends(get_current_user),
    cookie_options: CookieOptions = Depends(get_cookie_options),
) -> JSONResponse:
    """Clear the stored refresh token and both token cookies."""
    await UserService().unset_refresh_token(current_user.id)

    logger.info("user_logged_out", user_id=str(current_user.id))

    response = api_response(200, {}, "User logged out successfully")
    clear_token_cookies(response, cookie_options)
    return response


@router.post("/refresh-token")
async def refresh_access_token(
    payload: Optional[RefreshRequest] = Body(default=None),
    refresh_cookie: Optional[str] = Cookie(default=None, alias="refreshToken"),
    cookie_options: CookieOptions = Depends(get_cookie_options),
) -> JSONResponse:
    """Exchange a refresh token for a new token pair.

    The token is read from the refreshToken cookie, falling back to the
    JSON body. It must match the one stored for the user, so a token that
    was rotated away or cleared by logout is rejected.

    Raises:
        UnauthorizedError 401: If the token is missing, invalid, expired,
            not the current one, or its user does not exist
    """
    incoming = refresh_cookie or (payload.refresh_token if payload else None)
    if not incoming:
        raise UnauthorizedError("Unauthorized request")

    auth_service = AuthService()
    try:
        decoded = auth_service.validate_refresh_token(incoming)
    except ValueError as e:
        raise UnauthorizedError("Invalid refresh token", detail=str(e)) from e

    try:
        user_id = UUID(decoded.get("sub") or "")
    except (ValueError, TypeError, AttributeError) as e:
        raise UnauthorizedError("Invalid refresh token", detail="missing identity") from e

    user_service = UserService()
    user = await user_service.get_by_id(user_id)
    if user is None:
        raise UnauthorizedError("Invalid refresh token", detail=f"unknown user {user_id}")

    stored = await user_service.get_refresh_token(user.id)
    if stored is None or not secrets.compare_digest(stored, incoming):
        logger.warning("refresh_token_reuse_rejected", user_id=str(user.id))
        raise UnauthorizedError("Refresh token is expired or used")

    tokens = await TokenService().generate_access_and_refresh_token(user.id)

    logger.info("access_token_refreshed", user_id=str(user.id))

    response = api_response(200, tokens, "Access token refreshed")
    set_token_cookies(response, tokens, cookie_options)
    return response


@router.get("/current-user")
async def get_me(current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Return the authenticated user."""
    return api_response(200, current_user, "Current user fetched successfully")
