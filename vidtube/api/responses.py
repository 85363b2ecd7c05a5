"""Helpers for building enveloped JSON responses and token cookies."""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from vidtube.models.auth import CookieOptions, TokenPair
from vidtube.models.response import ApiResponse

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def api_response(status_code: int, data: Any = None, message: str = "Success") -> JSONResponse:
    """Wrap data in the {statusCode, data, message, success} envelope."""
    envelope = ApiResponse(
        status_code=status_code,
        data=jsonable_encoder(data, by_alias=True),
        message=message,
    )
    return JSONResponse(status_code=status_code, content=envelope.model_dump(by_alias=True))


def set_token_cookies(response: JSONResponse, tokens: TokenPair, options: CookieOptions) -> None:
    for key, value in (
        (ACCESS_TOKEN_COOKIE, tokens.access_token),
        (REFRESH_TOKEN_COOKIE, tokens.refresh_token),
    ):
        response.set_cookie(
            key,
            value,
            path=options.path,
            secure=options.secure,
            httponly=options.httponly,
            samesite=options.samesite,
        )


def clear_token_cookies(response: JSONResponse, options: CookieOptions) -> None:
    for key in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            key,
            path=options.path,
            secure=options.secure,
            httponly=options.httponly,
            samesite=options.samesite,
        )
