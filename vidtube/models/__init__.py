"""Models package exports."""

from vidtube.models.auth import CookieOptions, LoginData, LoginRequest, RefreshRequest, TokenPair
from vidtube.models.comment import Comment, CommentCreate, CommentOwner, CommentPage, CommentWithOwner
from vidtube.models.response import ApiResponse, CamelModel
from vidtube.models.user import User

__all__ = [
    "ApiResponse",
    "CamelModel",
    "Comment",
    "CommentCreate",
    "CommentOwner",
    "CommentPage",
    "CommentWithOwner",
    "CookieOptions",
    "LoginData",
    "LoginRequest",
    "RefreshRequest",
    "TokenPair",
    "User",
]
