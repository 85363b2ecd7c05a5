"""Comment endpoints for videos."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from vidtube.api.dependencies import get_current_user
from vidtube.api.responses import api_response
from vidtube.models.comment import CommentCreate
from vidtube.models.user import User
from vidtube.services.comment_service import CommentService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/comments", tags=["Comments"])


@router.get("/{video_id}")
async def get_video_comments(
    video_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> JSONResponse:
    """List a video's comments, newest first, with pagination metadata."""
    comment_page = await CommentService().paginate_video_comments(
        video_id=video_id, page=page, limit=limit
    )
    return api_response(200, comment_page, "Comments fetched successfully")


@router.post("/{video_id}", status_code=201)
async def add_comment(
    video_id: UUID,
    payload: CommentCreate,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Post a comment on a video as the authenticated user."""
    comment = await CommentService().create_comment(
        owner_id=current_user.id,
        video_id=video_id,
        content=payload.content,
    )
    return api_response(201, comment, "Comment added successfully")
