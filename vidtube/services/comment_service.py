"""Comment storage and paginated retrieval."""

from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog

from vidtube.config import get_settings
from vidtube.database import get_pool
from vidtube.exceptions import ValidationError
from vidtube.models.comment import Comment, CommentOwner, CommentPage, CommentWithOwner

logger = structlog.get_logger(__name__)

# Largest OFFSET Postgres accepts (int8)
MAX_OFFSET = 2**63 - 1


class CommentService:
    """Service for creating comments and listing them per video."""

    def __init__(self):
        self.settings = get_settings()

    async def create_comment(self, owner_id: UUID, video_id: UUID, content: str) -> Comment:
        """Store a comment with trimmed content.

        Raises:
            ValidationError: If content is empty after trimming
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment content is required")

        comment_id = uuid4()
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO comments (id, owner_id, video_id, content, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                """,
                comment_id,
                owner_id,
                video_id,
                content,
                now,
                now,
                timeout=self.settings.db_timeout_seconds,
            )

        logger.info(
            "comment_created",
            comment_id=str(comment_id),
            owner_id=str(owner_id),
            video_id=str(video_id),
        )

        return Comment(
            id=comment_id,
            owner_id=owner_id,
            video_id=video_id,
            content=content,
            created_at=now,
            updated_at=now,
        )

    async def paginate_video_comments(
        self, video_id: UUID, page: int = 1, limit: int = 10
    ) -> CommentPage:
        """Return one page of a video's comments, newest first.

        Each comment is joined with a summary of its owner.

        Raises:
            ValidationError: If the page lies beyond the largest usable offset
        """
        offset = (page - 1) * limit
        if offset > MAX_OFFSET:
            raise ValidationError(
                "Page is out of range",
                errors=[{"field": "page", "message": "Page is out of range"}],
            )
        timeout = self.settings.db_timeout_seconds

        pool = await get_pool()

        async with pool.acquire() as conn:
            total = await conn.fetchval(
                "SELECT COUNT(*) FROM comments WHERE video_id = $1",
                video_id,
                timeout=timeout,
            )
            rows = await conn.fetch(
                """
                SELECT c.id, c.owner_id, c.video_id, c.content, c.created_at, c.updated_at,
                       u.username, u.full_name, u.avatar
                FROM comments c
                JOIN users u ON u.id = c.owner_id
                WHERE c.video_id = $1
                ORDER BY c.created_at DESC
                LIMIT $2 OFFSET $3
                """,
                video_id,
                limit,
                offset,
                timeout=timeout,
            )

        docs = [
            CommentWithOwner(
                id=row["id"],
                owner_id=row["owner_id"],
                video_id=row["video_id"],
                content=row["content"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
                owner=CommentOwner(
                    id=row["owner_id"],
                    username=row["username"],
                    full_name=row["full_name"],
                    avatar=row["avatar"],
                ),
            )
            for row in rows
        ]

        return CommentPage.build(docs, total_docs=total or 0, page=page, limit=limit)
