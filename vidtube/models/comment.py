"""Comment models and the paginated listing shape."""

import math
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from vidtube.models.response import CamelModel


class CommentCreate(CamelModel):
    """Request body for posting a comment."""

    content: str = Field(..., max_length=5000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        """Trim surrounding whitespace and reject empty content."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Comment content cannot be empty or whitespace only")
        return stripped


class Comment(CamelModel):
    """A comment left by a user on a video."""

    id: UUID
    owner_id: UUID
    video_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime


class CommentOwner(CamelModel):
    """Public summary of a comment author."""

    id: UUID
    username: str
    full_name: str
    avatar: str


class CommentWithOwner(Comment):
    owner: CommentOwner


class CommentPage(CamelModel):
    """One page of comments with aggregate-pagination metadata.

    Attributes:
        docs: Comments on this page
        total_docs: Total comments matching the query
        limit: Page size
        page: 1-based page number
        total_pages: Number of pages (at least 1)
        paging_counter: 1-based index of the first doc on this page
        has_prev_page: Whether a previous page exists
        has_next_page: Whether a next page exists
        prev_page: Previous page number or None
        next_page: Next page number or None
    """

    docs: list[CommentWithOwner]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    paging_counter: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int] = None
    next_page: Optional[int] = None

    @classmethod
    def build(
        cls, docs: list[CommentWithOwner], total_docs: int, page: int, limit: int
    ) -> "CommentPage":
        """Compute pagination metadata for a fetched page."""
        total_pages = max(1, math.ceil(total_docs / limit))
        has_prev = page > 1
        has_next = page < total_pages
        return cls(
            docs=docs,
            total_docs=total_docs,
            limit=limit,
            page=page,
            total_pages=total_pages,
            paging_counter=(page - 1) * limit + 1,
            has_prev_page=has_prev,
            has_next_page=has_next,
            prev_page=page - 1 if has_prev else None,
            next_page=page + 1 if has_next else None,
        )
