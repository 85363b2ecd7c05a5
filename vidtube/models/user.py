"""User models."""

from datetime import datetime
from uuid import UUID

from vidtube.models.response import CamelModel


class User(CamelModel):
    """A registered user, as exposed to clients.

    Never carries the password hash or the stored refresh token.
    """

    id: UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: datetime
    updated_at: datetime
