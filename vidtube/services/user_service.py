"""User credential store backed by PostgreSQL."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from vidtube.config import get_settings
from vidtube.database import get_pool
from vidtube.exceptions import ConflictError
from vidtube.models.user import User
from vidtube.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

# Public projection: never includes password_hash or refresh_token
USER_COLUMNS = "id, username, email, full_name, avatar, cover_image, created_at, updated_at"


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        full_name=row["full_name"],
        avatar=row["avatar"],
        cover_image=row["cover_image"] or "",
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    """Service for user records and their stored refresh token."""

    def __init__(self):
        self.settings = get_settings()
        self.auth_service = AuthService()

    @property
    def _timeout(self) -> float:
        return self.settings.db_timeout_seconds

    async def find_by_email_or_username(
        self, email: Optional[str] = None, username: Optional[str] = None
    ) -> Optional[User]:
        """Find a user whose email or username matches (case-insensitive).

        Args:
            email: Email to match, may be None
            username: Username to match, may be None

        Returns:
            Matching User or None
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE LOWER(email) = LOWER($1) OR LOWER(username) = LOWER($2)
                LIMIT 1
                """,
                email,
                username,
                timeout=self._timeout,
            )

        return _row_to_user(row) if row is not None else None

    async def get_credentials(
        self, email: Optional[str] = None, username: Optional[str] = None
    ) -> Optional[tuple[User, str]]:
        """Look up a user for login.

        Returns:
            Tuple of (User, password_hash) or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {USER_COLUMNS}, password_hash
                FROM users
                WHERE LOWER(email) = LOWER($1) OR LOWER(username) = LOWER($2)
                LIMIT 1
                """,
                email,
                username,
                timeout=self._timeout,
            )

        if row is None:
            return None

        return _row_to_user(row), row["password_hash"]

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by UUID, without password or refresh token."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
                timeout=self._timeout,
            )

        return _row_to_user(row) if row is not None else None

    async def create_user(
        self,
        username: str,
        email: str,
        full_name: str,
        password: str,
        avatar: str,
        cover_image: str = "",
    ) -> UUID:
        """Insert a new user with a hashed password.

        Username and email are stored lower-cased.

        Returns:
            The new user's id

        Raises:
            ConflictError: If the username or email is already taken
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)
        password_hash = self.auth_service.hash_password(password)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (id, username, email, full_name, password_hash, avatar, cover_image, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    """,
                    user_id,
                    username.lower(),
                    email.lower(),
                    full_name,
                    password_hash,
                    avatar,
                    cover_image,
                    now,
                    now,
                    timeout=self._timeout,
                )
        except asyncpg.UniqueViolationError as e:
            logger.warning("user_create_conflict", username=username.lower())
            raise ConflictError("User with email or username already exists") from e

        logger.info("user_created", user_id=str(user_id), username=username.lower())
        return user_id

    async def set_refresh_token(self, user_id: UUID, refresh_token: str) -> bool:
        """Overwrite the stored refresh token, leaving other columns untouched.

        Returns:
            True if the user row exists and was updated
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE users
                SET refresh_token = $1, updated_at = $2
                WHERE id = $3
                """,
                refresh_token,
                datetime.now(timezone.utc),
                user_id,
                timeout=self._timeout,
            )

        return result == "UPDATE 1"

    async def unset_refresh_token(self, user_id: UUID) -> None:
        """Clear the stored refresh token (logout)."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET refresh_token = NULL, updated_at = $1
                WHERE id = $2
                """,
                datetime.now(timezone.utc),
                user_id,
                timeout=self._timeout,
            )

        logger.info("refresh_token_cleared", user_id=str(user_id))

    async def get_refresh_token(self, user_id: UUID) -> Optional[str]:
        """Return the currently stored refresh token, if any."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT refresh_token FROM users WHERE id = $1",
                user_id,
                timeout=self._timeout,
            )
