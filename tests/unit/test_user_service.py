"""Unit tests for UserService with mocked asyncpg database."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID, uuid4

import asyncpg
import pytest

from vidtube.exceptions import ConflictError
from vidtube.models.user import User
from vidtube.services.user_service import UserService


@pytest.fixture
def user_service():
    """UserService with fixed settings and a stub password hasher."""
    settings = MagicMock(db_timeout_seconds=5.0)
    with (
        patch("vidtube.services.user_service.get_settings", return_value=settings),
        patch("vidtube.services.auth_service.get_settings", return_value=settings),
    ):
        service = UserService()
    service.auth_service.hash_password = MagicMock(return_value="$2b$12$hashed")
    return service


def _make_user_row(user_id=None, username="alice", email="a@x.com", **extra):
    now = datetime.now(timezone.utc)
    row = {
        "id": user_id or uuid4(),
        "username": username,
        "email": email,
        "full_name": "Alice A",
        "avatar": "https://res.example.com/a.png",
        "cover_image": None,
        "created_at": now,
        "updated_at": now,
    }
    row.update(extra)
    return row


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_inserts_lowercased_identity_and_hash(self, user_service, mock_pool):
        pool, conn = mock_pool

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            user_id = await user_service.create_user(
                username="Alice",
                email="A@X.com",
                full_name="Alice A",
                password="pw",
                avatar="https://res.example.com/a.png",
            )

        assert isinstance(user_id, UUID)
        args = conn.execute.call_args.args
        assert args[1] == user_id
        assert args[2] == "alice"
        assert args[3] == "a@x.com"
        assert args[5] == "$2b$12$hashed"
        assert "pw" not in args
        assert args[7] == ""
        assert conn.execute.call_args.kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_unique_violation_becomes_conflict(self, user_service, mock_pool):
        pool, conn = mock_pool
        conn.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            with pytest.raises(ConflictError):
                await user_service.create_user("alice", "a@x.com", "Alice", "pw", "url")


class TestLookups:

    @pytest.mark.asyncio
    async def test_get_by_id_returns_sanitized_user(self, user_service, mock_pool):
        pool, conn = mock_pool
        user_id = uuid4()
        conn.fetchrow.return_value = _make_user_row(user_id=user_id)

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            user = await user_service.get_by_id(user_id)

        assert isinstance(user, User)
        assert user.id == user_id
        assert user.cover_image == ""
        query = conn.fetchrow.call_args.args[0]
        assert "password_hash" not in query
        assert "refresh_token" not in query

    @pytest.mark.asyncio
    async def test_get_by_id_missing_returns_none(self, user_service, mock_pool):
        pool, conn = mock_pool
        conn.fetchrow.return_value = None

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            assert await user_service.get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_credentials_returns_user_and_hash(self, user_service, mock_pool):
        pool, conn = mock_pool
        conn.fetchrow.return_value = _make_user_row(password_hash="$2b$12$stored")

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            result = await user_service.get_credentials(email="a@x.com")

        user, password_hash = result
        assert user.username == "alice"
        assert password_hash == "$2b$12$stored"
        assert conn.fetchrow.call_args.args[1:] == ("a@x.com", None)

    @pytest.mark.asyncio
    async def test_find_by_email_or_username_matches_either(self, user_service, mock_pool):
        pool, conn = mock_pool
        conn.fetchrow.return_value = _make_user_row()

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            user = await user_service.find_by_email_or_username(email="new@x.com", username="alice")

        assert user is not None
        query = conn.fetchrow.call_args.args[0]
        assert "OR" in query


class TestRefreshTokenStorage:

    @pytest.mark.asyncio
    async def test_set_refresh_token_reports_update(self, user_service, mock_pool):
        pool, conn = mock_pool
        conn.execute.return_value = "UPDATE 1"
        user_id = uuid4()

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            assert await user_service.set_refresh_token(user_id, "tok") is True

        args = conn.execute.call_args.args
        assert "SET refresh_token = $1" in args[0]
        assert args[1] == "tok"
        assert args[3] == user_id

    @pytest.mark.asyncio
    async def test_set_refresh_token_missing_user(self, user_service, mock_pool):
        pool, conn = mock_pool
        conn.execute.return_value = "UPDATE 0"

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            assert await user_service.set_refresh_token(uuid4(), "tok") is False

    @pytest.mark.asyncio
    async def test_unset_refresh_token_writes_null(self, user_service, mock_pool):
        pool, conn = mock_pool
        user_id = uuid4()

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            await user_service.unset_refresh_token(user_id)

        args = conn.execute.call_args.args
        assert "refresh_token = NULL" in args[0]
        assert args[2] == user_id

    @pytest.mark.asyncio
    async def test_get_refresh_token(self, user_service, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.return_value = "stored-token"

        with patch("vidtube.services.user_service.get_pool", new_callable=AsyncMock, return_value=pool):
            assert await user_service.get_refresh_token(uuid4()) == "stored-token"
