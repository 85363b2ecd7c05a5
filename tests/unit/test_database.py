"""Unit tests for the asyncpg pool lifecycle, migrations and health check."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vidtube import database


@pytest.fixture(autouse=True)
def reset_pool():
    database._pool = None
    yield
    database._pool = None


@pytest.fixture
def settings():
    with patch(
        "vidtube.database.get_settings",
        return_value=MagicMock(
            postgres_url="postgresql://u:p@db:5432/vidtube",
            db_pool_min_size=1,
            db_pool_max_size=4,
            db_timeout_seconds=3.0,
        ),
    ) as mock_settings:
        yield mock_settings.return_value


class TestPoolLifecycle:

    @pytest.mark.asyncio
    async def test_get_pool_requires_init(self):
        with pytest.raises(RuntimeError):
            await database.get_pool()

    @pytest.mark.asyncio
    async def test_init_opens_pool_once_with_settings(self, settings):
        pool = MagicMock()
        with patch("vidtube.database.asyncpg.create_pool", new_callable=AsyncMock, return_value=pool) as create:
            first = await database.init_database()
            second = await database.init_database()

        assert first is pool and second is pool
        create.assert_awaited_once_with(
            "postgresql://u:p@db:5432/vidtube",
            min_size=1,
            max_size=4,
            timeout=3.0,
            command_timeout=3.0,
        )

    @pytest.mark.asyncio
    async def test_close_resets_pool(self):
        pool = MagicMock(close=AsyncMock())
        database._pool = pool

        await database.close_database()

        pool.close.assert_awaited_once()
        with pytest.raises(RuntimeError):
            await database.get_pool()


class TestRunMigrations:

    @pytest.mark.asyncio
    async def test_applies_files_in_name_order(self, tmp_path, mock_pool):
        pool, conn = mock_pool
        database._pool = pool
        (tmp_path / "002_comments.sql").write_text("CREATE TABLE IF NOT EXISTS comments ();")
        (tmp_path / "001_users.sql").write_text("CREATE TABLE IF NOT EXISTS users ();")

        applied = await database.run_migrations(tmp_path)

        assert applied == ["001_users.sql", "002_comments.sql"]
        executed = [c.args[0] for c in conn.execute.await_args_list]
        assert executed[0].startswith("CREATE TABLE IF NOT EXISTS users")

    @pytest.mark.asyncio
    async def test_missing_directory_skips_store(self, tmp_path):
        applied = await database.run_migrations(tmp_path / "absent")

        assert applied == []

    def test_bundled_schema_is_found(self):
        names = [p.name for p in sorted(database.MIGRATIONS_DIR.glob("*.sql"))]

        assert names == ["001_users.sql", "002_comments.sql"]


class TestHealthCheck:

    @pytest.mark.asyncio
    async def test_healthy(self, settings, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.return_value = 1
        database._pool = pool

        assert await database.health_check() is True
        conn.fetchval.assert_awaited_once_with("SELECT 1", timeout=3.0)

    @pytest.mark.asyncio
    async def test_uninitialized_pool_is_unhealthy(self, settings):
        assert await database.health_check() is False

    @pytest.mark.asyncio
    async def test_connection_error_is_unhealthy(self, settings, mock_pool):
        pool, conn = mock_pool
        conn.fetchval.side_effect = OSError("connection refused")
        database._pool = pool

        assert await database.health_check() is False
