"""asyncpg connection pool shared by the PostgreSQL customer store."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from followup.config.models.storage import PostgresConfig
from followup.db.errors import ConnectionError
from followup.observability.logging import get_logger

logger = get_logger(__name__)

DSN_ENV_VARS: tuple[str, ...] = ("FOLLOWUP_DATABASE_URL", "DATABASE_URL")


def resolve_dsn(configured: str | None = None) -> str:
    """Return the configured DSN, else the first DSN found in the environment.

    Raises:
        ConnectionError: No DSN is configured anywhere
    """
    if configured:
        return configured
    for name in DSN_ENV_VARS:
        if os.environ.get(name):
            return os.environ[name]
    raise ConnectionError(
        "No PostgreSQL DSN: set storage.postgres.connection_url or DATABASE_URL"
    )


class PostgresPool:
    """Lazily connected asyncpg pool.

    The pool opens on first ``acquire()`` and driver errors raised while a
    connection is held surface as ``ConnectionError``.
    """

    def __init__(self, config: PostgresConfig) -> None:
        self._config = config
        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Open the pool; no-op when already open."""
        if self._pool is not None:
            return

        config = self._config
        try:
            self._pool = await asyncpg.create_pool(
                dsn=resolve_dsn(config.connection_url),
                min_size=config.min_pool_size,
                max_size=config.max_pool_size,
                max_inactive_connection_lifetime=config.max_inactive_connection_lifetime,
                command_timeout=config.command_timeout,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("postgres_pool_connect_failed", error=str(e))
            raise ConnectionError(f"Cannot connect to PostgreSQL: {e}", cause=e) from e

        logger.info(
            "postgres_pool_connected",
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
        )

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.info("postgres_pool_closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection, opening the pool first if needed."""
        await self.connect()
        try:
            async with self._pool.acquire() as connection:
                yield connection
        except asyncpg.PostgresError as e:
            logger.error("postgres_query_failed", error=str(e))
            raise ConnectionError(f"PostgreSQL error: {e}", cause=e) from e

    async def health_check(self) -> bool:
        """Run ``SELECT 1``; False when the pool is closed or the query fails."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire() as connection:
                return await connection.fetchval("SELECT 1") == 1
        except (OSError, asyncpg.PostgresError) as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False
