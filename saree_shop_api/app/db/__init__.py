"""Async Postgres connection pool using asyncpg."""
from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg

from ..errors import RemoteStoreError
from ..settings import Settings


class PoolHolder:
    """Owns one lazily created asyncpg pool for the lifetime of the app."""

    def __init__(self, cfg: Settings):
        self._cfg = cfg
        self._pool: Optional[asyncpg.Pool] = None
        self._lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._cfg.database_url)

    async def get_pool(self) -> asyncpg.Pool:
        """Return (and lazily create) the asyncpg connection pool."""
        if self._pool is not None:
            return self._pool
        if not self._cfg.database_url:
            raise RemoteStoreError("DATABASE_URL is not set")
        async with self._lock:
            if self._pool is None:
                try:
                    self._pool = await asyncio.wait_for(
                        asyncpg.create_pool(
                            dsn=self._cfg.database_url,
                            min_size=self._cfg.db_pool_min_size,
                            max_size=self._cfg.db_pool_max_size,
                            timeout=self._cfg.remote_timeout_seconds,
                            command_timeout=self._cfg.remote_timeout_seconds,
                        ),
                        timeout=self._cfg.remote_timeout_seconds,
                    )
                except (asyncpg.PostgresError, asyncpg.InterfaceError,
                        OSError, asyncio.TimeoutError) as e:
                    raise RemoteStoreError(f"could not connect to database: {e}") from e
        return self._pool

    async def close(self) -> None:
        """Shut down the connection pool (call on app shutdown)."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
