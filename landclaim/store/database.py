"""
PostGIS database access.

``Database`` owns an asyncpg connection pool. ``Database.transaction()``
acquires one connection, opens a transaction on it and yields a
``UnitOfWork`` whose repositories all share that connection: leaving the
block normally commits, an exception rolls back every write made through
the unit.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

import asyncpg

from landclaim.config import DatabaseSettings
from landclaim.store.documents import DocumentRepository
from landclaim.store.drafts import DraftRepository
from landclaim.store.prohibited_areas import ProhibitedAreaRepository
from landclaim.store.submissions import SubmissionRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """
    Repositories bound to one connection inside one transaction.

    Attributes:
        conn: The underlying asyncpg connection, for components such as the
            overlap engine that issue their own SQL.
    """

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn
        self.drafts = DraftRepository(conn)
        self.submissions = SubmissionRepository(conn)
        self.documents = DocumentRepository(conn)
        self.prohibited_areas = ProhibitedAreaRepository(conn)


class Database:
    """
    asyncpg pool wrapper.

    Args:
        dsn: PostgreSQL connection string.
        pool: An existing asyncpg pool. If provided, ``dsn`` is ignored and
            the pool is not closed by ``close()``.
        min_pool_size: Minimum connections in the pool.
        max_pool_size: Maximum connections in the pool.
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        pool: Optional[asyncpg.Pool] = None,
        min_pool_size: int = 2,
        max_pool_size: int = 10,
    ):
        if dsn is None and pool is None:
            raise ValueError("Database needs either a dsn or a pool")
        self._dsn = dsn
        self._pool: Optional[asyncpg.Pool] = pool
        self._min_pool_size = min_pool_size
        self._max_pool_size = max_pool_size
        self._owns_pool = pool is None

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        """Build an unconnected Database from DatabaseSettings."""
        return cls(
            dsn=settings.dsn,
            min_pool_size=settings.min_pool_size,
            max_pool_size=settings.max_pool_size,
        )

    async def connect(self) -> None:
        """Create the connection pool if not already provided."""
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_pool_size,
                max_size=self._max_pool_size,
            )
            logger.info("PostGIS connection pool created")

    async def close(self) -> None:
        """Close the connection pool if we own it."""
        if self._pool is not None and self._owns_pool:
            await self._pool.close()
            self._pool = None
            logger.info("PostGIS connection pool closed")

    def _ensure_pool(self) -> asyncpg.Pool:
        """Return the pool, raising if not connected."""
        if self._pool is None:
            raise RuntimeError("Database is not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork]:
        """Open a transaction and yield its UnitOfWork."""
        pool = self._ensure_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                yield UnitOfWork(conn)

    async def with_transaction(self, fn: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        """Run ``fn`` in a fresh transaction; commit on return, roll back on raise."""
        async with self.transaction() as uow:
            return await fn(uow)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection without opening a transaction (read-only use)."""
        pool = self._ensure_pool()
        async with pool.acquire() as conn:
            yield conn
