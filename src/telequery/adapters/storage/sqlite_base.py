"""Connection management for the SQLite metric store."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

MEMORY_PATH = ":memory:"


class AsyncConnectionManager:
    """Hands out aiosqlite connections with rows addressable by column name.

    The schema is applied once, guarded by a lazily created lock. A
    :memory: database lives only as long as its connection, so that case
    keeps one persistent connection instead of opening one per operation.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._ready = False
        self._lock: asyncio.Lock | None = None
        self._memory_conn: aiosqlite.Connection | None = None

    @property
    def is_memory(self) -> bool:
        return self._db_path == MEMORY_PATH

    async def _open(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self._db_path)
        db.row_factory = aiosqlite.Row
        return db

    async def _prepare(self) -> None:
        if self._ready:
            return
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._ready:
                return
            if self.is_memory:
                self._memory_conn = await self._open()
                await self._memory_conn.executescript(self._schema)
            else:
                db = await self._open()
                try:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
                    await db.commit()
                finally:
                    await db.close()
            self._ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection; file-backed connections are closed afterwards."""
        await self._prepare()
        if self.is_memory:
            if self._memory_conn is None:
                raise RuntimeError("Memory database connection not initialized")
            yield self._memory_conn
            return
        db = await self._open()
        try:
            yield db
        finally:
            await db.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection and commit on success, roll back on error."""
        async with self.connection() as db:
            try:
                yield db
            except BaseException:
                await db.rollback()
                raise
            await db.commit()

    async def close(self) -> None:
        """Close the persistent :memory: connection, if any."""
        if self._memory_conn is not None:
            await self._memory_conn.close()
            self._memory_conn = None
            self._ready = False
