"""Store handles and transaction runners.

Every repository function takes a :class:`StoreHandle` as its first
argument. A handle wraps exactly one database connection; statements issued
through it are serialized, so several coroutines may share one handle (as
the push batches do) while the connection only sees one statement at a time.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql import Executable

from ..database import Database
from ..errors import TransactionTimeoutError

T = TypeVar("T")


class StoreHandle:
    """One connection plus a lock serializing statement execution."""

    def __init__(self, conn: AsyncConnection):
        self._conn = conn
        self._lock = asyncio.Lock()

    @property
    def dialect_name(self) -> str:
        return self._conn.dialect.name

    async def execute(self, statement: Executable, parameters: Any = None) -> CursorResult:
        async with self._lock:
            if parameters is None:
                return await self._conn.execute(statement)
            return await self._conn.execute(statement, parameters)


async def run_transaction(
    database: Database,
    fn: Callable[[StoreHandle], Awaitable[T]],
    timeout: float | None = None,
) -> T:
    """Run ``fn`` inside one transaction; commit on success, roll back on error.

    With a timeout, ``fn`` is cancelled once it runs too long, the
    transaction rolls back and :class:`TransactionTimeoutError` is raised.
    """
    async with database.engine.begin() as conn:
        store = StoreHandle(conn)
        if not timeout:
            return await fn(store)
        try:
            return await asyncio.wait_for(fn(store), timeout)
        except asyncio.TimeoutError:
            raise TransactionTimeoutError(timeout) from None


@asynccontextmanager
async def standalone(database: Database) -> AsyncIterator[StoreHandle]:
    """A handle outside any caller transaction; writes commit on exit."""
    async with database.engine.begin() as conn:
        yield StoreHandle(conn)
