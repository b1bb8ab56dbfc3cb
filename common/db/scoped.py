"""
Operation-scoped database sessions.

Repositories never hold a session of their own. Each call acquires one through
``get_session()`` and releases it right after, unless a ``transaction()`` is
open, in which case the transaction's session is reused and committed once at
the end of the block.

    async with transaction():
        await quota_service.reserve(identity)   # advisory lock taken here
        await link_repo.create(...)             # same connection, lock held
    # commit releases the lock

Storage uploads and other slow I/O must stay outside ``transaction()`` so a
connection is never pinned while waiting on the network.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import get_logger
from common.db import session as db_session
from common.db.context import (
    get_current_session,
    set_current_session,
    reset_current_session,
)

logger = get_logger(__name__)


def _session_factory(readonly: bool):
    # Looked up at call time so tests can swap the factories
    if readonly:
        return AsyncSessionLocalReadonly
    return AsyncSessionLocal


AsyncSessionLocal = db_session.AsyncSessionLocal
AsyncSessionLocalReadonly = db_session.AsyncSessionLocalReadonly


async def _finish(session: AsyncSession, readonly: bool, label: str) -> None:
    if readonly:
        return
    commit_start = time.perf_counter()
    await session.commit()
    logger.debug(f"{label} commit: {(time.perf_counter() - commit_start) * 1000:.2f}ms")


@asynccontextmanager
async def transaction(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Explicit transaction boundary.

    Every repository call inside the block shares the yielded session. The
    block commits on success (skipped when readonly) and rolls back and
    re-raises on any exception.
    """

    start = time.perf_counter()
    async with _session_factory(readonly)() as session:
        logger.debug(
            f"Transaction session acquire: {(time.perf_counter() - start) * 1000:.2f}ms, "
            f"readonly={readonly}"
        )

        token = set_current_session(session, readonly=readonly)
        try:
            yield session
            await _finish(session, readonly, "Transaction")
        except Exception as e:
            logger.warning(
                f"Transaction rollback due to: {type(e).__name__}: {e}",
                extra={"error_type": type(e).__name__},
            )
            await session.rollback()
            raise
        finally:
            reset_current_session(token, readonly=readonly)


@asynccontextmanager
async def get_session(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Session for a single DB operation.

    Reuses the enclosing ``transaction()`` session when there is one and
    leaves committing to it. Otherwise opens a session, commits and releases.
    """
    existing = get_current_session(readonly=readonly)

    if existing is not None:
        yield existing
        return

    start = time.perf_counter()
    async with _session_factory(readonly)() as session:
        logger.debug(
            f"Operation session acquire: {(time.perf_counter() - start) * 1000:.2f}ms, "
            f"readonly={readonly}"
        )
        try:
            yield session
            await _finish(session, readonly, "Operation")
        except Exception as e:
            logger.warning(f"Operation rollback due to: {type(e).__name__}: {e}")
            await session.rollback()
            raise
