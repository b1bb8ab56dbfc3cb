"""
Database session context.

A ``transaction()`` block publishes its session through a ContextVar so that
every repository call made inside it (however deep) joins the same
session/connection. Outside a transaction each repository call gets its own
short-lived session.

    @transactional
    async def switch_plan(...):
        await subscription_repo.cancel(...)   # same session
        await subscription_repo.create(...)   # same session, one commit
"""

from contextvars import ContextVar, Token
from functools import wraps
from typing import Optional, Callable, TypeVar, ParamSpec, Awaitable

from sqlalchemy.ext.asyncio import AsyncSession

# =============================================================================
# Context Variables
# =============================================================================

_write_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_write_session", default=None
)
_read_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_read_session", default=None
)


# =============================================================================
# Context Accessors
# =============================================================================


def get_current_session(readonly: bool = False) -> Optional[AsyncSession]:
    """Session of the enclosing transaction, if any."""
    if readonly:
        return _read_session.get()
    return _write_session.get()


def set_current_session(session: AsyncSession, readonly: bool = False) -> Token:
    if readonly:
        return _read_session.set(session)
    return _write_session.set(session)


def reset_current_session(token: Token, readonly: bool = False) -> None:
    if readonly:
        _read_session.reset(token)
    else:
        _write_session.reset(token)


def in_transaction(readonly: bool = False) -> bool:
    return get_current_session(readonly=readonly) is not None


# =============================================================================
# Decorators
# =============================================================================

P = ParamSpec("P")
T = TypeVar("T")


def transactional(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """
    Run the decorated coroutine inside ``transaction()``.

    Nested use joins the outer transaction instead of opening a second one,
    so a transactional service method can call another transactional method.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        from common.db.scoped import transaction as tx  # noqa: PLC0415

        if in_transaction():
            return await func(*args, **kwargs)
        async with tx():
            return await func(*args, **kwargs)

    return wrapper
