"""
Short code allocation.

Random codes are drawn from an alphabet without look-alike characters
(no 0/O, 1/l/I). The unique index on ``links.code`` is the source of truth:
each candidate is inserted inside a SAVEPOINT and a collision only rolls back
that savepoint before the next draw. The existence pre-check just saves a
round trip in the common case.
"""

import re
import secrets
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import IntegrityError

from common.core.config import settings
from common.core.exceptions import ConflictError, InternalError, InvalidAliasError
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.context import transactional
from common.db.scoped import get_session
from common.repositories.base import is_unique_violation
from packages.links.models.domain.link import Link
from packages.links.repositories.link_repository import LinkRepository

logger = get_logger(__name__)

CODE_ALPHABET = "23456789abcdefghijkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ"
ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")

InsertFn = Callable[[str], Awaitable[Link]]


def generate_code(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def validate_alias(alias: str) -> None:
    if not ALIAS_PATTERN.match(alias):
        raise InvalidAliasError(
            "Custom alias must be 3-20 characters: letters, digits, '-' or '_'",
            alias=alias,
        )


class CodeAllocator:
    """Mints unique link codes, or reserves a caller-supplied alias."""

    def __init__(
        self,
        link_repo: Optional[LinkRepository] = None,
        code_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
        attempts_per_length: Optional[int] = None,
        code_generator: Callable[[int], str] = generate_code,
    ):
        self.link_repo = link_repo or LinkRepository()
        self.code_length = code_length or settings.code_length
        self.max_attempts = max_attempts or settings.code_max_attempts
        self.attempts_per_length = attempts_per_length or settings.code_attempts_per_length
        self.code_generator = code_generator

    def length_for_attempt(self, attempt: int) -> int:
        """Code length for a 0-based attempt; grows by one per block of failures."""
        return self.code_length + attempt // self.attempts_per_length

    async def _try_insert(self, code: str, insert: InsertFn) -> Optional[Link]:
        """None when ``code`` is taken. Other integrity errors propagate."""
        async with get_session() as session:
            try:
                async with session.begin_nested():
                    return await insert(code)
            except IntegrityError as e:
                if not is_unique_violation(e):
                    raise
                return None

    @trace_span
    @transactional
    async def allocate(self, custom_alias: Optional[str], insert: InsertFn) -> Link:
        """
        Insert a link under a fresh code or the given alias.

        ``insert`` receives the chosen code and performs the insert. It runs in
        the caller's transaction, inside a savepoint.

        Raises:
            InvalidAliasError: alias does not match the alias pattern
            ConflictError: alias already taken
            InternalError: no free random code within the attempt budget
        """
        if custom_alias:
            validate_alias(custom_alias)
            if await self.link_repo.code_exists(custom_alias):
                raise ConflictError("Custom alias already in use", alias=custom_alias)
            link = await self._try_insert(custom_alias, insert)
            if link is None:
                raise ConflictError("Custom alias already in use", alias=custom_alias)
            return link

        for attempt in range(self.max_attempts):
            code = self.code_generator(self.length_for_attempt(attempt))
            if await self.link_repo.code_exists(code):
                logger.debug(f"Code {code} taken on attempt {attempt + 1}")
                continue
            link = await self._try_insert(code, insert)
            if link is not None:
                return link
            logger.info(
                f"Code collision on insert for {code}",
                extra={"attempt": attempt + 1, "code_length": len(code)},
            )

        logger.error(
            f"Failed to allocate a code after {self.max_attempts} attempts",
            extra={"max_attempts": self.max_attempts},
        )
        raise InternalError("Could not allocate a unique code")
