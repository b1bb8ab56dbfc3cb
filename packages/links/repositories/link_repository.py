"""
Repository for links.
"""

import hashlib
from typing import Optional
from sqlalchemy import select, func, update, text

from common.repositories.base import BaseRepository
from packages.links.models.database.link import LinkEntity
from packages.links.models.domain.link import Link, FilePage, FileSummary
from packages.links.models.domain.enums import (
    LinkType,
    FileKind,
    FileSortField,
    SortOrder,
)
from common.core.otel_axiom_exporter import trace_span, get_logger

logger = get_logger(__name__)


def owner_lock_key(owner: str) -> int:
    """Stable signed 64-bit key for pg_advisory_xact_lock."""
    digest = hashlib.sha256(owner.encode()).digest()
    return int.from_bytes(digest[:8], "big", signed=True)


class LinkRepository(BaseRepository[LinkEntity, Link]):
    def __init__(self):
        super().__init__(LinkEntity, Link)

    @trace_span
    async def get_by_code(self, code: str) -> Optional[Link]:
        async with self._get_session() as session:
            result = await session.execute(
                select(LinkEntity).where(LinkEntity.code == code)
            )
            db_link = result.scalar_one_or_none()
            return self._entity_to_domain(db_link) if db_link else None

    @trace_span
    async def code_exists(self, code: str) -> bool:
        async with self._get_session() as session:
            result = await session.execute(
                select(LinkEntity.id).where(LinkEntity.code == code).limit(1)
            )
            return result.scalar_one_or_none() is not None

    @trace_span
    async def count_for_user(self, user_id: int) -> int:
        async with self._get_session() as session:
            result = await session.execute(
                select(func.count(LinkEntity.id)).where(LinkEntity.user_id == user_id)
            )
            return result.scalar_one() or 0

    @trace_span
    async def count_for_anonymous_ip(self, ip_address: str) -> int:
        """Links created from ``ip_address`` without an account."""
        async with self._get_session() as session:
            result = await session.execute(
                select(func.count(LinkEntity.id)).where(
                    LinkEntity.ip_address == ip_address,
                    LinkEntity.user_id.is_(None),
                )
            )
            return result.scalar_one() or 0

    @trace_span
    async def acquire_owner_lock(self, owner: str) -> None:
        """
        Serialize quota check and insert for one owner.

        Uses pg_advisory_xact_lock, released when the transaction ends. SQLite
        already serializes writers, so nothing is taken there.
        """
        async with self._get_session() as session:
            if session.get_bind().dialect.name != "postgresql":
                return
            await session.execute(
                text("SELECT pg_advisory_xact_lock(:lock_key)"),
                {"lock_key": owner_lock_key(owner)},
            )

    @trace_span
    async def increment_clicks(self, link_id: int) -> int:
        """Atomically add one click and return the new count."""
        async with self._get_session() as session:
            await session.execute(
                update(LinkEntity)
                .where(LinkEntity.id == link_id)
                .values(click_count=LinkEntity.click_count + 1)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(
                select(LinkEntity.click_count).where(LinkEntity.id == link_id)
            )
            return result.scalar_one()

    @trace_span
    async def list_files(
        self,
        user_id: int,
        offset: int,
        limit: int,
        sort: FileSortField = FileSortField.CREATED_AT,
        order: SortOrder = SortOrder.DESC,
        kind: FileKind = FileKind.ALL,
    ) -> FilePage:
        """Page of a user's file links plus totals over the whole filtered set."""
        conditions = [
            LinkEntity.user_id == user_id,
            LinkEntity.link_type == LinkType.FILE.value,
        ]
        if kind == FileKind.PDF:
            conditions.append(LinkEntity.file_type == "application/pdf")
        elif kind == FileKind.IMAGE:
            conditions.append(LinkEntity.file_type.like("image/%"))

        sort_column = {
            FileSortField.CREATED_AT: LinkEntity.created_at,
            FileSortField.CLICKS: LinkEntity.click_count,
            FileSortField.FILE_SIZE: LinkEntity.file_size_bytes,
        }[sort]
        ordering = sort_column.asc() if order == SortOrder.ASC else sort_column.desc()

        async with self._get_session() as session:
            result = await session.execute(
                select(LinkEntity)
                .where(*conditions)
                .order_by(ordering, LinkEntity.id.desc())
                .offset(offset)
                .limit(limit)
            )
            files = self._entities_to_domain(result.scalars().all())

            totals = await session.execute(
                select(
                    func.count(LinkEntity.id),
                    func.coalesce(func.sum(LinkEntity.click_count), 0),
                    func.coalesce(func.sum(LinkEntity.file_size_bytes), 0),
                ).where(*conditions)
            )
            total, clicks, size = totals.one()

        return FilePage(
            files=files,
            total=total,
            summary=FileSummary(
                total_files=total,
                total_clicks=int(clicks),
                total_size_bytes=int(size),
            ),
        )
