from contextlib import asynccontextmanager, contextmanager
from enum import Enum
from typing import (
    Any,
    Generic,
    TypeVar,
    Optional,
    List,
    Type,
    AsyncGenerator,
    Iterator,
    Sequence,
)

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update, delete
from pydantic import BaseModel

from common.core.exceptions import ConflictError
from common.core.otel_axiom_exporter import trace_span
from common.db.scoped import get_session

EntityType = TypeVar("EntityType")
DomainModelType = TypeVar("DomainModelType")
CreateModelType = TypeVar("CreateModelType", bound=BaseModel)
UpdateModelType = TypeVar("UpdateModelType", bound=BaseModel)

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for unique index violations, False for check and foreign key failures."""
    orig = exc.orig
    # asyncpg errors carry the SQLSTATE, sqlite3 only a message
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)


@contextmanager
def unique_conflict(message: str, **context: Any) -> Iterator[None]:
    """
    Re-raise a unique index violation inside the block as ConflictError.

    For writes whose pre-check can lose a race: the index decides and the
    caller still gets a 409. Other integrity errors propagate unchanged.
    """
    try:
        yield
    except IntegrityError as e:
        if not is_unique_violation(e):
            raise
        raise ConflictError(message, **context) from e


class BaseRepository(Generic[EntityType, DomainModelType]):
    """
    CRUD over one entity class, returning pydantic domain models.

    Sessions are acquired per operation through ``get_session()``, so a
    repository call made inside ``transaction()`` joins that transaction and
    a call made outside it commits on its own.
    """

    def __init__(
        self,
        entity_class: Type[EntityType],
        domain_class: Type[DomainModelType],
    ):
        self.entity_class = entity_class
        self.domain_class = domain_class

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with get_session() as session:
            yield session

    @staticmethod
    def _to_row(data: dict) -> dict:
        # String columns store enum values
        return {k: v.value if isinstance(v, Enum) else v for k, v in data.items()}

    def _entity_to_domain(self, entity: EntityType) -> DomainModelType:
        return self.domain_class.model_validate(entity)

    def _entities_to_domain(
        self, entities: Sequence[EntityType]
    ) -> List[DomainModelType]:
        return [self._entity_to_domain(entity) for entity in entities]

    @trace_span
    async def get(self, id: int) -> Optional[DomainModelType]:
        async with self._get_session() as session:
            entity = await session.get(self.entity_class, id)
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def create(self, create_model: CreateModelType) -> DomainModelType:
        """Insert a row from a typed create model and flush to get its id."""
        data = self._to_row(create_model.model_dump(exclude_none=True))
        db_obj = self.entity_class(**data)
        async with self._get_session() as session:
            session.add(db_obj)
            await session.flush()
            await session.refresh(db_obj)
            return self._entity_to_domain(db_obj)

    @trace_span
    async def update(
        self, id: int, update_model: UpdateModelType
    ) -> Optional[DomainModelType]:
        """Apply the fields that were explicitly set on ``update_model``."""
        data = self._to_row(update_model.model_dump(exclude_unset=True))
        async with self._get_session() as session:
            if data:
                await session.execute(
                    update(self.entity_class)
                    .where(self.entity_class.id == id)
                    .values(**data)
                    .execution_options(synchronize_session=False)
                )
                await session.flush()
            entity = await session.get(self.entity_class, id, populate_existing=True)
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def delete(self, id: int) -> bool:
        async with self._get_session() as session:
            result = await session.execute(
                delete(self.entity_class).where(self.entity_class.id == id)
            )
            await session.flush()
            return result.rowcount > 0
