"""
Database entity for plans.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, BigInteger
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class PlanEntity(Base):
    """
    Plan catalogue entry.

    ``url_limit`` NULL means unlimited. Rows are seeded by migration and only
    deactivated, never deleted, because subscriptions and links reference them.
    """

    __tablename__ = "plans"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True, index=True)
    display_name = Column(String(100), nullable=False)
    url_limit = Column(Integer, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, server_default="0")
    file_size_limit_bytes = Column(BigInteger, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
