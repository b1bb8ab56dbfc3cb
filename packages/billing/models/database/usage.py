"""
Database entities for monthly usage metering.
"""

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Date,
    ForeignKey,
    Integer,
    BigInteger,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class UsagePeriodEntity(Base):
    """
    Per-user counters for one UTC calendar month.

    Written only through atomic upserts keyed on (user_id, period_start).
    Counters never decrease.
    """

    __tablename__ = "usage_periods"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_start = Column(Date, nullable=False)

    resources_created = Column(Integer, nullable=False, server_default="0")
    files_uploaded = Column(Integer, nullable=False, server_default="0")
    storage_bytes = Column(BigInteger, nullable=False, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (UniqueConstraint("user_id", "period_start"),)


class UsageFeatureCounterEntity(Base):
    """Feature activations for one user, month and feature."""

    __tablename__ = "usage_feature_counters"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_start = Column(Date, nullable=False)
    feature_name = Column(String(50), nullable=False)
    activations = Column(Integer, nullable=False, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (UniqueConstraint("user_id", "period_start", "feature_name"),)
