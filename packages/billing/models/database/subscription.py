"""
Database entity for subscriptions.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, text
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class SubscriptionEntity(Base):
    """
    User subscription database entity.

    History is kept: switching or cancelling closes the current row and never
    deletes it. The partial unique index allows at most one active row per user.
    """

    __tablename__ = "subscriptions"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_id = Column(
        BigIntegerType, ForeignKey("plans.id"), nullable=False, index=True
    )

    status = Column(
        String(50), nullable=False, index=True
    )  # pending_payment, active, cancelled, expired

    started_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    payment_reference = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index(
            "uq_subscriptions_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("idx_subscription_user_status", "user_id", "status"),
    )
