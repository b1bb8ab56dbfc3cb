"""
Database entity for links.
"""

from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    BigInteger,
    Index,
    JSON,
    CheckConstraint,
    Text,
)
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class LinkEntity(Base):
    """
    Shortened link, optionally backed by an uploaded file.

    Owned either by an account (``user_id``) or by an anonymous caller
    (``ip_address``), never both.
    """

    __tablename__ = "links"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True, index=True)
    original_url = Column(Text, nullable=True)
    custom_alias = Column(String(20), nullable=True)
    link_type = Column(String(20), nullable=False, server_default="standard")

    # Owner
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    ip_address = Column(String(64), nullable=True, index=True)
    plan_id = Column(BigIntegerType, ForeignKey("plans.id"), nullable=True)

    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_password_protected = Column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    password_hash = Column(String(255), nullable=True)
    click_count = Column(Integer, nullable=False, default=0, server_default="0")

    # File links only
    original_filename = Column(String(255), nullable=True)
    file_type = Column(String(100), nullable=True)
    file_size_bytes = Column(BigInteger, nullable=True)
    storage_bucket = Column(String(255), nullable=True)
    storage_key = Column(String(1024), nullable=True)

    # Feature flags, stored snake_case
    link_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (ip_address IS NULL)", name="single_owner"
        ),
        Index("idx_link_user_type", "user_id", "link_type"),
        Index("idx_link_ip_user", "ip_address", "user_id"),
    )
