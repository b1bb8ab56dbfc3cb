from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class AccessTokenEntity(Base):
    """Opaque bearer token. Only the sha256 of the token is stored."""

    __tablename__ = "access_tokens"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        BigIntegerType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
