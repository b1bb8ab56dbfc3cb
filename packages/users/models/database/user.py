from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class UserEntity(Base):
    """
    Account database entity.

    Individuals sign in by ``email``; enterprises by ``organization_name``.
    Branding columns are only used by enterprise accounts.
    """

    __tablename__ = "users"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    organization_name = Column(String(255), nullable=True, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    account_class = Column(String(20), nullable=False, server_default="individual")
    account_status = Column(
        String(20), nullable=False, server_default="active", index=True
    )

    # Enterprise branding
    website = Column(String(2048), nullable=True)
    logo_url = Column(String(2048), nullable=True)
    primary_color = Column(String(7), nullable=True)
    secondary_color = Column(String(7), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)
