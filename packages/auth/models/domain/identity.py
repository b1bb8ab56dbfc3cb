"""
Caller identity.

Every request resolves to exactly one of these. Anonymous callers own links
by IP address, accounts by user id.
"""

from typing import Union
from pydantic import BaseModel

from packages.users.models.domain.enums import AccountClass, AccountStatus


class AnonymousIdentity(BaseModel):
    ip: str

    @property
    def owner_key(self) -> str:
        return f"ip:{self.ip}"

    @property
    def is_anonymous(self) -> bool:
        return True


class AccountIdentity(BaseModel):
    """Authenticated account, passed through the auth dependencies."""

    user_id: int
    account_class: AccountClass
    account_status: AccountStatus

    class Config:
        from_attributes = True

    @property
    def owner_key(self) -> str:
        return f"user:{self.user_id}"

    @property
    def is_anonymous(self) -> bool:
        return False

    @property
    def is_enterprise(self) -> bool:
        return self.account_class == AccountClass.ENTERPRISE


Identity = Union[AnonymousIdentity, AccountIdentity]
