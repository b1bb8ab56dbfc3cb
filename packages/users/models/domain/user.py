from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from packages.users.models.domain.enums import AccountClass, AccountStatus


class User(BaseModel):
    id: int
    email: Optional[str] = None
    organization_name: Optional[str] = None
    password_hash: str = Field(exclude=True)
    account_class: AccountClass
    account_status: AccountStatus
    website: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_enterprise(self) -> bool:
        return self.account_class == AccountClass.ENTERPRISE


class UserCreateModel(BaseModel):
    """Model for creating a new account."""

    email: Optional[str] = None
    organization_name: Optional[str] = None
    password_hash: str
    account_class: AccountClass = AccountClass.INDIVIDUAL
    account_status: AccountStatus = AccountStatus.ACTIVE
    website: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None


class UserUpdateModel(BaseModel):
    """Model for updating an account."""

    account_status: Optional[AccountStatus] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    last_login_at: Optional[datetime] = None


class AuthenticatedAccount(BaseModel):
    """An account together with a freshly issued bearer token."""

    user: User
    token: str
