from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator
from pydantic.alias_generators import to_camel

from packages.billing.models.schemas.billing import RegistrationFee, SubscriptionResponse
from packages.users.models.domain.enums import AccountClass, AccountStatus

ORGANIZATION_NAME_PATTERN = r"^[A-Za-z0-9\s\-_]+$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnterpriseRegisterRequest(BaseModel):
    organization_name: str = Field(
        ..., min_length=1, max_length=255, pattern=ORGANIZATION_NAME_PATTERN
    )
    password: str = Field(..., min_length=8)
    website: HttpUrl
    logo_url: Optional[HttpUrl] = None
    primary_color: str = Field("#007bff", pattern=COLOR_PATTERN)
    secondary_color: str = Field("#6c757d", pattern=COLOR_PATTERN)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("organization_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Organization name must not be blank")
        return value


class EnterpriseLoginRequest(BaseModel):
    organization_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnterpriseActivateRequest(BaseModel):
    user_id: int
    payment_reference: str = Field(..., min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(BaseModel):
    id: int
    email: Optional[str] = None
    organization_name: Optional[str] = None
    account_class: AccountClass
    account_status: AccountStatus
    website: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    token_type: str = "bearer"

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnterpriseRegisterResponse(AuthResponse):
    message: str
    registration_fee: RegistrationFee


class EnterpriseActivateResponse(BaseModel):
    message: str
    user: UserResponse
    subscription: SubscriptionResponse

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileResponse(BaseModel):
    user: UserResponse
    subscription: Optional[SubscriptionResponse] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
