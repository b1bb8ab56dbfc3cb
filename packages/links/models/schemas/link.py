from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_validator,
)
from pydantic.alias_generators import to_camel

from packages.billing.models.domain.quota import QuotaUsage
from packages.links.models.domain.enums import LinkType, CreatedBy
from packages.links.models.domain.link import Link, LinkFeatures


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class LinkMetadata(BaseModel):
    """Feature flags as exchanged with clients."""

    is_download_enable: StrictBool = False
    is_screenshot_enable: StrictBool = Field(False, alias="isScreenShotEnable")
    is_chatbot_enable: StrictBool = False
    is_interest_form: StrictBool = False
    is_follow_up: StrictBool = False
    expire_time: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("isExpireTime", "expireTime", "expire_time"),
        serialization_alias="expireTime",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_features(self) -> LinkFeatures:
        return LinkFeatures(**self.model_dump())

    @classmethod
    def from_features(cls, features: Optional[LinkFeatures]) -> Optional["LinkMetadata"]:
        if features is None:
            return None
        return cls(**features.model_dump())


class ShortenRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)
    alias: Optional[str] = None
    url_type: LinkType = LinkType.STANDARD
    expiry_time: Optional[datetime] = None
    metadata: Optional[LinkMetadata] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        if not _is_http_url(value):
            raise ValueError("Invalid URL format. Must include http:// or https://")
        return value

    @field_validator("alias", mode="before")
    @classmethod
    def blank_alias_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UploadOptions(BaseModel):
    """Form fields sent alongside an uploaded file."""

    is_expire: bool = False
    expiry_time: Optional[datetime] = None
    is_password_protected: bool = False
    password: Optional[str] = None
    metadata: Optional[LinkMetadata] = None


# ============================================================================
# Responses
# ============================================================================


class LinkResponse(BaseModel):
    short_code: str
    short_url: str
    original_url: Optional[str] = None
    url_type: LinkType
    expiry_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    metadata: Optional[LinkMetadata] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FileLinkResponse(BaseModel):
    short_code: str
    short_url: str
    file_type: str
    file_name: str
    file_size_bytes: int
    is_password_protected: bool
    expiry_time: Optional[datetime] = None
    uploaded_at: Optional[datetime] = None
    metadata: Optional[LinkMetadata] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ShortenResponse(BaseModel):
    data: LinkResponse
    quota: QuotaUsage

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(BaseModel):
    data: FileLinkResponse
    quota: QuotaUsage

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkStatsResponse(BaseModel):
    short_code: str
    original_url: Optional[str] = None
    clicks: int
    custom_alias: Optional[str] = None
    url_type: LinkType
    expiry_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    created_by: CreatedBy
    metadata: Optional[LinkMetadata] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def from_link(cls, link: Link) -> "LinkStatsResponse":
        return cls(
            short_code=link.code,
            original_url=link.original_url,
            clicks=link.click_count,
            custom_alias=link.custom_alias,
            url_type=link.link_type,
            expiry_time=link.expires_at,
            created_at=link.created_at,
            created_by=link.created_by,
            metadata=LinkMetadata.from_features(link.features),
        )


class UserFileResponse(BaseModel):
    id: int
    short_code: str
    short_url: str
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size_bytes: int = 0
    clicks: int = 0
    is_password_protected: bool = False
    expiry_time: Optional[datetime] = None
    is_expired: bool = False
    created_at: Optional[datetime] = None
    metadata: Optional[LinkMetadata] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Pagination(BaseModel):
    page: int
    limit: int
    total_files: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilesSummary(BaseModel):
    total_files: int
    total_clicks: int
    total_size_bytes: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserFilesResponse(BaseModel):
    files: List[UserFileResponse]
    pagination: Pagination
    summary: FilesSummary

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
