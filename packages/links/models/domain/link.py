"""
Domain models for links.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from common.core.clock import as_utc
from packages.billing.models.domain.enums import Feature
from packages.billing.models.domain.quota import QuotaUsage
from packages.links.models.domain.enums import LinkType, CreatedBy

# Stored flag -> billable feature
FEATURE_FLAGS: Dict[str, Feature] = {
    "is_download_enable": Feature.DOWNLOAD_ENABLE,
    "is_screenshot_enable": Feature.SCREENSHOT,
    "is_chatbot_enable": Feature.CHATBOT,
    "is_interest_form": Feature.INTEREST_FORM,
    "is_follow_up": Feature.FOLLOW_UP,
}


class LinkFeatures(BaseModel):
    """Feature flags attached to a link, as stored in ``links.metadata``."""

    is_download_enable: bool = False
    is_screenshot_enable: bool = False
    is_chatbot_enable: bool = False
    is_interest_form: bool = False
    is_follow_up: bool = False
    expire_time: Optional[datetime] = None

    def enabled_features(self) -> List[Feature]:
        return [
            feature for flag, feature in FEATURE_FLAGS.items() if getattr(self, flag)
        ]


class Link(BaseModel):
    id: int
    code: str
    original_url: Optional[str] = None
    custom_alias: Optional[str] = None
    link_type: LinkType = LinkType.STANDARD

    user_id: Optional[int] = None
    ip_address: Optional[str] = None
    plan_id: Optional[int] = None

    expires_at: Optional[datetime] = None
    is_password_protected: bool = False
    password_hash: Optional[str] = Field(default=None, exclude=True)
    click_count: int = 0

    original_filename: Optional[str] = None
    file_type: Optional[str] = None
    file_size_bytes: Optional[int] = None
    storage_bucket: Optional[str] = None
    storage_key: Optional[str] = None

    link_metadata: Optional[Dict[str, Any]] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("expires_at", "created_at", "updated_at", mode="after")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def created_by(self) -> CreatedBy:
        return CreatedBy.REGISTERED_USER if self.user_id else CreatedBy.ANONYMOUS

    @property
    def features(self) -> Optional[LinkFeatures]:
        if self.link_metadata is None:
            return None
        return LinkFeatures.model_validate(self.link_metadata)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class LinkCreateModel(BaseModel):
    """Model for inserting a link. Exactly one of user_id and ip_address is set."""

    code: str
    original_url: Optional[str] = None
    custom_alias: Optional[str] = None
    link_type: LinkType = LinkType.STANDARD
    user_id: Optional[int] = None
    ip_address: Optional[str] = None
    plan_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    is_password_protected: bool = False
    password_hash: Optional[str] = None
    original_filename: Optional[str] = None
    file_type: Optional[str] = None
    file_size_bytes: Optional[int] = None
    storage_bucket: Optional[str] = None
    storage_key: Optional[str] = None
    link_metadata: Optional[Dict[str, Any]] = None


class FileSummary(BaseModel):
    total_files: int = 0
    total_clicks: int = 0
    total_size_bytes: int = 0


class FilePage(BaseModel):
    files: List[Link]
    total: int
    summary: FileSummary


class CreatedLink(BaseModel):
    """A newly inserted link plus the owner's quota after the insert."""

    link: Link
    quota: QuotaUsage
