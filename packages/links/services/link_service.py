"""
Link creation, resolution and listing.

Creation always runs quota reserve, code allocation and metering in one
transaction, so the quota lock covers the insert it approved.
"""

from datetime import datetime
from typing import Optional

from common.core.clock import Clock, utc_now, as_utc
from common.core.config import settings
from common.core.exceptions import (
    GoneError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.core.security import (
    generate_secure_filename,
    hash_password,
    validate_file_type,
    verify_password,
)
from common.db.context import transactional
from common.providers.storage.factory import get_storage
from common.providers.storage.interface import StorageInterface
from common.providers.storage.paths import get_anonymous_file_path, get_user_file_path
from packages.auth.models.domain.identity import AccountIdentity, Identity
from packages.billing.models.domain.enums import UsageCategory
from packages.billing.models.domain.quota import QuotaDecision
from packages.billing.services.plans_service import PlansService
from packages.billing.services.quota_service import QuotaService
from packages.billing.services.usage_service import UsageService
from packages.links.models.domain.enums import (
    FileKind,
    FileSortField,
    LinkType,
    SortOrder,
)
from packages.links.models.domain.link import (
    CreatedLink,
    FilePage,
    Link,
    LinkCreateModel,
    LinkFeatures,
)
from packages.links.models.schemas.link import ShortenRequest, UploadOptions
from packages.links.repositories.link_repository import LinkRepository
from packages.links.services.code_allocator import CodeAllocator

logger = get_logger(__name__)

MIN_LINK_PASSWORD_LENGTH = 4
MAX_FILES_PAGE_SIZE = 50


def short_url_for(code: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/{code}"


def parse_sort_field(value: Optional[str]) -> FileSortField:
    try:
        return FileSortField(value)
    except ValueError:
        return FileSortField.CREATED_AT


class LinkService:
    def __init__(
        self,
        clock: Clock = utc_now,
        storage: Optional[StorageInterface] = None,
        allocator: Optional[CodeAllocator] = None,
    ):
        self.clock = clock
        self.link_repo = LinkRepository()
        self.quota_service = QuotaService()
        self.plans_service = PlansService()
        self.usage_service = UsageService(clock=clock)
        self.allocator = allocator or CodeAllocator(link_repo=self.link_repo)
        self.storage = storage or get_storage()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_expiry(
        self, expiry_time: Optional[datetime], features: Optional[LinkFeatures]
    ) -> Optional[datetime]:
        """Earliest of the explicit expiry and the metadata expiry. Both must be in the future."""
        now = self.clock()
        candidates = []
        for value in (expiry_time, features.expire_time if features else None):
            if value is None:
                continue
            value = as_utc(value)
            if value <= now:
                raise ValidationError("Expiry time must be in the future.")
            candidates.append(value)
        return min(candidates) if candidates else None

    def _owner_fields(self, identity: Identity) -> dict:
        if isinstance(identity, AccountIdentity):
            return {"user_id": identity.user_id}
        return {"ip_address": identity.ip}

    async def _meter(
        self,
        identity: Identity,
        category: str,
        amount: int,
        features: Optional[LinkFeatures],
    ) -> None:
        """Enterprise accounts only; everyone else is rationed by quota instead."""
        if not isinstance(identity, AccountIdentity) or not identity.is_enterprise:
            return
        await self.usage_service.increment(identity.user_id, category, amount)
        if features:
            for feature in features.enabled_features():
                await self.usage_service.increment(
                    identity.user_id, feature.meter_category
                )

    async def _insert(
        self,
        identity: Identity,
        decision: QuotaDecision,
        custom_alias: Optional[str],
        **fields,
    ) -> Link:
        async def insert(code: str) -> Link:
            return await self.link_repo.create(
                LinkCreateModel(
                    code=code,
                    custom_alias=custom_alias,
                    plan_id=decision.plan_id,
                    **self._owner_fields(identity),
                    **fields,
                )
            )

        return await self.allocator.allocate(custom_alias, insert)

    # =========================================================================
    # Creation
    # =========================================================================

    @trace_span
    @transactional
    async def create_link(self, identity: Identity, request: ShortenRequest) -> CreatedLink:
        """
        Shorten a URL for ``identity``.

        Raises:
            QuotaExceededError: quota_exceeded or no_active_plan
            ValidationError: expiry in the past
            InvalidAliasError / ConflictError: bad or taken alias
        """
        decision = await self.quota_service.reserve(identity)

        features = request.metadata.to_features() if request.metadata else None
        expires_at = self._resolve_expiry(request.expiry_time, features)

        link = await self._insert(
            identity,
            decision,
            request.alias,
            original_url=request.url,
            link_type=request.url_type,
            expires_at=expires_at,
            link_metadata=features.model_dump(mode="json") if features else None,
        )
        await self._meter(identity, UsageCategory.RESOURCE_CREATED.value, 1, features)

        logger.info(
            f"Created link {link.code} for {identity.owner_key}",
            extra={
                "code": link.code,
                "owner": identity.owner_key,
                "custom_alias": bool(request.alias),
            },
        )
        return CreatedLink(link=link, quota=decision.usage.after_creation())

    async def _file_size_limit(self, decision: QuotaDecision) -> int:
        limit = settings.max_upload_bytes
        if decision.plan_id is not None:
            plan = await self.plans_service.get_plan(decision.plan_id)
            if plan is not None:
                limit = min(plan.file_size_limit_bytes, limit)
        return limit

    @trace_span
    @transactional
    async def _record_upload(
        self,
        identity: Identity,
        features: Optional[LinkFeatures],
        size: int,
        **fields,
    ) -> CreatedLink:
        decision = await self.quota_service.reserve(identity)
        link = await self._insert(identity, decision, None, link_type=LinkType.FILE, **fields)
        await self._meter(identity, UsageCategory.FILE_UPLOADED.value, size, features)
        return CreatedLink(link=link, quota=decision.usage.after_creation())

    @trace_span
    async def upload_file(
        self,
        identity: Identity,
        filename: str,
        content_type: Optional[str],
        data: bytes,
        options: UploadOptions,
    ) -> CreatedLink:
        """
        Store a file and create a link to it.

        The object is uploaded before the link transaction starts. If the
        transaction fails the object is deleted again.
        """
        if not validate_file_type(content_type):
            raise ValidationError(
                "Invalid file type. Only PDF and image files are allowed.",
                content_type=content_type,
            )

        decision = await self.quota_service.check(identity)

        size = len(data)
        if size == 0:
            raise ValidationError("Uploaded file is empty")
        size_limit = await self._file_size_limit(decision)
        if size > size_limit:
            raise ValidationError(
                "File size exceeds the limit for your plan",
                size_bytes=size,
                limit_bytes=size_limit,
            )

        password_hash = None
        if options.is_password_protected:
            if not options.password or len(options.password) < MIN_LINK_PASSWORD_LENGTH:
                raise ValidationError(
                    f"Password must be at least {MIN_LINK_PASSWORD_LENGTH} characters long"
                )
            password_hash = hash_password(options.password)

        if options.is_expire and options.expiry_time is None:
            raise ValidationError("Expiry time is required when expiration is enabled")
        features = options.metadata.to_features() if options.metadata else None
        expires_at = self._resolve_expiry(
            options.expiry_time if options.is_expire else None, features
        )

        secure_name = generate_secure_filename(filename)
        if isinstance(identity, AccountIdentity):
            key = get_user_file_path(identity.user_id, secure_name)
        else:
            key = get_anonymous_file_path(identity.ip, secure_name)
        bucket = settings.s3_bucket_name

        if not await self.storage.upload(bucket, key, data, content_type):
            raise StorageError("Failed to upload file to storage", key=key)

        try:
            created = await self._record_upload(
                identity,
                features,
                size,
                original_filename=filename,
                file_type=content_type,
                file_size_bytes=size,
                storage_bucket=bucket,
                storage_key=key,
                expires_at=expires_at,
                is_password_protected=password_hash is not None,
                password_hash=password_hash,
                link_metadata=features.model_dump(mode="json") if features else None,
            )
        except Exception:
            logger.warning(
                f"Link creation failed after upload, removing {key}",
                extra={"bucket": bucket, "key": key, "owner": identity.owner_key},
            )
            await self.storage.delete(bucket, key)
            raise

        logger.info(
            f"Uploaded file link {created.link.code} for {identity.owner_key}",
            extra={"code": created.link.code, "size_bytes": size, "key": key},
        )
        return created

    # =========================================================================
    # Resolution & reads
    # =========================================================================

    @trace_span
    async def resolve(self, code: str, password: Optional[str] = None) -> str:
        """
        Redirect target for ``code``, counting the click.

        Expiry is checked before the password so an expired link answers
        410 whatever the caller supplied.

        Raises:
            NotFoundError: unknown code
            GoneError: link expired
            UnauthorizedError: password missing or wrong
            StorageError: signed URL could not be issued
        """
        link = await self.link_repo.get_by_code(code)
        if link is None:
            raise NotFoundError("Short URL not found", code=code)

        if link.is_expired(self.clock()):
            raise GoneError(
                "This short URL has expired", expiredAt=link.expires_at.isoformat()
            )

        if link.is_password_protected:
            if not password:
                raise UnauthorizedError(
                    "Password required. Provide it in the password query parameter."
                )
            if not verify_password(password, link.password_hash):
                raise UnauthorizedError("Invalid password")

        await self.link_repo.increment_clicks(link.id)

        if link.link_type == LinkType.FILE and link.storage_bucket and link.storage_key:
            signed_url = await self.storage.issue_signed_url(
                link.storage_bucket, link.storage_key, settings.signed_url_ttl_seconds
            )
            if not signed_url:
                raise StorageError("Failed to generate file access URL", code=code)
            return signed_url

        return link.original_url

    @trace_span
    async def get_stats(self, code: str) -> Link:
        link = await self.link_repo.get_by_code(code)
        if link is None:
            raise NotFoundError("Short URL not found", code=code)
        return link

    @trace_span
    async def list_user_files(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        sort: Optional[str] = None,
        order: SortOrder = SortOrder.DESC,
        kind: FileKind = FileKind.ALL,
    ) -> FilePage:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_FILES_PAGE_SIZE)
        return await self.link_repo.list_files(
            user_id,
            offset=(page - 1) * limit,
            limit=limit,
            sort=parse_sort_field(sort),
            order=order,
            kind=kind,
        )

    def is_expired(self, link: Link) -> bool:
        return link.is_expired(self.clock())
