import math
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import ValidationError as PydanticValidationError

from common.core.config import settings
from common.core.exceptions import ValidationError
from common.providers.rate_limiter.limiter import limiter
from common.providers.storage.factory import get_storage
from common.providers.storage.interface import StorageInterface
from packages.auth.dependencies import get_current_account, get_identity
from packages.auth.models.domain.identity import AccountIdentity, Identity
from packages.links.models.domain.enums import FileKind, SortOrder
from packages.links.models.domain.link import Link
from packages.links.models.schemas.link import (
    FileLinkResponse,
    FilesSummary,
    LinkMetadata,
    LinkResponse,
    LinkStatsResponse,
    Pagination,
    ShortenRequest,
    ShortenResponse,
    UploadOptions,
    UploadResponse,
    UserFileResponse,
    UserFilesResponse,
)
from packages.links.services.link_service import LinkService, short_url_for

router = APIRouter()


def get_link_service(
    storage: StorageInterface = Depends(get_storage),
) -> LinkService:
    return LinkService(storage=storage)


def _user_file(service: LinkService, link: Link) -> UserFileResponse:
    return UserFileResponse(
        id=link.id,
        short_code=link.code,
        short_url=short_url_for(link.code),
        file_name=link.original_filename or link.storage_key,
        file_type=link.file_type,
        file_size_bytes=link.file_size_bytes or 0,
        clicks=link.click_count,
        is_password_protected=link.is_password_protected,
        expiry_time=link.expires_at,
        is_expired=service.is_expired(link),
        created_at=link.created_at,
        metadata=LinkMetadata.from_features(link.features),
    )


@router.post("/shorten", response_model=ShortenResponse, status_code=201)
@limiter.limit(settings.rate_limit_create)
async def shorten_url(
    request: Request,
    body: ShortenRequest,
    identity: Identity = Depends(get_identity),
    link_service: LinkService = Depends(get_link_service),
):
    """Create a short link. Anonymous callers are rationed by IP."""
    created = await link_service.create_link(identity, body)
    link = created.link

    return ShortenResponse(
        data=LinkResponse(
            short_code=link.code,
            short_url=short_url_for(link.code),
            original_url=link.original_url,
            url_type=link.link_type,
            expiry_time=link.expires_at,
            created_at=link.created_at,
            metadata=LinkMetadata.from_features(link.features),
        ),
        quota=created.quota,
    )


@router.post("/upload", response_model=UploadResponse, status_code=201)
@limiter.limit(settings.rate_limit_create)
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    is_expire: Annotated[bool, Form(alias="isExpire")] = False,
    expiry_time: Annotated[Optional[str], Form(alias="expiryTime")] = None,
    is_password_protected: Annotated[bool, Form(alias="isPasswordProtected")] = False,
    password: Annotated[Optional[str], Form()] = None,
    metadata: Annotated[Optional[str], Form()] = None,
    identity: Identity = Depends(get_identity),
    link_service: LinkService = Depends(get_link_service),
):
    """Upload a PDF or image and create a short link to it."""
    try:
        options = UploadOptions(
            is_expire=is_expire,
            expiry_time=expiry_time or None,
            is_password_protected=is_password_protected,
            password=password,
            metadata=LinkMetadata.model_validate_json(metadata) if metadata else None,
        )
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid upload options",
            errors=[f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()],
        )

    if file.size is not None and file.size > settings.max_upload_bytes:
        raise ValidationError(
            "File size exceeds the maximum upload size",
            limit_bytes=settings.max_upload_bytes,
        )

    data = await file.read()
    created = await link_service.upload_file(
        identity,
        filename=file.filename or "upload",
        content_type=file.content_type,
        data=data,
        options=options,
    )
    link = created.link

    return UploadResponse(
        data=FileLinkResponse(
            short_code=link.code,
            short_url=short_url_for(link.code),
            file_type=link.file_type,
            file_name=link.original_filename,
            file_size_bytes=link.file_size_bytes,
            is_password_protected=link.is_password_protected,
            expiry_time=link.expires_at,
            uploaded_at=link.created_at,
            metadata=LinkMetadata.from_features(link.features),
        ),
        quota=created.quota,
    )


@router.get("/stats/{code}", response_model=LinkStatsResponse)
async def get_stats(
    code: str,
    link_service: LinkService = Depends(get_link_service),
):
    """Click count and details for a short link."""
    link = await link_service.get_stats(code)
    return LinkStatsResponse.from_link(link)


@router.get("/user/files", response_model=UserFilesResponse)
async def list_user_files(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    sort: Optional[str] = Query(
        "created_at", description="created_at, clicks or file_size"
    ),
    order: SortOrder = Query(SortOrder.DESC),
    kind: FileKind = Query(FileKind.ALL, alias="type"),
    account: AccountIdentity = Depends(get_current_account),
    link_service: LinkService = Depends(get_link_service),
):
    """The caller's uploaded files with pagination and totals."""
    result = await link_service.list_user_files(
        account.user_id, page=page, limit=limit, sort=sort, order=order, kind=kind
    )

    total_pages = math.ceil(result.total / limit) if result.total else 0
    return UserFilesResponse(
        files=[_user_file(link_service, link) for link in result.files],
        pagination=Pagination(
            page=page,
            limit=limit,
            total_files=result.total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
        summary=FilesSummary(
            total_files=result.summary.total_files,
            total_clicks=result.summary.total_clicks,
            total_size_bytes=result.summary.total_size_bytes,
        ),
    )
