"""
Short link redirect.

Mounted at the application root, after every other root route, so it only
catches paths nothing else claims.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from packages.links.routes.links import get_link_service
from packages.links.services.link_service import LinkService

router = APIRouter(tags=["redirect"])


@router.get("/{code}", include_in_schema=False)
async def redirect(
    code: str,
    password: Optional[str] = Query(None),
    link_service: LinkService = Depends(get_link_service),
):
    target = await link_service.resolve(code, password)
    return RedirectResponse(target, status_code=302)
