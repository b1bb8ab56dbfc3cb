"""Root-level routes that sit outside the versioned API.

Liveness and readiness probes for the orchestrator. Not part of the public
OpenAPI document.
"""

from fastapi import APIRouter

from internal.routes import probes

internal_router = APIRouter(include_in_schema=False)

internal_router.include_router(probes.router)
