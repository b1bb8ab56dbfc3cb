from fastapi import APIRouter

from api.v1.routes import (
    health,
)
from packages.links.routes import links
from packages.users.routes import auth
from packages.billing.routes import billing, plans, quota, subscriptions

api_router = APIRouter()

# Health check (no auth required)
api_router.include_router(health.router, prefix="/health", tags=["health"])

# Accounts (public except /auth/me)
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Links (anonymous callers allowed, identity resolved per request)
api_router.include_router(links.router, tags=["links"])

# Plans (no auth - public pricing info)
api_router.include_router(plans.router, prefix="/plans", tags=["billing"])

# Subscriptions and quota (account required, enforced per endpoint)
api_router.include_router(
    subscriptions.router, prefix="/subscriptions", tags=["subscriptions"]
)
api_router.include_router(quota.router, prefix="/user", tags=["subscriptions"])

# Billing routes (enterprise accounts only, enforced per endpoint)
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
