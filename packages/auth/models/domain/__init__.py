"""Domain models for auth."""

from packages.auth.models.domain.identity import (
    AnonymousIdentity,
    AccountIdentity,
    Identity,
)
from packages.auth.models.domain.access_token import AccessToken

__all__ = ["AnonymousIdentity", "AccountIdentity", "Identity", "AccessToken"]
