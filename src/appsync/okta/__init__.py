"""Okta Apps API access.

Provides the HTTP client, its error taxonomy and the application kinds.
"""

from appsync.okta.client import (
    DirectoryClient,
    MembershipListError,
    OktaAppClient,
    OktaAuthError,
    OktaConflictError,
    OktaError,
    OktaNotFoundError,
)
from appsync.okta.kinds import KINDS, AppKind, get_kind

__all__ = [
    "AppKind",
    "DirectoryClient",
    "KINDS",
    "MembershipListError",
    "OktaAppClient",
    "OktaAuthError",
    "OktaConflictError",
    "OktaError",
    "OktaNotFoundError",
    "get_kind",
]
