"""Membership records as returned by Okta and as declared in configuration."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MembershipKind(str, Enum):
    """Kind of application assignment."""

    USER = "user"
    GROUP = "group"


class UserScope(str, Enum):
    """How a user came to be assigned to an application.

    USER is an explicit direct assignment. GROUP means the user inherits access
    through one of the application's group assignments and is read-only here.
    """

    USER = "USER"
    GROUP = "GROUP"


class AppStatus(str, Enum):
    """Application lifecycle status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AppUserCredentials(BaseModel):
    """Per-application credentials of an assigned user."""

    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(default="", alias="userName")
    password: str | None = Field(default=None, description="Write-only, never returned by Okta")

    @classmethod
    def from_api(cls, payload: dict[str, Any] | None) -> "AppUserCredentials | None":
        if not payload:
            return None
        password = payload.get("password") or {}
        return cls(
            user_name=payload.get("userName") or "",
            password=password.get("value") if isinstance(password, dict) else None,
        )

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"userName": self.user_name}
        if self.password:
            payload["password"] = {"value": self.password}
        return payload


class AppUser(BaseModel):
    """A user assigned to an application."""

    id: str
    scope: UserScope | str = UserScope.USER
    credentials: AppUserCredentials | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "AppUser":
        return cls(
            id=payload["id"],
            scope=payload.get("scope") or UserScope.USER,
            credentials=AppUserCredentials.from_api(payload.get("credentials")),
        )

    @property
    def is_direct(self) -> bool:
        """Check whether this is an explicit (USER-scoped) assignment."""
        return self.scope == UserScope.USER


class GroupAssignment(BaseModel):
    """A group assigned to an application."""

    id: str
    priority: int | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "GroupAssignment":
        return cls(id=payload["id"], priority=payload.get("priority"))


class DesiredUser(BaseModel):
    """A user assignment declared in configuration."""

    id: str = Field(..., description="Okta user ID")
    username: str = Field(default="", description="Application username")
    password: str | None = Field(default=None, description="Application password")

    def credentials(self) -> AppUserCredentials:
        return AppUserCredentials(user_name=self.username, password=self.password)


class DesiredMembership(BaseModel):
    """Target user and group assignments of one application.

    IDs are expected to be unique. Duplicates are not rejected and simply
    produce duplicate (idempotent) calls.
    """

    users: list[DesiredUser] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)

    def user_ids(self) -> set[str]:
        return {u.id for u in self.users}

    def group_ids(self) -> set[str]:
        return set(self.groups)
