"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from appsync.models import (
    AppStatus,
    AppUser,
    AppUserCredentials,
    GroupAssignment,
    MembershipKind,
    UserScope,
)
from appsync.okta.client import OktaNotFoundError


class FakeDirectory:
    """In-memory stand-in for the Okta Apps API.

    Records every call in ``calls`` and applies it to its own state so a
    second pass sees the result of the first. ``failures`` maps
    (method name, member or app id) to the exception that call should raise.
    """

    def __init__(
        self,
        users: list[AppUser] | None = None,
        groups: list[GroupAssignment] | None = None,
        apps: dict[str, dict[str, Any]] | None = None,
        delay: float = 0.0,
    ):
        self.users = list(users or [])
        self.groups = list(groups or [])
        self.apps = dict(apps or {})
        self.delay = delay
        self.calls: list[tuple] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    def _check(self, method: str, key: str) -> None:
        exc = self.failures.get((method, key))
        if exc is not None:
            raise exc

    async def _pause(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

    def calls_to(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]

    async def list_memberships(self, app_id, kind):
        self.calls.append(("list_memberships", app_id, kind))
        self._check("list_memberships", kind.value)
        if kind == MembershipKind.USER:
            return list(self.users)
        return list(self.groups)

    async def create_assignment(self, app_id, member_id, kind, credentials=None):
        self.calls.append(("create_assignment", app_id, member_id, kind, credentials))
        await self._pause()
        self._check("create_assignment", member_id)
        if kind == MembershipKind.USER:
            self.users.append(AppUser(id=member_id, scope=UserScope.USER, credentials=credentials))
        else:
            self.groups.append(GroupAssignment(id=member_id))

    async def update_assignment(self, app_id, member_id, kind, credentials):
        self.calls.append(("update_assignment", app_id, member_id, kind, credentials))
        await self._pause()
        self._check("update_assignment", member_id)
        for user in self.users:
            if user.id == member_id and user.is_direct:
                user.credentials = credentials

    async def delete_assignment(self, app_id, member_id, kind):
        self.calls.append(("delete_assignment", app_id, member_id, kind))
        await self._pause()
        self._check("delete_assignment", member_id)
        if kind == MembershipKind.USER:
            before = len(self.users)
            self.users = [u for u in self.users if not (u.id == member_id and u.is_direct)]
            found = len(self.users) != before
        else:
            before = len(self.groups)
            self.groups = [g for g in self.groups if g.id != member_id]
            found = len(self.groups) != before
        if not found:
            raise OktaNotFoundError(f"Resource not found: {member_id}", status_code=404)

    async def set_status(self, app_id, status):
        self.calls.append(("set_status", app_id, status))
        self._check("set_status", app_id)
        if app_id in self.apps:
            self.apps[app_id]["status"] = status.value

    async def get_app(self, app_id):
        self.calls.append(("get_app", app_id))
        if app_id not in self.apps:
            raise OktaNotFoundError(f"Resource not found: {app_id}", status_code=404)
        return dict(self.apps[app_id])

    async def find_app_by_label(self, label):
        self.calls.append(("find_app_by_label", label))
        for app in self.apps.values():
            if app.get("label") == label:
                return dict(app)
        return None

    async def create_app(self, payload, activate=True):
        self.calls.append(("create_app", payload, activate))
        app_id = f"0oa{len(self.apps) + 1}"
        status = AppStatus.ACTIVE if activate else AppStatus.INACTIVE
        self.apps[app_id] = {**payload, "id": app_id, "status": status.value}
        return dict(self.apps[app_id])

    async def update_app(self, app_id, payload):
        self.calls.append(("update_app", app_id, payload))
        self.apps[app_id] = {**self.apps[app_id], **payload}
        return dict(self.apps[app_id])

    async def delete_app(self, app_id):
        self.calls.append(("delete_app", app_id))
        self._check("delete_app", app_id)
        self.apps.pop(app_id, None)


def app_user(user_id: str, username: str = "", scope: UserScope = UserScope.USER) -> AppUser:
    return AppUser(
        id=user_id,
        scope=scope,
        credentials=AppUserCredentials(user_name=username) if username else None,
    )


@pytest.fixture
def directory() -> FakeDirectory:
    """Directory with two direct users, one inherited user and one group."""
    return FakeDirectory(
        users=[
            app_user("u1", "alice"),
            app_user("u2", "bob"),
            app_user("u3", "carol", scope=UserScope.GROUP),
        ],
        groups=[GroupAssignment(id="g1")],
    )
