"""Turn a membership diff into deferred assignment calls."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial

from appsync.models.membership import AppUserCredentials, MembershipKind
from appsync.okta.client import DirectoryClient, OktaNotFoundError
from appsync.reconcile.differ import MembershipDiff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Operation:
    """A named, not yet started call against the directory.

    ``run`` takes no arguments; every value it needs is bound when the
    operation is built.
    """

    name: str
    run: Callable[[], Awaitable[None]]

    async def __call__(self) -> None:
        await self.run()


async def _create(
    client: DirectoryClient,
    app_id: str,
    member_id: str,
    kind: MembershipKind,
    credentials: AppUserCredentials | None = None,
) -> None:
    await client.create_assignment(app_id, member_id, kind, credentials)


async def _update(
    client: DirectoryClient,
    app_id: str,
    member_id: str,
    credentials: AppUserCredentials,
) -> None:
    await client.update_assignment(app_id, member_id, MembershipKind.USER, credentials)


async def _delete_ignoring_missing(
    client: DirectoryClient,
    app_id: str,
    member_id: str,
    kind: MembershipKind,
) -> None:
    """Delete an assignment; one that is already gone counts as deleted."""
    try:
        await client.delete_assignment(app_id, member_id, kind)
    except OktaNotFoundError:
        logger.debug("%s %s already unassigned from app %s", kind.value, member_id, app_id)


def build_group_operations(
    client: DirectoryClient, app_id: str, diff: MembershipDiff
) -> list[Operation]:
    operations = []

    for group_id in diff.groups_to_add:
        operations.append(Operation(
            name=f"assign group {group_id}",
            run=partial(_create, client, app_id, group_id, MembershipKind.GROUP),
        ))

    for group in diff.groups_to_remove:
        operations.append(Operation(
            name=f"unassign group {group.id}",
            run=partial(_delete_ignoring_missing, client, app_id, group.id, MembershipKind.GROUP),
        ))

    return operations


def build_user_operations(
    client: DirectoryClient, app_id: str, diff: MembershipDiff
) -> list[Operation]:
    operations = []

    for user in diff.users_to_add:
        operations.append(Operation(
            name=f"assign user {user.id}",
            run=partial(
                _create, client, app_id, user.id, MembershipKind.USER, user.credentials()
            ),
        ))

    for update in diff.users_to_update:
        operations.append(Operation(
            name=f"update user {update.user.id}",
            run=partial(_update, client, app_id, update.user.id, update.user.credentials()),
        ))

    for user in diff.users_to_remove:
        operations.append(Operation(
            name=f"unassign user {user.id}",
            run=partial(_delete_ignoring_missing, client, app_id, user.id, MembershipKind.USER),
        ))

    return operations


def build_operations(
    client: DirectoryClient, app_id: str, diff: MembershipDiff
) -> list[Operation]:
    """Build one operation per diff entry, groups first then users."""
    return build_group_operations(client, app_id, diff) + build_user_operations(
        client, app_id, diff
    )
