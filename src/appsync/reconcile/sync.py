"""Reconcile application assignments and status against desired state.

Entry points used on create and update (``reconcile_memberships_and_status``),
on delete (``deactivate_then_delete``) and by the CLI (``sync_app``).

A pass lists the live user and group assignments, diffs them against the
desired ones, and runs one call per difference with bounded concurrency.
Listing failures abort the pass before anything is changed. Individual call
failures do not stop the others and are reported together at the end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from appsync.audit.logger import SyncAuditLogger
from appsync.config import DEFAULT_PARALLELISM
from appsync.models.app import AppConfig
from appsync.models.membership import (
    AppStatus,
    AppUser,
    DesiredMembership,
    DesiredUser,
    GroupAssignment,
    MembershipKind,
)
from appsync.okta.client import DirectoryClient, MembershipListError, OktaNotFoundError
from appsync.okta.kinds import get_kind
from appsync.reconcile.differ import MembershipDiff, compute_membership_diff, direct_users
from appsync.reconcile.executor import AggregatedResult, run_operations
from appsync.reconcile.operations import build_operations
from appsync.reconcile.status import deactivate_then_delete, reconcile_status

logger = logging.getLogger(__name__)

SYNC_ERROR_MESSAGE = "failed to associate user or groups with application"

__all__ = [
    "AppSyncResult",
    "deactivate_then_delete",
    "fetch_app",
    "list_existing",
    "list_member_ids",
    "plan_memberships",
    "read_memberships",
    "reconcile_memberships",
    "reconcile_memberships_and_status",
    "sync_app",
]


async def fetch_app(client: DirectoryClient, app_id: str) -> dict[str, Any] | None:
    """Fetch an app, returning None if it does not exist."""
    try:
        return await client.get_app(app_id)
    except OktaNotFoundError:
        return None


async def list_existing(
    client: DirectoryClient, app_id: str
) -> tuple[list[AppUser], list[GroupAssignment]]:
    """List every user and group assignment of an app.

    Raises:
        MembershipListError: naming which listing failed
    """
    try:
        users = await client.list_memberships(app_id, MembershipKind.USER)
    except Exception as e:
        raise MembershipListError(MembershipKind.USER, e) from e

    try:
        groups = await client.list_memberships(app_id, MembershipKind.GROUP)
    except Exception as e:
        raise MembershipListError(MembershipKind.GROUP, e) from e

    return list(users), list(groups)


async def plan_memberships(
    client: DirectoryClient,
    app_id: str,
    desired: DesiredMembership,
) -> MembershipDiff:
    """Diff desired assignments against a fresh listing without changing anything."""
    users, groups = await list_existing(client, app_id)
    return compute_membership_diff(desired, users, groups)


async def reconcile_memberships(
    client: DirectoryClient,
    app_id: str,
    desired: DesiredMembership,
    parallelism: int = DEFAULT_PARALLELISM,
    audit: SyncAuditLogger | None = None,
) -> AggregatedResult:
    """Converge an app's user and group assignments to ``desired``.

    Returns the per-operation outcomes when every operation succeeded.

    Raises:
        MembershipListError: if the live assignments could not be listed
        MembershipSyncError: if any operation failed, carrying all failures
    """
    try:
        diff = await plan_memberships(client, app_id, desired)
    except MembershipListError as e:
        if audit:
            audit.log_error(app_id, str(e))
        raise

    if diff.has_changes:
        logger.info("App %s: %d assignment change(s)", app_id, diff.change_count)
    else:
        logger.debug("App %s: assignments in sync", app_id)

    operations = build_operations(client, app_id, diff)
    result = await run_operations(operations, parallelism)

    if audit:
        audit.log_result(app_id, result)

    result.raise_for_errors(SYNC_ERROR_MESSAGE)
    return result


async def reconcile_memberships_and_status(
    client: DirectoryClient,
    app_id: str,
    desired: DesiredMembership,
    desired_status: AppStatus,
    current_status: AppStatus | str | None,
    parallelism: int = DEFAULT_PARALLELISM,
    audit: SyncAuditLogger | None = None,
) -> AggregatedResult:
    """Set the app status if needed, then reconcile its assignments."""
    if await reconcile_status(client, app_id, desired_status, current_status):
        if audit:
            audit.log_status_change(app_id, desired_status.value)

    return await reconcile_memberships(client, app_id, desired, parallelism, audit)


async def read_memberships(client: DirectoryClient, app_id: str) -> DesiredMembership:
    """Read the live direct assignments back in desired-state form.

    Inherited users are left out. Passwords are never returned by Okta.
    """
    users, groups = await list_existing(client, app_id)
    return DesiredMembership(
        users=[
            DesiredUser(
                id=u.id,
                username=u.credentials.user_name if u.credentials else "",
                password=u.credentials.password if u.credentials else None,
            )
            for u in direct_users(users)
        ],
        groups=[g.id for g in groups],
    )


async def list_member_ids(
    client: DirectoryClient, app_id: str
) -> tuple[list[str], list[str]]:
    """IDs of every assigned user (direct and inherited) and group."""
    users, groups = await list_existing(client, app_id)
    return [u.id for u in users], [g.id for g in groups]


@dataclass
class AppSyncResult:
    """Result of syncing one app from configuration."""

    label: str
    app_id: str | None = None
    created: bool = False
    updated_fields: list[str] = field(default_factory=list)
    status_changed: bool = False
    diff: MembershipDiff | None = None
    result: AggregatedResult | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if sync completed without errors."""
        return len(self.errors) == 0

    def summary(self) -> str:
        """Get a human-readable summary of the result."""
        lines = [f"{self.label} ({self.app_id or 'new'})"]

        if self.created:
            lines.append("  created")
        if self.updated_fields:
            lines.append(f"  updated fields: {', '.join(self.updated_fields)}")
        if self.status_changed:
            lines.append("  status changed")
        if self.result is not None and self.result.outcomes:
            lines.append(f"  applied {len(self.result.succeeded)} assignment change(s)")
        elif self.diff is not None and self.diff.has_changes:
            for line in self.diff.summary().splitlines():
                lines.append(f"  {line}")

        for err in self.errors:
            lines.append(f"  ! {err}")

        if len(lines) == 1:
            lines.append("  no changes")

        return "\n".join(lines)


async def _resolve_app(client: DirectoryClient, config: AppConfig) -> dict[str, Any] | None:
    if config.id:
        return await fetch_app(client, config.id)
    return await client.find_app_by_label(config.label)


async def sync_app(
    client: DirectoryClient,
    config: AppConfig,
    parallelism: int = DEFAULT_PARALLELISM,
    dry_run: bool = False,
    audit: SyncAuditLogger | None = None,
) -> AppSyncResult:
    """Create or update one app from configuration, then reconcile it.

    Errors are collected on the result rather than raised so that one app
    cannot stop the others.
    """
    result = AppSyncResult(label=config.label, app_id=config.id)

    try:
        kind = get_kind(config.kind)
        desired = config.membership()
        current = await _resolve_app(client, config)

        if dry_run:
            if current is None:
                result.created = True
                result.diff = compute_membership_diff(desired, [], [])
                return result
            result.app_id = current["id"]
            result.updated_fields = kind.changed_fields(config, current)
            result.status_changed = current.get("status") != config.status
            result.diff = await plan_memberships(client, current["id"], desired)
            return result

        if current is None:
            current = await client.create_app(
                kind.write_fields(config),
                activate=config.status == AppStatus.ACTIVE,
            )
            result.created = True
        else:
            changed = kind.changed_fields(config, current)
            if changed:
                updated = await client.update_app(current["id"], kind.write_fields(config))
                current = {**current, **(updated or {})}
                result.updated_fields = changed

        app_id = current["id"]
        result.app_id = app_id

        result.status_changed = await reconcile_status(
            client, app_id, config.status, current.get("status")
        )
        if result.status_changed and audit:
            audit.log_status_change(app_id, config.status.value)

        result.result = await reconcile_memberships(client, app_id, desired, parallelism, audit)
    except Exception as e:
        logger.error("App %s: %s", config.label, e)
        result.errors.append(str(e))

    return result
