"""Diff desired application assignments against the live ones.

Users and groups are diffed independently and by ID only. Inherited
(group-scoped) user assignments are dropped from the existing side before
comparing, so they are never removed and never count as "already assigned".
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from appsync.models.membership import (
    AppUser,
    DesiredMembership,
    DesiredUser,
    GroupAssignment,
)


@dataclass
class UserUpdate:
    """A desired user whose assignment exists with a different username."""

    user: DesiredUser
    current_username: str


@dataclass
class MembershipDiff:
    """Assignment changes needed to converge one app."""

    users_to_add: list[DesiredUser] = field(default_factory=list)
    users_to_update: list[UserUpdate] = field(default_factory=list)
    users_to_remove: list[AppUser] = field(default_factory=list)

    groups_to_add: list[str] = field(default_factory=list)
    groups_to_remove: list[GroupAssignment] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        """Check if there are any changes to apply."""
        return bool(
            self.users_to_add
            or self.users_to_update
            or self.users_to_remove
            or self.groups_to_add
            or self.groups_to_remove
        )

    @property
    def change_count(self) -> int:
        return (
            len(self.users_to_add)
            + len(self.users_to_update)
            + len(self.users_to_remove)
            + len(self.groups_to_add)
            + len(self.groups_to_remove)
        )

    def summary(self) -> str:
        """Get a human-readable summary of the diff."""
        lines = []

        if self.groups_to_add:
            lines.append(f"Groups to assign: {len(self.groups_to_add)}")
            for group_id in self.groups_to_add:
                lines.append(f"  + {group_id}")

        if self.groups_to_remove:
            lines.append(f"Groups to unassign: {len(self.groups_to_remove)}")
            for group in self.groups_to_remove:
                lines.append(f"  - {group.id}")

        if self.users_to_add:
            lines.append(f"Users to assign: {len(self.users_to_add)}")
            for user in self.users_to_add:
                lines.append(f"  + {user.id} ({user.username})")

        if self.users_to_update:
            lines.append(f"Users to update: {len(self.users_to_update)}")
            for update in self.users_to_update:
                lines.append(
                    f"  ~ {update.user.id} ({update.current_username} -> {update.user.username})"
                )

        if self.users_to_remove:
            lines.append(f"Users to unassign: {len(self.users_to_remove)}")
            for user in self.users_to_remove:
                lines.append(f"  - {user.id}")

        if not lines:
            lines.append("No changes needed - assignments are in sync")

        return "\n".join(lines)


def direct_users(existing: Iterable[AppUser]) -> list[AppUser]:
    """Keep only explicit (USER-scoped) assignments."""
    return [u for u in existing if u.is_direct]


def diff_users(
    desired: Iterable[DesiredUser],
    existing: Iterable[AppUser],
) -> tuple[list[DesiredUser], list[UserUpdate], list[AppUser]]:
    """Compute user additions, updates and removals.

    Only the username is compared. A password change alone does not produce
    an update since Okta never returns the stored password.
    """
    desired = list(desired)
    current = {u.id: u for u in direct_users(existing)}
    desired_ids = {u.id for u in desired}

    to_add: list[DesiredUser] = []
    to_update: list[UserUpdate] = []

    for user in desired:
        existing_user = current.get(user.id)
        if existing_user is None:
            to_add.append(user)
        elif (
            existing_user.credentials is not None
            and existing_user.credentials.user_name != user.username
        ):
            to_update.append(UserUpdate(
                user=user,
                current_username=existing_user.credentials.user_name,
            ))

    to_remove = [u for u in current.values() if u.id not in desired_ids]

    return to_add, to_update, to_remove


def diff_groups(
    desired: Iterable[str],
    existing: Iterable[GroupAssignment],
) -> tuple[list[str], list[GroupAssignment]]:
    """Compute group additions and removals."""
    desired = list(desired)
    existing = list(existing)
    current_ids = {g.id for g in existing}
    desired_ids = set(desired)

    to_add = [group_id for group_id in desired if group_id not in current_ids]
    to_remove = [g for g in existing if g.id not in desired_ids]

    return to_add, to_remove


def compute_membership_diff(
    desired: DesiredMembership,
    existing_users: Iterable[AppUser],
    existing_groups: Iterable[GroupAssignment],
) -> MembershipDiff:
    """Diff desired assignments against the listed ones.

    Additions and updates follow the order of ``desired``; removals follow
    the order of the existing listing.
    """
    users_to_add, users_to_update, users_to_remove = diff_users(desired.users, existing_users)
    groups_to_add, groups_to_remove = diff_groups(desired.groups, existing_groups)

    return MembershipDiff(
        users_to_add=users_to_add,
        users_to_update=users_to_update,
        users_to_remove=users_to_remove,
        groups_to_add=groups_to_add,
        groups_to_remove=groups_to_remove,
    )
