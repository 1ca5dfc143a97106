from appsync.models import DesiredMembership, DesiredUser, GroupAssignment, UserScope
from appsync.reconcile.differ import (
    compute_membership_diff,
    diff_groups,
    diff_users,
)

from conftest import app_user


def _ids(items):
    return [i.id for i in items]


def test_diff_users_add_update_remove():
    desired = [
        DesiredUser(id="u1", username="alice"),
        DesiredUser(id="u2", username="robert"),
        DesiredUser(id="u4", username="dave"),
    ]
    existing = [app_user("u1", "alice"), app_user("u2", "bob"), app_user("u5", "eve")]

    to_add, to_update, to_remove = diff_users(desired, existing)

    assert _ids(to_add) == ["u4"]
    assert [u.user.id for u in to_update] == ["u2"]
    assert to_update[0].current_username == "bob"
    assert _ids(to_remove) == ["u5"]


def test_inherited_users_are_never_removed():
    existing = [app_user("u1", "alice", scope=UserScope.GROUP)]

    to_add, to_update, to_remove = diff_users([], existing)

    assert to_add == []
    assert to_update == []
    assert to_remove == []


def test_inherited_only_user_is_added_explicitly():
    desired = [DesiredUser(id="u1", username="alice")]
    existing = [app_user("u1", "alice", scope=UserScope.GROUP)]

    to_add, to_update, to_remove = diff_users(desired, existing)

    assert _ids(to_add) == ["u1"]
    assert to_update == []
    assert to_remove == []


def test_password_change_alone_does_not_update():
    desired = [DesiredUser(id="u1", username="alice", password="new-secret")]
    existing = [app_user("u1", "alice")]

    to_add, to_update, to_remove = diff_users(desired, existing)

    assert (to_add, to_update, to_remove) == ([], [], [])


def test_user_without_credentials_is_not_updated():
    desired = [DesiredUser(id="u1", username="alice")]
    existing = [app_user("u1")]

    _, to_update, _ = diff_users(desired, existing)

    assert to_update == []


def test_diff_groups():
    existing = [GroupAssignment(id="g1"), GroupAssignment(id="g2"), GroupAssignment(id="g3")]

    to_add, to_remove = diff_groups(["g4", "g1", "g0"], existing)

    assert to_add == ["g4", "g0"]
    assert _ids(to_remove) == ["g2", "g3"]


def test_diff_preserves_desired_and_existing_order():
    desired = DesiredMembership(
        users=[DesiredUser(id=f"n{i}", username=f"n{i}") for i in (3, 1, 2)],
    )
    existing = [app_user(f"o{i}", f"o{i}") for i in (9, 7, 8)]

    diff = compute_membership_diff(desired, existing, [])

    assert _ids(diff.users_to_add) == ["n3", "n1", "n2"]
    assert _ids(diff.users_to_remove) == ["o9", "o7", "o8"]


def test_applying_diff_yields_desired_ids():
    desired = DesiredMembership(
        users=[DesiredUser(id="u1", username="a"), DesiredUser(id="u3", username="c")],
        groups=["g1", "g3"],
    )
    existing_users = [
        app_user("u1", "a"),
        app_user("u2", "b"),
        app_user("u9", "z", scope=UserScope.GROUP),
    ]
    existing_groups = [GroupAssignment(id="g1"), GroupAssignment(id="g2")]

    diff = compute_membership_diff(desired, existing_users, existing_groups)

    direct = {u.id for u in existing_users if u.is_direct}
    direct |= {u.id for u in diff.users_to_add}
    direct -= {u.id for u in diff.users_to_remove}
    assert direct == desired.user_ids()

    groups = {g.id for g in existing_groups}
    groups |= set(diff.groups_to_add)
    groups -= {g.id for g in diff.groups_to_remove}
    assert groups == desired.group_ids()


def test_no_changes_when_in_sync():
    desired = DesiredMembership(users=[DesiredUser(id="u1", username="a")], groups=["g1"])

    diff = compute_membership_diff(desired, [app_user("u1", "a")], [GroupAssignment(id="g1")])

    assert not diff.has_changes
    assert diff.change_count == 0
    assert "in sync" in diff.summary()


def test_summary_lists_changes():
    desired = DesiredMembership(users=[DesiredUser(id="u1", username="alice")], groups=["g1"])

    diff = compute_membership_diff(desired, [app_user("u1", "al")], [GroupAssignment(id="g2")])

    summary = diff.summary()
    assert "  + g1" in summary
    assert "  - g2" in summary
    assert "  ~ u1 (al -> alice)" in summary


def test_duplicate_desired_ids_produce_duplicate_changes():
    desired = [
        DesiredUser(id="u1", username="alice"),
        DesiredUser(id="u2", username="bob"),
        DesiredUser(id="u1", username="alice"),
    ]

    to_add, _, _ = diff_users(desired, [])
    groups_to_add, _ = diff_groups(["g1", "g2", "g1"], [])

    assert _ids(to_add) == ["u1", "u2", "u1"]
    assert groups_to_add == ["g1", "g2", "g1"]
