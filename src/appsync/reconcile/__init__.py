"""Assignment reconciliation.

Diffs desired user/group assignments against the live ones, runs the
resulting calls with bounded concurrency and reports failures together.
"""

from appsync.reconcile.differ import MembershipDiff, compute_membership_diff
from appsync.reconcile.executor import (
    AggregatedResult,
    MembershipSyncError,
    OperationOutcome,
    run_operations,
)
from appsync.reconcile.operations import Operation, build_operations
from appsync.reconcile.status import deactivate_then_delete, reconcile_status
from appsync.reconcile.sync import (
    AppSyncResult,
    reconcile_memberships,
    reconcile_memberships_and_status,
    sync_app,
)

__all__ = [
    "AggregatedResult",
    "AppSyncResult",
    "MembershipDiff",
    "MembershipSyncError",
    "Operation",
    "OperationOutcome",
    "build_operations",
    "compute_membership_diff",
    "deactivate_then_delete",
    "reconcile_memberships",
    "reconcile_memberships_and_status",
    "reconcile_status",
    "run_operations",
    "sync_app",
]
