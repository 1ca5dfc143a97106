from appsync.audit.logger import SyncAuditLogger
from appsync.okta.client import OktaError
from appsync.reconcile.executor import AggregatedResult, OperationOutcome


class FakeStructLogger:
    def __init__(self):
        self.calls = []

    def info(self, **kwargs):
        self.calls.append(("info", kwargs))

    def warning(self, **kwargs):
        self.calls.append(("warning", kwargs))

    def error(self, **kwargs):
        self.calls.append(("error", kwargs))


def test_audit_logger_logs_each_outcome_and_summary():
    fake = FakeStructLogger()
    audit = SyncAuditLogger(enabled=True, logger=fake)
    result = AggregatedResult(outcomes=[
        OperationOutcome(name="assign user u1"),
        OperationOutcome(name="assign group g1"),
    ])

    audit.log_result("app1", result)

    assert [level for level, _ in fake.calls] == ["info", "info", "info"]
    level, payload = fake.calls[0]
    assert payload["event"] == "membership_operation"
    assert payload["app_id"] == "app1"
    assert payload["operation"] == "assign user u1"
    assert payload["ok"] is True

    _, summary = fake.calls[-1]
    assert summary["event"] == "membership_sync"
    assert summary["operations"] == 2
    assert summary["failed"] == 0
    assert "dry_run" not in summary


def test_audit_logger_logs_failures_as_errors():
    fake = FakeStructLogger()
    audit = SyncAuditLogger(enabled=True, logger=fake)
    result = AggregatedResult(outcomes=[
        OperationOutcome(name="unassign user u2", error=OktaError("boom", status_code=500)),
    ])

    audit.log_result("app1", result, dry_run=True)

    (level, payload), (summary_level, summary) = fake.calls
    assert level == "error"
    assert payload["error"] == "boom"
    assert payload["status_code"] == 500
    assert summary_level == "warning"
    assert summary["failed"] == 1
    assert summary["dry_run"] is True


def test_audit_logger_status_change_and_error():
    fake = FakeStructLogger()
    audit = SyncAuditLogger(enabled=True, logger=fake)

    audit.log_status_change("app1", "INACTIVE")
    audit.log_error("app1", "failed to list application users: down")

    assert fake.calls == [
        ("info", {"event": "status_change", "app_id": "app1", "status": "INACTIVE"}),
        (
            "error",
            {
                "event": "membership_sync_error",
                "app_id": "app1",
                "error": "failed to list application users: down",
            },
        ),
    ]


def test_audit_logger_disabled_no_calls():
    fake = FakeStructLogger()
    audit = SyncAuditLogger(enabled=False, logger=fake)

    audit.log_result("app1", AggregatedResult(outcomes=[OperationOutcome(name="x")]))
    audit.log_status_change("app1", "ACTIVE")
    audit.log_error("app1", "err")

    assert fake.calls == []
