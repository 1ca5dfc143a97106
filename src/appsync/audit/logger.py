"""Structured audit logging for assignment changes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from appsync.reconcile.executor import AggregatedResult


def configure_audit_logging(
    *,
    log_level: str | int,
    json_format: bool,
) -> None:
    # Resolve log level via stdlib logging (NOT structlog)
    if isinstance(log_level, str):
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = int(log_level)

    logging.basicConfig(level=level)

    processors = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class SyncAuditLogger:
    """Audit logger for assignment operations."""

    def __init__(
        self,
        enabled: bool = True,
        logger: Any = None,
    ):
        """Initialize audit logger.

        Args:
            enabled: Whether audit logging is enabled
            logger: Optional custom logger
        """
        self._enabled = enabled
        self._logger = logger or structlog.get_logger("audit")

    def log_result(
        self,
        app_id: str,
        result: AggregatedResult,
        dry_run: bool = False,
    ) -> None:
        """Log every operation outcome of a pass, then a summary line."""
        if not self._enabled:
            return

        for outcome in result.outcomes:
            log_data: dict[str, Any] = {
                "event": "membership_operation",
                "app_id": app_id,
                "operation": outcome.name,
                "ok": outcome.ok,
            }
            if outcome.ok:
                self._logger.info(**log_data)
            else:
                log_data["error"] = str(outcome.error)
                status_code = getattr(outcome.error, "status_code", None)
                if status_code is not None:
                    log_data["status_code"] = status_code
                self._logger.error(**log_data)

        summary: dict[str, Any] = {
            "event": "membership_sync",
            "app_id": app_id,
            "operations": len(result.outcomes),
            "failed": len(result.failed),
        }
        if dry_run:
            summary["dry_run"] = True

        if result.ok:
            self._logger.info(**summary)
        else:
            self._logger.warning(**summary)

    def log_status_change(self, app_id: str, status: str) -> None:
        if not self._enabled:
            return
        self._logger.info(event="status_change", app_id=app_id, status=status)

    def log_error(self, app_id: str, error: str) -> None:
        """Log a failure that aborted a pass before any operation ran."""
        if not self._enabled:
            return
        self._logger.error(event="membership_sync_error", app_id=app_id, error=error)
