"""Audit logging package."""

from .logger import SyncAuditLogger, configure_audit_logging

__all__ = [
    "SyncAuditLogger",
    "configure_audit_logging",
]
