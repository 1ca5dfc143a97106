"""Logging setup shared by the CLI commands.

Plain process logs go through the standard library. Membership changes are
also written as structured audit events when ``audit_enabled`` is set.
"""

import logging

from appsync.audit.logger import configure_audit_logging
from appsync.config import Settings, settings as default_settings

# Request lines from these would drown out the sync output
QUIET_LOGGERS = ("httpx", "httpcore")


def resolve_level(name: str, verbose: bool = False) -> int:
    """Turn a level name such as "INFO" into a logging level."""
    if verbose:
        return logging.DEBUG
    return getattr(logging, str(name).upper(), logging.INFO)


def configure_logging(verbose: bool = False, config: Settings | None = None) -> None:
    config = config or default_settings
    level = resolve_level(config.log_level, verbose)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if config.audit_enabled:
        configure_audit_logging(log_level=level, json_format=config.log_json)
