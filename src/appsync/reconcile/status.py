"""Application status transitions.

ACTIVE -> INACTIVE -> DELETED. An active app cannot be deleted directly, so
deletion always deactivates first and stops if that fails.
"""

from __future__ import annotations

import logging

from appsync.models.membership import AppStatus
from appsync.okta.client import DirectoryClient, OktaNotFoundError

logger = logging.getLogger(__name__)


async def reconcile_status(
    client: DirectoryClient,
    app_id: str,
    desired: AppStatus,
    current: AppStatus | str | None,
) -> bool:
    """Activate or deactivate the app if its status differs.

    Returns True if a call was made.
    """
    # AppStatus is a str enum, so raw API strings compare equal
    if current == desired:
        return False

    logger.info("Setting app %s status: %s -> %s", app_id, current, desired.value)
    await client.set_status(app_id, desired)
    return True


async def deactivate_then_delete(
    client: DirectoryClient,
    app_id: str,
    current: AppStatus | str | None = None,
) -> None:
    """Delete an application, deactivating it first when active.

    When ``current`` is not given the app is fetched. An app that no longer
    exists is treated as already deleted.
    """
    if current is None:
        try:
            app = await client.get_app(app_id)
        except OktaNotFoundError:
            logger.info("App %s already deleted", app_id)
            return
        current = app.get("status")

    if current == AppStatus.ACTIVE:
        await client.set_status(app_id, AppStatus.INACTIVE)

    await client.delete_app(app_id)
