"""okta-appsync CLI commands.

Commands:
    okta-appsync sync <apps.yaml>
    okta-appsync status <app-id>
    okta-appsync delete <app-id>
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from appsync.audit.logger import SyncAuditLogger
from appsync.config import Settings, get_settings
from appsync.logs import configure_logging
from appsync.models.app import AppsConfig
from appsync.okta.client import OktaAppClient, OktaAuthError, OktaError
from appsync.reconcile.sync import (
    AppSyncResult,
    deactivate_then_delete,
    fetch_app,
    list_existing,
    sync_app,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="okta-appsync",
    help="Reconcile Okta application assignments",
    add_completion=False,
)

OrgUrlOption = Annotated[
    Optional[str],
    typer.Option("--org-url", "-u", help="Okta organization URL"),
]
ApiTokenOption = Annotated[
    Optional[str],
    typer.Option("--api-token", help="Okta API token"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose output"),
]


def _build_settings(
    org_url: str | None,
    api_token: str | None,
    parallelism: int | None = None,
) -> Settings:
    """Build settings from environment and CLI overrides."""
    return get_settings().with_overrides(
        org_url=org_url,
        api_token=api_token,
        parallelism=parallelism,
    )


def _fail(prefix: str, e: Exception) -> typer.Exit:
    typer.secho(f"{prefix}: {e}", fg=typer.colors.RED, err=True)
    return typer.Exit(1)


@app.command("sync")
def sync(
    config_path: Path = typer.Argument(
        help="Path to the applications YAML file",
        exists=True,
        dir_okay=False,
        readable=True,
        default=Path("./apps.yaml"),
    ),
    org_url: OrgUrlOption = None,
    api_token: ApiTokenOption = None,
    parallelism: Annotated[
        Optional[int],
        typer.Option("--parallelism", "-p", min=1, help="Concurrent assignment calls"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run", "-n", help="Show what would be done without making changes"
        ),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Sync applications and their user/group assignments to match configuration.

    Running it again with the same configuration makes no further changes.

    Example:
        okta-appsync sync apps.yaml --dry-run
        okta-appsync sync apps.yaml --parallelism 4
    """
    settings = _build_settings(org_url, api_token, parallelism)
    configure_logging(verbose, settings)

    try:
        config = AppsConfig.from_yaml(config_path)
    except Exception as e:
        raise _fail("Error loading config", e)

    for problem in config.validate_unique_members():
        typer.secho(f"Warning: {problem}", fg=typer.colors.YELLOW)

    typer.echo(f"Syncing to Okta: {settings.org_url}")
    typer.echo(f"Config: {len(config.apps)} apps, parallelism={settings.parallelism}")

    try:
        results = asyncio.run(_async_sync(settings, config, dry_run))
    except OktaAuthError as e:
        raise _fail("Authentication failed", e)
    except OktaError as e:
        raise _fail("Okta error", e)

    if dry_run:
        typer.secho("\n[DRY RUN] No changes applied", fg=typer.colors.YELLOW)

    for result in results:
        typer.echo("\n" + result.summary())

    if not all(r.success for r in results):
        raise typer.Exit(1)


async def _async_sync(
    settings: Settings,
    config: AppsConfig,
    dry_run: bool,
) -> list[AppSyncResult]:
    """Sync every configured app, one after another."""
    audit = SyncAuditLogger(enabled=settings.audit_enabled)
    results = []

    async with OktaAppClient(settings) as client:
        for app_config in config.apps:
            results.append(
                await sync_app(
                    client,
                    app_config,
                    parallelism=settings.parallelism,
                    dry_run=dry_run,
                    audit=audit,
                )
            )

    return results


@app.command("status")
def status(
    app_id: str = typer.Argument(help="Okta app ID"),
    org_url: OrgUrlOption = None,
    api_token: ApiTokenOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show an application's status and its user/group assignments.

    Example:
        okta-appsync status 0oa1abcd
    """
    settings = _build_settings(org_url, api_token)
    configure_logging(verbose, settings)

    try:
        found = asyncio.run(_async_status(settings, app_id))
    except OktaAuthError as e:
        raise _fail("Authentication failed", e)
    except OktaError as e:
        raise _fail("Okta error", e)

    if not found:
        typer.secho(f"App not found: {app_id}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


async def _async_status(settings: Settings, app_id: str) -> bool:
    """Show current assignments. Returns False if the app does not exist."""
    async with OktaAppClient(settings) as client:
        current = await fetch_app(client, app_id)
        if current is None:
            return False

        users, groups = await list_existing(client, app_id)

        typer.echo(
            f"{current.get('label', '')} ({app_id}) "
            f"status={current.get('status')} mode={current.get('signOnMode')}"
        )

        typer.echo(f"\nUsers ({len(users)}):")
        for user in users:
            username = user.credentials.user_name if user.credentials else ""
            line = f"  - {user.id}" + (f": {username}" if username else "")
            if not user.is_direct:
                line += " (inherited)"
            typer.echo(line)

        typer.echo(f"\nGroups ({len(groups)}):")
        for group in groups:
            typer.echo(f"  - {group.id}")

    return True


@app.command("delete")
def delete(
    app_id: str = typer.Argument(help="Okta app ID"),
    org_url: OrgUrlOption = None,
    api_token: ApiTokenOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Deactivate (if active) and delete an application.

    Example:
        okta-appsync delete 0oa1abcd --yes
    """
    settings = _build_settings(org_url, api_token)
    configure_logging(verbose, settings)

    if not yes and not typer.confirm(f"Delete app {app_id}?"):
        raise typer.Abort()

    try:
        asyncio.run(_async_delete(settings, app_id))
    except OktaAuthError as e:
        raise _fail("Authentication failed", e)
    except OktaError as e:
        raise _fail("Okta error", e)

    typer.secho(f"Deleted app: {app_id}", fg=typer.colors.GREEN)


async def _async_delete(settings: Settings, app_id: str) -> None:
    async with OktaAppClient(settings) as client:
        await deactivate_then_delete(client, app_id)
