"""okta-appsync CLI - Main entrypoint.

Usage:
    okta-appsync sync apps.yaml
    okta-appsync delete 0oa1abcd
"""

from __future__ import annotations

from appsync.cli.commands import app


def create_app() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    create_app()
