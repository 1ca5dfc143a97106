"""Pydantic models for the application YAML configuration.

Example YAML structure:
    apps:
      - label: Payroll
        kind: swa
        status: ACTIVE
        options:
          url: https://payroll.example.com/login
          user_name_template_type: BUILT_IN
        app_settings:
          region: eu
          sandbox: false
        users:
          - id: 00u1abcd
            username: alice@example.com
            password: ${PAYROLL_ALICE_PASSWORD}
        groups:
          - 00g1abcd
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from appsync.models.membership import AppStatus, DesiredMembership, DesiredUser

# Pattern for ${VAR} and ${VAR:-default} interpolation
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(:-([^}]*))?\}")

# Free-form preconfigured-app settings vary wildly between apps.
SettingValue = Union[str, bool, int, float, None]
AppSettings = dict[str, SettingValue]


def _resolve_env_str(s: str) -> str:
    """Resolve environment variable placeholders in a string."""
    def repl(m: re.Match[str]) -> str:
        var = m.group(1)
        default = m.group(3)
        val = os.getenv(var)
        if val is None or val == "":
            return default if default is not None else ""
        return val

    # Resolve repeatedly until stable (handles nested defaults)
    prev = None
    cur = s
    for _ in range(5):
        if cur == prev:
            break
        prev = cur
        cur = _ENV_PATTERN.sub(repl, cur)
    return cur


def _resolve_env(value: Any) -> Any:
    """Recursively resolve environment variables in a data structure."""
    if isinstance(value, str):
        return _resolve_env_str(value)
    if isinstance(value, list):
        return [_resolve_env(v) for v in value]
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    return value


def serialize_app_settings(raw: Mapping[str, Any] | None) -> AppSettings:
    """Weed out empty-string values, keeping key order.

    False, zero and null are kept as they are.
    """
    result: AppSettings = {}
    for key, value in (raw or {}).items():
        if isinstance(value, str) and value == "":
            continue
        result[key] = value
    return result


def app_settings_json(raw: Mapping[str, Any] | None) -> str:
    """Render app settings as the JSON document stored in state."""
    return json.dumps(serialize_app_settings(raw))


class AppConfig(BaseModel):
    """Desired state of one Okta application."""

    id: str | None = Field(default=None, description="Okta app ID, looked up by label when unset")
    label: str = Field(..., description="Display label of the app")
    kind: str = Field(default="bookmark", description="Application kind (bookmark, swa, saml, oauth)")
    status: AppStatus = Field(default=AppStatus.ACTIVE)

    # Visibility / accessibility shared by every kind
    auto_submit_toolbar: bool = False
    hide_ios: bool = False
    hide_web: bool = False
    accessibility_self_service: bool = False
    accessibility_error_redirect_url: str | None = None

    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Kind-specific options, validated by the kind",
    )
    app_settings: AppSettings = Field(
        default_factory=dict,
        description="Free-form settings of preconfigured apps",
    )

    users: list[DesiredUser] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)

    @field_validator("kind")
    @classmethod
    def normalize_kind(cls, v: str) -> str:
        from appsync.okta.kinds import get_kind

        kind = v.strip().lower()
        get_kind(kind)
        return kind

    def membership(self) -> DesiredMembership:
        """Build the desired user/group assignments of this app."""
        return DesiredMembership(users=list(self.users), groups=list(self.groups))


class AppsConfig(BaseModel):
    """Top-level configuration: the applications to reconcile."""

    apps: list[AppConfig] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AppsConfig":
        """Load configuration from a YAML file with env var interpolation."""
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        raw = yaml.safe_load(p.read_text())
        if not isinstance(raw, dict):
            raise ValueError(f"Config file must be a YAML mapping: {path}")

        return cls.model_validate(_resolve_env(raw))

    def validate_unique_members(self) -> list[str]:
        """Report user or group IDs declared more than once within an app."""
        problems: list[str] = []
        for app in self.apps:
            seen_users: set[str] = set()
            for user in app.users:
                if user.id in seen_users:
                    problems.append(f"{app.label}: duplicate user {user.id}")
                seen_users.add(user.id)
            seen_groups: set[str] = set()
            for group_id in app.groups:
                if group_id in seen_groups:
                    problems.append(f"{app.label}: duplicate group {group_id}")
                seen_groups.add(group_id)
        return problems
