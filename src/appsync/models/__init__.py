from appsync.models.app import (
    AppConfig,
    AppSettings,
    AppsConfig,
    app_settings_json,
    serialize_app_settings,
)
from appsync.models.membership import (
    AppStatus,
    AppUser,
    AppUserCredentials,
    DesiredMembership,
    DesiredUser,
    GroupAssignment,
    MembershipKind,
    UserScope,
)

__all__ = [
    "AppConfig",
    "AppSettings",
    "AppsConfig",
    "AppStatus",
    "AppUser",
    "AppUserCredentials",
    "DesiredMembership",
    "DesiredUser",
    "GroupAssignment",
    "MembershipKind",
    "UserScope",
    "app_settings_json",
    "serialize_app_settings",
]
