"""Okta Apps API client.

Wraps the Okta management REST API for:
- Applications (fetch, create, update, lifecycle, delete)
- Application user assignments
- Application group assignments
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from appsync.config import Settings
from appsync.models.membership import (
    AppStatus,
    AppUser,
    AppUserCredentials,
    GroupAssignment,
    MembershipKind,
    UserScope,
)

logger = logging.getLogger(__name__)


class OktaError(Exception):
    """Base exception for Okta API errors."""

    def __init__(
        self, message: str, status_code: int | None = None, response: dict | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class OktaAuthError(OktaError):
    """Authentication failed or token lacks permission."""

    pass


class OktaNotFoundError(OktaError):
    """Resource not found."""

    pass


class OktaConflictError(OktaError):
    """Resource already exists."""

    pass


class MembershipListError(OktaError):
    """Listing the existing assignments of an app failed."""

    def __init__(self, kind: MembershipKind, cause: Exception):
        what = "users" if kind == MembershipKind.USER else "group assignments"
        super().__init__(
            f"failed to list application {what}: {cause}",
            status_code=getattr(cause, "status_code", None),
        )
        self.kind = kind
        self.cause = cause


class DirectoryClient(Protocol):
    """What the reconciliation core needs from the remote directory."""

    async def list_memberships(
        self, app_id: str, kind: MembershipKind
    ) -> list[AppUser] | list[GroupAssignment]: ...

    async def create_assignment(
        self,
        app_id: str,
        member_id: str,
        kind: MembershipKind,
        credentials: AppUserCredentials | None = None,
    ) -> None: ...

    async def update_assignment(
        self,
        app_id: str,
        member_id: str,
        kind: MembershipKind,
        credentials: AppUserCredentials,
    ) -> None: ...

    async def delete_assignment(
        self, app_id: str, member_id: str, kind: MembershipKind
    ) -> None: ...

    async def set_status(self, app_id: str, status: AppStatus) -> None: ...

    async def get_app(self, app_id: str) -> dict[str, Any]: ...

    async def find_app_by_label(self, label: str) -> dict[str, Any] | None: ...

    async def create_app(
        self, payload: dict[str, Any], activate: bool = True
    ) -> dict[str, Any]: ...

    async def update_app(self, app_id: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def delete_app(self, app_id: str) -> None: ...


class OktaAppClient:
    """Async client for the Okta Apps API."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "OktaAppClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self._settings.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def settings(self) -> Settings:
        """Get settings."""
        return self._settings

    def _headers(self) -> dict[str, str]:
        """Get request headers with the API token."""
        if not self._settings.has_credentials:
            raise OktaAuthError("No API token provided. Use --api-token or OKTA_API_TOKEN")
        return {
            "Authorization": f"SSWS {self._settings.api_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    # -------------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._settings.api_url}{path}"

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request to the API."""
        response = await self._client.get(self._url(path), headers=self._headers(), params=params)
        return self._handle_response(response)

    async def _get_all(self, path: str) -> list[dict[str, Any]]:
        """GET every page of a collection, following Link rel="next"."""
        items: list[dict[str, Any]] = []
        url: str | None = self._url(path)
        params: dict[str, Any] | None = {"limit": self._settings.page_limit}

        while url:
            response = await self._client.get(url, headers=self._headers(), params=params)
            page = self._handle_response(response) or []
            items.extend(page)
            url = response.links.get("next", {}).get("url")
            # The next link already carries the cursor and limit
            params = None

        return items

    async def _post(self, path: str, json: list | dict | None = None) -> Any:
        """Make POST request to the API."""
        response = await self._client.post(self._url(path), headers=self._headers(), json=json)
        return self._handle_response(response, expected_status=[200, 201, 204])

    async def _put(self, path: str, json: dict | None = None) -> Any:
        """Make PUT request to the API."""
        response = await self._client.put(self._url(path), headers=self._headers(), json=json)
        return self._handle_response(response, expected_status=[200, 201, 204])

    async def _delete(self, path: str) -> Any:
        """Make DELETE request to the API."""
        response = await self._client.delete(self._url(path), headers=self._headers())
        return self._handle_response(response, expected_status=[200, 204])

    def _handle_response(
        self,
        response: httpx.Response,
        expected_status: list[int] | None = None,
    ) -> Any:
        """Handle API response."""
        expected = expected_status or [200]

        if response.status_code == 404:
            raise OktaNotFoundError(
                f"Resource not found: {response.request.url}",
                status_code=404,
            )

        if response.status_code == 409:
            raise OktaConflictError(
                f"Resource already exists: {response.text}",
                status_code=409,
            )

        if response.status_code in (401, 403):
            raise OktaAuthError(
                f"Authentication failed or not permitted: {response.text}",
                status_code=response.status_code,
            )

        if response.status_code not in expected:
            raise OktaError(
                f"Unexpected response {response.status_code}: {response.text}",
                status_code=response.status_code,
                response=_safe_json(response),
            )

        if response.status_code == 204 or not response.content:
            return None

        return response.json()

    # -------------------------------------------------------------------------
    # Applications
    # -------------------------------------------------------------------------

    async def get_app(self, app_id: str) -> dict[str, Any]:
        """Get an application by ID."""
        return await self._get(f"/apps/{app_id}")

    async def find_app_by_label(self, label: str) -> dict[str, Any] | None:
        """Get an application by its exact label."""
        apps = await self._get("/apps", params={"q": label, "limit": self._settings.page_limit})
        for app in apps or []:
            if app.get("label") == label:
                return app
        return None

    async def create_app(self, payload: dict[str, Any], activate: bool = True) -> dict[str, Any]:
        """Create an application. Returns the created app."""
        logger.debug("Creating app: %s", payload.get("label"))
        app = await self._post(f"/apps?activate={str(activate).lower()}", json=payload)
        logger.info("Created app: %s (id=%s)", app.get("label"), app.get("id"))
        return app

    async def update_app(self, app_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Replace an application's writable fields."""
        logger.debug("Updating app: %s", app_id)
        app = await self._put(f"/apps/{app_id}", json=payload)
        logger.info("Updated app: %s", app_id)
        return app

    async def activate_app(self, app_id: str) -> None:
        logger.debug("Activating app: %s", app_id)
        await self._post(f"/apps/{app_id}/lifecycle/activate")
        logger.info("Activated app: %s", app_id)

    async def deactivate_app(self, app_id: str) -> None:
        logger.debug("Deactivating app: %s", app_id)
        await self._post(f"/apps/{app_id}/lifecycle/deactivate")
        logger.info("Deactivated app: %s", app_id)

    async def set_status(self, app_id: str, status: AppStatus) -> None:
        """Activate or deactivate an application."""
        if status == AppStatus.INACTIVE:
            await self.deactivate_app(app_id)
        else:
            await self.activate_app(app_id)

    async def delete_app(self, app_id: str) -> None:
        """Delete an application. It must be inactive first."""
        logger.debug("Deleting app: %s", app_id)
        await self._delete(f"/apps/{app_id}")
        logger.info("Deleted app: %s", app_id)

    # -------------------------------------------------------------------------
    # User assignments
    # -------------------------------------------------------------------------

    async def list_app_users(self, app_id: str) -> list[AppUser]:
        """List every user assigned to an app, direct and inherited."""
        return [AppUser.from_api(u) for u in await self._get_all(f"/apps/{app_id}/users")]

    async def assign_user(
        self,
        app_id: str,
        user_id: str,
        credentials: AppUserCredentials | None = None,
    ) -> None:
        payload: dict[str, Any] = {"id": user_id, "scope": UserScope.USER.value}
        if credentials is not None:
            payload["credentials"] = credentials.to_api()

        logger.debug("Assigning user %s to app %s", user_id, app_id)
        await self._post(f"/apps/{app_id}/users", json=payload)

    async def update_app_user(
        self, app_id: str, user_id: str, credentials: AppUserCredentials
    ) -> None:
        payload = {"id": user_id, "credentials": credentials.to_api()}

        logger.debug("Updating user %s on app %s", user_id, app_id)
        await self._post(f"/apps/{app_id}/users/{user_id}", json=payload)

    async def remove_user(self, app_id: str, user_id: str) -> None:
        logger.debug("Removing user %s from app %s", user_id, app_id)
        await self._delete(f"/apps/{app_id}/users/{user_id}")

    # -------------------------------------------------------------------------
    # Group assignments
    # -------------------------------------------------------------------------

    async def list_app_groups(self, app_id: str) -> list[GroupAssignment]:
        """List every group assigned to an app."""
        return [
            GroupAssignment.from_api(g) for g in await self._get_all(f"/apps/{app_id}/groups")
        ]

    async def assign_group(self, app_id: str, group_id: str) -> None:
        logger.debug("Assigning group %s to app %s", group_id, app_id)
        await self._put(f"/apps/{app_id}/groups/{group_id}", json={})

    async def remove_group(self, app_id: str, group_id: str) -> None:
        logger.debug("Removing group %s from app %s", group_id, app_id)
        await self._delete(f"/apps/{app_id}/groups/{group_id}")

    # -------------------------------------------------------------------------
    # Kind-agnostic membership API
    # -------------------------------------------------------------------------

    async def list_memberships(
        self, app_id: str, kind: MembershipKind
    ) -> list[AppUser] | list[GroupAssignment]:
        if kind == MembershipKind.USER:
            return await self.list_app_users(app_id)
        return await self.list_app_groups(app_id)

    async def create_assignment(
        self,
        app_id: str,
        member_id: str,
        kind: MembershipKind,
        credentials: AppUserCredentials | None = None,
    ) -> None:
        if kind == MembershipKind.USER:
            await self.assign_user(app_id, member_id, credentials)
        else:
            await self.assign_group(app_id, member_id)

    async def update_assignment(
        self,
        app_id: str,
        member_id: str,
        kind: MembershipKind,
        credentials: AppUserCredentials,
    ) -> None:
        if kind != MembershipKind.USER:
            raise ValueError("only user assignments carry updatable credentials")
        await self.update_app_user(app_id, member_id, credentials)

    async def delete_assignment(
        self, app_id: str, member_id: str, kind: MembershipKind
    ) -> None:
        if kind == MembershipKind.USER:
            await self.remove_user(app_id, member_id)
        else:
            await self.remove_group(app_id, member_id)


def _safe_json(response: httpx.Response) -> dict | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
