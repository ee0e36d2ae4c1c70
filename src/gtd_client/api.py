"""Async HTTP client for the GTD Core API.

One coroutine per endpoint. Responses are parsed into the same pydantic
schemas the server serializes with, so records arrive typed and
snake_cased. Every non-2xx response raises ApiError carrying the server's
``detail`` message; transport failures propagate as httpx exceptions.
"""
import logging
from typing import Optional, TypeVar

import httpx
from pydantic import BaseModel

from gtd_core.models import Context, SomedayCategory
from gtd_core.schemas import (
    ActionCreate,
    ActionPatch,
    ActionResponse,
    AuthResponse,
    CurrentUserResponse,
    InboxItemCreate,
    InboxItemPatch,
    InboxItemResponse,
    ItemEnvelope,
    ItemListEnvelope,
    PatchModel,
    ProjectCreate,
    ProjectPatch,
    ProjectResponse,
    ReviewEnvelope,
    ReviewPatch,
    ReviewResponse,
    ReviewStepsResponse,
    SomedayMaybeCreate,
    SomedayMaybePatch,
    SomedayMaybeResponse,
    UserResponse,
    WaitingForCreate,
    WaitingForPatch,
    WaitingForResponse,
)

from .config import get_client_settings

logger = logging.getLogger("gtd-client.api")

R = TypeVar("R", bound=BaseModel)


class ApiError(Exception):
    """Raised for any non-2xx response from the API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _body(model: BaseModel) -> dict:
    # Only fields the caller set travel over the wire
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)


class GTDApiClient:
    """Thin typed wrapper over httpx.AsyncClient."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_client_settings()
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            timeout=timeout if timeout is not None else settings.http_timeout,
            transport=transport,
        )

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        """Replace (or clear) the bearer token sent with each request."""
        self._token = token

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GTDApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        response = await self._client.request(method, path, json=json, headers=headers)
        if response.is_error:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = None
            if not isinstance(detail, str):
                detail = response.reason_phrase or f"HTTP {response.status_code}"
            logger.warning(f"{method} {path} failed with {response.status_code}: {detail}")
            raise ApiError(response.status_code, detail)

        return response.json()

    async def _list(self, path: str, schema: type[R]) -> list[R]:
        payload = await self._request("GET", path)
        return ItemListEnvelope[schema].model_validate(payload).items

    async def _create(self, path: str, body: BaseModel, schema: type[R]) -> R:
        payload = await self._request("POST", path, json=_body(body))
        return ItemEnvelope[schema].model_validate(payload).item

    async def _patch(self, path: str, patch: PatchModel, schema: type[R]) -> R:
        payload = await self._request("PATCH", path, json=_body(patch))
        return ItemEnvelope[schema].model_validate(payload).item

    async def _delete(self, path: str) -> None:
        await self._request("DELETE", path)

    # ========================================================================
    # Auth
    # ========================================================================

    async def register(self, email: str, password: str, name: str) -> AuthResponse:
        payload = await self._request(
            "POST", "/api/auth/register", json={"email": email, "password": password, "name": name}
        )
        return AuthResponse.model_validate(payload)

    async def login(self, email: str, password: str) -> AuthResponse:
        payload = await self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        return AuthResponse.model_validate(payload)

    async def google_login(self, code: str, redirect_uri: Optional[str] = None) -> AuthResponse:
        body = {"code": code}
        if redirect_uri:
            body["redirectUri"] = redirect_uri
        payload = await self._request("POST", "/api/auth/google", json=body)
        return AuthResponse.model_validate(payload)

    async def me(self) -> UserResponse:
        payload = await self._request("GET", "/api/auth/me")
        return CurrentUserResponse.model_validate(payload).user

    # ========================================================================
    # Inbox
    # ========================================================================

    async def get_inbox(self) -> list[InboxItemResponse]:
        return await self._list("/api/inbox", InboxItemResponse)

    async def add_inbox_item(self, content: str) -> InboxItemResponse:
        return await self._create("/api/inbox", InboxItemCreate(content=content), InboxItemResponse)

    async def update_inbox_item(self, item_id: str, patch: InboxItemPatch) -> InboxItemResponse:
        return await self._patch(f"/api/inbox/{item_id}", patch, InboxItemResponse)

    async def delete_inbox_item(self, item_id: str) -> None:
        await self._delete(f"/api/inbox/{item_id}")

    # ========================================================================
    # Projects
    # ========================================================================

    async def get_projects(self) -> list[ProjectResponse]:
        return await self._list("/api/projects", ProjectResponse)

    async def add_project(self, name: str, description: str = "") -> ProjectResponse:
        body = ProjectCreate(name=name, description=description)
        return await self._create("/api/projects", body, ProjectResponse)

    async def update_project(self, project_id: str, patch: ProjectPatch) -> ProjectResponse:
        return await self._patch(f"/api/projects/{project_id}", patch, ProjectResponse)

    async def delete_project(self, project_id: str) -> None:
        await self._delete(f"/api/projects/{project_id}")

    # ========================================================================
    # Actions
    # ========================================================================

    async def get_actions(self) -> list[ActionResponse]:
        return await self._list("/api/actions", ActionResponse)

    async def add_action(
        self,
        content: str,
        context: Context = Context.ANYWHERE,
        project_id: Optional[str] = None,
        due_date: Optional[int] = None,
    ) -> ActionResponse:
        body = ActionCreate(content=content, context=context, project_id=project_id, due_date=due_date)
        return await self._create("/api/actions", body, ActionResponse)

    async def update_action(self, action_id: str, patch: ActionPatch) -> ActionResponse:
        return await self._patch(f"/api/actions/{action_id}", patch, ActionResponse)

    async def delete_action(self, action_id: str) -> None:
        await self._delete(f"/api/actions/{action_id}")

    # ========================================================================
    # Waiting For
    # ========================================================================

    async def get_waiting_for(self) -> list[WaitingForResponse]:
        return await self._list("/api/waiting-for", WaitingForResponse)

    async def add_waiting_for(
        self,
        content: str,
        person: str,
        project_id: Optional[str] = None,
        expected_date: Optional[int] = None,
    ) -> WaitingForResponse:
        body = WaitingForCreate(
            content=content, person=person, project_id=project_id, expected_date=expected_date
        )
        return await self._create("/api/waiting-for", body, WaitingForResponse)

    async def update_waiting_for(self, item_id: str, patch: WaitingForPatch) -> WaitingForResponse:
        return await self._patch(f"/api/waiting-for/{item_id}", patch, WaitingForResponse)

    async def delete_waiting_for(self, item_id: str) -> None:
        await self._delete(f"/api/waiting-for/{item_id}")

    # ========================================================================
    # Someday/Maybe
    # ========================================================================

    async def get_someday_maybe(self) -> list[SomedayMaybeResponse]:
        return await self._list("/api/someday-maybe", SomedayMaybeResponse)

    async def add_someday_maybe(
        self, content: str, category: SomedayCategory = SomedayCategory.OTHER
    ) -> SomedayMaybeResponse:
        body = SomedayMaybeCreate(content=content, category=category)
        return await self._create("/api/someday-maybe", body, SomedayMaybeResponse)

    async def update_someday_maybe(
        self, item_id: str, patch: SomedayMaybePatch
    ) -> SomedayMaybeResponse:
        return await self._patch(f"/api/someday-maybe/{item_id}", patch, SomedayMaybeResponse)

    async def delete_someday_maybe(self, item_id: str) -> None:
        await self._delete(f"/api/someday-maybe/{item_id}")

    # ========================================================================
    # Review
    # ========================================================================

    async def get_review(self) -> ReviewResponse:
        payload = await self._request("GET", "/api/review")
        return ReviewEnvelope.model_validate(payload).review

    async def update_review(self, patch: ReviewPatch) -> ReviewResponse:
        payload = await self._request("PUT", "/api/review", json=_body(patch))
        return ReviewEnvelope.model_validate(payload).review

    async def get_review_steps(self) -> list[str]:
        payload = await self._request("GET", "/api/review/steps")
        return ReviewStepsResponse.model_validate(payload).steps

    async def start_review(self) -> ReviewResponse:
        payload = await self._request("POST", "/api/review/start")
        return ReviewEnvelope.model_validate(payload).review

    async def complete_review_step(self, step: int) -> ReviewResponse:
        payload = await self._request("POST", f"/api/review/step/{step}")
        return ReviewEnvelope.model_validate(payload).review

    async def reset_review(self) -> ReviewResponse:
        payload = await self._request("POST", "/api/review/reset")
        return ReviewEnvelope.model_validate(payload).review
