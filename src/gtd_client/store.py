"""Client-side cache of one user's GTD collections.

Every mutation follows the same protocol:
1. call the API
2. on success, apply the same change to the cached collections
3. on failure, log and re-raise with the cache untouched

Composite operations (someday promotion, waiting-for follow-ups) are
sequenced calls. When a later call fails, records created by earlier calls
are deleted again before the original error is re-raised.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from gtd_core.models import DEFAULT_CONTEXT, Context, SomedayCategory
from gtd_core.review import default_review_state, validate_step_index
from gtd_core.schemas import (
    ActionPatch,
    ActionResponse,
    InboxItemPatch,
    InboxItemResponse,
    ProjectPatch,
    ProjectResponse,
    ReviewResponse,
    SomedayMaybePatch,
    SomedayMaybeResponse,
    WaitingForPatch,
    WaitingForResponse,
)

from .api import GTDApiClient

logger = logging.getLogger("gtd-client.store")

T = TypeVar("T")


def _find(records: list, record_id: str):
    return next((record for record in records if record.id == record_id), None)


def _replace(records: list, updated) -> list:
    return [updated if record.id == updated.id else record for record in records]


def _without(records: list, record_id: str) -> list:
    return [record for record in records if record.id != record_id]


def default_review() -> ReviewResponse:
    """Review record of a user who never started a review."""
    state = default_review_state()
    return ReviewResponse(
        last_review_date=state.last_review_date,
        current_step=state.current_step,
        completed_steps=list(state.completed_steps),
    )


class GTDStore:
    """
    In-memory mirror of the server's collections for one session.

    Collections are kept newest first, matching the order the API lists them in.
    """

    def __init__(self, api: GTDApiClient):
        self.api = api
        self.inbox: list[InboxItemResponse] = []
        self.projects: list[ProjectResponse] = []
        self.actions: list[ActionResponse] = []
        self.waiting_for: list[WaitingForResponse] = []
        self.someday_maybe: list[SomedayMaybeResponse] = []
        self.review: ReviewResponse = default_review()
        self.is_loading = False
        self.is_initialized = False
        self._loading: Optional[asyncio.Task] = None

    # ========================================================================
    # Loading
    # ========================================================================

    async def initialize(self) -> None:
        """
        Load every collection in one parallel fetch.

        Concurrent callers share the in-flight fetch; once it has succeeded,
        further calls return immediately. A failed fetch can be retried.
        """
        if self.is_initialized:
            return

        if self._loading is None:
            self._loading = asyncio.create_task(self._fetch_all())
        loading = self._loading
        try:
            await loading
        finally:
            if self._loading is loading and loading.done():
                self._loading = None

    async def _fetch_all(self) -> None:
        self.is_loading = True
        try:
            inbox, projects, actions, waiting_for, someday_maybe, review = await asyncio.gather(
                self.api.get_inbox(),
                self.api.get_projects(),
                self.api.get_actions(),
                self.api.get_waiting_for(),
                self.api.get_someday_maybe(),
                self.api.get_review(),
            )
        except Exception as e:
            logger.error(f"Failed to load data: {e}", exc_info=True)
            raise
        finally:
            self.is_loading = False

        self.inbox = inbox
        self.projects = projects
        self.actions = actions
        self.waiting_for = waiting_for
        self.someday_maybe = someday_maybe
        self.review = review
        self.is_initialized = True
        logger.info(
            f"Loaded {len(inbox)} inbox items, {len(projects)} projects, {len(actions)} actions, "
            f"{len(waiting_for)} waiting-for items, {len(someday_maybe)} someday/maybe items"
        )

    async def _call(self, description: str, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except Exception as e:
            logger.error(f"Failed to {description}: {e}", exc_info=True)
            raise

    async def compensate(self, description: str, undo: Callable[[], Awaitable[None]]) -> None:
        # The caller re-raises the original error; a failed undo is only logged
        try:
            await undo()
            logger.info(f"Rolled back {description}")
        except Exception as e:
            logger.error(f"Failed to roll back {description}: {e}", exc_info=True)

    # ========================================================================
    # Inbox
    # ========================================================================

    async def add_to_inbox(self, content: str) -> InboxItemResponse:
        item = await self._call("add inbox item", self.api.add_inbox_item(content))
        self.inbox = [item] + self.inbox
        return item

    async def process_inbox_item(self, item_id: str) -> InboxItemResponse:
        """Mark an inbox item processed without removing it."""
        patch = InboxItemPatch(processed=True)
        item = await self._call("process inbox item", self.api.update_inbox_item(item_id, patch))
        self.inbox = _replace(self.inbox, item)
        return item

    async def delete_inbox_item(self, item_id: str) -> None:
        await self._call("delete inbox item", self.api.delete_inbox_item(item_id))
        self.inbox = _without(self.inbox, item_id)

    # ========================================================================
    # Projects
    # ========================================================================

    async def add_project(self, name: str, description: str = "") -> str:
        """Create a project and return its id."""
        project = await self._call("add project", self.api.add_project(name, description))
        self.projects = [project] + self.projects
        return project.id

    async def update_project(self, project_id: str, patch: ProjectPatch) -> ProjectResponse:
        project = await self._call("update project", self.api.update_project(project_id, patch))
        self.projects = _replace(self.projects, project)
        return project

    async def delete_project(self, project_id: str) -> None:
        """Delete a project; its actions and waiting-for items lose the reference."""
        await self._call("delete project", self.api.delete_project(project_id))
        self.projects = _without(self.projects, project_id)
        self.actions = [
            action.model_copy(update={"project_id": None}) if action.project_id == project_id else action
            for action in self.actions
        ]
        self.waiting_for = [
            item.model_copy(update={"project_id": None}) if item.project_id == project_id else item
            for item in self.waiting_for
        ]

    # ========================================================================
    # Actions
    # ========================================================================

    async def add_action(
        self,
        content: str,
        context: Context = DEFAULT_CONTEXT,
        project_id: Optional[str] = None,
        due_date: Optional[int] = None,
    ) -> ActionResponse:
        action = await self._call(
            "add action", self.api.add_action(content, context, project_id, due_date)
        )
        self.actions = [action] + self.actions
        return action

    async def update_action(self, action_id: str, patch: ActionPatch) -> ActionResponse:
        action = await self._call("update action", self.api.update_action(action_id, patch))
        self.actions = _replace(self.actions, action)
        return action

    async def toggle_action_complete(self, action_id: str) -> Optional[ActionResponse]:
        """Flip an action's completed flag. Unknown ids are ignored."""
        action = _find(self.actions, action_id)
        if action is None:
            logger.debug(f"Toggle ignored, action {action_id} not loaded")
            return None
        return await self.update_action(action_id, ActionPatch(completed=not action.completed))

    async def delete_action(self, action_id: str) -> None:
        await self._call("delete action", self.api.delete_action(action_id))
        self.actions = _without(self.actions, action_id)

    # ========================================================================
    # Waiting For
    # ========================================================================

    async def add_waiting_for(
        self,
        content: str,
        person: str,
        project_id: Optional[str] = None,
        expected_date: Optional[int] = None,
    ) -> WaitingForResponse:
        item = await self._call(
            "add waiting-for item",
            self.api.add_waiting_for(content, person, project_id, expected_date),
        )
        self.waiting_for = [item] + self.waiting_for
        return item

    async def update_waiting_for(self, item_id: str, patch: WaitingForPatch) -> WaitingForResponse:
        item = await self._call(
            "update waiting-for item", self.api.update_waiting_for(item_id, patch)
        )
        self.waiting_for = _replace(self.waiting_for, item)
        return item

    async def toggle_waiting_for_complete(self, item_id: str) -> Optional[WaitingForResponse]:
        """Flip a waiting-for item's completed flag. Unknown ids are ignored."""
        item = _find(self.waiting_for, item_id)
        if item is None:
            logger.debug(f"Toggle ignored, waiting-for item {item_id} not loaded")
            return None
        return await self.update_waiting_for(item_id, WaitingForPatch(completed=not item.completed))

    async def delete_waiting_for(self, item_id: str) -> None:
        await self._call("delete waiting-for item", self.api.delete_waiting_for(item_id))
        self.waiting_for = _without(self.waiting_for, item_id)

    async def convert_waiting_for_to_action(
        self,
        item_id: str,
        content: Optional[str] = None,
        context: Context = DEFAULT_CONTEXT,
    ) -> ActionResponse:
        """
        Create a follow-up action for a delegated item.

        The waiting-for item stays in place. The action defaults to
        ``"Follow up: <content>"`` and inherits the item's project.

        Raises:
            LookupError: If the item is not loaded
        """
        item = _find(self.waiting_for, item_id)
        if item is None:
            raise LookupError(f"Waiting-for item {item_id} not found")
        return await self.add_action(
            content or f"Follow up: {item.content}",
            context,
            project_id=item.project_id,
        )

    async def follow_up_waiting_for(
        self,
        item_id: str,
        content: str,
        person: Optional[str] = None,
        expected_date: Optional[int] = None,
    ) -> WaitingForResponse:
        """
        Record a new waiting-for entry chasing the same person.

        Raises:
            LookupError: If the item is not loaded
        """
        item = _find(self.waiting_for, item_id)
        if item is None:
            raise LookupError(f"Waiting-for item {item_id} not found")
        return await self.add_waiting_for(
            content,
            person or item.person,
            project_id=item.project_id,
            expected_date=expected_date,
        )

    # ========================================================================
    # Someday/Maybe
    # ========================================================================

    async def add_someday_maybe(
        self, content: str, category: SomedayCategory = SomedayCategory.OTHER
    ) -> SomedayMaybeResponse:
        item = await self._call(
            "add someday/maybe item", self.api.add_someday_maybe(content, category)
        )
        self.someday_maybe = [item] + self.someday_maybe
        return item

    async def update_someday_maybe(
        self, item_id: str, patch: SomedayMaybePatch
    ) -> SomedayMaybeResponse:
        item = await self._call(
            "update someday/maybe item", self.api.update_someday_maybe(item_id, patch)
        )
        self.someday_maybe = _replace(self.someday_maybe, item)
        return item

    async def delete_someday_maybe(self, item_id: str) -> None:
        await self._call("delete someday/maybe item", self.api.delete_someday_maybe(item_id))
        self.someday_maybe = _without(self.someday_maybe, item_id)

    def _someday_item(self, item_id: str) -> SomedayMaybeResponse:
        item = _find(self.someday_maybe, item_id)
        if item is None:
            raise LookupError(f"Someday/maybe item {item_id} not found")
        return item

    async def move_someday_to_action(
        self,
        item_id: str,
        context: Context = DEFAULT_CONTEXT,
        project_id: Optional[str] = None,
    ) -> ActionResponse:
        """
        Promote a someday/maybe idea to a next action.

        Raises:
            LookupError: If the item is not loaded (no API call is made)
        """
        item = self._someday_item(item_id)
        action = await self.add_action(item.content, context, project_id)
        try:
            await self.delete_someday_maybe(item_id)
        except Exception:
            await self.compensate(
                f"action {action.id} promoted from someday/maybe item {item_id}",
                lambda: self.delete_action(action.id),
            )
            raise
        return action

    async def move_someday_to_waiting_for(
        self,
        item_id: str,
        person: str,
        project_id: Optional[str] = None,
        expected_date: Optional[int] = None,
    ) -> WaitingForResponse:
        """
        Promote a someday/maybe idea to a delegated waiting-for item.

        Raises:
            LookupError: If the item is not loaded (no API call is made)
        """
        item = self._someday_item(item_id)
        waiting = await self.add_waiting_for(item.content, person, project_id, expected_date)
        try:
            await self.delete_someday_maybe(item_id)
        except Exception:
            await self.compensate(
                f"waiting-for item {waiting.id} promoted from someday/maybe item {item_id}",
                lambda: self.delete_waiting_for(waiting.id),
            )
            raise
        return waiting

    # ========================================================================
    # Review
    # ========================================================================

    async def start_review(self) -> ReviewResponse:
        self.review = await self._call("start review", self.api.start_review())
        return self.review

    async def complete_review_step(self, step: int) -> ReviewResponse:
        """
        Complete one review step.

        The step is checked locally first so an out-of-range index never
        reaches the network.

        Raises:
            ReviewStepError: If the step is outside 0..6
        """
        validate_step_index(step)
        self.review = await self._call(
            f"complete review step {step}", self.api.complete_review_step(step)
        )
        return self.review

    async def reset_review(self) -> ReviewResponse:
        self.review = await self._call("reset review", self.api.reset_review())
        return self.review
