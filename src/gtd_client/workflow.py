"""Inbox processing decision tree.

Clarifying an inbox item walks a fixed set of questions:
- Is it actionable? No: trash it or park it in someday/maybe
- Can it be done in two minutes? Yes: do it now, then remove it
- Otherwise organize it as a next action, a delegated item or a project

Every terminal choice creates the target record (if any) and then deletes
the inbox item. If the delete fails, the created record is deleted again
and the processor stays where it was so the caller can retry.
"""
import enum
import logging
from typing import Awaitable, Callable, Optional

from gtd_core.models import DEFAULT_CONTEXT, Context, SomedayCategory

from .store import GTDStore

logger = logging.getLogger("gtd-client.workflow")


class ProcessStep(str, enum.Enum):
    """Where an inbox item is in the clarify/organize flow."""

    ACTIONABLE = "actionable"
    TWO_MINUTE = "two-minute"
    ORGANIZE = "organize"
    DONE = "done"


class WorkflowTransitionError(Exception):
    """Raised when a decision is made out of order."""

    def __init__(
        self,
        message: str,
        current_step: ProcessStep,
        requested_step: ProcessStep,
        allowed_steps: list[ProcessStep],
    ):
        super().__init__(message)
        self.current_step = current_step
        self.requested_step = requested_step
        self.allowed_steps = allowed_steps


# Maps current step → steps reachable by answering its question
TRANSITION_MATRIX: dict[ProcessStep, list[ProcessStep]] = {
    ProcessStep.ACTIONABLE: [
        ProcessStep.TWO_MINUTE,  # Yes: actionable
        ProcessStep.DONE,        # No: trash or someday/maybe
    ],
    ProcessStep.TWO_MINUTE: [
        ProcessStep.ORGANIZE,    # No: takes longer
        ProcessStep.DONE,        # Yes: done right away
    ],
    ProcessStep.ORGANIZE: [
        ProcessStep.DONE,        # Action, delegation or project
    ],
    ProcessStep.DONE: [],
}


def validate_transition(current: ProcessStep, requested: ProcessStep) -> None:
    """
    Check a move through the decision tree.

    Raises:
        WorkflowTransitionError: If ``requested`` is not reachable from ``current``
    """
    allowed = TRANSITION_MATRIX.get(current, [])
    if requested in allowed:
        return

    if current == ProcessStep.DONE:
        message = "This inbox item has already been processed."
    else:
        names = ", ".join(step.value for step in allowed)
        message = (
            f"Invalid processing step: {current.value} → {requested.value}. "
            f"From {current.value}, you can only go to: {names}."
        )
    logger.warning(f"Blocked transition: {message}")
    raise WorkflowTransitionError(message, current, requested, allowed)


class InboxProcessor:
    """Walks one inbox item through the clarify/organize questions."""

    def __init__(self, store: GTDStore, item_id: str):
        self.store = store
        self.item_id = item_id
        self.step = ProcessStep.ACTIONABLE

    @property
    def item(self):
        """The inbox record being processed, if still loaded."""
        return next((item for item in self.store.inbox if item.id == self.item_id), None)

    @property
    def content(self) -> str:
        item = self.item
        if item is None:
            raise LookupError(f"Inbox item {self.item_id} not found")
        return item.content

    @property
    def is_done(self) -> bool:
        return self.step == ProcessStep.DONE

    def _require(self, *steps: ProcessStep) -> None:
        if self.step not in steps:
            names = ", ".join(step.value for step in steps)
            message = f"Cannot do that at step {self.step.value}; expected {names}."
            raise WorkflowTransitionError(message, self.step, steps[0], list(steps))

    def _advance(self, step: ProcessStep) -> None:
        validate_transition(self.step, step)
        logger.debug(f"Inbox item {self.item_id}: {self.step.value} → {step.value}")
        self.step = step

    async def _finish(
        self,
        description: str,
        undo: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        # Delete the inbox item; on failure, undo whatever was created for it
        try:
            await self.store.delete_inbox_item(self.item_id)
        except Exception:
            if undo is not None:
                await self.store.compensate(description, undo)
            raise
        self._advance(ProcessStep.DONE)

    # ========================================================================
    # Is it actionable?
    # ========================================================================

    async def trash(self) -> None:
        """Not actionable and not worth keeping."""
        self._require(ProcessStep.ACTIONABLE)
        await self._finish("trash")

    async def someday(self, category: SomedayCategory = SomedayCategory.OTHER):
        """Not actionable now; park it in someday/maybe."""
        self._require(ProcessStep.ACTIONABLE)
        item = await self.store.add_someday_maybe(self.content, category)
        await self._finish(
            f"someday/maybe item {item.id} created from inbox item {self.item_id}",
            lambda: self.store.delete_someday_maybe(item.id),
        )
        return item

    def actionable(self) -> None:
        """Yes, it is actionable."""
        self._require(ProcessStep.ACTIONABLE)
        self._advance(ProcessStep.TWO_MINUTE)

    # ========================================================================
    # Two minutes or less?
    # ========================================================================

    async def two_minute(self, can_do_now: bool) -> None:
        """
        Answer the two-minute question.

        True means the item was done on the spot and is removed; False moves
        on to organizing it.
        """
        self._require(ProcessStep.TWO_MINUTE)
        if can_do_now:
            await self._finish("two-minute item")
        else:
            self._advance(ProcessStep.ORGANIZE)

    # ========================================================================
    # Organize
    # ========================================================================

    async def organize_as_action(
        self,
        context: Context = DEFAULT_CONTEXT,
        project_id: Optional[str] = None,
    ):
        """Turn the item into a next action."""
        self._require(ProcessStep.ORGANIZE)
        action = await self.store.add_action(self.content, context, project_id)
        await self._finish(
            f"action {action.id} created from inbox item {self.item_id}",
            lambda: self.store.delete_action(action.id),
        )
        return action

    async def delegate(self, person: str, expected_date: Optional[int] = None):
        """
        Hand the item to someone else and track it as waiting-for.

        Raises:
            ValueError: If person is blank (checked before any API call)
        """
        self._require(ProcessStep.ORGANIZE)
        if not person or not person.strip():
            raise ValueError("person is required to delegate an item")
        waiting = await self.store.add_waiting_for(
            self.content, person.strip(), expected_date=expected_date
        )
        await self._finish(
            f"waiting-for item {waiting.id} created from inbox item {self.item_id}",
            lambda: self.store.delete_waiting_for(waiting.id),
        )
        return waiting

    async def create_project(self, description: str = "") -> str:
        """Turn the item into a project named after it; returns the project id."""
        self._require(ProcessStep.ORGANIZE)
        project_id = await self.store.add_project(self.content, description)
        await self._finish(
            f"project {project_id} created from inbox item {self.item_id}",
            lambda: self.store.delete_project(project_id),
        )
        return project_id
