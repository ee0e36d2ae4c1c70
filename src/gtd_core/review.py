"""Weekly review step sequencing.

The weekly review is a fixed checklist of seven steps. Review state is
``(last_review_date, current_step, completed_steps[7])``:
- start: clears every step, rewinds to step 0 and stamps the review date
- complete_step: marks one step done and moves the pointer forward
- reset: back to the state of a user who never reviewed

The rules here are shared by the API and the client so both reject the same
input before anything is persisted.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from .models import REVIEW_STEP_COUNT

logger = logging.getLogger("gtd-core.review")


REVIEW_STEPS: tuple[str, ...] = (
    "Clear your inbox - Process all items",
    "Review your calendar - Check upcoming events",
    "Review Next Actions - Are they still relevant?",
    "Review Projects - Update status and add new actions",
    "Review Waiting For - Follow up if needed",
    "Review Someday/Maybe - Move items to active if ready",
    "Capture new ideas - Anything on your mind?",
)


class ReviewStepError(ValueError):
    """Raised when a review step cannot be completed."""

    def __init__(self, message: str, step: object, current_step: Optional[int] = None):
        super().__init__(message)
        self.step = step
        self.current_step = current_step


def _empty_steps() -> list[bool]:
    return [False] * REVIEW_STEP_COUNT


@dataclass(frozen=True)
class ReviewState:
    """Immutable snapshot of a user's review progress."""

    last_review_date: Optional[int] = None
    current_step: int = 0
    completed_steps: tuple[bool, ...] = field(default_factory=lambda: tuple(_empty_steps()))

    @property
    def is_complete(self) -> bool:
        return is_review_complete(self.completed_steps)


def default_review_state() -> ReviewState:
    """State of a user who has never started a review."""
    return ReviewState()


def start_review_state(now: int) -> ReviewState:
    """Begin a new cycle, discarding the previous one."""
    return ReviewState(last_review_date=now, current_step=0, completed_steps=tuple(_empty_steps()))


def is_review_complete(completed_steps) -> bool:
    """True once every step of the cycle has been completed."""
    return len(completed_steps) == REVIEW_STEP_COUNT and all(completed_steps)


def validate_step_index(step: object) -> int:
    """
    Check that a step index addresses one of the seven steps.

    Args:
        step: Requested step index

    Returns:
        The step as an int

    Raises:
        ReviewStepError: If the step is not an integer in 0..6
    """
    if isinstance(step, bool) or not isinstance(step, int):
        raise ReviewStepError(f"Invalid step number: {step!r}", step)
    if step < 0 or step >= REVIEW_STEP_COUNT:
        raise ReviewStepError(
            f"Invalid step number: {step}. Steps are numbered 0 to {REVIEW_STEP_COUNT - 1}.",
            step,
        )
    return step


def validate_review_fields(current_step: int, completed_steps) -> None:
    """
    Validate a full review document before it replaces the stored one.

    Raises:
        ReviewStepError: If the step pointer or the step list is malformed
    """
    if len(completed_steps) != REVIEW_STEP_COUNT:
        raise ReviewStepError(
            f"completedSteps must contain exactly {REVIEW_STEP_COUNT} entries",
            current_step,
        )
    if current_step < 0 or current_step > REVIEW_STEP_COUNT:
        raise ReviewStepError(
            f"currentStep must be between 0 and {REVIEW_STEP_COUNT}",
            current_step,
        )


def complete_step(state: ReviewState, step: object, strict: bool = False) -> ReviewState:
    """
    Mark a step complete and advance the step pointer.

    The pointer never moves backwards within a cycle: completing an earlier
    step again leaves it where it is.

    Args:
        state: Current review state
        step: Index of the step to complete (0..6)
        strict: When True, only the current step (or an already completed
            one) may be completed

    Returns:
        New review state

    Raises:
        ReviewStepError: If the step is out of range, or out of order in strict mode
    """
    index = validate_step_index(step)

    if strict and index != state.current_step and not state.completed_steps[index]:
        message = (
            f"Cannot complete step {index} while step {state.current_step} is current. "
            f"Review steps must be completed in order."
        )
        logger.warning(f"Blocked review step: {message}")
        raise ReviewStepError(message, index, state.current_step)

    steps = list(state.completed_steps)
    steps[index] = True
    return replace(
        state,
        current_step=max(state.current_step, index + 1),
        completed_steps=tuple(steps),
    )


def step_title(step: int) -> str:
    """Human-readable title of a step."""
    return REVIEW_STEPS[validate_step_index(step)]
