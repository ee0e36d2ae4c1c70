"""Weekly review sequencer over a GTDStore."""
import logging

from gtd_core.review import REVIEW_STEPS, is_review_complete, validate_step_index

from .store import GTDStore

logger = logging.getLogger("gtd-client.review")


class WeeklyReview:
    """Walks the seven review steps, persisting progress through the store."""

    def __init__(self, store: GTDStore):
        self.store = store

    @property
    def steps(self) -> tuple[str, ...]:
        return REVIEW_STEPS

    @property
    def current_step(self) -> int:
        return self.store.review.current_step

    @property
    def current_title(self):
        """Title of the step to do next, or None once every step is past."""
        if self.current_step >= len(REVIEW_STEPS):
            return None
        return REVIEW_STEPS[self.current_step]

    @property
    def progress(self) -> float:
        """Fraction of steps completed, 0.0 to 1.0."""
        done = sum(1 for completed in self.store.review.completed_steps if completed)
        return done / len(REVIEW_STEPS)

    @property
    def is_complete(self) -> bool:
        return is_review_complete(self.store.review.completed_steps)

    def can_complete(self, step: int) -> bool:
        """Steps up to the current one are offered; later ones stay locked."""
        return 0 <= step < len(REVIEW_STEPS) and step <= self.current_step

    async def start(self):
        """Begin a new review cycle."""
        review = await self.store.start_review()
        logger.info("Weekly review started")
        return review

    async def complete(self, step: int):
        """
        Complete a step.

        Raises:
            ReviewStepError: If the step is outside 0..6 (no API call is made)
        """
        validate_step_index(step)
        review = await self.store.complete_review_step(step)
        if is_review_complete(review.completed_steps):
            logger.info("Weekly review complete")
        return review

    async def reset(self):
        """Forget review progress entirely."""
        return await self.store.reset_review()
