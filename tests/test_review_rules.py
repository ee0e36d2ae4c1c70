"""Tests for weekly review step sequencing."""
import pytest

from gtd_core.review import (
    REVIEW_STEPS,
    ReviewState,
    ReviewStepError,
    complete_step,
    default_review_state,
    is_review_complete,
    start_review_state,
    step_title,
    validate_review_fields,
    validate_step_index,
)


class TestReviewDefaults:
    """Test the never-reviewed state and starting a cycle."""

    def test_seven_steps(self):
        assert len(REVIEW_STEPS) == 7
        assert REVIEW_STEPS[0].startswith("Clear your inbox")
        assert REVIEW_STEPS[6].startswith("Capture new ideas")

    def test_default_state(self):
        state = default_review_state()
        assert state.last_review_date is None
        assert state.current_step == 0
        assert state.completed_steps == (False,) * 7
        assert not state.is_complete

    def test_start_clears_previous_cycle(self):
        state = start_review_state(now=1_700_000_000_000)
        assert state.last_review_date == 1_700_000_000_000
        assert state.current_step == 0
        assert not any(state.completed_steps)


class TestCompleteStep:
    """Test marking steps complete in the lenient (default) mode."""

    def test_complete_current_step_advances(self):
        state = complete_step(default_review_state(), 0)
        assert state.completed_steps[0] is True
        assert state.current_step == 1

    def test_out_of_order_completion_moves_pointer_past_step(self):
        """Completing step 2 from step 0 marks only step 2 and moves to 3."""
        state = complete_step(default_review_state(), 2)
        assert state.completed_steps == (False, False, True, False, False, False, False)
        assert state.current_step == 3

    def test_pointer_never_moves_backwards(self):
        state = complete_step(default_review_state(), 4)
        state = complete_step(state, 1)
        assert state.current_step == 5
        assert state.completed_steps[1] and state.completed_steps[4]

    def test_completing_every_step_finishes_review(self):
        state = default_review_state()
        for step in range(7):
            state = complete_step(state, step)
        assert state.is_complete
        assert state.current_step == 7

    def test_completion_does_not_change_review_date(self):
        state = complete_step(start_review_state(now=42), 0)
        assert state.last_review_date == 42

    def test_original_state_is_unchanged(self):
        original = default_review_state()
        complete_step(original, 3)
        assert original.current_step == 0
        assert not any(original.completed_steps)

    @pytest.mark.parametrize("step", [-1, 7, 100])
    def test_out_of_range_step_rejected(self, step):
        with pytest.raises(ReviewStepError) as exc_info:
            complete_step(default_review_state(), step)
        assert exc_info.value.step == step
        assert "Invalid step number" in str(exc_info.value)

    @pytest.mark.parametrize("step", ["2", 2.0, True, None])
    def test_non_integer_step_rejected(self, step):
        with pytest.raises(ReviewStepError):
            validate_step_index(step)


class TestStrictOrder:
    """Test the strict ordering policy."""

    def test_current_step_allowed(self):
        state = complete_step(default_review_state(), 0, strict=True)
        assert state.current_step == 1

    def test_skipping_ahead_blocked(self):
        with pytest.raises(ReviewStepError) as exc_info:
            complete_step(default_review_state(), 2, strict=True)
        assert exc_info.value.current_step == 0
        assert "in order" in str(exc_info.value)

    def test_recompleting_done_step_allowed(self):
        state = complete_step(default_review_state(), 0, strict=True)
        again = complete_step(state, 0, strict=True)
        assert again == state


class TestReviewHelpers:
    """Test validation helpers and titles."""

    def test_is_review_complete_requires_seven_entries(self):
        assert is_review_complete([True] * 7)
        assert not is_review_complete([True] * 6)
        assert not is_review_complete([True] * 6 + [False])

    def test_validate_review_fields(self):
        validate_review_fields(7, [True] * 7)
        with pytest.raises(ReviewStepError):
            validate_review_fields(8, [False] * 7)
        with pytest.raises(ReviewStepError):
            validate_review_fields(0, [False] * 6)

    def test_step_title(self):
        assert step_title(4) == "Review Waiting For - Follow up if needed"
        with pytest.raises(ReviewStepError):
            step_title(7)

    def test_state_is_immutable(self):
        state = ReviewState()
        with pytest.raises(AttributeError):
            state.current_step = 3
