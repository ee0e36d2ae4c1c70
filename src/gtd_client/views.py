"""Derived views over a GTDStore.

Pure functions: nothing here calls the API or mutates the store.
"""
from collections import Counter
from datetime import date, datetime
from typing import Optional

from gtd_core.models import Context, ProjectStatus, SomedayCategory
from gtd_core.review import REVIEW_STEPS
from gtd_core.timeutil import now_ms

from .store import GTDStore


def _day_of(timestamp_ms: int) -> date:
    # Calendar day in local time
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


# ============================================================================
# Inbox & Projects
# ============================================================================

def unprocessed_inbox(store: GTDStore) -> list:
    return [item for item in store.inbox if not item.processed]


def projects_by_status(store: GTDStore, status: ProjectStatus) -> list:
    value = ProjectStatus(status).value
    return [project for project in store.projects if project.status == value]


def active_projects(store: GTDStore) -> list:
    return projects_by_status(store, ProjectStatus.ACTIVE)


def project_actions(store: GTDStore, project_id: str) -> list:
    return [action for action in store.actions if action.project_id == project_id]


def project_waiting_for(store: GTDStore, project_id: str) -> list:
    return [item for item in store.waiting_for if item.project_id == project_id]


def project_progress(store: GTDStore, project_id: str) -> tuple[int, int]:
    """Return ``(completed, total)`` action counts for a project."""
    actions = project_actions(store, project_id)
    return sum(1 for action in actions if action.completed), len(actions)


# ============================================================================
# Actions
# ============================================================================

def filter_actions(
    store: GTDStore,
    context: Optional[Context] = None,
    show_completed: bool = False,
) -> list:
    """
    Actions for the next-actions list.

    Args:
        store: Loaded store
        context: Only actions tagged with this context (None means all)
        show_completed: Include completed actions
    """
    context_value = Context(context).value if context is not None else None
    return [
        action
        for action in store.actions
        if (show_completed or not action.completed)
        and (context_value is None or action.context == context_value)
    ]


def pending_count_by_context(store: GTDStore) -> dict[str, int]:
    """Open action count for every context, including empty ones."""
    counts = Counter(action.context for action in store.actions if not action.completed)
    return {context.value: counts.get(context.value, 0) for context in Context}


def actions_with_due_date(store: GTDStore) -> list:
    """Open actions that have a due date, soonest first."""
    dated = [a for a in store.actions if a.due_date is not None and not a.completed]
    return sorted(dated, key=lambda action: action.due_date)


def overdue_actions(store: GTDStore, now: Optional[int] = None) -> list:
    cutoff = now if now is not None else now_ms()
    return [action for action in actions_with_due_date(store) if action.due_date < cutoff]


def items_due_on(store: GTDStore, day: date) -> dict[str, list]:
    """Actions due and waiting-for items expected on a calendar day."""
    return {
        "actions": [
            action
            for action in store.actions
            if action.due_date is not None and _day_of(action.due_date) == day
        ],
        "waiting_for": [
            item
            for item in store.waiting_for
            if item.expected_date is not None and _day_of(item.expected_date) == day
        ],
    }


# ============================================================================
# Waiting For & Someday/Maybe
# ============================================================================

def active_waiting_for(store: GTDStore) -> list:
    return [item for item in store.waiting_for if not item.completed]


def completed_waiting_for(store: GTDStore) -> list:
    return [item for item in store.waiting_for if item.completed]


def someday_by_category(store: GTDStore, category: Optional[SomedayCategory] = None) -> list:
    if category is None:
        return list(store.someday_maybe)
    value = SomedayCategory(category).value
    return [item for item in store.someday_maybe if item.category == value]


def category_counts(store: GTDStore) -> dict[str, int]:
    counts = Counter(item.category for item in store.someday_maybe)
    return {category.value: counts.get(category.value, 0) for category in SomedayCategory}


# ============================================================================
# Summaries
# ============================================================================

def sidebar_counts(store: GTDStore) -> dict[str, int]:
    """Badge counts shown next to each list."""
    return {
        "inbox": len(unprocessed_inbox(store)),
        "projects": len(active_projects(store)),
        "actions": sum(1 for action in store.actions if not action.completed),
        "waiting_for": len(active_waiting_for(store)),
        "someday_maybe": len(store.someday_maybe),
    }


def review_stats(store: GTDStore) -> dict:
    """Numbers shown alongside the weekly review checklist."""
    completed = sum(1 for done in store.review.completed_steps if done)
    return {
        "inbox": len(unprocessed_inbox(store)),
        "active_projects": len(active_projects(store)),
        "pending_actions": sum(1 for action in store.actions if not action.completed),
        "waiting_for": len(active_waiting_for(store)),
        "someday_maybe": len(store.someday_maybe),
        "steps_completed": completed,
        "steps_total": len(REVIEW_STEPS),
        "last_review_date": store.review.last_review_date,
    }
