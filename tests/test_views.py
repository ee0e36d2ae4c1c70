"""Tests for derived views over a store."""
from datetime import date, datetime

import pytest

from gtd_client import views
from gtd_client.store import GTDStore
from gtd_core.schemas import (
    ActionResponse,
    InboxItemResponse,
    ProjectResponse,
    ReviewResponse,
    SomedayMaybeResponse,
    WaitingForResponse,
)


def _ms(year, month, day, hour=12):
    return int(datetime(year, month, day, hour).timestamp() * 1000)


@pytest.fixture
def store():
    store = GTDStore(api=None)
    store.inbox = [
        InboxItemResponse(id="i1", content="new", processed=False, created_at=3),
        InboxItemResponse(id="i2", content="old", processed=True, created_at=1),
    ]
    store.projects = [
        ProjectResponse(id="p1", name="Website", status="active", created_at=2),
        ProjectResponse(id="p2", name="Garden", status="on-hold", created_at=1),
    ]
    store.actions = [
        ActionResponse(id="a1", content="Write copy", context="@computer", project_id="p1",
                       due_date=_ms(2026, 10, 20), created_at=5),
        ActionResponse(id="a2", content="Buy soil", context="@errands", project_id="p2",
                       due_date=_ms(2026, 10, 1), created_at=4),
        ActionResponse(id="a3", content="Review layout", context="@computer", project_id="p1",
                       completed=True, created_at=3),
        ActionResponse(id="a4", content="Call Sam", context="@phone", created_at=2),
    ]
    store.waiting_for = [
        WaitingForResponse(id="w1", content="Logo", person="Sam", project_id="p1",
                           expected_date=_ms(2026, 10, 20, 9), created_at=2),
        WaitingForResponse(id="w2", content="Invoice", person="Kim", completed=True, created_at=1),
    ]
    store.someday_maybe = [
        SomedayMaybeResponse(id="s1", content="Piano", category="hobby", created_at=2),
        SomedayMaybeResponse(id="s2", content="Spanish", category="learning", created_at=1),
        SomedayMaybeResponse(id="s3", content="Kayak", category="hobby", created_at=0),
    ]
    store.review = ReviewResponse(
        last_review_date=100, current_step=2, completed_steps=[True, True] + [False] * 5
    )
    return store


class TestListViews:
    """Test filtering and grouping."""

    def test_unprocessed_inbox(self, store):
        assert [item.id for item in views.unprocessed_inbox(store)] == ["i1"]

    def test_projects_by_status(self, store):
        assert [p.id for p in views.active_projects(store)] == ["p1"]
        assert [p.id for p in views.projects_by_status(store, "on-hold")] == ["p2"]

    def test_filter_actions(self, store):
        assert [a.id for a in views.filter_actions(store)] == ["a1", "a2", "a4"]
        assert [a.id for a in views.filter_actions(store, "@computer")] == ["a1"]
        assert [a.id for a in views.filter_actions(store, "@computer", show_completed=True)] == ["a1", "a3"]

    def test_pending_count_by_context(self, store):
        counts = views.pending_count_by_context(store)
        assert counts["@computer"] == 1
        assert counts["@errands"] == 1
        assert counts["@phone"] == 1
        assert counts["@home"] == 0
        assert len(counts) == 6

    def test_project_views(self, store):
        assert [a.id for a in views.project_actions(store, "p1")] == ["a1", "a3"]
        assert [w.id for w in views.project_waiting_for(store, "p1")] == ["w1"]
        assert views.project_progress(store, "p1") == (1, 2)
        assert views.project_progress(store, "missing") == (0, 0)

    def test_waiting_for_split(self, store):
        assert [w.id for w in views.active_waiting_for(store)] == ["w1"]
        assert [w.id for w in views.completed_waiting_for(store)] == ["w2"]

    def test_someday_categories(self, store):
        assert [s.id for s in views.someday_by_category(store, "hobby")] == ["s1", "s3"]
        assert len(views.someday_by_category(store)) == 3
        assert views.category_counts(store) == {
            "personal": 0, "work": 0, "hobby": 2, "learning": 1, "other": 0,
        }


class TestDates:
    """Test due-date views."""

    def test_actions_with_due_date_soonest_first(self, store):
        assert [a.id for a in views.actions_with_due_date(store)] == ["a2", "a1"]

    def test_overdue(self, store):
        now = _ms(2026, 10, 10)
        assert [a.id for a in views.overdue_actions(store, now=now)] == ["a2"]

    def test_items_due_on(self, store):
        due = views.items_due_on(store, date(2026, 10, 20))
        assert [a.id for a in due["actions"]] == ["a1"]
        assert [w.id for w in due["waiting_for"]] == ["w1"]
        assert views.items_due_on(store, date(2026, 10, 21)) == {"actions": [], "waiting_for": []}


class TestSummaries:
    """Test badge counts and review stats."""

    def test_sidebar_counts(self, store):
        assert views.sidebar_counts(store) == {
            "inbox": 1,
            "projects": 1,
            "actions": 3,
            "waiting_for": 1,
            "someday_maybe": 3,
        }

    def test_review_stats(self, store):
        stats = views.review_stats(store)
        assert stats["steps_completed"] == 2
        assert stats["steps_total"] == 7
        assert stats["pending_actions"] == 3
        assert stats["last_review_date"] == 100
