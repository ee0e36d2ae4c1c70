"""Tests for the client cache against the real API running in-process."""
import asyncio

import pytest

from gtd_client.api import ApiError
from gtd_client.session import AuthSession
from gtd_client.store import GTDStore
from gtd_client.workflow import InboxProcessor
from gtd_core.review import ReviewStepError
from gtd_core.schemas import ActionPatch, ProjectPatch


class TestInitialize:
    """Test loading the cache."""

    def test_loads_every_collection(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.api.add_inbox_item("Call dentist")
            await store.api.add_project("Launch website")
            await store.api.add_action("Buy milk")
            await store.api.add_waiting_for("Report", "Sam")
            await store.api.add_someday_maybe("Learn piano")

            assert not store.is_initialized
            await store.initialize()
            await store.api.aclose()
            return store

        store = asyncio.run(scenario())
        assert store.is_initialized
        assert not store.is_loading
        assert [item.content for item in store.inbox] == ["Call dentist"]
        assert [project.name for project in store.projects] == ["Launch website"]
        assert store.actions[0].context == "@anywhere"
        assert store.waiting_for[0].person == "Sam"
        assert store.someday_maybe[0].category == "other"
        assert store.review.completed_steps == [False] * 7

    def test_concurrent_calls_share_one_fetch(self, store_factory):
        async def scenario():
            store = await store_factory()
            calls = {"inbox": 0}
            original = store.api.get_inbox

            async def counting_get_inbox():
                calls["inbox"] += 1
                return await original()

            store.api.get_inbox = counting_get_inbox
            await asyncio.gather(store.initialize(), store.initialize(), store.initialize())
            await store.initialize()
            await store.api.aclose()
            return calls

        assert asyncio.run(scenario()) == {"inbox": 1}

    def test_failure_leaves_cache_empty_and_retryable(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.api.add_inbox_item("x")
            token = store.api.token
            store.api.set_token("bogus")

            with pytest.raises(ApiError) as exc_info:
                await store.initialize()
            assert exc_info.value.status_code == 401
            assert not store.is_initialized
            assert store.inbox == []

            store.api.set_token(token)
            await store.initialize()
            assert len(store.inbox) == 1
            await store.api.aclose()

        asyncio.run(scenario())


class TestMutations:
    """Each mutation reaches the server before it touches the cache."""

    def test_add_and_toggle_action(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            action = await store.add_action("Buy milk", "@errands")
            assert store.actions[0].id == action.id

            toggled = await store.toggle_action_complete(action.id)
            assert toggled.completed is True
            assert store.actions[0].completed is True

            server = await store.api.get_actions()
            assert server[0].completed is True
            await store.api.aclose()

        asyncio.run(scenario())

    def test_toggle_unknown_id_is_noop(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            assert await store.toggle_action_complete("missing") is None
            assert await store.toggle_waiting_for_complete("missing") is None
            await store.api.aclose()

        asyncio.run(scenario())

    def test_failed_update_leaves_cache_untouched(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            action = await store.add_action("Buy milk")
            await store.api.delete_action(action.id)  # Gone on the server only

            with pytest.raises(ApiError) as exc_info:
                await store.update_action(action.id, ActionPatch(content="Buy oat milk"))
            assert exc_info.value.status_code == 404
            assert exc_info.value.message == "Action not found"
            assert store.actions[0].content == "Buy milk"
            await store.api.aclose()

        asyncio.run(scenario())

    def test_patch_sends_only_set_fields(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            action = await store.add_action("Email Bob", "@computer", due_date=99)
            updated = await store.update_action(action.id, ActionPatch(due_date=None))
            await store.api.aclose()
            return updated

        updated = asyncio.run(scenario())
        assert updated.due_date is None
        assert updated.context == "@computer"
        assert updated.content == "Email Bob"

    def test_delete_project_unlinks_cached_dependents(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            project_id = await store.add_project("Launch website")
            action = await store.add_action("Write copy", project_id=project_id)
            waiting = await store.add_waiting_for("Logo", "Sam", project_id=project_id)

            await store.update_project(project_id, ProjectPatch(status="on-hold"))
            assert store.projects[0].status == "on-hold"

            await store.delete_project(project_id)
            assert store.projects == []
            assert store.actions[0].id == action.id and store.actions[0].project_id is None
            assert store.waiting_for[0].id == waiting.id and store.waiting_for[0].project_id is None
            await store.api.aclose()

        asyncio.run(scenario())


class TestPromotions:
    """Test moving someday/maybe items and following up waiting-for items."""

    def test_move_someday_to_action(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            idea = await store.add_someday_maybe("Learn piano", "hobby")

            action = await store.move_someday_to_action(idea.id, "@home")
            assert action.content == "Learn piano"
            assert action.context == "@home"
            assert store.someday_maybe == []
            assert await store.api.get_someday_maybe() == []
            await store.api.aclose()

        asyncio.run(scenario())

    def test_move_someday_to_waiting_for(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            idea = await store.add_someday_maybe("Plan trip")
            waiting = await store.move_someday_to_waiting_for(idea.id, "Travel agent")
            assert waiting.person == "Travel agent"
            assert store.someday_maybe == []
            await store.api.aclose()

        asyncio.run(scenario())

    def test_unknown_someday_id_raises_before_any_call(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            with pytest.raises(LookupError):
                await store.move_someday_to_action("missing")
            assert store.actions == []
            assert await store.api.get_actions() == []
            await store.api.aclose()

        asyncio.run(scenario())

    def test_failed_delete_compensates_created_action(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            idea = await store.add_someday_maybe("Learn piano")

            async def failing_delete(item_id):
                raise ApiError(500, "Failed to delete someday/maybe item")

            store.api.delete_someday_maybe = failing_delete
            with pytest.raises(ApiError, match="someday/maybe"):
                await store.move_someday_to_action(idea.id)

            # No duplicate: the action was rolled back and the idea is still there
            assert store.actions == []
            assert await store.api.get_actions() == []
            assert [item.id for item in store.someday_maybe] == [idea.id]
            await store.api.aclose()

        asyncio.run(scenario())

    def test_convert_waiting_for_to_action(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            project_id = await store.add_project("Launch website")
            waiting = await store.add_waiting_for("Logo draft", "Sam", project_id=project_id)

            action = await store.convert_waiting_for_to_action(waiting.id)
            assert action.content == "Follow up: Logo draft"
            assert action.context == "@anywhere"
            assert action.project_id == project_id
            assert [item.id for item in store.waiting_for] == [waiting.id]
            await store.api.aclose()

        asyncio.run(scenario())

    def test_follow_up_waiting_for(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            waiting = await store.add_waiting_for("Logo draft", "Sam")
            follow_up = await store.follow_up_waiting_for(waiting.id, "Logo final", expected_date=50)
            assert follow_up.person == "Sam"
            assert follow_up.expected_date == 50
            assert len(store.waiting_for) == 2
            await store.api.aclose()

        asyncio.run(scenario())


class TestReview:
    """Test review operations through the store."""

    def test_review_cycle(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()
            await store.start_review()
            assert store.review.last_review_date is not None

            await store.complete_review_step(2)
            assert store.review.current_step == 3
            assert store.review.completed_steps[2] is True

            await store.reset_review()
            assert store.review.last_review_date is None
            assert store.review.current_step == 0
            await store.api.aclose()

        asyncio.run(scenario())

    def test_invalid_step_never_reaches_network(self, store_factory):
        async def scenario():
            store = await store_factory()
            await store.initialize()

            async def unexpected(step):
                raise AssertionError("API should not be called")

            store.api.complete_review_step = unexpected
            with pytest.raises(ReviewStepError):
                await store.complete_review_step(7)
            await store.api.aclose()

        asyncio.run(scenario())


class TestEndToEnd:
    """A full register, login, capture, organize, review session."""

    def test_capture_organize_review(self, api_factory, tmp_path):
        async def scenario():
            api = api_factory()
            session = AuthSession(api, tmp_path / "session.json")
            await session.register("ada@example.com", "secret-password", "Ada")
            session.logout()
            await session.login("ada@example.com", "secret-password")
            assert session.is_authenticated

            store = GTDStore(api)
            await store.initialize()

            item = await store.add_to_inbox("Buy milk")
            processor = InboxProcessor(store, item.id)
            processor.actionable()
            await processor.two_minute(False)
            await processor.organize_as_action("@errands")

            await store.start_review()
            for step in range(7):
                await store.complete_review_step(step)

            # A fresh store sees the same server state
            fresh = GTDStore(api)
            await fresh.initialize()
            await api.aclose()
            return store, fresh

        store, fresh = asyncio.run(scenario())
        for cache in (store, fresh):
            assert cache.inbox == []
            assert len(cache.actions) == 1
            action = cache.actions[0]
            assert (action.content, action.context, action.completed) == ("Buy milk", "@errands", False)
            assert all(cache.review.completed_steps)
            assert cache.review.current_step == 7
