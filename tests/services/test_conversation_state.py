"""Tests for ConversationStateStore."""

from unittest.mock import patch


class TestConversationStateStore:
    """Tests for ConversationStateStore."""

    class TestGetOrCreate:
        """SUT: ConversationStateStore.get_or_create"""

        def test_creates_once(self, state_store):
            first = state_store.get_or_create(3)
            second = state_store.get_or_create(3)
            assert first is not None
            assert first.id == second.id

        def test_separate_users_separate_conversations(self, state_store):
            assert state_store.get_or_create(3).id != state_store.get_or_create(4).id

        def test_none_when_storage_fails(self, state_store):
            with patch.object(state_store.conversations, "_fetch_dicts", side_effect=RuntimeError("down")):
                assert state_store.get_or_create(3) is None

    class TestContext:
        """SUT: ConversationStateStore.set_context, get_context, clear_context"""

        def test_set_then_get(self, state_store):
            conv = state_store.get_or_create(3)
            state_store.set_context(conv.id, "k", "v")
            assert state_store.get_context(conv.id)["k"] == "v"

        def test_second_set_overwrites(self, state_store):
            conv = state_store.get_or_create(3)
            state_store.set_context(conv.id, "k", "v")
            state_store.set_context(conv.id, "k", "v2")
            assert state_store.get_context(conv.id) == {"k": "v2"}

        def test_clear_one_key(self, state_store):
            conv = state_store.get_or_create(3)
            state_store.set_context(conv.id, "a", "1")
            state_store.set_context(conv.id, "b", "2")
            state_store.clear_context(conv.id, "a")
            assert state_store.get_context(conv.id) == {"b": "2"}

        def test_clear_user_context(self, state_store):
            conv = state_store.get_or_create(3)
            state_store.set_context(conv.id, "a", "1")
            assert state_store.clear_user_context(3) is True
            assert state_store.get_context(conv.id) == {}

        def test_get_context_failure_is_empty(self, state_store):
            with patch.object(state_store.context, "conn") as conn:
                conn.execute.side_effect = RuntimeError("down")
                assert state_store.get_context(1) == {}
