"""Tests for the in-memory session store."""

import pytest

from mapchat.core.types import SessionTurn
from mapchat.runtime_state import SessionStore

from conftest import INSTRUCTION


def _exchange(store: SessionStore, sid: str, n: int) -> None:
    store.append(sid, SessionTurn(role="user", content=f"question {n}"))
    store.append(sid, SessionTurn(role="assistant", content=f"answer {n}"))
    store.trim(sid)


class TestGetOrCreate:
    """Tests for lazy session creation."""

    def test_new_session_is_seeded_with_instruction(self, store):
        turns = store.get_or_create("abc")
        assert len(turns) == 1
        assert turns[0].role == "system"
        assert turns[0].content == INSTRUCTION

    def test_same_key_returns_same_history(self, store):
        first = store.get_or_create("abc")
        store.append("abc", SessionTurn(role="user", content="hi"))
        assert store.get_or_create("abc") is first
        assert len(first) == 2

    def test_keys_are_independent(self, store):
        store.get_or_create("a")
        store.append("a", SessionTurn(role="user", content="hi"))
        assert len(store.get_or_create("b")) == 1
        assert store.session_count() == 2


class TestAppend:
    """Tests for alternation checks on append."""

    def test_user_then_assistant(self, store):
        store.append("s", SessionTurn(role="user", content="hi"))
        store.append("s", SessionTurn(role="assistant", content="hello"))
        assert [t.role for t in store.get_or_create("s")] == ["system", "user", "assistant"]

    def test_two_user_turns_in_a_row_rejected(self, store):
        store.append("s", SessionTurn(role="user", content="hi"))
        with pytest.raises(AssertionError):
            store.append("s", SessionTurn(role="user", content="again"))

    def test_assistant_first_rejected(self, store):
        with pytest.raises(AssertionError):
            store.append("s", SessionTurn(role="assistant", content="hello"))


class TestTrim:
    """Tests for the history ceiling."""

    def test_under_ceiling_untouched(self, store):
        for n in range(10):
            _exchange(store, "s", n)
        assert len(store.get_or_create("s")) == 21

    def test_oldest_exchanges_dropped_first(self, store):
        for n in range(15):
            _exchange(store, "s", n)

        turns = store.get_or_create("s")
        assert len(turns) == 21
        assert turns[0].content == INSTRUCTION
        # Exchanges 5..14 survive, in order.
        assert turns[1].content == "question 5"
        assert turns[-1].content == "answer 14"
        assert [t.role for t in turns[1:]] == ["user", "assistant"] * 10

    def test_instruction_never_evicted(self):
        store = SessionStore(instruction="rules", max_turns=3)
        for n in range(5):
            _exchange(store, "s", n)
        turns = store.get_or_create("s")
        assert [t.content for t in turns] == ["rules", "question 4", "answer 4"]

    def test_trim_reports_evictions(self, store):
        for n in range(10):
            _exchange(store, "s", n)
        store.append("s", SessionTurn(role="user", content="q"))
        store.append("s", SessionTurn(role="assistant", content="a"))
        assert store.trim("s") == 2

    def test_trim_unknown_session_is_noop(self, store):
        assert store.trim("nobody") == 0
        assert "nobody" not in store

    def test_ceiling_must_leave_room_for_an_exchange(self):
        with pytest.raises(ValueError):
            SessionStore(instruction="rules", max_turns=2)


class TestReset:
    """Tests for reset."""

    def test_reset_then_recreate_is_fresh(self, store):
        for n in range(4):
            _exchange(store, "s", n)
        assert store.reset("s") is True

        turns = store.get_or_create("s")
        assert len(turns) == 1
        assert turns[0].content == INSTRUCTION

    def test_reset_unknown_session_is_not_an_error(self, store):
        assert store.reset("ghost") is False

    def test_reset_leaves_other_sessions(self, store):
        _exchange(store, "a", 1)
        _exchange(store, "b", 1)
        store.reset("a")
        assert len(store.get_or_create("b")) == 3


class TestLocksAndExport:
    """Tests for per-session locks and message export."""

    def test_same_key_same_lock(self, store):
        assert store.lock("a") is store.lock("a")
        assert store.lock("a") is not store.lock("b")

    @pytest.mark.asyncio
    async def test_reset_keeps_a_held_lock(self, store):
        lock = store.lock("a")
        async with lock:
            store.reset("a")
            assert store.lock("a") is lock

    def test_history_as_messages(self, store):
        _exchange(store, "s", 1)
        assert store.get_history_as_messages("s") == [
            {"role": "system", "content": INSTRUCTION},
            {"role": "user", "content": "question 1"},
            {"role": "assistant", "content": "answer 1"},
        ]

    def test_history_for_unknown_session_is_empty(self, store):
        assert store.get_history_as_messages("nobody") == []
