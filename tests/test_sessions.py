"""Tests for session memory."""

from datetime import datetime, timedelta

import pytest

from learner_memory.errors import SessionNotFoundError
from learner_memory.models.evaluation import TurnEvaluation
from learner_memory.storage.sessions import SessionStore


@pytest.fixture
def store(documents):
    return SessionStore(documents)


class TestSessionRecord:
    def test_record_turn_appends_messages(self, store):
        session = store.create("chat_1", "Hindi")
        session.record_turn("main pani chahta hoon", "Achha!", TurnEvaluation(score=64))
        assert [m.role for m in session.messages] == ["user", "assistant"]
        assert session.messages[0].fluency_score == 64
        assert session.fluency_scores == [64]

    def test_zero_score_not_counted(self, store):
        session = store.create("chat_1", "Hindi")
        session.record_turn("hello", "Namaste!", TurnEvaluation(score=0))
        assert session.fluency_scores == []
        assert session.recompute_average() == 0

    def test_vocabulary_counts_and_topics_dedupe(self, store):
        session = store.create("chat_1", "Hindi")
        evaluation = TurnEvaluation(
            score=50,
            new_vocabulary=[{"word": "pani", "meaning": "water"}],
            topics=["food", "food", "drinks"],
        )
        session.record_turn("a", "b", evaluation)
        session.record_turn("c", "d", evaluation)
        assert len(session.vocabulary_used) == 1
        assert session.vocabulary_used[0].count == 2
        assert session.topics_covered == ["food", "drinks"]

    def test_history_is_capped(self, store):
        session = store.create("chat_1", "Hindi")
        for i in range(15):
            session.record_turn(f"u{i}", f"a{i}", TurnEvaluation())
        history = session.history(20)
        assert len(history) == 20
        assert history[-1] == {"role": "assistant", "content": "a14"}


class TestSessionStore:
    def test_save_recomputes_average(self, store):
        session = store.create("chat_1", "Hindi")
        session.fluency_scores = [60, 71]
        store.save(session)
        assert store.get("chat_1").avg_fluency == 66

    def test_get_unknown_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.get("chat_missing")

    def test_summaries_newest_first_and_filtered(self, store):
        old = store.create("chat_old", "Hindi")
        old.record_turn("x" * 200, "reply", TurnEvaluation())
        store.save(old)
        new = store.create("chat_new", "Hindi")
        store.save(new)
        other = store.create("chat_jp", "Japanese")
        store.save(other)

        # Push the old session back in time
        old = store.get("chat_old")
        old.updated_at = datetime.now() - timedelta(days=1)
        store.documents.save("chat_sessions/chat_old", old)

        summaries = store.list_summaries("Hindi")
        assert [s.id for s in summaries] == ["chat_new", "chat_old"]
        assert summaries[1].message_count == 2
        assert summaries[1].last_message_preview == "reply"
        assert summaries[0].last_message_preview is None

    def test_preview_truncated(self, store):
        session = store.create("chat_1", "Hindi")
        session.record_turn("hi", "y" * 300, TurnEvaluation())
        assert len(session.summary().last_message_preview) == 120

    def test_corrupt_session_skipped(self, store, documents):
        store.save(store.create("chat_1", "Hindi"))
        documents.path_for("chat_sessions/chat_bad").write_text("{", encoding="utf-8")
        assert [s.id for s in store.list_summaries()] == ["chat_1"]

    def test_delete_and_delete_all(self, store):
        for sid in ("chat_1", "chat_2"):
            store.save(store.create(sid, "Hindi"))
        assert store.delete("chat_1") is True
        assert store.delete("chat_1") is False
        assert store.delete_all() == 1
        assert store.list_summaries() == []
