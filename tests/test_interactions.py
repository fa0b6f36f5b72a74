"""Tests for the word exposure log and interaction history."""

import pytest

from learner_memory.models.interactions import InteractionLog, LearnedWord, WordExposureLog
from learner_memory.storage.interactions import InteractionStore


@pytest.fixture
def store(documents):
    return InteractionStore(documents)


class TestExposureLog:
    def test_user_words_start_at_half_strength(self, store):
        log = store.add_words([LearnedWord(word="pani", meaning="water", context_sentence="pani do")])
        assert [w.word for w in log.all] == ["pani"]
        assert log.user_used[0].strength == 0.5
        assert log.user_used[0].context == "pani do"

    def test_repeat_use_strengthens_and_caps(self, store):
        for _ in range(8):
            store.add_words([LearnedWord(word="pani", meaning="water")])
        log = store.exposure()
        assert len(log.all) == 1
        assert log.user_used[0].strength == 1.0

    def test_using_a_scene_word_moves_it(self, store):
        store.add_scene_words([LearnedWord(word="chai", meaning="tea")])
        assert [w.word for w in store.exposure().scene_used] == ["chai"]
        log = store.add_words([LearnedWord(word="chai", meaning="tea")])
        assert log.scene_used == []
        assert [w.word for w in log.user_used] == ["chai"]

    def test_known_user_word_not_added_to_scene(self, store):
        store.add_words([LearnedWord(word="pani")])
        log = store.add_scene_words([LearnedWord(word="pani")])
        assert log.scene_used == []

    def test_legacy_flat_list(self):
        log = WordExposureLog.model_validate([{"word": "pani", "meaning": "water"}])
        assert [w.word for w in log.all] == ["pani"]
        assert [w.word for w in log.user_used] == ["pani"]
        assert log.scene_used == []


class TestInteractionHistory:
    def test_append_and_list(self, store):
        record = store.append_interaction(
            "mujhe chai chahiye",
            [LearnedWord(word="chai", meaning="tea", context_sentence="mujhe chai chahiye")],
            scene_id="cafe",
            xp_gained=10,
        )
        assert record.id.startswith("conv_")
        interactions = store.interactions()
        assert len(interactions) == 1
        assert interactions[0].scene_id == "cafe"
        assert interactions[0].words_to_add[0].word == "chai"

    def test_list_document_accepted(self):
        log = InteractionLog.model_validate([{"id": "conv_1", "user_input": "hi"}])
        assert log.interactions[0].user_input == "hi"

    def test_reset(self, store):
        store.add_words([LearnedWord(word="pani")])
        store.append_interaction("pani", [])
        store.reset()
        assert store.exposure() == WordExposureLog()
        assert store.interactions() == []


class TestRecordInteraction:
    def test_engine_records_words_and_xp(self, engine):
        result = engine.record_interaction(
            "mujhe pani chahiye",
            [LearnedWord(word="pani", meaning="water", context_sentence="mujhe pani chahiye")],
            scene_id="market",
            xp_gained=120,
        )
        assert result.xp.total_xp == 120
        assert result.xp.leveled_up is True
        state = engine.progression.load()
        assert state.words_learned == {"pani": 1}
        assert engine.interactions.exposure().user_used[0].word == "pani"
        assert engine.streak.ledger().active_days()

    def test_engine_rejects_empty_input(self, engine):
        from learner_memory.errors import InvalidRequestError

        with pytest.raises(InvalidRequestError):
            engine.record_interaction("  ", [])
