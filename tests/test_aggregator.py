"""Tests for the learner profile aggregator."""

import pytest

from learner_memory.memory.aggregator import fold_vocabulary
from learner_memory.models.evaluation import TurnEvaluation
from learner_memory.models.interactions import LearnedWord
from learner_memory.models.learner_profile import RankedWord
from learner_memory.models.progression import Difficulty


def seed_sources(engine, seed_vocabulary):
    engine.interactions.add_words([LearnedWord(word="pani", meaning="water", context_sentence="pani do")])
    engine.interactions.add_scene_words([LearnedWord(word="chai", meaning="tea")])
    engine.progression.record_words_learned(["pani", "pani", "doodh", "doodh", "doodh", "ghar"])
    seed_vocabulary("Hindi", [("doodh", "milk"), ("roti", "bread")])


class TestFoldVocabulary:
    def test_first_source_wins_and_mastery_takes_max(self):
        first = [RankedWord(word="pani", meaning="water", mastery=0.2, source="user_used")]
        second = [
            RankedWord(word="pani", meaning="H2O", mastery=0.6, source="chat_knowledge"),
            RankedWord(word="chai", mastery=0.1, source="chat_knowledge"),
        ]
        merged = fold_vocabulary([lambda: first, lambda: second])
        assert merged["pani"].meaning == "water"
        assert merged["pani"].source == "user_used"
        assert merged["pani"].mastery == 0.6
        assert set(merged) == {"pani", "chai"}

    def test_later_source_fills_missing_meaning(self):
        first = [RankedWord(word="doodh", mastery=0.45, source="memory")]
        second = [RankedWord(word="doodh", meaning="milk", mastery=0.08, source="chat_knowledge")]
        merged = fold_vocabulary([lambda: first, lambda: second])
        assert merged["doodh"].meaning == "milk"
        assert merged["doodh"].mastery == 0.45


class TestAggregate:
    def test_vocabulary_merged_and_sorted_weakest_first(self, engine, seed_vocabulary):
        seed_sources(engine, seed_vocabulary)
        profile = engine.aggregator.aggregate("Hindi")

        words = [v.word for v in profile.vocabulary]
        assert words == ["chai", "roti", "doodh", "pani"]
        by_word = {v.word: v for v in profile.vocabulary}
        assert by_word["pani"].mastery == 0.5
        assert by_word["pani"].source == "user_used"
        assert by_word["doodh"].mastery == pytest.approx(0.45)
        assert by_word["doodh"].meaning == "milk"
        assert by_word["roti"].source == "chat_knowledge"
        # "ghar" has no meaning anywhere
        assert "ghar" not in by_word
        assert profile.vocab_count == 4

    def test_session_vocabulary_floor(self, engine, seed_vocabulary):
        seed_sources(engine, seed_vocabulary)
        session = engine.sessions.create("chat_1", "Hindi")
        session.record_turn(
            "chai",
            "reply",
            TurnEvaluation(new_vocabulary=["chai", "naya"], topics=["drinks", "drinks"]),
        )
        engine.sessions.save(session)

        profile = engine.aggregator.aggregate("Hindi")
        by_word = {v.word: v for v in profile.vocabulary}
        assert by_word["chai"].mastery == 0.3
        assert "naya" not in by_word
        assert [v.word for v in profile.chat_vocab] == ["chai", "naya"]
        assert profile.chat_topics == ["drinks"]

    def test_context_sentences(self, engine, seed_vocabulary):
        seed_sources(engine, seed_vocabulary)
        for i in range(25):
            engine.interactions.append_interaction(
                f"sentence {i}",
                [LearnedWord(word="chai", meaning="tea", context_sentence=f"chai {i}")],
            )
        profile = engine.aggregator.aggregate("Hindi")
        assert len(profile.context_sentences) == 20
        assert profile.context_sentences[-1] == "sentence 24"
        chai = next(v for v in profile.vocabulary if v.word == "chai")
        assert chai.contexts[:2] == ["chai 0", "chai 1"]
        pani = next(v for v in profile.vocabulary if v.word == "pani")
        assert pani.contexts == ["pani do"]

    def test_level_and_language_stats(self, engine, seed_vocabulary):
        engine.progression.add_xp(300)
        seed_vocabulary("Hindi", [("pani", "water")])
        engine.knowledge.update(lambda kb: kb.profile_for("Hindi").weak_topics.append("food"))
        profile = engine.aggregator.aggregate("Hindi")
        assert profile.xp == 300
        assert profile.level == 3
        assert profile.difficulty == Difficulty.INTERMEDIATE
        assert profile.weak_topics == ["food"]

    def test_sources_not_mutated(self, engine, seed_vocabulary):
        seed_sources(engine, seed_vocabulary)
        before = {key: engine.documents.read(key, None) for key in ("words", "progression", "chat_knowledge")}
        engine.aggregator.aggregate("Hindi")
        after = {key: engine.documents.read(key, None) for key in ("words", "progression", "chat_knowledge")}
        assert before == after

    def test_empty_profile(self, engine):
        profile = engine.aggregator.aggregate("Hindi")
        assert profile.vocabulary == []
        assert profile.level == 1
        assert profile.total_sessions == 0
