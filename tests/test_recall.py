"""Tests for selective recall."""

import pytest

from learner_memory.memory.recall import RECALL_FOOTER, RECALL_HEADER, RecallEngine
from learner_memory.storage.knowledge import KnowledgeStore


@pytest.fixture
def knowledge(documents):
    return KnowledgeStore(documents)


@pytest.fixture
def recall(knowledge):
    return RecallEngine(knowledge)


def seed(knowledge, words=(), strong=(), weak=(), language="Hindi"):
    def _seed(kb):
        profile = kb.profile_for(language)
        for word, meaning in words:
            profile.reinforce_word(word, meaning)
        profile.strong_topics.extend(strong)
        profile.weak_topics.extend(weak)

    knowledge.update(_seed)


class TestRecallGating:
    def test_no_profile(self, recall):
        assert recall.build_context("pani please", "Hindi") is None

    def test_profile_without_vocabulary(self, recall, knowledge):
        seed(knowledge, weak=["food"])
        assert recall.build_context("let's talk about food", "Hindi") is None

    def test_no_overlap(self, recall, knowledge):
        seed(knowledge, words=[("pani", "water")], weak=["food"])
        assert recall.build_context("what's the weather like?", "Hindi") is None

    def test_other_language_not_recalled(self, recall, knowledge):
        seed(knowledge, words=[("pani", "water")])
        assert recall.build_context("pani", "Japanese") is None


class TestRecallBlock:
    def test_word_match_builds_block(self, recall, knowledge):
        seed(knowledge, words=[("pani", "water"), ("chai", "")], strong=["greetings"], weak=["food"])
        block = recall.build_context("Mujhe PANI chahiye", "Hindi")
        lines = block.split("\n")
        assert lines[0] == RECALL_HEADER
        assert lines[-1] == RECALL_FOOTER
        assert lines[1] == "Language: Hindi | Overall Fluency: 0/100 | Sessions: 0 | Messages: 0"
        assert 'Relevant known vocabulary: "pani" (water, mastery 8%, 1× used)' in block
        assert "Weak areas needing reinforcement: food" in block
        assert "Already confident in: greetings" in block
        assert '"chai" (?, 8%)' in block

    def test_topic_match_without_word_match(self, recall, knowledge):
        seed(knowledge, words=[("pani", "water")], weak=["food"])
        block = recall.build_context("I love food", "Hindi")
        assert block is not None
        assert "Relevant known vocabulary" not in block

    def test_matched_and_weak_lists_are_bounded(self, recall, knowledge):
        words = [(f"word{i:02d}", f"meaning {i}") for i in range(20)]
        seed(knowledge, words=words)
        block = recall.build_context(" ".join(w for w, _ in words), "Hindi")
        assert block.count("× used") == 15
        weak_line = next(line for line in block.split("\n") if line.startswith("Low-mastery"))
        assert weak_line.count('"') == 16

    def test_strong_words_not_listed_as_weak(self, recall, knowledge):
        def _seed(kb):
            profile = kb.profile_for("Hindi")
            for _ in range(6):
                profile.reinforce_word("pani", "water")

        knowledge.update(_seed)
        block = recall.build_context("pani", "Hindi")
        assert "Low-mastery" not in block

    def test_blank_keys_never_match(self, recall, knowledge):
        def _seed(kb):
            profile = kb.profile_for("Hindi")
            profile.reinforce_word("", "")
            profile.reinforce_word("pani", "water")
            profile.weak_topics.append(" ")

        knowledge.update(_seed)

        assert recall.build_context("completely unrelated sentence", "Hindi") is None
        block = recall.build_context("pani please", "Hindi")
        assert block is not None
        assert "\"\"" not in block
