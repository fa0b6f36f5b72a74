"""Learner profile aggregator.

Merges every memory source into one ranked vocabulary view. Sources are folded
left to right into a map keyed by word: the first source to mention a word
creates its entry, later sources only fill fields that are still empty, and
mastery estimates combine by maximum.
"""

from collections.abc import Callable, Iterable

import structlog

from learner_memory.models.knowledge import KnowledgeBase
from learner_memory.models.learner_profile import LearnerProfile, RankedWord
from learner_memory.models.progression import Difficulty, ProgressionState, level_for_xp
from learner_memory.models.session import VocabularyUse
from learner_memory.storage.interactions import InteractionStore
from learner_memory.storage.knowledge import KnowledgeStore
from learner_memory.storage.progression import ProgressionStore
from learner_memory.storage.sessions import SessionStore

logger = structlog.get_logger()

WORDS_LEARNED_WEIGHT = 0.15
SESSION_VOCAB_FLOOR = 0.3
RECENT_SESSIONS = 5
MAX_CONTEXT_SENTENCES = 20

VocabularySource = Callable[[], Iterable[RankedWord]]


def fold_vocabulary(sources: list[VocabularySource]) -> dict[str, RankedWord]:
    """Fold ordered vocabulary sources into one map keyed by word."""
    merged: dict[str, RankedWord] = {}
    for source in sources:
        for candidate in source():
            if not candidate.word:
                continue
            entry = merged.get(candidate.word)
            if entry is None:
                merged[candidate.word] = candidate.model_copy(deep=True)
                continue
            entry.mastery = max(entry.mastery, candidate.mastery)
            if not entry.meaning and candidate.meaning:
                entry.meaning = candidate.meaning
            if not entry.source:
                entry.source = candidate.source
            if not entry.contexts and candidate.contexts:
                entry.contexts = list(candidate.contexts)
    return merged


class LearnerProfileAggregator:
    """Builds the unified LearnerProfile that seeds quiz generation.

    Reads only; none of the source documents are modified.

    Args:
        progression: Global XP/level store.
        knowledge: Facts memory store.
        sessions: Session memory store.
        interactions: Word exposure and interaction log store.
    """

    def __init__(
        self,
        progression: ProgressionStore,
        knowledge: KnowledgeStore,
        sessions: SessionStore,
        interactions: InteractionStore,
    ):
        self.progression = progression
        self.knowledge = knowledge
        self.sessions = sessions
        self.interactions = interactions

    def _sources(
        self, language: str, state: ProgressionState, knowledge: KnowledgeBase
    ) -> list[VocabularySource]:
        exposure = self.interactions.exposure()
        profile = knowledge.languages.get(language)

        def user_used() -> Iterable[RankedWord]:
            for w in exposure.user_used:
                yield RankedWord(
                    word=w.word,
                    meaning=w.meaning,
                    mastery=w.strength,
                    contexts=[w.context] if w.context else [],
                    source="user_used",
                )

        def scene_used() -> Iterable[RankedWord]:
            for w in exposure.scene_used:
                yield RankedWord(word=w.word, meaning=w.meaning, mastery=w.strength, source="scene_used")

        def all_words() -> Iterable[RankedWord]:
            for w in exposure.all:
                yield RankedWord(word=w.word, meaning=w.meaning, source="all")

        def words_learned() -> Iterable[RankedWord]:
            for word, count in state.words_learned.items():
                yield RankedWord(
                    word=word,
                    mastery=min(1.0, count * WORDS_LEARNED_WEIGHT),
                    source="memory",
                )

        def facts() -> Iterable[RankedWord]:
            if profile is None:
                return
            for word, entry in profile.vocabulary.items():
                yield RankedWord(
                    word=word,
                    meaning=entry.meaning,
                    mastery=entry.mastery,
                    source="chat_knowledge",
                )

        return [user_used, scene_used, all_words, words_learned, facts]

    def aggregate(self, language: str) -> LearnerProfile:
        """Build the learner profile for ``language``."""
        state = self.progression.load()
        knowledge = self.knowledge.load()
        vocab = fold_vocabulary(self._sources(language, state, knowledge))

        context_sentences: list[str] = []
        for record in self.interactions.interactions():
            if record.user_input:
                context_sentences.append(record.user_input)
            for learned in record.words_to_add:
                entry = vocab.get(learned.word)
                if entry and learned.context_sentence and learned.context_sentence not in entry.contexts:
                    entry.contexts.append(learned.context_sentence)

        chat_topics: list[str] = []
        chat_vocab: list[VocabularyUse] = []
        for session in self.sessions.recent(language, RECENT_SESSIONS):
            chat_topics.extend(session.topics_covered)
            for use in session.vocabulary_used:
                chat_vocab.append(use)
                if use.word in vocab:
                    entry = vocab[use.word]
                    entry.mastery = max(entry.mastery, SESSION_VOCAB_FLOOR)

        # sorted() is stable, so ties keep source order
        vocabulary = sorted((v for v in vocab.values() if v.meaning), key=lambda v: v.mastery)

        level = level_for_xp(state.xp)
        stats = knowledge.languages.get(language)
        profile = LearnerProfile(
            xp=state.xp,
            level=level,
            difficulty=Difficulty.from_level(level),
            vocabulary=vocabulary,
            context_sentences=context_sentences[-MAX_CONTEXT_SENTENCES:],
            chat_topics=list(dict.fromkeys(chat_topics)),
            chat_vocab=chat_vocab,
            weak_topics=list(stats.weak_topics) if stats else [],
            strong_topics=list(stats.strong_topics) if stats else [],
            avg_fluency=stats.avg_fluency if stats else 0,
            total_sessions=stats.session_count if stats else 0,
        )
        logger.info(
            "learner_profile_aggregated",
            language=language,
            level=profile.level,
            vocab_count=profile.vocab_count,
            topics=len(profile.chat_topics),
            avg_fluency=profile.avg_fluency,
        )
        return profile
