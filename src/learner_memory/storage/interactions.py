"""Word exposure log and interaction history persistence."""

import uuid

import structlog

from learner_memory.models.interactions import (
    ExposureWord,
    InteractionLog,
    InteractionRecord,
    LearnedWord,
    WordExposureLog,
)
from learner_memory.storage.documents import DocumentStore

logger = structlog.get_logger()

WORDS_KEY = "words"
INTERACTIONS_KEY = "conversations"

NEW_USER_WORD_STRENGTH = 0.5
USER_WORD_STEP = 0.1


class InteractionStore:
    """Raw practice history that feeds the learner profile aggregator.

    Args:
        documents: Backing document store.
    """

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    def exposure(self) -> WordExposureLog:
        return self.documents.load(WORDS_KEY, WordExposureLog, WordExposureLog)

    def add_words(self, words: list[LearnedWord]) -> WordExposureLog:
        """Record words the learner produced themselves."""

        def _add(log: WordExposureLog) -> None:
            for item in words:
                if not item.word:
                    continue
                if not any(w.word == item.word for w in log.all):
                    log.all.append(ExposureWord(word=item.word, meaning=item.meaning))
                existing = next((w for w in log.user_used if w.word == item.word), None)
                if existing:
                    existing.strength = min(1.0, round(existing.strength + USER_WORD_STEP, 4))
                    existing.context = item.context_sentence or existing.context
                    existing.meaning = item.meaning or existing.meaning
                else:
                    log.user_used.append(ExposureWord(
                        word=item.word,
                        meaning=item.meaning,
                        context=item.context_sentence,
                        strength=NEW_USER_WORD_STRENGTH,
                    ))
                log.scene_used = [w for w in log.scene_used if w.word != item.word]

        return self.documents.update(WORDS_KEY, WordExposureLog, WordExposureLog, _add)

    def add_scene_words(self, words: list[LearnedWord]) -> WordExposureLog:
        """Record words shown to the learner that they have not used yet."""

        def _add(log: WordExposureLog) -> None:
            for item in words:
                if not item.word:
                    continue
                if not any(w.word == item.word for w in log.all):
                    log.all.append(ExposureWord(word=item.word, meaning=item.meaning))
                known = log.user_used + log.scene_used
                if not any(w.word == item.word for w in known):
                    log.scene_used.append(ExposureWord(word=item.word, meaning=item.meaning))

        return self.documents.update(WORDS_KEY, WordExposureLog, WordExposureLog, _add)

    def interactions(self) -> list[InteractionRecord]:
        return self.documents.load(INTERACTIONS_KEY, InteractionLog, InteractionLog).interactions

    def append_interaction(
        self,
        user_input: str,
        words_to_add: list[LearnedWord],
        scene_id: str = "",
        xp_gained: int = 0,
    ) -> InteractionRecord:
        record = InteractionRecord(
            id=f"conv_{uuid.uuid4().hex[:12]}",
            scene_id=scene_id,
            user_input=user_input,
            words_to_add=words_to_add,
            xp_gained=xp_gained,
        )
        self.documents.update(
            INTERACTIONS_KEY,
            InteractionLog,
            InteractionLog,
            lambda log: log.interactions.append(record),
        )
        logger.info("interaction_recorded", interaction_id=record.id, words=len(words_to_add))
        return record

    def reset(self) -> None:
        self.documents.save(WORDS_KEY, WordExposureLog())
        self.documents.save(INTERACTIONS_KEY, InteractionLog())
