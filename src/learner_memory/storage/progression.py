"""Global progression persistence (XP, level, words learned)."""

import structlog

from learner_memory.models.progression import LevelProgress, ProgressionState, XpAward
from learner_memory.storage.documents import DocumentStore

logger = structlog.get_logger()

PROGRESSION_KEY = "progression"


class ProgressionStore:
    """Owns the single ProgressionState document.

    Args:
        documents: Backing document store.
    """

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    def load(self) -> ProgressionState:
        return self.documents.load(PROGRESSION_KEY, ProgressionState, ProgressionState)

    def add_xp(self, amount: int) -> XpAward:
        """Award XP under the document lock and report any level-up."""
        award: list[XpAward] = []
        self.documents.update(
            PROGRESSION_KEY,
            ProgressionState,
            ProgressionState,
            lambda state: award.append(state.add_xp(amount)),
        )
        result = award[0]
        logger.info(
            "xp_awarded",
            xp_earned=result.xp_earned,
            total_xp=result.total_xp,
            level=result.level,
            leveled_up=result.leveled_up,
        )
        return result

    def record_words_learned(self, words: list[str]) -> ProgressionState:
        def _tally(state: ProgressionState) -> None:
            for word in words:
                if word:
                    state.words_learned[word] = state.words_learned.get(word, 0) + 1

        return self.documents.update(PROGRESSION_KEY, ProgressionState, ProgressionState, _tally)

    def progress(self) -> LevelProgress:
        return self.load().progress()

    def reset(self) -> ProgressionState:
        state = ProgressionState()
        with self.documents.locked(PROGRESSION_KEY):
            self.documents.save(PROGRESSION_KEY, state)
        logger.info("progression_reset")
        return state
