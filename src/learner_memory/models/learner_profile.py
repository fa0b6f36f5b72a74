"""Unified learner profile used to seed quiz generation."""

from pydantic import BaseModel, Field

from learner_memory.models.progression import Difficulty
from learner_memory.models.session import VocabularyUse


class RankedWord(BaseModel):
    """A vocabulary item merged from every memory source."""

    word: str
    meaning: str = ""
    mastery: float = 0.0
    contexts: list[str] = Field(default_factory=list)
    source: str = ""


class LearnerProfile(BaseModel):
    xp: int = 0
    level: int = 1
    difficulty: Difficulty = Difficulty.BEGINNER
    vocabulary: list[RankedWord] = Field(default_factory=list)  # weakest first
    context_sentences: list[str] = Field(default_factory=list)
    chat_topics: list[str] = Field(default_factory=list)
    chat_vocab: list[VocabularyUse] = Field(default_factory=list)
    weak_topics: list[str] = Field(default_factory=list)
    strong_topics: list[str] = Field(default_factory=list)
    avg_fluency: int = 0
    total_sessions: int = 0

    @property
    def vocab_count(self) -> int:
        return len(self.vocabulary)
