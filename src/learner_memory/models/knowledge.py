"""Facts memory models: per-language knowledge profiles."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

MASTERY_INCREMENT = 0.08
FLUENCY_TREND_LIMIT = 100
PROMOTE_THRESHOLD = 70
DEMOTE_THRESHOLD = 40


class VocabularyEntry(BaseModel):
    """A word the learner has met, with its mastery estimate (0-1)."""

    word: str
    meaning: str = ""
    mastery: float = Field(default=0.0, ge=0.0, le=1.0)
    uses: int = 0
    contexts: list[str] = Field(default_factory=list)
    first_seen: datetime = Field(default_factory=datetime.now)
    last_used: datetime = Field(default_factory=datetime.now)

    def reinforce(self, meaning: str = "") -> None:
        """Count one more use and raise mastery by a fixed step, capped at 1."""
        self.uses += 1
        self.mastery = min(1.0, round(self.mastery + MASTERY_INCREMENT, 4))
        self.last_used = datetime.now()
        if meaning and not self.meaning:
            self.meaning = meaning


class LanguageProfile(BaseModel):
    """Durable aggregate of everything learned in one language."""

    session_count: int = 0
    message_count: int = 0
    avg_fluency: int = 0
    fluency_trend: list[float] = Field(default_factory=list)
    strong_topics: list[str] = Field(default_factory=list)
    weak_topics: list[str] = Field(default_factory=list)
    vocabulary: dict[str, VocabularyEntry] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _exclusive_topics(self) -> "LanguageProfile":
        # strong_topics and weak_topics behave as disjoint sets
        self.strong_topics = list(dict.fromkeys(self.strong_topics))
        strong = set(self.strong_topics)
        self.weak_topics = [t for t in dict.fromkeys(self.weak_topics) if t not in strong]
        return self

    @property
    def all_topics(self) -> list[str]:
        return self.strong_topics + self.weak_topics

    def record_fluency(self, score: float) -> None:
        self.fluency_trend.append(score)
        if len(self.fluency_trend) > FLUENCY_TREND_LIMIT:
            self.fluency_trend = self.fluency_trend[-FLUENCY_TREND_LIMIT:]
        self.avg_fluency = round(sum(self.fluency_trend) / len(self.fluency_trend))

    def reinforce_word(self, word: str, meaning: str = "") -> VocabularyEntry:
        entry = self.vocabulary.get(word)
        if entry is None:
            entry = VocabularyEntry(word=word, meaning=meaning)
            self.vocabulary[word] = entry
        entry.reinforce(meaning)
        return entry

    def classify_topic(self, topic: str, score: float) -> None:
        """Place a topic in weak/strong according to this turn's fluency.

        Membership is read before the topic is inserted, so a brand-new topic
        starts weak and can only be promoted on a later turn. Scores between
        the demotion and promotion thresholds leave the topic where it is.
        """
        in_strong = topic in self.strong_topics
        in_weak = topic in self.weak_topics

        if not in_strong and not in_weak:
            self.weak_topics.append(topic)

        if score >= PROMOTE_THRESHOLD and in_weak:
            self.weak_topics.remove(topic)
            self.strong_topics.append(topic)
        elif score < DEMOTE_THRESHOLD and in_strong:
            self.strong_topics.remove(topic)
            self.weak_topics.append(topic)

    def weakest_words(self, below: float, limit: int) -> list[VocabularyEntry]:
        candidates = [v for v in self.vocabulary.values() if v.word.strip() and v.mastery < below]
        candidates.sort(key=lambda v: v.mastery)
        return candidates[:limit]


class KnowledgeBase(BaseModel):
    """The facts memory document: one LanguageProfile per language name."""

    languages: dict[str, LanguageProfile] = Field(default_factory=dict)
    last_updated: datetime | None = None

    @field_validator("languages", mode="before")
    @classmethod
    def _languages_mapping(cls, value: Any) -> Any:
        # Older or malformed files may carry a list or null here
        if not isinstance(value, dict):
            return {}
        return value

    def profile_for(self, language: str) -> LanguageProfile:
        """Return the profile for ``language``, creating it lazily."""
        if language not in self.languages:
            self.languages[language] = LanguageProfile()
        return self.languages[language]
