"""Session memory models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, computed_field

from learner_memory.models.evaluation import TurnEvaluation

PREVIEW_LENGTH = 120


class ChatMessage(BaseModel):
    """A single message in the conversation."""

    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
    fluency_score: float | None = None


class VocabularyUse(BaseModel):
    word: str
    meaning: str = ""
    count: int = 1


class SessionSummary(BaseModel):
    """Lightweight session metadata without message history."""

    id: str
    language: str
    created_at: datetime
    updated_at: datetime
    message_count: int = 0
    avg_fluency: int = 0
    topics_covered: list[str] = Field(default_factory=list)
    last_message_preview: str | None = None


class SessionRecord(BaseModel):
    """One conversation session: turns, fluency, vocabulary and topics."""

    id: str
    language: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    fluency_scores: list[float] = Field(default_factory=list)
    avg_fluency: int = 0
    topics_covered: list[str] = Field(default_factory=list)
    vocabulary_used: list[VocabularyUse] = Field(default_factory=list)
    messages: list[ChatMessage] = Field(default_factory=list)

    def recompute_average(self) -> int:
        """Derive avg_fluency from fluency_scores (0 when there are none)."""
        if self.fluency_scores:
            self.avg_fluency = round(sum(self.fluency_scores) / len(self.fluency_scores))
        else:
            self.avg_fluency = 0
        return self.avg_fluency

    def record_turn(self, user_message: str, reply: str, evaluation: TurnEvaluation) -> None:
        """Append a user/assistant exchange and fold in its evaluation."""
        self.messages.append(
            ChatMessage(role="user", content=user_message, fluency_score=evaluation.score)
        )
        self.messages.append(ChatMessage(role="assistant", content=reply))

        if evaluation.score > 0:
            self.fluency_scores.append(evaluation.score)

        for item in evaluation.new_vocabulary:
            existing = next((v for v in self.vocabulary_used if v.word == item.word), None)
            if existing:
                existing.count += 1
            else:
                self.vocabulary_used.append(VocabularyUse(word=item.word, meaning=item.meaning))

        for topic in evaluation.topics:
            if topic not in self.topics_covered:
                self.topics_covered.append(topic)

    @computed_field
    @property
    def message_count(self) -> int:
        return len(self.messages)

    def history(self, max_turns: int) -> list[dict[str, Any]]:
        """Most recent messages in chat-completion format."""
        recent = self.messages[-max_turns:] if max_turns > 0 else []
        return [{"role": m.role, "content": m.content} for m in recent]

    def summary(self) -> SessionSummary:
        last = self.messages[-1] if self.messages else None
        return SessionSummary(
            id=self.id,
            language=self.language,
            created_at=self.created_at,
            updated_at=self.updated_at,
            message_count=self.message_count,
            avg_fluency=self.avg_fluency,
            topics_covered=list(self.topics_covered),
            last_message_preview=last.content[:PREVIEW_LENGTH] if last else None,
        )
