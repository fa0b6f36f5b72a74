"""Dashboard read model."""

from datetime import datetime

from pydantic import BaseModel, Field

from learner_memory.models.progression import LevelProgress
from learner_memory.models.streak import CalendarDay, StreakStats


class WordStats(BaseModel):
    total: int = 0
    mastered: int = 0
    user_used: int = 0


class SessionStats(BaseModel):
    total: int = 0
    avg_fluency: int = 0


class LanguageSummary(BaseModel):
    language: str
    sessions: int = 0
    avg_fluency: int = 0
    fluency_trend: list[float] = Field(default_factory=list)
    strong_topics: list[str] = Field(default_factory=list)
    weak_topics: list[str] = Field(default_factory=list)
    vocab_count: int = 0


class QuizStats(BaseModel):
    total: int = 0
    completed: int = 0
    avg_score: int = 0
    last_score: int | None = None


class Activity(BaseModel):
    type: str  # "chat" or "quiz"
    language: str
    label: str
    timestamp: datetime
    fluency: int | None = None
    score: int | None = None


class StreakView(BaseModel):
    stats: StreakStats
    calendar: list[CalendarDay]


class Dashboard(BaseModel):
    xp: LevelProgress
    words: WordStats
    sessions: SessionStats
    quiz: QuizStats
    languages: list[LanguageSummary]
    topics: list[str]
    recent_activity: list[Activity]
    streak: StreakView
