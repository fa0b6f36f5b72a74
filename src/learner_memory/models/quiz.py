"""Quiz documents, questions, answers and grading results."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from learner_memory.models.progression import Difficulty


class QuizStatus(StrEnum):
    """Quiz lifecycle states. COMPLETED is terminal."""

    PENDING = "pending"
    COMPLETED = "completed"


class QuestionType(StrEnum):
    LISTENING_MCQ = "listening_mcq"
    SPEAKING = "speaking"


class HintWord(BaseModel):
    word: str
    meaning: str = ""


class ListeningQuestion(BaseModel):
    """A spoken word; the learner picks its meaning from four options."""

    type: Literal["listening_mcq"] = "listening_mcq"
    id: int
    word: str
    word_romanized: str = ""
    correct_answer: str
    options: list[str] = Field(min_length=4, max_length=4)
    audio_text: str = ""


class SpeakingQuestion(BaseModel):
    """An English sentence the learner translates aloud."""

    type: Literal["speaking"] = "speaking"
    id: int
    sentence_en: str
    expected_answer: str
    expected_answer_romanized: str = ""
    acceptable_variations: list[str] = Field(default_factory=list)
    hint_words: list[HintWord] = Field(default_factory=list)
    audio_text: str = ""

    @field_validator("hint_words", mode="before")
    @classmethod
    def _coerce_hints(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [{"word": h} if isinstance(h, str) else h for h in value]


Question = Annotated[ListeningQuestion | SpeakingQuestion, Field(discriminator="type")]


class Answer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(alias="questionId")
    answer: str = ""

    @field_validator("answer", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class QuestionResult(BaseModel):
    """Grading outcome for one question."""

    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(alias="questionId")
    type: QuestionType
    user_answer: str = ""
    correct: bool = False
    score: int = 0
    feedback: str = ""
    # listening_mcq
    word: str | None = None
    word_romanized: str | None = None
    correct_answer: str | None = None
    options: list[str] | None = None
    # speaking
    sentence_en: str | None = None
    expected_answer: str | None = None
    corrected_answer: str | None = None
    pronunciation_tip: str | None = None


class QuizResults(BaseModel):
    question_results: list[QuestionResult] = Field(default_factory=list)
    total_score: int = 0
    correct_count: int = 0
    total_questions: int = 0
    xp_earned: int = 0
    leveled_up: bool = False
    level: int | None = None
    total_xp: int | None = None
    grade: str = "F"
    message: str = ""
    graded_at: datetime = Field(default_factory=datetime.now)


class QuizMetadata(BaseModel):
    theme: str = "Mixed"
    focus_area: str = "vocabulary"
    estimated_difficulty: str = ""


class LearnerSnapshot(BaseModel):
    xp: int = 0
    level: int = 1
    vocab_count: int = 0
    avg_fluency: int = 0


class QuizDocument(BaseModel):
    """A generated quiz: pending until graded once, then completed."""

    quiz_id: str
    language: str
    level: int
    difficulty: Difficulty
    questions: list[Question]
    quiz_metadata: QuizMetadata = Field(default_factory=QuizMetadata)
    learner_snapshot: LearnerSnapshot = Field(default_factory=LearnerSnapshot)
    status: QuizStatus = QuizStatus.PENDING
    answers: list[Answer] | None = None
    results: QuizResults | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def num_questions(self) -> int:
        return len(self.questions)

    @property
    def is_completed(self) -> bool:
        return self.status == QuizStatus.COMPLETED


class QuizSummary(BaseModel):
    """History entry for a quiz, including its questions and grading."""

    quiz_id: str
    language: str
    level: int
    difficulty: Difficulty
    num_questions: int
    status: QuizStatus
    created_at: datetime
    completed_at: datetime | None = None
    total_score: int | None = None
    xp_earned: int | None = None
    correct_count: int | None = None
    total_questions: int | None = None
    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] | None = None
    question_results: list[QuestionResult] | None = None

    @classmethod
    def from_quiz(cls, quiz: QuizDocument) -> "QuizSummary":
        results = quiz.results
        return cls(
            quiz_id=quiz.quiz_id,
            language=quiz.language,
            level=quiz.level,
            difficulty=quiz.difficulty,
            num_questions=quiz.num_questions,
            status=quiz.status,
            created_at=quiz.created_at,
            completed_at=quiz.completed_at,
            total_score=results.total_score if results else None,
            xp_earned=results.xp_earned if results else None,
            correct_count=results.correct_count if results else None,
            total_questions=results.total_questions if results else None,
            questions=quiz.questions,
            answers=quiz.answers,
            question_results=results.question_results if results else None,
        )
