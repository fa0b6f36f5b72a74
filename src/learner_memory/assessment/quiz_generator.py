"""Adaptive quiz generation from the aggregated learner profile."""

import math
import secrets
import time
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from learner_memory.assessment.prompts import generation_system_prompt, generation_user_message
from learner_memory.completion.client import CompletionClient
from learner_memory.errors import CompletionError, InsufficientVocabularyError, InvalidRequestError
from learner_memory.memory.aggregator import LearnerProfileAggregator
from learner_memory.models.learner_profile import LearnerProfile, RankedWord
from learner_memory.models.quiz import (
    LearnerSnapshot,
    ListeningQuestion,
    Question,
    QuestionType,
    QuizDocument,
    QuizMetadata,
)
from learner_memory.storage.quizzes import QuizStore

logger = structlog.get_logger()

MIN_VOCABULARY = 4
WEAK_MASTERY = 0.5
WEAK_SHARE = 0.7
MCQ_OPTIONS = 4
MISSING_OPTION = "(no option)"
PLACEHOLDER_OPTIONS = ["unknown", "unclear", "other"]

_question_adapter = TypeAdapter(Question)


def new_quiz_id() -> str:
    return f"quiz_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def clamp_question_count(requested: int | None, default: int = 6, low: int = 4, high: int = 8) -> int:
    return min(max(requested or default, low), high)


def select_target_words(vocabulary: list[RankedWord], count: int) -> list[RankedWord]:
    """Pick up to ``2 * count`` words, about 70% of them weak.

    ``vocabulary`` is expected weakest first; that order is preserved within
    the weak and the strong group.
    """
    weak = [v for v in vocabulary if v.mastery < WEAK_MASTERY]
    strong = [v for v in vocabulary if v.mastery >= WEAK_MASTERY]
    target = min(count * 2, len(vocabulary))
    weak_count = min(math.ceil(target * WEAK_SHARE), len(weak))
    strong_count = min(target - weak_count, len(strong))
    return weak[:weak_count] + strong[:strong_count]


def _normalize_options(raw: dict[str, Any]) -> list[str]:
    correct = str(raw.get("correct_answer") or "")
    options = raw.get("options")
    if not isinstance(options, list):
        options = [correct, *PLACEHOLDER_OPTIONS]
    options = [str(o) for o in options][:MCQ_OPTIONS]
    if correct not in options:
        if options:
            options[0] = correct
        else:
            options.append(correct)
    while len(options) < MCQ_OPTIONS:
        options.append(MISSING_OPTION)
    return options


def normalize_questions(raw_questions: list[Any]) -> list[Question]:
    """Validate service output into typed questions with sequential ids.

    Questions of unknown type, that fail validation, or that test a word an
    earlier listening question already tests are dropped before ids are
    assigned.
    """
    questions: list[Question] = []
    seen_words: set[str] = set()
    for raw in raw_questions:
        if not isinstance(raw, dict):
            continue
        kind = raw.get("type")
        data = dict(raw)
        if kind == QuestionType.LISTENING_MCQ:
            word = str(data.get("word") or "").strip()
            if word.lower() in seen_words:
                logger.warning("quiz_question_duplicate_word", word=word)
                continue
            data["word"] = word
            data["options"] = _normalize_options(data)
        elif kind == QuestionType.SPEAKING:
            for name in ("acceptable_variations", "hint_words"):
                if not isinstance(data.get(name), list):
                    data[name] = []
            data["expected_answer_romanized"] = data.get("expected_answer_romanized") or ""
        else:
            logger.warning("quiz_question_unknown_type", type=kind)
            continue
        data["id"] = len(questions)
        try:
            question = _question_adapter.validate_python(data)
        except ValidationError as e:
            logger.warning("quiz_question_invalid", type=kind, errors=e.error_count())
            continue
        if isinstance(question, ListeningQuestion):
            seen_words.add(question.word.lower())
        questions.append(question)
    return questions


class QuizGenerator:
    """Builds and persists quizzes targeted at the learner's weakest words.

    Args:
        aggregator: Learner profile aggregator.
        completion: Completion service client.
        quizzes: Quiz history store.
        default_questions: Question count when none is requested.
        min_questions: Lower bound for the question count.
        max_questions: Upper bound for the question count.
    """

    def __init__(
        self,
        aggregator: LearnerProfileAggregator,
        completion: CompletionClient,
        quizzes: QuizStore,
        default_questions: int = 6,
        min_questions: int = 4,
        max_questions: int = 8,
    ):
        self.aggregator = aggregator
        self.completion = completion
        self.quizzes = quizzes
        self.default_questions = default_questions
        self.min_questions = min_questions
        self.max_questions = max_questions

    async def generate(self, language: str, num_questions: int | None = None) -> QuizDocument:
        """Generate and persist a pending quiz.

        Args:
            language: Target language name.
            num_questions: Requested question count, clamped to the allowed range.

        Returns:
            The stored QuizDocument.

        Raises:
            InvalidRequestError: ``language`` is empty.
            InsufficientVocabularyError: Fewer than four known words with meanings.
            CompletionError: The service failed or produced no usable questions.
        """
        if not language or not language.strip():
            raise InvalidRequestError("Missing required field: language")

        count = clamp_question_count(
            num_questions, self.default_questions, self.min_questions, self.max_questions
        )
        profile = self.aggregator.aggregate(language)
        if profile.vocab_count < MIN_VOCABULARY:
            raise InsufficientVocabularyError(profile.vocab_count, MIN_VOCABULARY)

        target_words = select_target_words(profile.vocabulary, count)
        data = await self.completion.complete_json(
            generation_system_prompt(language, count, profile),
            generation_user_message(language, count, target_words, profile),
        )

        raw_questions = data.get("questions")
        if not isinstance(raw_questions, list) or not raw_questions:
            raise CompletionError("AI returned invalid quiz format", details={"raw": data})
        questions = normalize_questions(raw_questions)
        if not questions:
            raise CompletionError("AI returned no usable quiz questions", details={"raw": data})

        quiz = self._build(language, profile, questions, data.get("quiz_metadata"))
        self.quizzes.save(quiz)
        logger.info(
            "quiz_generated",
            quiz_id=quiz.quiz_id,
            language=language,
            questions=quiz.num_questions,
            difficulty=quiz.difficulty.value,
            target_words=len(target_words),
        )
        return quiz

    @staticmethod
    def _build(
        language: str,
        profile: LearnerProfile,
        questions: list[Question],
        metadata: Any,
    ) -> QuizDocument:
        if isinstance(metadata, dict):
            try:
                quiz_metadata = QuizMetadata.model_validate(metadata)
            except ValidationError:
                quiz_metadata = QuizMetadata(estimated_difficulty=profile.difficulty.value)
        else:
            quiz_metadata = QuizMetadata(estimated_difficulty=profile.difficulty.value)

        return QuizDocument(
            quiz_id=new_quiz_id(),
            language=language,
            level=profile.level,
            difficulty=profile.difficulty,
            questions=questions,
            quiz_metadata=quiz_metadata,
            learner_snapshot=LearnerSnapshot(
                xp=profile.xp,
                level=profile.level,
                vocab_count=profile.vocab_count,
                avg_fluency=profile.avg_fluency,
            ),
        )
