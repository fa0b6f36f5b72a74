"""Engine facade: wires the stores, memories and services together."""

import structlog
from pydantic import BaseModel

from learner_memory.analysis.dashboard import DashboardBuilder
from learner_memory.assessment.llm_evaluator import SpeakingEvaluator
from learner_memory.assessment.quiz_evaluator import QuizEvaluator
from learner_memory.assessment.quiz_generator import QuizGenerator
from learner_memory.completion.client import CompletionClient
from learner_memory.config import Settings
from learner_memory.conversation.tutor import TutorConversation
from learner_memory.errors import InvalidRequestError
from learner_memory.memory.aggregator import LearnerProfileAggregator
from learner_memory.memory.facts import FactMerger
from learner_memory.memory.recall import RecallEngine
from learner_memory.models.interactions import InteractionRecord, LearnedWord
from learner_memory.models.progression import XpAward
from learner_memory.storage.documents import DocumentStore
from learner_memory.storage.interactions import InteractionStore
from learner_memory.storage.knowledge import KnowledgeStore
from learner_memory.storage.progression import ProgressionStore
from learner_memory.storage.quizzes import QuizStore
from learner_memory.storage.sessions import SessionStore
from learner_memory.storage.streak import StreakStore

logger = structlog.get_logger()


class InteractionResult(BaseModel):
    interaction: InteractionRecord
    xp: XpAward


class LearnerMemoryEngine:
    """Single entry point for the HTTP layer and the tests.

    Args:
        settings: Application settings.
        completion: Optional pre-built completion client (tests inject mocks).
    """

    def __init__(self, settings: Settings, completion: CompletionClient | None = None):
        self.settings = settings
        self.documents = DocumentStore(settings.storage_dir)

        self.sessions = SessionStore(self.documents)
        self.knowledge = KnowledgeStore(self.documents)
        self.progression = ProgressionStore(self.documents)
        self.quizzes = QuizStore(self.documents)
        self.interactions = InteractionStore(self.documents)
        self.streak = StreakStore(self.documents)

        self.completion = completion or CompletionClient(
            api_key=settings.completion_api_key,
            base_url=settings.completion_base_url,
            model=settings.completion_model,
            temperature=settings.completion_temperature,
            max_tokens=settings.completion_max_tokens,
            max_retries=settings.completion_max_retries,
            timeout=settings.completion_timeout,
        )

        self.facts = FactMerger(self.knowledge, self.sessions)
        self.recall = RecallEngine(self.knowledge)
        self.aggregator = LearnerProfileAggregator(
            self.progression, self.knowledge, self.sessions, self.interactions
        )
        self.tutor = TutorConversation(
            self.completion,
            self.sessions,
            self.recall,
            self.facts,
            self.streak,
            history_turns=settings.chat_history_turns,
        )
        self.quiz_generator = QuizGenerator(
            self.aggregator,
            self.completion,
            self.quizzes,
            default_questions=settings.quiz_default_questions,
            min_questions=settings.quiz_min_questions,
            max_questions=settings.quiz_max_questions,
        )
        self.quiz_evaluator = QuizEvaluator(
            self.quizzes, self.progression, self.streak, SpeakingEvaluator(self.completion)
        )
        self.dashboard = DashboardBuilder(
            self.progression,
            self.interactions,
            self.sessions,
            self.knowledge,
            self.quizzes,
            self.streak,
        )
        logger.info(
            "engine_initialized",
            storage_dir=str(settings.storage_dir),
            completion_configured=self.completion.configured,
        )

    def reset_all(self) -> dict[str, int]:
        """Restore every document to its default and clear the collections."""
        self.progression.reset()
        self.interactions.reset()
        self.knowledge.reset()
        self.streak.reset()
        sessions = self.sessions.delete_all()
        quizzes = self.quizzes.delete_all()
        logger.info("engine_reset", sessions=sessions, quizzes=quizzes)
        return {"sessions_deleted": sessions, "quizzes_deleted": quizzes}

    def record_interaction(
        self,
        user_input: str,
        words: list[LearnedWord],
        scene_id: str = "",
        xp_gained: int = 0,
        scene_words: list[LearnedWord] | None = None,
    ) -> InteractionResult:
        """Record a scored practice interaction outside of chat.

        The learner's words enter the exposure log and the words-learned
        tally, and ``xp_gained`` is awarded. ``scene_words`` are words the
        scene showed the learner; they are logged as seen, not used.
        """
        if not user_input or not user_input.strip():
            raise InvalidRequestError("Missing required field: user_input")
        if xp_gained < 0:
            raise InvalidRequestError("xp_gained must be non-negative")

        self.streak.record_activity()
        record = self.interactions.append_interaction(user_input, words, scene_id, xp_gained)
        if scene_words:
            self.interactions.add_scene_words(scene_words)
        self.interactions.add_words(words)
        self.progression.record_words_learned([w.word for w in words])
        award = self.progression.add_xp(xp_gained)
        return InteractionResult(interaction=record, xp=award)
