"""One conversational tutor turn, wired through the memory tiers."""

import secrets
import time

import structlog
from pydantic import BaseModel

from learner_memory.completion.client import CompletionClient
from learner_memory.conversation.fluency import parse_fluency_data
from learner_memory.conversation.prompts import build_tutor_prompt
from learner_memory.errors import CompletionNotConfiguredError, InvalidRequestError
from learner_memory.memory.active import ActiveMemory
from learner_memory.memory.facts import FactMerger
from learner_memory.memory.recall import RecallEngine
from learner_memory.models.evaluation import TurnEvaluation
from learner_memory.storage.sessions import SessionStore
from learner_memory.storage.streak import StreakStore

logger = structlog.get_logger()

TUTOR_TEMPERATURE = 0.7


def new_session_id() -> str:
    return f"chat_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


class TurnResult(BaseModel):
    session_id: str
    reply: str
    evaluation: TurnEvaluation
    recalled: bool = False
    elapsed_ms: int = 0


class TutorConversation:
    """Runs a chat turn: recall, completion, session update and fact merge.

    Args:
        completion: Completion service client.
        sessions: Session memory store.
        recall: Recall engine over the facts memory.
        facts: Fact merger for the facts memory.
        streak: Daily activity ledger.
        history_turns: Number of prior messages sent as context.
    """

    def __init__(
        self,
        completion: CompletionClient,
        sessions: SessionStore,
        recall: RecallEngine,
        facts: FactMerger,
        streak: StreakStore,
        history_turns: int = 20,
    ):
        self.completion = completion
        self.sessions = sessions
        self.recall = recall
        self.facts = facts
        self.streak = streak
        self.history_turns = history_turns

    async def handle_turn(
        self,
        message: str,
        language: str,
        session_id: str | None = None,
    ) -> TurnResult:
        """Handle one learner message.

        Args:
            message: The learner's message.
            language: Target language name.
            session_id: Existing session to continue; a new one is created
                when omitted or unknown.

        Returns:
            TurnResult with the visible reply and the turn's evaluation.

        Raises:
            InvalidRequestError: ``message`` or ``language`` is empty.
            CompletionNotConfiguredError: No API key is configured.
            CompletionError: The completion service failed.
        """
        if not message or not message.strip() or not language or not language.strip():
            raise InvalidRequestError("Missing required fields: message, language")

        self.streak.record_activity()

        session_id = session_id or new_session_id()
        session = self.sessions.load(session_id)
        if session is None:
            session = self.sessions.create(session_id, language)

        active = ActiveMemory(
            session_id=session.id,
            language=language,
            recall_context=self.recall.build_context(message, language),
        )
        logger.info("tutor_turn_started", session_id=session.id, recalled=active.recalled)

        messages = [{"role": "system", "content": build_tutor_prompt(language, active.recall_context)}]
        messages.extend(session.history(self.history_turns))
        messages.append({"role": "user", "content": message})

        text = await self.completion.chat(messages, temperature=TUTOR_TEMPERATURE)
        if text is None:
            raise CompletionNotConfiguredError()

        reply, evaluation = parse_fluency_data(text)
        active.evaluation = evaluation

        session.record_turn(message, reply, evaluation)
        self.sessions.save(session)
        self.facts.merge(session, evaluation, language)

        result = TurnResult(
            session_id=session.id,
            reply=reply,
            evaluation=evaluation,
            recalled=active.recalled,
            elapsed_ms=active.elapsed_ms(),
        )
        logger.info(
            "tutor_turn_completed",
            session_id=session.id,
            score=evaluation.score,
            new_vocabulary=len(evaluation.new_vocabulary),
            elapsed_ms=result.elapsed_ms,
        )
        return result
