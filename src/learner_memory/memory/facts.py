"""Fact merger: folds each conversational turn into the facts memory."""

import structlog

from learner_memory.models.evaluation import TurnEvaluation
from learner_memory.models.knowledge import KnowledgeBase
from learner_memory.models.session import SessionRecord
from learner_memory.storage.knowledge import KnowledgeStore
from learner_memory.storage.sessions import SessionStore

logger = structlog.get_logger()


class FactMerger:
    """Merges per-turn evaluations into the durable per-language profile.

    Args:
        knowledge: Facts memory store.
        sessions: Session store, used to re-derive session/message counts.
    """

    def __init__(self, knowledge: KnowledgeStore, sessions: SessionStore):
        self.knowledge = knowledge
        self.sessions = sessions

    def merge(
        self,
        session: SessionRecord,
        evaluation: TurnEvaluation,
        language: str,
    ) -> KnowledgeBase:
        """Merge one turn's evaluation into the facts memory.

        Args:
            session: The session the turn belongs to (already saved).
            evaluation: Parsed evaluation for the turn.
            language: Target language name.

        Returns:
            The updated knowledge document.
        """

        def _merge(knowledge: KnowledgeBase) -> None:
            profile = knowledge.profile_for(language)

            summaries = self.sessions.list_summaries(language)
            profile.session_count = len(summaries)
            profile.message_count = sum(s.message_count for s in summaries)

            if evaluation.score > 0:
                profile.record_fluency(evaluation.score)

            for item in evaluation.new_vocabulary:
                profile.reinforce_word(item.word, item.meaning)

            for topic in evaluation.topics:
                profile.classify_topic(topic, evaluation.score)

        knowledge = self.knowledge.update(_merge)
        profile = knowledge.languages[language]
        logger.info(
            "facts_merged",
            session_id=session.id,
            language=language,
            vocabulary=len(profile.vocabulary),
            avg_fluency=profile.avg_fluency,
            strong_topics=len(profile.strong_topics),
            weak_topics=len(profile.weak_topics),
        )
        return knowledge

    def reset_language(self, language: str) -> bool:
        """Forget everything learned in one language."""
        removed: list[bool] = []

        def _drop(knowledge: KnowledgeBase) -> None:
            removed.append(knowledge.languages.pop(language, None) is not None)

        self.knowledge.update(_drop)
        logger.info("facts_language_reset", language=language, removed=removed[0])
        return removed[0]
