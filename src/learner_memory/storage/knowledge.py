"""Facts memory persistence: the cross-session knowledge document."""

from collections.abc import Callable
from datetime import datetime

import structlog

from learner_memory.models.knowledge import KnowledgeBase, LanguageProfile
from learner_memory.storage.documents import DocumentStore

logger = structlog.get_logger()

KNOWLEDGE_KEY = "chat_knowledge"


class KnowledgeStore:
    def __init__(self, documents: DocumentStore):
        self.documents = documents

    def load(self) -> KnowledgeBase:
        return self.documents.load(KNOWLEDGE_KEY, KnowledgeBase, KnowledgeBase)

    def save(self, knowledge: KnowledgeBase) -> None:
        knowledge.last_updated = datetime.now()
        self.documents.save(KNOWLEDGE_KEY, knowledge)
        logger.info("knowledge_saved", languages=sorted(knowledge.languages))

    def update(self, mutate: Callable[[KnowledgeBase], None]) -> KnowledgeBase:
        """Apply ``mutate`` to the knowledge document under its write lock."""
        with self.documents.locked(KNOWLEDGE_KEY):
            knowledge = self.load()
            mutate(knowledge)
            self.save(knowledge)
        return knowledge

    def profile(self, language: str) -> LanguageProfile | None:
        return self.load().languages.get(language)

    def reset(self) -> None:
        with self.documents.locked(KNOWLEDGE_KEY):
            self.documents.save(KNOWLEDGE_KEY, KnowledgeBase())
        logger.info("knowledge_reset")
