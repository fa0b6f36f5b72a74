"""Session memory persistence: one JSON document per conversation."""

from datetime import datetime

import structlog

from learner_memory.errors import SessionNotFoundError
from learner_memory.models.session import SessionRecord, SessionSummary
from learner_memory.storage.documents import DocumentStore

logger = structlog.get_logger()

SESSIONS_PREFIX = "chat_sessions"


class SessionStore:
    """Create, load, save and list chat sessions.

    Args:
        documents: Backing document store.
    """

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{SESSIONS_PREFIX}/{session_id}"

    def create(self, session_id: str, language: str) -> SessionRecord:
        logger.info("session_created", session_id=session_id, language=language)
        return SessionRecord(id=session_id, language=language)

    def load(self, session_id: str) -> SessionRecord | None:
        return self.documents.load(self._key(session_id), SessionRecord)

    def get(self, session_id: str) -> SessionRecord:
        session = self.load(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def save(self, session: SessionRecord) -> None:
        """Persist a session, re-deriving avg_fluency from its scores."""
        session.updated_at = datetime.now()
        session.recompute_average()
        self.documents.save(self._key(session.id), session)
        logger.info(
            "session_saved",
            session_id=session.id,
            messages=session.message_count,
            avg_fluency=session.avg_fluency,
        )

    def all(self, language: str | None = None) -> list[SessionRecord]:
        sessions = []
        for key in self.documents.keys(SESSIONS_PREFIX):
            session = self.documents.load(key, SessionRecord)
            if session is None:
                logger.warning("session_parse_error", key=key)
                continue
            if language is None or session.language == language:
                sessions.append(session)
        sessions.sort(key=lambda s: s.updated_at, reverse=True)
        return sessions

    def list_summaries(self, language: str | None = None) -> list[SessionSummary]:
        """Session metadata, most recently updated first."""
        return [s.summary() for s in self.all(language)]

    def recent(self, language: str, limit: int = 5) -> list[SessionRecord]:
        return self.all(language)[:limit]

    def delete(self, session_id: str) -> bool:
        return self.documents.delete(self._key(session_id))

    def delete_all(self) -> int:
        return self.documents.clear(SESSIONS_PREFIX)
