"""Quiz history persistence: one JSON document per quiz."""

from contextlib import AbstractContextManager

import structlog

from learner_memory.errors import QuizNotFoundError
from learner_memory.models.quiz import QuizDocument, QuizSummary
from learner_memory.storage.documents import DocumentStore

logger = structlog.get_logger()

QUIZ_PREFIX = "quiz_history"


class QuizStore:
    def __init__(self, documents: DocumentStore):
        self.documents = documents

    @staticmethod
    def key(quiz_id: str) -> str:
        return f"{QUIZ_PREFIX}/{quiz_id}"

    def locked(self, quiz_id: str) -> AbstractContextManager[None]:
        """Hold the write lock for one quiz document."""
        return self.documents.locked(self.key(quiz_id))

    def save(self, quiz: QuizDocument) -> None:
        self.documents.save(self.key(quiz.quiz_id), quiz)
        logger.info("quiz_saved", quiz_id=quiz.quiz_id, status=quiz.status.value)

    def load(self, quiz_id: str) -> QuizDocument | None:
        return self.documents.load(self.key(quiz_id), QuizDocument)

    def get(self, quiz_id: str) -> QuizDocument:
        quiz = self.load(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)
        return quiz

    def all(self) -> list[QuizDocument]:
        quizzes = []
        for key in self.documents.keys(QUIZ_PREFIX):
            quiz = self.documents.load(key, QuizDocument)
            if quiz is None:
                logger.warning("quiz_parse_error", key=key)
                continue
            quizzes.append(quiz)
        quizzes.sort(key=lambda q: q.created_at, reverse=True)
        return quizzes

    def list_summaries(self) -> list[QuizSummary]:
        """Quiz history, newest first."""
        return [QuizSummary.from_quiz(q) for q in self.all()]

    def delete_all(self) -> int:
        return self.documents.clear(QUIZ_PREFIX)
