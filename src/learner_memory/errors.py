"""Exception hierarchy for the learner memory engine.

- LearnerMemoryError: base for every engine error
- InvalidRequestError: missing or malformed input, nothing was mutated
- SessionNotFoundError / QuizNotFoundError: unknown identifiers
- InsufficientVocabularyError: not enough known words to build a quiz
- QuizAlreadyCompletedError: re-evaluation of a graded quiz
- CompletionError: the completion service failed after all retries
- CompletionNotConfiguredError: no API key for the completion service
"""

from typing import Any


class LearnerMemoryError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class InvalidRequestError(LearnerMemoryError):
    """Required input is missing or malformed."""


class SessionNotFoundError(LearnerMemoryError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f'Session "{session_id}" not found.')


class QuizNotFoundError(LearnerMemoryError):
    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__(f'Quiz "{quiz_id}" not found.')


class InsufficientVocabularyError(LearnerMemoryError):
    """Raised when the learner knows too few words with meanings for a quiz."""

    def __init__(self, vocab_count: int, required: int):
        self.vocab_count = vocab_count
        self.required = required
        super().__init__(
            f"Not enough vocabulary to generate a quiz. "
            f"Learn at least {required} words with meanings first!",
            details={"vocab_count": vocab_count},
        )


class QuizAlreadyCompletedError(LearnerMemoryError):
    """Raised when a completed quiz is submitted again.

    The stored quiz is attached so callers can still show the earlier outcome.

    Attributes:
        quiz: The completed QuizDocument as persisted.
    """

    def __init__(self, quiz: Any):
        self.quiz = quiz
        super().__init__("This quiz has already been evaluated.")

    @property
    def results(self) -> Any:
        return self.quiz.results


class CompletionError(LearnerMemoryError):
    """The completion service could not produce a usable result."""

    def __init__(self, message: str, attempts: int = 0, details: dict | None = None):
        self.attempts = attempts
        super().__init__(message, details)


class CompletionNotConfiguredError(CompletionError):
    def __init__(self) -> None:
        super().__init__("Completion service is not configured (missing API key).")
