"""Quiz evaluation: grading, XP award and completion, exactly once per quiz."""

from datetime import datetime

import structlog

from learner_memory.assessment.llm_evaluator import SpeakingEvaluator
from learner_memory.assessment.scorer import (
    grade_listening,
    letter_grade,
    summary_message,
    total_score,
    xp_for,
)
from learner_memory.errors import InvalidRequestError, QuizAlreadyCompletedError
from learner_memory.models.quiz import (
    Answer,
    ListeningQuestion,
    QuizDocument,
    QuizResults,
    QuizStatus,
)
from learner_memory.storage.progression import ProgressionStore
from learner_memory.storage.quizzes import QuizStore
from learner_memory.storage.streak import StreakStore

logger = structlog.get_logger()


def answers_by_question(answers: list[Answer]) -> dict[int, str]:
    """Trimmed answer text per question id; the first answer for an id wins."""
    by_id: dict[int, str] = {}
    for answer in answers:
        by_id.setdefault(answer.question_id, answer.answer.strip())
    return by_id


class QuizEvaluator:
    """Grades a pending quiz and awards XP.

    Grading runs without locks. The completion step re-reads the quiz under
    its write lock, so of two concurrent evaluations only one awards XP and
    the other is rejected as already completed.

    Args:
        quizzes: Quiz history store.
        progression: Global XP store.
        streak: Daily activity ledger.
        speaking: Grader for speaking answers.
    """

    def __init__(
        self,
        quizzes: QuizStore,
        progression: ProgressionStore,
        streak: StreakStore,
        speaking: SpeakingEvaluator,
    ):
        self.quizzes = quizzes
        self.progression = progression
        self.streak = streak
        self.speaking = speaking

    async def evaluate(self, quiz_id: str, answers: list[Answer]) -> QuizDocument:
        """Grade ``answers`` for ``quiz_id`` and complete the quiz.

        Args:
            quiz_id: Identifier of a pending quiz.
            answers: Submitted answers, possibly partial.

        Returns:
            The completed QuizDocument with results.

        Raises:
            InvalidRequestError: Missing quiz id or answers list.
            QuizNotFoundError: Unknown quiz id.
            QuizAlreadyCompletedError: The quiz was already graded.
        """
        if not quiz_id or answers is None:
            raise InvalidRequestError("Missing required fields: quizId, answers")

        self.streak.record_activity()

        quiz = self.quizzes.get(quiz_id)
        if quiz.is_completed:
            raise QuizAlreadyCompletedError(quiz)

        by_id = answers_by_question(answers)
        results = [
            grade_listening(q, by_id.get(q.id, ""))
            for q in quiz.questions
            if isinstance(q, ListeningQuestion)
        ]
        results.extend(await self.speaking.evaluate(quiz, by_id))
        results.sort(key=lambda r: r.question_id)

        score = total_score(results)
        xp_earned = xp_for(score, len(results))

        with self.quizzes.locked(quiz_id):
            current = self.quizzes.get(quiz_id)
            if current.is_completed:
                logger.warning("quiz_evaluation_race_lost", quiz_id=quiz_id)
                raise QuizAlreadyCompletedError(current)

            award = self.progression.add_xp(xp_earned)
            now = datetime.now()
            current.status = QuizStatus.COMPLETED
            current.completed_at = now
            current.answers = list(answers)
            current.results = QuizResults(
                question_results=results,
                total_score=score,
                correct_count=sum(1 for r in results if r.correct),
                total_questions=len(results),
                xp_earned=xp_earned,
                leveled_up=award.leveled_up,
                level=award.level,
                total_xp=award.total_xp,
                grade=letter_grade(score),
                message=summary_message(score),
                graded_at=now,
            )
            self.quizzes.save(current)

        logger.info(
            "quiz_evaluated",
            quiz_id=quiz_id,
            total_score=score,
            correct=current.results.correct_count,
            total=current.results.total_questions,
            xp_earned=xp_earned,
            level=award.level,
            leveled_up=award.leveled_up,
        )
        return current
