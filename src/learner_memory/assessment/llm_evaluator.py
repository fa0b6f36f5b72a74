"""Completion-service grading for speaking answers."""

from typing import Any

import structlog

from learner_memory.assessment.prompts import evaluation_system_prompt, evaluation_user_message
from learner_memory.assessment.scorer import round_half_up
from learner_memory.completion.client import CompletionClient
from learner_memory.errors import CompletionError
from learner_memory.models.quiz import QuestionResult, QuestionType, QuizDocument, SpeakingQuestion

logger = structlog.get_logger()

FALLBACK_FEEDBACK = "AI could not evaluate this answer. Please try again."
MISSING_FEEDBACK = "No feedback available."
CORRECT_THRESHOLD = 60


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return round_half_up(max(0, min(100, value)))


def _correct_flag(value: Any, score: int) -> bool:
    # the service verdict wins; the threshold only fills in when it is absent
    if isinstance(value, bool):
        return value
    return score >= CORRECT_THRESHOLD


def fallback_result(question: SpeakingQuestion, answer: str) -> QuestionResult:
    """Score-0 result used when the service cannot grade an answer."""
    return QuestionResult(
        question_id=question.id,
        type=QuestionType.SPEAKING,
        sentence_en=question.sentence_en,
        user_answer=answer,
        expected_answer=question.expected_answer,
        corrected_answer=question.expected_answer,
        correct=False,
        score=0,
        feedback=FALLBACK_FEEDBACK,
    )


class SpeakingEvaluator:
    """Grades every speaking answer of a quiz in one completion request.

    Args:
        completion: Completion service client.
    """

    def __init__(self, completion: CompletionClient):
        self.completion = completion

    async def evaluate(
        self,
        quiz: QuizDocument,
        answers: dict[int, str],
    ) -> list[QuestionResult]:
        """Grade the speaking questions of ``quiz``.

        Args:
            quiz: The quiz being graded.
            answers: Trimmed answer text keyed by question id.

        Returns:
            One result per speaking question. Questions the service fails on,
            or leaves out of its reply, get the fallback result.
        """
        speaking = [q for q in quiz.questions if isinstance(q, SpeakingQuestion)]
        if not speaking:
            return []

        items = [
            {
                "questionId": q.id,
                "sentence_en": q.sentence_en,
                "expected_answer": q.expected_answer,
                "expected_answer_romanized": q.expected_answer_romanized,
                "acceptable_variations": q.acceptable_variations,
                "user_answer": answers.get(q.id, ""),
            }
            for q in speaking
        ]

        try:
            data = await self.completion.complete_json(
                evaluation_system_prompt(quiz.language, quiz.level, quiz.difficulty),
                evaluation_user_message(quiz.language, items),
            )
        except CompletionError as e:
            logger.error("speaking_evaluation_failed", quiz_id=quiz.quiz_id, error=str(e))
            return [fallback_result(q, answers.get(q.id, "")) for q in speaking]

        graded: dict[int, dict] = {}
        evaluations = data.get("evaluations")
        if isinstance(evaluations, list):
            for ev in evaluations:
                if not isinstance(ev, dict):
                    continue
                try:
                    graded.setdefault(int(ev.get("questionId")), ev)
                except (TypeError, ValueError):
                    logger.warning("speaking_evaluation_bad_id", question_id=ev.get("questionId"))

        results = []
        for q in speaking:
            answer = answers.get(q.id, "")
            ev = graded.get(q.id)
            if ev is None:
                logger.warning("speaking_evaluation_missing", quiz_id=quiz.quiz_id, question_id=q.id)
                results.append(fallback_result(q, answer))
                continue
            score = _clamp_score(ev.get("score"))
            results.append(QuestionResult(
                question_id=q.id,
                type=QuestionType.SPEAKING,
                sentence_en=q.sentence_en,
                user_answer=answer,
                expected_answer=q.expected_answer,
                corrected_answer=str(ev.get("corrected_answer") or q.expected_answer),
                pronunciation_tip=str(ev.get("pronunciation_tip") or ""),
                correct=_correct_flag(ev.get("correct"), score),
                score=score,
                feedback=str(ev.get("feedback") or MISSING_FEEDBACK),
            ))
        logger.info("speaking_evaluation_complete", quiz_id=quiz.quiz_id, graded=len(graded))
        return results
