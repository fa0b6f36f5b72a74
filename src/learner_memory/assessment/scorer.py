"""Quiz scoring: MCQ grading, totals, XP and letter grades."""

import math

from learner_memory.models.quiz import ListeningQuestion, QuestionResult, QuestionType

XP_PER_QUESTION = 5

GRADE_BANDS: list[tuple[int, str]] = [(90, "A+"), (80, "A"), (70, "B"), (60, "C"), (50, "D")]

MESSAGE_BANDS: list[tuple[int, str]] = [
    (90, "Outstanding! You nailed it!"),
    (70, "Great job! Keep it up!"),
    (50, "Good effort! Practice makes perfect."),
]
DEFAULT_MESSAGE = "Keep learning! Review the corrections below."


def round_half_up(value: float) -> int:
    # round() rounds halves to even; scores round halves up
    return math.floor(value + 0.5)


def grade_listening(question: ListeningQuestion, answer: str) -> QuestionResult:
    """Exact, case-insensitive match of the trimmed answer against the key."""
    answer = answer.strip()
    correct = answer.lower() == question.correct_answer.strip().lower()
    if correct:
        feedback = "Correct! Great listening skills."
    else:
        feedback = f'Incorrect. "{question.word}" means "{question.correct_answer}".'
    return QuestionResult(
        question_id=question.id,
        type=QuestionType.LISTENING_MCQ,
        word=question.word,
        word_romanized=question.word_romanized,
        user_answer=answer,
        correct_answer=question.correct_answer,
        options=list(question.options),
        correct=correct,
        score=100 if correct else 0,
        feedback=feedback,
    )


def total_score(results: list[QuestionResult]) -> int:
    if not results:
        return 0
    return round_half_up(sum(r.score for r in results) / len(results))


def xp_for(score: int, num_questions: int) -> int:
    """XP earned for a quiz: ``round(score / 100 * n * 5)``."""
    return round_half_up(score / 100 * num_questions * XP_PER_QUESTION)


def letter_grade(score: int) -> str:
    for threshold, grade in GRADE_BANDS:
        if score >= threshold:
            return grade
    return "F"


def summary_message(score: int) -> str:
    for threshold, message in MESSAGE_BANDS:
        if score >= threshold:
            return message
    return DEFAULT_MESSAGE
