"""REST API routes for chat, memory, quizzes and progress."""

import functools

import structlog
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from learner_memory.config import get_settings
from learner_memory.engine import LearnerMemoryEngine
from learner_memory.errors import (
    CompletionError,
    InsufficientVocabularyError,
    InvalidRequestError,
    LearnerMemoryError,
    QuizAlreadyCompletedError,
    QuizNotFoundError,
    SessionNotFoundError,
)
from learner_memory.models.interactions import LearnedWord
from learner_memory.models.quiz import Answer, QuizSummary

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


@functools.lru_cache
def get_engine() -> LearnerMemoryEngine:
    """Engine singleton built from the application settings."""
    return LearnerMemoryEngine(get_settings())


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    language: str = ""
    session_id: str | None = Field(default=None, alias="sessionId")


class QuizGenerateRequest(BaseModel):
    language: str = ""
    num_questions: int | None = None


class QuizEvaluateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quiz_id: str = Field(default="", alias="quizId")
    answers: list[Answer] | None = None


class InteractionRequest(BaseModel):
    user_input: str = ""
    words_to_add: list[LearnedWord] = Field(default_factory=list)
    scene_id: str = ""
    scene_words: list[LearnedWord] = Field(default_factory=list)
    xp_gained: int = 0


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine errors onto HTTP status codes."""

    @app.exception_handler(LearnerMemoryError)
    async def _engine_error(request: Request, exc: LearnerMemoryError) -> JSONResponse:
        body: dict = {"error": exc.message}
        if isinstance(exc, (InvalidRequestError, InsufficientVocabularyError)):
            status = 400
            body.update(exc.details)
        elif isinstance(exc, (SessionNotFoundError, QuizNotFoundError)):
            status = 404
        elif isinstance(exc, QuizAlreadyCompletedError):
            status = 409
            results = exc.results
            body["results"] = results.model_dump(mode="json", by_alias=True) if results else None
        elif isinstance(exc, CompletionError):
            status = 502
            body["details"] = str(exc)
        else:
            status = 500
        logger.warning("request_failed", path=request.url.path, status=status, error=exc.message)
        return JSONResponse(body, status_code=status)


# ── chat ──


@router.post("/chat")
async def chat(body: ChatRequest, engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    """Run one tutor turn."""
    result = await engine.tutor.handle_turn(body.message, body.language, body.session_id)
    return result.model_dump(mode="json")


@router.get("/chat/sessions")
async def list_sessions(
    language: str | None = None,
    engine: LearnerMemoryEngine = Depends(get_engine),
) -> list[dict]:
    """List session metadata, most recently updated first."""
    return [s.model_dump(mode="json") for s in engine.sessions.list_summaries(language)]


@router.delete("/chat/sessions")
async def delete_all_sessions(engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    return {"success": True, "deleted": engine.sessions.delete_all()}


@router.get("/chat/sessions/{session_id}")
async def get_session(session_id: str, engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    """Get a session's full data."""
    return engine.sessions.get(session_id).model_dump(mode="json")


@router.delete("/chat/sessions/{session_id}")
async def delete_session(session_id: str, engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    if not engine.sessions.delete(session_id):
        raise SessionNotFoundError(session_id)
    return {"success": True, "deleted": session_id}


# ── memory ──


@router.get("/memory")
async def get_memory(engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    """Global progression: XP, level, difficulty and words learned."""
    return engine.progression.load().model_dump(mode="json")


@router.delete("/memory")
async def reset_memory(engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    engine.progression.reset()
    return {"success": True, "message": "Memory reset to default."}


@router.get("/knowledge")
async def get_knowledge(engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    """The facts memory document."""
    return engine.knowledge.load().model_dump(mode="json")


@router.delete("/knowledge/{language}")
async def reset_language(language: str, engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    """Forget the facts memory of one language."""
    if not engine.facts.reset_language(language):
        raise HTTPException(status_code=404, detail=f'No knowledge for "{language}".')
    return {"success": True, "deleted": language}


@router.get("/words")
async def get_words(
    source: str | None = None,
    engine: LearnerMemoryEngine = Depends(get_engine),
) -> list[dict]:
    """Exposure log entries, lowest strength first.

    ``source`` selects ``user_used``, ``scene_used`` or ``all``; by default
    user and scene words are merged.
    """
    exposure = engine.interactions.exposure()
    if source in ("user_used", "scene_used", "all"):
        words = list(getattr(exposure, source))
    elif source is None:
        words = exposure.user_used + exposure.scene_used
    else:
        raise InvalidRequestError(f"Unknown word source: {source}")
    words.sort(key=lambda w: w.strength)
    return [w.model_dump(mode="json") for w in words]


@router.post("/interactions")
async def record_interaction(
    body: InteractionRequest,
    engine: LearnerMemoryEngine = Depends(get_engine),
) -> dict:
    result = engine.record_interaction(
        body.user_input,
        body.words_to_add,
        body.scene_id,
        body.xp_gained,
        scene_words=body.scene_words,
    )
    return result.model_dump(mode="json")


# ── quiz ──


@router.post("/quiz/generate")
async def generate_quiz(
    body: QuizGenerateRequest,
    engine: LearnerMemoryEngine = Depends(get_engine),
) -> dict:
    quiz = await engine.quiz_generator.generate(body.language, body.num_questions)
    return {
        "success": True,
        **quiz.model_dump(mode="json", by_alias=True),
        "num_questions": quiz.num_questions,
    }


@router.post("/quiz/evaluate")
async def evaluate_quiz(
    body: QuizEvaluateRequest,
    engine: LearnerMemoryEngine = Depends(get_engine),
) -> dict:
    quiz = await engine.quiz_evaluator.evaluate(body.quiz_id, body.answers)
    results = quiz.results
    return {
        "success": True,
        "quiz_id": quiz.quiz_id,
        "summary": {
            "total_score": results.total_score,
            "correct_count": results.correct_count,
            "total_questions": results.total_questions,
            "percentage": f"{results.total_score}%",
            "grade": results.grade,
            "message": results.message,
        },
        "xp": {
            "xp_earned": results.xp_earned,
            "total_xp": results.total_xp,
            "level": results.level,
            "leveled_up": results.leveled_up,
        },
        "question_results": [
            r.model_dump(mode="json", by_alias=True) for r in results.question_results
        ],
    }


@router.get("/quiz/history")
async def quiz_history(engine: LearnerMemoryEngine = Depends(get_engine)) -> list[dict]:
    """Quiz history, newest first."""
    return [q.model_dump(mode="json", by_alias=True) for q in engine.quizzes.list_summaries()]


@router.get("/quiz/history/{quiz_id}")
async def get_quiz(quiz_id: str, engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    quiz = engine.quizzes.get(quiz_id)
    return QuizSummary.from_quiz(quiz).model_dump(mode="json", by_alias=True)


# ── progress ──


@router.get("/streak")
async def get_streak(engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    return {
        **engine.streak.stats().model_dump(mode="json"),
        "calendar": [d.model_dump(mode="json") for d in engine.streak.calendar()],
    }


@router.get("/dashboard")
async def get_dashboard(engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    return engine.dashboard.build_dashboard().model_dump(mode="json")


@router.post("/reset")
async def reset(engine: LearnerMemoryEngine = Depends(get_engine)) -> dict:
    """Reset all progress to defaults."""
    counts = engine.reset_all()
    return {"success": True, "message": "All progress has been reset.", **counts}


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
