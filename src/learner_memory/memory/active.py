"""Active memory: request-scoped state for one tutor turn. Never persisted."""

import time

from pydantic import BaseModel, Field

from learner_memory.models.evaluation import TurnEvaluation


class ActiveMemory(BaseModel):
    session_id: str
    language: str
    recall_context: str | None = None
    turn_started: float = Field(default_factory=time.monotonic)
    evaluation: TurnEvaluation | None = None

    @property
    def recalled(self) -> bool:
        return self.recall_context is not None

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.turn_started) * 1000)
