"""Splits a tutor reply from its trailing fluency evaluation."""

import json
import re

import structlog
from pydantic import ValidationError

from learner_memory.conversation.prompts import FLUENCY_MARKER
from learner_memory.models.evaluation import TurnEvaluation

logger = structlog.get_logger()

DEFAULT_FEEDBACK = "Could not evaluate fluency this turn."

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def default_evaluation() -> TurnEvaluation:
    return TurnEvaluation(score=0, feedback=DEFAULT_FEEDBACK)


def parse_fluency_data(text: str) -> tuple[str, TurnEvaluation]:
    """Split ``text`` into the visible reply and its evaluation.

    A missing marker or unparsable JSON yields the default evaluation.
    """
    index = text.find(FLUENCY_MARKER)
    if index == -1:
        logger.debug("fluency_marker_missing")
        return text.strip(), default_evaluation()

    reply = text[:index].strip()
    match = _JSON_OBJECT.search(text[index + len(FLUENCY_MARKER):])
    if match is None:
        return reply, default_evaluation()

    try:
        data = json.loads(match.group(0))
        if not isinstance(data, dict):
            raise ValueError("fluency data is not an object")
        data["feedback"] = str(data.get("feedback") or "")
        return reply, TurnEvaluation.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.warning("fluency_parse_error", error=str(e))
        return reply, default_evaluation()
