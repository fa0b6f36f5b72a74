"""Word exposure log and raw interaction records."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator


class ExposureWord(BaseModel):
    word: str
    meaning: str = ""
    strength: float = 0.0
    context: str = ""


class WordExposureLog(BaseModel):
    """Words grouped by how the learner met them.

    ``user_used`` words came out of the learner's own input, ``scene_used``
    words were shown in a scene but not yet produced, ``all`` is every word.
    """

    all: list[ExposureWord] = Field(default_factory=list)
    user_used: list[ExposureWord] = Field(default_factory=list)
    scene_used: list[ExposureWord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_flat_list(cls, data: Any) -> Any:
        # Early files stored a flat list of user words
        if isinstance(data, list):
            return {"all": data, "user_used": list(data), "scene_used": []}
        return data


class LearnedWord(BaseModel):
    word: str
    meaning: str = ""
    context_sentence: str = ""


class InteractionRecord(BaseModel):
    """One scored practice interaction outside of chat sessions."""

    id: str
    timestamp: datetime = Field(default_factory=datetime.now)
    scene_id: str = ""
    user_input: str = ""
    words_to_add: list[LearnedWord] = Field(default_factory=list)
    xp_gained: int = 0


class InteractionLog(BaseModel):
    interactions: list[InteractionRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_list(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"interactions": data}
        return data
