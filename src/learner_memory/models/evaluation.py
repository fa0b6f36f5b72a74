"""Per-turn evaluation returned by the tutor alongside each reply."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class VocabularyItem(BaseModel):
    word: str
    meaning: str = ""


class TurnEvaluation(BaseModel):
    """Fluency score, new vocabulary and topics for one conversational turn."""

    score: float = 0.0
    feedback: str = ""
    new_vocabulary: list[VocabularyItem] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _numeric_score(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    @field_validator("new_vocabulary", mode="before")
    @classmethod
    def _coerce_vocabulary(cls, value: Any) -> list[dict]:
        # The service sends either bare words or {"word", "meaning"} objects
        if not isinstance(value, list):
            return []
        items = []
        for item in value:
            if isinstance(item, str) and item.strip():
                items.append({"word": item.strip(), "meaning": ""})
            elif isinstance(item, dict) and str(item.get("word") or "").strip():
                items.append({
                    "word": str(item["word"]).strip(),
                    "meaning": str(item.get("meaning") or ""),
                })
        return items

    @field_validator("topics", "suggestions", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
