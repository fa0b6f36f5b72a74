"""XP, level and difficulty progression."""

from enum import StrEnum

from pydantic import BaseModel, Field

# XP required to reach level i+1
LEVEL_THRESHOLDS: list[int] = [0, 100, 250, 500, 800, 1200, 1700, 2300, 3000, 4000]


class Difficulty(StrEnum):
    """Difficulty tier derived from the learner's level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @classmethod
    def from_level(cls, level: int) -> "Difficulty":
        if level <= 2:
            return cls.BEGINNER
        elif level <= 4:
            return cls.INTERMEDIATE
        elif level <= 7:
            return cls.ADVANCED
        else:
            return cls.EXPERT


def level_for_xp(xp: int) -> int:
    """Highest level whose threshold does not exceed ``xp``."""
    level = 1
    for index, threshold in enumerate(LEVEL_THRESHOLDS):
        if xp >= threshold:
            level = index + 1
    return level


def next_level_threshold(level: int) -> int | None:
    if level >= len(LEVEL_THRESHOLDS):
        return None
    return LEVEL_THRESHOLDS[level]


class XpAward(BaseModel):
    xp_earned: int
    total_xp: int
    previous_level: int
    level: int
    difficulty: Difficulty
    leveled_up: bool


class LevelProgress(BaseModel):
    xp: int
    level: int
    difficulty: Difficulty
    xp_to_next: int
    next_level_threshold: int | None
    progress_pct: int


class ProgressionState(BaseModel):
    """Global XP counter plus the per-word tally of words learned in scenes."""

    xp: int = 0
    level: int = 1
    difficulty: Difficulty = Difficulty.BEGINNER
    words_learned: dict[str, int] = Field(default_factory=dict)

    def add_xp(self, amount: int) -> XpAward:
        """Add XP and ratchet the level upward; levels never go down."""
        if amount < 0:
            raise ValueError("XP awards must be non-negative")
        previous_level = self.level
        self.xp += amount
        self.level = max(self.level, level_for_xp(self.xp))
        self.difficulty = Difficulty.from_level(self.level)
        return XpAward(
            xp_earned=amount,
            total_xp=self.xp,
            previous_level=previous_level,
            level=self.level,
            difficulty=self.difficulty,
            leveled_up=self.level > previous_level,
        )

    def progress(self) -> LevelProgress:
        threshold = next_level_threshold(self.level)
        current = LEVEL_THRESHOLDS[min(self.level, len(LEVEL_THRESHOLDS)) - 1]
        if threshold is None:
            pct, to_next = 100, 0
        else:
            pct = round((self.xp - current) / (threshold - current) * 100)
            pct = max(0, min(100, pct))
            to_next = max(0, threshold - self.xp)
        return LevelProgress(
            xp=self.xp,
            level=self.level,
            difficulty=self.difficulty,
            xp_to_next=to_next,
            next_level_threshold=threshold,
            progress_pct=pct,
        )
