"""Daily activity ledger models."""

from datetime import date, datetime

from pydantic import BaseModel, Field, RootModel


class DayActivity(BaseModel):
    hits: int = 0
    last_hit: datetime | None = None

    @property
    def active(self) -> bool:
        return self.hits >= 1


class StreakLedger(RootModel[dict[str, DayActivity]]):
    """Map of ``YYYY-MM-DD`` day keys to that day's activity."""

    root: dict[str, DayActivity] = Field(default_factory=dict)

    def hits_on(self, day: date) -> int:
        activity = self.root.get(day.isoformat())
        return activity.hits if activity else 0

    def active_days(self) -> set[str]:
        return {key for key, activity in self.root.items() if activity.active}


class StreakStats(BaseModel):
    current: int = 0
    longest: int = 0
    total_active_days: int = 0
    today_hits: int = 0


class CalendarDay(BaseModel):
    date: date
    weekday: str
    hits: int = 0
    active: bool = False
