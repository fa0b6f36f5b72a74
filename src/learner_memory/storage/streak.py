"""Daily activity ledger: streak tracking and calendar view."""

from datetime import date, datetime, timedelta

import structlog

from learner_memory.models.streak import CalendarDay, DayActivity, StreakLedger, StreakStats
from learner_memory.storage.documents import DocumentStore

logger = structlog.get_logger()

STREAK_KEY = "daily_streak"


def _walk_back(active: set[date], start: date) -> int:
    count = 0
    cursor = start
    while cursor in active:
        count += 1
        cursor -= timedelta(days=1)
    return count


def _parse_days(keys: set[str]) -> set[date]:
    days = set()
    for key in keys:
        try:
            days.add(date.fromisoformat(key))
        except ValueError:
            logger.warning("streak_day_invalid", day=key)
    return days


def compute_streak(ledger: StreakLedger, today: date | None = None) -> StreakStats:
    """Derive current/longest streaks from the ledger.

    The current streak ends today, or yesterday when there is no activity yet
    today, so it does not reset before the learner has had a chance to practice.
    Keys that are not ISO dates are skipped.
    """
    today = today or date.today()
    active = _parse_days(ledger.active_days())
    if not ledger.root:
        return StreakStats()

    current = _walk_back(active, today)
    if current == 0:
        current = _walk_back(active, today - timedelta(days=1))

    longest = 0
    run = 0
    previous: date | None = None
    for day in sorted(active):
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day

    return StreakStats(
        current=current,
        longest=longest,
        total_active_days=len(active),
        today_hits=ledger.hits_on(today),
    )


def recent_days(ledger: StreakLedger, n: int = 14, today: date | None = None) -> list[CalendarDay]:
    """The last ``n`` calendar days, oldest first; gaps appear as inactive days."""
    today = today or date.today()
    days = []
    for offset in range(n - 1, -1, -1):
        day = today - timedelta(days=offset)
        hits = ledger.hits_on(day)
        days.append(CalendarDay(date=day, weekday=day.strftime("%a"), hits=hits, active=hits > 0))
    return days


class StreakStore:
    """Persists the append-only daily activity ledger.

    Args:
        documents: Backing document store.
    """

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    def ledger(self) -> StreakLedger:
        return self.documents.load(STREAK_KEY, StreakLedger, StreakLedger)

    def record_activity(self, now: datetime | None = None) -> DayActivity:
        """Count one qualifying interaction for today."""
        now = now or datetime.now()
        key = now.date().isoformat()

        def _hit(ledger: StreakLedger) -> None:
            activity = ledger.root.setdefault(key, DayActivity())
            activity.hits += 1
            activity.last_hit = now

        ledger = self.documents.update(STREAK_KEY, StreakLedger, StreakLedger, _hit)
        logger.debug("activity_recorded", day=key, hits=ledger.root[key].hits)
        return ledger.root[key]

    def stats(self, today: date | None = None) -> StreakStats:
        return compute_streak(self.ledger(), today)

    def calendar(self, n: int = 14, today: date | None = None) -> list[CalendarDay]:
        return recent_days(self.ledger(), n, today)

    def reset(self) -> None:
        self.documents.save(STREAK_KEY, StreakLedger())
