"""Tests for the daily streak ledger."""

from datetime import date, datetime, timedelta

from learner_memory.models.streak import DayActivity, StreakLedger
from learner_memory.storage.streak import StreakStore, compute_streak, recent_days

TODAY = date(2026, 10, 19)


def ledger_from(hits_by_offset: dict[int, int]) -> StreakLedger:
    return StreakLedger.model_validate({
        (TODAY - timedelta(days=offset)).isoformat(): {"hits": hits}
        for offset, hits in hits_by_offset.items()
    })


class TestComputeStreak:
    def test_empty_ledger(self):
        stats = compute_streak(StreakLedger(), TODAY)
        assert (stats.current, stats.longest, stats.total_active_days) == (0, 0, 0)

    def test_streak_survives_until_today_is_practiced(self):
        stats = compute_streak(ledger_from({2: 1, 1: 1, 0: 0}), TODAY)
        assert stats.current == 2
        assert stats.today_hits == 0

    def test_gap_breaks_streak(self):
        stats = compute_streak(ledger_from({2: 1, 1: 0, 0: 1}), TODAY)
        assert stats.current == 1
        assert stats.longest == 1
        assert stats.total_active_days == 2

    def test_stale_streak_is_zero(self):
        stats = compute_streak(ledger_from({5: 1, 4: 1}), TODAY)
        assert stats.current == 0
        assert stats.longest == 2

    def test_longest_run(self):
        stats = compute_streak(ledger_from({10: 1, 9: 2, 8: 1, 7: 1, 3: 1, 2: 1, 0: 4}), TODAY)
        assert stats.longest == 4
        assert stats.current == 1
        assert stats.today_hits == 4

    def test_malformed_day_keys_skipped(self):
        ledger = ledger_from({1: 1, 0: 1})
        ledger.root["foo"] = DayActivity(hits=3)
        ledger.root["2026-13-45"] = DayActivity(hits=1)

        stats = compute_streak(ledger, TODAY)

        assert (stats.current, stats.longest, stats.total_active_days) == (2, 2, 2)

    def test_store_with_malformed_key_on_disk(self, documents):
        documents.save("daily_streak", StreakLedger.model_validate({"foo": {"hits": 2}}))
        store = StreakStore(documents)
        store.record_activity(datetime(2026, 10, 19, 9, 0))

        stats = store.stats(TODAY)

        assert (stats.current, stats.total_active_days) == (1, 1)


class TestRecentDays:
    def test_returns_n_days_oldest_first(self):
        days = recent_days(ledger_from({0: 2, 3: 1}), 14, TODAY)
        assert len(days) == 14
        assert days[0].date == TODAY - timedelta(days=13)
        assert days[-1].date == TODAY
        assert days[-1].weekday == TODAY.strftime("%a")
        assert days[-1].hits == 2 and days[-1].active
        assert days[-4].active
        assert not days[-2].active


class TestStreakStore:
    def test_record_activity_counts_hits(self, documents):
        store = StreakStore(documents)
        now = datetime(2026, 10, 19, 9, 30)
        store.record_activity(now)
        activity = store.record_activity(now)
        assert activity.hits == 2
        assert store.ledger().hits_on(TODAY) == 2
        assert store.stats(TODAY).current == 1

    def test_reset(self, documents):
        store = StreakStore(documents)
        store.record_activity()
        store.reset()
        assert store.ledger().root == {}
