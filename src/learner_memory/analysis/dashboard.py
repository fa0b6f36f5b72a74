"""Dashboard: one read-only view over every learner document."""

import structlog

from learner_memory.models.dashboard import (
    Activity,
    Dashboard,
    LanguageSummary,
    QuizStats,
    SessionStats,
    StreakView,
    WordStats,
)
from learner_memory.storage.interactions import InteractionStore
from learner_memory.storage.knowledge import KnowledgeStore
from learner_memory.storage.progression import ProgressionStore
from learner_memory.storage.quizzes import QuizStore
from learner_memory.storage.sessions import SessionStore
from learner_memory.storage.streak import StreakStore

logger = structlog.get_logger()

MASTERED_STRENGTH = 0.7
RECENT_ACTIVITY_LIMIT = 5
CALENDAR_DAYS = 14


class DashboardBuilder:
    """Collects progress, sessions, quizzes and streak into one Dashboard.

    Args:
        progression: Global XP store.
        interactions: Word exposure store.
        sessions: Session memory store.
        knowledge: Facts memory store.
        quizzes: Quiz history store.
        streak: Daily activity ledger.
    """

    def __init__(
        self,
        progression: ProgressionStore,
        interactions: InteractionStore,
        sessions: SessionStore,
        knowledge: KnowledgeStore,
        quizzes: QuizStore,
        streak: StreakStore,
    ):
        self.progression = progression
        self.interactions = interactions
        self.sessions = sessions
        self.knowledge = knowledge
        self.quizzes = quizzes
        self.streak = streak

    def build_dashboard(self) -> Dashboard:
        exposure = self.interactions.exposure()
        words = WordStats(
            total=len(exposure.all),
            mastered=sum(1 for w in exposure.user_used if w.strength >= MASTERED_STRENGTH),
            user_used=len(exposure.user_used),
        )

        sessions = self.sessions.all()
        topics: list[str] = []
        activity: list[Activity] = []
        for s in sessions:
            topics.extend(s.topics_covered)
            activity.append(Activity(
                type="chat",
                language=s.language,
                label=s.topics_covered[0] if s.topics_covered else "Chat session",
                timestamp=s.updated_at,
                fluency=s.avg_fluency or None,
            ))

        languages = [
            LanguageSummary(
                language=name,
                sessions=p.session_count,
                avg_fluency=p.avg_fluency,
                fluency_trend=list(p.fluency_trend),
                strong_topics=list(p.strong_topics),
                weak_topics=list(p.weak_topics),
                vocab_count=len(p.vocabulary),
            )
            for name, p in self.knowledge.load().languages.items()
        ]
        avg_fluency = 0
        if languages:
            avg_fluency = round(sum(lang.avg_fluency for lang in languages) / len(languages))

        quizzes = self.quizzes.all()
        completed = [q for q in quizzes if q.is_completed and q.results is not None]
        quiz_stats = QuizStats(total=len(quizzes), completed=len(completed))
        if completed:
            quiz_stats.avg_score = round(
                sum(q.results.total_score for q in completed) / len(completed)
            )
            latest = max(completed, key=lambda q: q.completed_at or q.created_at)
            quiz_stats.last_score = latest.results.total_score
            activity.append(Activity(
                type="quiz",
                language=latest.language,
                label=f"Quiz: {latest.difficulty.value}",
                timestamp=latest.completed_at or latest.created_at,
                score=latest.results.total_score,
            ))

        activity.sort(key=lambda a: a.timestamp, reverse=True)

        dashboard = Dashboard(
            xp=self.progression.progress(),
            words=words,
            sessions=SessionStats(total=len(sessions), avg_fluency=avg_fluency),
            quiz=quiz_stats,
            languages=languages,
            topics=list(dict.fromkeys(topics)),
            recent_activity=activity[:RECENT_ACTIVITY_LIMIT],
            streak=StreakView(
                stats=self.streak.stats(),
                calendar=self.streak.calendar(CALENDAR_DAYS),
            ),
        )
        logger.debug("dashboard_built", sessions=len(sessions), quizzes=len(quizzes))
        return dashboard
