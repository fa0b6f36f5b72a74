"""Selective recall: builds the learner memory block for the tutor prompt.

Recall is lexical. It only fires when the incoming message mentions a known
word or topic, so unrelated turns carry no extra prompt weight.
"""

import structlog

from learner_memory.models.knowledge import LanguageProfile
from learner_memory.storage.knowledge import KnowledgeStore

logger = structlog.get_logger()

RECALL_HEADER = "[LEARNER MEMORY — AUTO-RECALLED]"
RECALL_FOOTER = "[END LEARNER MEMORY]"
MAX_MATCHED_WORDS = 15
MAX_WEAK_WORDS = 8
WEAK_MASTERY = 0.4


def _percent(mastery: float) -> int:
    return round(mastery * 100)


class RecallEngine:
    """Decides whether to recall learner memory and formats it.

    Args:
        knowledge: Facts memory store.
    """

    def __init__(self, knowledge: KnowledgeStore):
        self.knowledge = knowledge

    def build_context(self, message: str, language: str) -> str | None:
        """Return the recall block for ``message``, or None to skip recall.

        Args:
            message: The learner's incoming message.
            language: Target language name.

        Returns:
            A bounded, delimited text block, or None when there is no profile,
            no vocabulary, or no overlap between the message and memory.
        """
        profile = self.knowledge.profile(language)
        if profile is None or not profile.vocabulary:
            return None

        text = (message or "").lower()
        # blank keys would match every message
        matched_words = [w for w in profile.vocabulary if w.strip() and w.lower() in text]
        matched_topics = [t for t in profile.all_topics if t.strip() and t.lower() in text]

        if not matched_words and not matched_topics:
            logger.debug("recall_skipped", language=language)
            return None

        logger.info(
            "recall_activated",
            language=language,
            matched_words=len(matched_words),
            matched_topics=len(matched_topics),
        )
        return self._format(profile, language, matched_words)

    @staticmethod
    def _format(profile: LanguageProfile, language: str, matched_words: list[str]) -> str:
        lines = [
            RECALL_HEADER,
            f"Language: {language} | Overall Fluency: {profile.avg_fluency}/100 | "
            f"Sessions: {profile.session_count} | Messages: {profile.message_count}",
        ]

        if matched_words:
            details = []
            for word in matched_words[:MAX_MATCHED_WORDS]:
                entry = profile.vocabulary[word]
                details.append(
                    f'"{word}" ({entry.meaning or "?"}, mastery {_percent(entry.mastery)}%, '
                    f"{entry.uses}× used)"
                )
            lines.append(f"Relevant known vocabulary: {', '.join(details)}")

        if profile.weak_topics:
            lines.append(f"Weak areas needing reinforcement: {', '.join(profile.weak_topics)}")
        if profile.strong_topics:
            lines.append(f"Already confident in: {', '.join(profile.strong_topics)}")

        weakest = profile.weakest_words(below=WEAK_MASTERY, limit=MAX_WEAK_WORDS)
        if weakest:
            words = ", ".join(
                f'"{e.word}" ({e.meaning or "?"}, {_percent(e.mastery)}%)' for e in weakest
            )
            lines.append(f"Low-mastery vocabulary to reinforce if relevant: {words}")

        lines.append(RECALL_FOOTER)
        return "\n".join(lines)
