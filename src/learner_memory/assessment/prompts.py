"""Prompts for quiz generation and speaking-answer evaluation."""

import json

from learner_memory.models.learner_profile import LearnerProfile, RankedWord
from learner_memory.models.progression import Difficulty

CALIBRATION: dict[Difficulty, str] = {
    Difficulty.BEGINNER: """\
BEGINNER MODE:
- Use only simple, high-frequency words
- MCQ distractors should be clearly different from correct answer
- Speaking sentences should be 2-4 words maximum
- Be generous and focus on building confidence""",
    Difficulty.INTERMEDIATE: """\
INTERMEDIATE MODE:
- Mix simple and moderately complex vocabulary
- MCQ distractors should be plausible but distinguishable
- Speaking sentences should be 4-6 words
- Moderate difficulty: challenge but don't frustrate""",
    Difficulty.ADVANCED: """\
ADVANCED MODE:
- Use complex vocabulary and idiomatic expressions
- MCQ distractors should be subtle (similar meanings, related words)
- Speaking sentences should be 6-10 words with proper grammar
- Include verb conjugations and postpositions""",
    Difficulty.EXPERT: """\
EXPERT MODE:
- Use advanced vocabulary, idioms, and compound sentences
- MCQ distractors must be very close in meaning (near-synonyms)
- Speaking sentences should be 8+ words with complex structures
- Expect near-native level answers and be strict""",
}

GENERATION_PROMPT = """\
You are an expert language quiz generator for a {language} learning application.
Your task is to generate a quiz with EXACTLY {count} questions.

=== LEARNER PROFILE ===
- Level: {level}/10 ({difficulty})
- Total XP: {xp}
- Known vocabulary count: {vocab_count}
- Average fluency score: {avg_fluency}/100
- Total chat sessions: {total_sessions}
- Strong topics: {strong_topics}
- Weak topics: {weak_topics}

=== DIFFICULTY CALIBRATION ===
{calibration}

=== QUESTION TYPES ===

TYPE 1: "listening_mcq". A {language} word is spoken aloud and the learner picks its \
English meaning from 4 options.
{{
  "id": <number>,
  "type": "listening_mcq",
  "word": "<the {language} word that will be spoken>",
  "word_romanized": "<romanized pronunciation>",
  "correct_answer": "<the correct English meaning>",
  "options": ["<option_A>", "<option_B>", "<option_C>", "<option_D>"],
  "audio_text": "<exact {language} text to speak>"
}}
Rules: "options" has EXACTLY 4 unique English strings, one of them is exactly \
"correct_answer", distractors are plausible and from a similar domain, and the position \
of the correct answer varies.

TYPE 2: "speaking". An English sentence is shown and the learner speaks the {language} \
translation; the answer arrives as speech recognition text.
{{
  "id": <number>,
  "type": "speaking",
  "sentence_en": "<the English sentence to translate>",
  "expected_answer": "<the ideal {language} translation>",
  "expected_answer_romanized": "<romanized version for comparison>",
  "acceptable_variations": ["<alt translation 1>", "<alt translation 2>"],
  "hint_words": [{{"word": "<key word>", "meaning": "<meaning>"}}],
  "audio_text": "<the English sentence to speak>"
}}
Rules: "sentence_en" uses vocabulary from the provided list, "expected_answer" is in \
proper {language} script, and "hint_words" lists 1-3 key words with meanings.

=== OUTPUT FORMAT ===
Return ONLY a valid JSON object. NO markdown code fences. NO extra text.
{{
  "questions": [ ... ],
  "quiz_metadata": {{
    "theme": "<topic of this quiz>",
    "focus_area": "<skill this quiz tests>",
    "estimated_difficulty": "<easy | medium | hard>"
  }}
}}

CRITICAL RULES:
1. Generate EXACTLY {count} questions with sequential IDs starting from 0
2. Mix types roughly equally between listening_mcq and speaking
3. Every question MUST use words from the provided vocabulary list
4. Do NOT repeat the same word in multiple questions
5. All {language} text MUST use the correct native script
6. Ensure all JSON is properly escaped and valid"""

EVALUATION_PROMPT = """\
You are a {language} language quiz evaluator.
Learner level: {level}/10 ({difficulty}).

You will receive speaking quiz answers where the learner translated English sentences \
into {language}. Answers come from speech recognition, so they may be romanized, contain \
minor transcription errors, or use informal phrasing.

EVALUATION RULES:
1. MEANING is most important: if the core meaning matches, give a good score
2. Accept romanized text as valid (compare phonetically to the expected answer)
3. Accept mixed-script and informal alternatives
4. Minor spelling/transcription errors should reduce score only slightly
5. Empty or nonsensical answers = score 0-10
6. Compare against expected_answer AND acceptable_variations

SCORING RUBRIC:
- 90-100: Perfect or near-perfect match (meaning + grammar correct)
- 75-89: Correct meaning with minor grammar/word-order issues
- 60-74: Mostly correct, understandable but has noticeable errors
- 40-59: Partially correct, some key words present but meaning unclear
- 20-39: Poor attempt, very few correct elements
- 0-19: Wrong, empty, or unintelligible

A question is marked "correct" if score >= 60.

Return ONLY valid JSON (no markdown, no extra text):
{{
  "evaluations": [
    {{
      "questionId": <number>,
      "score": <0-100>,
      "correct": <true/false>,
      "feedback": "<specific, encouraging feedback>",
      "corrected_answer": "<the ideal {language} answer>",
      "pronunciation_tip": "<optional pronunciation tip>"
    }}
  ]
}}"""


def _join(items: list[str]) -> str:
    return ", ".join(items) if items else "None yet"


def generation_system_prompt(language: str, count: int, profile: LearnerProfile) -> str:
    return GENERATION_PROMPT.format(
        language=language,
        count=count,
        level=profile.level,
        difficulty=profile.difficulty.value,
        xp=profile.xp,
        vocab_count=profile.vocab_count,
        avg_fluency=profile.avg_fluency,
        total_sessions=profile.total_sessions,
        strong_topics=_join(profile.strong_topics),
        weak_topics=_join(profile.weak_topics),
        calibration=CALIBRATION[profile.difficulty],
    )


def _vocab_line(index: int, word: RankedWord) -> str:
    line = (
        f'{index}. "{word.word}" = "{word.meaning}" '
        f"(strength: {round(word.mastery * 100)}%, source: {word.source}"
    )
    if word.contexts:
        line += f', used in: "{word.contexts[0]}"'
    return line + ")"


def generation_user_message(
    language: str,
    count: int,
    target_words: list[RankedWord],
    profile: LearnerProfile,
) -> str:
    """Vocabulary list and recent learner context for the generation request."""
    vocab = "\n".join(_vocab_line(i, w) for i, w in enumerate(target_words, start=1))
    parts = [
        f"Generate a {count}-question {language} quiz.",
        "",
        "=== VOCABULARY TO USE ===",
        vocab,
        "",
        "=== LEARNER CONTEXT ===",
    ]
    if profile.context_sentences:
        parts.append("Recent sentences the learner has practiced:")
        parts.extend(f'- "{s}"' for s in profile.context_sentences[-5:])
    else:
        parts.append("No practice sentences yet.")
    if profile.chat_topics:
        parts.append(f"Topics from recent chats: {', '.join(profile.chat_topics)}")
    if profile.weak_topics:
        parts.append(f"Weak areas to focus on: {', '.join(profile.weak_topics)}")
    parts.extend(["", "Generate the quiz now. Return ONLY the JSON."])
    return "\n".join(parts)


def evaluation_system_prompt(language: str, level: int, difficulty: Difficulty) -> str:
    return EVALUATION_PROMPT.format(language=language, level=level, difficulty=difficulty.value)


def evaluation_user_message(language: str, items: list[dict]) -> str:
    """Batch of speaking answers to grade in a single request."""
    blocks = []
    for item in items:
        blocks.append(
            f"Question {item['questionId']}:\n"
            f"  English prompt: \"{item['sentence_en']}\"\n"
            f"  Expected {language}: \"{item['expected_answer']}\"\n"
            f"  Romanized expected: \"{item['expected_answer_romanized']}\"\n"
            f"  Acceptable alternatives: {json.dumps(item['acceptable_variations'], ensure_ascii=False)}\n"
            f"  User's answer (from speech recognition): \"{item['user_answer']}\""
        )
    body = "\n---\n".join(blocks)
    return f"Evaluate these {len(items)} speaking answers:\n\n{body}\n\nGrade each one carefully. Return the JSON."
