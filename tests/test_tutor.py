"""Tests for the tutor turn and fluency parsing."""

import pytest

from learner_memory.conversation.fluency import DEFAULT_FEEDBACK, parse_fluency_data
from learner_memory.conversation.prompts import FLUENCY_MARKER, build_tutor_prompt
from learner_memory.errors import CompletionNotConfiguredError, InvalidRequestError
from learner_memory.memory.recall import RECALL_HEADER

FLUENCY_JSON = (
    '{"score": 72, "feedback": "Good greeting.", '
    '"new_vocabulary": [{"word": "namaste", "meaning": "hello"}], '
    '"topics": ["greetings"], "suggestions": ["Try a longer sentence."]}'
)
TUTOR_REPLY = f"Namaste! Aap kaise hain? (Hello! How are you?)\n{FLUENCY_MARKER}{FLUENCY_JSON}"


class TestParseFluencyData:
    def test_splits_reply_and_evaluation(self):
        reply, evaluation = parse_fluency_data(TUTOR_REPLY)
        assert reply == "Namaste! Aap kaise hain? (Hello! How are you?)"
        assert evaluation.score == 72
        assert evaluation.new_vocabulary[0].word == "namaste"
        assert evaluation.topics == ["greetings"]

    def test_missing_marker(self):
        reply, evaluation = parse_fluency_data("  Just a reply.  ")
        assert reply == "Just a reply."
        assert evaluation.score == 0
        assert evaluation.feedback == DEFAULT_FEEDBACK

    def test_invalid_json(self):
        reply, evaluation = parse_fluency_data(f"Hi{FLUENCY_MARKER}{{score: 5,")
        assert reply == "Hi"
        assert evaluation.feedback == DEFAULT_FEEDBACK

    def test_non_numeric_score(self):
        _, evaluation = parse_fluency_data(f'Hi{FLUENCY_MARKER}{{"score": "high", "topics": "x"}}')
        assert evaluation.score == 0
        assert evaluation.topics == []


class TestTutorPrompt:
    def test_without_recall(self):
        prompt = build_tutor_prompt("Hindi")
        assert "learn Hindi" in prompt
        assert FLUENCY_MARKER in prompt
        assert "LEARNER MEMORY" not in prompt

    def test_with_recall(self):
        prompt = build_tutor_prompt("Hindi", f"{RECALL_HEADER}\nstuff")
        assert RECALL_HEADER in prompt
        assert prompt.rstrip().endswith("into your responses.")


class TestHandleTurn:
    async def test_new_session_turn(self, engine, completion):
        completion.chat.return_value = TUTOR_REPLY

        result = await engine.tutor.handle_turn("Namaste!", "Hindi")

        assert result.session_id.startswith("chat_")
        assert result.reply.startswith("Namaste!")
        assert result.recalled is False
        session = engine.sessions.get(result.session_id)
        assert session.message_count == 2
        assert session.avg_fluency == 72
        profile = engine.knowledge.profile("Hindi")
        assert "namaste" in profile.vocabulary
        assert profile.weak_topics == ["greetings"]
        assert engine.streak.ledger().active_days()

    async def test_follow_up_turn_recalls_and_sends_history(self, engine, completion):
        completion.chat.return_value = TUTOR_REPLY
        first = await engine.tutor.handle_turn("Hello", "Hindi", session_id="chat_test")
        second = await engine.tutor.handle_turn("namaste again", "Hindi", session_id=first.session_id)

        assert second.session_id == "chat_test"
        assert second.recalled is True
        messages = completion.chat.call_args.args[0]
        assert messages[0]["role"] == "system"
        assert RECALL_HEADER in messages[0]["content"]
        assert [m["role"] for m in messages[1:]] == ["user", "assistant", "user"]
        assert messages[-1]["content"] == "namaste again"
        assert completion.chat.call_args.kwargs["temperature"] == 0.7
        assert engine.sessions.get("chat_test").message_count == 4

    async def test_history_is_capped(self, engine, completion, settings):
        completion.chat.return_value = "ok"
        for i in range(12):
            await engine.tutor.handle_turn(f"turn {i}", "Hindi", session_id="chat_long")
        messages = completion.chat.call_args.args[0]
        assert len(messages) == 1 + settings.chat_history_turns + 1

    @pytest.mark.parametrize("message,language", [("", "Hindi"), ("hi", ""), ("   ", "Hindi")])
    async def test_missing_fields_rejected(self, engine, completion, message, language):
        with pytest.raises(InvalidRequestError):
            await engine.tutor.handle_turn(message, language)
        completion.chat.assert_not_awaited()
        assert engine.streak.ledger().root == {}

    async def test_unconfigured_service(self, engine, completion):
        completion.chat.return_value = None
        with pytest.raises(CompletionNotConfiguredError):
            await engine.tutor.handle_turn("hi", "Hindi", session_id="chat_x")
        assert engine.sessions.load("chat_x") is None
