"""Tests for the completion service client."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIError

from learner_memory.completion.client import CompletionClient, strip_code_fences
from learner_memory.config import Settings
from learner_memory.engine import LearnerMemoryEngine
from learner_memory.errors import CompletionError, CompletionNotConfiguredError


def make_client(**kwargs) -> CompletionClient:
    return CompletionClient(
        api_key="test-key",
        base_url="http://localhost:9999/v1",
        model="test-model",
        **kwargs,
    )


def reply(content: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```  ') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


class TestUnconfigured:
    async def test_complete_returns_none(self):
        client = CompletionClient(api_key=None, base_url="http://localhost", model="m")
        assert client.configured is False
        assert await client.complete("system", "user") is None

    async def test_complete_json_raises(self):
        client = CompletionClient(api_key=None, base_url="http://localhost", model="m")
        with pytest.raises(CompletionNotConfiguredError):
            await client.complete_json("system", "user")


class TestCompleteJson:
    async def test_retries_invalid_json(self):
        client = make_client()
        client._create = AsyncMock(side_effect=["not json", '```json\n{"ok": true}\n```'])
        assert await client.complete_json("system", "user") == {"ok": True}
        assert client._create.await_count == 2

    async def test_retries_service_errors(self):
        client = make_client()
        error = APIError("boom", httpx.Request("POST", "http://localhost"), body=None)
        client._create = AsyncMock(side_effect=[error, '{"questions": []}'])
        assert await client.complete_json("system", "user") == {"questions": []}

    async def test_gives_up_after_max_retries(self):
        client = make_client(max_retries=3)
        client._create = AsyncMock(return_value="[1, 2]")
        with pytest.raises(CompletionError) as exc_info:
            await client.complete_json("system", "user")
        assert exc_info.value.attempts == 3
        assert client._create.await_count == 3


class TestChat:
    async def test_sends_messages_and_temperature(self):
        client = make_client(temperature=0.5, max_tokens=256)
        client.client = MagicMock()
        client.client.chat.completions.create = AsyncMock(return_value=reply("Namaste!"))

        text = await client.chat([{"role": "user", "content": "hi"}], temperature=0.7)

        assert text == "Namaste!"
        kwargs = client.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 256

    async def test_default_temperature(self):
        client = make_client(temperature=0.5)
        client.client = MagicMock()
        client.client.chat.completions.create = AsyncMock(return_value=reply("ok"))
        await client.complete("system", "user")
        assert client.client.chat.completions.create.call_args.kwargs["temperature"] == 0.5

    async def test_service_error_raises(self):
        client = make_client()
        client.client = MagicMock()
        client.client.chat.completions.create = AsyncMock(
            side_effect=APIError("down", httpx.Request("POST", "http://localhost"), body=None)
        )
        with pytest.raises(CompletionError):
            await client.chat([{"role": "user", "content": "hi"}])


class TestRetryBound:
    def test_sdk_retries_disabled(self):
        client = make_client(timeout=12.5)
        assert client.client.max_retries == 0
        assert client.client.timeout == 12.5

    def test_engine_settings_reach_client(self, tmp_path):
        settings = Settings(data_dir=tmp_path / "data", completion_api_key="test-key", completion_timeout=7.0)
        engine = LearnerMemoryEngine(settings)
        assert engine.completion.client.max_retries == 0
        assert engine.completion.client.timeout == 7.0


class TestEmptyChoices:
    async def test_complete_json_retries_empty_choices(self):
        client = make_client()
        empty = MagicMock()
        empty.choices = []
        client.client = MagicMock()
        client.client.chat.completions.create = AsyncMock(side_effect=[empty, reply('{"ok": 1}')])

        assert await client.complete_json("system", "user") == {"ok": 1}

    async def test_complete_json_gives_up_on_empty_choices(self):
        client = make_client(max_retries=2)
        empty = MagicMock()
        empty.choices = []
        client.client = MagicMock()
        client.client.chat.completions.create = AsyncMock(return_value=empty)

        with pytest.raises(CompletionError) as exc_info:
            await client.complete_json("system", "user")
        assert exc_info.value.attempts == 2

    async def test_chat_empty_choices_raises_completion_error(self):
        client = make_client()
        empty = MagicMock()
        empty.choices = []
        client.client = MagicMock()
        client.client.chat.completions.create = AsyncMock(return_value=empty)

        with pytest.raises(CompletionError):
            await client.chat([{"role": "user", "content": "hi"}])
