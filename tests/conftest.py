"""Shared fixtures: an isolated data directory and a mocked completion service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from learner_memory.completion.client import CompletionClient
from learner_memory.config import Settings
from learner_memory.engine import LearnerMemoryEngine
from learner_memory.storage.documents import DocumentStore


@pytest.fixture
def documents(tmp_path):
    return DocumentStore(tmp_path / "data")


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", completion_api_key=None)


@pytest.fixture
def completion():
    client = MagicMock(spec=CompletionClient)
    client.configured = True
    client.chat = AsyncMock(return_value="")
    client.complete = AsyncMock(return_value="")
    client.complete_json = AsyncMock(return_value={})
    return client


@pytest.fixture
def engine(settings, completion):
    return LearnerMemoryEngine(settings, completion=completion)


@pytest.fixture
def seed_vocabulary(engine):
    """Put ``(word, meaning)`` pairs into the facts memory for a language."""

    def _seed_language(language, words):
        def _seed(knowledge):
            profile = knowledge.profile_for(language)
            for word, meaning in words:
                profile.reinforce_word(word, meaning)

        engine.knowledge.update(_seed)

    return _seed_language
