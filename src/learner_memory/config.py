"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'completion' in data:
            completion = data['completion']
            flattened['completion_base_url'] = completion.get('base_url')
            flattened['completion_model'] = completion.get('model')
            flattened['completion_temperature'] = completion.get('temperature')
            flattened['completion_max_tokens'] = completion.get('max_tokens')
            flattened['completion_max_retries'] = completion.get('max_retries')
            flattened['completion_timeout'] = completion.get('timeout')
        if 'storage' in data:
            flattened['data_dir'] = data['storage'].get('data_dir')
        if 'chat' in data:
            flattened['chat_history_turns'] = data['chat'].get('history_turns')
        if 'quiz' in data:
            quiz = data['quiz']
            flattened['quiz_default_questions'] = quiz.get('default_questions')
            flattened['quiz_min_questions'] = quiz.get('min_questions')
            flattened['quiz_max_questions'] = quiz.get('max_questions')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Completion service (OpenAI-compatible). No key means unconfigured.
    completion_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("completion_api_key", "nvidia_api_key"),
    )
    completion_base_url: str = Field(default="https://integrate.api.nvidia.com/v1")
    completion_model: str = Field(default="qwen/qwen3-next-80b-a3b-instruct")
    completion_temperature: float = Field(default=0.5)
    completion_max_tokens: int = Field(default=4096)
    completion_max_retries: int = Field(default=3)
    completion_timeout: float = Field(default=60.0)  # seconds per attempt

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Chat
    chat_history_turns: int = Field(default=20)

    # Quiz
    quiz_default_questions: int = Field(default=6)
    quiz_min_questions: int = Field(default=4)
    quiz_max_questions: int = Field(default=8)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir: Path | None = Field(default=None)

    @property
    def storage_dir(self) -> Path:
        d = self.data_dir or self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
