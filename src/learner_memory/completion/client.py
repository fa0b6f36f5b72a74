"""Client for the OpenAI-compatible completion service."""

import json
import re
from typing import Any

import structlog
from openai import APIError, AsyncOpenAI

from learner_memory.errors import CompletionError, CompletionNotConfiguredError

logger = structlog.get_logger()

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    return _FENCE_END.sub("", _FENCE_START.sub("", text.strip())).strip()


class CompletionClient:
    """Thin async wrapper over the chat completions endpoint.

    Args:
        api_key: Service API key. None leaves the client unconfigured.
        base_url: OpenAI-compatible endpoint.
        model: Model name.
        temperature: Default sampling temperature.
        max_tokens: Completion token limit.
        max_retries: Attempts per JSON request before giving up.
        timeout: Seconds allowed for one request.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        model: str,
        temperature: float = 0.5,
        max_tokens: int = 4096,
        max_retries: int = 3,
        timeout: float = 60.0,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        # SDK retries are off; complete_json's loop is the only retry bound
        self.client = (
            AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0, timeout=timeout)
            if api_key
            else None
        )

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def _create(self, messages: list[dict[str, Any]], temperature: float | None) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens,
        )
        if not response.choices:
            raise ValueError("completion returned no choices")
        return response.choices[0].message.content or ""

    async def chat(
        self,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> str | None:
        """Send a full message list and return the reply text.

        Returns None when the client is unconfigured. Service failures raise
        CompletionError.
        """
        if not self.configured:
            logger.warning("completion_not_configured")
            return None
        try:
            return await self._create(messages, temperature)
        except (APIError, ValueError) as e:
            logger.error("completion_failed", error=str(e))
            raise CompletionError(f"Completion service failed: {e}", attempts=1) from e

    async def complete(self, system_prompt: str, user_message: str) -> str | None:
        """Single-turn completion; None when no API key is configured."""
        return await self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ]
        )

    async def complete_json(self, system_prompt: str, user_message: str) -> dict[str, Any]:
        """Request a JSON object, retrying on service errors and invalid JSON.

        Args:
            system_prompt: Instructions for the model.
            user_message: Request payload.

        Returns:
            The parsed JSON object.

        Raises:
            CompletionNotConfiguredError: No API key is set.
            CompletionError: Every attempt failed.
        """
        if not self.configured:
            logger.warning("completion_not_configured")
            raise CompletionNotConfiguredError()

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]
        last_error = ""
        for attempt in range(1, self.max_retries + 1):
            logger.debug("completion_attempt", attempt=attempt, max_retries=self.max_retries)
            try:
                raw = await self._create(messages, None)
                data = json.loads(strip_code_fences(raw))
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                return data
            except (APIError, ValueError) as e:
                last_error = str(e)
                logger.warning("completion_attempt_failed", attempt=attempt, error=last_error)

        raise CompletionError(
            f"Completion failed after {self.max_retries} attempts: {last_error}",
            attempts=self.max_retries,
        )
