"""
scriptalchemy.llm.client - LLM backend abstraction using litellm.

Pipeline code depends only on the StructuredLLM protocol; LLMClient is
the litellm-backed implementation for Gemini, OpenAI, Claude, and Ollama.
"""

from __future__ import annotations

import os
import time
from typing import Any, Protocol

from scriptalchemy.exceptions import CredentialError, LLMError, LLMResponseError
from scriptalchemy.logging import logger

API_KEY_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
}


class StructuredLLM(Protocol):
    """Anything that can answer a prompt with text matching a JSON schema."""

    model: str

    def generate_structured(self, prompt: str, schema: dict[str, Any]) -> str: ...


class LLMClient:
    """litellm client wrapper with credential checks and retry logic."""

    def __init__(
        self,
        backend: str = "gemini",
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        timeout: int = 300,
        max_retries: int = 1,
        retry_delay: float = 2.0,
        api_key: str | None = None,
    ) -> None:
        self.backend = backend
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._api_key = api_key
        self._token_usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    def _get_model_string(self) -> str:
        """Get the model string for litellm based on backend."""
        if self.backend == "gemini":
            return f"gemini/{self.model}"
        elif self.backend == "ollama":
            return f"ollama/{self.model}"
        elif self.backend == "claude":
            return f"anthropic/{self.model}"
        return self.model

    def _resolve_api_key(self) -> str | None:
        """Return the API key for cloud backends.

        Raises:
            CredentialError: If a cloud backend has no key configured
        """
        env_var = API_KEY_ENV_VARS.get(self.backend)
        if env_var is None:
            return None
        key = self._api_key or os.environ.get(env_var)
        if not key:
            raise CredentialError(self.backend, env_var)
        return key

    def generate_structured(self, prompt: str, schema: dict[str, Any]) -> str:
        """Send prompt to the LLM, asking for JSON that matches schema.

        Args:
            prompt: The prompt string
            schema: JSON schema of the expected response

        Returns:
            Raw response text (may still be wrapped in markdown fences)

        Raises:
            CredentialError: If the backend's API key is missing
            LLMError: If the request fails after all attempts
        """
        api_key = self._resolve_api_key()

        try:
            import litellm
        except ImportError as e:
            raise LLMError("litellm not installed. Install with: pip install litellm") from e

        litellm.telemetry = False

        kwargs: dict[str, Any] = {
            "model": self._get_model_string(),
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "timeout": self.timeout,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": schema, "strict": False},
            },
        }
        if api_key:
            kwargs["api_key"] = api_key
        if self.backend == "ollama":
            kwargs["api_base"] = "http://localhost:11434"

        last_error = None

        for attempt in range(self.max_retries):
            if attempt > 0:
                logger.info("Retry %d/%d for %s", attempt + 1, self.max_retries, self.model)

            try:
                response = litellm.completion(**kwargs)
                self._record_usage(response)
                return self._extract_content(response)

            except LLMResponseError:
                raise
            except Exception as e:
                last_error = e
                error_str = str(e).lower()

                if "rate limit" in error_str and attempt < self.max_retries - 1:
                    logger.warning("Rate limited by %s, waiting...", self.backend)
                    time.sleep(self.retry_delay * 2)
                    continue

                logger.warning("LLM request to %s failed: %s", self.model, e)
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_delay)

        raise LLMError(
            f"LLM request failed after {self.max_retries} attempt(s): {last_error}"
        ) from last_error

    def _record_usage(self, response: Any) -> None:
        usage = getattr(response, "usage", None)
        if usage:
            self._token_usage["prompt_tokens"] += getattr(usage, "prompt_tokens", 0) or 0
            self._token_usage["completion_tokens"] += getattr(usage, "completion_tokens", 0) or 0
            self._token_usage["total_tokens"] += getattr(usage, "total_tokens", 0) or 0

    @staticmethod
    def _extract_content(response: Any) -> str:
        choices = getattr(response, "choices", [])
        if not choices:
            raise LLMResponseError("Empty response from LLM")

        message = getattr(choices[0], "message", None)
        if message is None:
            raise LLMResponseError("No message in LLM response")

        content = getattr(message, "content", None)
        if content is None:
            raise LLMResponseError("No content in LLM message")

        return content

    def get_token_usage(self) -> dict[str, int]:
        """Get cumulative token usage."""
        return self._token_usage.copy()

    def reset_token_usage(self) -> None:
        """Reset token usage counters."""
        self._token_usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


def create_client_from_config(config: Any) -> LLMClient:
    """Create LLM client from AnalysisConfig.

    Args:
        config: AnalysisConfig instance

    Returns:
        Configured LLMClient
    """
    return LLMClient(
        backend=config.llm_backend,
        model=config.llm_model,
        temperature=config.temperature,
        timeout=config.timeout,
        max_retries=config.max_retries,
    )
