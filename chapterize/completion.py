"""Completion-service client — any LLM exposing an OpenAI-compatible API.

Config is read from a .env file (drop it in your project root) or env vars.

Setup — pick ONE provider:

  # OpenAI (direct)
  OPENAI_API_KEY=sk-...

  # OpenRouter (one key, every model)
  CHAPTERIZE_LLM_API_KEY=sk-or-v1-your-key-here
  CHAPTERIZE_LLM_BASE_URL=https://openrouter.ai/api/v1
  CHAPTERIZE_LLM_MODEL=google/gemma-3-12b-it:free

  # Ollama (local, free)
  CHAPTERIZE_LLM_BASE_URL=http://localhost:11434/v1
  CHAPTERIZE_LLM_MODEL=llama3
  CHAPTERIZE_LLM_API_KEY=ollama

Failures are classified so the orchestrator can tell a bad key or a rate
limit (try another credential) from the service being unreachable.
"""

from __future__ import annotations

import logging
from typing import Any

import openai
from openai import OpenAI

from .config import DEFAULT_MODEL
from .errors import (
    CompletionServiceUnavailableError,
    CredentialInvalidError,
    CredentialMissingError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
    return raw


class CompletionClient:
    """Thin wrapper over ``OpenAI.chat.completions`` with a bounded timeout."""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise CredentialMissingError("no API key configured for the completion service")
        self.model = model
        client_kwargs: dict[str, Any] = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = OpenAI(**client_kwargs)

    def _create(self, messages: list[dict[str, str]], temperature: float, max_tokens: int):
        return self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def complete(
        self,
        system: str,
        user: str,
        temperature: float = 0.5,
        max_tokens: int = 600,
    ) -> str:
        """Send one system + user exchange and return the response text."""
        logger.info("Calling completion service: model=%s prompt=%d chars", self.model, len(user))
        try:
            # Try with system prompt first, fall back to a single user message
            # (some free models don't support system prompts)
            try:
                response = self._create(
                    [
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    temperature,
                    max_tokens,
                )
            except openai.BadRequestError as exc:
                if "system" not in str(exc).lower():
                    raise
                logger.info("System prompt not supported, retrying as user message")
                response = self._create(
                    [{"role": "user", "content": f"{system}\n\n{user}"}],
                    temperature,
                    max_tokens,
                )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise CredentialInvalidError("invalid API key for the completion service", details=str(exc)) from exc
        except openai.RateLimitError as exc:
            raise RateLimitedError("completion service rate limit exceeded", details=str(exc)) from exc
        except openai.APITimeoutError as exc:
            raise CompletionServiceUnavailableError("completion service timed out", details=str(exc)) from exc
        except openai.APIConnectionError as exc:
            raise CompletionServiceUnavailableError("could not reach the completion service", details=str(exc)) from exc
        except openai.APIError as exc:
            raise CompletionServiceUnavailableError("completion service error", details=str(exc)) from exc

        choices = getattr(response, "choices", None) or []
        raw = (choices[0].message.content or "") if choices else ""
        raw = _strip_fences(raw)
        if not raw:
            raise CompletionServiceUnavailableError("completion service returned an empty response")
        logger.info("Completion received (%d chars)", len(raw))
        return raw
