"""Tests for the completion client's error classification (no network)."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from chapterize.completion import CompletionClient
from chapterize.errors import (
    CompletionServiceUnavailableError,
    CredentialInvalidError,
    CredentialMissingError,
    RateLimitedError,
)

REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat/completions")


def _status_error(cls, status: int, message: str = "error"):
    return cls(message, response=httpx.Response(status, request=REQUEST), body=None)


def _reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(monkeypatch, *outcomes):
    client = CompletionClient(api_key="sk-test")
    calls: list = []
    queue = list(outcomes)

    def fake_create(messages, temperature, max_tokens):
        calls.append(messages)
        outcome = queue.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(client, "_create", fake_create)
    return client, calls


def test_missing_key() -> None:
    with pytest.raises(CredentialMissingError):
        CompletionClient(api_key="")


def test_returns_text_without_fences(monkeypatch) -> None:
    client, calls = _client(monkeypatch, _reply("```\n00:00 Intro\n02:00 Setup\n```"))
    assert client.complete("rules", "transcript") == "00:00 Intro\n02:00 Setup"
    assert [m["role"] for m in calls[0]] == ["system", "user"]


def test_system_prompt_rejected_retries_as_user_message(monkeypatch) -> None:
    rejected = _status_error(openai.BadRequestError, 400, "system role is not supported")
    client, calls = _client(monkeypatch, rejected, _reply("00:00 Intro"))
    assert client.complete("rules", "transcript") == "00:00 Intro"
    assert calls[1] == [{"role": "user", "content": "rules\n\ntranscript"}]


@pytest.mark.parametrize("error, expected", [
    (_status_error(openai.AuthenticationError, 401), CredentialInvalidError),
    (_status_error(openai.PermissionDeniedError, 403), CredentialInvalidError),
    (_status_error(openai.RateLimitError, 429), RateLimitedError),
    (_status_error(openai.InternalServerError, 500), CompletionServiceUnavailableError),
    (_status_error(openai.BadRequestError, 400, "context length exceeded"), CompletionServiceUnavailableError),
    (openai.APITimeoutError(request=REQUEST), CompletionServiceUnavailableError),
    (openai.APIConnectionError(request=REQUEST), CompletionServiceUnavailableError),
])
def test_errors_are_classified(monkeypatch, error, expected) -> None:
    client, _ = _client(monkeypatch, error)
    with pytest.raises(expected):
        client.complete("rules", "transcript")


def test_empty_response_is_unavailable(monkeypatch) -> None:
    client, _ = _client(monkeypatch, _reply(""))
    with pytest.raises(CompletionServiceUnavailableError):
        client.complete("rules", "transcript")
