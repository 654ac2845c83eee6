"""Tests for the chat-completions command generator (network calls are stubbed)."""

from __future__ import annotations

import io
import json
from typing import Any
from urllib.error import HTTPError, URLError

import pytest

from src.llm.generator import ChatCompletionsGenerator, LLMConfig, LLMGeneratorError


class _FakeResponse(io.BytesIO):
    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


def _completion(content: Any) -> bytes:
    return json.dumps({"choices": [{"message": {"content": content}}]}).encode()


def test_generate_sends_instructions_and_query(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    def _fake_urlopen(req: Any, timeout: float) -> _FakeResponse:
        captured["url"] = req.full_url
        captured["auth"] = req.get_header("Authorization")
        captured["payload"] = json.loads(req.data)
        captured["timeout"] = timeout
        return _FakeResponse(_completion("db.users.find({})"))

    monkeypatch.setattr("src.llm.generator.urlopen", _fake_urlopen)
    generator = ChatCompletionsGenerator(LLMConfig(api_key="k", api_base="http://llm.local/v1/", timeout_s=5))

    text = generator.generate("INSTRUCTIONS", "show all users")

    assert text == "db.users.find({})"
    assert captured["url"] == "http://llm.local/v1/chat/completions"
    assert captured["auth"] == "Bearer k"
    assert captured["timeout"] == 5
    assert captured["payload"]["temperature"] == 0
    assert captured["payload"]["messages"] == [
        {"role": "system", "content": "INSTRUCTIONS"},
        {"role": "user", "content": "show all users"},
    ]


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (HTTPError("http://llm.local", 503, "unavailable", None, None), "LLM HTTP error: 503"),
        (URLError("refused"), "LLM connection error"),
    ],
)
def test_transport_errors_are_wrapped(
        monkeypatch: pytest.MonkeyPatch, error: Exception, message: str
) -> None:
    def _fake_urlopen(_req: Any, timeout: float) -> _FakeResponse:
        raise error

    monkeypatch.setattr("src.llm.generator.urlopen", _fake_urlopen)

    with pytest.raises(LLMGeneratorError, match=message):
        ChatCompletionsGenerator(LLMConfig(api_key="k")).generate("I", "q")


@pytest.mark.parametrize("body", [b"not json", json.dumps({"choices": []}).encode(), _completion(None)])
def test_unexpected_payloads_are_rejected(monkeypatch: pytest.MonkeyPatch, body: bytes) -> None:
    monkeypatch.setattr("src.llm.generator.urlopen", lambda _req, timeout: _FakeResponse(body))

    with pytest.raises(LLMGeneratorError):
        ChatCompletionsGenerator(LLMConfig(api_key="k")).generate("I", "q")
