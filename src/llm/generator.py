"""LLM-backed generation of MongoDB shell commands.

The LLM only produces command **text**. Nothing it returns is executed directly: the command layer
matches the text against an allowlist of shapes and operations first.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

if TYPE_CHECKING:
    from src.config.settings import Settings


class LLMGeneratorError(RuntimeError):
    """Raised when the LLM call fails or returns an unexpected payload."""


class TextGenerator(Protocol):
    """Anything that turns (instructions, user query) into command text."""

    def generate(self, instructions: str, user_query: str) -> str: ...


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the OpenAI-style Chat Completions API call."""

    api_key: str
    model: str = "gpt-4o-mini"
    api_base: str = "https://api.openai.com/v1"
    timeout_s: float = 30.0


def load_instructions() -> str:
    """Return the fixed instruction template (few-shot examples of the supported commands)."""

    prompt_path = Path(__file__).resolve().parent / "prompt_command_v1.md"
    return prompt_path.read_text(encoding="utf-8")


def _chat_completions_url(api_base: str) -> str:
    return api_base.rstrip("/") + "/chat/completions"


class ChatCompletionsGenerator:
    """Generate command text via an OpenAI-compatible `/v1/chat/completions` endpoint."""

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    def generate(self, instructions: str, user_query: str) -> str:
        """Call the LLM once (no retries, no streaming) and return the raw message content."""

        payload = {
            "model": self.config.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": instructions},
                {"role": "user", "content": user_query},
            ],
        }

        req = Request(
            _chat_completions_url(self.config.api_base),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(payload).encode(),
        )

        try:
            with urlopen(req, timeout=self.config.timeout_s) as resp:  # noqa: S310 (configured API base)
                body = resp.read()
        except HTTPError as exc:
            raise LLMGeneratorError(f"LLM HTTP error: {exc.code}") from exc
        except URLError as exc:
            raise LLMGeneratorError("LLM connection error") from exc
        except TimeoutError as exc:
            raise LLMGeneratorError("LLM request timed out") from exc

        try:
            decoded = json.loads(body)
            content = decoded["choices"][0]["message"]["content"]
        except Exception as exc:  # noqa: BLE001
            raise LLMGeneratorError("Unexpected LLM response format") from exc

        if not isinstance(content, str):
            raise LLMGeneratorError("LLM returned no text content")
        return content


def llm_config_from_settings(settings: Settings) -> LLMConfig:
    """Build the LLM config from validated application settings."""

    return LLMConfig(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        api_base=settings.llm_api_base,
        timeout_s=settings.llm_timeout_s,
    )
