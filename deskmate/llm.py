"""
Chat clients for the deskmate assistant.

Two backends sit behind the same ``chat(messages, model=, temperature=)``
call: a local Ollama model (the default) and any endpoint that speaks the
OpenAI chat-completions API, chosen with ``DESKMATE_LLM_BASE_URL`` and
``DESKMATE_LLM_API_KEY``. Replies are plain text; the directive engine reads
the workspace changes out of them afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import httpx
import ollama

DEFAULT_MODEL = "qwen3:8b"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

REQUEST_TIMEOUT = 120.0


@dataclass
class LLMResponse:
    content: str
    model: str


class LLMError(Exception):
    """The model could not be reached or returned something unusable."""

    pass


class LLMConfigError(LLMError):
    """The LLM endpoint is only partly configured."""

    pass


def get_llm_client(model: str | None = None):
    """
    Build the client the environment asks for.

    Raises:
        LLMConfigError: DESKMATE_LLM_BASE_URL is set without an API key
    """
    base_url = os.environ.get("DESKMATE_LLM_BASE_URL")
    api_key = os.environ.get("DESKMATE_LLM_API_KEY")
    model = model or os.environ.get("DESKMATE_LLM_MODEL")

    if not base_url:
        return OllamaClient(model=model or DEFAULT_MODEL)
    if not api_key:
        raise LLMConfigError("DESKMATE_LLM_BASE_URL is set but DESKMATE_LLM_API_KEY is not")
    return OpenAICompatibleClient(base_url, api_key, model=model or DEFAULT_OPENAI_MODEL)


class OllamaClient:
    def __init__(self, model: str = DEFAULT_MODEL):
        self.model = model

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        model = model or self.model
        options = {"temperature": temperature} if temperature is not None else None

        try:
            response = ollama.chat(model=model, messages=messages, options=options)
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            raise LLMError(f"Ollama error: {e}") from e

        return LLMResponse(content=response.message.content or "", model=model)


class OpenAICompatibleClient:
    def __init__(self, base_url: str, api_key: str, model: str = DEFAULT_OPENAI_MODEL):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        model = model or self.model
        payload: dict[str, Any] = {"model": model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = httpx.post(
                f"{self.base_url}/v1/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            raise LLMError(f"API error: {e}") from e

        return LLMResponse(content=content or "", model=model)
