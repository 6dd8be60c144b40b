import asyncio
from datetime import datetime

import pytest

from deskmate.llm import LLMResponse
from deskmate.storage import WorkspaceStore

FIXED_NOW = datetime(2025, 6, 1, 14, 37, 12, 500)


@pytest.fixture
def store() -> WorkspaceStore:
    """A throwaway in-memory workspace."""
    s = WorkspaceStore.open(":memory:")
    yield s
    s.close()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


def run(coro):
    return asyncio.run(coro)


class FakeLLM:
    """Stands in for an LLM client; replies with canned text and records prompts."""

    def __init__(self, reply: str = "", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[list[dict[str, str]]] = []

    def chat(self, messages, *, model=None, temperature=None) -> LLMResponse:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, model=model or "fake")
