"""
Assistant chat turns.

One turn: build the prompt from the workspace and the conversation, ask
the LLM, then hand its reply to the directive engine. Upstream failures
(no configuration, LLM errors, empty replies) become a single chat-level
error and nothing is parsed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from deskmate.commands import BatchResult, Dispatcher, Notice, process_reply
from deskmate.commands.params import Clock, system_clock
from deskmate.commands.prompt import ChatMessage, build_messages
from deskmate.llm import LLMConfigError, LLMError, get_llm_client
from deskmate.runtime import RuntimeConfig, get_global_config
from deskmate.storage import WorkspaceStore

logger = logging.getLogger(__name__)

ASSISTANT_DISABLED = "The AI assistant is disabled. Enable it to chat about your workspace."
API_KEY_MISSING = (
    "AI API key is not set. Set DESKMATE_LLM_API_KEY, "
    "or unset DESKMATE_LLM_BASE_URL to use a local Ollama model."
)


@dataclass
class ChatTurn:
    """What one chat turn produced."""

    message: str  # text shown in the chat
    reply: str = ""  # raw LLM reply, empty when the LLM was never reached
    batch: BatchResult | None = None
    notices: list[Notice] = field(default_factory=list)
    error: bool = False

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "reply": self.reply,
            "error": self.error,
            "notices": [
                {"title": n.title, "description": n.description, "error": n.error}
                for n in self.notices
            ],
            "entries": [e.to_dict() for e in self.batch] if self.batch else [],
        }


def _error_turn(message: str, title: str, description: str) -> ChatTurn:
    return ChatTurn(
        message=message,
        notices=[Notice(title, description, error=True)],
        error=True,
    )


async def chat(
    store: WorkspaceStore,
    message: str,
    history: list[ChatMessage] | None = None,
    *,
    config: RuntimeConfig | None = None,
    client=None,
    dispatcher: Dispatcher | None = None,
    clock: Clock = system_clock,
) -> ChatTurn:
    """
    Run one chat turn against the workspace.

    Args:
        store: Workspace the assistant may read and mutate
        message: The user's message
        history: Earlier turns, oldest first
        config: Runtime config (global config if omitted)
        client: LLM client (resolved from the environment if omitted)
        dispatcher: Dispatcher to reuse across turns
        clock: Source of "now" for timestamps and defaulted times

    Returns:
        ChatTurn with the chat message, notices and batch outcome
    """
    config = config or get_global_config()
    history = history or []

    if not config.assistant_enabled:
        return _error_turn(
            ASSISTANT_DISABLED,
            "AI Assistant Disabled",
            "Enable the assistant in the runtime configuration.",
        )

    if client is None:
        try:
            client = get_llm_client(config.llm_model)
        except LLMConfigError as e:
            logger.warning("LLM not configured: %s", e)
            return _error_turn(API_KEY_MISSING, "AI API Key Missing", str(e))

    now = clock()
    messages = build_messages(
        message,
        store.snapshot(),
        history,
        now=now,
        timestamp_interval=timedelta(minutes=config.timestamp_interval),
    )

    try:
        # Clients are synchronous
        response = await asyncio.to_thread(
            client.chat,
            messages,
            model=config.llm_model,
            temperature=config.temperature,
        )
    except LLMError as e:
        logger.error("Error processing AI request: %s", e)
        return _error_turn(
            f"Sorry, I encountered an error: {e}",
            "AI Error",
            "There was a problem with the AI service.",
        )

    reply = response.content
    if not reply.strip():
        return _error_turn(
            "Sorry, I encountered an error: the AI service returned an empty reply",
            "AI Error",
            "There was a problem with the AI service.",
        )

    dispatcher = dispatcher or Dispatcher(store)
    batch = await process_reply(reply, store, dispatcher=dispatcher, clock=clock)

    if batch.any_matched:
        await dispatcher.drain()
        await store.refresh_events()

    return ChatTurn(
        message=batch.message,
        reply=reply,
        batch=batch,
        notices=list(batch.notices),
    )


class ChatSession:
    """A conversation with the assistant that remembers its history."""

    def __init__(
        self,
        store: WorkspaceStore,
        *,
        config: RuntimeConfig | None = None,
        client=None,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.config = config
        self.client = client
        self.clock = clock
        self.dispatcher = Dispatcher(store)
        self.history: list[ChatMessage] = []

    async def send(self, message: str) -> ChatTurn:
        sent_at = self.clock()
        turn = await chat(
            self.store,
            message,
            self.history,
            config=self.config,
            client=self.client,
            dispatcher=self.dispatcher,
            clock=self.clock,
        )
        # History carries what the user saw, not the raw directives
        self.history.append(ChatMessage("user", message, sent_at))
        self.history.append(ChatMessage("assistant", turn.message, self.clock()))
        return turn
