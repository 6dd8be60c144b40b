"""
Deskmate web server.

A FastAPI server exposing the workspace and the assistant over HTTP,
for a browser or mobile front end.

Usage:
    deskmate web                    # Start server on localhost:8000
    deskmate web -p 3000            # Custom port
"""

from __future__ import annotations

import sys
import webbrowser
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from deskmate.assistant import ChatSession
from deskmate.commands import Dispatcher, process_reply
from deskmate.runtime import get_global_config
from deskmate.storage import WorkspaceStore


# =============================================================================
# State Management
# =============================================================================


@dataclass
class AppState:
    """Global application state."""

    store: WorkspaceStore | None = None
    session: ChatSession | None = None
    dispatcher: Dispatcher | None = None

    def open(self, db_path: str) -> WorkspaceStore:
        """Open the workspace and start a fresh chat session on it."""
        self.attach(WorkspaceStore.open(db_path))
        return self.store

    def attach(self, store: WorkspaceStore) -> None:
        self.store = store
        self.session = ChatSession(store, config=get_global_config())
        self.dispatcher = Dispatcher(store)

    def close(self) -> None:
        if self.store is not None:
            self.store.close()
        self.store = None
        self.session = None
        self.dispatcher = None

    def require_store(self) -> WorkspaceStore:
        if self.store is None:
            raise HTTPException(status_code=503, detail="No workspace loaded")
        return self.store


# Global state instance
state = AppState()


# =============================================================================
# Request/Response Models
# =============================================================================


class ApplyRequest(BaseModel):
    """Raw reply text to run through the directive engine."""

    text: str


class ChatRequest(BaseModel):
    message: str


class NoticeModel(BaseModel):
    title: str
    description: str
    error: bool = False


class EntryModel(BaseModel):
    """One line of a processed reply."""

    line: str
    matched: bool
    kind: str | None = None
    confirmation: str | None = None
    status: str | None = None  # "applied" or "failed"
    reason: str | None = None
    message: str | None = None


class ApplyResponse(BaseModel):
    message: str
    entries: list[EntryModel]
    notices: list[NoticeModel]
    applied: int
    failed: int


class ChatResponse(BaseModel):
    message: str
    reply: str
    error: bool
    notices: list[NoticeModel]
    entries: list[EntryModel]


# =============================================================================
# FastAPI App
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """App lifespan handler for startup/shutdown."""
    print("Deskmate server starting...")
    if state.store is None:
        state.open(get_global_config().db_path)
    yield
    print("Shutting down...")
    if state.store is not None:
        await state.store.flush()
    state.close()


app = FastAPI(
    title="Deskmate",
    description="Personal workspace with an assistant that can edit it",
    lifespan=lifespan,
)

# Add CORS middleware for mobile/cross-origin access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# API Routes
# =============================================================================


@app.get("/api/status")
async def get_status():
    """Get current server status."""
    config = get_global_config()
    return {
        "ready": state.store is not None,
        "db_path": config.db_path,
        "model": config.llm_model,
        "assistant_enabled": config.assistant_enabled,
    }


@app.get("/api/workspace")
async def get_workspace():
    """Everything in the workspace, plus progress stats."""
    store = state.require_store()
    await store.flush()
    return {
        "tasks": [t.to_dict() for t in store.tasks],
        "notes": [n.to_dict() for n in store.notes],
        "events": [e.to_dict() for e in sorted(store.events, key=lambda e: e.start)],
        "knowledgeItems": [k.to_dict() for k in store.knowledge_items],
        "stats": store.stats(),
    }


@app.post("/api/tasks/{task_id}/toggle")
async def toggle_task(task_id: str):
    """Flip a task between done and not done."""
    store = state.require_store()
    task = store.toggle_task_completion(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    await store.flush()
    return task.to_dict()


@app.post("/api/apply", response_model=ApplyResponse)
async def apply_directives(request: ApplyRequest):
    """
    Run reply text through the directive engine without calling an LLM.

    Each line is matched on its own; lines that are not directives are
    reported as unmatched and change nothing.
    """
    store = state.require_store()
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="No directives given")

    result = await process_reply(request.text, store, dispatcher=state.dispatcher)
    await state.dispatcher.drain()
    await store.flush()
    return result.to_dict()


@app.post("/api/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """Send one message to the assistant and apply whatever it asks for."""
    store = state.require_store()
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is empty")

    turn = await state.session.send(request.message)
    await store.flush()
    return turn.to_dict()


# =============================================================================
# Server Runner
# =============================================================================


def run_server(
    db_path: str | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
    open_browser: bool = True,
):
    """
    Run the Deskmate web server.

    Args:
        db_path: Workspace database (global config default if omitted)
        host: Host to bind to
        port: Port to bind to
        open_browser: Open the API docs on startup
    """
    import uvicorn

    if db_path:
        state.open(db_path)

    # Open browser after a short delay
    if open_browser:
        def open_browser_delayed():
            import time
            time.sleep(1)
            webbrowser.open(f"http://{host}:{port}/docs")

        import threading
        threading.Thread(target=open_browser_delayed, daemon=True).start()

    print(f"Deskmate server running at http://{host}:{port}", file=sys.stderr)
    print("Press Ctrl+C to stop", file=sys.stderr)

    # Run server
    uvicorn.run(app, host=host, port=port, log_level="warning")
