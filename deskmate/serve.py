"""
MCP Server for deskmate.

Exposes a workspace to AI agents via the Model Context Protocol. Agents
change the workspace the same way the built-in assistant does: by sending
directive lines, which run through the directive engine.

Tools:
    workspace         - List tasks, notes, events and knowledge items with their ids
    directives        - Show the directive grammar
    apply_directives  - Run directive lines against the workspace
    stats             - Counts and progress analytics
"""

from __future__ import annotations

import json
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from deskmate.commands import (
    Applied,
    BatchResult,
    Dispatcher,
    default_registry,
    find_directives,
    process_reply,
)
from deskmate.storage import WorkspaceStore


def format_batch(result: BatchResult) -> str:
    lines = [result.message]
    for entry in result:
        if not entry.matched:
            lines.append(f"  [SKIP] {entry.outcome.line.strip()}")
            for token in find_directives(entry.outcome.line):
                lines.append(f"    ignored {token}: directives must start their own line")
        elif entry.result is not None:
            status = "OK" if isinstance(entry.result, Applied) else "FAIL"
            lines.append(f"  [{status}] {entry.result.message}")
    return "\n".join(lines)


async def handle_tool(
    store: WorkspaceStore,
    dispatcher: Dispatcher,
    name: str,
    arguments: dict[str, Any],
) -> str:
    """Run one tool call and return its text result."""
    if name == "workspace":
        kind = arguments.get("kind", "all")
        context = store.snapshot().to_context()
        if kind != "all":
            key = "knowledgeItems" if kind == "knowledge" else kind
            if key not in context:
                return f"Error: unknown kind: {kind}"
            context = {key: context[key]}
        return json.dumps(context, indent=2)

    elif name == "directives":
        return "\n".join(shape.usage for shape in default_registry().shapes)

    elif name == "apply_directives":
        text = arguments.get("text", "")
        if not text.strip():
            return "Error: text is required"

        result = await process_reply(text, store, dispatcher=dispatcher)
        await dispatcher.drain()
        await store.flush()
        return format_batch(result)

    elif name == "stats":
        await store.flush()
        return json.dumps(store.stats(), indent=2)

    else:
        return f"Unknown tool: {name}"


def create_server(db_path: str) -> Server:
    """
    Create an MCP server for a workspace.

    Args:
        db_path: Path to the workspace database

    Returns:
        Configured MCP Server instance
    """
    server = Server("deskmate")

    # Keep the store open for the server lifetime
    store: WorkspaceStore | None = None
    dispatcher: Dispatcher | None = None

    def get_store() -> tuple[WorkspaceStore, Dispatcher]:
        nonlocal store, dispatcher
        if store is None:
            store = WorkspaceStore.open(db_path)
            dispatcher = Dispatcher(store)
        return store, dispatcher

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name="workspace",
                description="List workspace items with their ids (needed for update and delete directives)",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "kind": {
                            "type": "string",
                            "enum": ["all", "tasks", "notes", "events", "knowledge"],
                            "description": "Which collection to list (default: all)",
                            "default": "all",
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="directives",
                description="Show the directive grammar accepted by apply_directives",
                inputSchema={
                    "type": "object",
                    "properties": {},
                    "required": [],
                },
            ),
            Tool(
                name="apply_directives",
                description=(
                    "Create, update or delete tasks, notes, events and knowledge items. "
                    "One directive per line, e.g. createTask[Buy milk]:high:2 litres:2025-06-01"
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "text": {
                            "type": "string",
                            "description": "Directive lines; other lines are ignored",
                        },
                    },
                    "required": ["text"],
                },
            ),
            Tool(
                name="stats",
                description="Get workspace counts and task progress analytics",
                inputSchema={
                    "type": "object",
                    "properties": {},
                    "required": [],
                },
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        db, disp = get_store()
        text = await handle_tool(db, disp, name, arguments or {})
        return [TextContent(type="text", text=text)]

    return server


async def run_server(db_path: str) -> None:
    """
    Run the MCP server over stdio.

    Args:
        db_path: Path to the workspace database
    """
    server = create_server(db_path)

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
