"""
Deskmate CLI.

Commands:
    init       Create a workspace database (optionally with sample content)
    info       Show workspace location, schema version and progress stats
    list       List tasks, notes, events and knowledge items
    apply      Run directive text through the engine without an LLM
    chat       Talk to the assistant (one-shot or interactive)
    prompt     Print the assistant system prompt
    web        Start the web API
    serve      Expose the workspace via MCP for AI agents

Examples:
    deskmate init --seed
    deskmate list tasks
    deskmate apply "createTask[Buy milk]:high:2 litres:2025-06-01"
    echo "KB{Likes oat milk:preferences}" | deskmate apply
    deskmate chat "plan my Monday"
"""

from __future__ import annotations

import argparse
import logging
import sys


def _open_store(args: argparse.Namespace):
    from deskmate.storage import WorkspaceStore

    return WorkspaceStore.open(args.db)


def _print_notices(notices) -> None:
    for notice in notices:
        marker = "[FAIL]" if notice.error else "[OK]"
        print(f"  {marker} {notice.title}: {notice.description}")


def cmd_init(args: argparse.Namespace) -> int:
    """Handle init command."""
    from datetime import date, datetime, timedelta

    store = _open_store(args)
    try:
        if args.seed and not (store.tasks or store.notes or store.events):
            tomorrow = date.today() + timedelta(days=1)
            store.create_note(
                title="Welcome to Deskmate",
                content=(
                    "Ask the assistant to create tasks, notes and events for you, "
                    "or write directives yourself with `deskmate apply`."
                ),
                tags=["welcome"],
            )
            store.create_task(
                title="Try the assistant",
                priority="high",
                notes='Run: deskmate chat "add a task to call the dentist"',
                due_date=tomorrow,
            )
            start = datetime.combine(tomorrow, datetime.min.time()).replace(hour=9)
            store.create_event(
                title="Plan the week",
                start=start,
                end=start + timedelta(hours=1),
                category="Personal",
            )
        print(f"Workspace: {args.db}")
        return 0
    finally:
        store.close()


def cmd_info(args: argparse.Namespace) -> int:
    """Handle info command."""
    from pathlib import Path

    from deskmate.storage import get_all_metadata, get_stats, init_db

    if args.db != ":memory:" and not Path(args.db).exists():
        print(f"Error: Workspace not found: {args.db}", file=sys.stderr)
        print("Run 'deskmate init' first", file=sys.stderr)
        return 1

    conn = init_db(args.db)
    try:
        stats = get_stats(conn)
        metadata = get_all_metadata(conn)

        print(f"Workspace: {args.db}")
        if "schema_version" in metadata:
            print(f"Schema: {metadata['schema_version']}")

        print()
        print("Stats:")
        print(f"  Tasks: {stats['total_tasks']}")
        print(f"  Notes: {stats['total_notes']}")
        print(f"  Events: {stats['total_events']}")
        print(f"  Knowledge items: {stats['total_knowledge_items']}")

        print()
        print("Progress:")
        print(f"  Completed tasks: {stats['completed_tasks']}/{stats['total_tasks']}")
        print(f"  Deadlines met: {stats['deadlines_met']}/{stats['total_deadlines']}")
        return 0
    finally:
        conn.close()


def cmd_list(args: argparse.Namespace) -> int:
    """Handle list command."""
    import json

    store = _open_store(args)
    try:
        kinds = ["tasks", "notes", "events", "knowledge"] if args.kind == "all" else [args.kind]
        items = {
            "tasks": store.tasks,
            "notes": store.notes,
            "events": sorted(store.events, key=lambda e: e.start),
            "knowledge": store.knowledge_items,
        }

        if args.json:
            print(json.dumps({k: [i.to_dict() for i in items[k]] for k in kinds}, indent=2))
            return 0

        for kind in kinds:
            print(f"{kind.capitalize()} ({len(items[kind])}):")
            for item in items[kind]:
                if kind == "tasks":
                    check = "x" if item.completed else " "
                    due = f" due {item.due_date.isoformat()}" if item.due_date else ""
                    print(f"  [{check}] {item.title} ({item.priority}){due}  {item.id}")
                elif kind == "notes":
                    tags = f" #{' #'.join(item.tags)}" if item.tags else ""
                    print(f"  {item.title}{tags}  {item.id}")
                elif kind == "events":
                    when = f"{item.start:%Y-%m-%d %H:%M} - {item.end:%H:%M}"
                    print(f"  {when} {item.title} [{item.category}]  {item.id}")
                else:
                    print(f"  {item.content} ({', '.join(item.tags)})  {item.id}")
            print()
        return 0
    finally:
        store.close()


def cmd_apply(args: argparse.Namespace) -> int:
    """Handle apply command - run raw directive text through the engine."""
    import asyncio
    import json

    from deskmate.commands import Dispatcher, find_directives, process_reply

    if args.file:
        with open(args.file, encoding="utf-8") as f:
            text = f.read()
    elif args.text:
        text = args.text
    else:
        text = sys.stdin.read()

    if not text.strip():
        print("Error: No directives given", file=sys.stderr)
        return 1

    store = _open_store(args)

    async def run():
        dispatcher = Dispatcher(store)
        result = await process_reply(text, store, dispatcher=dispatcher)
        await dispatcher.drain()
        await store.flush()
        return result

    try:
        result = asyncio.run(run())
    finally:
        store.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.message)
        _print_notices(result.notices)

    for entry in result:
        if not entry.matched:
            for token in find_directives(entry.outcome.line):
                print(f"Warning: ignored {token} (directives must start their own line)", file=sys.stderr)

    return 1 if result.failed_count else 0


def cmd_chat(args: argparse.Namespace) -> int:
    """Handle chat command."""
    import asyncio

    from deskmate.assistant import ChatSession
    from deskmate.runtime import get_runtime_config, set_global_config

    config = get_runtime_config(
        db_path=args.db,
        llm_model=args.model,
        temperature=args.temperature,
        verbose=args.verbose,
    )
    set_global_config(config)

    store = _open_store(args)
    session = ChatSession(store, config=config)

    async def one(message: str) -> bool:
        turn = await session.send(message)
        print(turn.message)
        if turn.batch is not None and turn.batch.any_matched:
            _print_notices(turn.notices)
        await store.flush()
        return not turn.error

    async def interactive() -> None:
        print("Chatting with your workspace. Ctrl+D or 'exit' to quit.", file=sys.stderr)
        while True:
            try:
                message = await asyncio.to_thread(input, "> ")
            except EOFError:
                print()
                return
            if message.strip().lower() in ("exit", "quit"):
                return
            if message.strip():
                await one(message)
                print()

    try:
        if args.message:
            ok = asyncio.run(one(args.message))
            return 0 if ok else 1
        asyncio.run(interactive())
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1
    finally:
        store.close()


def cmd_prompt(args: argparse.Namespace) -> int:
    """Handle prompt command."""
    from deskmate.commands.prompt import SYSTEM_PROMPT

    print(SYSTEM_PROMPT)
    return 0


def cmd_web(args: argparse.Namespace) -> int:
    """Handle web command - start the web server."""
    from deskmate.runtime import get_runtime_config, set_global_config
    from deskmate.web import run_server

    set_global_config(get_runtime_config(db_path=args.db, verbose=args.verbose))

    try:
        run_server(
            db_path=args.db,
            host=args.host,
            port=args.port,
            open_browser=not args.no_browser,
        )
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle serve command."""
    import asyncio

    from deskmate.serve import run_server

    try:
        print(f"Serving: {args.db}", file=sys.stderr)
        print("MCP server ready on stdio (waiting for client connection)", file=sys.stderr)
        print("Tip: This command is meant to be invoked by an MCP client.", file=sys.stderr)
        print("     Press Ctrl+C to exit.", file=sys.stderr)
        asyncio.run(run_server(args.db))
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint."""
    from deskmate.runtime import default_db_path

    parser = argparse.ArgumentParser(
        prog="deskmate",
        description="Personal workspace with an assistant that can edit it.",
    )
    parser.add_argument(
        "--db",
        default=default_db_path(),
        help="Workspace database (default: $DESKMATE_DB or ~/.deskmate/workspace.db)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init
    init_parser = subparsers.add_parser(
        "init",
        help="Create a workspace database",
    )
    init_parser.add_argument(
        "--seed",
        action="store_true",
        help="Add a welcome note, task and event to an empty workspace",
    )

    # info
    subparsers.add_parser(
        "info",
        help="Show workspace stats",
    )

    # list
    list_parser = subparsers.add_parser(
        "list",
        help="List workspace items",
    )
    list_parser.add_argument(
        "kind",
        nargs="?",
        choices=["all", "tasks", "notes", "events", "knowledge"],
        default="all",
        help="What to list (default: all)",
    )
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON",
    )

    # apply
    apply_parser = subparsers.add_parser(
        "apply",
        help="Run directive text through the engine (reads stdin if no text)",
    )
    apply_parser.add_argument(
        "text",
        nargs="?",
        help="Reply text containing directives, one per line",
    )
    apply_parser.add_argument(
        "-f",
        "--file",
        help="Read the reply text from a file",
    )
    apply_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the batch result as JSON",
    )

    # chat
    chat_parser = subparsers.add_parser(
        "chat",
        help="Talk to the assistant (interactive if no message)",
    )
    chat_parser.add_argument(
        "message",
        nargs="?",
        help="Message to send",
    )
    chat_parser.add_argument(
        "-m",
        "--model",
        default=None,
        help="LLM model (default: $DESKMATE_LLM_MODEL or qwen3:8b via Ollama)",
    )
    chat_parser.add_argument(
        "-t",
        "--temperature",
        type=float,
        default=None,
        help="Sampling temperature (default: 0.7)",
    )

    # prompt
    subparsers.add_parser(
        "prompt",
        help="Print the assistant system prompt",
    )

    # web
    web_parser = subparsers.add_parser(
        "web",
        help="Start the web API",
    )
    web_parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    web_parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    web_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open browser automatically",
    )

    # serve
    subparsers.add_parser(
        "serve",
        help="Expose the workspace via MCP",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "init":
        return cmd_init(args)
    elif args.command == "info":
        return cmd_info(args)
    elif args.command == "list":
        return cmd_list(args)
    elif args.command == "apply":
        return cmd_apply(args)
    elif args.command == "chat":
        return cmd_chat(args)
    elif args.command == "prompt":
        return cmd_prompt(args)
    elif args.command == "web":
        return cmd_web(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
