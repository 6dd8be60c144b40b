"""
Batch coordinator - runs every directive in one assistant reply.

The reply is split into lines, blank lines are dropped, and each remaining
line is matched on its own. Matches are dispatched one at a time, in the
order they appeared; a failure in one line never stops the next.

If no line matched, the reply was plain conversation and is shown as-is.
Otherwise the chat shows a single acknowledgement and the per-action
outcomes are reported as notices.
"""

from __future__ import annotations

import logging

from .dispatcher import Dispatcher
from .grammar import GrammarRegistry, default_registry
from .params import Clock, system_clock
from .responses import BATCH_ACKNOWLEDGEMENT, friendly_response, notice_for
from .types import (
    Applied,
    BatchEntry,
    BatchResult,
    Failed,
    Matched,
    WorkspaceStoreLike,
)

logger = logging.getLogger(__name__)


def split_reply(raw_text: str) -> list[str]:
    """Non-blank lines of a reply, in order."""
    return [line for line in raw_text.splitlines() if line.strip()]


async def process_reply(
    raw_text: str,
    store: WorkspaceStoreLike,
    *,
    dispatcher: Dispatcher | None = None,
    registry: GrammarRegistry | None = None,
    clock: Clock = system_clock,
) -> BatchResult:
    """
    Parse and execute every directive in an assistant reply.

    This is the main entry point for the directive engine.

    Args:
        raw_text: The assistant's reply, possibly multi-line
        store: Workspace store used for lookups and mutations
        dispatcher: Dispatcher to reuse (one is created for ``store`` if omitted)
        registry: Grammar to match against (built-in shapes if omitted)
        clock: Source of "now" for defaulted times

    Returns:
        BatchResult with one entry per non-blank line
    """
    dispatcher = dispatcher or Dispatcher(store)
    registry = registry or default_registry()

    result = BatchResult(reply=raw_text)

    for line in split_reply(raw_text):
        outcome = registry.match(line, clock=clock)
        entry = BatchEntry(outcome=outcome)
        result.entries.append(entry)

        if not isinstance(outcome, Matched):
            continue

        command = outcome.command
        try:
            entry.result = await dispatcher.dispatch(command)
        except Exception as e:
            logger.warning("Directive %s failed: %s", command.kind, e)
            entry.result = Failed(str(e), friendly_response(command, success=False, reason=str(e)))

        if isinstance(entry.result, Applied):
            result.notices.append(notice_for(command))
        else:
            result.notices.append(notice_for(command, False, entry.result.reason))

    if result.any_matched:
        result.message = BATCH_ACKNOWLEDGEMENT
    else:
        result.message = raw_text

    logger.debug(
        "Processed reply: %d line(s), %d applied, %d failed",
        len(result),
        result.applied_count,
        result.failed_count,
    )
    return result
