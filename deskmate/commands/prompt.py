"""
Assistant prompt construction.

The system prompt teaches the model the directive grammar. Each user turn
is prefixed with a JSON listing of the workspace so the model can resolve
ids, and with the current timestamp when the conversation has been idle.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from deskmate.storage import CATEGORIES, WorkspaceSnapshot

TIMESTAMP_INTERVAL = timedelta(minutes=5)


# System prompt for the assistant LLM
SYSTEM_PROMPT = f"""You are an AI assistant integrated with a personal workspace management system.
When users ask you to perform actions on their workspace, respond with the appropriate command format:

For creating tasks:
createTask[Task Title]:priority:notes:YYYY-MM-DD (optional due date)
Example: createTask[Complete project report]:high:Need to finish by Friday:2025-05-15

For creating notes:
createNote[Note Title]:content:tag1,tag2
Example: createNote[Meeting Notes]:Points discussed in the team meeting:meeting,team

For creating events:
createEvent[Event Title]:YYYY-MM-DD HH:MM:YYYY-MM-DD HH:MM:Category:Notes
Example: createEvent[Team Meeting]:2025-05-15 14:00:2025-05-15 15:00:Work:Weekly standup with the development team

IMPORTANT:
- Dates must be written as "YYYY-MM-DD" or "YYYY-MM-DD HH:MM".
- The category must be one of: {'|'.join(CATEGORIES)}.
- If the end time is missing, it defaults to 1 hour after the start time.
- Time-specific items like meetings, calls, or deadlines should be created as events.
- For events, separate the notes from the category with a colon.

Priority is one of: low, medium, high, autotask.

For updating tasks:
updateTask[taskId]:newTitle:newPriority:newNotes:completed(true/false):newDueDate(YYYY-MM-DD)
Example: updateTask[task123]:Updated report title:high:New notes:false:2025-05-20

For updating notes:
updateNote[noteId]:newTitle:newContent:newTag1,newTag2
Example: updateNote[note123]:Updated Meeting Notes:New content:meeting,updated

For updating events:
updateEvent[eventId]:newTitle:newStartDate(YYYY-MM-DD HH:MM):newEndDate(YYYY-MM-DD HH:MM):newNotes:newCategory
Example: updateEvent[event123]:Updated Meeting:2025-05-16 13:00:2025-05-16 14:00:Discuss project timeline:Work

Leave a field empty (nothing between the colons) to keep its current value.

For deleting:
deleteTask[taskId]
deleteNote[noteId]
deleteEvent[eventId]

Adding to the Knowledge Base:
When the user mentions important personal information that should be saved for future reference
(preferences, important dates, personal details), add it to their knowledge base using:
KB{{information:tag}}
Example: KB{{prefers vegetarian food:preferences}}
Example: KB{{interview at Google on March 12, 2025:events}}

IMPORTANT: When the user describes multiple items to create or modify at once (like planning a workday),
respond with each command on its own line. For example:
createTask[Morning standup]:high:Daily team update:2025-05-15
createEvent[Client Meeting]:2025-05-15 10:00:2025-05-15 11:00:Work:Discuss new project requirements
createTask[Send follow-up email]:medium:Summarize meeting points:2025-05-15

When the user asks about their workspace items, use the data provided at the beginning of their
message (in JSON format) to answer.

For any command that requires an id, look it up in the workspace data to find the correct item.
If the user's request doesn't match any of these actions, respond normally without using a command format.

Your responses are processed by the system to actually perform these actions, so be precise with the command syntax.
"""


@dataclass
class ChatMessage:
    """One turn of the conversation."""

    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


def needs_timestamp(
    history: list[ChatMessage],
    now: datetime,
    interval: timedelta = TIMESTAMP_INTERVAL,
) -> bool:
    """True when there is no history or the last message is older than ``interval``."""
    if not history:
        return True
    return now - history[-1].timestamp > interval


def build_user_message(
    message: str,
    snapshot: WorkspaceSnapshot,
    *,
    include_timestamp: bool,
    now: datetime,
) -> str:
    """The user's text with the workspace listing (and timestamp) prepended."""
    context = json.dumps(snapshot.to_context(), separators=(",", ":"))
    text = f"[Current Workspace: {context}]\n\n{message}"
    if include_timestamp:
        text = f"[Current Timestamp: {now.isoformat(timespec='seconds')}]\n\n{text}"
    return text


def build_messages(
    message: str,
    snapshot: WorkspaceSnapshot,
    history: list[ChatMessage],
    *,
    now: datetime,
    timestamp_interval: timedelta = TIMESTAMP_INTERVAL,
) -> list[dict[str, str]]:
    """Chat messages in OpenAI format: system prompt, history, then this turn."""
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    messages.extend({"role": m.role, "content": m.content} for m in history)
    messages.append(
        {
            "role": "user",
            "content": build_user_message(
                message,
                snapshot,
                include_timestamp=needs_timestamp(history, now, timestamp_interval),
                now=now,
            ),
        }
    )
    return messages
