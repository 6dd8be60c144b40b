"""
Parameter parsing and defaulting for directive arguments.

Every directive carries its secondary arguments as one colon-separated
string. These helpers split that string into positional fields and turn
each raw field into a typed value. Nothing here raises on bad input:
unparseable values come back as None (or the documented default) and the
caller decides what an absent value means.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Callable

from deskmate.storage import CATEGORIES, PRIORITIES

Clock = Callable[[], datetime]

DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY = "General"
DEFAULT_KB_TAG = "general"
KB_CATEGORY = "Personal"
KB_TITLE_CHARS = 30

EVENT_DEFAULT_START_HOUR = 9
EVENT_DEFAULT_END_HOUR = 17
EVENT_DEFAULT_DURATION = timedelta(hours=1)

# "2025-06-01 14" followed by "00" is one value that the colon split tore apart
_DATE_HOUR = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}[ T]\d{1,2}$")
_MINUTES = re.compile(r"^\d{2}$")

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
)


def system_clock() -> datetime:
    return datetime.now()


# -----------------------------------------------------------------------------
# Field splitting
# -----------------------------------------------------------------------------


def _fragments(args: str) -> list[tuple[str, str]]:
    """(raw, stripped) pairs, one per positional field."""
    raw = args.split(":")
    pairs: list[tuple[str, str]] = []
    i = 0
    while i < len(raw):
        text = raw[i]
        part = text.strip()
        if (
            i + 1 < len(raw)
            and _DATE_HOUR.match(part)
            and _MINUTES.match(raw[i + 1].strip())
        ):
            text = f"{text}:{raw[i + 1]}"
            part = f"{part}:{raw[i + 1].strip()}"
            i += 1
        pairs.append((text, part))
        i += 1
    return pairs


def split_fields(args: str | None) -> list[str]:
    """
    Split a secondary-argument string on ':' into stripped fields.

    A ``YYYY-MM-DD HH:MM`` value keeps its colon: the hour fragment and the
    two-digit minute fragment that follows it are joined back together.
    """
    if not args:
        return []
    return [part for _, part in _fragments(args)]


def field_at(fields: list[str], index: int) -> str:
    """Positional field, or "" when the directive omitted it."""
    return fields[index] if index < len(fields) else ""


def remainder(args: str | None, start: int) -> str:
    """Everything after the first ``start`` fields, spacing and colons as written."""
    if not args:
        return ""
    return ":".join(text for text, _ in _fragments(args)[start:]).strip()


def optional(value: str) -> str | None:
    """Empty means "not supplied"."""
    return value if value else None


# -----------------------------------------------------------------------------
# Typed values
# -----------------------------------------------------------------------------


def parse_datetime(value: str | None) -> datetime | None:
    """
    Parse a date or date-time string into a naive local datetime.

    Accepts ISO 8601 (with or without offset), ``YYYY-MM-DD HH:MM`` and
    ``YYYY/MM/DD[ HH:MM]``. A bare date parses to midnight. Returns None
    when nothing fits.
    """
    if not value:
        return None
    value = value.strip()
    if not value:
        return None

    parsed: datetime | None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_date(value: str | None) -> date | None:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def parse_priority(value: str, default: str | None = DEFAULT_PRIORITY) -> str | None:
    """Canonical priority, or ``default`` when empty or not a known level."""
    normalized = value.strip().lower()
    return normalized if normalized in PRIORITIES else default


def parse_category(value: str, default: str | None = DEFAULT_CATEGORY) -> str | None:
    """Canonical category name, matched case-insensitively."""
    normalized = value.strip().lower()
    for category in CATEGORIES:
        if category.lower() == normalized:
            return category
    return default


def parse_tags(value: str) -> list[str]:
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def parse_completed(value: str) -> bool:
    return value.strip().lower() == "true"


# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------


def resolve_event_window(
    start: datetime | None,
    end: datetime | None,
    now: datetime,
) -> tuple[datetime, datetime]:
    """
    Apply the event time conventions.

    - no start: now
    - start at exactly midnight (a bare date): 09:00 that day
    - no end: start + 1 hour
    - end at exactly midnight: 17:00 that day
    """
    if start is None:
        start = now.replace(second=0, microsecond=0)
    if start.hour == 0 and start.minute == 0:
        start = start.replace(hour=EVENT_DEFAULT_START_HOUR, minute=0, second=0, microsecond=0)

    if end is None:
        end = start + EVENT_DEFAULT_DURATION
    elif end.hour == 0 and end.minute == 0:
        end = end.replace(hour=EVENT_DEFAULT_END_HOUR, minute=0, second=0, microsecond=0)

    return start, end


def knowledge_title(content: str) -> str:
    return f"Knowledge: {content[:KB_TITLE_CHARS]}..."
