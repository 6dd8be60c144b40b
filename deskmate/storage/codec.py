"""Column encoders shared by the entity tables."""

from __future__ import annotations

import json
from datetime import date, datetime


def encode_tags(tags: list[str]) -> str:
    return json.dumps(list(tags))


def decode_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return [str(t) for t in value] if isinstance(value, list) else []


def encode_datetime(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value is not None else None


def decode_datetime(raw: str | None) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(raw)


def encode_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def decode_date(raw: str | None) -> date | None:
    if not raw:
        return None
    # Older rows may carry a full timestamp
    return date.fromisoformat(raw[:10])
