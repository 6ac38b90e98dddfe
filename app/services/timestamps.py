from __future__ import annotations

import re
from datetime import datetime, timezone

from app.errors import InvalidTimestampError

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_TIMESTAMP_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def parse_timestamp(text: str) -> datetime:
    """Parse `2021-02-18T09:58:59.281Z` into an aware UTC datetime."""
    value = str(text or "").strip()
    if not _TIMESTAMP_SHAPE.match(value):
        raise InvalidTimestampError(f"invalid timestamp: {text!r}")
    try:
        parsed = datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise InvalidTimestampError(f"invalid timestamp: {text!r}") from exc
    return parsed.replace(tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        utc_value = value.replace(tzinfo=timezone.utc)
    else:
        utc_value = value.astimezone(timezone.utc)
    return utc_value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc_value.microsecond // 1000:03d}Z"


def coerce_timestamp(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return parse_timestamp(value)
