"""Line-oriented wire format: ``<token> <json>\\n``."""

import json
from typing import Any

from docker_logentries.models.event import Event


LINE_TERMINATOR = "\n"


def _default(value: Any) -> Any:
    # Docker SDK records may carry datetimes or bytes
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def serialize(event: Event) -> str:
    """Compact JSON rendering of the event's fields, in field order"""
    return json.dumps(
        event.fields,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_default,
    )


def encode(token: str, event: Event) -> bytes:
    """Render one wire record for a routed event"""
    return f"{token} {serialize(event)}{LINE_TERMINATOR}".encode("utf-8")
