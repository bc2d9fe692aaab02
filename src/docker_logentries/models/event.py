"""
Event model for records flowing through the forwarding pipeline.

Collectors produce plain mappings. The pipeline turns each mapping into an
Event whose kind is decided once, from the payload field it carries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class EventKind(str, Enum):
    """Event discriminant, one per channel"""
    LOG = "log"
    STATS = "stats"
    LIFECYCLE = "lifecycle"


# Payload field for each kind, in discriminant priority order
PAYLOAD_FIELDS = (
    ("line", EventKind.LOG),
    ("type", EventKind.LIFECYCLE),
    ("stats", EventKind.STATS),
)


@dataclass(frozen=True)
class Event:
    """
    A classified event.
    
    ``fields`` holds the complete record, in insertion order, exactly as it
    will be serialized; ``kind`` is derived from it and never changes.
    """
    kind: EventKind
    fields: Dict[str, Any] = field(default_factory=dict)
    
    @property
    def name(self) -> Any:
        return self.fields.get("name")
    
    @property
    def image(self) -> Any:
        return self.fields.get("image")


# Values that leave a payload field unset: None, False, 0 and ""
_UNSET = (None, False, "")


def classify(record: Mapping[str, Any]) -> Optional[Event]:
    """
    Classify a raw record by the payload field it carries.
    
    A payload field holding an empty string, None, False or zero counts as
    absent, so blank log lines are not forwarded. Returns None for records
    without any payload field; such records are dropped by the pipeline.
    """
    for name, kind in PAYLOAD_FIELDS:
        if record.get(name) not in _UNSET:
            return Event(kind=kind, fields=dict(record))
    return None
