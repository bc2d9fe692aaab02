from docker_logentries.models.event import Event, EventKind, classify

__all__ = ["Event", "EventKind", "classify"]
