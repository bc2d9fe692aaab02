"""Container lifecycle events from the Docker daemon's event stream."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

from docker.client import DockerClient

from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import EventKind
from docker_logentries.services.collectors.base import QueueSource


logger = get_logger(__name__)


def container_event_record(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Convert a raw Docker event into a lifecycle record.
    
    Returns None for events that do not concern a container.
    """
    if event.get("Type", "container") != "container":
        return None
    
    actor = event.get("Actor") or {}
    attributes = actor.get("Attributes") or {}
    long_id = event.get("id") or actor.get("ID")
    action = event.get("Action") or event.get("status")
    if not long_id or not action:
        return None
    
    return {
        "v": 0,
        "id": long_id[:12],
        "long_id": long_id,
        "image": attributes.get("image") or event.get("from"),
        "name": attributes.get("name"),
        "type": action,
        "time": event.get("time"),
    }


class ContainerEventsCollector(QueueSource):
    """Streams container lifecycle events until the daemon stream ends"""
    
    name = "events"
    kind = EventKind.LIFECYCLE
    
    def __init__(self, client: DockerClient, maxsize: int = 1000):
        super().__init__(maxsize)
        self.client = client
        # Thread pool for blocking Docker operations
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docker-events")
    
    async def produce(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            events = await loop.run_in_executor(
                self._executor,
                lambda: self.client.events(decode=True, filters={"type": "container"})
            )
            self.track(events)
            await loop.run_in_executor(self._executor, self._pump, events)
        finally:
            self._executor.shutdown(wait=False)
    
    def _pump(self, events) -> None:
        for event in events:
            record = container_event_record(event)
            if record is None:
                continue
            if not self.emit(record):
                break
        logger.info("Docker event stream ended")
