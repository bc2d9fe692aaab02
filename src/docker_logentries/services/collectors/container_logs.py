"""
Container log collector.

Follows the output of every running container, and of every container
that starts while the collector runs. Each output line becomes one record.
"""

import asyncio
import json
import threading
import time
from typing import Any, Dict, Optional, Set

from docker.client import DockerClient
from docker.errors import DockerException, NotFound
from docker.models.containers import Container

from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import EventKind
from docker_logentries.services.collectors.base import QueueSource


logger = get_logger(__name__)


def container_identity(container: Container) -> Dict[str, Any]:
    """Shared identity fields for records about a container"""
    attrs = container.attrs or {}
    image = (attrs.get("Config") or {}).get("Image") or attrs.get("Image")
    
    return {
        "v": 0,
        "id": container.id[:12],
        "long_id": container.id,
        "image": image,
        "name": container.name,
    }


class LineSplitter:
    """Reassembles log lines from arbitrarily chunked output"""
    
    def __init__(self, split: bool = True):
        self.split = split
        self._pending = ""
    
    def feed(self, chunk: bytes) -> list:
        text = chunk.decode("utf-8", errors="replace")
        if not self.split:
            text = text.rstrip("\n")
            return [text] if text else []
        
        self._pending += text
        *lines, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in lines]
    
    def flush(self) -> list:
        rest, self._pending = self._pending, ""
        return [rest] if rest else []


class ContainerLogsCollector(QueueSource):
    """Streams log lines from all containers"""
    
    name = "logs"
    kind = EventKind.LOG
    
    def __init__(
        self,
        client: DockerClient,
        parse_json: bool = False,
        newline: bool = True,
        maxsize: int = 1000,
    ):
        super().__init__(maxsize)
        self.client = client
        self.parse_json = parse_json
        self.newline = newline
        self._attached: Set[str] = set()
        self._threads: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()
    
    async def produce(self) -> None:
        since = int(time.time())
        
        containers = await asyncio.to_thread(self.client.containers.list)
        for container in containers:
            self.attach(container, since)
        
        # Containers started from now on
        events = await asyncio.to_thread(
            self.client.events,
            decode=True,
            filters={"type": "container", "event": "start"}
        )
        self.track(events)
        await asyncio.to_thread(self._watch_starts, events)
        
        # No new containers can be attached; end once the followed ones do
        while True:
            with self._lock:
                threads = list(self._threads.values())
            if not threads:
                break
            for thread in threads:
                await asyncio.to_thread(thread.join)
    
    def attach(self, container: Container, since: Optional[int] = None) -> bool:
        """Start following a container's output; returns False if already followed"""
        with self._lock:
            if container.id in self._attached or self._closing:
                return False
            self._attached.add(container.id)
            thread = threading.Thread(
                target=self._follow,
                args=(container, since),
                name=f"logs-{container.id[:12]}",
                daemon=True,
            )
            self._threads[container.id] = thread
        
        thread.start()
        return True
    
    def make_record(self, identity: Dict[str, Any], line: str) -> Dict[str, Any]:
        record = dict(identity)
        record["line"] = line
        if self.parse_json:
            try:
                record["line"] = json.loads(line)
            except ValueError:
                pass
        return record
    
    def _watch_starts(self, events) -> None:
        for event in events:
            container_id = event.get("id") or (event.get("Actor") or {}).get("ID")
            if not container_id or self._closing:
                continue
            try:
                container = self.client.containers.get(container_id)
            except NotFound:
                continue
            except DockerException as e:
                logger.warning(f"Could not inspect started container {container_id[:12]}: {e}")
                continue
            self.attach(container)
        logger.info("Container start watch ended")
    
    def _follow(self, container: Container, since: Optional[int]) -> None:
        identity = container_identity(container)
        splitter = LineSplitter(split=self.newline)
        output = None
        try:
            kwargs = {"stream": True, "follow": True}
            if since is not None:
                kwargs["since"] = since
            output = self.track(container.logs(**kwargs))
            
            for chunk in output:
                for line in splitter.feed(chunk):
                    if not self.emit(self.make_record(identity, line)):
                        return
            for line in splitter.flush():
                self.emit(self.make_record(identity, line))
        except Exception as e:
            if not self._closing:
                logger.debug(f"Log stream for {identity['name']} ended: {e}")
        finally:
            if output is not None:
                self.untrack(output)
            with self._lock:
                self._attached.discard(container.id)
                self._threads.pop(container.id, None)
