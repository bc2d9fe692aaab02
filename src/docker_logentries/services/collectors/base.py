"""
Base class for Docker-backed sources.

The docker SDK is blocking, so collectors read from it in worker threads
and hand records to the event loop through a bounded queue. A full queue
blocks the producing thread, which is how a paused output connection
throttles the Docker streams.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from docker_logentries.core.exceptions import SourceStreamError
from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import EventKind


logger = get_logger(__name__)

_END = object()


class _Failure:
    def __init__(self, error: BaseException):
        self.error = error


class QueueSource(ABC):
    """An async stream of records fed by produce() and its worker threads"""
    
    name: str = "source"
    kind: EventKind
    
    def __init__(self, maxsize: int = 1000):
        self.maxsize = maxsize
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._streams: List[Any] = []
        self._closing = False
    
    @abstractmethod
    async def produce(self) -> None:
        """Produce records with put() or emit() until the source ends"""
        pass
    
    async def stream(self) -> AsyncIterator[Dict[str, Any]]:
        """
        Iterate over produced records.
        
        Raises:
            SourceStreamError: If produce() fails
        """
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.maxsize)
        producer = asyncio.create_task(self._run_producer(), name=f"{self.name}-producer")
        
        try:
            while True:
                item = await self._queue.get()
                if item is _END:
                    return
                if isinstance(item, _Failure):
                    raise SourceStreamError(self.name, str(item.error)) from item.error
                yield item
        finally:
            self._closing = True
            producer.cancel()
            self.close_streams()
            # Unblock worker threads waiting on a full queue
            while not self._queue.empty():
                self._queue.get_nowait()
            await asyncio.gather(producer, return_exceptions=True)
    
    async def put(self, record: Dict[str, Any]) -> None:
        await self._queue.put(record)
    
    def emit(self, record: Dict[str, Any]) -> bool:
        """
        Hand a record to the event loop from a worker thread.
        
        Blocks while the queue is full. Returns False once the source is
        closing, telling the worker to stop.
        """
        if self._closing or self._loop is None or self._loop.is_closed():
            return False
        future = asyncio.run_coroutine_threadsafe(self._queue.put(record), self._loop)
        try:
            future.result()
        except Exception:
            return False
        return not self._closing
    
    def track(self, docker_stream: Any) -> Any:
        """Remember a blocking docker stream so it is closed with the source"""
        self._streams.append(docker_stream)
        return docker_stream
    
    def untrack(self, docker_stream: Any) -> None:
        if docker_stream in self._streams:
            self._streams.remove(docker_stream)
    
    def close_streams(self) -> None:
        for docker_stream in self._streams[:]:
            try:
                if hasattr(docker_stream, 'close'):
                    docker_stream.close()
            except Exception as e:
                logger.debug(f"Error closing {self.name} stream: {e}")
        self._streams.clear()
    
    async def _run_producer(self) -> None:
        try:
            await self.produce()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in {self.name} source: {e}")
            await self._queue.put(_Failure(e))
            return
        await self._queue.put(_END)
