"""
Source Multiplexer

Runs one pump task per source. Every record a source yields goes through
the event pipeline; encoded records are written to the output connection,
whose write() blocks while it is paused so sources stop being read.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, AsyncIterable, Callable, Mapping, Optional, Protocol, Sequence

from docker_logentries.core.exceptions import NoChannelEnabledError
from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import EventKind


logger = get_logger(__name__)


class RecordPipeline(Protocol):
    def process(self, record: Mapping[str, Any]) -> Optional[bytes]:
        ...


class RecordSink(Protocol):
    async def write(self, data: bytes) -> bool:
        ...


@dataclass(eq=False)
class SourceHandle:
    """One producer of raw records with its own lifecycle"""
    name: str
    kind: EventKind
    stream: AsyncIterable[Mapping[str, Any]]
    closed: bool = False
    records: int = 0


class SourceMultiplexer:
    """Fans N sources into one output and tracks how many are still open"""
    
    def __init__(
        self,
        sources: Sequence[SourceHandle],
        pipeline: RecordPipeline,
        output: RecordSink,
        on_count_change: Optional[Callable[[int], Any]] = None,
    ):
        if not sources:
            raise NoChannelEnabledError()
        
        self.sources = list(sources)
        self.pipeline = pipeline
        self.output = output
        self.on_count_change = on_count_change
        self.open_count = len(self.sources)
        self._tasks: list[asyncio.Task] = []
    
    async def run(self) -> None:
        """Pump every source until all of them have closed"""
        self._tasks = [
            asyncio.create_task(self._pump(handle), name=f"source-{handle.name}")
            for handle in self.sources
        ]
        try:
            await asyncio.gather(*self._tasks)
        finally:
            for task in self._tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
    
    async def _pump(self, handle: SourceHandle) -> None:
        logger.info(f"Source '{handle.name}' started")
        try:
            async for record in handle.stream:
                data = self.pipeline.process(record)
                if data is not None:
                    await self.output.write(data)
                    handle.records += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Source '{handle.name}' failed: {e}")
        finally:
            await self._close_stream(handle)
            self._source_closed(handle)
    
    async def _close_stream(self, handle: SourceHandle) -> None:
        aclose = getattr(handle.stream, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:
            logger.debug(f"Error closing source '{handle.name}': {e}")
    
    def _source_closed(self, handle: SourceHandle) -> None:
        # Each handle is counted once, however it ended
        if handle.closed:
            return
        
        handle.closed = True
        self.open_count -= 1
        logger.info(
            f"Source '{handle.name}' closed after {handle.records} records "
            f"({self.open_count} still open)"
        )
        
        if self.on_count_change is not None:
            self.on_count_change(self.open_count)
