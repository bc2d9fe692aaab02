"""
Pytest configuration and fixtures
"""

import asyncio
import os
from typing import Any, AsyncIterator, Dict, List, Optional

import pytest
import pytest_asyncio

from docker_logentries.core.config import Settings


_END = object()


class ControlledSource:
    """Async record source driven by the test"""
    
    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self.consumed = 0
    
    def push(self, record: Dict[str, Any]) -> None:
        self._queue.put_nowait(record)
    
    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)
    
    def end(self) -> None:
        self._queue.put_nowait(_END)
    
    async def stream(self) -> AsyncIterator[Dict[str, Any]]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, Exception):
                raise item
            self.consumed += 1
            yield item


class CollectorServer:
    """Loopback TCP server recording every line received, per connection"""
    
    def __init__(self):
        self.server: Optional[asyncio.AbstractServer] = None
        self.connections: List[List[bytes]] = []
        self.writers: List[asyncio.StreamWriter] = []
        self._line_received = asyncio.Condition()
        self._connected = asyncio.Condition()
    
    async def start(self) -> "CollectorServer":
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self
    
    @property
    def port(self) -> int:
        return self.server.sockets[0].getsockname()[1]
    
    @property
    def lines(self) -> List[bytes]:
        return [line for connection in self.connections for line in connection]
    
    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        received: List[bytes] = []
        self.connections.append(received)
        self.writers.append(writer)
        async with self._connected:
            self._connected.notify_all()
        
        while True:
            try:
                line = await reader.readline()
            except ConnectionError:
                break
            if not line:
                break
            received.append(line)
            async with self._line_received:
                self._line_received.notify_all()
    
    async def wait_for_lines(self, count: int, timeout: float = 5) -> List[bytes]:
        async def _wait():
            async with self._line_received:
                await self._line_received.wait_for(lambda: len(self.lines) >= count)
        await asyncio.wait_for(_wait(), timeout)
        return self.lines
    
    async def wait_for_connections(self, count: int, timeout: float = 5) -> None:
        async def _wait():
            async with self._connected:
                await self._connected.wait_for(lambda: len(self.connections) >= count)
        await asyncio.wait_for(_wait(), timeout)
    
    def drop_connection(self, index: int = -1) -> None:
        """Close a client connection from the server side"""
        self.writers[index].close()
    
    async def close(self) -> None:
        for writer in self.writers:
            writer.close()
        self.server.close()
        await self.server.wait_closed()


@pytest_asyncio.fixture
async def collector_server():
    server = await CollectorServer().start()
    yield server
    await server.close()


@pytest.fixture
def make_settings(monkeypatch):
    """Build Settings without reading the environment or .env"""
    for name in list(os.environ):
        if name.upper().startswith("LOGENTRIES_"):
            monkeypatch.delenv(name)
    
    def _make(**overrides: Any) -> Settings:
        values = {"add": {}, "reconnect_delay": 0}
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make
