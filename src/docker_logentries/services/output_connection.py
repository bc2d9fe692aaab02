"""
Resilient Output Connection

Owns the single transport to the remote collector. A supervising loop
connects, waits for the transport to close, and reconnects for as long as
shutdown has not been requested. Writers wait while no transport is open.
"""

import asyncio
import ssl
from enum import Enum
from typing import Optional, Tuple

from docker_logentries.core.config import Settings
from docker_logentries.core.exceptions import TrustError
from docker_logentries.core.logging import get_logger


logger = get_logger(__name__)

READ_CHUNK = 4096

# Failures that end one transport (or one connect attempt) but are retried
TRANSPORT_ERRORS = (OSError, asyncio.TimeoutError, asyncio.IncompleteReadError)


class ConnectionState(str, Enum):
    """Transport states"""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ResilientOutputConnection:
    """
    Always-on connection to the collector endpoint.
    
    Reconnects immediately after an open transport closes. Consecutive
    failed connect attempts back off exponentially from ``reconnect_delay``
    up to ``reconnect_delay_max``; a delay of 0 retries immediately.
    
    In secure mode a peer whose certificate was not verified is fatal:
    run() raises TrustError instead of retrying.
    """
    
    def __init__(
        self,
        server: str,
        port: int,
        secure: bool = False,
        ssl_context: Optional[ssl.SSLContext] = None,
        connect_timeout: Optional[float] = None,
        reconnect_delay: float = 0.5,
        reconnect_delay_max: float = 30.0,
    ):
        self.server = server
        self.port = port
        self.secure = secure
        self.ssl_context = ssl_context
        self.connect_timeout = connect_timeout
        self.reconnect_delay = reconnect_delay
        self.reconnect_delay_max = reconnect_delay_max
        
        self.state = ConnectionState.CLOSED
        self.connections_opened = 0
        self.failed_attempts = 0
        
        self._writer: Optional[asyncio.StreamWriter] = None
        self._stopping = False
        self._open = asyncio.Event()
        self._stop_requested = asyncio.Event()
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "ResilientOutputConnection":
        return cls(
            server=settings.server,
            port=settings.resolved_port,
            secure=settings.secure,
            connect_timeout=settings.connect_timeout,
            reconnect_delay=settings.reconnect_delay,
            reconnect_delay_max=settings.reconnect_delay_max,
        )
    
    @property
    def endpoint(self) -> str:
        return f"{self.server}:{self.port}"
    
    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN
    
    @property
    def is_stopping(self) -> bool:
        return self._stopping
    
    async def run(self) -> None:
        """
        Supervise the transport until shutdown() is called.
        
        Raises:
            TrustError: If a secure connection was established to an
                unauthenticated peer
        """
        try:
            while not self._stopping:
                self.state = ConnectionState.CONNECTING
                try:
                    transport = await self._connect_or_stop()
                except TRANSPORT_ERRORS as e:
                    self.state = ConnectionState.CLOSED
                    self.failed_attempts += 1
                    logger.debug(f"Connection to {self.endpoint} failed: {e!r}")
                    await self._wait_before_retry()
                    continue
                
                if transport is None:
                    break
                
                reader, writer = transport
                self._attach(writer)
                await self._wait_closed(reader)
                self._detach(writer)
                
                if not self._stopping:
                    logger.debug(f"Connection to {self.endpoint} closed, reconnecting")
        finally:
            # Release writers still waiting for a transport
            self._stopping = True
            self._stop_requested.set()
            self.state = ConnectionState.CLOSED
            if self._writer is not None:
                self._writer.transport.abort()
                self._detach(self._writer)
    
    def shutdown(self) -> None:
        """Disable reconnects, then forcibly terminate the current transport"""
        if self._stopping:
            return
        
        self._stopping = True
        self._stop_requested.set()
        
        if self._writer is not None:
            self._writer.transport.abort()
        
        logger.debug(f"Output connection to {self.endpoint} shut down")
    
    async def write(self, data: bytes) -> bool:
        """
        Write one record to the current transport.
        
        Waits while no transport is open, so callers are paused during a
        reconnect. Waits for the transport's buffer to drain before
        returning. A record accepted into a transport that then fails is
        not retried.
        
        Returns:
            False if the connection was shut down before the record could
            be written
        """
        while not self._stopping:
            writer = self._writer
            if writer is None or writer.is_closing():
                if writer is not None:
                    self._detach(writer)
                await self._wait_open()
                continue
            
            writer.write(data)
            try:
                await writer.drain()
            except TRANSPORT_ERRORS as e:
                logger.debug(f"Write to {self.endpoint} interrupted: {e!r}")
            return True
        
        return False
    
    async def _connect_or_stop(self) -> Optional[Tuple[asyncio.StreamReader, asyncio.StreamWriter]]:
        """Open a transport, or return None if shutdown wins the race"""
        connect = asyncio.ensure_future(self._open_transport())
        stop = asyncio.ensure_future(self._stop_requested.wait())
        try:
            await asyncio.wait({connect, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not connect.done():
                connect.cancel()
            await asyncio.gather(connect, stop, return_exceptions=True)
        
        if connect.cancelled():
            return None
        
        if self._stopping:
            # The connect may have finished in the same iteration as the stop
            if connect.exception() is None:
                _, writer = connect.result()
                writer.transport.abort()
            return None
        
        return connect.result()
    
    async def _open_transport(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        kwargs = {}
        if self.secure:
            kwargs["ssl"] = self.ssl_context or ssl.create_default_context()
            kwargs["server_hostname"] = self.server
        
        connection = asyncio.open_connection(self.server, self.port, **kwargs)
        try:
            if self.connect_timeout:
                reader, writer = await asyncio.wait_for(connection, timeout=self.connect_timeout)
            else:
                reader, writer = await connection
        except ssl.SSLCertVerificationError as e:
            raise TrustError(self.endpoint, f"secure connection not authorized: {e.verify_message}") from e
        
        if self.secure:
            self._verify_peer(writer)
        
        return reader, writer
    
    def _verify_peer(self, writer: asyncio.StreamWriter) -> None:
        # getpeercert() is empty when the handshake did not validate the peer
        ssl_object = writer.get_extra_info("ssl_object")
        if ssl_object is None or not ssl_object.getpeercert():
            writer.transport.abort()
            raise TrustError(self.endpoint)
    
    def _attach(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer
        self.state = ConnectionState.OPEN
        self.connections_opened += 1
        self.failed_attempts = 0
        self._open.set()
        logger.debug(f"Connected to {self.endpoint} (connection #{self.connections_opened})")
    
    def _detach(self, writer: asyncio.StreamWriter) -> None:
        if self._writer is not writer:
            return
        
        self._writer = None
        self._open.clear()
        if self.state == ConnectionState.OPEN:
            self.state = ConnectionState.CLOSED
        if not writer.is_closing():
            writer.close()
    
    async def _wait_closed(self, reader: asyncio.StreamReader) -> None:
        """Block until the remote end closes the transport or it fails"""
        while True:
            try:
                data = await reader.read(READ_CHUNK)
            except TRANSPORT_ERRORS:
                return
            if not data:
                return
            # The collector never answers; anything it sends is discarded
    
    async def _wait_open(self) -> None:
        opened = asyncio.ensure_future(self._open.wait())
        stop = asyncio.ensure_future(self._stop_requested.wait())
        try:
            await asyncio.wait({opened, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            opened.cancel()
            stop.cancel()
    
    def _next_delay(self) -> float:
        if self.failed_attempts <= 0 or self.reconnect_delay <= 0:
            return 0.0
        delay = self.reconnect_delay * (2 ** min(self.failed_attempts - 1, 16))
        return min(delay, self.reconnect_delay_max)
    
    async def _wait_before_retry(self) -> None:
        delay = self._next_delay()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
