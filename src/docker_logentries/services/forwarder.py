"""
Forwarder wiring.

Builds the pipeline, the output connection, the shutdown coordinator and
the multiplexer from one immutable Settings value, and runs them.
"""

import asyncio
from typing import List, Optional, Sequence

from docker.client import DockerClient

from docker_logentries.core.config import Settings
from docker_logentries.core.exceptions import NoChannelEnabledError
from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import EventKind
from docker_logentries.services.collectors import (
    ContainerEventsCollector,
    ContainerLogsCollector,
    ContainerStatsCollector,
    QueueSource,
)
from docker_logentries.services.multiplexer import SourceHandle, SourceMultiplexer
from docker_logentries.services.output_connection import ResilientOutputConnection
from docker_logentries.services.pipeline import EventPipeline
from docker_logentries.services.shutdown import ShutdownCoordinator


logger = get_logger(__name__)


def enabled_channels(settings: Settings) -> List[EventKind]:
    """Channels whose flag is on and whose token is set, in start order"""
    channels = []
    if settings.logs and settings.logstoken:
        channels.append(EventKind.LOG)
    if settings.stats and settings.statstoken:
        channels.append(EventKind.STATS)
    if settings.docker_events and settings.eventstoken:
        channels.append(EventKind.LIFECYCLE)
    return channels


def build_collectors(settings: Settings, client: DockerClient) -> List[QueueSource]:
    """
    Create one collector per enabled channel.
    
    Raises:
        NoChannelEnabledError: If no channel is enabled
    """
    collectors: List[QueueSource] = []
    for kind in enabled_channels(settings):
        if kind is EventKind.LOG:
            collectors.append(ContainerLogsCollector(
                client,
                parse_json=settings.parse_json,
                newline=settings.newline,
            ))
        elif kind is EventKind.STATS:
            collectors.append(ContainerStatsCollector(client, interval=settings.statsinterval))
        elif kind is EventKind.LIFECYCLE:
            collectors.append(ContainerEventsCollector(client))
    
    if not collectors:
        raise NoChannelEnabledError()
    return collectors


def source_handles(collectors: Sequence[QueueSource]) -> List[SourceHandle]:
    return [
        SourceHandle(name=collector.name, kind=collector.kind, stream=collector.stream())
        for collector in collectors
    ]


class Forwarder:
    """Runs the sources into the output connection until every source closes"""
    
    def __init__(
        self,
        settings: Settings,
        sources: Sequence[SourceHandle],
        output: Optional[ResilientOutputConnection] = None,
    ):
        if not sources:
            raise NoChannelEnabledError()
        
        self.settings = settings
        self.pipeline = EventPipeline.from_settings(settings)
        self.output = output or ResilientOutputConnection.from_settings(settings)
        self.coordinator = ShutdownCoordinator(self.output)
        self.multiplexer = SourceMultiplexer(
            sources,
            self.pipeline,
            self.output,
            on_count_change=self.coordinator.notify,
        )
    
    async def run(self) -> None:
        """
        Forward until all sources have closed.
        
        Raises:
            TrustError: If the secure output connection cannot be trusted
        """
        logger.info("Started successfully, streaming logs ...")
        
        output_task = asyncio.create_task(self.output.run(), name="output-connection")
        sources_task = asyncio.create_task(self.multiplexer.run(), name="sources")
        try:
            # Ends after the coordinator's shutdown, or raises on a fatal error
            await output_task
            await sources_task
        finally:
            for task in (sources_task, output_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(sources_task, output_task, return_exceptions=True)


async def run_forwarder(settings: Settings, client: DockerClient) -> None:
    collectors = build_collectors(settings, client)
    forwarder = Forwarder(settings, source_handles(collectors))
    await forwarder.run()
