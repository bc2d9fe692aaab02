"""Periodic resource-usage samples for every running container."""

import asyncio
from typing import Any, Dict, Optional

from docker.client import DockerClient
from docker.errors import DockerException, NotFound
from docker.models.containers import Container

from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import EventKind
from docker_logentries.services.collectors.base import QueueSource
from docker_logentries.services.collectors.container_logs import container_identity
from docker_logentries.services.stats_calculator import StatsCalculator


logger = get_logger(__name__)


class ContainerStatsCollector(QueueSource):
    """Samples stats of all running containers every ``interval`` seconds"""
    
    name = "stats"
    kind = EventKind.STATS
    
    def __init__(
        self,
        client: DockerClient,
        interval: float = 30,
        calculator: Optional[StatsCalculator] = None,
        maxsize: int = 1000,
    ):
        super().__init__(maxsize)
        self.client = client
        self.interval = interval
        self.calculator = calculator or StatsCalculator()
    
    async def produce(self) -> None:
        while True:
            await self.sample_all()
            await asyncio.sleep(self.interval)
    
    async def sample_all(self) -> int:
        """Take one sample of every running container; returns records produced"""
        # Daemon errors here end the source
        containers = await asyncio.to_thread(self.client.containers.list)
        
        samples = await asyncio.gather(
            *(asyncio.to_thread(self._sample, container) for container in containers)
        )
        
        produced = 0
        for record in samples:
            if record is not None:
                await self.put(record)
                produced += 1
        return produced
    
    def _sample(self, container: Container) -> Optional[Dict[str, Any]]:
        try:
            raw = container.stats(stream=False)
        except NotFound:
            # Stopped between list and sample
            return None
        except DockerException as e:
            logger.warning(f"Error sampling stats for {container.name}: {e}")
            return None
        
        stats = dict(raw)
        stats["derived"] = self.calculator.calculate(raw)
        
        record = container_identity(container)
        record["stats"] = stats
        return record
