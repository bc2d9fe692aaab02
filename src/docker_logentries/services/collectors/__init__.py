from docker_logentries.services.collectors.base import QueueSource
from docker_logentries.services.collectors.container_logs import ContainerLogsCollector
from docker_logentries.services.collectors.container_stats import ContainerStatsCollector
from docker_logentries.services.collectors.docker_events import ContainerEventsCollector

__all__ = [
    "QueueSource",
    "ContainerLogsCollector",
    "ContainerStatsCollector",
    "ContainerEventsCollector",
]
