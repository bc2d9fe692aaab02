from typing import Any, Mapping, Optional

from docker_logentries.core.config import Settings
from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import classify
from docker_logentries.services.enricher import Enricher
from docker_logentries.services.policy_filter import PolicyFilter, RoutingPolicy
from docker_logentries.services.wire_encoder import encode


logger = get_logger(__name__)


class EventPipeline:
    """Enrich -> classify -> filter -> encode, for one record at a time"""
    
    def __init__(self, enricher: Enricher, policy_filter: PolicyFilter):
        self.enricher = enricher
        self.policy_filter = policy_filter
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "EventPipeline":
        return cls(
            Enricher(settings.add),
            PolicyFilter(RoutingPolicy.from_settings(settings)),
        )
    
    def process(self, record: Mapping[str, Any]) -> Optional[bytes]:
        """
        Turn one raw record into a wire record.
        
        Returns None when the record is dropped.
        """
        event = classify(self.enricher.apply(record))
        if event is None:
            logger.debug("Dropping record without line, type or stats field")
            return None
        
        routed = self.policy_filter.route(event)
        if routed is None:
            return None
        
        token, event = routed
        return encode(token, event)
