"""
Routing policy for forwarded events.

Decides, per event, whether it is forwarded and with which token. Tokens
are selected by event kind; the name/image patterns then include or
exclude events by container identity.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional, Pattern, Tuple

from docker_logentries.core.config import Settings
from docker_logentries.core.logging import get_logger
from docker_logentries.models.event import Event, EventKind


logger = get_logger(__name__)


def _compile(pattern: str) -> Optional[Pattern]:
    return re.compile(pattern) if pattern else None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class RoutingPolicy:
    """Per-kind tokens plus compiled include/exclude identity patterns"""
    logstoken: str = ""
    statstoken: str = ""
    eventstoken: str = ""
    match_by_name: Optional[Pattern] = None
    match_by_image: Optional[Pattern] = None
    skip_by_name: Optional[Pattern] = None
    skip_by_image: Optional[Pattern] = None
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "RoutingPolicy":
        return cls.build(
            logstoken=settings.logstoken,
            statstoken=settings.statstoken,
            eventstoken=settings.eventstoken,
            match_by_name=settings.match_by_name,
            match_by_image=settings.match_by_image,
            skip_by_name=settings.skip_by_name,
            skip_by_image=settings.skip_by_image,
        )
    
    @classmethod
    def build(
        cls,
        logstoken: str = "",
        statstoken: str = "",
        eventstoken: str = "",
        match_by_name: str = "",
        match_by_image: str = "",
        skip_by_name: str = "",
        skip_by_image: str = "",
    ) -> "RoutingPolicy":
        """Build a policy from pattern text, compiling each pattern once"""
        return cls(
            logstoken=logstoken or "",
            statstoken=statstoken or "",
            eventstoken=eventstoken or "",
            match_by_name=_compile(match_by_name),
            match_by_image=_compile(match_by_image),
            skip_by_name=_compile(skip_by_name),
            skip_by_image=_compile(skip_by_image),
        )
    
    def token_for(self, kind: EventKind) -> str:
        if kind is EventKind.LOG:
            return self.logstoken
        if kind is EventKind.STATS:
            return self.statstoken
        if kind is EventKind.LIFECYCLE:
            return self.eventstoken
        raise ValueError(f"Unknown event kind: {kind!r}")


class PolicyFilter:
    """Applies a RoutingPolicy to classified events"""
    
    def __init__(self, policy: RoutingPolicy):
        self.policy = policy
    
    def route(self, event: Event) -> Optional[Tuple[str, Event]]:
        """
        Select the token for an event, or None to drop it.
        
        Args:
            event: Enriched, classified event
            
        Returns:
            (token, event) when the event passes every configured check
        """
        token = self.policy.token_for(event.kind)
        if not token:
            return None
        
        if not self.matches_identity(event):
            return None
        
        return token, event
    
    def matches_identity(self, event: Event) -> bool:
        """Check the name/image include and exclude patterns"""
        policy = self.policy
        name = _as_text(event.name)
        image = _as_text(event.image)
        
        if policy.match_by_name is not None and policy.match_by_name.search(name) is None:
            return False
        if policy.match_by_image is not None and policy.match_by_image.search(image) is None:
            return False
        if policy.skip_by_name is not None and policy.skip_by_name.search(name) is not None:
            return False
        if policy.skip_by_image is not None and policy.skip_by_image.search(image) is not None:
            return False
        
        return True
