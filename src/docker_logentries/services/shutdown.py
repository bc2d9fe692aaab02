from typing import Protocol

from docker_logentries.core.logging import get_logger


logger = get_logger(__name__)


class Stoppable(Protocol):
    def shutdown(self) -> None:
        ...


class ShutdownCoordinator:
    """Stops the output connection once, when the last source closes"""
    
    def __init__(self, output: Stoppable):
        self.output = output
        self.triggered = False
    
    def notify(self, open_sources: int) -> bool:
        """
        Observe the open-source count.
        
        Returns:
            True if this notification triggered the shutdown
        """
        if open_sources > 0 or self.triggered:
            return False
        
        self.triggered = True
        logger.info("All sources closed, stopping output connection")
        self.output.shutdown()
        return True
