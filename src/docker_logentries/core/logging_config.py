import logging
import sys
import socket

# Get container hostname to detect self-monitoring
CONTAINER_HOSTNAME = socket.gethostname()

SELF_MONITORING_PATTERNS = ["logentries", "log-forwarder", "logspout"]

# Loggers whose per-record chatter would be collected and forwarded again
PIPELINE_LOGGERS = (
    "docker_logentries.services",
)


class SelfMonitoringFilter(logging.Filter):
    """Filter out logs that would cause feedback loops when our own container is forwarded."""
    
    def __init__(self, hostname: str = CONTAINER_HOSTNAME):
        super().__init__()
        # Check if we're running in a container that looks like the forwarder
        self.is_forwarder_container = any(pattern in hostname.lower()
                                          for pattern in SELF_MONITORING_PATTERNS)
    
    def filter(self, record):
        # If we're not in a forwarder container, allow all logs
        if not self.is_forwarder_container:
            return True
        
        # Our stdout is itself a log source; debug output from the pipeline
        # would be forwarded and logged again.
        if record.levelno <= logging.DEBUG and record.name.startswith(PIPELINE_LOGGERS):
            return False
        
        return True


def setup_logging(level: str = "INFO"):
    """Configure logging with self-monitoring filter."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    console_handler.setFormatter(formatter)
    
    # Add self-monitoring filter to prevent loops
    console_handler.addFilter(SelfMonitoringFilter())
    
    # Clear existing handlers and add our configured handler
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    
    # The docker SDK and urllib3 are noisy at debug level
    for name in ("docker", "urllib3"):
        logging.getLogger(name).setLevel(max(log_level, logging.INFO))
    
    return root_logger
