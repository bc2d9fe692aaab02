import logging

# Package logger; handlers are installed by setup_logging() at process start
logger = logging.getLogger("docker_logentries")


def get_logger(name: str) -> logging.Logger:
    """Get a child of the package logger."""
    if name.startswith("docker_logentries"):
        return logging.getLogger(name)
    return logger.getChild(name)
