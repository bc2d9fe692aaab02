from typing import Optional, Dict, Any


class ForwarderError(Exception):
    def __init__(
        self,
        message: str,
        code: str = "FORWARDER_ERROR",
        exit_code: int = 1,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.exit_code = exit_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ForwarderError):
    def __init__(self, message: str = "Invalid configuration", code: str = "CONFIGURATION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code, 1, details)


class NoChannelEnabledError(ConfigurationError):
    def __init__(self):
        super().__init__(
            "You must provide a key for at least one of logs, stats, or dockerEvents",
            "NO_CHANNEL_ENABLED"
        )


class InvalidPortError(ConfigurationError):
    def __init__(self, value: Any):
        super().__init__(
            "port must be a number",
            "INVALID_PORT",
            {"value": value}
        )


class InvalidPatternError(ConfigurationError):
    def __init__(self, option: str, pattern: str, reason: str):
        super().__init__(
            f"Invalid regular expression for '{option}': {reason}",
            "INVALID_PATTERN",
            {"option": option, "pattern": pattern}
        )


class TrustError(ForwarderError):
    def __init__(self, server: str, reason: str = "secure connection not authorized"):
        super().__init__(
            f"{reason} ({server})",
            "PEER_NOT_AUTHORIZED",
            1,
            {"server": server}
        )


class MetadataLookupError(ForwarderError):
    pass


class MetadataUnreachableError(MetadataLookupError):
    def __init__(self, url: str, reason: str = ""):
        super().__init__(
            "Unable to connect to Rancher ...",
            "METADATA_UNREACHABLE",
            1,
            {"url": url, "reason": reason}
        )


class MetadataUnparseableError(MetadataLookupError):
    def __init__(self, url: str):
        super().__init__(
            "Unable to parse response from metadata service ...",
            "METADATA_UNPARSEABLE",
            1,
            {"url": url}
        )


class SourceStreamError(ForwarderError):
    def __init__(self, source: str, message: str):
        super().__init__(
            f"Source '{source}' failed: {message}",
            "SOURCE_STREAM_ERROR",
            1,
            {"source": source}
        )


class DockerConnectionError(ForwarderError):
    def __init__(self, message: str = "Failed to connect to Docker daemon"):
        super().__init__(message, "DOCKER_CONNECTION_ERROR", 1)
