import re
import socket
from typing import Dict, Optional, Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docker_logentries.core.exceptions import (
    ConfigurationError,
    InvalidPatternError,
    InvalidPortError,
)


DEFAULT_SERVER = "data.logentries.com"
PATTERN_FIELDS = ("match_by_name", "match_by_image", "skip_by_name", "skip_by_image")


class Settings(BaseSettings):
    # Tokens (empty = channel disabled)
    token: str = ""
    logstoken: str = ""
    statstoken: str = ""
    eventstoken: str = ""
    
    # Remote endpoint
    server: str = DEFAULT_SERVER
    port: Optional[int] = Field(None, ge=1, le=65535)
    secure: bool = False
    connect_timeout: Optional[float] = None
    reconnect_delay: float = Field(0.5, ge=0)
    reconnect_delay_max: float = Field(30.0, ge=0)
    
    # Identity filters (empty = check not applied)
    match_by_name: str = ""
    match_by_image: str = ""
    skip_by_name: str = ""
    skip_by_image: str = ""
    
    # Static fields merged into every event
    add: Dict[str, str] = Field(default_factory=lambda: {"host": socket.gethostname()})
    
    # Channels
    logs: bool = True
    stats: bool = True
    docker_events: bool = True
    
    # Collector options
    parse_json: bool = False
    newline: bool = True
    statsinterval: int = Field(30, gt=0)
    
    model_config = SettingsConfigDict(
        env_prefix="LOGENTRIES_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )
    
    @field_validator(*PATTERN_FIELDS)
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid regular expression: {e}")
        return v
    
    @property
    def resolved_port(self) -> int:
        """Port to connect to, defaulting on the transport in use."""
        if self.port is not None:
            return self.port
        return 443 if self.secure else 80
    
    @property
    def has_explicit_tokens(self) -> bool:
        return any((self.token, self.logstoken, self.statstoken, self.eventstoken))
    
    @classmethod
    def load(cls, **overrides: Any) -> "Settings":
        """
        Build settings from explicit values layered over the environment.
        
        Values that are None are treated as not given so the environment
        (or the field default) applies.
        
        Raises:
            ConfigurationError: If any option fails validation
        """
        values = {k: v for k, v in overrides.items() if v is not None}
        try:
            return cls(**values)
        except ValidationError as e:
            raise _configuration_error(e, values) from e


def _configuration_error(error: ValidationError, values: Dict[str, Any]) -> ConfigurationError:
    """Map the first pydantic validation failure onto a typed configuration error"""
    first = error.errors()[0]
    option = str(first["loc"][0]) if first.get("loc") else ""
    
    if option == "port":
        return InvalidPortError(values.get("port"))
    if option in PATTERN_FIELDS:
        return InvalidPatternError(option, str(values.get(option, "")), first["msg"])
    
    return ConfigurationError(
        f"Invalid value for '{option}': {first['msg']}",
        "INVALID_OPTION",
        {"option": option}
    )
