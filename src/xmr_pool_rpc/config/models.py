"""Pydantic configuration models with validation."""

from __future__ import annotations

import re
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from xmr_pool_rpc.rpc.constants import DEFAULT_DAEMON_PORT, DEFAULT_TIMEOUT

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """
    Parse a duration string such as ``"10s"``, ``"1m30s"`` or ``"250ms"``.

    A bare ``"0"`` is accepted without a unit. Negative durations are rejected.

    Args:
        value: Duration string.

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    s = value.strip()
    if not s:
        raise ValueError("Duration cannot be empty")
    if s.startswith("-"):
        raise ValueError(f"Duration cannot be negative: '{value}'")
    if s.startswith("+"):
        s = s[1:]
    if s == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(s):
        match = _DURATION_PART.match(s, pos)
        if match is None:
            raise ValueError(
                f"Invalid duration '{value}': expected a sequence like 10s, 1m30s or 500ms"
            )
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return total


class UpstreamConfig(BaseModel):
    """Configuration for a single daemon upstream."""

    name: str = Field(..., description="Unique identifier for this upstream")
    host: str = Field(..., description="Daemon hostname or IP")
    port: int = Field(default=DEFAULT_DAEMON_PORT, ge=1, le=65535, description="Daemon RPC port")
    timeout: str = Field(default=DEFAULT_TIMEOUT, description="Per-call timeout, e.g. '10s' or '1m'")
    # HTTP status errors do not count as failures unless this is enabled
    sick_on_http_error: bool = Field(
        default=False, description="Count non-2xx/3xx HTTP responses as health failures"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate upstream name is a safe identifier."""
        if not v or not v.strip():
            raise ValueError("Upstream name cannot be empty")
        v = v.strip()
        if len(v) > 64:
            raise ValueError("Upstream name must be 64 characters or less")
        if not re.match(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$", v):
            raise ValueError(
                "Upstream name must start with a letter or digit and contain only "
                "alphanumeric characters, dots, underscores, and hyphens"
            )
        return v

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Validate host is non-empty and has no whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Upstream host cannot be empty")
        if any(c.isspace() for c in v):
            raise ValueError(f"Upstream host cannot contain whitespace: '{v}'")
        return v

    @field_validator("timeout", mode="before")
    @classmethod
    def validate_timeout(cls, v: Union[str, int, float]) -> str:
        """Accept a duration string or a bare number of seconds."""
        if isinstance(v, bool):
            raise ValueError("Timeout must be a duration string or a number of seconds")
        if isinstance(v, (int, float)):
            if v < 0:
                raise ValueError(f"Timeout cannot be negative: {v}")
            v = f"{v}s"
        if not isinstance(v, str):
            raise ValueError("Timeout must be a duration string or a number of seconds")
        parse_duration(v)
        return v.strip()

    @property
    def timeout_seconds(self) -> Optional[float]:
        """Timeout in seconds, or None when the timeout is zero (no timeout)."""
        seconds = parse_duration(self.timeout)
        return seconds if seconds > 0 else None

    @property
    def address(self) -> str:
        """Get host:port string."""
        return f"{self.host}:{self.port}"


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    file: Optional[str] = Field(default=None, description="Log file path")
    rotation: str = Field(default="50 MB", description="Log rotation size")
    retention: int = Field(default=10, ge=1, description="Number of rotated files to keep")
    serialize: bool = Field(default=False, description="Emit JSON lines instead of formatted text")
    format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
        description="Log message format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper


class Config(BaseModel):
    """Main configuration model."""

    upstreams: List[UpstreamConfig] = Field(..., min_length=1)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_config(self) -> "Config":
        """Ensure all upstream names are unique."""
        names = [u.name for u in self.upstreams]
        if len(names) != len(set(names)):
            duplicates = [n for n in names if names.count(n) > 1]
            raise ValueError(f"Duplicate upstream names: {set(duplicates)}")
        return self

    def get_upstream_by_name(self, name: str) -> Optional[UpstreamConfig]:
        """Get an upstream configuration by name."""
        for upstream in self.upstreams:
            if upstream.name == name:
                return upstream
        return None

    def get_upstream_names(self) -> List[str]:
        """Get list of all upstream names."""
        return [u.name for u in self.upstreams]
