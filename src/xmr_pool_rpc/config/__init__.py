"""Configuration module for the daemon RPC client."""

from xmr_pool_rpc.config.models import (
    Config,
    LoggingConfig,
    UpstreamConfig,
    parse_duration,
)
from xmr_pool_rpc.config.loader import ConfigError, load_config, parse_config

__all__ = [
    "Config",
    "LoggingConfig",
    "UpstreamConfig",
    "parse_duration",
    "ConfigError",
    "load_config",
    "parse_config",
]
