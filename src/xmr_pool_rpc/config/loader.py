"""Build a validated Config from YAML files or already-parsed mappings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Union

import yaml
from pydantic import ValidationError

from xmr_pool_rpc.config.models import Config


class ConfigError(Exception):
    """Configuration error."""

    pass


def _format_validation_error(e: ValidationError) -> str:
    lines = []
    for error in e.errors():
        loc = ".".join(str(x) for x in error["loc"]) or "<root>"
        lines.append(f"  - {loc}: {error['msg']}")
    return "Configuration validation failed:\n" + "\n".join(lines)


def parse_config(raw: Any) -> Config:
    """
    Validate an already-parsed configuration mapping.

    Raises:
        ConfigError: If the mapping is missing or invalid.
    """
    if raw is None:
        raise ConfigError("Configuration is empty")
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Configuration must be a mapping (dict), got {type(raw).__name__}")
    try:
        return Config.model_validate(dict(raw))
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e)) from e


def load_config(path: Union[str, Path]) -> Config:
    """
    Load and validate configuration from a YAML file.

    Raises:
        ConfigError: If the file cannot be read or the configuration is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    if not path.is_file():
        raise ConfigError(f"Configuration path is not a file: {path}")

    try:
        raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    return parse_config(raw_config)
