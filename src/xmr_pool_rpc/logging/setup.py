"""Loguru sinks for the RPC client."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional

from loguru import logger

if TYPE_CHECKING:
    from xmr_pool_rpc.config.models import LoggingConfig


def setup_logging(config: LoggingConfig, level: Optional[str] = None) -> None:
    """
    Replace Loguru's default sink with the configured ones.

    Args:
        config: Logging configuration object.
        level: Optional level overriding ``config.level``.
    """
    level = (level or config.level).upper()
    logger.remove()

    # Colours only when stderr is a terminal; JSON lines never get colour codes
    logger.add(
        sys.stderr,
        level=level,
        format=config.format,
        colorize=sys.stderr.isatty() and not config.serialize,
        serialize=config.serialize,
        diagnose=False,
    )

    if config.file:
        logger.add(
            config.file,
            level=level,
            format=config.format,
            serialize=config.serialize,
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            encoding="utf-8",
            enqueue=True,
            diagnose=False,
        )

    logger.debug(f"Logging configured: level={level}, file={config.file}, serialize={config.serialize}")
