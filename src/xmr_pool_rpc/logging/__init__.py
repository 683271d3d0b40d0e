"""Logging configuration module."""

from xmr_pool_rpc.logging.setup import setup_logging

__all__ = ["setup_logging"]
