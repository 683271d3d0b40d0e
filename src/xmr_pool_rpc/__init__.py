"""JSON-RPC client for Monero-style pool daemons with upstream health tracking."""

__version__ = "0.1.0"
