"""Exceptions raised by the RPC client."""

from __future__ import annotations

from typing import Any, Optional


class RPCError(Exception):
    """Base class for every error raised by an RPC call."""

    pass


class UpstreamConfigError(RPCError):
    """The upstream endpoint URL cannot be formed."""

    pass


class RPCTransportError(RPCError):
    """Connection refused, timeout, DNS failure or another transport problem."""

    pass


class RPCStatusError(RPCTransportError):
    """The daemon answered with an HTTP status outside [200, 400)."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{status_code} {reason}".strip())


class RPCDecodeError(RPCError):
    """The response body is not a valid JSON-RPC envelope or reply."""

    pass


class RPCApplicationError(RPCError):
    """The daemon returned a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        self.message = message
        self.code = code
        self.data = data
        super().__init__(message)
