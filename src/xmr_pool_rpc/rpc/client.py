"""JSON-RPC client for a single daemon upstream."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Type, TypeVar
from urllib.parse import urlsplit

import requests
from loguru import logger
from pydantic import ValidationError

from xmr_pool_rpc.rpc.constants import (
    JSON_CONTENT_TYPE,
    JSONRPC_PATH,
    MAX_ERROR_MESSAGE_LENGTH,
)
from xmr_pool_rpc.rpc.errors import (
    RPCApplicationError,
    RPCDecodeError,
    RPCStatusError,
    RPCTransportError,
    UpstreamConfigError,
)
from xmr_pool_rpc.rpc.health import HealthSnapshot, UpstreamHealth
from xmr_pool_rpc.rpc.messages import (
    DaemonReply,
    GetBlockCountReply,
    GetBlockHeaderReply,
    GetBlockTemplateReply,
    GetInfoReply,
    JsonRpcRequest,
    JsonRpcResponse,
    RPCParams,
)
from xmr_pool_rpc.rpc.stats import SnapshotCache, UpstreamCounters, UpstreamStats

if TYPE_CHECKING:
    from xmr_pool_rpc.config.models import Config, UpstreamConfig

R = TypeVar("R", bound=DaemonReply)


def _truncate(message: str) -> str:
    if len(message) > MAX_ERROR_MESSAGE_LENGTH:
        return message[:MAX_ERROR_MESSAGE_LENGTH] + "... (truncated)"
    return message


def build_endpoint_url(host: str, port: int) -> str:
    """
    Build and validate the JSON-RPC endpoint URL for a daemon.

    Raises:
        UpstreamConfigError: If no valid URL can be formed from host and port.
    """
    if not host or any(c.isspace() or not c.isprintable() or c in "/?#@" for c in host):
        raise UpstreamConfigError(f"Invalid upstream host {host!r}")
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    url = f"http://{host}:{port}{JSONRPC_PATH}"
    try:
        parsed = urlsplit(url)
        # Accessing .port validates it
        if parsed.port is None or not parsed.hostname:
            raise ValueError("missing host or port")
        requests.Request("POST", url).prepare()
    except (ValueError, requests.exceptions.RequestException) as e:
        raise UpstreamConfigError(f"Invalid upstream URL {url!r}: {e}") from e
    return url


class RPCClient:
    """
    Client for one daemon upstream.

    Handles:
    - JSON-RPC 2.0 request/response over a blocking HTTP POST
    - Typed wrappers for the daemon methods the pool uses
    - Sick/alive health tracking fed by call failures and liveness checks
    - Caching of the last successful ``get_info`` reply

    Thread Safety:
        Any number of threads may call into one client. The health record,
        the lifetime counters and the info snapshot are each guarded
        independently (see UpstreamHealth, UpstreamCounters, SnapshotCache).
        requests.Session is shared between threads for connection reuse.
    """

    def __init__(self, config: UpstreamConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Upstream configuration.
            session: HTTP session to use; a new one is created if omitted.

        Raises:
            UpstreamConfigError: If the endpoint URL cannot be formed.
        """
        self.config = config
        self.name = config.name
        self.url = build_endpoint_url(config.host, config.port)
        self.timeout = config.timeout_seconds
        self._sick_on_http_error = config.sick_on_http_error

        self._health = UpstreamHealth(self.name)
        self._counters = UpstreamCounters()
        self._info: SnapshotCache[GetInfoReply] = SnapshotCache()

        self._session = session if session is not None else requests.Session()

    def __repr__(self) -> str:
        return f"RPCClient(name={self.name!r}, url={self.url!r})"

    def set_session(self, session: requests.Session) -> None:
        """Replace the HTTP session used for calls."""
        self._session = session

    # Transport ---------------------------------------------------------------

    def call(self, method: str, params: Optional[RPCParams] = None) -> JsonRpcResponse:
        """
        Perform a single JSON-RPC call.

        Connection, decode and application errors count as health failures.
        An HTTP status outside [200, 400) is raised but only counts as a
        failure when ``sick_on_http_error`` is set for the upstream.

        Args:
            method: Daemon method name.
            params: Named (dict) or positional (list) parameters.

        Returns:
            The decoded response envelope.

        Raises:
            RPCTransportError: Connection failure or timeout.
            RPCStatusError: HTTP status outside [200, 400).
            RPCDecodeError: Body is not a JSON-RPC envelope.
            RPCApplicationError: The daemon returned an error object.
        """
        request = JsonRpcRequest(method=method, params=params if params is not None else {})
        headers = {"Content-Type": JSON_CONTENT_TYPE, "Accept": JSON_CONTENT_TYPE}

        try:
            response = self._session.post(
                self.url,
                json=request.to_dict(),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            self._mark_sick()
            logger.warning(f"Upstream {self.name}: {method} failed: {_truncate(str(e))}")
            raise RPCTransportError(str(e)) from e

        with response:
            if response.status_code < 200 or response.status_code >= 400:
                if self._sick_on_http_error:
                    self._mark_sick()
                logger.warning(
                    f"Upstream {self.name}: {method} returned HTTP "
                    f"{response.status_code} {response.reason}"
                )
                raise RPCStatusError(response.status_code, response.reason or "")

            try:
                body = response.json()
            except ValueError as e:
                self._mark_sick()
                logger.warning(f"Upstream {self.name}: {method} returned malformed JSON: {e}")
                raise RPCDecodeError(f"Malformed JSON-RPC response: {e}") from e

        if not isinstance(body, dict):
            self._mark_sick()
            raise RPCDecodeError(
                f"JSON-RPC response must be an object, got {type(body).__name__}"
            )

        rpc_response = JsonRpcResponse.from_dict(body)
        if rpc_response.error is not None:
            self._mark_sick()
            if not isinstance(rpc_response.error, dict):
                raise RPCDecodeError(
                    f"JSON-RPC error must be an object, got {type(rpc_response.error).__name__}"
                )
            message = rpc_response.error_message
            logger.warning(f"Upstream {self.name}: {method} error: {_truncate(message)}")
            raise RPCApplicationError(
                message,
                code=rpc_response.error.get("code"),
                data=rpc_response.error.get("data"),
            )
        return rpc_response

    def _call_typed(self, method: str, params: RPCParams, reply_type: Type[R]) -> Optional[R]:
        """Call a method and decode its result, returning None when the result is null."""
        rpc_response = self.call(method, params)
        if rpc_response.result is None:
            return None
        try:
            return reply_type.model_validate(rpc_response.result)
        except ValidationError as e:
            raise RPCDecodeError(f"Cannot decode {method} result: {e}") from e

    # Typed calls ---------------------------------------------------------------

    def get_block_template(self, reserve_size: int, address: str) -> Optional[GetBlockTemplateReply]:
        """Request a block template paying to ``address``."""
        params = {"reserve_size": reserve_size, "wallet_address": address}
        return self._call_typed("getblocktemplate", params, GetBlockTemplateReply)

    def get_info(self) -> Optional[GetInfoReply]:
        """Get the daemon's node status."""
        return self._call_typed("get_info", {}, GetInfoReply)

    def get_block_count(self) -> Optional[GetBlockCountReply]:
        """Get the daemon's block count."""
        return self._call_typed("getblockcount", {}, GetBlockCountReply)

    def submit_block(self, blob: str) -> JsonRpcResponse:
        """Submit a hex-encoded block; the raw response is returned."""
        return self.call("submitblock", [blob])

    def get_block_header_by_height(self, height: int) -> Optional[GetBlockHeaderReply]:
        """Get the header of the block at ``height``."""
        return self._call_typed("getblockheaderbyheight", {"height": height}, GetBlockHeaderReply)

    # Health ------------------------------------------------------------------

    def check(self, reserve_size: int, address: str) -> bool:
        """
        Probe the upstream with a block template request.

        A failing probe already counts as a failure inside call(); a
        successful one counts towards recovery.

        Returns:
            True if the upstream is not sick after this check.

        Raises:
            RPCError: Whatever the probe call raised.
        """
        self.get_block_template(reserve_size, address)
        self._health.mark_alive()
        return not self._health.is_sick()

    def is_sick(self) -> bool:
        """Check if the upstream is currently sick."""
        return self._health.is_sick()

    @property
    def sick(self) -> bool:
        """Check if the upstream is currently sick."""
        return self._health.is_sick()

    def health(self) -> HealthSnapshot:
        """Get a consistent copy of the health record."""
        return self._health.snapshot()

    def _mark_sick(self) -> None:
        if self._health.mark_sick():
            self._counters.record_failure_streak()

    # Info cache ----------------------------------------------------------------

    def update_info(self) -> Optional[GetInfoReply]:
        """
        Refresh the cached node info.

        Every successful call replaces the cache, a null result included;
        errors propagate and leave the previous snapshot in place.
        """
        info = self.get_info()
        self._info.store(info)
        return info

    def info(self) -> Optional[GetInfoReply]:
        """Get the node info from the last successful refresh, or None."""
        return self._info.load()

    # Counters ----------------------------------------------------------------

    def record_accepted(self) -> None:
        """Record a block accepted by this upstream."""
        self._counters.record_accepted()

    def record_rejected(self) -> None:
        """Record a block rejected by this upstream."""
        self._counters.record_rejected()

    def stats(self) -> UpstreamStats:
        """Get a copy of the lifetime counters."""
        return self._counters.snapshot()

    def get_status(self) -> dict:
        """
        Get a display-friendly summary of this upstream.

        Returns:
            Dict with name, url, health, counters and cached info.
        """
        health = self.health()
        stats = self.stats()
        info = self.info()
        return {
            "name": self.name,
            "url": self.url,
            "sick": health.sick,
            "sick_rate": health.sick_rate,
            "success_rate": health.success_rate,
            "accepts": stats.accepts,
            "rejects": stats.rejects,
            "last_submission_at": stats.last_submission_at,
            "fails_count": stats.fails_count,
            "info": info.model_dump() if info is not None else None,
        }


def clients_from_config(config: Config, session: Optional[requests.Session] = None) -> List[RPCClient]:
    """
    Build one client per configured upstream, in configuration order.

    Raises:
        UpstreamConfigError: If any upstream URL cannot be formed.
    """
    clients = [RPCClient(upstream, session=session) for upstream in config.upstreams]
    logger.info(f"Configured {len(clients)} upstream(s): {', '.join(c.name for c in clients)}")
    return clients
