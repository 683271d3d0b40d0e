"""Daemon JSON-RPC client and upstream health tracking."""

from xmr_pool_rpc.rpc.client import RPCClient, build_endpoint_url, clients_from_config
from xmr_pool_rpc.rpc.errors import (
    RPCApplicationError,
    RPCDecodeError,
    RPCError,
    RPCStatusError,
    RPCTransportError,
    UpstreamConfigError,
)
from xmr_pool_rpc.rpc.health import HealthSnapshot, UpstreamHealth
from xmr_pool_rpc.rpc.messages import (
    BlockHeader,
    GetBlockCountReply,
    GetBlockHeaderReply,
    GetBlockTemplateReply,
    GetInfoReply,
    JsonRpcRequest,
    JsonRpcResponse,
)
from xmr_pool_rpc.rpc.stats import UpstreamStats

__all__ = [
    "RPCClient",
    "build_endpoint_url",
    "clients_from_config",
    "RPCError",
    "UpstreamConfigError",
    "RPCTransportError",
    "RPCStatusError",
    "RPCDecodeError",
    "RPCApplicationError",
    "HealthSnapshot",
    "UpstreamHealth",
    "BlockHeader",
    "GetBlockCountReply",
    "GetBlockHeaderReply",
    "GetBlockTemplateReply",
    "GetInfoReply",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "UpstreamStats",
]
