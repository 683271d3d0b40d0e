"""JSON-RPC envelope dataclasses and typed daemon replies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationInfo,
    field_validator,
)

from xmr_pool_rpc.rpc.constants import JSONRPC_REQUEST_ID, JSONRPC_VERSION

# Params are either named (object) or positional (array)
RPCParams = Union[Dict[str, Any], List[Any]]


@dataclass
class JsonRpcRequest:
    """A JSON-RPC 2.0 request sent to the daemon."""

    method: str
    params: RPCParams = field(default_factory=dict)
    id: int = JSONRPC_REQUEST_ID

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
            "params": self.params,
        }


@dataclass
class JsonRpcResponse:
    """A JSON-RPC response envelope received from the daemon."""

    id: Any = None
    result: Any = None
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JsonRpcResponse":
        """Build an envelope from a decoded response body."""
        return cls(id=data.get("id"), result=data.get("result"), error=data.get("error"))

    @property
    def is_error(self) -> bool:
        """Check if this is an error response."""
        return self.error is not None

    @property
    def error_message(self) -> str:
        """Message carried by the error object, or a placeholder."""
        if not self.error:
            return "unknown error"
        message = self.error.get("message")
        if message is None:
            return "unknown error"
        return str(message)


class DaemonReply(BaseModel):
    """
    Base for typed replies decoded from a ``result`` payload.

    Replies are immutable so a published snapshot can be shared between
    threads without copying. Fields missing from the payload or sent as null
    keep their zero value and unknown fields are ignored; a value of the wrong
    JSON type is a validation error.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def null_is_zero_value(cls, v: Any, info: ValidationInfo) -> Any:
        """Treat a JSON null like an absent field."""
        if v is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return v


class GetBlockTemplateReply(DaemonReply):
    """Reply to ``getblocktemplate``."""

    difficulty: StrictInt = 0
    height: StrictInt = 0
    blob: StrictStr = Field(default="", alias="blocktemplate_blob")
    reserved_offset: StrictInt = 0
    prev_hash: StrictStr = ""
    expected_reward: StrictInt = 0


class GetInfoReply(DaemonReply):
    """Reply to ``get_info``."""

    incoming_connections: StrictInt = Field(default=0, alias="incoming_connections_count")
    outgoing_connections: StrictInt = Field(default=0, alias="outgoing_connections_count")
    height: StrictInt = 0
    tx_pool_size: StrictInt = 0
    status: StrictStr = ""


class GetBlockCountReply(DaemonReply):
    """Reply to ``getblockcount``."""

    count: StrictInt = 0
    status: StrictStr = ""


class BlockHeader(DaemonReply):
    """Block header as returned inside ``getblockheaderbyheight``."""

    block_size: StrictInt = 0
    depth: StrictInt = 0
    difficulty: StrictInt = 0
    hash: StrictStr = ""
    height: StrictInt = 0
    major_version: StrictInt = 0
    minor_version: StrictInt = 0
    nonce: StrictInt = Field(default=0, ge=0, le=0xFFFFFFFF)
    num_txes: StrictInt = 0
    orphan_status: StrictBool = False
    prev_hash: StrictStr = ""
    reward: StrictInt = 0
    timestamp: StrictInt = Field(default=0, ge=0, le=0xFFFFFFFF)


class GetBlockHeaderReply(DaemonReply):
    """Reply to ``getblockheaderbyheight``."""

    block_header: BlockHeader = Field(default_factory=BlockHeader)
    status: StrictStr = ""
    untrusted: StrictBool = False
