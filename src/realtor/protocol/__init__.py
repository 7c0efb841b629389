"""Protocol layer — JSON-RPC wire models, stdio transport, and the client session."""

from realtor.protocol.client import MCPClient
from realtor.protocol.errors import (
    CapabilityError,
    ConnectionError,
    ProtocolError,
    ProtocolViolationError,
    RequestError,
    ResourceNotFoundError,
    ToolNotFoundError,
)
from realtor.protocol.models import (
    CallToolResult,
    InitializeResult,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    ReadResourceResult,
    ResourceDef,
    ToolDef,
)
from realtor.protocol.transport import MCPTransport, StdioTransport

__all__ = [
    "CallToolResult",
    "CapabilityError",
    "ConnectionError",
    "InitializeResult",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPClient",
    "MCPTransport",
    "ProtocolError",
    "ProtocolViolationError",
    "ReadResourceResult",
    "RequestError",
    "ResourceDef",
    "ResourceNotFoundError",
    "StdioTransport",
    "ToolDef",
    "ToolNotFoundError",
]
