"""Wire models — JSON-RPC 2.0 envelopes and MCP payloads.

Everything that crosses the stdio pipe between client and server is
validated through these models.  Serialise with :func:`to_wire` so aliases
(``inputSchema``, ``protocolVersion``...) are used and unset ids are dropped.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, StrictInt, StrictStr, model_validator

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message.

    A request without an ``id`` is a notification: the server must not
    answer it and the client does not wait for a reply.
    """

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())
    id: StrictInt | StrictStr | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message carrying either a result or an error."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: int | str | None = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _one_outcome(self) -> JsonRpcResponse:
        if self.result is not None and self.error is not None:
            msg = "response cannot carry both 'result' and 'error'"
            raise ValueError(msg)
        if self.result is None and self.error is None:
            msg = "response must carry 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request_id: int | str | None, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: int | str | None, code: int, message: str) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message))

    @property
    def ok(self) -> bool:
        return self.error is None


def to_wire(model: BaseModel) -> dict[str, Any]:
    """Dump *model* the way it travels over the pipe."""
    return model.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class Implementation(BaseModel):
    """Name and version of a client or server (``clientInfo`` / ``serverInfo``)."""

    name: str
    version: str


class ServerCapabilities(BaseModel):
    """Optional features a server advertises during ``initialize``."""

    tools: dict[str, Any] | None = None
    resources: dict[str, Any] | None = None


class InitializeResult(BaseModel):
    """Result of the ``initialize`` handshake."""

    model_config = {"populate_by_name": True}

    protocol_version: str = Field(alias="protocolVersion")
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    server_info: Implementation = Field(alias="serverInfo")


class ToolDef(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = {"populate_by_name": True}

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )

    def string_parameters(self) -> list[str]:
        """Names of the parameters typed ``string`` in the input schema."""
        properties: dict[str, Any] = self.input_schema.get("properties", {})
        return [
            key
            for key, prop in properties.items()
            if isinstance(prop, dict) and prop.get("type") == "string"
        ]


class ResourceDef(BaseModel):
    """A resource descriptor as returned by ``resources/list``."""

    model_config = {"populate_by_name": True}

    uri: str
    name: str
    mime_type: str | None = Field(default=None, alias="mimeType")


class TextContent(BaseModel):
    """A text item inside a ``tools/call`` result."""

    type: Literal["text"] = "text"
    text: str


class CallToolResult(BaseModel):
    """Result of ``tools/call``."""

    model_config = {"populate_by_name": True}

    content: list[TextContent] = []
    is_error: bool | None = Field(default=None, alias="isError")


class ResourceContents(BaseModel):
    """One item inside a ``resources/read`` result."""

    model_config = {"populate_by_name": True}

    uri: str
    text: str
    mime_type: str | None = Field(default=None, alias="mimeType")


class ReadResourceResult(BaseModel):
    """Result of ``resources/read``."""

    contents: list[ResourceContents] = []
