"""MCPClient — session layer and capability negotiation.

Owns the request-id counter, pairs every request with the single response
line that follows it, and performs the ``initialize`` handshake that decides
which catalogs (tools, resources) the client is allowed to use.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from realtor import PROTOCOL_VERSION, __version__
from realtor.protocol.errors import (
    CapabilityError,
    ConnectionError,
    ProtocolViolationError,
    RequestError,
    ResourceNotFoundError,
    ToolNotFoundError,
)
from realtor.protocol.models import (
    CallToolResult,
    Implementation,
    InitializeResult,
    JsonRpcRequest,
    JsonRpcResponse,
    ReadResourceResult,
    ResourceDef,
    ServerCapabilities,
    ToolDef,
    to_wire,
)
from realtor.protocol.transport import MCPTransport, StdioTransport
from realtor.utils.telemetry import ATTR_ERROR_CODE, ATTR_METHOD, ATTR_REQUEST_ID, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

CLIENT_INFO = Implementation(name="realtor-client", version=__version__)


class MCPClient:
    """Async context manager that connects to an MCP server over stdio.

    Usage::

        async with MCPClient("python -m realtor.server") as client:
            print(client.server_info.name, [t.name for t in client.tools])
            result = await client.call_tool("getEstatInfo", {"name": "Kuul"})

    Requests are strictly sequential: each one is fully answered before the
    next is written, so at most one request is pending at any time.
    """

    def __init__(
        self,
        command: str,
        env: dict[str, str] | None = None,
        transport: MCPTransport | None = None,
    ) -> None:
        self._command = command
        self._env = env
        self._transport: MCPTransport | None = transport
        self._next_id = 0

        self.server_info: Implementation | None = None
        self.protocol_version: str | None = None
        self.capabilities = ServerCapabilities()
        self.tools: list[ToolDef] = []
        self.resources: list[ResourceDef] = []

    async def __aenter__(self) -> MCPClient:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Spawn the server and run capability negotiation."""
        if self._transport is None:
            self._transport = StdioTransport(command=self._command, env=self._env)
        try:
            await self._transport.connect()
        except OSError as exc:
            raise ConnectionError(f"Cannot start server '{self._command}': {exc}") from exc
        try:
            await self._negotiate()
        except BaseException:
            await self.close()
            raise

    async def close(self) -> None:
        """Close the underlying transport."""
        if self._transport is not None:
            await self._transport.close()
            self._transport = None

    async def _negotiate(self) -> None:
        """``initialize`` → ``notifications/initialized`` → advertised catalogs."""
        raw = await self.send(
            "initialize",
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": to_wire(CLIENT_INFO),
            },
        )
        try:
            init = InitializeResult.model_validate(raw)
        except ValidationError as exc:
            raise ProtocolViolationError(f"Malformed initialize result: {exc}") from exc

        self.server_info = init.server_info
        self.protocol_version = init.protocol_version
        self.capabilities = init.capabilities
        if init.protocol_version != PROTOCOL_VERSION:
            logger.warning(
                "Server speaks protocol %s, client expected %s",
                init.protocol_version,
                PROTOCOL_VERSION,
            )

        await self.send("notifications/initialized", notification=True)

        if self.capabilities.tools is not None:
            listed = await self.send("tools/list", {"_meta": {"progressToken": 1}})
            self.tools = [ToolDef.model_validate(t) for t in (listed or {}).get("tools", [])]
        if self.capabilities.resources is not None:
            listed = await self.send("resources/list", {"_meta": {"progressToken": 1}})
            self.resources = [
                ResourceDef.model_validate(r) for r in (listed or {}).get("resources", [])
            ]

        logger.info(
            "Connected to %s v%s (%d tools, %d resources)",
            init.server_info.name,
            init.server_info.version,
            len(self.tools),
            len(self.resources),
        )

    # ------------------------------------------------------------------
    # Request/response pairing
    # ------------------------------------------------------------------

    async def request(self, method: str, params: dict[str, Any] | None = None) -> JsonRpcResponse:
        """Send a request and return the full response, error objects included.

        A protocol error (``-32602`` and friends) is a valid answer to inspect,
        so it is returned rather than raised.
        """
        transport = self._require_transport()

        request_id = self._next_id
        self._next_id += 1
        request = JsonRpcRequest(method=method, params=params or {}, id=request_id)

        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_METHOD, method)
            span.set_attribute(ATTR_REQUEST_ID, request_id)

            logger.debug("→ %s #%d", method, request_id)
            await transport.send(to_wire(request))
            raw = await transport.receive()

            try:
                response = JsonRpcResponse.model_validate(raw)
            except ValidationError as exc:
                msg = f"Malformed response to {method} #{request_id}: {exc}"
                raise ProtocolViolationError(msg) from exc
            if response.id != request_id:
                msg = (
                    f"Response id {response.id!r} does not match pending request "
                    f"{method} #{request_id}"
                )
                raise ProtocolViolationError(msg)

            if response.error is not None:
                span.set_attribute(ATTR_ERROR_CODE, response.error.code)
                logger.debug("← %s #%d error %d", method, request_id, response.error.code)
            else:
                logger.debug("← %s #%d ok", method, request_id)
            return response

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification. No id is assigned and no response is awaited."""
        transport = self._require_transport()
        request = JsonRpcRequest(method=method, params=params or {})
        logger.debug("→ %s (notification)", method)
        await transport.send(to_wire(request))

    async def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        notification: bool = False,
    ) -> dict[str, Any] | None:
        """Send *method* and return the response's ``result``.

        Notifications return ``None`` immediately.  An error response raises
        :class:`RequestError`; use :meth:`request` to inspect it instead.
        """
        if notification:
            await self.notify(method, params)
            return None
        response = await self.request(method, params)
        if response.error is not None:
            raise RequestError(method, response.error.code, response.error.message)
        return response.result

    # ------------------------------------------------------------------
    # Typed operations
    # ------------------------------------------------------------------

    async def ping(self) -> None:
        await self.send("ping")

    def get_tool(self, name: str) -> ToolDef:
        """Look up a tool in the negotiated catalog."""
        if self.capabilities.tools is None:
            raise CapabilityError("tools")
        for tool in self.tools:
            if tool.name == name:
                return tool
        raise ToolNotFoundError(name)

    async def call_tool_raw(self, name: str, arguments: dict[str, Any]) -> JsonRpcResponse:
        """Send ``tools/call`` and return the response as-is."""
        self.get_tool(name)
        return await self.request("tools/call", {"name": name, "arguments": arguments})

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> CallToolResult:
        """Send ``tools/call`` and parse the ``content`` array."""
        response = await self.call_tool_raw(name, arguments)
        if response.error is not None:
            raise RequestError("tools/call", response.error.code, response.error.message)
        return CallToolResult.model_validate(response.result)

    async def read_resource(self, uri: str) -> ReadResourceResult:
        """Send ``resources/read`` for a uri from the negotiated catalog."""
        if self.capabilities.resources is None:
            raise CapabilityError("resources")
        if not any(r.uri == uri for r in self.resources):
            raise ResourceNotFoundError(uri)
        result = await self.send("resources/read", {"uri": uri})
        return ReadResourceResult.model_validate(result)

    def tool_declarations(self) -> list[dict[str, Any]]:
        """Render the tool catalog as completion-service function declarations."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            }
            for tool in self.tools
        ]

    def _require_transport(self) -> MCPTransport:
        if self._transport is None:
            msg = "Client not connected"
            raise RuntimeError(msg)
        return self._transport
