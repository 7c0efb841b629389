"""Dispatcher — routes JSON-RPC requests to the registry by method name.

Every request that carries an id gets exactly one response, including
unknown methods and failing handlers.  Notifications never get one.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from realtor import PROTOCOL_VERSION
from realtor.protocol.models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    Implementation,
    InitializeResult,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerCapabilities,
    to_wire,
)
from realtor.server.registry import Registry
from realtor.utils.telemetry import ATTR_ERROR_CODE, ATTR_METHOD, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

SERVER_INFO = Implementation(name="Realtor", version="1.0.0")

Handler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


def _is_request_id(value: object) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


class DispatchError(Exception):
    """A request was understood but cannot be answered with a result."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class Dispatcher:
    """Answers MCP requests against a fixed :class:`Registry`.

    Usage::

        dispatcher = Dispatcher(build_registry())
        line = await dispatcher.handle_line('{"jsonrpc": "2.0", "id": 0, "method": "ping"}')
        # '{"jsonrpc": "2.0", "id": 0, "result": {}}'
    """

    def __init__(self, registry: Registry, server_info: Implementation = SERVER_INFO) -> None:
        self._registry = registry
        self._server_info = server_info
        self._methods: dict[str, Handler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
        }

    @property
    def registry(self) -> Registry:
        return self._registry

    async def handle_line(self, line: str) -> str | None:
        """Handle one raw input line; return the response line, if any.

        Lines that are not JSON objects tagged ``jsonrpc: "2.0"`` are logged
        and dropped without a response.
        """
        stripped = line.strip()
        if not stripped:
            return None
        try:
            message = json.loads(stripped)
        except json.JSONDecodeError as exc:
            logger.warning("Skipping unparseable line (%s): %.200s", exc, stripped)
            return None
        if not isinstance(message, dict) or message.get("jsonrpc") != "2.0":
            logger.warning("Skipping non JSON-RPC 2.0 message: %.200s", stripped)
            return None

        response = await self.handle(message)
        if response is None:
            return None
        return json.dumps(to_wire(response))

    async def handle(self, message: dict[str, Any]) -> JsonRpcResponse | None:
        """Dispatch a decoded JSON-RPC message."""
        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError as exc:
            request_id = message.get("id")
            if not _is_request_id(request_id):
                # no id that a response could carry back
                logger.warning("Skipping request without a usable id: %s", exc)
                return None
            logger.warning("Invalid request: %s", exc)
            return JsonRpcResponse.failure(request_id, INVALID_REQUEST, "Invalid Request")

        if request.is_notification:
            logger.debug("Notification %s", request.method)
            return None

        with _tracer.start_as_current_span("server.dispatch") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            response = await self._dispatch(request)
            if response.error is not None:
                span.set_attribute(ATTR_ERROR_CODE, response.error.code)
            return response

    async def _dispatch(self, request: JsonRpcRequest) -> JsonRpcResponse:
        handler = self._methods.get(request.method)
        if handler is None:
            return JsonRpcResponse.failure(
                request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}"
            )
        try:
            result = await handler(request.params)
        except DispatchError as exc:
            return JsonRpcResponse.failure(request.id, exc.code, exc.message)
        except (ValueError, TypeError) as exc:
            logger.warning("Invalid params for %s: %s", request.method, exc)
            return JsonRpcResponse.failure(request.id, INVALID_PARAMS, str(exc))
        except Exception:
            logger.exception("Handler for %s failed", request.method)
            return JsonRpcResponse.failure(request.id, INTERNAL_ERROR, "Internal error")
        return JsonRpcResponse.success(request.id, result)

    # ------------------------------------------------------------------
    # Method handlers
    # ------------------------------------------------------------------

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client_info = params.get("clientInfo") or {}
        logger.info(
            "Initialize from %s (protocol %s)",
            client_info.get("name", "unknown client"),
            params.get("protocolVersion", "?"),
        )
        result = InitializeResult(
            protocol_version=PROTOCOL_VERSION,
            capabilities=ServerCapabilities(
                tools={"listChanged": True},
                resources={"listChanged": True},
            ),
            server_info=self._server_info,
        )
        return to_wire(result)

    async def _ping(self, _params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _list_tools(self, _params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [to_wire(t) for t in self._registry.tool_definitions()]}

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        tool = self._registry.get_tool(name) if isinstance(name, str) else None
        if tool is None:
            raise DispatchError(
                INVALID_PARAMS, f"MCP tool call error -32602: Tool {name} not found"
            )
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise DispatchError(INVALID_PARAMS, "Tool arguments must be an object")
        logger.info("Calling tool %s with %s", name, arguments)
        return await tool.handler(arguments)

    async def _list_resources(self, _params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [to_wire(r) for r in self._registry.resource_definitions()]}

    async def _read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        resource = self._registry.get_resource(uri) if isinstance(uri, str) else None
        if resource is None:
            raise DispatchError(INVALID_PARAMS, "Resource not found")
        return await resource.reader()
