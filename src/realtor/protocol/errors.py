"""Shared error types for the protocol layer."""


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class ConnectionError(ProtocolError):
    """Failed to spawn or reach the server process."""


class ProtocolViolationError(ProtocolError):
    """The server broke the one-request/one-response line discipline.

    Raised for a closed pipe, a line that is not JSON, or a response whose
    id does not match the request that is waiting for it.  Unrecoverable.
    """


class RequestError(ProtocolError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int, message: str) -> None:
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"{method} failed ({code}): {message}")


class CapabilityError(ProtocolError):
    """The server never advertised the capability a call depends on."""

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f"Server does not advertise the '{capability}' capability")


class ToolNotFoundError(ProtocolError):
    """Requested tool does not exist in the negotiated catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool not found: {name}")


class ResourceNotFoundError(ProtocolError):
    """Requested resource uri does not exist in the negotiated catalog."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Resource not found: {uri}")
