"""MCP transport — newline-delimited JSON over a child process's stdio.

The transport satisfies the :class:`MCPTransport` protocol, providing
``connect``, ``send``, ``receive``, and ``close`` methods.  It knows nothing
about ids or methods; pairing requests with responses is the session's job.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
from typing import Any, Protocol, runtime_checkable

from realtor.protocol.errors import ProtocolViolationError

logger = logging.getLogger(__name__)


@runtime_checkable
class MCPTransport(Protocol):
    """Abstract transport for MCP JSON-RPC communication."""

    async def connect(self) -> None: ...
    async def send(self, data: dict[str, Any]) -> None: ...
    async def receive(self) -> dict[str, Any]: ...
    async def close(self) -> None: ...


class StdioTransport:
    """Communicates with an MCP server via subprocess stdin/stdout.

    Sends and receives newline-delimited JSON.  The child's stderr is
    inherited so server-side logs show up on the caller's terminal.
    """

    def __init__(self, command: str, env: dict[str, str] | None = None) -> None:
        self._command = command
        self._env = env
        self._process: asyncio.subprocess.Process | None = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    async def connect(self) -> None:
        """Launch the subprocess."""
        parts = shlex.split(self._command)
        logger.debug("Spawning server: %s", parts)
        self._process = await asyncio.create_subprocess_exec(
            *parts,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=None,
            env=self._env,
        )

    async def send(self, data: dict[str, Any]) -> None:
        """Write one JSON line to stdin."""
        if self._process is None or self._process.stdin is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        line = json.dumps(data) + "\n"
        self._process.stdin.write(line.encode("utf-8"))
        await self._process.stdin.drain()

    async def receive(self) -> dict[str, Any]:
        """Read one JSON line from stdout."""
        if self._process is None or self._process.stdout is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        line = await self._process.stdout.readline()
        if not line:
            msg = "Transport closed before a response line arrived"
            raise ProtocolViolationError(msg)
        try:
            data = json.loads(line)
        except json.JSONDecodeError as exc:
            msg = f"Server wrote a line that is not JSON: {line[:200]!r}"
            raise ProtocolViolationError(msg) from exc
        if not isinstance(data, dict):
            msg = f"Server wrote a JSON value that is not an object: {data!r}"
            raise ProtocolViolationError(msg)
        return data

    async def close(self) -> None:
        """Close stdin and wait for the subprocess, terminating it if needed."""
        if self._process is None:
            return
        process = self._process
        self._process = None
        if process.stdin:
            process.stdin.close()
        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                logger.debug("Server process %s already exited", process.pid)
        await process.wait()
