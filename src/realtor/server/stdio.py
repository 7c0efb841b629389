"""Stdio loop — one JSON-RPC request per input line, one response per output line.

Stdout is the wire: nothing but response lines may be written there.  Logs
go to stderr (see :func:`realtor.utils.logs.configure_logging`).
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import AsyncIterator
from typing import Protocol

from realtor.server.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

_LINE_LIMIT = 1024 * 1024


class LineWriter(Protocol):
    """The subset of :class:`asyncio.StreamWriter` the loop writes through."""

    def write(self, data: bytes) -> None: ...
    async def drain(self) -> None: ...


async def serve(dispatcher: Dispatcher, reader: asyncio.StreamReader, writer: LineWriter) -> int:
    """Answer requests from *reader* until EOF.

    Requests are processed strictly in order: the next line is not read
    until the previous response has been flushed.  Returns the number of
    responses written.
    """
    written = 0
    async for raw in _read_lines(reader):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Skipping line that is not UTF-8: %s", exc)
            continue

        response = await dispatcher.handle_line(line)
        if response is None:
            continue
        writer.write((response + "\n").encode("utf-8"))
        await writer.drain()
        written += 1

    logger.info("Input closed, shutting down")
    return written


async def _read_lines(reader: asyncio.StreamReader) -> AsyncIterator[bytes]:
    """Yield input lines, dropping any line longer than the reader's limit.

    An oversized line is discarded up to and including its newline, even
    when the rest of it arrives in later chunks.
    """
    discarding = False
    while True:
        try:
            raw = await reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as exc:
            # EOF; the last line may lack a newline
            if exc.partial and not discarding:
                yield exc.partial
            return
        except asyncio.LimitOverrunError as exc:
            if not discarding:
                logger.warning("Skipping oversized line")
            discarding = True
            await reader.readexactly(exc.consumed)
            continue
        if discarding:
            discarding = False
            continue
        yield raw


async def run_stdio(dispatcher: Dispatcher) -> int:
    """Serve *dispatcher* on this process's stdin/stdout."""
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader(limit=_LINE_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    transport, writer_protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, sys.stdout
    )
    writer = asyncio.StreamWriter(transport, writer_protocol, reader, loop)

    logger.info("Realtor server ready on stdio")
    try:
        return await serve(dispatcher, reader, writer)
    finally:
        transport.close()
