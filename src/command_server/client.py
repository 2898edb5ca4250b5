"""Minimal asyncio client for the command server."""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

from .protocol import ErrorResponse, OkResponse, Request, parse_response

DEFAULT_TIMEOUT = 10.0


async def send_raw(
    data: bytes,
    host: str = "localhost",
    port: int = 7878,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """Send raw bytes as one request and return the raw reply."""
    reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
    try:
        writer.write(data)
        await writer.drain()
        writer.write_eof()
        return await asyncio.wait_for(reader.read(), timeout)
    finally:
        writer.close()
        with contextlib.suppress(ConnectionError):
            await writer.wait_closed()


async def send_request(
    request: Request | dict[str, Any],
    host: str = "localhost",
    port: int = 7878,
    timeout: float = DEFAULT_TIMEOUT,
) -> OkResponse | ErrorResponse:
    """Send one request and parse the server's response."""
    document = request.to_wire() if isinstance(request, Request) else request
    reply = await send_raw(json.dumps(document).encode("utf-8"), host, port, timeout)
    return parse_response(reply)
