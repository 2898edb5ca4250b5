"""Asyncio TCP server.

One connection carries one request: the client writes a JSON document and
closes its write side, the server replies with one JSON document and closes
the connection. Each connection runs in its own task. The dispatcher and
its metrics aggregator are shared by all of them.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from pydantic_core import PydanticSerializationError

from .config import ServerConfig
from .errors import DecodeError
from .metrics import MetricsAggregator
from .protocol import CommandDispatcher, ErrorResponse, OkResponse, decode, encode, undecodable

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class CommandServer:
    """TCP front end for the CommandDispatcher.

    Usage:
        server = CommandServer(ServerConfig(port=7878))
        await server.start()
        await server.serve_forever()
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        metrics: MetricsAggregator | None = None,
    ) -> None:
        self._config = config or ServerConfig()
        self._metrics = metrics or MetricsAggregator()
        self._dispatcher = CommandDispatcher(self._metrics, self._config.max_batch_depth)
        self._server: asyncio.Server | None = None

    @property
    def metrics(self) -> MetricsAggregator:
        return self._metrics

    @property
    def port(self) -> int:
        """Port actually bound (useful when configured with port 0)."""
        if self._server is None or not self._server.sockets:
            raise RuntimeError("Server is not started")
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> asyncio.Server:
        """Bind the listening socket."""
        self._server = await asyncio.start_server(
            self._handle_connection,
            self._config.host,
            self._config.port,
        )
        logger.info(f"Listening on {self._config.host}:{self.port}")
        return self._server

    async def serve_forever(self) -> None:
        server = self._server or await self.start()
        async with server:
            await server.serve_forever()

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Server stopped")

    async def process(self, data: bytes) -> OkResponse | ErrorResponse:
        """Turn one raw request document into its response."""
        try:
            request = decode(data, self._config.max_document_depth)
        except DecodeError as e:
            return undecodable(e)

        logger.info(f"Received request: {request.kind.value} (id={request.request_id})")
        return await self._dispatcher.dispatch(request)

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        peer = writer.get_extra_info("peername")
        try:
            try:
                data = await self._read_request(reader)
            except DecodeError as e:
                response: OkResponse | ErrorResponse = undecodable(e)
            else:
                response = await self.process(data)

            logger.info(f"Sending response to {peer}: status={response.status}")
            writer.write(encode_reply(response))
            await writer.drain()
        except ConnectionError as e:
            logger.warning(f"Connection with {peer} failed: {e}")
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()

    async def _read_request(self, reader: asyncio.StreamReader) -> bytes:
        """Read until the client closes its write side.

        Raises:
            DecodeError: If the request exceeds max_request_bytes
        """
        limit = self._config.max_request_bytes
        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await reader.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > limit:
                raise DecodeError(f"request exceeds {limit} bytes")
            chunks.append(chunk)
        return b"".join(chunks)


def encode_reply(response: OkResponse | ErrorResponse) -> bytes:
    """Encode a response, replacing it with an error if it cannot be written.

    The replacement keeps the response's request_id so the client can still
    correlate it.
    """
    try:
        return encode(response)
    except PydanticSerializationError as e:
        logger.warning(f"Cannot encode response (id={response.request_id}): {e}")
        return encode(
            ErrorResponse(
                request_id=response.request_id,
                error=f"response could not be encoded: {e}",
            )
        )
