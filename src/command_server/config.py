"""Server configuration.

Defaults can be overridden by environment variables, which in turn are
overridden by CLI options:

    COMMAND_SERVER_HOST                bind address (default: localhost)
    COMMAND_SERVER_PORT                TCP port (default: 7878)
    COMMAND_SERVER_MAX_REQUEST_BYTES   largest accepted request (default: 1 MiB)
    COMMAND_SERVER_MAX_DOCUMENT_DEPTH  deepest JSON nesting in a request (default: 200)
    COMMAND_SERVER_MAX_BATCH_DEPTH     deepest batch nesting (default: 64, at most 100)
    COMMAND_SERVER_STATUS_HOST         status app bind address (default: 127.0.0.1)
    COMMAND_SERVER_STATUS_PORT         status app port (default: disabled)
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .protocol.codec import MAX_DOCUMENT_DEPTH
from .protocol.dispatcher import DEFAULT_MAX_BATCH_DEPTH

# Each batch level nests two JSON containers, so deeper batches could never
# pass the document depth check.
MAX_BATCH_DEPTH_LIMIT = MAX_DOCUMENT_DEPTH // 2


class ServerConfig(BaseSettings):
    """Settings for the TCP server and the optional status app."""

    model_config = SettingsConfigDict(env_prefix="COMMAND_SERVER_", env_ignore_empty=True)

    host: str = "localhost"
    port: int = Field(default=7878, ge=0, le=65535)
    max_request_bytes: int = Field(default=1024 * 1024, gt=0)
    max_document_depth: int = Field(default=MAX_DOCUMENT_DEPTH, gt=0, le=MAX_DOCUMENT_DEPTH)
    max_batch_depth: int = Field(default=DEFAULT_MAX_BATCH_DEPTH, ge=0, le=MAX_BATCH_DEPTH_LIMIT)
    status_host: str = "127.0.0.1"
    status_port: int | None = Field(default=None, ge=0, le=65535)

    def with_overrides(self, **overrides: Any) -> ServerConfig:
        """Return a copy with every non-None override applied and validated."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ServerConfig(**values)
