"""Command server CLI.

Usage:
    command-server serve                          # Listen on localhost:7878
    command-server serve --port 9000 --debug      # Custom port, debug logging
    command-server serve --status-port 8080       # Also serve /health and /metrics
    command-server send '{"request_id": "...", "command": "ping"}'
    echo '{"request_id": "...", "command": "time"}' | command-server send -
    command-server metrics --url http://127.0.0.1:8080
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
import httpx
from pydantic import ValidationError

from .client import send_raw
from .config import ServerConfig
from .metrics import MetricsAggregator
from .server import CommandServer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool, log_file: str | None) -> None:
    """Configure logging to stderr, optionally mirrored to a file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


@click.group()
def main() -> None:
    """Command server - JSON commands over TCP."""


@main.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--status-port", default=None, type=int, help="Serve /health and /metrics on this port")
@click.option("--max-batch-depth", default=None, type=int, help="Deepest allowed batch nesting")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Also log to this file")
def serve(
    host: str | None,
    port: int | None,
    status_port: int | None,
    max_batch_depth: int | None,
    debug: bool,
    log_file: str | None,
) -> None:
    """Run the command server."""
    try:
        config = ServerConfig().with_overrides(
            host=host,
            port=port,
            status_port=status_port,
            max_batch_depth=max_batch_depth,
        )
    except ValidationError as e:
        raise click.UsageError(f"Invalid configuration: {e}") from e

    configure_logging(debug, log_file)

    click.echo(f"Starting command server on {config.host}:{config.port}", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        click.echo("\nShutting down", err=True)


async def _serve(config: ServerConfig) -> None:
    metrics = MetricsAggregator()
    server = CommandServer(config, metrics)
    await server.start()

    tasks = [server.serve_forever()]
    if config.status_port is not None:
        import uvicorn

        from .app import create_app

        status = uvicorn.Server(
            uvicorn.Config(
                create_app(metrics),
                host=config.status_host,
                port=config.status_port,
                log_level="info",
            )
        )
        tasks.append(status.serve())

    try:
        await asyncio.gather(*tasks)
    finally:
        await server.stop()
        logger.info(f"Final metrics: {metrics.snapshot().model_dump_json()}")


@main.command()
@click.argument("document")
@click.option("--host", default="localhost", help="Server host")
@click.option("--port", default=7878, help="Server port")
@click.option("--timeout", default=10.0, help="Seconds to wait for the reply")
def send(document: str, host: str, port: int, timeout: float) -> None:
    """Send one JSON request document and print the reply.

    Pass - to read the document from stdin. The document is sent as-is,
    so malformed input can be used to exercise error handling.
    """
    if document == "-":
        document = sys.stdin.read()

    try:
        reply = asyncio.run(send_raw(document.encode("utf-8"), host, port, timeout))
    except (OSError, TimeoutError) as e:
        click.echo(f"Cannot reach server at {host}:{port}: {e}", err=True)
        sys.exit(1)

    try:
        click.echo(json.dumps(json.loads(reply), indent=2))
    except ValueError:
        click.echo(reply.decode("utf-8", errors="replace"))


@main.command()
@click.option("--url", default="http://127.0.0.1:8080", help="Status app URL")
def metrics(url: str) -> None:
    """Print the metrics snapshot of a running server."""
    try:
        response = httpx.get(f"{url}/metrics")
    except httpx.ConnectError:
        click.echo(f"Cannot connect to status app at {url}", err=True)
        sys.exit(1)

    if response.status_code != 200:
        click.echo(f"Status app returned {response.status_code}", err=True)
        sys.exit(1)

    data = response.json()
    click.echo(f"{'COMMAND':<12} {'COUNT':>8} {'MIN ms':>10} {'AVG ms':>10} {'MAX ms':>10}")
    for kind, count in sorted(data["count"].items()):
        click.echo(
            f"{kind:<12} {count:>8} {data['min_ms'][kind]:>10.3f} "
            f"{data['avg_ms'][kind]:>10.3f} {data['max_ms'][kind]:>10.3f}"
        )


if __name__ == "__main__":
    main()
