"""Status application.

Small Starlette app exposing server health and the metrics snapshot:
- /health  - liveness check
- /metrics - per-command counters and latency statistics
"""

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .metrics import MetricsAggregator


async def health(request: Request) -> JSONResponse:
    """Liveness check for the command server; metrics are served separately."""
    return JSONResponse({"status": "ok"})


async def metrics_snapshot(request: Request) -> JSONResponse:
    """Current metrics of the server this app belongs to."""
    metrics: MetricsAggregator = request.app.state.metrics
    return JSONResponse(metrics.snapshot().model_dump())


status_routes = [
    Route("/health", health, methods=["GET"]),
    Route("/metrics", metrics_snapshot, methods=["GET"]),
]


def create_app(metrics: MetricsAggregator) -> Starlette:
    """Create the status application bound to a metrics aggregator."""
    app = Starlette(routes=status_routes)
    app.state.metrics = metrics
    return app
