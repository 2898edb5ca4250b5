"""Pytest configuration and shared fixtures."""

import pytest

from command_server.metrics import MetricsAggregator
from command_server.protocol import CommandDispatcher


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def metrics() -> MetricsAggregator:
    """Fresh metrics aggregator."""
    return MetricsAggregator()


@pytest.fixture
def dispatcher(metrics: MetricsAggregator) -> CommandDispatcher:
    """Dispatcher recording into the `metrics` fixture."""
    return CommandDispatcher(metrics)
