"""Command Dispatcher - resolves requests into responses.

All transports hand decoded requests to a single CommandDispatcher, which
owns the recursion into batch elements, timing, and error capture.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ..errors import CommandError
from ..evaluator import evaluate
from .requests import CommandKind, Request, describe_validation_error, readable_request_id
from .responses import ErrorResponse, OkResponse

if TYPE_CHECKING:
    from ..metrics import MetricsAggregator

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_DEPTH = 64


def current_time() -> str:
    """Current UTC instant as RFC 3339 with second precision, e.g. 2024-01-15T10:30:00Z."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class CommandDispatcher:
    """Resolves requests into responses and records per-command timings.

    Usage:
        dispatcher = CommandDispatcher(MetricsAggregator())
        response = await dispatcher.dispatch(Request.ping())

    Timing:
        Every dispatched request except a batch is timed and recorded in
        the metrics aggregator. A batch is not timed itself (that would
        count its children twice) but each of its elements is, including
        nested batches' elements.

    Errors:
        Command failures never escape `dispatch`. They become an
        ErrorResponse carrying the request's id. Inside a batch, a failing
        element becomes an error entry at its position and the batch as a
        whole still succeeds.
    """

    def __init__(
        self,
        metrics: MetricsAggregator,
        max_batch_depth: int = DEFAULT_MAX_BATCH_DEPTH,
    ) -> None:
        """Initialize dispatcher.

        Args:
            metrics: Shared aggregator receiving one record per timed command
            max_batch_depth: Deepest batch nesting resolved before an element
                is rejected with an error entry
        """
        self._metrics = metrics
        self._max_batch_depth = max_batch_depth

    @property
    def metrics(self) -> MetricsAggregator:
        return self._metrics

    async def dispatch(self, request: Request) -> OkResponse | ErrorResponse:
        """Resolve a request into exactly one response.

        Args:
            request: A structurally valid request

        Returns:
            OkResponse with the command's result, or ErrorResponse with the
            failure message. Both carry `request.request_id`.
        """
        return await self._dispatch(request, depth=0)

    async def _dispatch(self, request: Request, depth: int) -> OkResponse | ErrorResponse:
        if request.kind == CommandKind.BATCH:
            return await self._respond(request, depth)

        start = time.perf_counter()
        response = await self._respond(request, depth)
        duration_ms = (time.perf_counter() - start) * 1000.0

        count = self._metrics.record(request.kind, duration_ms)
        logger.debug(
            f"Processed command {request.kind.value} in {duration_ms:.3f}ms, "
            f"total number of commands of this type processed: {count}"
        )
        return response

    async def _respond(self, request: Request, depth: int) -> OkResponse | ErrorResponse:
        """Run the command and wrap the outcome in a response."""
        try:
            value = await self._resolve(request, depth)
        except CommandError as e:
            logger.debug(f"Command {request.kind.value} failed (id={request.request_id}): {e}")
            return ErrorResponse(request_id=request.request_id, error=str(e))
        except Exception as e:
            logger.exception(f"Error handling command {request.request_id}: {e}")
            return ErrorResponse(request_id=request.request_id, error=str(e) or type(e).__name__)

        return OkResponse(request_id=request.request_id, response=value)

    async def _resolve(self, request: Request, depth: int) -> Any:
        match request.kind:
            case CommandKind.PING:
                return "pong"

            case CommandKind.ECHO:
                return request.payload

            case CommandKind.TIME:
                return {"time": current_time()}

            case CommandKind.CALCULATE:
                calculation = request.calculation()
                result = evaluate(calculation.operation, calculation.a, calculation.b)
                return {"result": result}

            case CommandKind.BATCH:
                return await self._batch(request, depth)

    # =========================================================================
    # Batch
    # =========================================================================

    async def _batch(self, request: Request, depth: int) -> list[dict[str, Any]]:
        """Dispatch each element in order, one at a time."""
        items = request.batch_items()
        logger.debug(f"Processing batch of {len(items)} (id={request.request_id}, depth={depth})")

        results: list[dict[str, Any]] = []
        for item in items:
            response = await self._batch_element(item, depth + 1)
            results.append(response.to_wire())
        return results

    async def _batch_element(self, item: Any, depth: int) -> OkResponse | ErrorResponse:
        """Decode and dispatch one batch element.

        A malformed element is reported in place. Its request_id is kept
        when it is readable so the client can still correlate the entry.
        """
        try:
            nested = Request.model_validate(item)
        except ValidationError as e:
            return ErrorResponse(
                request_id=readable_request_id(item),
                error=f"invalid batch element: {describe_validation_error(e)}",
            )

        if nested.kind == CommandKind.BATCH and depth > self._max_batch_depth:
            return ErrorResponse(
                request_id=nested.request_id,
                error=f"batch nesting exceeds maximum depth of {self._max_batch_depth}",
            )

        return await self._dispatch(nested, depth)
