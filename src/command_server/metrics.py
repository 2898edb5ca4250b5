"""Per-command performance metrics.

A single MetricsAggregator lives for the whole server lifetime and is shared
by every connection. Each `record` call is one critical section, so
concurrent updates are never lost or observed half-applied.
"""

from __future__ import annotations

import threading

from pydantic import BaseModel, Field

from .protocol.requests import CommandKind


class CommandStats(BaseModel):
    """Aggregated timings for one command kind."""

    count: int
    min_ms: float
    max_ms: float
    avg_ms: float


class MetricsSnapshot(BaseModel):
    """Point-in-time copy of all metrics, keyed by command tag."""

    count: dict[str, int] = Field(default_factory=dict)
    min_ms: dict[str, float] = Field(default_factory=dict)
    max_ms: dict[str, float] = Field(default_factory=dict)
    avg_ms: dict[str, float] = Field(default_factory=dict)


class MetricsAggregator:
    """Thread-safe store of per-CommandKind counters and latency statistics.

    Usage:
        metrics = MetricsAggregator()
        metrics.record(CommandKind.PING, 0.042)
        metrics.snapshot().count["ping"]  # 1
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count: dict[CommandKind, int] = {}
        self._min: dict[CommandKind, float] = {}
        self._max: dict[CommandKind, float] = {}
        self._avg: dict[CommandKind, float] = {}

    def record(self, kind: CommandKind, duration_ms: float) -> int:
        """Fold one completed command into the statistics.

        Args:
            kind: Command kind that completed
            duration_ms: Wall-clock duration in milliseconds

        Returns:
            Number of commands of this kind recorded so far
        """
        with self._lock:
            count = self._count.get(kind, 0) + 1
            self._count[kind] = count

            if kind in self._min:
                self._min[kind] = min(self._min[kind], duration_ms)
                self._max[kind] = max(self._max[kind], duration_ms)
                avg = self._avg[kind]
                self._avg[kind] = avg + (duration_ms - avg) / count
            else:
                self._min[kind] = duration_ms
                self._max[kind] = duration_ms
                self._avg[kind] = duration_ms

            return count

    def stats(self, kind: CommandKind) -> CommandStats | None:
        """Get statistics for one command kind, or None if never recorded."""
        with self._lock:
            if kind not in self._count:
                return None
            return CommandStats(
                count=self._count[kind],
                min_ms=self._min[kind],
                max_ms=self._max[kind],
                avg_ms=self._avg[kind],
            )

    def snapshot(self) -> MetricsSnapshot:
        """Copy the current metrics under the lock."""
        with self._lock:
            return MetricsSnapshot(
                count={k.value: v for k, v in self._count.items()},
                min_ms={k.value: v for k, v in self._min.items()},
                max_ms={k.value: v for k, v in self._max.items()},
                avg_ms={k.value: v for k, v in self._avg.items()},
            )
