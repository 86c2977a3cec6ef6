from __future__ import annotations

import time
from collections import deque
from dataclasses import asdict
from threading import Lock
from typing import Deque, Dict, List

from .models import CycleOutcome, CycleResult, MetricsSnapshot


class MetricsCollector:
    """Thread-safe collector for worker cycle results.

    Records one CycleResult per work cycle and produces aggregated
    MetricsSnapshot objects over sliding time windows."""

    def __init__(self, maxlen: int = 10000) -> None:
        self._lock = Lock()
        self._events: Deque[tuple[float, CycleResult]] = deque(maxlen=maxlen)

    def record_result(self, result: CycleResult) -> None:
        """Record a cycle result with the current timestamp."""
        with self._lock:
            self._events.append((time.time(), result))

    def snapshot(self, window_secs: int) -> MetricsSnapshot:
        """Return aggregated metrics for cycles within the last window_secs seconds."""
        now = time.time()
        cutoff = now - window_secs
        with self._lock:
            events: List[CycleResult] = [e for ts, e in self._events if ts >= cutoff]

        def count(outcome: CycleOutcome) -> int:
            return sum(1 for e in events if e.outcome == outcome)

        fetching = [e for e in events if e.outcome != CycleOutcome.IDLE]
        avg_latency_ms = (sum(e.latency_ms for e in fetching) / len(fetching)) if fetching else 0.0

        return MetricsSnapshot(
            window_secs=window_secs,
            total_cycles=len(events),
            idle_count=count(CycleOutcome.IDLE),
            success_count=count(CycleOutcome.SUCCESS),
            fetch_failure_count=count(CycleOutcome.FETCH_FAILURE),
            parse_failure_count=count(CycleOutcome.PARSE_FAILURE),
            dispatch_failure_count=count(CycleOutcome.DISPATCH_FAILURE),
            http_error_count=sum(1 for e in events if e.status_code is not None and e.status_code != 200),
            avg_latency_ms=avg_latency_ms,
            timestamp=now,
        )

    def export_json(self) -> List[Dict]:
        """Export all recorded cycles as a list of dictionaries."""
        with self._lock:
            return [{"timestamp": ts, **asdict(e), "outcome": e.outcome.value} for ts, e in self._events]
