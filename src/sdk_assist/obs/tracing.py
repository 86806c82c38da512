"""Latency timing and in-memory tool trace aggregation."""

from __future__ import annotations

import time
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone

from sdk_assist.types import ToolTrace


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    trace: ToolTrace


class TraceStore:
    """In-memory store for tool traces emitted by the registry observer.

    Pass `store.record` to `ToolRegistry.set_observer` to collect every call.
    """

    def __init__(self, *, max_records: int = 1000) -> None:
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self._records: dict[str, TraceRecord] = {}
        self._max_records = max_records

    def record(self, trace: ToolTrace) -> TraceRecord:
        trace_id = str(uuid.uuid4())
        record = TraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            trace=trace,
        )
        self._records[trace_id] = record
        while len(self._records) > self._max_records:
            del self._records[next(iter(self._records))]
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int | dict[str, int]]:
        """Aggregate call counts and latency for display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_calls": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "calls_by_tool": {},
            }

        latencies = sorted(record.trace.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        calls_by_tool = Counter(record.trace.name for record in records)

        return {
            "total_calls": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "calls_by_tool": dict(calls_by_tool),
        }


class Timer:
    """Simple context timer used around shard loads and tool calls."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
