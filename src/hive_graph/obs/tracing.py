"""Ingest run tracing and aggregate metrics."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock

from hive_graph.types import ChunkFailure


@dataclass(slots=True)
class IngestTraceRecord:
    trace_id: str
    timestamp_utc: str
    source_name: str
    source_type: str
    chunk_count: int
    hex_ids: list[str]
    failures: list[ChunkFailure] = field(default_factory=list)
    latency_ms: float = 0.0


class IngestTraceStore:
    """In-memory trace storage for ingest observability."""

    def __init__(self) -> None:
        self._records: dict[str, IngestTraceRecord] = {}
        self._lock = Lock()

    def create_record(
        self,
        *,
        source_name: str,
        source_type: str,
        chunk_count: int,
        hex_ids: list[str],
        failures: list[ChunkFailure],
        latency_ms: float,
    ) -> IngestTraceRecord:
        record = IngestTraceRecord(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            source_name=source_name,
            source_type=source_type,
            chunk_count=chunk_count,
            hex_ids=hex_ids,
            failures=failures,
            latency_ms=latency_ms,
        )
        with self._lock:
            self._records[record.trace_id] = record
        return record

    def get(self, trace_id: str) -> IngestTraceRecord:
        with self._lock:
            record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[IngestTraceRecord]:
        with self._lock:
            return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int]:
        """Aggregate ingest metrics for dashboard display."""
        with self._lock:
            records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_runs": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "total_chunks": 0,
                "total_hexes": 0,
                "total_chunk_failures": 0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        return {
            "total_runs": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "total_chunks": sum(record.chunk_count for record in records),
            "total_hexes": sum(len(record.hex_ids) for record in records),
            "total_chunk_failures": sum(len(record.failures) for record in records),
        }


class Timer:
    """Simple context timer used by the ingest pipeline."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
