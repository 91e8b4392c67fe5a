"""Per-chunk extraction: call the Extractor, parse, validate, sanitize."""

from __future__ import annotations

import json
import re
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from threading import Lock, Semaphore

from pydantic import ValidationError

from hive_graph.config import ExtractionConfig
from hive_graph.errors import ChunkExtractionError, HexValidationError
from hive_graph.ingest.extractor import Extractor
from hive_graph.ingest.ids import IdAllocator, allocate_unique, sanitize_id
from hive_graph.obs.logging import get_logger
from hive_graph.schemas import ExtractedHex, ExtractionResponse, HexCreate
from hive_graph.types import ChunkExtraction, ChunkFailure, DocumentChunk, SourceType

logger = get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")
_IDLE_POLL_SECONDS = 0.05


class ExtractionOrchestrator:
    """Drives the external Extractor once per chunk.

    Failure policy:
    - Collaborator errors, unparsable output, and responses of the wrong
      shape raise `ChunkExtractionError`. They abort only that chunk.
    - A transformed hex failing the final `HexCreate` check raises
      `HexValidationError`. That is fatal for the whole run.
    - Nothing is retried here; retries belong to the model client.
    """

    def __init__(self, extractor: Extractor, config: ExtractionConfig | None = None) -> None:
        self.extractor = extractor
        self.config = config or ExtractionConfig()

    def extract_chunk(
        self, text: str, source_name: str, source_type: SourceType
    ) -> tuple[list[HexCreate], str]:
        """Extract sanitized hexes and a summary from one chunk of text."""

        prepared = self.truncate(text)
        try:
            raw = self.extractor.extract(prepared, source_name, source_type)
        except Exception as exc:
            raise ChunkExtractionError(f"Extractor call failed: {exc}") from exc

        response = self.parse_response(raw)
        hexes = [self._to_hex(item) for item in response.hexes]
        return hexes, response.summary

    def extract_chunks(
        self,
        chunks: list[DocumentChunk],
        source_name: str,
        source_type: SourceType,
        allocator: IdAllocator,
    ) -> tuple[list[ChunkExtraction], list[ChunkFailure]]:
        """Extract all chunks concurrently and allocate unique ids.

        Results come back in chunk index order regardless of completion
        order. At most `max_workers` extractor calls run at once. A chunk's
        `chunk_timeout_seconds` clock starts when its call starts, so chunks
        queued behind a slow call are not charged for the wait. A timed-out
        call gives up its slot and fails only that chunk.
        """

        if not chunks:
            return [], []

        timeout = self.config.chunk_timeout_seconds
        slots = Semaphore(self.config.max_workers)
        extractions: dict[int, ChunkExtraction] = {}
        failures: list[ChunkFailure] = []
        pool = ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="hive-extract")
        try:
            runs = {}
            for chunk in sorted(chunks, key=lambda item: item.index):
                run = _ChunkRun(chunk, slots)
                runs[pool.submit(self._run_chunk, run, source_name, source_type, allocator)] = run

            pending = set(runs)
            while pending:
                done, pending = wait(
                    pending,
                    timeout=_next_wait([runs[future] for future in pending], timeout),
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    run = runs[future]
                    try:
                        extractions[run.chunk.index] = future.result()
                    except ChunkExtractionError as exc:
                        failures.append(run.failure(str(exc)))

                now = time.monotonic()
                expired = [
                    future for future in pending
                    if not future.done() and runs[future].expired(now, timeout)
                ]
                for future in expired:
                    pending.discard(future)
                    run = runs[future]
                    run.release()
                    failures.append(run.failure(f"timed out after {timeout:g}s"))
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        failures.sort(key=lambda failure: failure.index)
        for failure in failures:
            logger.warning(f"Chunk extraction failed for {source_name}: {failure.label()}")
        return [extractions[index] for index in sorted(extractions)], failures

    def truncate(self, text: str) -> str:
        limit = self.config.max_input_chars
        if len(text) <= limit:
            return text
        return text[:limit] + self.config.truncation_marker

    @staticmethod
    def parse_response(raw: str) -> ExtractionResponse:
        body = raw.strip()
        if body.startswith("```"):
            body = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", body))

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ChunkExtractionError(
                f"Failed to parse extractor response as JSON: {raw[:200]}"
            ) from exc

        try:
            return ExtractionResponse.model_validate(payload)
        except ValidationError as exc:
            raise ChunkExtractionError(f"Extractor response validation failed: {exc}") from exc

    def _run_chunk(
        self,
        run: _ChunkRun,
        source_name: str,
        source_type: SourceType,
        allocator: IdAllocator,
    ) -> ChunkExtraction:
        run.acquire()
        try:
            return self._extract_and_allocate(run.chunk, source_name, source_type, allocator)
        finally:
            run.release()

    def _extract_and_allocate(
        self,
        chunk: DocumentChunk,
        source_name: str,
        source_type: SourceType,
        allocator: IdAllocator,
    ) -> ChunkExtraction:
        try:
            hexes, summary = self.extract_chunk(chunk.content, source_name, source_type)
        except ChunkExtractionError as exc:
            exc.chunk_index = chunk.index
            exc.chunk_title = chunk.title
            raise
        _assign_unique_ids(hexes, allocator)
        logger.debug(f"Chunk {chunk.index} ({chunk.title}) produced {len(hexes)} hexes")
        return ChunkExtraction(index=chunk.index, title=chunk.title, hexes=hexes, summary=summary)

    @staticmethod
    def _to_hex(item: ExtractedHex) -> HexCreate:
        hex_id = sanitize_id(item.id)
        edge_ids: set[str] = set()
        record = {
            "id": hex_id,
            "name": item.name,
            "type": item.type,
            "description": item.description,
            "entryHints": item.entry_hints,
            "tags": item.tags,
            "contents": item.contents,
            "edges": [
                {
                    "id": allocate_unique(sanitize_id(edge.id), edge_ids),
                    "to": sanitize_id(edge.to),
                    "when": edge.when,
                    "transform": edge.transform,
                    "priority": edge.priority,
                    "description": edge.description,
                }
                for edge in item.edges
            ],
        }
        try:
            return HexCreate.model_validate(record)
        except ValidationError as exc:
            logger.error(f"Hex {hex_id} failed final validation")
            raise HexValidationError(hex_id, str(exc)) from exc


def _assign_unique_ids(hexes: list[HexCreate], allocator: IdAllocator) -> None:
    """Replace candidate ids with corpus-unique ones.

    Edges inside the same chunk that pointed at a renamed candidate follow
    the rename.
    """

    renamed: dict[str, str] = {}
    for hex_node in hexes:
        final_id = allocator.allocate(hex_node.id)
        renamed.setdefault(hex_node.id, final_id)
        hex_node.id = final_id

    for hex_node in hexes:
        for edge in hex_node.edges:
            edge.to = renamed.get(edge.to, edge.to)


class _ChunkRun:
    """One chunk's worker slot and the time its extractor call started."""

    def __init__(self, chunk: DocumentChunk, slots: Semaphore) -> None:
        self.chunk = chunk
        self.started: float | None = None
        self._slots = slots
        self._released = False
        self._lock = Lock()

    def acquire(self) -> None:
        self._slots.acquire()
        self.started = time.monotonic()

    def release(self) -> None:
        # Called by the worker on completion and by the caller on timeout.
        with self._lock:
            if self._released:
                return
            self._released = True
        self._slots.release()

    def expired(self, now: float, timeout: float) -> bool:
        return self.started is not None and now - self.started >= timeout

    def failure(self, error: str) -> ChunkFailure:
        return ChunkFailure(index=self.chunk.index, title=self.chunk.title, error=error)


def _next_wait(runs: list[_ChunkRun], timeout: float) -> float:
    """Seconds until the earliest running chunk hits its timeout."""

    now = time.monotonic()
    remaining = [run.started + timeout - now for run in runs if run.started is not None]
    if not remaining:
        return _IDLE_POLL_SECONDS
    return max(min(remaining), 0.0)
