"""End-to-end ingest pipeline: chunk -> extract -> link -> discover."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from pydantic import ValidationError

from hive_graph.config import IngestConfig
from hive_graph.errors import ExtractionFailedError, HexValidationError, InsufficientContentError
from hive_graph.ingest.chunker import HeadingChunker
from hive_graph.ingest.ids import IdAllocator
from hive_graph.ingest.linker import link_chunks
from hive_graph.ingest.orchestrator import ExtractionOrchestrator
from hive_graph.obs.logging import get_logger
from hive_graph.obs.tracing import IngestTraceStore, Timer
from hive_graph.retrieval.discovery import RelationshipDiscoverer
from hive_graph.retrieval.hex_store import HexStore
from hive_graph.schemas import Hex, HexCreate
from hive_graph.types import ChunkFailure, DocumentChunk, IngestResult, SourceDocument

logger = get_logger(__name__)


class IngestPipeline:
    """Coordinates chunker/orchestrator/linker/discoverer stages.

    The pipeline only reads the corpus; writing the returned hexes is the
    caller's job (see `hive_graph.retrieval.hex_store.persist`). One
    `IdAllocator` seeded from the corpus is shared by every document of a
    run, so ids stay unique across the corpus and the batch.
    """

    def __init__(
        self,
        orchestrator: ExtractionOrchestrator,
        corpus: HexStore,
        *,
        chunker: HeadingChunker | None = None,
        discoverer: RelationshipDiscoverer | None = None,
        trace_store: IngestTraceStore | None = None,
        config: IngestConfig | None = None,
    ) -> None:
        self.config = config or IngestConfig()
        self._orchestrator = orchestrator
        self._corpus = corpus
        self._chunker = chunker or HeadingChunker(self.config.chunking)
        self._discoverer = discoverer or RelationshipDiscoverer(self.config.discovery)
        self._trace_store = trace_store

    def ingest(self, document: SourceDocument) -> IngestResult:
        """Turn one document into timestamped hexes ready for persistence."""

        return self.ingest_many([document])[0]

    def ingest_many(self, documents: list[SourceDocument]) -> list[IngestResult]:
        """Ingest documents in order; later documents can link to earlier ones.

        Every document is checked for sufficient content before any work
        starts.
        """

        for document in documents:
            self._check_content(document)

        corpus: list[HexCreate] = list(self._corpus.all_hexes())
        allocator = IdAllocator(hex_node.id for hex_node in corpus)

        results: list[IngestResult] = []
        for document in documents:
            chunks = self._chunker.chunk(document.text)
            result = self._build(document, chunks, corpus, allocator)
            corpus.extend(result.hexes)
            results.append(result)
        return results

    def _check_content(self, document: SourceDocument) -> None:
        if len(document.text.strip()) < self.config.min_content_chars:
            raise InsufficientContentError(document.source_name)

    def _build(
        self,
        document: SourceDocument,
        chunks: list[DocumentChunk],
        existing: Sequence[HexCreate],
        allocator: IdAllocator,
    ) -> IngestResult:
        logger.info(f"Ingesting {document.source_name} ({len(chunks)} chunks)")

        with Timer() as timer:
            extractions, failures = self._orchestrator.extract_chunks(
                chunks, document.source_name, document.source_type, allocator
            )
            if not extractions:
                raise ExtractionFailedError(document.source_name, failures)

            hexes = [hex_node for extraction in extractions for hex_node in extraction.hexes]
            if len(chunks) > 1 and len(hexes) > 1:
                link_chunks(
                    hexes,
                    document.source_name,
                    tag_max_chars=self.config.provenance_tag_max_chars,
                )
            self._discoverer.discover(hexes, existing)
            stamped = _stamp(hexes)

        summary = _summarize(document, [extraction.summary for extraction in extractions], failures)
        result = IngestResult(
            hexes=stamped,
            summary=summary,
            failures=failures,
            chunk_count=len(chunks),
        )
        if self._trace_store is not None:
            record = self._trace_store.create_record(
                source_name=document.source_name,
                source_type=document.source_type,
                chunk_count=len(chunks),
                hex_ids=[hex_node.id for hex_node in stamped],
                failures=failures,
                latency_ms=timer.elapsed_ms,
            )
            result.trace_id = record.trace_id

        logger.info(
            f"Created {len(stamped)} hexes from {document.source_name} "
            f"({len(failures)} of {len(chunks)} chunks failed)"
        )
        return result


def _stamp(hexes: list[HexCreate]) -> list[Hex]:
    now = datetime.now(timezone.utc)
    stamped: list[Hex] = []
    for hex_node in hexes:
        try:
            stamped.append(
                Hex.model_validate({**hex_node.model_dump(), "created": now, "updated": now})
            )
        except ValidationError as exc:
            logger.error(f"Hex {hex_node.id} failed validation after linking")
            raise HexValidationError(hex_node.id, str(exc)) from exc
    return stamped


def _summarize(
    document: SourceDocument, summaries: list[str], failures: list[ChunkFailure]
) -> str:
    message = " | ".join(summary for summary in summaries if summary) or (
        f"Processed {document.source_name}"
    )
    if failures:
        details = "; ".join(failure.label() for failure in failures)
        message = f"{message} (failed {details})"
    return message
