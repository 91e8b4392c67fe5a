"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from hive_graph.schemas import Hex, HexCreate

SourceType = Literal["pdf", "text", "url", "markdown"]


@dataclass(slots=True)
class SourceDocument:
    """Plain text handed over by a raw-text provider."""

    text: str
    source_name: str
    source_type: SourceType = "text"


@dataclass(slots=True)
class DocumentChunk:
    """A titled, ordered slice of a source document."""

    title: str
    content: str
    index: int


@dataclass(slots=True)
class QueryResult:
    """A ranked hex with the entry hints that matched the intent."""

    hex: HexCreate
    score: float
    matched_hints: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ChunkExtraction:
    """Hexes produced from one chunk, before linking."""

    index: int
    title: str
    hexes: list[HexCreate]
    summary: str


@dataclass(slots=True)
class ChunkFailure:
    """A chunk whose extraction did not contribute any hexes."""

    index: int
    title: str
    error: str

    def label(self) -> str:
        return f"chunk {self.index + 1} ({self.title}): {self.error}"


@dataclass(slots=True)
class IngestResult:
    """Outcome of one document ingest run."""

    hexes: list[Hex]
    summary: str
    failures: list[ChunkFailure] = field(default_factory=list)
    chunk_count: int = 0
    trace_id: str | None = None
