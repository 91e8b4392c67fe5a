"""Exception hierarchy for the ingest pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hive_graph.types import ChunkFailure


class HiveGraphError(Exception):
    """Base class for all hive graph exceptions."""


class InsufficientContentError(HiveGraphError, ValueError):
    """Raised when a document is too short to chunk."""

    def __init__(self, source_name: str) -> None:
        super().__init__(f'Document "{source_name}" has insufficient content')
        self.source_name = source_name


class ChunkExtractionError(HiveGraphError):
    """Raised when one chunk cannot be turned into hexes."""

    def __init__(self, message: str, *, chunk_index: int = -1, chunk_title: str = "") -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
        self.chunk_title = chunk_title


class HexValidationError(HiveGraphError, ValueError):
    """Raised when a produced hex fails the final schema check."""

    def __init__(self, hex_id: str, detail: str) -> None:
        super().__init__(f'Generated hex "{hex_id}" failed validation: {detail}')
        self.hex_id = hex_id


class ExtractionFailedError(HiveGraphError):
    """Raised when every chunk of a document failed extraction."""

    def __init__(self, source_name: str, failures: list[ChunkFailure]) -> None:
        details = "; ".join(failure.label() for failure in failures)
        super().__init__(f'All chunks of "{source_name}" failed: {details}')
        self.source_name = source_name
        self.failures = failures
