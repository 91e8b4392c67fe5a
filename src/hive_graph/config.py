"""Configuration models for the hive graph pipeline."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ChunkingConfig(BaseModel):
    """Configures heading-first, paragraph-second document chunking."""

    max_chunk_size: int = Field(default=8000, ge=200)
    min_chunk_chars: int = Field(default=100, ge=0)
    max_heading_level: int = Field(default=3, ge=1, le=6)


class ExtractionConfig(BaseModel):
    """Configures per-chunk extraction through the external Extractor."""

    max_input_chars: int = Field(default=50_000, ge=1000)
    truncation_marker: str = "\n\n[Document truncated...]"
    max_workers: int = Field(default=4, ge=1)
    chunk_timeout_seconds: float = Field(default=120.0, gt=0.0)


class DiscoveryConfig(BaseModel):
    """Configures relationship discovery against the existing corpus.

    Related edges get `base_priority - priority_step * rank`; the settings
    must keep the lowest rank inside the 0..100 edge priority range.
    """

    min_score: float = Field(default=2.0, ge=0.0)
    top_k: int = Field(default=3, ge=1, le=5)
    base_priority: int = Field(default=50, ge=0, le=100)
    priority_step: int = Field(default=10, ge=0, le=10)

    @model_validator(mode="after")
    def _lowest_priority_in_range(self) -> "DiscoveryConfig":
        lowest = self.base_priority - self.priority_step * (self.top_k - 1)
        if lowest < 0:
            raise ValueError(f"lowest related-edge priority would be {lowest}, must be >= 0")
        return self


class IngestConfig(BaseModel):
    """Configures the end-to-end document ingest run."""

    min_content_chars: int = Field(default=10, ge=1)
    provenance_tag_max_chars: int = Field(default=20, ge=1, le=50)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
