"""Hive graph package."""

from .config import ChunkingConfig, DiscoveryConfig, ExtractionConfig, IngestConfig

__all__ = ["ChunkingConfig", "DiscoveryConfig", "ExtractionConfig", "IngestConfig"]
