"""Heading-aware and paragraph-packing document chunking."""

from __future__ import annotations

import re
from dataclasses import dataclass

from hive_graph.config import ChunkingConfig
from hive_graph.types import DocumentChunk

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


@dataclass(slots=True)
class _Heading:
    title: str
    start: int


class HeadingChunker:
    """Splits a document into ordered, titled chunks.

    Design notes:
    1. Markdown headings first.
       With at least two headings (levels 1 to `max_heading_level`), the
       document is cut at every heading. Each chunk runs from its heading to
       the next one. Text before the first heading becomes an "Introduction"
       chunk. Chunks whose trimmed content is at most `min_chunk_chars` are
       discarded. Two or more survivors are returned as-is.

    2. Paragraph packing second.
       Documents longer than `max_chunk_size` are split on blank lines and
       paragraphs are packed greedily until the next one would overflow the
       limit. A single oversized paragraph becomes its own chunk. Chunks are
       titled "Section N" and a short trailing chunk is dropped.

    3. Whole document last.
       Anything else is returned as one "Main Content" chunk.

    The heuristics prefer keeping a small document whole over fragmenting it.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()
        self._heading_pattern = re.compile(
            rf"^(#{{1,{self.config.max_heading_level}}})[ \t]+(.+?)[ \t#]*$",
            flags=re.MULTILINE,
        )

    def chunk(self, text: str) -> list[DocumentChunk]:
        """Return at least one non-empty chunk for non-blank text."""

        if not text.strip():
            raise ValueError("Cannot chunk an empty document")

        by_heading = self._split_by_headings(text)
        if len(by_heading) >= 2:
            return by_heading

        if len(text) > self.config.max_chunk_size:
            by_paragraph = self._split_by_paragraphs(text)
            if len(by_paragraph) >= 2:
                return by_paragraph

        return [DocumentChunk(title="Main Content", content=text.strip(), index=0)]

    def _split_by_headings(self, text: str) -> list[DocumentChunk]:
        headings = [
            _Heading(title=match.group(2).strip(), start=match.start())
            for match in self._heading_pattern.finditer(text)
        ]
        if len(headings) < 2:
            return []

        sections: list[tuple[str, str]] = []
        preamble = text[: headings[0].start].strip()
        if preamble:
            sections.append(("Introduction", preamble))
        for position, heading in enumerate(headings):
            end = headings[position + 1].start if position + 1 < len(headings) else len(text)
            sections.append((heading.title, text[heading.start : end].strip()))

        kept = [
            (title, content)
            for title, content in sections
            if len(content) > self.config.min_chunk_chars
        ]
        return [
            DocumentChunk(title=title, content=content, index=index)
            for index, (title, content) in enumerate(kept)
        ]

    def _split_by_paragraphs(self, text: str) -> list[DocumentChunk]:
        packed: list[str] = []
        current = ""
        for paragraph in self._split_paragraphs(text):
            if not current:
                current = paragraph
            elif len(current) + 2 + len(paragraph) <= self.config.max_chunk_size:
                current = f"{current}\n\n{paragraph}"
            else:
                packed.append(current)
                current = paragraph
        if current:
            packed.append(current)

        if len(packed) > 1 and len(packed[-1]) <= self.config.min_chunk_chars:
            packed.pop()

        return [
            DocumentChunk(title=f"Section {index + 1}", content=content, index=index)
            for index, content in enumerate(packed)
        ]

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        return [part.strip() for part in _PARAGRAPH_SPLIT.split(text) if part.strip()]
