"""Deterministic fallback extractor when no external LLM is configured."""

from __future__ import annotations

import json
import re
from collections import Counter

from hive_graph.ingest.extractor import Extractor
from hive_graph.retrieval.concepts import tokenize
from hive_graph.types import SourceType

_HEADING = re.compile(r"^#{1,6}[ \t]+(.+?)[ \t#]*$", flags=re.MULTILINE)
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_STOPWORDS = frozenset(
    "the and for are but not you all any can had her was one our out has have this that "
    "with from they will would there their what when which who how why into than then "
    "them these those its also been were such each other more most some very just about".split()
)


class DeterministicExtractor(Extractor):
    """Extractor that builds one hex per chunk without model calls.

    It keeps the same response contract as `LangChainExtractor` so the
    orchestrator parses and validates its output the same way. Useful for
    local/offline runs where `OPENAI_API_KEY` is not configured.
    """

    def __init__(self, max_hints: int = 6, max_tags: int = 3) -> None:
        self.max_hints = max_hints
        self.max_tags = max_tags

    def extract(self, text: str, source_name: str, source_type: SourceType) -> str:
        title = _title_for(text, source_name)
        terms = _key_terms(text, limit=self.max_hints)

        hints = [title.lower()]
        hints.extend(term for term in terms if term != title.lower())
        payload = {
            "hexes": [
                {
                    "id": title,
                    "name": title,
                    "type": "data",
                    "description": _first_sentence(text),
                    "entryHints": hints[: self.max_hints],
                    "tags": list(dict.fromkeys([source_type, *terms[: self.max_tags]])),
                    "contents": {"data": text},
                    "edges": [],
                }
            ],
            "summary": f'Extracted "{title}" from {source_type} document "{source_name}"',
        }
        return json.dumps(payload, ensure_ascii=False)


def _title_for(text: str, source_name: str) -> str:
    match = _HEADING.search(text)
    if match:
        return match.group(1).strip()[:100]
    words = text.split()[:8]
    return (" ".join(words) or source_name)[:100]


def _key_terms(text: str, *, limit: int) -> list[str]:
    counts = Counter(word for word in tokenize(text) if word not in _STOPWORDS)
    return [word for word, _ in counts.most_common(limit)]


def _first_sentence(text: str) -> str:
    body = _HEADING.sub("", text).strip()
    sentences = _SENTENCE_SPLIT.split(body, maxsplit=1)
    return " ".join(sentences[0].split())[:200] if sentences else ""
