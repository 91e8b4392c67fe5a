"""Intent-to-hex ranking based on expanded token overlap."""

from __future__ import annotations

from collections.abc import Sequence

from hive_graph.retrieval.concepts import expand_text
from hive_graph.schemas import HexCreate
from hive_graph.types import QueryResult

HINT_WEIGHT = 1.0
NAME_WEIGHT = 0.5
DESCRIPTION_WEIGHT = 0.3
TAG_BONUS = 0.5


class HexScorer:
    """Ranks hexes against a free-text intent.

    Scoring per hex:
    1. Each entry hint adds its raw overlap with the expanded intent; hints
       with any overlap are reported as matched.
    2. The name adds `overlap * 0.5`.
    3. The description, when present, adds `overlap * 0.3`.
    4. Each tag found in the expanded intent adds a flat `0.5`.

    Entry hints are curated search triggers, so they dominate the ranking.
    Hexes scoring zero are dropped and ties keep corpus order.
    """

    def query(
        self, hexes: Sequence[HexCreate], intent: str, limit: int = 5
    ) -> list[QueryResult]:
        if limit <= 0:
            return []

        intent_terms = expand_text(intent)
        if not intent_terms:
            return []

        results: list[QueryResult] = []
        for hex_node in hexes:
            result = self.score(hex_node, intent_terms)
            if result.score > 0:
                results.append(result)

        ranked = sorted(results, key=lambda item: item.score, reverse=True)
        return ranked[:limit]

    @staticmethod
    def score(hex_node: HexCreate, intent_terms: set[str]) -> QueryResult:
        score = 0.0
        matched_hints: list[str] = []

        for hint in hex_node.entry_hints:
            overlap = len(intent_terms & expand_text(hint))
            if overlap > 0:
                matched_hints.append(hint)
                score += overlap * HINT_WEIGHT

        score += len(intent_terms & expand_text(hex_node.name)) * NAME_WEIGHT

        if hex_node.description:
            score += len(intent_terms & expand_text(hex_node.description)) * DESCRIPTION_WEIGHT

        for tag in hex_node.tags:
            if tag.lower() in intent_terms:
                score += TAG_BONUS

        return QueryResult(hex=hex_node, score=score, matched_hints=matched_hints)


def query_hexes(hexes: Sequence[HexCreate], intent: str, limit: int = 5) -> list[QueryResult]:
    """Convenience wrapper around `HexScorer.query`."""

    return HexScorer().query(hexes, intent, limit)
