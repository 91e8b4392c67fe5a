"""Relationship discovery between new hexes and the existing corpus."""

from __future__ import annotations

from collections.abc import Sequence

from hive_graph.config import DiscoveryConfig
from hive_graph.ingest.ids import allocate_unique
from hive_graph.obs.logging import get_logger
from hive_graph.retrieval.scoring import HexScorer
from hive_graph.schemas import Edge, EdgeCondition, HexCreate

logger = get_logger(__name__)

RELATED_PREFIX = "related-"


class RelationshipDiscoverer:
    """Adds `related-*` edges from new hexes to similar existing hexes.

    For each new hex, its name, description, and first three entry hints
    form a synthetic intent that is scored against the existing corpus. The
    top `top_k` results at or above `min_score` become edges with priority
    `base_priority - priority_step * rank`. A hex is never linked to itself,
    and destinations it already points at are skipped. Edges are only ever
    added.
    """

    def __init__(self, config: DiscoveryConfig | None = None, scorer: HexScorer | None = None) -> None:
        self.config = config or DiscoveryConfig()
        self.scorer = scorer or HexScorer()

    def discover(
        self,
        new_hexes: list[HexCreate],
        existing: Sequence[HexCreate],
        *,
        min_score: float | None = None,
    ) -> list[HexCreate]:
        threshold = self.config.min_score if min_score is None else min_score
        if not existing:
            return new_hexes

        added = 0
        for hex_node in new_hexes:
            added += self._link_related(hex_node, existing, threshold)

        logger.info(f"Discovered {added} related edges for {len(new_hexes)} new hexes")
        return new_hexes

    def _link_related(
        self, hex_node: HexCreate, existing: Sequence[HexCreate], threshold: float
    ) -> int:
        intent = " ".join(
            [hex_node.name, hex_node.description or "", *hex_node.entry_hints[:3]]
        )
        results = [
            result
            for result in self.scorer.query(existing, intent, self.config.top_k)
            if result.score >= threshold and result.hex.id != hex_node.id
        ]

        linked = {edge.to for edge in hex_node.edges}
        edge_ids = {edge.id for edge in hex_node.edges}
        added = 0
        for rank, result in enumerate(results):
            target = result.hex
            if target.id in linked:
                continue
            hex_node.edges.append(
                Edge(
                    id=allocate_unique(f"{RELATED_PREFIX}{target.id}", edge_ids),
                    to=target.id,
                    when=EdgeCondition(intent=f"explore {target.name.lower()}"),
                    priority=self.config.base_priority - self.config.priority_step * rank,
                    description=f"Related: {target.name}",
                )
            )
            linked.add(target.id)
            added += 1
        return added
