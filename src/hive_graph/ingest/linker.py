"""Ordering edges and provenance tags for multi-chunk documents."""

from __future__ import annotations

from hive_graph.ingest.ids import allocate_unique, sanitize_id
from hive_graph.schemas import Edge, EdgeCondition, HexCreate

SECTION_EDGE_PRIORITY = 80
PREVIOUS_SECTION_INTENT = "previous section"
NEXT_SECTION_INTENT = "next section"


def provenance_tag(source_name: str, max_chars: int = 20) -> str:
    """Sanitized, length-capped tag naming the source document."""

    tag = sanitize_id(source_name)[:max_chars].strip("-")
    return tag or sanitize_id("")[:max_chars]


def link_chunks(
    hexes: list[HexCreate], source_name: str, *, tag_max_chars: int = 20
) -> list[HexCreate]:
    """Chain hexes in source order with previous/next section edges.

    `hexes` must already be in chunk index order. Every hex also receives
    the document's provenance tag once.
    """

    tag = provenance_tag(source_name, tag_max_chars)
    last = len(hexes) - 1
    for position, hex_node in enumerate(hexes):
        if position > 0:
            _append_edge(hex_node, hexes[position - 1], PREVIOUS_SECTION_INTENT, "Previous section")
        if position < last:
            _append_edge(hex_node, hexes[position + 1], NEXT_SECTION_INTENT, "Next section")
        if tag not in hex_node.tags:
            hex_node.tags.append(tag)
    return hexes


def _append_edge(source: HexCreate, target: HexCreate, intent: str, label: str) -> None:
    edge_ids = {edge.id for edge in source.edges}
    source.edges.append(
        Edge(
            id=allocate_unique(sanitize_id(intent), edge_ids),
            to=target.id,
            when=EdgeCondition(intent=intent),
            priority=SECTION_EDGE_PRIORITY,
            description=f"{label}: {target.name}",
        )
    )
