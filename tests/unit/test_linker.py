from hive_graph.ingest.linker import (
    NEXT_SECTION_INTENT,
    PREVIOUS_SECTION_INTENT,
    SECTION_EDGE_PRIORITY,
    link_chunks,
    provenance_tag,
)
from hive_graph.schemas import Edge, HexCreate


def _make_hex(hex_id: str, tags: list[str] | None = None) -> HexCreate:
    return HexCreate(id=hex_id, name=hex_id.title(), type="data", entry_hints=[hex_id], tags=tags or [])


def _section_edges(hex_node: HexCreate, intent: str) -> list[Edge]:
    return [edge for edge in hex_node.edges if edge.when.intent == intent]


def test_two_hexes_get_symmetric_section_edges() -> None:
    first, second = link_chunks([_make_hex("n1"), _make_hex("n2")], "Design Guide.md")

    [next_edge] = _section_edges(first, NEXT_SECTION_INTENT)
    [prev_edge] = _section_edges(second, PREVIOUS_SECTION_INTENT)
    assert next_edge.to == "n2"
    assert prev_edge.to == "n1"
    assert next_edge.priority == prev_edge.priority == SECTION_EDGE_PRIORITY == 80
    assert first.tags == second.tags == ["design-guide-md"]


def test_endpoints_have_no_outward_section_edges() -> None:
    hexes = link_chunks([_make_hex(f"n{i}") for i in range(4)], "doc")

    assert _section_edges(hexes[0], PREVIOUS_SECTION_INTENT) == []
    assert _section_edges(hexes[-1], NEXT_SECTION_INTENT) == []
    for left, right in zip(hexes, hexes[1:]):
        assert [edge.to for edge in _section_edges(left, NEXT_SECTION_INTENT)] == [right.id]
        assert [edge.to for edge in _section_edges(right, PREVIOUS_SECTION_INTENT)] == [left.id]


def test_section_edge_ids_stay_unique_within_a_hex() -> None:
    existing = HexCreate(
        id="n1",
        name="N1",
        type="data",
        entry_hints=["n1"],
        edges=[Edge(id="next-section", to="elsewhere", priority=10)],
    )

    first, _ = link_chunks([existing, _make_hex("n2")], "doc")

    assert [edge.id for edge in first.edges] == ["next-section", "next-section-1"]


def test_provenance_tag_is_not_duplicated() -> None:
    [first, _] = link_chunks([_make_hex("n1", tags=["doc"]), _make_hex("n2")], "doc")

    assert first.tags == ["doc"]


def test_provenance_tag_is_capped() -> None:
    tag = provenance_tag("A Very Long Source Document Name.pdf")

    assert len(tag) <= 20
    assert tag == "a-very-long-source-d"
    assert not tag.endswith("-")
