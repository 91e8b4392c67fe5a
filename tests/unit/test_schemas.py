import pytest
from pydantic import ValidationError

from hive_graph.schemas import Edge, EdgeCondition, EdgeTransform, HexCreate, select_edge


def test_condition_requires_every_clause() -> None:
    condition = EdgeCondition(
        intent="button",
        has_data=["component"],
        lacks=["theme"],
        match={"variant": "primary"},
    )

    assert condition.matches("Style the BUTTON", {"component": "x", "variant": "primary"})
    assert not condition.matches("style the link", {"component": "x", "variant": "primary"})
    assert not condition.matches("button", {"variant": "primary"})
    assert not condition.matches("button", {"component": "x", "variant": "primary", "theme": 1})
    assert not condition.matches("button", {"component": "x", "variant": "ghost"})


def test_always_condition_matches_anything() -> None:
    assert EdgeCondition(always=True).matches("", None)


def test_empty_condition_matches_any_intent_and_payload() -> None:
    assert EdgeCondition().matches("anything", {"key": 1})
    assert EdgeCondition().matches("", None)


def test_condition_accepts_camel_case_alias() -> None:
    condition = EdgeCondition.model_validate({"hasData": ["component"]})

    assert condition.has_data == ["component"]
    assert condition.model_dump(by_alias=True, exclude_none=True) == {"hasData": ["component"]}


def test_transform_applies_pick_omit_inject_rename_in_order() -> None:
    transform = EdgeTransform(
        pick=["a", "b", "c"],
        omit=["c"],
        inject={"d": 4, "a": 10},
        rename={"a": "alpha", "d": "delta"},
    )

    result = transform.apply({"a": 1, "b": 2, "c": 3, "z": 26})

    assert result == {"alpha": 10, "b": 2, "delta": 4}


def test_transform_without_steps_copies_payload() -> None:
    payload = {"a": 1}

    result = EdgeTransform().apply(payload)

    assert result == payload
    assert result is not payload


def test_select_edge_prefers_priority_then_declaration_order() -> None:
    hex_node = HexCreate(
        id="start",
        name="Start",
        type="gateway",
        entry_hints=["start"],
        edges=[
            Edge(id="fallback", to="help", when=EdgeCondition(always=True), priority=10),
            Edge(id="first", to="a", when=EdgeCondition(intent="deploy"), priority=60),
            Edge(id="second", to="b", when=EdgeCondition(intent="deploy"), priority=60),
        ],
    )

    assert select_edge(hex_node, "deploy the app").id == "first"
    assert select_edge(hex_node, "something else").id == "fallback"


def test_edge_without_condition_is_selectable() -> None:
    hex_node = HexCreate.model_validate(
        {
            "id": "start",
            "name": "Start",
            "type": "gateway",
            "entryHints": ["start"],
            "edges": [
                {"id": "targeted", "to": "a", "when": {"intent": "deploy"}, "priority": 90},
                {"id": "default", "to": "b", "priority": 20},
            ],
        }
    )

    assert select_edge(hex_node, "deploy now").id == "targeted"
    assert select_edge(hex_node, "anything at all").id == "default"


def test_hex_id_must_be_lowercase_slug() -> None:
    with pytest.raises(ValidationError):
        HexCreate(id="Bad Id", name="Bad", type="data", entry_hints=["bad"])


def test_hex_requires_an_entry_hint() -> None:
    with pytest.raises(ValidationError):
        HexCreate(id="no-hints", name="No hints", type="data", entry_hints=[])


def test_edge_priority_is_bounded() -> None:
    with pytest.raises(ValidationError):
        Edge(id="e", to="x", priority=101)
    with pytest.raises(ValidationError):
        Edge(id="e", to="x", priority=-1)


def test_contents_data_is_passed_through() -> None:
    hex_node = HexCreate.model_validate(
        {
            "id": "opaque",
            "name": "Opaque",
            "type": "data",
            "entryHints": ["opaque"],
            "contents": {"data": {"nested": [1, "two", None]}, "refs": ["other"]},
        }
    )

    assert hex_node.contents.data == {"nested": [1, "two", None]}
    assert hex_node.contents.refs == ["other"]
