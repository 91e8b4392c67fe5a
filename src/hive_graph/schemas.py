"""Pydantic models for hexes, edges, and the extractor wire format."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, JsonValue

HexType = Literal["data", "tool", "gateway", "junction"]

HEX_ID_PATTERN = r"^[a-z0-9-]+$"
MAX_HEX_ID_LENGTH = 50


class _WireModel(BaseModel):
    """Accepts both snake_case names and the camelCase wire aliases."""

    model_config = ConfigDict(populate_by_name=True)


class ParameterDef(_WireModel):
    type: Literal["string", "number", "boolean", "object", "array"]
    description: str
    required: bool | None = None
    default: JsonValue | None = None


class ToolDefinition(_WireModel):
    name: str
    description: str
    parameters: dict[str, ParameterDef] = Field(default_factory=dict)
    handler: str


class HexContents(_WireModel):
    """Opaque payload carried by a hex; `data` is never inspected."""

    data: JsonValue | None = None
    refs: list[str] | None = None
    tools: list[ToolDefinition] | None = None


class EdgeCondition(_WireModel):
    """Conjunction of payload checks guarding an edge."""

    intent: str | None = None
    has_data: list[str] | None = Field(default=None, alias="hasData")
    lacks: list[str] | None = None
    match: dict[str, JsonValue] | None = None
    always: bool | None = None

    def matches(self, intent: str, payload: Mapping[str, Any] | None = None) -> bool:
        """Return True when every present clause holds.

        `always` short-circuits to True. A condition with no clauses is an
        empty conjunction and matches everything.
        """

        if self.always:
            return True

        data = payload or {}
        clauses: list[bool] = []
        if self.intent is not None:
            clauses.append(self.intent.lower() in intent.lower())
        if self.has_data is not None:
            clauses.append(all(key in data for key in self.has_data))
        if self.lacks is not None:
            clauses.append(all(key not in data for key in self.lacks))
        if self.match is not None:
            clauses.append(
                all(key in data and data[key] == value for key, value in self.match.items())
            )
        return all(clauses)


class EdgeTransform(_WireModel):
    """Payload reshaping applied as pick, omit, inject, then rename."""

    pick: list[str] | None = None
    omit: list[str] | None = None
    inject: dict[str, JsonValue] | None = None
    rename: dict[str, str] | None = None

    def apply(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        result = dict(payload)
        if self.pick is not None:
            keep = set(self.pick)
            result = {key: value for key, value in result.items() if key in keep}
        if self.omit:
            for key in self.omit:
                result.pop(key, None)
        if self.inject:
            result.update(self.inject)
        if self.rename:
            result = {self.rename.get(key, key): value for key, value in result.items()}
        return result


class Edge(_WireModel):
    id: str = Field(min_length=1)
    to: str = Field(min_length=1)
    when: EdgeCondition = Field(default_factory=EdgeCondition)
    transform: EdgeTransform | None = None
    priority: int = Field(ge=0, le=100)
    description: str = ""


class HexCreate(_WireModel):
    """A hex as produced by the pipeline, before it is timestamped."""

    id: str = Field(min_length=1, max_length=MAX_HEX_ID_LENGTH, pattern=HEX_ID_PATTERN)
    name: str = Field(min_length=1, max_length=100)
    type: HexType
    contents: HexContents = Field(default_factory=HexContents)
    entry_hints: list[str] = Field(alias="entryHints", min_length=1)
    edges: list[Edge] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    description: str | None = None


class Hex(HexCreate):
    """A persisted hex."""

    created: datetime
    updated: datetime


class HexUpdate(_WireModel):
    """Partial hex edit. `id` and the timestamps are not editable."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    type: HexType | None = None
    contents: HexContents | None = None
    entry_hints: list[str] | None = Field(default=None, alias="entryHints", min_length=1)
    edges: list[Edge] | None = None
    tags: list[str] | None = None
    description: str | None = None


def apply_update(existing: Hex, update: HexUpdate, now: datetime) -> Hex:
    """Merge the fields set on `update` into `existing` and bump `updated`."""

    merged = existing.model_dump(by_alias=True)
    merged.update(update.model_dump(by_alias=True, exclude_unset=True))
    merged["id"] = existing.id
    merged["created"] = existing.created
    merged["updated"] = now
    return Hex.model_validate(merged)


def select_edge(
    hex_node: HexCreate, intent: str, payload: Mapping[str, Any] | None = None
) -> Edge | None:
    """Pick the highest-priority outbound edge whose condition matches.

    Ties keep declaration order.
    """

    candidates = [edge for edge in hex_node.edges if edge.when.matches(intent, payload)]
    if not candidates:
        return None
    return max(candidates, key=lambda edge: edge.priority)


class ExtractedEdge(_WireModel):
    id: str
    to: str
    when: EdgeCondition = Field(default_factory=EdgeCondition)
    transform: EdgeTransform | None = None
    priority: float
    description: str = ""


class ExtractedHex(_WireModel):
    id: str
    name: str = Field(min_length=1, max_length=100)
    type: HexType
    description: str = ""
    entry_hints: list[str] = Field(alias="entryHints", min_length=1)
    tags: list[str] = Field(default_factory=list)
    contents: HexContents = Field(default_factory=HexContents)
    edges: list[ExtractedEdge] = Field(default_factory=list)


class ExtractionResponse(_WireModel):
    """The JSON document an Extractor must return for one chunk."""

    hexes: list[ExtractedHex]
    summary: str
