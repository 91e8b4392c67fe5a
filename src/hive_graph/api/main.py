"""FastAPI entrypoint for ingest/query/hex/trace endpoints."""

from __future__ import annotations

import os
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

import requests
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationError

from hive_graph.config import IngestConfig
from hive_graph.errors import ExtractionFailedError, HexValidationError
from hive_graph.ingest.extractor import Extractor, LangChainExtractor
from hive_graph.ingest.fallback import DeterministicExtractor
from hive_graph.ingest.orchestrator import ExtractionOrchestrator
from hive_graph.ingest.parser import ParserRegistry, fetch_url
from hive_graph.ingest.pipeline import IngestPipeline
from hive_graph.obs.logging import get_logger
from hive_graph.obs.tracing import IngestTraceStore
from hive_graph.retrieval.hex_store import InMemoryHexStore, filter_hexes, persist
from hive_graph.retrieval.scoring import HexScorer
from hive_graph.schemas import Hex, HexCreate, HexUpdate, apply_update
from hive_graph.types import SourceDocument

logger = get_logger(__name__)


def _create_llm() -> Any:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        return None

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"), temperature=0)


class IngestRequest(BaseModel):
    text: str | None = None
    source_name: str = "Pasted Text"
    url: str | None = None
    path: str | None = None
    paths: list[str] | None = None


class QueryRequest(BaseModel):
    intent: str = Field(min_length=1)
    limit: int = Field(default=5, ge=1, le=50)


app = FastAPI(title="Hive Graph", version="0.1.0")

_config = IngestConfig()
_store = InMemoryHexStore()
_parser_registry = ParserRegistry()
_trace_store = IngestTraceStore()
_scorer = HexScorer()
_llm = _create_llm()
_extractor: Extractor = LangChainExtractor(_llm) if _llm is not None else DeterministicExtractor()
_pipeline = IngestPipeline(
    ExtractionOrchestrator(_extractor, _config.extraction),
    _store,
    trace_store=_trace_store,
    config=_config,
)


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _load_documents(request: IngestRequest) -> list[SourceDocument]:
    if request.paths:
        return [_parser_registry.parse_path(path) for path in request.paths]
    if request.url:
        return [fetch_url(request.url)]
    if request.path:
        return [_parser_registry.parse_path(request.path)]
    if request.text:
        return [SourceDocument(text=request.text, source_name=request.source_name, source_type="text")]
    raise ValueError("Request must include either 'text', 'url', 'path', or 'paths'")


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "llm_configured": _llm is not None,
        "extractor_mode": "langchain" if _llm is not None else "deterministic",
        "hex_count": len(_store.all_hexes()),
    }


@app.post("/ingest")
def ingest(request: IngestRequest) -> dict[str, Any]:
    try:
        documents = _load_documents(request)
    except requests.RequestException as exc:
        raise HTTPException(status_code=502, detail=f"Failed to fetch URL: {exc}") from exc
    except (ValueError, OSError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        results = _pipeline.ingest_many(documents)
    except HexValidationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExtractionFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    hexes = [hex_node for result in results for hex_node in result.hexes]
    persist(_store, hexes)
    logger.info(f"Persisted {len(hexes)} hexes from {len(documents)} document(s)")

    if len(results) > 1:
        message = f"Processed {len(results)} documents: " + " | ".join(r.summary for r in results)
    else:
        message = results[0].summary
    return {
        "hexes": [_dump(hex_node) for hex_node in hexes],
        "message": message,
        "chunk_count": sum(result.chunk_count for result in results),
        "failures": [
            {"source_name": document.source_name, **asdict(failure)}
            for document, result in zip(documents, results)
            for failure in result.failures
        ],
        "trace_ids": [result.trace_id for result in results],
    }


@app.post("/query")
def query(request: QueryRequest) -> dict[str, Any]:
    results = _scorer.query(_store.all_hexes(), request.intent, request.limit)
    return {
        "items": [
            {
                "hex": _dump(result.hex),
                "score": result.score,
                "matchedHints": result.matched_hints,
            }
            for result in results
        ]
    }


@app.get("/hexes")
def list_hexes(q: str | None = None) -> dict[str, Any]:
    hexes = _store.all_hexes()
    if q:
        hexes = filter_hexes(hexes, q)
    return {"items": [_dump(hex_node) for hex_node in hexes]}


@app.post("/hexes", status_code=201)
def create_hex(request: HexCreate) -> dict[str, Any]:
    if _store.exists(request.id):
        raise HTTPException(status_code=409, detail=f"Hex with id '{request.id}' already exists")

    now = datetime.now(timezone.utc)
    hex_node = Hex(**request.model_dump(), created=now, updated=now)
    _store.save(hex_node)
    logger.info(f"Created hex {hex_node.id}")
    return _dump(hex_node)


@app.get("/hexes/{hex_id}")
def get_hex(hex_id: str) -> dict[str, Any]:
    hex_node = _store.get(hex_id)
    if hex_node is None:
        raise HTTPException(status_code=404, detail=f"Hex not found: {hex_id}")
    return _dump(hex_node)


@app.put("/hexes/{hex_id}")
def update_hex(hex_id: str, request: HexUpdate) -> dict[str, Any]:
    existing = _store.get(hex_id)
    if existing is None:
        raise HTTPException(status_code=404, detail=f"Hex not found: {hex_id}")

    try:
        hex_node = apply_update(existing, request, datetime.now(timezone.utc))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    _store.save(hex_node)
    return _dump(hex_node)


@app.delete("/hexes/{hex_id}")
def delete_hex(hex_id: str) -> dict[str, Any]:
    if not _store.delete(hex_id):
        raise HTTPException(status_code=404, detail=f"Hex not found: {hex_id}")
    return {"deleted": hex_id}


@app.get("/traces")
def traces(limit: int = 20) -> dict[str, Any]:
    records = [asdict(record) for record in _trace_store.list_recent(limit=limit)]
    return {"items": records}


@app.get("/traces/{trace_id}")
def trace_detail(trace_id: str) -> dict[str, Any]:
    try:
        record = _trace_store.get(trace_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return asdict(record)


@app.get("/metrics")
def metrics() -> dict[str, Any]:
    return _trace_store.summary()
