"""Hex identifier sanitization and corpus-wide unique allocation."""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from threading import Lock

from hive_graph.schemas import MAX_HEX_ID_LENGTH

FALLBACK_PREFIX = "hex-"

_INVALID_CHARS = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-+")


def sanitize_id(raw_id: str) -> str:
    """Normalize a candidate id to lowercase alphanumerics and hyphens.

    Empty results fall back to a random `hex-xxxxxxxx` id. The output is
    always a fixed point: `sanitize_id(sanitize_id(x)) == sanitize_id(x)`.
    """

    candidate = _INVALID_CHARS.sub("-", raw_id.lower())
    candidate = _HYPHEN_RUNS.sub("-", candidate).strip("-")
    candidate = candidate[:MAX_HEX_ID_LENGTH].strip("-")
    return candidate or f"{FALLBACK_PREFIX}{uuid.uuid4().hex[:8]}"


def allocate_unique(candidate: str, used_ids: set[str]) -> str:
    """Return `candidate`, or `candidate-N` for the first free N, and register it.

    The base is shortened when needed so the suffixed id stays within the
    50 character limit.
    """

    final_id = candidate
    counter = 0
    while final_id in used_ids:
        counter += 1
        suffix = f"-{counter}"
        base = candidate[: MAX_HEX_ID_LENGTH - len(suffix)].rstrip("-")
        final_id = f"{base}{suffix}"
    used_ids.add(final_id)
    return final_id


class IdAllocator:
    """Owns the used-id set for one ingest run.

    The set must be seeded with every id already in the corpus. Allocation
    is a single check-and-insert under a lock, so concurrent extraction
    workers never receive the same id.
    """

    def __init__(self, used_ids: Iterable[str] = ()) -> None:
        self._used: set[str] = set(used_ids)
        self._lock = Lock()

    def allocate(self, raw_id: str) -> str:
        candidate = sanitize_id(raw_id)
        with self._lock:
            return allocate_unique(candidate, self._used)
