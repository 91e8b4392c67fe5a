"""Hex store interface and in-memory adapter."""

from __future__ import annotations

from threading import Lock
from typing import Protocol

from hive_graph.schemas import Hex


class HexStore(Protocol):
    """Corpus reader and persistence writer used around the pipeline."""

    def all_hexes(self) -> list[Hex]:
        """Return every stored hex."""

    def get(self, hex_id: str) -> Hex | None:
        """Return one hex or None."""

    def exists(self, hex_id: str) -> bool:
        """Return whether a hex id is taken."""

    def save(self, hex_node: Hex) -> None:
        """Create or replace one hex."""

    def bulk_save(self, hexes: list[Hex]) -> None:
        """Create or replace many hexes at once."""

    def delete(self, hex_id: str) -> bool:
        """Delete one hex, returning whether it existed."""

    def clear(self) -> None:
        """Remove every hex."""


class InMemoryHexStore:
    """Deterministic hex store used for tests and local prototyping."""

    def __init__(self, hexes: list[Hex] | None = None) -> None:
        self._store: dict[str, Hex] = {}
        self._lock = Lock()
        if hexes:
            self.bulk_save(hexes)

    def all_hexes(self) -> list[Hex]:
        with self._lock:
            return list(self._store.values())

    def get(self, hex_id: str) -> Hex | None:
        with self._lock:
            return self._store.get(hex_id)

    def exists(self, hex_id: str) -> bool:
        with self._lock:
            return hex_id in self._store

    def save(self, hex_node: Hex) -> None:
        with self._lock:
            self._store[hex_node.id] = hex_node

    def bulk_save(self, hexes: list[Hex]) -> None:
        with self._lock:
            for hex_node in hexes:
                self._store[hex_node.id] = hex_node

    def delete(self, hex_id: str) -> bool:
        with self._lock:
            return self._store.pop(hex_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


def persist(store: HexStore, hexes: list[Hex]) -> None:
    """Write pipeline output, using the bulk path for more than one hex."""

    if len(hexes) == 1:
        store.save(hexes[0])
    elif hexes:
        store.bulk_save(hexes)


def filter_hexes(hexes: list[Hex], query: str) -> list[Hex]:
    """Case-insensitive substring filter over id, name, tags and entry hints."""

    needle = query.lower()
    return [
        hex_node
        for hex_node in hexes
        if needle in hex_node.id.lower()
        or needle in hex_node.name.lower()
        or any(needle in tag.lower() for tag in hex_node.tags)
        or any(needle in hint.lower() for hint in hex_node.entry_hints)
    ]
