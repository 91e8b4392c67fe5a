"""Search tokenization and one-hop concept expansion."""

from __future__ import annotations

import re
from collections.abc import Iterable

CONCEPT_MAP: dict[str, tuple[str, ...]] = {
    "button": ("interactive", "form", "click", "input", "ui", "element"),
    "deploy": ("ship", "ops", "launch", "release", "production", "ci", "cd"),
    "database": ("schema", "data", "table", "model", "prisma", "sql"),
    "style": ("css", "design", "theme", "color", "token", "tailwind"),
    "auth": ("login", "signup", "session", "permission", "security", "authentication"),
    "test": ("qa", "quality", "check", "audit", "verify", "testing"),
    "api": ("backend", "server", "endpoint", "route", "action", "rest"),
    "layout": ("spacing", "grid", "responsive", "breakpoint", "flex", "gap"),
    "text": ("typography", "font", "heading", "copy", "writing"),
    "image": ("performance", "optimization", "loading", "asset", "media"),
    "error": ("handling", "validation", "message", "boundary", "catch"),
    "form": ("input", "validation", "field", "submit", "interactive"),
    "component": ("ui", "element", "widget", "block", "module"),
    "animation": ("motion", "transition", "hover", "easing", "duration"),
    "color": ("theme", "palette", "token", "dark", "light", "mode"),
    "accessibility": ("a11y", "wcag", "aria", "screen", "reader", "keyboard", "focus"),
    "seo": ("search", "meta", "og", "social", "crawl", "sitemap"),
    "setup": ("scaffold", "init", "initialize", "new", "project", "start"),
    "code": ("typescript", "react", "standards", "patterns", "naming"),
    "copy": ("writing", "ux", "microcopy", "label", "message", "voice"),
}

_NON_WORD = re.compile(r"[^a-z0-9\s]")


def _build_reverse_index(concepts: dict[str, tuple[str, ...]]) -> dict[str, tuple[str, ...]]:
    reverse: dict[str, list[str]] = {}
    for key, synonyms in concepts.items():
        for synonym in synonyms:
            reverse.setdefault(synonym, []).append(key)
    return {synonym: tuple(keys) for synonym, keys in reverse.items()}


# synonym -> concept keys listing it
_REVERSE_INDEX = _build_reverse_index(CONCEPT_MAP)


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation, keep words of 3+ characters."""

    cleaned = _NON_WORD.sub("", text.lower())
    return [word for word in cleaned.split() if len(word) > 2]


def expand(words: Iterable[str]) -> set[str]:
    """Add concept synonyms for each word, one hop only.

    A word that is a concept key pulls in its synonyms. A word listed as a
    synonym pulls in its key and that key's sibling synonyms. Words added by
    the expansion are not expanded again.
    """

    originals = list(words)
    expanded = set(originals)
    for word in originals:
        synonyms = CONCEPT_MAP.get(word)
        if synonyms:
            expanded.update(synonyms)
        for key in _REVERSE_INDEX.get(word, ()):
            expanded.add(key)
            expanded.update(CONCEPT_MAP[key])
    return expanded


def expand_text(text: str) -> set[str]:
    return expand(tokenize(text))
