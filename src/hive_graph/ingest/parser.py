"""Raw-text providers: file parsers and URL fetching."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from pypdf import PdfReader

from hive_graph.types import SourceDocument

MAX_FILE_SIZE = 10 * 1024 * 1024
USER_AGENT = "HiveBot/1.0 (Knowledge Extraction)"

_NON_CONTENT_TAGS = ["script", "style", "noscript", "iframe", "svg", "nav", "footer", "header", "aside"]
_MAIN_CONTENT_SELECTORS = ["article", "main", '[role="main"]', ".content, .post, .article, .entry"]


class Parser(ABC):
    """Base parser interface used before the ingest pipeline."""

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, path: Path) -> SourceDocument:
        """Read a file into plain text + source label/type."""


class TextParser(Parser):
    """Parser for plain text documents."""

    extensions = (".txt", ".log")

    def parse(self, path: Path) -> SourceDocument:
        text = path.read_text(encoding="utf-8")
        return SourceDocument(text=text, source_name=path.name, source_type="text")


class MarkdownParser(Parser):
    """Parser for markdown documents."""

    extensions = (".md", ".markdown")

    def parse(self, path: Path) -> SourceDocument:
        text = path.read_text(encoding="utf-8")
        return SourceDocument(text=text, source_name=path.name, source_type="markdown")


class PdfParser(Parser):
    """Parser for PDF documents via pypdf."""

    extensions = (".pdf",)

    def parse(self, path: Path) -> SourceDocument:
        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
        text = "\n\n".join(page.strip() for page in pages if page.strip())
        return SourceDocument(text=text, source_name=path.name, source_type="pdf")


class HtmlParser(Parser):
    """Parser for saved HTML pages."""

    extensions = (".html", ".htm")

    def parse(self, path: Path) -> SourceDocument:
        text = extract_text_from_html(path.read_text(encoding="utf-8"))
        return SourceDocument(text=text, source_name=path.name, source_type="text")


class ParserRegistry:
    """Maps file extension to parser implementation."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        for parser in parsers or [TextParser(), MarkdownParser(), PdfParser(), HtmlParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    def parse_path(self, path: str | Path) -> SourceDocument:
        file_path = Path(path)
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            supported = ", ".join(sorted(self._parsers))
            raise ValueError(
                f"Unsupported file type: {file_path.suffix or '<none>'}. Supported: {supported}"
            )
        size = file_path.stat().st_size
        if size > MAX_FILE_SIZE:
            raise ValueError(f'File "{file_path.name}" exceeds 10MB limit')
        return parser.parse(file_path)


def extract_text_from_html(html: str) -> str:
    """Extract readable text, preferring the main content area.

    Main content wins when it holds more than 200 characters; otherwise the
    whole body is used. Whitespace is collapsed.
    """

    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(", ".join(_NON_CONTENT_TAGS)):
        element.decompose()

    for selector in _MAIN_CONTENT_SELECTORS:
        main = " ".join(node.get_text(" ") for node in soup.select(selector))
        if main.strip():
            if len(main.strip()) > 200:
                return " ".join(main.split())
            break

    body = soup.body or soup
    return " ".join(body.get_text(" ").split())


def fetch_url(url: str, *, timeout: float = 30.0) -> SourceDocument:
    """Fetch a page and reduce it to plain text labeled with its hostname."""

    if not url.startswith(("http://", "https://")):
        raise ValueError("Invalid URL format")

    response = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    response.raise_for_status()

    content_type = response.headers.get("content-type", "")
    text = extract_text_from_html(response.text) if "text/html" in content_type else response.text
    return SourceDocument(text=text, source_name=urlparse(url).hostname or url, source_type="url")
