"""Extractor interface and LangChain chat-model implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from hive_graph.types import SourceType

_SYSTEM_PROMPT = """
You are a knowledge extraction assistant. Analyze documents and create structured
"hex" nodes for a knowledge graph.

Each hex represents a distinct concept, topic, or piece of information. A hex has:
- id: lowercase alphanumeric with hyphens (e.g. "react-hooks-guide")
- name: short human-readable title (max 100 chars)
- type: "data" for information, "tool" for actionable items, "gateway" for entry points,
  "junction" for decision points
- description: 1-2 sentence summary
- entryHints: CRITICAL - phrases someone might search to find this hex. Include
  synonyms, related terms, and question phrasings. More is better.
- tags: categorization labels
- contents.data: the extracted information (structured JSON or plain text)
- edges: connections to other hexes from the same document (optional)

Guidelines:
1) Create 1-5 hexes depending on document complexity.
2) One comprehensive hex is fine for a simple document.
3) Create focused hexes for distinct sections.
4) entryHints drive search: include the main topic phrase, synonyms, likely
   questions, and key terms from the content.
5) Keep contents.data focused but complete.

Respond with valid JSON only, no markdown code blocks.
""".strip()

_HUMAN_PROMPT = """
Analyze this {source_type} document named "{source_name}" and create hex node(s):

---
{text}
---

Respond with JSON in this exact format:
{{
  "hexes": [
    {{
      "id": "example-topic",
      "name": "Example Topic",
      "type": "data",
      "description": "Brief description",
      "entryHints": ["example topic", "what is example", "example guide"],
      "tags": ["example", "guide"],
      "contents": {{ "data": "The extracted information..." }},
      "edges": []
    }}
  ],
  "summary": "Brief summary of what was extracted"
}}
""".strip()


class Extractor(ABC):
    """External collaborator turning chunk text into a JSON hex document."""

    @abstractmethod
    def extract(self, text: str, source_name: str, source_type: SourceType) -> str:
        """Return the raw response text for one chunk."""


class LangChainExtractor(Extractor):
    """Extractor backed by any LangChain chat model.

    Transport errors from the model propagate unchanged; the orchestrator
    records them as chunk failures. Retries belong to the model client.
    """

    def __init__(self, llm: Any) -> None:
        self.llm = llm
        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", _SYSTEM_PROMPT),
                ("human", _HUMAN_PROMPT),
            ]
        )
        self._chain = prompt | self.llm | StrOutputParser()

    def extract(self, text: str, source_name: str, source_type: SourceType) -> str:
        return self._chain.invoke(
            {"text": text, "source_name": source_name, "source_type": source_type}
        )
