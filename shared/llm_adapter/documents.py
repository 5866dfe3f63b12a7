"""
Prompt assembly for attached documents.

Both adapters render documents the same way; only the container differs
(Anthropic content blocks vs a single OpenAI user message).
"""

from __future__ import annotations

from typing import Any

MAX_DOCUMENT_CHARS = 10_000
TRUNCATION_MARKER = "\n\n[Content truncated due to length...]"

DOCUMENTS_INTRO = (
    "I'm providing you with the following documents for context. "
    "Please use them to inform your response:"
)
DOCUMENTS_FALLBACK = (
    "I tried to share some documents with you, but there was an error "
    "processing them. Here is my request:"
)
USER_REQUEST_PREFIX = "User request:"


def truncate_content(content: str, limit: int = MAX_DOCUMENT_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def format_document(index: int, document: dict[str, Any]) -> str:
    """Render one document; ``index`` is 1-based. Raises on malformed input."""
    name = document["name"]
    content = document["content"]
    if not isinstance(name, str) or not isinstance(content, str):
        raise TypeError(f"document {index} must have string name and content")
    return f"Document {index}: {name}\n{truncate_content(content)}"


def document_sections(prompt: str, documents: list[dict[str, Any]]) -> list[str]:
    """Intro, one section per document in order, then the user request."""
    sections = [DOCUMENTS_INTRO]
    sections.extend(
        format_document(i, doc) for i, doc in enumerate(documents, start=1)
    )
    sections.append(f"{USER_REQUEST_PREFIX} {prompt}")
    return sections


def fallback_text(prompt: str) -> str:
    return f"{DOCUMENTS_FALLBACK}\n\n{prompt}"
