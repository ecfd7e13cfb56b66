"""Narrative rendering for tool responses."""

from typing import Sequence

from ..common.schemas import Citation, ScoredDocument

ELLIPSIS = "..."
DEFAULT_EXCERPT_CHARS = 200


def excerpt(text: str, limit: int = DEFAULT_EXCERPT_CHARS) -> str:
    """First `limit` characters of text; the ellipsis is added only if something was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def format_score(score: float) -> str:
    return f"{score:.2f}"


def format_search_narrative(
    results: Sequence[ScoredDocument],
    excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
) -> str:
    entries = [
        f"[{rank}] {doc.title} (score: {format_score(doc.score)})\n{excerpt(doc.content, excerpt_chars)}"
        for rank, doc in enumerate(results, 1)
    ]
    return f"Found {len(results)} relevant documents:\n\n" + "\n\n".join(entries)


def format_citation_narrative(citations: Sequence[Citation]) -> str:
    lines = [
        f'[{rank}] ID: {c.id}, Title: "{c.title}", Tags: {", ".join(c.tags)}, '
        f"Score: {format_score(c.relevance_score)}"
        for rank, c in enumerate(citations, 1)
    ]
    return f"Sources used ({len(citations)}):\n\n" + "\n".join(lines)
