"""
Oracle capability interfaces.

The pipeline only knows these two shapes; the Elasticsearch adapter and
LLMClient are the production bindings, tests pass deterministic stubs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


@dataclass
class RetrievalHit:
    """One ranked hit: the stored source fields and the backend's score"""
    source: Dict[str, Any]
    score: Optional[float] = None
    highlight: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class RetrievalResponse:
    """Ranked hits in descending relevance plus the total match count, if reported"""
    hits: List[RetrievalHit]
    total: Optional[int] = None


class RetrievalOracle(Protocol):
    """Ranked full-text retrieval.

    Expected ranking policy: title weighted above content and tags, fuzzy
    matching, and an extra boost for exact phrase matches in the title.
    """

    async def search(self, query: str, size: int) -> RetrievalResponse:  # pragma: no cover - protocol
        ...


class SynthesisOracle(Protocol):
    """Text completion from a system instruction and user content."""

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 512,
        temperature: Optional[float] = None,
    ) -> str:  # pragma: no cover - protocol
        ...
