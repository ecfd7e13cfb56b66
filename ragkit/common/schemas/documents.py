"""
Document Schemas

Shapes for documents returned by the retrieval backend, the scored results
stored per session, and the citations projected from them.
"""

from typing import Tuple
from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A document as indexed in the search backend"""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    content: str
    tags: Tuple[str, ...] = ()


class ScoredDocument(Document):
    """A document plus its relevance score for one query"""
    score: float = Field(default=0.0, ge=0.0, description="Relevance, comparable only within one result set")

    def to_citation(self) -> "Citation":
        return Citation(
            id=self.id,
            title=self.title,
            tags=self.tags,
            relevance_score=self.score,
        )


class Citation(BaseModel):
    """Attribution-only projection of a scored document"""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    tags: Tuple[str, ...] = ()
    relevance_score: float
