"""
Ragkit Document Schemas

Documents, scored search results and citations.
"""

from .documents import Document, ScoredDocument, Citation

__all__ = [
    "Document",
    "ScoredDocument",
    "Citation",
]
