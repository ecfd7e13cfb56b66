"""
Retriever - Session-Scoped Retrieval and Synthesis

Searches the document index and synthesizes answers using an LLM.

Key Components:
- ToolPipeline: search / summarize / cite over a shared SessionStore
- Synthesizer: LLM-based answer synthesis from stored documents
- RetrievalOracle / SynthesisOracle: capability interfaces for the backends

Pipeline:
1. Search the index, store ranked results under a session id
2. Summarize: answer a question from the stored results
3. Cite: return attribution for every stored result
"""

from .oracles import RetrievalHit, RetrievalResponse, RetrievalOracle, SynthesisOracle
from .synthesizer import Synthesizer
from .pipeline import ToolPipeline, ToolResponse

__all__ = [
    "RetrievalHit",
    "RetrievalResponse",
    "RetrievalOracle",
    "SynthesisOracle",
    "Synthesizer",
    "ToolPipeline",
    "ToolResponse",
]
