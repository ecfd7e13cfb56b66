"""
Ragkit

Retrieval-augmented generation tools: search a full-text index, summarize
the results with an LLM, and cite the sources, with the result set carried
across calls in a session.

Philosophy:
- Summaries are built only from retrieved documents
- Every synthesized answer is marked as AI generated
- Session state is bounded and lives only in memory

Usage:
    from ragkit.common import load_config, SessionStore, LLMClient
    from ragkit.common.schemas import ScoredDocument, Citation
    from ragkit.retriever import ToolPipeline, Synthesizer
"""

__version__ = "0.1.0"
