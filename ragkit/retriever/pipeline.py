"""
Tool Pipeline

Orchestrates the search, summarize and cite tools over a shared session
store and the two oracles.

Sequencing:
1. search: query the retrieval oracle, store the ranked results under a session id
2. summarize: answer a question from the stored results (top 5 go into the prompt)
3. cite: list every stored result for attribution

Each call returns both a narrative for display and a structured payload.
Failures raise RagToolError subclasses; the session store is written only
after a successful retrieval, and never by summarize or cite.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..common.errors import InvalidArgument, OracleFailure, RagToolError, SessionNotFound
from ..common.schemas import ScoredDocument
from ..common.session_store import Context, SessionStore, mint_session_id
from .formatting import DEFAULT_EXCERPT_CHARS, format_citation_narrative, format_search_narrative
from .oracles import RetrievalHit, RetrievalOracle
from .synthesizer import Synthesizer

logger = logging.getLogger("ragkit.retriever.pipeline")


@dataclass
class ToolResponse:
    """Rendered text plus the machine-readable result of one tool call"""
    text: str
    structured: Dict[str, Any]


class ToolPipeline:
    """
    Session-scoped retrieval and synthesis.

    The session store is injected so one instance can be shared by every
    tool call in the process.
    """

    def __init__(
        self,
        retrieval: RetrievalOracle,
        synthesizer: Synthesizer,
        sessions: SessionStore,
        default_max_results: int = 5,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
        session_id_factory: Callable[[], str] = mint_session_id,
    ):
        self._retrieval = retrieval
        self._synthesizer = synthesizer
        self._sessions = sessions
        self._default_max_results = default_max_results
        self._excerpt_chars = excerpt_chars
        self._new_session_id = session_id_factory

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    async def search(
        self,
        query: str,
        max_results: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> ToolResponse:
        """
        Retrieve ranked documents and store them as the session context.

        Args:
            query: Full-text query, must be non-empty
            max_results: Result cap (default from config)
            session_id: Session to write; a fresh id is minted when omitted

        Returns:
            ToolResponse with {results, total, session_id}
        """
        if not query or not query.strip():
            raise InvalidArgument("Query parameter is required")
        if max_results is None:
            max_results = self._default_max_results
        if max_results < 1:
            raise InvalidArgument("max_results must be a positive integer")

        try:
            response = await self._retrieval.search(query, max_results)
            results = [self._to_scored_document(hit) for hit in response.hits]
        except RagToolError:
            raise
        except Exception as e:
            logger.warning("Search failed for %r: %s", query, e)
            raise OracleFailure(f"Error searching documents: {e}") from e

        effective_id = session_id or self._new_session_id()
        self._sessions.put(effective_id, results)

        total = response.total if response.total is not None else len(results)
        logger.info("Search %r returned %d of %d hits (session %s)", query, len(results), total, effective_id)

        return ToolResponse(
            text=format_search_narrative(results, self._excerpt_chars),
            structured={
                "results": [doc.model_dump(mode="json") for doc in results],
                "total": total,
                "session_id": effective_id,
            },
        )

    async def summarize(
        self,
        session_id: str,
        question: str,
        max_length: int = 500,
    ) -> ToolResponse:
        """
        Answer a question from the session's stored documents.

        Returns:
            ToolResponse with {summary, sources_used}; sources_used counts the
            whole stored context, not just the documents that fit the prompt
        """
        if not session_id or not question or not question.strip():
            raise InvalidArgument("Both session_id and question parameters are required")
        if max_length < 1:
            raise InvalidArgument("max_length must be a positive integer")

        context = self._require_context(session_id)

        try:
            summary = await self._synthesizer.summarize(question, context, max_length)
        except Exception as e:
            logger.warning("Summary failed for session %s: %s", session_id, e)
            raise OracleFailure(f"Error generating summary: {e}") from e

        return ToolResponse(
            text=summary,
            structured={
                "summary": summary,
                "sources_used": len(context),
            },
        )

    async def cite(self, session_id: str) -> ToolResponse:
        """List citations for every stored document, in rank order."""
        if not session_id:
            raise InvalidArgument("session_id parameter is required")

        context = self._require_context(session_id)
        citations = [doc.to_citation() for doc in context]

        return ToolResponse(
            text=format_citation_narrative(citations),
            structured={"citations": [c.model_dump(mode="json") for c in citations]},
        )

    def _require_context(self, session_id: str) -> Context:
        context = self._sessions.get(session_id)
        if not context:
            raise SessionNotFound(session_id)
        return context

    async def close(self) -> None:
        """Release the retrieval oracle's connections, if it holds any."""
        close = getattr(self._retrieval, "close", None)
        if close is not None:
            await close()

    @staticmethod
    def _to_scored_document(hit: RetrievalHit) -> ScoredDocument:
        """Convert a raw hit to ScoredDocument; a missing score counts as 0.0"""
        score = hit.score if hit.score is not None else 0.0
        return ScoredDocument.model_validate({**hit.source, "score": score})
