"""
Elasticsearch RAG MCP Server.

Transport: stdio.

Tools:
- search_docs: full-text search, stores the results under a session id
- summarize_results: LLM answer built from a session's results
- cite_sources: citations for a session's results

Every tool returns a text narrative plus structured content. Failures are
reported as tool errors (isError) carrying the message.
"""

import argparse
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from dotenv import load_dotenv
from pydantic import Field

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from mcp.types import ToolAnnotations

from ragkit.common.config import RagConfig, load_config
from ragkit.common.errors import RagToolError
from ragkit.common.llm_client import LLMClient, resolve_provider
from ragkit.common.session_store import SessionStore
from ragkit.retriever.pipeline import ToolPipeline, ToolResponse
from ragkit.retriever.synthesizer import Synthesizer
from rag_mcp.adapter import ElasticsearchClient

logger = logging.getLogger("ragkit.mcp")

DEFAULT_SERVER_NAME = "Elasticsearch RAG MCP"

SERVER_INSTRUCTIONS = (
    "A RAG server using Elasticsearch. Provides tools for document search, "
    "result summarization, and source citation. Call search_docs first, then "
    "pass its session_id to summarize_results and cite_sources."
)


def _to_tool_result(response: ToolResponse) -> ToolResult:
    return ToolResult(content=response.text, structured_content=response.structured)


class MCPServerApp:
    """
    Main application class for the MCP server.

    The pipeline (and the session store inside it) is built once at startup
    and shared by every tool call.
    Its backend connections are closed when the server stops.
    """
    def __init__(
            self,
            pipeline: ToolPipeline,
            mcp_server_name: str = DEFAULT_SERVER_NAME,
        ) -> None:
        """
        Args:
            pipeline (ToolPipeline): Search/summarize/cite pipeline with its oracles and session store.
            mcp_server_name (str): The name of the MCP server.
        """
        self.pipeline = pipeline

        @asynccontextmanager
        async def lifespan(server: FastMCP):
            """Close backend connections when the server stops"""
            try:
                yield {}
            finally:
                await self.pipeline.close()
                logger.debug("Pipeline connections closed")

        self.mcp = FastMCP(name=mcp_server_name, instructions=SERVER_INSTRUCTIONS, lifespan=lifespan)

        # ---------- MCP Tools: Search ---------- #
        @self.mcp.tool(
            name="search_docs",
            description=(
                "Search for documents in Elasticsearch using full-text search. "
                "Returns the most relevant documents with their content, title, tags, and relevance score. "
                "Use this tool first to retrieve context before answering questions."
            ),
            annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=True)
        )
        async def tool_search_docs(
            query: Annotated[str, Field(description="The search query terms to find relevant documents")],
            max_results: Annotated[Optional[int], Field(description="Maximum number of results to return (default 5)")] = None,
            session_id: Annotated[Optional[str], Field(
                description="Session ID to store search context for later summarization and citation"
            )] = None,
        ) -> ToolResult:
            """
            Search the index and store the ranked results under a session.

            Returns:
                ToolResult: narrative plus {results, total, session_id}.
            """
            try:
                response = await self.pipeline.search(query, max_results=max_results, session_id=session_id)
            except RagToolError as exc:
                raise ToolError(str(exc)) from exc
            return _to_tool_result(response)

        # ---------- MCP Tools: Summarize ---------- #
        @self.mcp.tool(
            name="summarize_results",
            description=(
                "Summarize and synthesize information from previously retrieved documents to answer a user question. "
                "Requires a session_id from a previous search_docs call. "
                "Generates a coherent answer based on the retrieved content."
            ),
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=True)
        )
        async def tool_summarize_results(
            session_id: Annotated[str, Field(description="Session ID from the search_docs call")],
            question: Annotated[str, Field(description="The question to answer")],
            max_length: Annotated[int, Field(description="Maximum length of the summary in characters")] = 500,
        ) -> ToolResult:
            """
            Answer a question from the documents stored for a session.

            Returns:
                ToolResult: the marked summary plus {summary, sources_used}.
            """
            try:
                response = await self.pipeline.summarize(session_id, question, max_length=max_length)
            except RagToolError as exc:
                raise ToolError(str(exc)) from exc
            return _to_tool_result(response)

        # ---------- MCP Tools: Cite ---------- #
        @self.mcp.tool(
            name="cite_sources",
            description=(
                "Return citation information for documents used in the previous search. "
                "Provides document IDs, titles, and tags for proper attribution. "
                "Use this after summarize_results to provide references."
            ),
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True)
        )
        async def tool_cite_sources(
            session_id: Annotated[str, Field(description="Session ID from the search_docs call")],
        ) -> ToolResult:
            """
            Returns:
                ToolResult: citation list plus {citations}.
            """
            try:
                response = await self.pipeline.cite(session_id)
            except RagToolError as exc:
                raise ToolError(str(exc)) from exc
            return _to_tool_result(response)

    def run(self) -> None:
        """Runs the MCP server using stdio transport."""
        self.mcp.run(transport="stdio")


def build_pipeline(config: RagConfig) -> ToolPipeline:
    """Wire the production oracles and the session store from configuration."""
    es_cfg = config.elasticsearch
    retrieval = ElasticsearchClient(
        endpoint=es_cfg.endpoint,
        api_key=es_cfg.api_key,
        index=es_cfg.index,
        timeout=es_cfg.timeout,
    )

    llm_cfg = config.llm
    provider = resolve_provider(
        llm_cfg.provider,
        openai_api_key=llm_cfg.openai_api_key,
        anthropic_api_key=llm_cfg.anthropic_api_key,
        google_api_key=llm_cfg.google_api_key,
    )
    model = {
        "openai": llm_cfg.openai_model,
        "anthropic": llm_cfg.anthropic_model,
        "google": llm_cfg.google_model,
    }.get(provider, "")
    llm = LLMClient(
        provider=provider,
        model=model,
        openai_api_key=llm_cfg.openai_api_key,
        anthropic_api_key=llm_cfg.anthropic_api_key,
        google_api_key=llm_cfg.google_api_key,
    )
    if not llm.is_available:
        logger.warning("LLM client unavailable (provider=%s) - summarize_results will fail", provider)

    synthesizer = Synthesizer(
        llm,
        temperature=llm_cfg.temperature,
        max_tokens_cap=llm_cfg.max_tokens_cap,
    )
    sessions = SessionStore(
        capacity=config.session.capacity,
        ttl_seconds=config.session.ttl_seconds,
    )
    return ToolPipeline(
        retrieval=retrieval,
        synthesizer=synthesizer,
        sessions=sessions,
        default_max_results=config.search.default_max_results,
        excerpt_chars=config.search.excerpt_chars,
    )


def main() -> None:
    load_dotenv()
    config = load_config()

    parser = argparse.ArgumentParser(description="Run the Elasticsearch RAG MCP server (stdio).")
    parser.add_argument(
        "--server-name",
        default=os.getenv("MCP_SERVER_NAME", DEFAULT_SERVER_NAME),
        help="Advertised MCP server name.",
    )
    parser.add_argument(
        "--elasticsearch-endpoint",
        default=config.elasticsearch.endpoint,
        help="Elasticsearch URL.",
    )
    parser.add_argument(
        "--index",
        default=config.elasticsearch.index,
        help="Index to search.",
    )
    parser.add_argument(
        "--llm-provider",
        default=config.llm.provider,
        choices=("openai", "anthropic", "google", "auto"),
        help="LLM backend for summarize_results.",
    )
    parser.add_argument(
        "--session-capacity",
        type=int,
        default=config.session.capacity,
        help="Maximum number of sessions kept in memory.",
    )
    parser.add_argument(
        "--session-ttl",
        type=float,
        default=config.session.ttl_seconds,
        help="Seconds a session lives after its last search (0 = no expiry).",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (logs go to stderr).",
    )
    args = parser.parse_args()

    # stdout carries the MCP protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=args.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config.elasticsearch.endpoint = args.elasticsearch_endpoint
    config.elasticsearch.index = args.index
    config.llm.provider = args.llm_provider
    config.session.capacity = args.session_capacity
    config.session.ttl_seconds = args.session_ttl

    logger.info(
        "Starting %s (elasticsearch=%s, index=%s)",
        args.server_name, config.elasticsearch.endpoint, config.elasticsearch.index,
    )
    app = MCPServerApp(pipeline=build_pipeline(config), mcp_server_name=args.server_name)

    def _handle_shutdown(signum, frame):
        raise SystemExit(0)
    for sig in (signal.SIGINT, getattr(signal, "SIGTERM", None)):
        if sig is not None:
            signal.signal(sig, _handle_shutdown)

    app.run()


if __name__ == "__main__":
    main()
