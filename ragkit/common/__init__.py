"""
Ragkit Common Module

Shared infrastructure: configuration, errors, session state and the LLM client.
"""

from .config import RagConfig, load_config
from .errors import RagToolError, InvalidArgument, SessionNotFound, OracleFailure
from .llm_client import LLMClient, resolve_provider
from .session_store import SessionStore, mint_session_id

__all__ = [
    "RagConfig",
    "load_config",
    "RagToolError",
    "InvalidArgument",
    "SessionNotFound",
    "OracleFailure",
    "LLMClient",
    "resolve_provider",
    "SessionStore",
    "mint_session_id",
]
