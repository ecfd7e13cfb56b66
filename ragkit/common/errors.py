"""
Tool error taxonomy.

Every failure a tool call can report is one of these. They are raised by the
pipeline and turned into tool errors by the MCP server; none of them leaves
session state modified.
"""


class RagToolError(Exception):
    """Base class for errors surfaced to the tool caller."""


class InvalidArgument(RagToolError):
    """A required argument is missing, empty or out of range."""


class SessionNotFound(RagToolError):
    """The session id is unknown, expired or holds no results."""

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        super().__init__("No search results found for this session. Please call search_docs first.")


class OracleFailure(RagToolError):
    """The retrieval backend or the language model call failed."""
