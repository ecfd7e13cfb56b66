"""
RAG MCP server: transport and backend bindings for the ragkit tools.
"""
