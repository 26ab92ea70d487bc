"""
Google Calendar tools for tool-calling agents.

This package contains:
- Natural-language time expression resolution
- Tool input schemas and the operation dispatcher
- Google Calendar backend with OAuth credential handling
- MCP stdio server, langchain tools and a FastAPI surface
"""

__all__ = [
    "config",
    "errors",
    "models",
    "timeparse",
    "formatting",
    "schemas",
    "dispatcher",
    "tools",
    "server",
    "api",
]
