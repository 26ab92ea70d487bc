"""
Error types raised below the dispatcher.

The dispatcher catches every one of these and renders it as an
"Error: <message>" result; none of them reach the tool-call transport.
"""
from __future__ import annotations

from typing import Optional


class CalendarAgentError(Exception):
    """Base class for errors rendered back to the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(CalendarAgentError):
    """A time expression could not be resolved to an instant."""

    def __init__(self, expression: str):
        super().__init__(f"Unable to parse date/time: {expression}")
        self.expression = expression


class ValidationError(CalendarAgentError):
    """Tool arguments are missing or malformed."""

    def __init__(self, operation: str, details: str):
        super().__init__(f"Invalid arguments for {operation}: {details}")
        self.operation = operation
        self.details = details


class UnknownOperationError(CalendarAgentError):
    """No schema is registered under the requested tool name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class RemoteError(CalendarAgentError):
    """The calendar service rejected or failed a request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotAuthenticatedError(RemoteError):
    """No usable OAuth credentials are stored."""

    def __init__(self, message: str = "Not authenticated. Run `python -m calendar_mcp auth` first."):
        super().__init__(message, status=401)


class ConfigurationError(CalendarAgentError):
    """Settings or key files are unusable."""
