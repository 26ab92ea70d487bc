"""
Google Calendar integration for the calendar tool server.

Provides the Calendar v3 backend and its connection-status routes.
"""
from .client import (
    CalendarIntegration,
    get_calendar,
)
from .routes import router

__all__ = [
    "CalendarIntegration",
    "get_calendar",
    # API Router
    "router",
]
