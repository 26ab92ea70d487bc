"""
Integrations package for the calendar tool server.

Each remote service has its own subfolder; base.py holds the interface
the dispatcher depends on.
"""
from .base import CalendarBackend

__all__ = [
    "CalendarBackend",
]
