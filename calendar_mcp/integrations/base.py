"""
Remote calendar collaborator interface.

The dispatcher only talks to this interface; CalendarIntegration backs it
with Google Calendar, tests back it with an in-memory fake. Every method
returns Calendar API v3 resources as plain dicts and raises RemoteError
on failure.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional


class CalendarBackend(ABC):

    @abstractmethod
    def is_connected(self) -> bool:
        """Check whether calls can be made (credentials present and valid)."""

    @abstractmethod
    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def get_event(self, calendar_id: str, event_id: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def patch_event(self, calendar_id: str, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def delete_event(self, calendar_id: str, event_id: str) -> None:
        ...

    @abstractmethod
    def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
        max_results: int,
        order_by: Optional[str] = None,
        single_events: bool = True,
    ) -> List[Dict[str, Any]]:
        """
        List events overlapping [time_min, time_max).

        single_events=True expands recurring events into instances.
        """

    @abstractmethod
    def list_calendars(self) -> List[Dict[str, Any]]:
        ...
