"""Shared test fixtures.

Provides a resolver pinned to a fixed clock and an in-memory calendar
backend, so the dispatcher can be exercised without Google.

Usage:
    def test_something(dispatcher, fake_calendar):
        text = dispatcher.call("list_calendars", {})
        ...
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import pytest
from dateutil import parser as date_parser

from calendar_mcp.dispatcher import OperationDispatcher
from calendar_mcp.errors import RemoteError
from calendar_mcp.integrations.base import CalendarBackend
from calendar_mcp.timeparse import TimeExpressionResolver


ZONE_NAME = "America/New_York"
TZ = ZoneInfo(ZONE_NAME)

# A Tuesday
FIXED_NOW = datetime(2025, 4, 1, 10, 30, 15, tzinfo=TZ)


# ─────────────────────────────────────────────────────────────────────────────
# Fake Backend
# ─────────────────────────────────────────────────────────────────────────────


class FakeCalendar(CalendarBackend):
    """In-memory stand-in for the Google Calendar API."""

    def __init__(self):
        self.events: Dict[str, Dict[str, Dict[str, Any]]] = {"primary": {}}
        self.calendars: List[Dict[str, Any]] = [
            {"id": "me@example.com", "summary": "Me", "accessRole": "owner", "primary": True},
            {"id": "team@example.com", "summary": "Team", "accessRole": "reader"},
        ]
        self.calls: List[tuple] = []
        self._next_id = 1

    def add_event(self, calendar_id: str = "primary", **fields: Any) -> Dict[str, Any]:
        event_id = fields.pop("id", None) or f"evt{self._next_id}"
        self._next_id += 1
        event = {
            "id": event_id,
            "htmlLink": f"https://calendar.example.com/{event_id}",
            "created": "2025-03-01T12:00:00.000Z",
            **fields,
        }
        self.events.setdefault(calendar_id, {})[event_id] = event
        return event

    def is_connected(self) -> bool:
        return True

    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("insert", calendar_id, body))
        return self.add_event(calendar_id, **body)

    def get_event(self, calendar_id: str, event_id: str) -> Dict[str, Any]:
        self.calls.append(("get", calendar_id, event_id))
        try:
            return self.events[calendar_id][event_id]
        except KeyError:
            raise RemoteError("Not Found", status=404)

    def patch_event(self, calendar_id: str, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("patch", calendar_id, event_id, body))
        event = self.get_event(calendar_id, event_id)
        event.update(body)
        return event

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        self.calls.append(("delete", calendar_id, event_id))
        self.get_event(calendar_id, event_id)
        del self.events[calendar_id][event_id]

    def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
        max_results: int,
        order_by: Optional[str] = None,
        single_events: bool = True,
    ) -> List[Dict[str, Any]]:
        self.calls.append(("list", calendar_id, time_min, time_max, max_results, order_by, single_events))
        in_window = [
            event for event in self.events.get(calendar_id, {}).values()
            if time_min <= date_parser.isoparse(event["start"]["dateTime"]) < time_max
        ]
        in_window.sort(key=lambda event: date_parser.isoparse(event["start"]["dateTime"]))
        return in_window[:max_results]

    def list_calendars(self) -> List[Dict[str, Any]]:
        self.calls.append(("calendars",))
        return self.calendars


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def resolver() -> TimeExpressionResolver:
    return TimeExpressionResolver(TZ, now=lambda: FIXED_NOW)


@pytest.fixture
def fake_calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture
def dispatcher(fake_calendar, resolver) -> OperationDispatcher:
    return OperationDispatcher(fake_calendar, resolver, ZONE_NAME, search_candidate_limit=100)
