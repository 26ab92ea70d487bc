"""
Google Calendar integration.

Implements CalendarBackend on the Google Calendar v3 API.

Setup:
1. Create a Google Cloud project and enable Google Calendar API
2. Create OAuth 2.0 credentials (Desktop app type)
3. Download the credentials JSON and save as '~/.calendar-mcp/gcp-oauth.keys.json'
4. Run `python -m calendar_mcp auth` to authorize the application
"""
from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

from googleapiclient.errors import HttpError

from ...errors import RemoteError
from ..base import CalendarBackend
from ..google.oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)


def _remote_error(action: str, e: HttpError) -> RemoteError:
    status = e.resp.status if e.resp is not None else None
    reason = e.reason or str(e)
    logger.warning(f"Calendar API error while {action}: {status} {reason}")
    return RemoteError(reason, status=status)


# --------------------------------------------------------------------------- #
# Google Calendar Integration Class
# --------------------------------------------------------------------------- #

class CalendarIntegration(GoogleOAuthClient, CalendarBackend):
    """
    Google Calendar backend for the tool dispatcher.

    Extends GoogleOAuthClient to inherit OAuth flow and credential management.

    Usage:
        calendar = CalendarIntegration()

        if not calendar.is_connected():
            calendar.authenticate()

        calendar.list_events("primary", time_min, time_max, max_results=10)
    """

    SERVICE_NAME = "google_calendar"
    API_NAME = "calendar"
    API_VERSION = "v3"
    SCOPES = ["https://www.googleapis.com/auth/calendar"]

    # ----------------------------------------------------------------------- #
    # Event Operations
    # ----------------------------------------------------------------------- #

    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        service = self._get_service()
        try:
            return service.events().insert(calendarId=calendar_id, body=body).execute()
        except HttpError as e:
            raise _remote_error("creating event", e)

    def get_event(self, calendar_id: str, event_id: str) -> Dict[str, Any]:
        service = self._get_service()
        try:
            return service.events().get(calendarId=calendar_id, eventId=event_id).execute()
        except HttpError as e:
            raise _remote_error(f"fetching event {event_id}", e)

    def patch_event(self, calendar_id: str, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        service = self._get_service()
        try:
            return service.events().patch(calendarId=calendar_id, eventId=event_id, body=body).execute()
        except HttpError as e:
            raise _remote_error(f"updating event {event_id}", e)

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        service = self._get_service()
        try:
            service.events().delete(calendarId=calendar_id, eventId=event_id).execute()
        except HttpError as e:
            raise _remote_error(f"deleting event {event_id}", e)

    def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
        max_results: int,
        order_by: Optional[str] = None,
        single_events: bool = True,
    ) -> List[Dict[str, Any]]:
        service = self._get_service()

        params: Dict[str, Any] = {
            "calendarId": calendar_id,
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "maxResults": max_results,
            "singleEvents": single_events,
        }
        if order_by:
            params["orderBy"] = order_by

        try:
            events_result = service.events().list(**params).execute()
        except HttpError as e:
            raise _remote_error("listing events", e)
        return events_result.get("items", [])

    # ----------------------------------------------------------------------- #
    # Calendar Operations
    # ----------------------------------------------------------------------- #

    def list_calendars(self) -> List[Dict[str, Any]]:
        service = self._get_service()
        try:
            result = service.calendarList().list().execute()
        except HttpError as e:
            raise _remote_error("listing calendars", e)
        return result.get("items", [])


# --------------------------------------------------------------------------- #
# Shared Instance Helper
# --------------------------------------------------------------------------- #

@lru_cache
def get_calendar() -> CalendarIntegration:
    """Get the process-wide Calendar integration (one shared client handle)."""
    return CalendarIntegration()
