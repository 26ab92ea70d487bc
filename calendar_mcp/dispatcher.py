"""
Tool call dispatch.

OperationDispatcher takes a tool name and raw arguments, validates them
against the registered schema, resolves time expressions, calls the
calendar backend and renders the reply text. Every failure, whether bad
input, an unparsable time or a Google API error, comes back as an
OperationResult with ok=False rather than as an exception.

The one piece of cross-field logic (end relative to start, timeMax
relative to timeMin, zones carried over from the stored event) lives in
the pure function derive_defaults so it can be tested without a backend.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import CalendarAgentError
from .formatting import (
    TimeDisplayFormatter,
    render_calendars,
    render_deleted,
    render_event_details,
    render_event_list,
    render_event_saved,
    render_search_results,
)
from .integrations.base import CalendarBackend
from .models import CalendarTimeField, OperationResult, ToolName
from .schemas import OPERATION_SCHEMAS, OperationSchemaRegistry
from .timeparse import TimeExpressionResolver

logger = logging.getLogger(__name__)


# Default width of the listing window when timeMax is not given
WINDOW_DAYS = {
    ToolName.LIST_EVENTS: 7,
    ToolName.SEARCH_EVENTS: 30,
}


# --------------------------------------------------------------------------- #
# Cross-field defaults
# --------------------------------------------------------------------------- #

@dataclass
class ResolvedTimes:
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    start_zone: Optional[str] = None
    end_zone: Optional[str] = None
    time_min: Optional[datetime] = None
    time_max: Optional[datetime] = None


def _stored_start(existing: Optional[Dict[str, Any]], resolver: TimeExpressionResolver) -> datetime:
    """Start of a stored event as an anchor; all-day starts anchor at local midnight."""
    field = (existing or {}).get("start")
    if not field:
        return resolver.now()
    try:
        stored = CalendarTimeField.model_validate(field)
    except PydanticValidationError:
        return resolver.now()
    if stored.date_time is not None:
        return resolver.localize(stored.date_time)
    # All-day start: anchor on that civil date at local midnight, not on now
    return resolver.localize(datetime.combine(stored.all_day, time()))


def _stored_zone(existing: Optional[Dict[str, Any]], key: str) -> Optional[str]:
    return ((existing or {}).get(key) or {}).get("timeZone")


def derive_defaults(
    operation: ToolName,
    request: BaseModel,
    resolver: TimeExpressionResolver,
    default_zone: str,
    existing: Optional[Dict[str, Any]] = None,
) -> ResolvedTimes:
    """
    Resolve the time fields of a validated request.

    Args:
        operation: Tool being called
        request: Validated input model for that tool
        resolver: Resolver used for every expression
        default_zone: Zone name used when the stored event has none
        existing: Stored event, for update_event

    Raises:
        ParseError: If any expression cannot be resolved
    """
    times = ResolvedTimes()

    if operation == ToolName.CREATE_EVENT:
        times.start = resolver.resolve(request.start)
        times.end = resolver.resolve(request.end, reference=times.start)
        times.start_zone = times.end_zone = default_zone

    elif operation == ToolName.UPDATE_EVENT:
        if request.start:
            times.start = resolver.resolve(request.start)
            times.start_zone = _stored_zone(existing, "start") or default_zone
        if request.end:
            reference = times.start if times.start is not None else _stored_start(existing, resolver)
            times.end = resolver.resolve(request.end, reference=reference)
            times.end_zone = _stored_zone(existing, "end") or default_zone

    elif operation in WINDOW_DAYS:
        times.time_min = resolver.resolve(request.timeMin) if request.timeMin else resolver.now()
        if request.timeMax:
            times.time_max = resolver.resolve(request.timeMax, reference=times.time_min)
        else:
            times.time_max = times.time_min + timedelta(days=WINDOW_DAYS[operation])

    return times


def matches_query(event: Dict[str, Any], query: str) -> bool:
    """Case-insensitive substring match on title, description and location."""
    needle = query.lower()
    return any(
        needle in (event.get(key) or "").lower()
        for key in ("summary", "description", "location")
    )


# --------------------------------------------------------------------------- #
# Dispatcher
# --------------------------------------------------------------------------- #

class OperationDispatcher:
    """
    Validate, resolve and execute calendar tool calls.

    Usage:
        dispatcher = OperationDispatcher(CalendarIntegration(), resolver, "Europe/Paris")
        text = dispatcher.call("create_event", {"summary": "Sync", "start": "tomorrow at 10am", "end": "1 hour later"})
    """

    def __init__(
        self,
        backend: CalendarBackend,
        resolver: TimeExpressionResolver,
        default_zone: str,
        registry: OperationSchemaRegistry = OPERATION_SCHEMAS,
        search_candidate_limit: int = 100,
    ):
        self.backend = backend
        self.resolver = resolver
        self.default_zone = default_zone
        self.registry = registry
        self.search_candidate_limit = search_candidate_limit
        self.formatter = TimeDisplayFormatter(resolver.tz)
        self._handlers: Dict[ToolName, Callable[[BaseModel], str]] = {
            ToolName.CREATE_EVENT: self._create_event,
            ToolName.GET_EVENT: self._get_event,
            ToolName.UPDATE_EVENT: self._update_event,
            ToolName.DELETE_EVENT: self._delete_event,
            ToolName.LIST_EVENTS: self._list_events,
            ToolName.SEARCH_EVENTS: self._search_events,
            ToolName.LIST_CALENDARS: self._list_calendars,
        }

    def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> OperationResult:
        logger.info(f"[{name.upper()}] {arguments}")
        try:
            request = self.registry.validate(name, arguments)
            payload = self._handlers[ToolName(name)](request)
        except CalendarAgentError as e:
            logger.warning(f"{name} failed: {e.message}")
            return OperationResult.failure(e.message)
        except Exception as e:
            logger.error(f"Unexpected error in {name}: {e}", exc_info=True)
            return OperationResult.failure(str(e))
        return OperationResult.success(payload)

    def call(self, name: str, arguments: Optional[Dict[str, Any]]) -> str:
        """Dispatch and render to the single text reply."""
        return self.dispatch(name, arguments).render()

    def _times(self, operation: ToolName, request: BaseModel, existing: Optional[Dict[str, Any]] = None) -> ResolvedTimes:
        return derive_defaults(operation, request, self.resolver, self.default_zone, existing)

    # ----------------------------------------------------------------------- #
    # Handlers
    # ----------------------------------------------------------------------- #

    def _create_event(self, request: BaseModel) -> str:
        times = self._times(ToolName.CREATE_EVENT, request)

        body: Dict[str, Any] = {
            "summary": request.summary,
            "start": CalendarTimeField.from_instant(times.start, times.start_zone).to_api(),
            "end": CalendarTimeField.from_instant(times.end, times.end_zone).to_api(),
        }
        if request.description:
            body["description"] = request.description
        if request.location:
            body["location"] = request.location
        if request.reminders:
            body["reminders"] = request.reminders.model_dump(exclude_none=True)
        if request.attendees:
            body["attendees"] = [{"email": email} for email in request.attendees]

        event = self.backend.insert_event(request.calendarId, body)
        return render_event_saved(event, self.formatter, "created")

    def _get_event(self, request: BaseModel) -> str:
        event = self.backend.get_event(request.calendarId, request.eventId)
        return render_event_details(event, self.formatter)

    def _update_event(self, request: BaseModel) -> str:
        existing = self.backend.get_event(request.calendarId, request.eventId)
        times = self._times(ToolName.UPDATE_EVENT, request, existing)

        body: Dict[str, Any] = {}
        for key in ("summary", "description", "location"):
            value = getattr(request, key)
            if value:
                body[key] = value
        if times.start is not None:
            body["start"] = CalendarTimeField.from_instant(times.start, times.start_zone).to_api()
        if times.end is not None:
            body["end"] = CalendarTimeField.from_instant(times.end, times.end_zone).to_api()
        if request.attendees:
            body["attendees"] = [{"email": email} for email in request.attendees]

        event = self.backend.patch_event(request.calendarId, request.eventId, body)
        return render_event_saved(event, self.formatter, "updated")

    def _delete_event(self, request: BaseModel) -> str:
        self.backend.delete_event(request.calendarId, request.eventId)
        return render_deleted(request.eventId, request.calendarId)

    def _list_events(self, request: BaseModel) -> str:
        times = self._times(ToolName.LIST_EVENTS, request)
        events = self.backend.list_events(
            request.calendarId,
            times.time_min,
            times.time_max,
            max_results=request.maxResults,
            order_by=request.orderBy,
            single_events=True,
        )
        return render_event_list(events, times.time_min, times.time_max, self.formatter)

    def _search_events(self, request: BaseModel) -> str:
        times = self._times(ToolName.SEARCH_EVENTS, request)

        # No server-side text filter: over-fetch the window, filter, then truncate
        candidates = self.backend.list_events(
            request.calendarId,
            times.time_min,
            times.time_max,
            max_results=self.search_candidate_limit,
            single_events=True,
        )
        events: List[Dict[str, Any]] = [e for e in candidates if matches_query(e, request.query)]
        return render_search_results(events[: request.maxResults], request.query, self.formatter)

    def _list_calendars(self, request: BaseModel) -> str:
        return render_calendars(self.backend.list_calendars())


# --------------------------------------------------------------------------- #
# Shared Instance Helper
# --------------------------------------------------------------------------- #

@lru_cache
def get_dispatcher() -> OperationDispatcher:
    """Dispatcher bound to the Google backend and the configured zone."""
    from .config import settings
    from .integrations.google_calendar.client import get_calendar

    return OperationDispatcher(
        get_calendar(),
        TimeExpressionResolver(settings.tz),
        settings.default_timezone,
        search_candidate_limit=settings.search_candidate_limit,
    )
