"""
Human-readable rendering of calendar times and tool results.

TimeDisplayFormatter.format() is total: whatever it is handed (a Google
start/end dict, a datetime, an ISO string, None) it returns some text.
The render_* functions build the fixed per-tool reply templates.
"""
from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, Dict, List

from dateutil import parser as date_parser
from pydantic import ValidationError

from .models import CalendarTimeField

NOT_SPECIFIED = "Not specified"


class TimeDisplayFormatter:
    """Render instants in the given zone, e.g. 'Tuesday, April 1, 2025 at 2:00 PM EDT'."""

    def __init__(self, tz: tzinfo):
        self.tz = tz

    def format(self, value: Any) -> str:
        if value is None or value == "" or value == {}:
            return NOT_SPECIFIED

        if isinstance(value, dict) and (value.get("date") or value.get("dateTime")):
            try:
                value = CalendarTimeField.model_validate(value)
            except ValidationError:
                return str(value)

        if isinstance(value, CalendarTimeField):
            if value.all_day is not None:
                return self._all_day(value.all_day)
            return self._timestamp(value.date_time)

        if isinstance(value, datetime):
            return self._timestamp(value)

        if isinstance(value, date):
            return self._all_day(value)

        if isinstance(value, str):
            try:
                return self._timestamp(date_parser.isoparse(value))
            except (ValueError, OverflowError):
                return value

        return str(value)

    def format_date(self, moment: datetime) -> str:
        """Short numeric date, e.g. '4/1/2025'."""
        local = self._localize(moment)
        return f"{local.month}/{local.day}/{local.year}"

    def _localize(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.tz)
        return moment.astimezone(self.tz)

    def _all_day(self, day: date) -> str:
        # Civil date: never shifted through a zone
        return f"{_long_date(day)} (All day)"

    def _timestamp(self, moment: datetime) -> str:
        try:
            local = self._localize(moment)
        except (OverflowError, ValueError):
            # Out of range once shifted into the display zone
            return moment.isoformat()
        hour = local.hour % 12 or 12
        meridiem = "AM" if local.hour < 12 else "PM"
        return f"{_long_date(local)} at {hour}:{local:%M} {meridiem} {local.tzname()}"


def _long_date(day: date) -> str:
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


# --------------------------------------------------------------------------- #
# Reply templates
# --------------------------------------------------------------------------- #

def render_event_saved(event: Dict[str, Any], fmt: TimeDisplayFormatter, verb: str) -> str:
    return (
        f"Event {verb} successfully!\n"
        f"Event ID: {event.get('id')}\n"
        f"Title: {event.get('summary')}\n"
        f"Start: {fmt.format(event.get('start'))}\n"
        f"End: {fmt.format(event.get('end'))}\n"
        f"Link: {event.get('htmlLink')}"
    )


def render_event_details(event: Dict[str, Any], fmt: TimeDisplayFormatter) -> str:
    attendees_text = ""
    attendees = event.get("attendees") or []
    if attendees:
        lines = []
        for attendee in attendees:
            status = ""
            if attendee.get("responseStatus"):
                status = f" ({attendee['responseStatus'].replace('needsAction', 'pending')})"
            lines.append(f"- {attendee.get('email')}{status}")
        attendees_text = "\nAttendees:\n" + "\n".join(lines)

    reminders_text = ""
    overrides = (event.get("reminders") or {}).get("overrides") or []
    if overrides:
        reminders_text = "\nReminders:\n" + "\n".join(
            f"- {r.get('method')} ({r.get('minutes')} minutes before)" for r in overrides
        )

    created = fmt.format(event["created"]) if event.get("created") else "Unknown"

    return (
        "Event Details:\n"
        f"ID: {event.get('id')}\n"
        f"Title: {event.get('summary')}\n"
        f"Start: {fmt.format(event.get('start'))}\n"
        f"End: {fmt.format(event.get('end'))}\n"
        f"Location: {event.get('location') or NOT_SPECIFIED}\n"
        f"Description: {event.get('description') or 'No description'}\n"
        f"Created: {created}"
        f"{attendees_text}{reminders_text}\n"
        f"Link: {event.get('htmlLink')}"
    )


def render_event_lines(events: List[Dict[str, Any]], fmt: TimeDisplayFormatter) -> str:
    return "\n".join(
        f"{index}. {event.get('summary')} (ID: {event.get('id')})\n"
        f"   When: {fmt.format(event.get('start'))} - {fmt.format(event.get('end'))}\n"
        f"   Where: {event.get('location') or NOT_SPECIFIED}\n"
        for index, event in enumerate(events, start=1)
    )


def render_event_list(
    events: List[Dict[str, Any]],
    time_min: datetime,
    time_max: datetime,
    fmt: TimeDisplayFormatter,
) -> str:
    first, last = fmt.format_date(time_min), fmt.format_date(time_max)
    if not events:
        return f"No events found in the specified time range ({first} - {last})."
    return f"Found {len(events)} events between {first} and {last}:\n\n{render_event_lines(events, fmt)}"


def render_search_results(events: List[Dict[str, Any]], query: str, fmt: TimeDisplayFormatter) -> str:
    if not events:
        return f'No events found matching "{query}" in the specified time range.'
    return f'Found {len(events)} events matching "{query}":\n\n{render_event_lines(events, fmt)}'


def render_calendars(calendars: List[Dict[str, Any]]) -> str:
    if not calendars:
        return "No calendars found in your Google account."
    lines = "\n".join(
        f"{index}. {cal.get('summary')} (ID: {cal.get('id')})\n"
        f"   Access: {cal.get('accessRole')}\n"
        f"   Primary: {'Yes' if cal.get('primary') else 'No'}\n"
        for index, cal in enumerate(calendars, start=1)
    )
    return f"Found {len(calendars)} calendars:\n\n{lines}"


def render_deleted(event_id: str, calendar_id: str) -> str:
    return f"Event with ID {event_id} has been successfully deleted from calendar {calendar_id}."
