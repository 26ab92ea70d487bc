"""Tests for the operation dispatcher and cross-field time defaults."""
from datetime import datetime, timedelta

import pytest

from calendar_mcp.dispatcher import derive_defaults, matches_query
from calendar_mcp.errors import ParseError, RemoteError
from calendar_mcp.models import ToolName
from calendar_mcp.schemas import OPERATION_SCHEMAS
from tests.conftest import FIXED_NOW, TZ, ZONE_NAME


def at(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


def derive(resolver, operation, arguments, existing=None):
    request = OPERATION_SCHEMAS.validate(operation.value, arguments)
    return derive_defaults(operation, request, resolver, ZONE_NAME, existing)


# ─────────────────────────────────────────────────────────────────────────────
# derive_defaults
# ─────────────────────────────────────────────────────────────────────────────


class TestDeriveDefaults:

    def test_create_end_relative_to_start(self, resolver):
        times = derive(resolver, ToolName.CREATE_EVENT, {
            "summary": "Review", "start": "2025-04-01T14:00:00", "end": "2 hours later",
        })
        assert times.start == at(2025, 4, 1, 14)
        assert times.end == at(2025, 4, 1, 16)
        assert times.start_zone == times.end_zone == ZONE_NAME

    def test_update_end_relative_to_new_start(self, resolver):
        existing = {"start": {"dateTime": "2025-05-01T08:00:00-04:00"}}
        times = derive(resolver, ToolName.UPDATE_EVENT, {
            "eventId": "e1", "start": "2025-04-10T13:00", "end": "1 hour later",
        }, existing)
        assert times.end == at(2025, 4, 10, 14)

    def test_update_end_relative_to_stored_start(self, resolver):
        existing = {
            "start": {"dateTime": "2025-05-01T08:00:00-04:00", "timeZone": "America/New_York"},
            "end": {"dateTime": "2025-05-01T09:00:00-04:00", "timeZone": "Europe/London"},
        }
        times = derive(resolver, ToolName.UPDATE_EVENT, {"eventId": "e1", "end": "3 hours later"}, existing)
        assert times.start is None
        assert times.end == at(2025, 5, 1, 11)
        assert times.end_zone == "Europe/London"

    def test_update_end_relative_to_all_day_start(self, resolver):
        existing = {"start": {"date": "2025-05-01"}}
        times = derive(resolver, ToolName.UPDATE_EVENT, {"eventId": "e1", "end": "2 hours later"}, existing)
        assert times.end == at(2025, 5, 1, 2)

    def test_update_end_relative_to_now_without_stored_start(self, resolver):
        times = derive(resolver, ToolName.UPDATE_EVENT, {"eventId": "e1", "end": "2 hours later"}, {})
        assert times.end == FIXED_NOW + timedelta(hours=2)
        assert times.end_zone == ZONE_NAME

    def test_update_start_keeps_stored_zone(self, resolver):
        existing = {"start": {"dateTime": "2025-05-01T08:00:00+09:00", "timeZone": "Asia/Tokyo"}}
        times = derive(resolver, ToolName.UPDATE_EVENT, {"eventId": "e1", "start": "tomorrow"}, existing)
        assert times.start == at(2025, 4, 2, 9)
        assert times.start_zone == "Asia/Tokyo"
        assert times.end is None

    def test_list_window_defaults_to_seven_days(self, resolver):
        times = derive(resolver, ToolName.LIST_EVENTS, {"timeMin": "2025-04-01T00:00:00"})
        assert times.time_min == at(2025, 4, 1)
        assert times.time_max == at(2025, 4, 8)

    def test_search_window_defaults_to_thirty_days_from_now(self, resolver):
        times = derive(resolver, ToolName.SEARCH_EVENTS, {"query": "x"})
        assert times.time_min == FIXED_NOW
        assert times.time_max == FIXED_NOW + timedelta(days=30)

    def test_time_max_relative_to_time_min(self, resolver):
        times = derive(resolver, ToolName.LIST_EVENTS, {"timeMin": "2025-04-01T08:00", "timeMax": "2 days later"})
        assert times.time_max == at(2025, 4, 3, 8)

    def test_no_time_fields(self, resolver):
        times = derive(resolver, ToolName.GET_EVENT, {"eventId": "e1"})
        assert times.start is None and times.time_min is None

    def test_unparsable_start(self, resolver):
        with pytest.raises(ParseError):
            derive(resolver, ToolName.CREATE_EVENT, {"summary": "S", "start": "next blorpday", "end": "now"})


def test_matches_query_is_case_insensitive():
    assert matches_query({"summary": "Team Sync"}, "sync")
    assert matches_query({"summary": "Lunch", "location": "Board Room"}, "BOARD")
    assert matches_query({"description": "quarterly planning"}, "Plan")
    assert not matches_query({"summary": "Lunch", "description": None}, "sync")


# ─────────────────────────────────────────────────────────────────────────────
# Dispatcher
# ─────────────────────────────────────────────────────────────────────────────


class TestCreateEvent:

    def test_creates_with_resolved_times(self, dispatcher, fake_calendar):
        result = dispatcher.dispatch("create_event", {
            "summary": "Planning",
            "start": "2025-04-01T14:00:00",
            "end": "2 hours later",
            "location": "Room 1",
            "attendees": ["a@example.com"],
            "reminders": {"useDefault": False, "overrides": [{"method": "popup", "minutes": 15}]},
        })

        assert result.ok
        _, calendar_id, body = fake_calendar.calls[0]
        assert calendar_id == "primary"
        assert body["start"] == {"dateTime": "2025-04-01T14:00:00-04:00", "timeZone": ZONE_NAME}
        assert body["end"] == {"dateTime": "2025-04-01T16:00:00-04:00", "timeZone": ZONE_NAME}
        assert body["attendees"] == [{"email": "a@example.com"}]
        assert body["reminders"] == {"useDefault": False, "overrides": [{"method": "popup", "minutes": 15}]}
        assert body["location"] == "Room 1"
        assert "description" not in body

    def test_reply_text(self, dispatcher):
        text = dispatcher.call("create_event", {
            "summary": "Planning", "start": "2025-04-01T14:00:00", "end": "2 hours later",
        })
        assert text == (
            "Event created successfully!\n"
            "Event ID: evt1\n"
            "Title: Planning\n"
            "Start: Tuesday, April 1, 2025 at 2:00 PM EDT\n"
            "End: Tuesday, April 1, 2025 at 4:00 PM EDT\n"
            "Link: https://calendar.example.com/evt1"
        )

    def test_unparsable_end_is_an_error_reply(self, dispatcher, fake_calendar):
        text = dispatcher.call("create_event", {"summary": "S", "start": "now", "end": "next blorpday"})
        assert text == "Error: Unable to parse date/time: next blorpday"
        assert fake_calendar.calls == []

    def test_missing_summary(self, dispatcher):
        result = dispatcher.dispatch("create_event", {"start": "now", "end": "1 hour later"})
        assert not result.ok
        assert result.render().startswith("Error: Invalid arguments for create_event: summary:")


class TestReadAndDelete:

    def test_get_event(self, dispatcher, fake_calendar):
        fake_calendar.add_event(
            id="e1", summary="Standup",
            start={"dateTime": "2025-04-02T09:00:00-04:00"}, end={"dateTime": "2025-04-02T09:15:00-04:00"},
        )
        text = dispatcher.call("get_event", {"eventId": "e1"})
        assert text.startswith("Event Details:\nID: e1\nTitle: Standup\n")
        assert "Start: Wednesday, April 2, 2025 at 9:00 AM EDT" in text

    def test_get_event_with_extreme_timestamp(self, dispatcher, fake_calendar):
        fake_calendar.add_event(id="e2", summary="Epoch", start={"dateTime": "0001-01-01T00:00:00+14:00"})
        text = dispatcher.call("get_event", {"eventId": "e2"})
        assert text.startswith("Event Details:\nID: e2\n")
        assert "Start: 0001-01-01T00:00:00+14:00" in text

    def test_get_missing_event(self, dispatcher):
        assert dispatcher.call("get_event", {"eventId": "nope"}) == "Error: Not Found"

    def test_delete_event(self, dispatcher, fake_calendar):
        fake_calendar.add_event("work", id="e9", summary="Old")
        text = dispatcher.call("delete_event", {"eventId": "e9", "calendarId": "work"})
        assert text == "Event with ID e9 has been successfully deleted from calendar work."
        assert "e9" not in fake_calendar.events["work"]


class TestUpdateEvent:

    def test_patch_only_supplied_fields(self, dispatcher, fake_calendar):
        fake_calendar.add_event(
            id="e1", summary="Old",
            start={"dateTime": "2025-04-02T09:00:00-04:00", "timeZone": "America/Chicago"},
            end={"dateTime": "2025-04-02T10:00:00-04:00", "timeZone": "America/Chicago"},
        )
        result = dispatcher.dispatch("update_event", {"eventId": "e1", "summary": "New", "end": "3 hours later"})

        assert result.ok
        patch = next(call for call in fake_calendar.calls if call[0] == "patch")
        body = patch[3]
        assert body == {
            "summary": "New",
            "end": {"dateTime": "2025-04-02T12:00:00-04:00", "timeZone": "America/Chicago"},
        }
        assert result.payload.startswith("Event updated successfully!\nEvent ID: e1\nTitle: New\n")

    def test_attendees_replaced(self, dispatcher, fake_calendar):
        fake_calendar.add_event(id="e1", summary="S")
        dispatcher.call("update_event", {"eventId": "e1", "attendees": ["x@example.com", "y@example.com"]})
        patch = next(call for call in fake_calendar.calls if call[0] == "patch")
        body = patch[3]
        assert body == {"attendees": [{"email": "x@example.com"}, {"email": "y@example.com"}]}

    def test_update_missing_event(self, dispatcher, fake_calendar):
        assert dispatcher.call("update_event", {"eventId": "nope", "summary": "x"}) == "Error: Not Found"
        assert not any(call[0] == "patch" for call in fake_calendar.calls)


class TestListing:

    def _seed(self, fake_calendar):
        fake_calendar.add_event(
            id="a", summary="Team Sync", start={"dateTime": "2025-04-02T10:00:00-04:00"},
            end={"dateTime": "2025-04-02T10:30:00-04:00"},
        )
        fake_calendar.add_event(
            id="b", summary="Dentist", location="Main St", start={"dateTime": "2025-04-03T15:00:00-04:00"},
            end={"dateTime": "2025-04-03T16:00:00-04:00"},
        )
        fake_calendar.add_event(
            id="c", summary="Offsite", description="sync on roadmap", start={"dateTime": "2025-04-20T09:00:00-04:00"},
            end={"dateTime": "2025-04-20T17:00:00-04:00"},
        )

    def test_list_events_window_and_defaults(self, dispatcher, fake_calendar):
        self._seed(fake_calendar)
        text = dispatcher.call("list_events", {"timeMin": "2025-04-01T00:00:00"})

        _, calendar_id, time_min, time_max, max_results, order_by, single_events = fake_calendar.calls[0]
        assert (calendar_id, max_results, order_by, single_events) == ("primary", 10, "startTime", True)
        assert time_min == at(2025, 4, 1)
        assert time_max == at(2025, 4, 8)
        assert text.startswith("Found 2 events between 4/1/2025 and 4/8/2025:\n\n1. Team Sync (ID: a)\n")
        assert "2. Dentist (ID: b)\n" in text
        assert "   Where: Main St\n" in text

    def test_list_events_empty(self, dispatcher):
        text = dispatcher.call("list_events", {"timeMin": "2025-06-01", "timeMax": "2025-06-02"})
        assert text == "No events found in the specified time range (6/1/2025 - 6/2/2025)."

    def test_search_is_case_insensitive(self, dispatcher, fake_calendar):
        self._seed(fake_calendar)
        text = dispatcher.call("search_events", {"query": "sync"})

        list_call = fake_calendar.calls[0]
        assert list_call[4] == 100
        assert list_call[5] is None
        assert text.startswith('Found 2 events matching "sync":\n\n1. Team Sync (ID: a)\n')
        assert "2. Offsite (ID: c)" in text

    def test_search_truncates_after_filtering(self, dispatcher, fake_calendar):
        self._seed(fake_calendar)
        text = dispatcher.call("search_events", {"query": "SYNC", "maxResults": 1})
        assert text.startswith('Found 1 events matching "SYNC":')
        assert "Offsite" not in text

    def test_search_without_matches(self, dispatcher, fake_calendar):
        self._seed(fake_calendar)
        text = dispatcher.call("search_events", {"query": "yoga"})
        assert text == 'No events found matching "yoga" in the specified time range.'

    def test_list_calendars(self, dispatcher):
        text = dispatcher.call("list_calendars", {})
        assert text.startswith("Found 2 calendars:\n\n1. Me (ID: me@example.com)\n   Access: owner\n   Primary: Yes\n")


class TestErrors:

    def test_unknown_tool(self, dispatcher):
        result = dispatcher.dispatch("send_fax", {})
        assert not result.ok
        assert result.render() == "Error: Unknown tool: send_fax"

    def test_remote_error_is_rendered(self, dispatcher, fake_calendar, monkeypatch):
        def fail():
            raise RemoteError("Rate Limit Exceeded", status=429)

        monkeypatch.setattr(fake_calendar, "list_calendars", fail)
        assert dispatcher.call("list_calendars", {}) == "Error: Rate Limit Exceeded"

    def test_unexpected_exception_is_rendered(self, dispatcher, fake_calendar, monkeypatch):
        def fail(calendar_id, event_id):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(fake_calendar, "get_event", fail)
        assert dispatcher.call("get_event", {"eventId": "e1"}) == "Error: connection reset"
