"""
Tool input schemas.

One pydantic model per calendar tool. The models double as the JSON
schema advertised to the agent and as the validator applied to each
incoming call; absent optional fields are filled with their declared
defaults during validation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple, Type

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from .errors import UnknownOperationError, ValidationError
from .models import ToolName

TIME_EXPRESSION_HINT = "ISO format (YYYY-MM-DDTHH:MM:SS) or natural language like 'tomorrow at 2pm'"


# --------------------------------------------------------------------------- #
# Tool Input Schemas
# --------------------------------------------------------------------------- #

class ReminderOverride(BaseModel):
    method: Literal["email", "popup"] = Field(..., description="How the reminder is delivered")
    minutes: StrictInt = Field(..., ge=0, le=40320, description="Minutes before the event start")


class ReminderSettings(BaseModel):
    useDefault: Optional[StrictBool] = Field(None, description="Use the calendar's default reminders")
    overrides: Optional[List[ReminderOverride]] = Field(None, description="Custom reminders")


class CreateEventInput(BaseModel):
    """Input schema for creating a calendar event."""
    summary: StrictStr = Field(..., description="Event title/summary")
    description: Optional[StrictStr] = Field(None, description="Event description or details")
    location: Optional[StrictStr] = Field(None, description="Event location")
    start: StrictStr = Field(..., description=f"Start time in {TIME_EXPRESSION_HINT}")
    end: StrictStr = Field(
        ...,
        description="End time in ISO format or natural language like '3 hours later' (relative to start)",
    )
    attendees: Optional[List[StrictStr]] = Field(None, description="List of attendee email addresses")
    calendarId: StrictStr = Field("primary", description="Calendar ID (default: primary)")
    reminders: Optional[ReminderSettings] = Field(None, description="Reminder settings for the event")


class GetEventInput(BaseModel):
    """Input schema for retrieving an event."""
    eventId: StrictStr = Field(..., description="ID of the event to retrieve")
    calendarId: StrictStr = Field("primary", description="Calendar ID (default: primary)")


class UpdateEventInput(BaseModel):
    """Input schema for updating an event. Only provided fields change."""
    eventId: StrictStr = Field(..., description="ID of the event to update")
    calendarId: StrictStr = Field("primary", description="Calendar ID (default: primary)")
    summary: Optional[StrictStr] = Field(None, description="Updated event title/summary")
    description: Optional[StrictStr] = Field(None, description="Updated event description")
    location: Optional[StrictStr] = Field(None, description="Updated event location")
    start: Optional[StrictStr] = Field(None, description="Updated start time (ISO format or natural language)")
    end: Optional[StrictStr] = Field(None, description="Updated end time (ISO format or natural language)")
    attendees: Optional[List[StrictStr]] = Field(None, description="Updated list of attendee email addresses")


class DeleteEventInput(BaseModel):
    """Input schema for deleting an event."""
    eventId: StrictStr = Field(..., description="ID of the event to delete")
    calendarId: StrictStr = Field("primary", description="Calendar ID (default: primary)")


class ListEventsInput(BaseModel):
    """Input schema for listing events in a time window."""
    calendarId: StrictStr = Field("primary", description="Calendar ID (default: primary)")
    timeMin: Optional[StrictStr] = Field(None, description="Start time in ISO format or natural language (default: now)")
    timeMax: Optional[StrictStr] = Field(
        None, description="End time in ISO format or natural language (default: 7 days after timeMin)"
    )
    maxResults: StrictInt = Field(10, ge=1, le=2500, description="Maximum number of events to return (default: 10)")
    orderBy: Literal["startTime", "updated"] = Field("startTime", description="Sort order (default: startTime)")


class SearchEventsInput(BaseModel):
    """Input schema for searching events by text."""
    query: StrictStr = Field(..., description="Search query (e.g., 'meeting', 'john')")
    calendarId: StrictStr = Field("primary", description="Calendar ID (default: primary)")
    timeMin: Optional[StrictStr] = Field(None, description="Start time in ISO format or natural language (default: now)")
    timeMax: Optional[StrictStr] = Field(
        None, description="End time in ISO format or natural language (default: 30 days after timeMin)"
    )
    maxResults: StrictInt = Field(10, ge=1, le=2500, description="Maximum number of events to return (default: 10)")


class ListCalendarsInput(BaseModel):
    """Input schema for listing calendars (no arguments)."""


# --------------------------------------------------------------------------- #
# Registry
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class OperationSchema:
    name: ToolName
    description: str
    model: Type[BaseModel]

    def json_schema(self) -> Dict[str, Any]:
        return self.model.model_json_schema()


def describe_validation_error(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors to 'field: message; field: message'."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


class OperationSchemaRegistry:
    """Read-only lookup of tool schemas by name."""

    def __init__(self, schemas: Tuple[OperationSchema, ...]):
        self._schemas: Dict[str, OperationSchema] = {schema.name.value: schema for schema in schemas}

    def __iter__(self) -> Iterator[OperationSchema]:
        return iter(self._schemas.values())

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def get(self, name: str) -> OperationSchema:
        schema = self._schemas.get(name)
        if schema is None:
            raise UnknownOperationError(name)
        return schema

    def validate(self, name: str, arguments: Optional[Dict[str, Any]]) -> BaseModel:
        """
        Validate raw tool arguments and fill defaults.

        Raises:
            UnknownOperationError: If no tool is registered under `name`
            ValidationError: If arguments are missing or of the wrong type
        """
        schema = self.get(name)
        try:
            return schema.model.model_validate(arguments if arguments is not None else {})
        except PydanticValidationError as e:
            raise ValidationError(name, describe_validation_error(e))


OPERATION_SCHEMAS = OperationSchemaRegistry((
    OperationSchema(
        ToolName.CREATE_EVENT,
        "Creates a new event in Google Calendar",
        CreateEventInput,
    ),
    OperationSchema(
        ToolName.GET_EVENT,
        "Retrieves details of a specific calendar event",
        GetEventInput,
    ),
    OperationSchema(
        ToolName.UPDATE_EVENT,
        "Updates an existing calendar event",
        UpdateEventInput,
    ),
    OperationSchema(
        ToolName.DELETE_EVENT,
        "Deletes a calendar event",
        DeleteEventInput,
    ),
    OperationSchema(
        ToolName.LIST_EVENTS,
        "Lists calendar events within specified time range",
        ListEventsInput,
    ),
    OperationSchema(
        ToolName.SEARCH_EVENTS,
        "Searches for calendar events matching a query",
        SearchEventsInput,
    ),
    OperationSchema(
        ToolName.LIST_CALENDARS,
        "Lists all available calendars",
        ListCalendarsInput,
    ),
))
