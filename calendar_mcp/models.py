from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --------------------------------------------------------------------------- #
# Tool Names
# --------------------------------------------------------------------------- #

class ToolName(str, Enum):
    CREATE_EVENT = "create_event"
    GET_EVENT = "get_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    LIST_EVENTS = "list_events"
    SEARCH_EVENTS = "search_events"
    LIST_CALENDARS = "list_calendars"


# --------------------------------------------------------------------------- #
# Calendar Time Field - Google's start/end representation
# --------------------------------------------------------------------------- #

class CalendarTimeField(BaseModel):
    """
    A point in time on an event: either an all-day civil date or a
    zoned timestamp, never both.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    all_day: Optional[date] = Field(None, alias="date")
    date_time: Optional[datetime] = Field(None, alias="dateTime")
    time_zone: Optional[str] = Field(None, alias="timeZone")

    @model_validator(mode="after")
    def _exactly_one(self) -> "CalendarTimeField":
        if (self.all_day is None) == (self.date_time is None):
            raise ValueError("exactly one of date or dateTime must be set")
        return self

    @property
    def is_all_day(self) -> bool:
        return self.all_day is not None

    @classmethod
    def from_instant(cls, instant: datetime, time_zone: str) -> "CalendarTimeField":
        return cls(date_time=instant, time_zone=time_zone)

    def to_api(self) -> Dict[str, Any]:
        """Serialize for the Calendar API request body."""
        if self.all_day is not None:
            return {"date": self.all_day.isoformat()}
        body: Dict[str, Any] = {"dateTime": self.date_time.isoformat()}
        if self.time_zone:
            body["timeZone"] = self.time_zone
        return body


# --------------------------------------------------------------------------- #
# Operation Result - one shape for success and failure
# --------------------------------------------------------------------------- #

class OperationResult(BaseModel):
    ok: bool
    payload: str = ""
    message: str = ""

    @classmethod
    def success(cls, payload: str) -> "OperationResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, message: str) -> "OperationResult":
        return cls(ok=False, message=message)

    def render(self) -> str:
        """Render as the single text payload returned to the agent."""
        if self.ok:
            return self.payload
        return f"Error: {self.message}"
