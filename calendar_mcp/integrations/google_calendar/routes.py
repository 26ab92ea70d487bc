"""
Google Calendar integration API routes.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .client import CalendarIntegration, get_calendar


router = APIRouter(prefix="/integrations/calendar", tags=["calendar"])


# --------------------------------------------------------------------------- #
# Response Models
# --------------------------------------------------------------------------- #

class CalendarStatusResponse(BaseModel):
    connected: bool


# --------------------------------------------------------------------------- #
# Endpoints
# --------------------------------------------------------------------------- #

@router.get("/status", response_model=CalendarStatusResponse)
def calendar_status(calendar: CalendarIntegration = Depends(get_calendar)):
    """Get Google Calendar connection status."""
    return CalendarStatusResponse(connected=calendar.is_connected())


@router.post("/disconnect", response_model=CalendarStatusResponse)
def calendar_disconnect(calendar: CalendarIntegration = Depends(get_calendar)):
    """Forget the stored Google Calendar tokens."""
    calendar.disconnect()
    return CalendarStatusResponse(connected=False)
