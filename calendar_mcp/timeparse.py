"""
Time expression resolution.

Turns the strings an agent passes for start/end/timeMin/timeMax into
timezone-aware datetimes. Strict ISO input is parsed directly; everything
else is lower-cased and matched against a fixed, ordered list of phrase
rules ("tomorrow", "3 hours later", "next friday", "monday at 2:30pm", ...).
Input none of the rules recognise goes to dateutil's general parser.

All results carry the resolver's zone (the process-wide default zone).

Usage:
    resolver = TimeExpressionResolver(ZoneInfo("Europe/Paris"))
    start = resolver.resolve("tomorrow at 2pm")
    end = resolver.resolve("2 hours later", reference=start)
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, tzinfo
from re import Match, Pattern
from typing import Callable, Dict, Optional, Tuple

from dateutil import parser as date_parser

from .errors import ParseError

logger = logging.getLogger(__name__)


ISO_DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}(:\d{2})?)?$")

# Index matches datetime.weekday()
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_WEEKDAY_ALT = "|".join(WEEKDAYS)

DEFAULT_HOUR = 9


# --------------------------------------------------------------------------- #
# Phrase rules, tried in order against the lower-cased, trimmed expression.
# Keyword rules must be the whole expression; the others may appear anywhere
# in it ("meeting next monday", "tomorrow at 3pm sharp").
# --------------------------------------------------------------------------- #

WHOLE, ANYWHERE = "whole", "anywhere"

_RULES: Tuple[Tuple[str, str, Pattern[str]], ...] = (
    ("now", WHOLE, re.compile(r"now|today")),
    ("tomorrow", WHOLE, re.compile(r"tomorrow")),
    ("hours_later", ANYWHERE, re.compile(r"(\d+)\s*hours?\s*later")),
    ("days_later", ANYWHERE, re.compile(r"(\d+)\s*days?\s*later")),
    ("next_week", WHOLE, re.compile(r"next week")),
    ("next_weekday", ANYWHERE, re.compile(rf"next\s*({_WEEKDAY_ALT})")),
    (
        "day_at_time",
        ANYWHERE,
        re.compile(rf"(today|tomorrow|{_WEEKDAY_ALT})\s+at\s+(\d+)(?::(\d+))?\s*(am|pm)?"),
    ),
)


def days_until(weekday: int, current: int) -> int:
    """Days from `current` to the next `weekday`; same day counts as a week ahead."""
    return (weekday - current) % 7 or 7


def at_default_hour(moment: datetime) -> datetime:
    return moment.replace(hour=DEFAULT_HOUR, minute=0, second=0, microsecond=0)


class TimeExpressionResolver:
    """
    Resolve time expressions against a reference instant.

    Args:
        tz: Zone attached to every resolved instant
        now: Clock returning the current instant (injectable for tests)
    """

    def __init__(self, tz: tzinfo, now: Optional[Callable[[], datetime]] = None):
        self.tz = tz
        self._now = now or (lambda: datetime.now(self.tz))
        self._handlers: Dict[str, Callable[[Match[str], datetime], datetime]] = {
            "now": self._resolve_now,
            "tomorrow": self._resolve_tomorrow,
            "hours_later": self._resolve_hours_later,
            "days_later": self._resolve_days_later,
            "next_week": self._resolve_next_week,
            "next_weekday": self._resolve_next_weekday,
            "day_at_time": self._resolve_day_at_time,
        }

    def now(self) -> datetime:
        return self.localize(self._now())

    def localize(self, moment: datetime) -> datetime:
        """Attach the resolver's zone to naive datetimes, convert aware ones."""
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.tz)
        return moment.astimezone(self.tz)

    def resolve(self, expression: str, reference: Optional[datetime] = None) -> datetime:
        """
        Resolve an expression to an aware datetime.

        Args:
            expression: ISO string (YYYY-MM-DD[THH:MM[:SS]]) or a supported phrase
            reference: Anchor for relative phrases (default: now)

        Raises:
            ParseError: If no rule matches and the fallback parser fails
        """
        if ISO_DATE_REGEX.match(expression):
            try:
                return self.localize(datetime.fromisoformat(expression))
            except ValueError:
                raise ParseError(expression)

        anchor = self.localize(reference) if reference is not None else self.now()
        text = expression.lower().strip()

        for name, scope, pattern in _RULES:
            match = pattern.fullmatch(text) if scope == WHOLE else pattern.search(text)
            if match:
                try:
                    return self._handlers[name](match, anchor)
                except ValueError:
                    raise ParseError(expression)

        return self._fallback(expression)

    # ----------------------------------------------------------------------- #
    # Rule handlers
    # ----------------------------------------------------------------------- #

    def _resolve_now(self, match: Match[str], reference: datetime) -> datetime:
        # Absolute: ignores the reference on purpose
        return self.now()

    def _resolve_tomorrow(self, match: Match[str], reference: datetime) -> datetime:
        return at_default_hour(reference + timedelta(days=1))

    def _resolve_hours_later(self, match: Match[str], reference: datetime) -> datetime:
        return reference + timedelta(hours=int(match.group(1)))

    def _resolve_days_later(self, match: Match[str], reference: datetime) -> datetime:
        return reference + timedelta(days=int(match.group(1)))

    def _resolve_next_week(self, match: Match[str], reference: datetime) -> datetime:
        return at_default_hour(reference + timedelta(days=7))

    def _resolve_next_weekday(self, match: Match[str], reference: datetime) -> datetime:
        target = WEEKDAYS.index(match.group(1))
        return at_default_hour(reference + timedelta(days=days_until(target, reference.weekday())))

    def _resolve_day_at_time(self, match: Match[str], reference: datetime) -> datetime:
        day, hour_text, minute_text, meridiem = match.groups()

        if day == "today":
            moment = reference
        elif day == "tomorrow":
            moment = reference + timedelta(days=1)
        else:
            target = WEEKDAYS.index(day)
            moment = reference + timedelta(days=days_until(target, reference.weekday()))

        hour = int(hour_text)
        minute = int(minute_text) if minute_text else 0
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem != "pm" and hour == 12:
            hour = 0

        return moment.replace(hour=hour, minute=minute, second=0, microsecond=0)

    # ----------------------------------------------------------------------- #
    # Fallback
    # ----------------------------------------------------------------------- #

    def _fallback(self, expression: str) -> datetime:
        try:
            parsed = date_parser.parse(expression)
        except (ValueError, OverflowError) as e:
            logger.debug(f"Fallback parse failed for {expression!r}: {e}")
            raise ParseError(expression)
        return self.localize(parsed)
