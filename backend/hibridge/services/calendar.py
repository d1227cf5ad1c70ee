# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Protocol, runtime_checkable

# Upper bound on the search for the next working day; a calendar with no
# working day in a year never makes two attendance days consecutive.
_MAX_LOOKAHEAD_DAYS = 366


@runtime_checkable
class WorkingDayCalendar(Protocol):
    """Opaque predicate telling whether a date is a working day for a team."""

    def is_working_day(self, team_id: uuid.UUID, day: date) -> bool:
        """Return True when the team works on ``day``."""
        ...


class WeekdayCalendar:
    """Monday to Friday, minus per-team holidays held in memory."""

    def __init__(self) -> None:
        self._holidays: dict[uuid.UUID, set[date]] = {}

    def add_holiday(self, team_id: uuid.UUID, day: date) -> None:
        """Mark ``day`` as a non-working day for the team."""
        self._holidays.setdefault(team_id, set()).add(day)

    def is_working_day(self, team_id: uuid.UUID, day: date) -> bool:
        if day.weekday() >= 5:
            return False
        return day not in self._holidays.get(team_id, set())


def next_working_day(calendar: WorkingDayCalendar, team_id: uuid.UUID, after: date) -> date | None:
    """Return the first working day strictly after ``after``, or None if none is found."""
    day = after
    for _ in range(_MAX_LOOKAHEAD_DAYS):
        day += timedelta(days=1)
        if calendar.is_working_day(team_id, day):
            return day
    return None


_calendar: WorkingDayCalendar = WeekdayCalendar()


def get_working_day_calendar() -> WorkingDayCalendar:
    """Return the process working-day calendar."""
    return _calendar


def set_working_day_calendar(calendar: WorkingDayCalendar) -> None:
    """Override the calendar (for testing or production wiring)."""
    global _calendar
    _calendar = calendar
