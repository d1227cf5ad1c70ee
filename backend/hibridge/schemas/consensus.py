# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict


class VotedDay(BaseModel):
    """Vote tally for one working day of the target week."""

    model_config = ConfigDict(frozen=True)

    date: date
    votes: int
    is_anchor_day: bool


class DayPresence(BaseModel):
    """Committed office presence for one working day."""

    date: date
    office_count: int
    is_anchor_day: bool


class AnchorDaysResponse(BaseModel):
    """Anchor days derived from committed schedules."""

    team_id: uuid.UUID
    week_start: date
    team_size: int
    days: list[DayPresence]
    anchor_days: list[date]


class VotedDaysResponse(BaseModel):
    """Anchor days derived from forward votes."""

    team_id: uuid.UUID
    week_start: date
    team_size: int
    items: list[VotedDay]


class DaySummary(BaseModel):
    """Per-work-type member counts for one day."""

    date: date
    office_member_count: int
    remote_member_count: int
    flexible_member_count: int


class ScheduleSummaryResponse(BaseModel):
    """A team's schedule mix over the working days of a week."""

    team_id: uuid.UUID
    week_start: date
    days: list[DaySummary]
