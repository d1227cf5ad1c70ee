# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TeamVoteState(BaseModel):
    """A member's forward-looking office-day preference for one week."""

    model_config = ConfigDict(frozen=True)

    team_id: uuid.UUID
    user_id: uuid.UUID
    voting_week: date
    voted_days: frozenset[date] = frozenset()


class CastVotePayload(BaseModel):
    """Request body for casting or replacing the caller's vote."""

    voting_week: date
    voted_days: list[date] = Field(max_length=5)

    @model_validator(mode="after")
    def _validate_days_in_week(self) -> Self:
        if self.voting_week.weekday() != 0:
            msg = f"voting_week must be a Monday, got {self.voting_week.isoformat()}"
            raise ValueError(msg)
        week_end = self.voting_week + timedelta(days=5)
        for day in self.voted_days:
            if not self.voting_week <= day < week_end:
                msg = f"{day.isoformat()} is outside the voting week starting {self.voting_week.isoformat()}"
                raise ValueError(msg)
        if len(set(self.voted_days)) != len(self.voted_days):
            msg = "voted_days must not repeat"
            raise ValueError(msg)
        return self


class VoteResponse(BaseModel):
    """Response schema for a stored vote."""

    id: uuid.UUID
    team_id: uuid.UUID
    user_id: uuid.UUID
    voting_week: date
    voted_days: list[date]
    created_at: datetime
