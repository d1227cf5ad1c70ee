# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hibridge.models.enums import WorkType


class WorkScheduleEntryState(BaseModel):
    """One user's work type on one date, as consumed by compliance and consensus."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    date: date
    work_type: WorkType
    is_anchor_day: bool = False


class ScheduleEntryInput(BaseModel):
    """A single day in a schedule upsert."""

    date: date
    work_type: WorkType
    notes: str | None = Field(default=None, max_length=1000)


class UpsertSchedulePayload(BaseModel):
    """Request body replacing a user's entries for the given dates."""

    entries: list[ScheduleEntryInput] = Field(min_length=1, max_length=62)

    @model_validator(mode="after")
    def _validate_unique_dates(self) -> Self:
        dates = [e.date for e in self.entries]
        if len(set(dates)) != len(dates):
            msg = "Each date may appear only once per upsert"
            raise ValueError(msg)
        return self


class ScheduleEntryResponse(BaseModel):
    """Response schema for a schedule entry."""

    id: uuid.UUID
    user_id: uuid.UUID
    date: date
    work_type: WorkType
    notes: str | None
    is_anchor_day: bool | None = None
    created_at: datetime
    updated_at: datetime | None


class ScheduleListResponse(BaseModel):
    """A user's schedule entries, ordered by date."""

    items: list[ScheduleEntryResponse]
    total: int
