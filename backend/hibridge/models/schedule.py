# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from hibridge.models.base import TimestampMixin, UUIDBase


class WorkScheduleEntry(UUIDBase, TimestampMixin, table=True):
    """Where a user plans to work on one date. Later writes replace earlier ones."""

    __tablename__ = "work_schedule_entry"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "date", name="uq_schedule_user_date"),
        sa.Index("ix_schedule_date", "date"),
    )

    user_id: uuid.UUID = Field(index=True)
    date: datetime.date
    work_type: str = Field(max_length=20)
    notes: str | None = Field(default=None, max_length=1000)
    updated_at: datetime.datetime | None = Field(  # type: ignore[call-overload]
        default=None,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"onupdate": sa.func.now()},
    )
