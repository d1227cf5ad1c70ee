# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from fractions import Fraction

import sqlalchemy as sa
from sqlmodel import Field

from hibridge.models.base import TimestampMixin, UUIDBase, fraction_column
from hibridge.models.enums import RequestStatus


class RemoteDayRequest(UUIDBase, TimestampMixin, table=True):
    """A user's request to spend remote-day credit, with its approval state."""

    __tablename__ = "remote_day_request"
    __table_args__ = (
        sa.Index("ix_remote_request_team_status", "team_id", "status"),
        sa.UniqueConstraint("user_id", "team_id", "idempotency_key", name="uq_remote_request_idempotency"),
    )

    user_id: uuid.UUID = Field(index=True)
    team_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    date: datetime.date
    days_requested: int
    reserved_days: Fraction = Field(default=Fraction(0), sa_column=fraction_column())
    reason: str | None = None
    status: str = Field(
        default=RequestStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    requires_high_limit_approval: bool = False
    decided_at: datetime.datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_by: uuid.UUID | None = None
    decision_note: str | None = None
    idempotency_key: str | None = Field(default=None, max_length=255)
