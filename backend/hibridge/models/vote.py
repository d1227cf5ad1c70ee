# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from hibridge.models.base import TimestampMixin, UUIDBase


class TeamVote(UUIDBase, TimestampMixin, table=True):
    """A member's preferred office days for an upcoming week."""

    __tablename__ = "team_vote"
    __table_args__ = (sa.UniqueConstraint("team_id", "user_id", "voting_week", name="uq_vote_team_user_week"),)

    team_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    user_id: uuid.UUID = Field(index=True)
    voting_week: date
    # ISO date strings; a set in the domain layer.
    voted_days: list[str] = Field(default_factory=list, sa_type=sa.JSON)
