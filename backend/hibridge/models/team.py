# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from hibridge.models.base import TimestampMixin, UUIDBase
from hibridge.models.enums import TeamRole


def _now_utc() -> datetime:
    return datetime.now(UTC)


class Team(UUIDBase, TimestampMixin, table=True):
    """A team sharing an RTO policy and anchor-day consensus."""

    __tablename__ = "team"

    name: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    created_by: uuid.UUID
    rto_policy_json: dict[str, Any] = Field(default_factory=dict, sa_type=sa.JSON)


class TeamMember(SQLModel, table=True):
    """Membership of a user in a team."""

    __tablename__ = "team_member"
    __table_args__ = (sa.PrimaryKeyConstraint("team_id", "user_id"),)

    team_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False),
    )
    user_id: uuid.UUID = Field(index=True)
    role: str = Field(default=TeamRole.MEMBER, max_length=20)
    joined_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
