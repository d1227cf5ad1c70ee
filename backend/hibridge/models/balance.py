# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from fractions import Fraction

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from hibridge.models.base import fraction_column
from hibridge.models.enums import AccrualModel


def _now_utc() -> datetime:
    return datetime.now(UTC)


class RewardBalance(SQLModel, table=True):
    """Balance of record for a user's remote-day credit within one team.

    Mutated only through versioned compare-and-swap updates; ``version``
    increments on every successful write.
    """

    __tablename__ = "reward_balance"
    __table_args__ = (sa.PrimaryKeyConstraint("user_id", "team_id"),)

    user_id: uuid.UUID = Field(index=True)
    team_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False),
    )
    current: Fraction = Field(default=Fraction(0), sa_column=fraction_column())
    held: Fraction = Field(default=Fraction(0), sa_column=fraction_column())
    total_earned: Fraction = Field(default=Fraction(0), sa_column=fraction_column())
    total_used: Fraction = Field(default=Fraction(0), sa_column=fraction_column())
    streak: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    streak_progress: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    last_office_day: date | None = None
    accrual_model: str = Field(default=AccrualModel.RATIO_BASED, max_length=50)
    office_to_remote_ratio: int = Field(default=3)
    streak_bonus_threshold: int = Field(default=5)
    streak_bonus_amount: Fraction = Field(default=Fraction(1), sa_column=fraction_column(Fraction(1)))
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
