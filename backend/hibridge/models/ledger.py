# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from fractions import Fraction
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from hibridge.models.base import UUIDBase, fraction_column


def _now_utc() -> datetime:
    return datetime.now(UTC)


class RewardLedgerEntry(UUIDBase, table=True):
    """Append-only record of every event that moved a reward balance."""

    __tablename__ = "reward_ledger_entry"
    __table_args__ = (
        sa.Index("ix_reward_ledger_user_team", "user_id", "team_id"),
        sa.UniqueConstraint("source_type", "source_id", "entry_type", name="uq_reward_ledger_idempotency"),
    )

    user_id: uuid.UUID = Field(index=True)
    team_id: uuid.UUID = Field(index=True)
    entry_type: str = Field(max_length=50)
    amount: Fraction = Field(sa_column=fraction_column())
    effective_on: date
    source_type: str = Field(max_length=50)
    source_id: str = Field(max_length=255)
    balance_version: int
    metadata_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
