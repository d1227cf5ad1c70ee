# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from fractions import Fraction
from typing import Any

from pydantic import BaseModel, ConfigDict

from hibridge.models.enums import AccrualModel, LedgerEntryType, LedgerSourceType
from hibridge.schemas.policy import AccrualPolicy

# ---------------------------------------------------------------------------
# Domain value
# ---------------------------------------------------------------------------


class BalanceState(BaseModel):
    """Immutable snapshot of a reward balance as read from the store.

    ``version`` is the optimistic-concurrency token the next write must
    match. ``held`` is the credit reserved by pending requests, so that
    ``current + held == total_earned - total_used`` at all times.
    """

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    team_id: uuid.UUID
    current: Fraction = Fraction(0)
    held: Fraction = Fraction(0)
    total_earned: Fraction = Fraction(0)
    total_used: Fraction = Fraction(0)
    streak: int = 0
    streak_progress: int = 0
    last_office_day: date | None = None
    accrual_model: str = AccrualModel.RATIO_BASED.value
    office_to_remote_ratio: int = 3
    streak_bonus_threshold: int = 5
    streak_bonus_amount: Fraction = Fraction(1)
    version: int = 1
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class RecordAttendancePayload(BaseModel):
    """Body for recording a qualifying office day. Defaults to today."""

    attended_on: date | None = None


class ConfigureAccrualPayload(BaseModel):
    """Body for switching a member's accrual model."""

    policy: AccrualPolicy


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Reward balance for one user in one team. Amounts serialize as exact fractions."""

    user_id: uuid.UUID
    team_id: uuid.UUID
    current: Fraction
    held: Fraction
    total_earned: Fraction
    total_used: Fraction
    streak: int
    last_office_day: date | None
    accrual_model: str
    office_to_remote_ratio: int
    streak_bonus_threshold: int
    streak_bonus_amount: Fraction
    version: int
    updated_at: datetime | None = None


class LedgerEntryResponse(BaseModel):
    """A single ledger entry."""

    id: uuid.UUID
    entry_type: LedgerEntryType
    amount: Fraction
    effective_on: date
    source_type: LedgerSourceType
    source_id: str
    balance_version: int
    metadata_json: dict[str, Any] | None
    created_at: datetime


class LedgerListResponse(BaseModel):
    """Paginated ledger entries."""

    items: list[LedgerEntryResponse]
    total: int
