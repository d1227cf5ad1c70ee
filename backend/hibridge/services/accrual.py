"""Accrual engine: converts qualifying office days into remote-day credit."""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import TYPE_CHECKING, assert_never

from hibridge.exceptions import InvalidAttendanceOrderError
from hibridge.models.enums import AccrualModel, LedgerEntryType, LedgerSourceType
from hibridge.schemas.policy import RatioBasedAccrual, SimpleThreeToOneAccrual, StreakBasedAccrual
from hibridge.services.balance import (
    add_ledger_entry,
    build_balance_response,
    compare_and_swap,
    ledger_retrying,
    load_balance,
    resolve_accrual_policy,
)
from hibridge.services.calendar import get_working_day_calendar, next_working_day
from hibridge.services.clock import get_clock
from hibridge.services.team import get_team_or_404

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from hibridge.schemas.balance import BalanceResponse, BalanceState
    from hibridge.services.calendar import WorkingDayCalendar

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure computation (no DB)
# ---------------------------------------------------------------------------


def _is_consecutive(calendar: WorkingDayCalendar, balance: BalanceState, attended_on: date) -> bool:
    """True when ``attended_on`` is the first working day after the last office day."""
    if balance.last_office_day is None:
        return False
    return next_working_day(calendar, balance.team_id, balance.last_office_day) == attended_on


def record_office_attendance(
    balance: BalanceState,
    attended_on: date,
    calendar: WorkingDayCalendar | None = None,
) -> BalanceState:
    """Apply one office-attendance event to a balance and return the new balance.

    1. Extend the streak when ``attended_on`` is the next working day after
       ``last_office_day``; otherwise restart it at 1.
    2. Compute the credit from the balance's accrual model:
       - ratio_based: 1 / office_to_remote_ratio per day
       - simple_3_to_1: 1/3 per day
       - streak_based: ``streak_bonus_amount`` each time the streak counter
         reaches ``streak_bonus_threshold``; the counter (not the streak)
         then restarts.
    3. Add the credit to ``current`` and ``total_earned``.

    Re-recording ``last_office_day`` and attending on a non-working day
    return the balance unchanged. Dates before ``last_office_day`` raise
    InvalidAttendanceOrderError.
    """
    calendar = calendar or get_working_day_calendar()
    policy = resolve_accrual_policy(balance)

    last = balance.last_office_day
    if last is not None and attended_on < last:
        msg = f"Attendance on {attended_on.isoformat()} is older than the last office day {last.isoformat()}"
        raise InvalidAttendanceOrderError(msg)
    if last == attended_on:
        return balance
    if not calendar.is_working_day(balance.team_id, attended_on):
        return balance

    consecutive = _is_consecutive(calendar, balance, attended_on)
    streak = balance.streak + 1 if consecutive else 1
    progress = balance.streak_progress + 1 if consecutive else 1

    credit = Fraction(0)
    match policy:
        case RatioBasedAccrual() | SimpleThreeToOneAccrual():
            credit = Fraction(1, policy.office_to_remote_ratio)
        case StreakBasedAccrual(streak_bonus_threshold=threshold, streak_bonus_amount=amount):
            if progress >= threshold:
                credit = amount
                progress = 0
        case _:
            assert_never(policy)

    return balance.model_copy(
        update={
            "current": balance.current + credit,
            "total_earned": balance.total_earned + credit,
            "streak": streak,
            "streak_progress": progress,
            "last_office_day": attended_on,
        }
    )


# ---------------------------------------------------------------------------
# Persisted operation
# ---------------------------------------------------------------------------


async def record_attendance(
    session: AsyncSession,
    user_id: uuid.UUID,
    team_id: uuid.UUID,
    attended_on: date | None = None,
) -> BalanceResponse:
    """Record a qualifying office day against the ledger.

    Flow (retried on version conflicts):
    1. Load the balance (creating it on first use)
    2. Apply the accrual engine
    3. Compare-and-swap the balance row
    4. Append an ACCRUAL or STREAK_BONUS ledger entry for any credit
    5. Commit
    """
    await get_team_or_404(session, team_id)
    today = get_clock().today()
    attended_on = attended_on or today
    if attended_on > today:
        msg = f"Attendance on {attended_on.isoformat()} is in the future"
        raise InvalidAttendanceOrderError(msg)

    calendar = get_working_day_calendar()

    async for attempt in ledger_retrying():
        with attempt:
            balance = await load_balance(session, user_id, team_id)
            updated = record_office_attendance(balance, attended_on, calendar)
            if updated is balance:
                await session.commit()
                logger.info(
                    "Attendance on %s for user=%s team=%s left balance unchanged", attended_on, user_id, team_id
                )
                return build_balance_response(balance)

            saved = await compare_and_swap(session, balance, updated)
            credit = saved.total_earned - balance.total_earned
            if credit:
                entry_type = (
                    LedgerEntryType.STREAK_BONUS
                    if saved.accrual_model == AccrualModel.STREAK_BASED
                    else LedgerEntryType.ACCRUAL
                )
                add_ledger_entry(
                    session,
                    saved,
                    entry_type=entry_type,
                    amount=credit,
                    effective_on=attended_on,
                    source_type=LedgerSourceType.ATTENDANCE,
                    source_id=f"attendance:{user_id}:{team_id}:{attended_on.isoformat()}",
                    metadata_json={"streak": saved.streak},
                )
            await session.commit()
            logger.info(
                "Recorded office day %s for user=%s team=%s: credit=%s streak=%d",
                attended_on,
                user_id,
                team_id,
                credit,
                saved.streak,
            )
            return build_balance_response(saved)

    raise AssertionError("unreachable")  # pragma: no cover
