from __future__ import annotations

import logging
from fractions import Fraction
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt

from hibridge.config import get_settings
from hibridge.exceptions import AppError, ConcurrentModificationError, ConfigurationError
from hibridge.models.balance import RewardBalance
from hibridge.models.enums import LedgerEntryType, LedgerSourceType
from hibridge.models.ledger import RewardLedgerEntry
from hibridge.schemas.balance import (
    BalanceResponse,
    BalanceState,
    LedgerEntryResponse,
    LedgerListResponse,
)
from hibridge.schemas.policy import AccrualPolicy, RatioBasedAccrual, SimpleThreeToOneAccrual, StreakBasedAccrual
from hibridge.services.clock import get_clock
from hibridge.services.team import get_team_or_404

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_policy_adapter: TypeAdapter[AccrualPolicy] = TypeAdapter(AccrualPolicy)

# Columns a compare-and-swap may rewrite; keys and version are managed separately.
_MUTABLE_FIELDS = (
    "current",
    "held",
    "total_earned",
    "total_used",
    "streak",
    "streak_progress",
    "last_office_day",
    "accrual_model",
    "office_to_remote_ratio",
    "streak_bonus_threshold",
    "streak_bonus_amount",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def to_balance_state(row: RewardBalance) -> BalanceState:
    """Map a balance row to the immutable domain value."""
    return BalanceState(
        user_id=row.user_id,
        team_id=row.team_id,
        current=row.current,
        held=row.held,
        total_earned=row.total_earned,
        total_used=row.total_used,
        streak=row.streak,
        streak_progress=row.streak_progress,
        last_office_day=row.last_office_day,
        accrual_model=row.accrual_model,
        office_to_remote_ratio=row.office_to_remote_ratio,
        streak_bonus_threshold=row.streak_bonus_threshold,
        streak_bonus_amount=row.streak_bonus_amount,
        version=row.version,
        updated_at=row.updated_at,
    )


def build_balance_response(balance: BalanceState) -> BalanceResponse:
    """Map a balance value to its response schema."""
    return BalanceResponse(
        user_id=balance.user_id,
        team_id=balance.team_id,
        current=balance.current,
        held=balance.held,
        total_earned=balance.total_earned,
        total_used=balance.total_used,
        streak=balance.streak,
        last_office_day=balance.last_office_day,
        accrual_model=balance.accrual_model,
        office_to_remote_ratio=balance.office_to_remote_ratio,
        streak_bonus_threshold=balance.streak_bonus_threshold,
        streak_bonus_amount=balance.streak_bonus_amount,
        version=balance.version,
        updated_at=balance.updated_at,
    )


def _build_ledger_entry_response(entry: RewardLedgerEntry) -> LedgerEntryResponse:
    return LedgerEntryResponse(
        id=entry.id,
        entry_type=LedgerEntryType(entry.entry_type),
        amount=entry.amount,
        effective_on=entry.effective_on,
        source_type=LedgerSourceType(entry.source_type),
        source_id=entry.source_id,
        balance_version=entry.balance_version,
        metadata_json=entry.metadata_json,
        created_at=entry.created_at,
    )


def _check_invariants(balance: BalanceState) -> None:
    """Refuse to persist a balance that breaks the ledger invariants."""
    if balance.current < 0 or balance.held < 0:
        raise AppError("Ledger invariant violated: negative balance", status_code=500)
    if balance.current + balance.held != balance.total_earned - balance.total_used:
        raise AppError("Ledger invariant violated: balance does not reconcile", status_code=500)


async def _get_balance_row(
    session: AsyncSession,
    user_id: uuid.UUID,
    team_id: uuid.UUID,
) -> RewardBalance | None:
    result = await session.execute(
        select(RewardBalance)
        .where(
            col(RewardBalance.user_id) == user_id,
            col(RewardBalance.team_id) == team_id,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Accrual configuration
# ---------------------------------------------------------------------------


def resolve_accrual_policy(balance: BalanceState) -> AccrualPolicy:
    """Build the tagged accrual variant from a balance's flat configuration.

    Unknown models and out-of-range parameters raise ConfigurationError;
    there is no fallback model.
    """
    try:
        return _policy_adapter.validate_python(
            {
                "accrual_model": balance.accrual_model,
                "office_to_remote_ratio": balance.office_to_remote_ratio,
                "streak_bonus_threshold": balance.streak_bonus_threshold,
                "streak_bonus_amount": balance.streak_bonus_amount,
            }
        )
    except ValidationError as exc:
        logger.warning(
            "Rejected accrual configuration %r for user=%s team=%s",
            balance.accrual_model,
            balance.user_id,
            balance.team_id,
        )
        msg = f"Invalid accrual configuration for model {balance.accrual_model!r}: {exc.errors()[0]['msg']}"
        raise ConfigurationError(msg) from exc


def apply_accrual_policy(balance: BalanceState, policy: AccrualPolicy) -> BalanceState:
    """Return ``balance`` reconfigured to ``policy``. Amounts and streak are untouched."""
    update_fields: dict[str, Any] = {"accrual_model": policy.accrual_model}
    match policy:
        case RatioBasedAccrual(office_to_remote_ratio=ratio):
            update_fields["office_to_remote_ratio"] = ratio
        case SimpleThreeToOneAccrual():
            update_fields["office_to_remote_ratio"] = policy.office_to_remote_ratio
        case StreakBasedAccrual(streak_bonus_threshold=threshold, streak_bonus_amount=amount):
            update_fields["streak_bonus_threshold"] = threshold
            update_fields["streak_bonus_amount"] = amount
    return balance.model_copy(update=update_fields)


# ---------------------------------------------------------------------------
# Store primitives
# ---------------------------------------------------------------------------


def ledger_retrying() -> AsyncRetrying:
    """Bounded retry policy for read-modify-write cycles on a balance row."""
    return AsyncRetrying(
        stop=stop_after_attempt(get_settings().ledger_max_attempts),
        retry=retry_if_exception_type(ConcurrentModificationError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


async def load_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    team_id: uuid.UUID,
) -> BalanceState:
    """Read the balance of record, creating it with the default accrual model if absent."""
    row = await _get_balance_row(session, user_id, team_id)
    if row is not None:
        return to_balance_state(row)

    settings = get_settings()
    row = RewardBalance(
        user_id=user_id,
        team_id=team_id,
        accrual_model=settings.default_accrual_model,
        office_to_remote_ratio=settings.default_office_to_remote_ratio,
        streak_bonus_threshold=settings.default_streak_bonus_threshold,
        streak_bonus_amount=Fraction(settings.default_streak_bonus_amount),
        version=1,
    )
    session.add(row)
    try:
        await session.flush()
    except IntegrityError:
        # Another writer created the row first.
        await session.rollback()
        row = await _get_balance_row(session, user_id, team_id)
        if row is None:
            raise ConcurrentModificationError from None
    return to_balance_state(row)


async def compare_and_swap(
    session: AsyncSession,
    expected: BalanceState,
    updated: BalanceState,
) -> BalanceState:
    """Write ``updated`` only if the row still carries ``expected.version``.

    Issues a single conditional UPDATE. On a version mismatch the session
    is rolled back and ConcurrentModificationError is raised; the caller
    reloads and retries.
    """
    _check_invariants(updated)
    values = {name: getattr(updated, name) for name in _MUTABLE_FIELDS}
    next_version = expected.version + 1
    written_at = get_clock().now()

    result = await session.execute(
        update(RewardBalance)
        .where(
            col(RewardBalance.user_id) == expected.user_id,
            col(RewardBalance.team_id) == expected.team_id,
            col(RewardBalance.version) == expected.version,
        )
        .values(**values, version=next_version, updated_at=written_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        await session.rollback()
        logger.warning(
            "Balance version conflict for user=%s team=%s (expected version %d)",
            expected.user_id,
            expected.team_id,
            expected.version,
        )
        raise ConcurrentModificationError
    return updated.model_copy(update={"version": next_version, "updated_at": written_at})


def add_ledger_entry(
    session: AsyncSession,
    balance: BalanceState,
    *,
    entry_type: LedgerEntryType,
    amount: Fraction,
    effective_on: date,
    source_type: LedgerSourceType,
    source_id: str,
    metadata_json: dict[str, Any] | None = None,
) -> RewardLedgerEntry:
    """Append a ledger entry within the caller's transaction."""
    entry = RewardLedgerEntry(
        user_id=balance.user_id,
        team_id=balance.team_id,
        entry_type=entry_type.value,
        amount=amount,
        effective_on=effective_on,
        source_type=source_type.value,
        source_id=source_id,
        balance_version=balance.version,
        metadata_json=metadata_json,
    )
    session.add(entry)
    return entry


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    team_id: uuid.UUID,
) -> BalanceResponse:
    """Get a user's balance in a team, materializing the default on first read."""
    await get_team_or_404(session, team_id)
    balance = await load_balance(session, user_id, team_id)
    await session.commit()
    return build_balance_response(balance)


async def get_ledger(
    session: AsyncSession,
    user_id: uuid.UUID,
    team_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> LedgerListResponse:
    """Get paginated ledger entries for a user in a team, newest first."""
    base_filter = [
        col(RewardLedgerEntry.user_id) == user_id,
        col(RewardLedgerEntry.team_id) == team_id,
    ]

    count_result = await session.execute(select(func.count()).select_from(RewardLedgerEntry).where(*base_filter))
    total = count_result.scalar_one()

    entries_result = await session.execute(
        select(RewardLedgerEntry)
        .where(*base_filter)
        .order_by(
            col(RewardLedgerEntry.balance_version).desc(),
            col(RewardLedgerEntry.created_at).desc(),
        )
        .offset(offset)
        .limit(limit)
    )
    entries = list(entries_result.scalars().all())

    return LedgerListResponse(
        items=[_build_ledger_entry_response(e) for e in entries],
        total=total,
    )


# ---------------------------------------------------------------------------
# Write path: accrual configuration
# ---------------------------------------------------------------------------


async def configure_accrual(
    session: AsyncSession,
    user_id: uuid.UUID,
    team_id: uuid.UUID,
    policy: AccrualPolicy,
) -> BalanceResponse:
    """Switch a member's accrual model with a versioned write."""
    await get_team_or_404(session, team_id)

    async for attempt in ledger_retrying():
        with attempt:
            balance = await load_balance(session, user_id, team_id)
            saved = await compare_and_swap(session, balance, apply_accrual_policy(balance, policy))
            await session.commit()
            logger.info("Accrual model for user=%s team=%s set to %s", user_id, team_id, policy.accrual_model)
            return build_balance_response(saved)

    raise AssertionError("unreachable")  # pragma: no cover
