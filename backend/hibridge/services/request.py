# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from fractions import Fraction
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hibridge.exceptions import (
    AppError,
    ConcurrentModificationError,
    InvalidRequestError,
    InvalidStateTransitionError,
    NotFoundError,
)
from hibridge.models.enums import LedgerEntryType, LedgerSourceType, RequestStatus
from hibridge.models.request import RemoteDayRequest
from hibridge.schemas.request import RemoteDayRequestState, RequestListResponse, RequestResponse
from hibridge.services.balance import add_ledger_entry, compare_and_swap, ledger_retrying, load_balance
from hibridge.services.clock import get_clock
from hibridge.services.team import get_team_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hibridge.schemas.auth import AuthContext
    from hibridge.schemas.balance import BalanceState
    from hibridge.schemas.request import DecisionPayload, SubmitRemoteDayPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure state machine (no DB)
# ---------------------------------------------------------------------------


def _require_pending(request: RemoteDayRequestState, action: str) -> None:
    if request.status is not RequestStatus.PENDING:
        msg = f"Cannot {action} a request that is already {request.status.value}"
        raise InvalidStateTransitionError(msg)


def _require_owner(balance: BalanceState, request: RemoteDayRequestState) -> None:
    if (balance.user_id, balance.team_id) != (request.user_id, request.team_id):
        raise InvalidRequestError("Request does not belong to this balance")


def submit_request(
    balance: BalanceState,
    days_requested: int,
    on: date,
    reason: str | None = None,
    *,
    now: datetime,
    request_id: uuid.UUID | None = None,
) -> tuple[BalanceState, RemoteDayRequestState]:
    """Create a pending request and reserve its days from the balance.

    The reservation happens before any approval: ``current`` drops by
    ``days_requested`` (floored at zero) and the amount actually taken
    moves to ``held``.
    """
    if days_requested <= 0:
        msg = f"days_requested must be positive, got {days_requested}"
        raise InvalidRequestError(msg)

    reserved = min(balance.current, Fraction(days_requested))
    request = RemoteDayRequestState(
        id=request_id or uuid.uuid4(),
        user_id=balance.user_id,
        team_id=balance.team_id,
        date=on,
        days_requested=days_requested,
        reserved_days=reserved,
        status=RequestStatus.PENDING,
        reason=reason,
        requires_high_limit_approval=days_requested > 1,
        created_at=now,
    )
    updated = balance.model_copy(update={"current": balance.current - reserved, "held": balance.held + reserved})
    return updated, request


def cancel_request(
    balance: BalanceState,
    request: RemoteDayRequestState,
    *,
    now: datetime | None = None,
) -> tuple[BalanceState, RemoteDayRequestState]:
    """Cancel a pending request and restore what it reserved."""
    _require_pending(request, "cancel")
    _require_owner(balance, request)
    return _release(balance, request, RequestStatus.CANCELLED, now=now)


def resolve_request(
    balance: BalanceState,
    request: RemoteDayRequestState,
    approved: bool,
    *,
    now: datetime | None = None,
    decided_by: uuid.UUID | None = None,
    note: str | None = None,
) -> tuple[BalanceState, RemoteDayRequestState]:
    """Approve or reject a pending request.

    Approval commits the reservation into ``total_used``. Rejection
    restores it to ``current`` exactly as cancellation does.
    """
    _require_pending(request, "approve" if approved else "reject")
    _require_owner(balance, request)

    if not approved:
        return _release(balance, request, RequestStatus.REJECTED, now=now, decided_by=decided_by, note=note)

    reserved = request.reserved_days
    updated = balance.model_copy(update={"held": balance.held - reserved, "total_used": balance.total_used + reserved})
    resolved = request.model_copy(
        update={
            "status": RequestStatus.APPROVED,
            "decided_at": now,
            "decided_by": decided_by,
            "decision_note": note,
        }
    )
    return updated, resolved


def _release(
    balance: BalanceState,
    request: RemoteDayRequestState,
    new_status: RequestStatus,
    *,
    now: datetime | None,
    decided_by: uuid.UUID | None = None,
    note: str | None = None,
) -> tuple[BalanceState, RemoteDayRequestState]:
    reserved = request.reserved_days
    updated = balance.model_copy(update={"current": balance.current + reserved, "held": balance.held - reserved})
    released = request.model_copy(
        update={"status": new_status, "decided_at": now, "decided_by": decided_by, "decision_note": note}
    )
    return updated, released


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _to_request_state(row: RemoteDayRequest) -> RemoteDayRequestState:
    return RemoteDayRequestState(
        id=row.id,
        user_id=row.user_id,
        team_id=row.team_id,
        date=row.date,
        days_requested=row.days_requested,
        reserved_days=row.reserved_days,
        status=RequestStatus(row.status),
        reason=row.reason,
        requires_high_limit_approval=row.requires_high_limit_approval,
        created_at=row.created_at,
        decided_at=row.decided_at,
        decided_by=row.decided_by,
        decision_note=row.decision_note,
    )


def _build_request_response(row: RemoteDayRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=row.id,
        user_id=row.user_id,
        team_id=row.team_id,
        date=row.date,
        days_requested=row.days_requested,
        reserved_days=row.reserved_days,
        status=RequestStatus(row.status),
        reason=row.reason,
        requires_high_limit_approval=row.requires_high_limit_approval,
        decided_at=row.decided_at,
        decided_by=row.decided_by,
        decision_note=row.decision_note,
        idempotency_key=row.idempotency_key,
        created_at=row.created_at,
    )


async def _get_request_or_404(
    session: AsyncSession,
    team_id: uuid.UUID,
    request_id: uuid.UUID,
) -> RemoteDayRequest:
    """Fetch a request by ID scoped to team. Raises 404 if not found."""
    result = await session.execute(
        select(RemoteDayRequest)
        .where(
            col(RemoteDayRequest.id) == request_id,
            col(RemoteDayRequest.team_id) == team_id,
        )
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError("Request not found")
    return row


async def _find_by_idempotency_key(
    session: AsyncSession,
    user_id: uuid.UUID,
    team_id: uuid.UUID,
    idempotency_key: str,
) -> RemoteDayRequest | None:
    result = await session.execute(
        select(RemoteDayRequest).where(
            col(RemoteDayRequest.user_id) == user_id,
            col(RemoteDayRequest.team_id) == team_id,
            col(RemoteDayRequest.idempotency_key) == idempotency_key,
        )
    )
    return result.scalar_one_or_none()


async def _write_transition(
    session: AsyncSession,
    resolved: RemoteDayRequestState,
) -> None:
    """Persist a terminal status, conditional on the row still being pending."""
    result = await session.execute(
        update(RemoteDayRequest)
        .where(
            col(RemoteDayRequest.id) == resolved.id,
            col(RemoteDayRequest.status) == RequestStatus.PENDING.value,
        )
        .values(
            status=resolved.status.value,
            decided_at=resolved.decided_at,
            decided_by=resolved.decided_by,
            decision_note=resolved.decision_note,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        await session.rollback()
        raise ConcurrentModificationError("Request was resolved concurrently")


async def _settle(
    session: AsyncSession,
    team_id: uuid.UUID,
    request_id: uuid.UUID,
    transition: str,
    auth: AuthContext,
    note: str | None = None,
) -> RequestResponse:
    """Shared flow for cancel, approve and reject.

    1. Load request and balance.
    2. Run the state machine.
    3. Compare-and-swap the balance row.
    4. Conditionally write the request's terminal status.
    5. Append the matching ledger entries.
    6. Commit.
    """
    await get_team_or_404(session, team_id)
    clock = get_clock()

    async for attempt in ledger_retrying():
        with attempt:
            row = await _get_request_or_404(session, team_id, request_id)
            if transition == "cancel" and auth.user_id != row.user_id and not auth.is_leader:
                raise AppError("Not authorized to cancel this request", status_code=403)

            request = _to_request_state(row)
            balance = await load_balance(session, request.user_id, request.team_id)
            now = clock.now()
            if transition == "cancel":
                updated, resolved = cancel_request(balance, request, now=now)
            else:
                updated, resolved = resolve_request(
                    balance, request, transition == "approve", now=now, decided_by=auth.user_id, note=note
                )

            saved = await compare_and_swap(session, balance, updated)
            await _write_transition(session, resolved)

            source_id = str(request.id)
            if resolved.reserved_days:
                add_ledger_entry(
                    session,
                    saved,
                    entry_type=LedgerEntryType.RESERVATION_RELEASE,
                    amount=resolved.reserved_days,
                    effective_on=request.date,
                    source_type=LedgerSourceType.REQUEST,
                    source_id=source_id,
                )
                if resolved.status is RequestStatus.APPROVED:
                    add_ledger_entry(
                        session,
                        saved,
                        entry_type=LedgerEntryType.USAGE,
                        amount=-resolved.reserved_days,
                        effective_on=request.date,
                        source_type=LedgerSourceType.REQUEST,
                        source_id=source_id,
                    )

            await session.commit()
            logger.info("Request %s %s by %s", request.id, resolved.status.value, auth.user_id)
            refreshed = await _get_request_or_404(session, team_id, request_id)
            return _build_request_response(refreshed)

    raise AssertionError("unreachable")  # pragma: no cover


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def submit_remote_request(
    session: AsyncSession,
    team_id: uuid.UUID,
    auth: AuthContext,
    payload: SubmitRemoteDayPayload,
) -> RequestResponse:
    """Submit a remote-day request for the caller, reserving balance.

    Flow (retried on version conflicts):
    1. Return the existing request when the idempotency key was seen
    2. Load the balance
    3. Run the state machine (reserve, create pending)
    4. Compare-and-swap the balance row
    5. Insert the request and a RESERVATION ledger entry
    6. Commit
    """
    await get_team_or_404(session, team_id)
    clock = get_clock()

    async for attempt in ledger_retrying():
        with attempt:
            if payload.idempotency_key is not None:
                existing = await _find_by_idempotency_key(session, auth.user_id, team_id, payload.idempotency_key)
                if existing is not None:
                    return _build_request_response(existing)

            balance = await load_balance(session, auth.user_id, team_id)
            updated, request = submit_request(
                balance, payload.days_requested, payload.date, payload.reason, now=clock.now()
            )
            saved = await compare_and_swap(session, balance, updated)

            row = RemoteDayRequest(
                id=request.id,
                user_id=request.user_id,
                team_id=request.team_id,
                date=request.date,
                days_requested=request.days_requested,
                reserved_days=request.reserved_days,
                status=request.status.value,
                reason=request.reason,
                requires_high_limit_approval=request.requires_high_limit_approval,
                idempotency_key=payload.idempotency_key,
                created_at=request.created_at,
            )
            session.add(row)
            try:
                await session.flush()
            except IntegrityError:
                # A retried submission with the same key won the race; the
                # rollback also undoes this attempt's reservation.
                await session.rollback()
                if payload.idempotency_key is not None:
                    existing = await _find_by_idempotency_key(session, auth.user_id, team_id, payload.idempotency_key)
                    if existing is not None:
                        return _build_request_response(existing)
                raise AppError("Duplicate request", status_code=409) from None

            if request.reserved_days:
                add_ledger_entry(
                    session,
                    saved,
                    entry_type=LedgerEntryType.RESERVATION,
                    amount=-request.reserved_days,
                    effective_on=request.date,
                    source_type=LedgerSourceType.REQUEST,
                    source_id=str(request.id),
                )

            await session.commit()
            await session.refresh(row)
            logger.info(
                "Request %s submitted by user=%s team=%s: days=%d reserved=%s",
                request.id,
                auth.user_id,
                team_id,
                request.days_requested,
                request.reserved_days,
            )
            return _build_request_response(row)

    raise AssertionError("unreachable")  # pragma: no cover


async def cancel_remote_request(
    session: AsyncSession,
    team_id: uuid.UUID,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Cancel a pending request. The requester or a team leader can cancel."""
    return await _settle(session, team_id, request_id, "cancel", auth)


async def approve_remote_request(
    session: AsyncSession,
    team_id: uuid.UUID,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending request, committing its reservation."""
    return await _settle(session, team_id, request_id, "approve", auth, payload.note if payload else None)


async def reject_remote_request(
    session: AsyncSession,
    team_id: uuid.UUID,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject a pending request, restoring its reservation."""
    return await _settle(session, team_id, request_id, "reject", auth, payload.note if payload else None)


async def get_request(
    session: AsyncSession,
    team_id: uuid.UUID,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Get a single request by ID."""
    row = await _get_request_or_404(session, team_id, request_id)
    return _build_request_response(row)


async def list_requests(
    session: AsyncSession,
    team_id: uuid.UUID,
    status_filter: RequestStatus | None = None,
    user_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List a team's requests with optional filters, newest first."""
    base_filters = [col(RemoteDayRequest.team_id) == team_id]

    if status_filter is not None:
        base_filters.append(col(RemoteDayRequest.status) == status_filter.value)
    if user_id is not None:
        base_filters.append(col(RemoteDayRequest.user_id) == user_id)

    count_result = await session.execute(select(func.count()).select_from(RemoteDayRequest).where(*base_filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(RemoteDayRequest)
        .where(*base_filters)
        .order_by(col(RemoteDayRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    rows = list(result.scalars().all())

    return RequestListResponse(
        items=[_build_request_response(r) for r in rows],
        total=total,
    )
