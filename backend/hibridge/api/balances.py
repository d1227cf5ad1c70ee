# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from hibridge.api.deps import LeaderDep, TeamAuthDep, require_self_or_leader, validate_team_scope
from hibridge.db import SessionDep
from hibridge.schemas.balance import (
    BalanceResponse,
    ConfigureAccrualPayload,
    LedgerListResponse,
    RecordAttendancePayload,
)
from hibridge.services import accrual as accrual_service
from hibridge.services import balance as balance_service

member_balance_router = APIRouter(
    prefix="/teams/{team_id}/members/{user_id}",
    tags=["balances"],
    dependencies=[Depends(validate_team_scope)],
)


@member_balance_router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    session: SessionDep,
    auth: TeamAuthDep,
) -> BalanceResponse:
    """Get a member's remote-day balance."""
    require_self_or_leader(auth, user_id)
    return await balance_service.get_balance(session, user_id, team_id)


@member_balance_router.get("/ledger", response_model=LedgerListResponse)
async def get_ledger(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    session: SessionDep,
    auth: TeamAuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LedgerListResponse:
    """Get paginated ledger entries for a member, newest first."""
    require_self_or_leader(auth, user_id)
    return await balance_service.get_ledger(session, user_id, team_id, offset, limit)


@member_balance_router.post("/attendance", response_model=BalanceResponse)
async def record_attendance(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    session: SessionDep,
    auth: TeamAuthDep,
    payload: RecordAttendancePayload | None = None,
) -> BalanceResponse:
    """Record a qualifying office day and credit the member's balance."""
    require_self_or_leader(auth, user_id)
    attended_on = payload.attended_on if payload else None
    return await accrual_service.record_attendance(session, user_id, team_id, attended_on)


@member_balance_router.put("/accrual-policy", response_model=BalanceResponse)
async def configure_accrual(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: ConfigureAccrualPayload,
    session: SessionDep,
    _auth: LeaderDep,
) -> BalanceResponse:
    """Switch a member's accrual model (leader only)."""
    return await balance_service.configure_accrual(session, user_id, team_id, payload.policy)
