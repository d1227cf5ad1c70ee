# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from hibridge.api.deps import LeaderDep, TeamAuthDep, require_self_or_leader, validate_team_scope
from hibridge.db import SessionDep
from hibridge.schemas.compliance import TeamComplianceReport, UserComplianceResponse
from hibridge.services import compliance as compliance_service

compliance_router = APIRouter(
    prefix="/teams/{team_id}/compliance",
    tags=["compliance"],
    dependencies=[Depends(validate_team_scope)],
)


@compliance_router.get("", response_model=TeamComplianceReport)
async def get_team_compliance(
    team_id: uuid.UUID,
    session: SessionDep,
    _auth: LeaderDep,
    week_start: date = Query(),
) -> TeamComplianceReport:
    """Compliance of every member for a week (leader only)."""
    return await compliance_service.get_team_compliance_report(session, team_id, week_start)


@compliance_router.get("/{user_id}", response_model=UserComplianceResponse)
async def get_user_compliance(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    session: SessionDep,
    auth: TeamAuthDep,
    week_start: date = Query(),
) -> UserComplianceResponse:
    """Compliance of one member for a week."""
    require_self_or_leader(auth, user_id)
    return await compliance_service.get_user_compliance(session, team_id, user_id, week_start)
