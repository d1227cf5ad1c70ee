# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from hibridge.api.deps import validate_team_scope
from hibridge.db import SessionDep
from hibridge.schemas.consensus import AnchorDaysResponse, ScheduleSummaryResponse, VotedDaysResponse
from hibridge.services import anchor as anchor_service

consensus_router = APIRouter(
    prefix="/teams/{team_id}",
    tags=["consensus"],
    dependencies=[Depends(validate_team_scope)],
)


@consensus_router.get("/anchor-days", response_model=AnchorDaysResponse)
async def get_anchor_days(
    team_id: uuid.UUID,
    session: SessionDep,
    week_start: date = Query(),
) -> AnchorDaysResponse:
    """Anchor days derived from members' committed schedules."""
    return await anchor_service.get_team_anchor_days(session, team_id, week_start)


@consensus_router.get("/anchor-days/votes", response_model=VotedDaysResponse)
async def get_voted_anchor_days(
    team_id: uuid.UUID,
    session: SessionDep,
    week_start: date = Query(),
) -> VotedDaysResponse:
    """Vote tally and majority verdict for a week."""
    return await anchor_service.get_team_voted_days(session, team_id, week_start)


@consensus_router.get("/schedule-summary", response_model=ScheduleSummaryResponse)
async def get_schedule_summary(
    team_id: uuid.UUID,
    session: SessionDep,
    week_start: date = Query(),
) -> ScheduleSummaryResponse:
    """Per-day office, remote and flexible member counts for a week."""
    return await anchor_service.get_team_schedule_summary(session, team_id, week_start)
