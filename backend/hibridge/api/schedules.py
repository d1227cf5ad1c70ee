# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from hibridge.api.deps import AuthDep
from hibridge.db import SessionDep
from hibridge.schemas.schedule import ScheduleListResponse, UpsertSchedulePayload
from hibridge.services import schedule as schedule_service

schedules_router = APIRouter(
    prefix="/users/{user_id}/schedule",
    tags=["schedules"],
)


@schedules_router.put("", response_model=ScheduleListResponse)
async def upsert_schedule(
    user_id: uuid.UUID,
    payload: UpsertSchedulePayload,
    session: SessionDep,
    auth: AuthDep,
) -> ScheduleListResponse:
    """Write the caller's schedule entries, replacing existing ones by date."""
    return await schedule_service.upsert_schedule(session, auth, user_id, payload)


@schedules_router.get("", response_model=ScheduleListResponse)
async def list_schedule(
    user_id: uuid.UUID,
    session: SessionDep,
    _auth: AuthDep,
    start: date = Query(),
    end: date = Query(),
    team_id: uuid.UUID | None = Query(default=None),
) -> ScheduleListResponse:
    """List a user's schedule entries in a date range."""
    return await schedule_service.list_schedule(session, user_id, start, end, team_id)
