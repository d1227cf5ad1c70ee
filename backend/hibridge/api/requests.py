# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from hibridge.api.deps import LeaderDep, TeamAuthDep, validate_team_scope
from hibridge.db import SessionDep
from hibridge.models.enums import RequestStatus
from hibridge.schemas.request import (
    DecisionPayload,
    RequestListResponse,
    RequestResponse,
    SubmitRemoteDayPayload,
)
from hibridge.services import request as request_service

requests_router = APIRouter(
    prefix="/teams/{team_id}/requests",
    tags=["requests"],
    dependencies=[Depends(validate_team_scope)],
)


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    team_id: uuid.UUID,
    payload: SubmitRemoteDayPayload,
    session: SessionDep,
    auth: TeamAuthDep,
) -> RequestResponse:
    """Submit a remote-day request, reserving balance immediately."""
    return await request_service.submit_remote_request(session, team_id, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    team_id: uuid.UUID,
    session: SessionDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    user_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List the team's remote-day requests with optional filters."""
    return await request_service.list_requests(session, team_id, status_filter, user_id, offset, limit)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    team_id: uuid.UUID,
    request_id: uuid.UUID,
    session: SessionDep,
) -> RequestResponse:
    """Get a single remote-day request."""
    return await request_service.get_request(session, team_id, request_id)


@requests_router.post("/{request_id}/approve", response_model=RequestResponse)
async def approve_request(
    team_id: uuid.UUID,
    request_id: uuid.UUID,
    session: SessionDep,
    auth: LeaderDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending request (leader only)."""
    return await request_service.approve_remote_request(session, team_id, auth, request_id, payload)


@requests_router.post("/{request_id}/reject", response_model=RequestResponse)
async def reject_request(
    team_id: uuid.UUID,
    request_id: uuid.UUID,
    session: SessionDep,
    auth: LeaderDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject a pending request (leader only)."""
    return await request_service.reject_remote_request(session, team_id, auth, request_id, payload)


@requests_router.post("/{request_id}/cancel", response_model=RequestResponse)
async def cancel_request(
    team_id: uuid.UUID,
    request_id: uuid.UUID,
    session: SessionDep,
    auth: TeamAuthDep,
) -> RequestResponse:
    """Cancel a pending request."""
    return await request_service.cancel_remote_request(session, team_id, auth, request_id)
