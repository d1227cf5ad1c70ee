# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from hibridge.api.deps import AuthDep, LeaderDep, validate_team_scope
from hibridge.db import SessionDep
from hibridge.schemas.policy import RtoPolicy
from hibridge.schemas.team import (
    AddMemberPayload,
    CreateTeamPayload,
    TeamMemberListResponse,
    TeamMemberResponse,
    TeamResponse,
)
from hibridge.services import team as team_service

teams_router = APIRouter(prefix="/teams", tags=["teams"])

team_detail_router = APIRouter(
    prefix="/teams/{team_id}",
    tags=["teams"],
    dependencies=[Depends(validate_team_scope)],
)


@teams_router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: CreateTeamPayload,
    session: SessionDep,
    auth: AuthDep,
) -> TeamResponse:
    """Create a team. The caller becomes its leader."""
    return await team_service.create_team(session, auth, payload)


@team_detail_router.get("", response_model=TeamResponse)
async def get_team(
    team_id: uuid.UUID,
    session: SessionDep,
) -> TeamResponse:
    """Get a team with its member count."""
    return await team_service.get_team(session, team_id)


@team_detail_router.put("/rto-policy", response_model=TeamResponse)
async def update_rto_policy(
    team_id: uuid.UUID,
    payload: RtoPolicy,
    session: SessionDep,
    _auth: LeaderDep,
) -> TeamResponse:
    """Replace the team's return-to-office policy (leader only)."""
    return await team_service.update_rto_policy(session, team_id, payload)


@team_detail_router.post("/members", response_model=TeamMemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    team_id: uuid.UUID,
    payload: AddMemberPayload,
    session: SessionDep,
    _auth: LeaderDep,
) -> TeamMemberResponse:
    """Add a user to the team (leader only)."""
    return await team_service.add_member(session, team_id, payload)


@team_detail_router.get("/members", response_model=TeamMemberListResponse)
async def list_members(
    team_id: uuid.UUID,
    session: SessionDep,
) -> TeamMemberListResponse:
    """List the team's members."""
    return await team_service.list_members(session, team_id)
