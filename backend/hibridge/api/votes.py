# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from hibridge.api.deps import TeamAuthDep, validate_team_scope
from hibridge.db import SessionDep
from hibridge.exceptions import NotFoundError
from hibridge.schemas.vote import CastVotePayload, VoteResponse
from hibridge.services import vote as vote_service

votes_router = APIRouter(
    prefix="/teams/{team_id}/votes",
    tags=["votes"],
    dependencies=[Depends(validate_team_scope)],
)


@votes_router.put("", response_model=VoteResponse)
async def cast_vote(
    team_id: uuid.UUID,
    payload: CastVotePayload,
    session: SessionDep,
    auth: TeamAuthDep,
) -> VoteResponse:
    """Cast or replace the caller's vote for a week."""
    return await vote_service.cast_vote(session, team_id, auth, payload)


@votes_router.get("/me", response_model=VoteResponse)
async def get_my_vote(
    team_id: uuid.UUID,
    session: SessionDep,
    auth: TeamAuthDep,
    week_start: date = Query(),
) -> VoteResponse:
    """Get the caller's vote for a week."""
    vote = await vote_service.get_vote(session, team_id, auth.user_id, week_start)
    if vote is None:
        raise NotFoundError("No vote for this week")
    return vote
