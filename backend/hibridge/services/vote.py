from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hibridge.exceptions import AppError
from hibridge.models.vote import TeamVote
from hibridge.schemas.vote import TeamVoteState, VoteResponse
from hibridge.services.team import require_member

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hibridge.schemas.auth import AuthContext
    from hibridge.schemas.vote import CastVotePayload

logger = logging.getLogger(__name__)


def to_vote_state(row: TeamVote) -> TeamVoteState:
    return TeamVoteState(
        team_id=row.team_id,
        user_id=row.user_id,
        voting_week=row.voting_week,
        voted_days=frozenset(date.fromisoformat(d) for d in row.voted_days),
    )


def _build_vote_response(row: TeamVote) -> VoteResponse:
    return VoteResponse(
        id=row.id,
        team_id=row.team_id,
        user_id=row.user_id,
        voting_week=row.voting_week,
        voted_days=sorted(date.fromisoformat(d) for d in row.voted_days),
        created_at=row.created_at,
    )


async def _find_vote(
    session: AsyncSession,
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    voting_week: date,
) -> TeamVote | None:
    result = await session.execute(
        select(TeamVote).where(
            col(TeamVote.team_id) == team_id,
            col(TeamVote.user_id) == user_id,
            col(TeamVote.voting_week) == voting_week,
        )
    )
    return result.scalar_one_or_none()


async def cast_vote(
    session: AsyncSession,
    team_id: uuid.UUID,
    auth: AuthContext,
    payload: CastVotePayload,
) -> VoteResponse:
    """Cast the caller's vote for a week, replacing any earlier vote for it."""
    await require_member(session, team_id, auth.user_id)

    vote = await _find_vote(session, team_id, auth.user_id, payload.voting_week)
    voted_days = sorted(d.isoformat() for d in payload.voted_days)
    if vote is None:
        vote = TeamVote(team_id=team_id, user_id=auth.user_id, voting_week=payload.voting_week, voted_days=voted_days)
    else:
        vote.voted_days = voted_days
    session.add(vote)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError("Vote was changed concurrently; retry the vote", status_code=409) from None
    await session.commit()
    await session.refresh(vote)
    logger.info("Vote by %s for team=%s week=%s: %s", auth.user_id, team_id, payload.voting_week, voted_days)
    return _build_vote_response(vote)


async def get_vote(
    session: AsyncSession,
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    voting_week: date,
) -> VoteResponse | None:
    """Return a member's vote for a week, or None if they have not voted."""
    vote = await _find_vote(session, team_id, user_id, voting_week)
    return _build_vote_response(vote) if vote is not None else None
