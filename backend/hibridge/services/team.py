from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hibridge.config import get_settings
from hibridge.exceptions import AppError, NotFoundError
from hibridge.models.enums import TeamRole
from hibridge.models.team import Team, TeamMember
from hibridge.schemas.policy import RtoPolicy
from hibridge.schemas.team import TeamMemberListResponse, TeamMemberResponse, TeamResponse

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from hibridge.schemas.auth import AuthContext
    from hibridge.schemas.team import AddMemberPayload, CreateTeamPayload

logger = logging.getLogger(__name__)


def _build_member_response(member: TeamMember) -> TeamMemberResponse:
    return TeamMemberResponse(
        team_id=member.team_id,
        user_id=member.user_id,
        role=TeamRole(member.role),
        joined_at=member.joined_at,
    )


def rto_policy_of(team: Team) -> RtoPolicy:
    """Parse the team's stored RTO policy."""
    return RtoPolicy.model_validate(team.rto_policy_json or {})


async def get_team_or_404(session: AsyncSession, team_id: uuid.UUID) -> Team:
    """Fetch a team by ID. Raises 404 if not found."""
    result = await session.execute(select(Team).where(col(Team.id) == team_id))
    team = result.scalar_one_or_none()
    if team is None:
        raise NotFoundError("Team not found")
    return team


async def list_member_ids(session: AsyncSession, team_id: uuid.UUID) -> list[uuid.UUID]:
    """Return the user IDs of every team member."""
    result = await session.execute(
        select(col(TeamMember.user_id)).where(col(TeamMember.team_id) == team_id).order_by(col(TeamMember.joined_at))
    )
    return [row[0] for row in result.all()]


async def count_members(session: AsyncSession, team_id: uuid.UUID) -> int:
    """Team size as used by the anchor-day majority rule."""
    result = await session.execute(
        select(func.count()).select_from(TeamMember).where(col(TeamMember.team_id) == team_id)
    )
    return int(result.scalar_one())


async def _build_team_response(session: AsyncSession, team: Team) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        name=team.name,
        description=team.description,
        created_by=team.created_by,
        rto_policy=rto_policy_of(team),
        member_count=await count_members(session, team.id),
        created_at=team.created_at,
    )


async def create_team(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateTeamPayload,
) -> TeamResponse:
    """Create a team and enrol the caller as its leader."""
    policy = payload.rto_policy or RtoPolicy(required_office_days=get_settings().default_required_office_days)
    team = Team(
        name=payload.name,
        description=payload.description,
        created_by=auth.user_id,
        rto_policy_json=policy.model_dump(mode="json"),
    )
    session.add(team)
    await session.flush()

    session.add(TeamMember(team_id=team.id, user_id=auth.user_id, role=TeamRole.LEADER.value))
    await session.commit()
    await session.refresh(team)
    logger.info("Team %s created by %s", team.id, auth.user_id)
    return await _build_team_response(session, team)


async def get_team(session: AsyncSession, team_id: uuid.UUID) -> TeamResponse:
    """Get a team with its member count."""
    team = await get_team_or_404(session, team_id)
    return await _build_team_response(session, team)


async def update_rto_policy(
    session: AsyncSession,
    team_id: uuid.UUID,
    policy: RtoPolicy,
) -> TeamResponse:
    """Replace the team's RTO policy."""
    team = await get_team_or_404(session, team_id)
    team.rto_policy_json = policy.model_dump(mode="json")
    session.add(team)
    await session.commit()
    await session.refresh(team)
    return await _build_team_response(session, team)


async def add_member(
    session: AsyncSession,
    team_id: uuid.UUID,
    payload: AddMemberPayload,
) -> TeamMemberResponse:
    """Add a user to a team."""
    await get_team_or_404(session, team_id)
    if await is_member(session, team_id, payload.user_id):
        raise AppError("User is already a member of this team", status_code=409)
    member = TeamMember(team_id=team_id, user_id=payload.user_id, role=payload.role.value)
    session.add(member)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError("User is already a member of this team", status_code=409) from None
    await session.commit()
    await session.refresh(member)
    return _build_member_response(member)


async def list_members(session: AsyncSession, team_id: uuid.UUID) -> TeamMemberListResponse:
    """List a team's members in joining order."""
    await get_team_or_404(session, team_id)
    result = await session.execute(
        select(TeamMember).where(col(TeamMember.team_id) == team_id).order_by(col(TeamMember.joined_at))
    )
    members = list(result.scalars().all())
    return TeamMemberListResponse(items=[_build_member_response(m) for m in members], total=len(members))


async def get_membership(session: AsyncSession, team_id: uuid.UUID, user_id: uuid.UUID) -> TeamMember | None:
    result = await session.execute(
        select(TeamMember).where(col(TeamMember.team_id) == team_id, col(TeamMember.user_id) == user_id)
    )
    return result.scalar_one_or_none()


async def is_member(session: AsyncSession, team_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    return await get_membership(session, team_id, user_id) is not None


async def require_member(session: AsyncSession, team_id: uuid.UUID, user_id: uuid.UUID) -> TeamMember:
    """Return the caller's membership row; 404 for an unknown team, 403 for outsiders."""
    await get_team_or_404(session, team_id)
    member = await get_membership(session, team_id, user_id)
    if member is None:
        raise AppError("Not a member of this team", status_code=403)
    return member
