# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from hibridge.models.enums import TeamRole
from hibridge.schemas.policy import RtoPolicy


class CreateTeamPayload(BaseModel):
    """Request body for creating a team. The caller becomes its leader."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    rto_policy: RtoPolicy | None = None


class AddMemberPayload(BaseModel):
    """Request body for adding a member to a team."""

    user_id: uuid.UUID
    role: TeamRole = TeamRole.MEMBER


class TeamResponse(BaseModel):
    """Response schema for a team."""

    id: uuid.UUID
    name: str
    description: str | None
    created_by: uuid.UUID
    rto_policy: RtoPolicy
    member_count: int
    created_at: datetime


class TeamMemberResponse(BaseModel):
    """Response schema for a team membership."""

    team_id: uuid.UUID
    user_id: uuid.UUID
    role: TeamRole
    joined_at: datetime


class TeamMemberListResponse(BaseModel):
    """All members of a team."""

    items: list[TeamMemberResponse]
    total: int
