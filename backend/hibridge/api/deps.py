# ruff: noqa: B008, TC002, TC003
from __future__ import annotations

import uuid
from typing import Annotated, Literal

from fastapi import Depends, Header, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from hibridge.db import get_session
from hibridge.exceptions import AppError
from hibridge.schemas.auth import AuthContext
from hibridge.services.team import require_member


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: Literal["member", "leader", "admin"] = Header(default="member"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def validate_team_scope(
    team_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
    session: AsyncSession = Depends(get_session),
) -> AuthContext:
    """Ensure the caller belongs to the path team and resolve their role in it.

    Admins may access any team. For everyone else the role comes from the
    membership row, not from the ``X-Role`` header.
    """
    if auth.role == "admin":
        return auth
    member = await require_member(session, team_id, auth.user_id)
    return AuthContext(user_id=auth.user_id, role=member.role)


TeamAuthDep = Annotated[AuthContext, Depends(validate_team_scope)]


async def require_leader(
    auth: TeamAuthDep,
) -> AuthContext:
    """Require the caller to lead the path team (or be an admin)."""
    if not auth.is_leader:
        raise AppError("Leader access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


LeaderDep = Annotated[AuthContext, Depends(require_leader)]


def require_self_or_leader(auth: AuthContext, user_id: uuid.UUID) -> None:
    """Members may act on their own records; leaders on anyone's."""
    if auth.user_id != user_id and not auth.is_leader:
        raise AppError("Not authorized for this member", status_code=status.HTTP_403_FORBIDDEN)
