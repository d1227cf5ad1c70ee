"""RTO compliance: office-day counts checked against a team's required days."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hibridge.exceptions import ConfigurationError, InvalidRequestError
from hibridge.models.enums import WorkType
from hibridge.models.schedule import WorkScheduleEntry
from hibridge.schemas.compliance import ComplianceResult, TeamComplianceReport, UserComplianceResponse
from hibridge.schemas.schedule import WorkScheduleEntryState
from hibridge.services.team import get_team_or_404, list_member_ids, rto_policy_of

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable, Sequence
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

WEEK_LENGTH = 5


def check_week_start(week_start: date) -> None:
    """Weeks run Monday to Friday; reject any other start day."""
    if week_start.weekday() != 0:
        msg = f"week_start must be a Monday, got {week_start.isoformat()} ({week_start:%A})"
        raise InvalidRequestError(msg)


def check_compliance(entries: Iterable[WorkScheduleEntryState], required_office_days: int) -> ComplianceResult:
    """Count office and remote days and compare against the requirement.

    Flexible days count toward ``remote_days``.
    """
    if required_office_days < 0:
        msg = f"required_office_days must not be negative, got {required_office_days}"
        raise ConfigurationError(msg)

    office_days = 0
    remote_days = 0
    for entry in entries:
        if entry.work_type == WorkType.OFFICE:
            office_days += 1
        else:
            remote_days += 1

    compliant = office_days >= required_office_days
    message = None
    if not compliant:
        message = f"Need {required_office_days - office_days} more office day(s) to meet policy requirements"

    return ComplianceResult(
        compliant=compliant,
        office_days=office_days,
        remote_days=remote_days,
        required_office_days=required_office_days,
        message=message,
    )


# ---------------------------------------------------------------------------
# Persisted reads
# ---------------------------------------------------------------------------


def to_schedule_state(row: WorkScheduleEntry) -> WorkScheduleEntryState:
    return WorkScheduleEntryState(user_id=row.user_id, date=row.date, work_type=WorkType(row.work_type))


async def load_week_entries(
    session: AsyncSession,
    user_ids: Sequence[uuid.UUID],
    week_start: date,
) -> list[WorkScheduleEntryState]:
    """Schedule entries of the given users for the 5 days starting at ``week_start``."""
    check_week_start(week_start)
    if not user_ids:
        return []
    result = await session.execute(
        select(WorkScheduleEntry)
        .where(
            col(WorkScheduleEntry.user_id).in_(user_ids),
            col(WorkScheduleEntry.date) >= week_start,
            col(WorkScheduleEntry.date) < week_start + timedelta(days=WEEK_LENGTH),
        )
        .order_by(col(WorkScheduleEntry.date))
    )
    return [to_schedule_state(row) for row in result.scalars().all()]


def _build_user_compliance(
    user_id: uuid.UUID,
    team_id: uuid.UUID,
    week_start: date,
    result: ComplianceResult,
) -> UserComplianceResponse:
    return UserComplianceResponse(
        user_id=user_id,
        team_id=team_id,
        week_start=week_start,
        compliant=result.compliant,
        office_days=result.office_days,
        remote_days=result.remote_days,
        required_office_days=result.required_office_days,
        deficit=result.deficit,
        message=result.message,
    )


async def get_user_compliance(
    session: AsyncSession,
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    week_start: date,
) -> UserComplianceResponse:
    """Check one member's week against the team's RTO policy."""
    team = await get_team_or_404(session, team_id)
    policy = rto_policy_of(team)
    entries = await load_week_entries(session, [user_id], week_start)
    result = check_compliance(entries, policy.required_office_days)
    return _build_user_compliance(user_id, team_id, week_start, result)


async def get_team_compliance_report(
    session: AsyncSession,
    team_id: uuid.UUID,
    week_start: date,
) -> TeamComplianceReport:
    """Check every member's week against the team's RTO policy."""
    team = await get_team_or_404(session, team_id)
    policy = rto_policy_of(team)
    member_ids = await list_member_ids(session, team_id)
    entries = await load_week_entries(session, member_ids, week_start)

    by_user: dict[uuid.UUID, list[WorkScheduleEntryState]] = {uid: [] for uid in member_ids}
    for entry in entries:
        by_user[entry.user_id].append(entry)

    items = [
        _build_user_compliance(uid, team_id, week_start, check_compliance(by_user[uid], policy.required_office_days))
        for uid in member_ids
    ]
    compliant_count = sum(1 for item in items if item.compliant)
    logger.info("Compliance for team=%s week=%s: %d/%d", team_id, week_start, compliant_count, len(items))
    return TeamComplianceReport(
        team_id=team_id,
        week_start=week_start,
        required_office_days=policy.required_office_days,
        compliant_count=compliant_count,
        total=len(items),
        items=items,
    )
