# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from hibridge.exceptions import AppError, InvalidRequestError
from hibridge.models.enums import WorkType
from hibridge.models.schedule import WorkScheduleEntry
from hibridge.schemas.schedule import ScheduleEntryResponse, ScheduleListResponse
from hibridge.services.anchor import compute_anchor_days
from hibridge.services.compliance import load_week_entries
from hibridge.services.team import get_team_or_404, list_member_ids

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hibridge.schemas.auth import AuthContext
    from hibridge.schemas.schedule import UpsertSchedulePayload

logger = logging.getLogger(__name__)


def _build_entry_response(row: WorkScheduleEntry, anchor_days: set[date] | None = None) -> ScheduleEntryResponse:
    return ScheduleEntryResponse(
        id=row.id,
        user_id=row.user_id,
        date=row.date,
        work_type=WorkType(row.work_type),
        notes=row.notes,
        is_anchor_day=None if anchor_days is None else row.date in anchor_days,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


async def _team_anchor_days(
    session: AsyncSession,
    team_id: uuid.UUID,
    dates: set[date],
) -> set[date]:
    """Anchor days of the team across the Monday-based weeks covering ``dates``."""
    await get_team_or_404(session, team_id)
    member_ids = await list_member_ids(session, team_id)
    anchors: set[date] = set()
    for week_start in sorted({_monday_of(d) for d in dates}):
        entries = await load_week_entries(session, member_ids, week_start)
        anchors |= compute_anchor_days(entries, len(member_ids), week_start)
    return anchors


async def _existing_entries(
    session: AsyncSession,
    user_id: uuid.UUID,
    dates: list[date],
) -> dict[date, WorkScheduleEntry]:
    result = await session.execute(
        select(WorkScheduleEntry).where(
            col(WorkScheduleEntry.user_id) == user_id,
            col(WorkScheduleEntry.date).in_(dates),
        )
    )
    return {row.date: row for row in result.scalars().all()}


async def upsert_schedule(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    payload: UpsertSchedulePayload,
) -> ScheduleListResponse:
    """Write a user's entries; an entry for an existing date replaces it.

    Anchor status depends on a team, so ``is_anchor_day`` is left unset here;
    list with ``team_id`` to derive it.
    """
    if auth.user_id != user_id:
        raise AppError("Schedules can only be written by their owner", status_code=403)

    existing = await _existing_entries(session, user_id, [e.date for e in payload.entries])

    rows: list[WorkScheduleEntry] = []
    for item in payload.entries:
        row = existing.get(item.date)
        if row is None:
            row = WorkScheduleEntry(user_id=user_id, date=item.date, work_type=item.work_type.value, notes=item.notes)
        else:
            row.work_type = item.work_type.value
            row.notes = item.notes
        session.add(row)
        rows.append(row)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError("Schedule was changed concurrently; retry the write", status_code=409) from None
    await session.commit()
    for row in rows:
        await session.refresh(row)

    logger.info("Schedule for user=%s: %d entries written", user_id, len(rows))
    rows.sort(key=lambda r: r.date)
    return ScheduleListResponse(items=[_build_entry_response(r) for r in rows], total=len(rows))


async def list_schedule(
    session: AsyncSession,
    user_id: uuid.UUID,
    start: date,
    end: date,
    team_id: uuid.UUID | None = None,
) -> ScheduleListResponse:
    """List a user's entries in ``[start, end]``.

    When ``team_id`` is given, ``is_anchor_day`` is derived against that
    team's anchor days for the Monday-based weeks in range; otherwise it
    is None.
    """
    if end < start:
        msg = "end must not be before start"
        raise InvalidRequestError(msg)

    filters = [
        col(WorkScheduleEntry.user_id) == user_id,
        col(WorkScheduleEntry.date) >= start,
        col(WorkScheduleEntry.date) <= end,
    ]
    count_result = await session.execute(select(func.count()).select_from(WorkScheduleEntry).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(select(WorkScheduleEntry).where(*filters).order_by(col(WorkScheduleEntry.date)))
    rows = list(result.scalars().all())

    anchor_days: set[date] | None = None
    if team_id is not None:
        anchor_days = await _team_anchor_days(session, team_id, {r.date for r in rows})

    return ScheduleListResponse(items=[_build_entry_response(r, anchor_days) for r in rows], total=total)
