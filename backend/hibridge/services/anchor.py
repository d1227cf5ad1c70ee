"""Anchor-day consensus over committed schedules and forward votes.

A day is an anchor day when strictly more than half the team is in the
office (or voted for it). Missing schedules and votes count as absence.
"""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from hibridge.exceptions import InvalidRequestError
from hibridge.models.enums import WorkType
from hibridge.models.vote import TeamVote
from hibridge.schemas.consensus import (
    AnchorDaysResponse,
    DayPresence,
    DaySummary,
    ScheduleSummaryResponse,
    VotedDay,
    VotedDaysResponse,
)
from hibridge.services.compliance import WEEK_LENGTH, check_week_start, load_week_entries
from hibridge.services.team import count_members, get_team_or_404, list_member_ids
from hibridge.services.vote import to_vote_state

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from hibridge.schemas.schedule import WorkScheduleEntryState
    from hibridge.schemas.vote import TeamVoteState


def week_days(week_start: date) -> list[date]:
    """Monday to Friday of the week starting at ``week_start``."""
    return [week_start + timedelta(days=i) for i in range(WEEK_LENGTH)]


def _is_majority(count: int, team_size: int) -> bool:
    # count > team_size / 2 without leaving integers; an empty team has no majority.
    return team_size > 0 and 2 * count > team_size


def _check_team_size(team_size: int) -> None:
    if team_size < 0:
        msg = f"team_size must not be negative, got {team_size}"
        raise InvalidRequestError(msg)


def count_office_presence(entries: Iterable[WorkScheduleEntryState], week_start: date) -> dict[date, int]:
    """Office entries per day of the week, zero-filled."""
    counts = dict.fromkeys(week_days(week_start), 0)
    for entry in entries:
        if entry.work_type == WorkType.OFFICE and entry.date in counts:
            counts[entry.date] += 1
    return counts


def compute_anchor_days(
    entries: Iterable[WorkScheduleEntryState],
    team_size: int,
    week_start: date,
) -> set[date]:
    """Days of the week on which a strict majority of the team is in the office."""
    _check_team_size(team_size)
    check_week_start(week_start)
    counts = count_office_presence(entries, week_start)
    return {day for day, count in counts.items() if _is_majority(count, team_size)}


def compute_voted_anchor_days(
    votes: Iterable[TeamVoteState],
    team_size: int,
    week_start: date,
) -> list[VotedDay]:
    """Tally votes for ``week_start`` and flag the majority days, sorted by date.

    Votes cast for another week and voted dates outside the 5-day window
    are ignored.
    """
    _check_team_size(team_size)
    check_week_start(week_start)
    tally = dict.fromkeys(week_days(week_start), 0)
    for vote in votes:
        if vote.voting_week != week_start:
            continue
        for day in vote.voted_days:
            if day in tally:
                tally[day] += 1

    return [
        VotedDay(date=day, votes=count, is_anchor_day=_is_majority(count, team_size))
        for day, count in sorted(tally.items())
    ]


# ---------------------------------------------------------------------------
# Persisted reads
# ---------------------------------------------------------------------------


async def get_team_anchor_days(
    session: AsyncSession,
    team_id: uuid.UUID,
    week_start: date,
) -> AnchorDaysResponse:
    """Anchor days for a team week, derived from members' committed schedules."""
    await get_team_or_404(session, team_id)
    member_ids = await list_member_ids(session, team_id)
    entries = await load_week_entries(session, member_ids, week_start)
    team_size = len(member_ids)

    counts = count_office_presence(entries, week_start)
    anchors = compute_anchor_days(entries, team_size, week_start)
    return AnchorDaysResponse(
        team_id=team_id,
        week_start=week_start,
        team_size=team_size,
        days=[DayPresence(date=day, office_count=count, is_anchor_day=day in anchors) for day, count in counts.items()],
        anchor_days=sorted(anchors),
    )


async def get_team_voted_days(
    session: AsyncSession,
    team_id: uuid.UUID,
    week_start: date,
) -> VotedDaysResponse:
    """Vote tally and majority verdict for a team's upcoming week."""
    await get_team_or_404(session, team_id)
    result = await session.execute(
        select(TeamVote).where(
            col(TeamVote.team_id) == team_id,
            col(TeamVote.voting_week) == week_start,
        )
    )
    votes = [to_vote_state(row) for row in result.scalars().all()]
    team_size = await count_members(session, team_id)
    return VotedDaysResponse(
        team_id=team_id,
        week_start=week_start,
        team_size=team_size,
        items=compute_voted_anchor_days(votes, team_size, week_start),
    )


async def get_team_schedule_summary(
    session: AsyncSession,
    team_id: uuid.UUID,
    week_start: date,
) -> ScheduleSummaryResponse:
    """Per-day member counts by work type for a team week."""
    await get_team_or_404(session, team_id)
    member_ids = await list_member_ids(session, team_id)
    entries = await load_week_entries(session, member_ids, week_start)

    counts: Counter[tuple[date, WorkType]] = Counter((e.date, e.work_type) for e in entries)
    return ScheduleSummaryResponse(
        team_id=team_id,
        week_start=week_start,
        days=[
            DaySummary(
                date=day,
                office_member_count=counts[(day, WorkType.OFFICE)],
                remote_member_count=counts[(day, WorkType.REMOTE)],
                flexible_member_count=counts[(day, WorkType.FLEXIBLE)],
            )
            for day in week_days(week_start)
        ],
    )
