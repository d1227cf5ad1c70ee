"""Tests for RTO compliance: the pure checker and the per-user/team endpoints."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING

import pytest

from hibridge.exceptions import ConfigurationError
from hibridge.models.enums import WorkType
from hibridge.schemas.schedule import WorkScheduleEntryState
from hibridge.services.compliance import check_compliance

if TYPE_CHECKING:
    from httpx import AsyncClient

USER_ID = uuid.uuid4()
LEADER_ID = uuid.uuid4()
MEMBER_ID = uuid.uuid4()
MONDAY = date(2025, 3, 17)

LEADER_HEADERS = {"X-User-Id": str(LEADER_ID), "X-Role": "leader"}
MEMBER_HEADERS = {"X-User-Id": str(MEMBER_ID), "X-Role": "member"}


def _entries(*work_types: WorkType) -> list[WorkScheduleEntryState]:
    return [
        WorkScheduleEntryState(user_id=USER_ID, date=MONDAY + timedelta(days=i), work_type=wt)
        for i, wt in enumerate(work_types)
    ]


# ---------------------------------------------------------------------------
# check_compliance
# ---------------------------------------------------------------------------


def test_compliant_when_office_days_meet_requirement() -> None:
    result = check_compliance(_entries(WorkType.OFFICE, WorkType.OFFICE, WorkType.OFFICE, WorkType.REMOTE), 3)
    assert result.compliant
    assert result.office_days == 3
    assert result.remote_days == 1
    assert result.message is None
    assert result.deficit == 0


def test_flexible_counts_as_remote() -> None:
    result = check_compliance(_entries(WorkType.OFFICE, WorkType.FLEXIBLE, WorkType.REMOTE), 2)
    assert not result.compliant
    assert result.office_days == 1
    assert result.remote_days == 2


def test_non_compliant_reports_deficit() -> None:
    result = check_compliance(_entries(WorkType.OFFICE, WorkType.REMOTE), 3)
    assert not result.compliant
    assert result.deficit == 2
    assert result.message == "Need 2 more office day(s) to meet policy requirements"


def test_zero_requirement_always_compliant() -> None:
    result = check_compliance([], 0)
    assert result.compliant
    assert result.office_days == 0


def test_exceeding_requirement_is_compliant() -> None:
    result = check_compliance(_entries(*[WorkType.OFFICE] * 5), 3)
    assert result.compliant
    assert result.office_days == 5


def test_negative_requirement_rejected() -> None:
    with pytest.raises(ConfigurationError, match="must not be negative"):
        check_compliance(_entries(WorkType.OFFICE), -1)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def _create_team(client: AsyncClient, required_office_days: int = 3) -> str:
    resp = await client.post(
        "/teams",
        json={"name": "Platform", "rto_policy": {"required_office_days": required_office_days}},
        headers=LEADER_HEADERS,
    )
    assert resp.status_code == 201
    team_id: str = resp.json()["id"]
    resp = await client.post(f"/teams/{team_id}/members", json={"user_id": str(MEMBER_ID)}, headers=LEADER_HEADERS)
    assert resp.status_code == 201
    return team_id


async def _schedule(client: AsyncClient, user_id: uuid.UUID, headers: dict[str, str], *work_types: str) -> None:
    entries = [
        {"date": (MONDAY + timedelta(days=i)).isoformat(), "work_type": wt} for i, wt in enumerate(work_types)
    ]
    resp = await client.put(f"/users/{user_id}/schedule", json={"entries": entries}, headers=headers)
    assert resp.status_code == 200


async def test_user_compliance_endpoint(async_client: AsyncClient) -> None:
    team_id = await _create_team(async_client)
    await _schedule(async_client, MEMBER_ID, MEMBER_HEADERS, "office", "remote", "office", "remote", "remote")

    resp = await async_client.get(
        f"/teams/{team_id}/compliance/{MEMBER_ID}",
        params={"week_start": MONDAY.isoformat()},
        headers=MEMBER_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["compliant"] is False
    assert data["office_days"] == 2
    assert data["remote_days"] == 3
    assert data["deficit"] == 1
    assert data["message"] == "Need 1 more office day(s) to meet policy requirements"


async def test_user_compliance_ignores_other_weeks(async_client: AsyncClient) -> None:
    team_id = await _create_team(async_client, required_office_days=1)
    resp = await async_client.put(
        f"/users/{MEMBER_ID}/schedule",
        json={"entries": [{"date": (MONDAY + timedelta(days=7)).isoformat(), "work_type": "office"}]},
        headers=MEMBER_HEADERS,
    )
    assert resp.status_code == 200

    resp = await async_client.get(
        f"/teams/{team_id}/compliance/{MEMBER_ID}",
        params={"week_start": MONDAY.isoformat()},
        headers=MEMBER_HEADERS,
    )
    assert resp.json()["office_days"] == 0
    assert resp.json()["compliant"] is False


async def test_compliance_week_must_start_on_monday(async_client: AsyncClient) -> None:
    team_id = await _create_team(async_client)
    resp = await async_client.get(
        f"/teams/{team_id}/compliance/{MEMBER_ID}",
        params={"week_start": (MONDAY + timedelta(days=5)).isoformat()},
        headers=MEMBER_HEADERS,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidRequestError"


async def test_member_cannot_read_other_member_compliance(async_client: AsyncClient) -> None:
    team_id = await _create_team(async_client)
    resp = await async_client.get(
        f"/teams/{team_id}/compliance/{LEADER_ID}",
        params={"week_start": MONDAY.isoformat()},
        headers=MEMBER_HEADERS,
    )
    assert resp.status_code == 403


async def test_team_compliance_report(async_client: AsyncClient) -> None:
    team_id = await _create_team(async_client, required_office_days=2)
    await _schedule(async_client, LEADER_ID, LEADER_HEADERS, "office", "office", "remote")
    await _schedule(async_client, MEMBER_ID, MEMBER_HEADERS, "remote", "flexible", "office")

    resp = await async_client.get(
        f"/teams/{team_id}/compliance",
        params={"week_start": MONDAY.isoformat()},
        headers=LEADER_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert data["compliant_count"] == 1
    assert data["required_office_days"] == 2
    by_user = {item["user_id"]: item for item in data["items"]}
    assert by_user[str(LEADER_ID)]["compliant"] is True
    assert by_user[str(MEMBER_ID)]["deficit"] == 1


async def test_team_compliance_report_requires_leader(async_client: AsyncClient) -> None:
    team_id = await _create_team(async_client)
    resp = await async_client.get(
        f"/teams/{team_id}/compliance",
        params={"week_start": MONDAY.isoformat()},
        headers=MEMBER_HEADERS,
    )
    assert resp.status_code == 403
