from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from hibridge.services import schedule as schedule_service

if TYPE_CHECKING:
    from httpx import AsyncClient

USER_ID = uuid.uuid4()
HEADERS = {"X-User-Id": str(USER_ID)}
SCHEDULE_URL = f"/users/{USER_ID}/schedule"
MON = date(2025, 3, 17)


async def test_upsert_creates_entries(async_client: AsyncClient) -> None:
    resp = await async_client.put(
        SCHEDULE_URL,
        json={
            "entries": [
                {"date": (MON + timedelta(days=1)).isoformat(), "work_type": "remote"},
                {"date": MON.isoformat(), "work_type": "office", "notes": "Planning"},
            ]
        },
        headers=HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert [item["date"] for item in data["items"]] == [MON.isoformat(), (MON + timedelta(days=1)).isoformat()]
    assert data["items"][0]["notes"] == "Planning"
    assert all(item["is_anchor_day"] is None for item in data["items"])


async def test_later_write_replaces_earlier(async_client: AsyncClient) -> None:
    body = {"entries": [{"date": MON.isoformat(), "work_type": "office"}]}
    first = await async_client.put(SCHEDULE_URL, json=body, headers=HEADERS)
    body = {"entries": [{"date": MON.isoformat(), "work_type": "remote"}]}
    second = await async_client.put(SCHEDULE_URL, json=body, headers=HEADERS)
    assert first.json()["items"][0]["id"] == second.json()["items"][0]["id"]

    resp = await async_client.get(
        SCHEDULE_URL, params={"start": MON.isoformat(), "end": MON.isoformat()}, headers=HEADERS
    )
    items = resp.json()["items"]
    assert len(items) == 1
    assert items[0]["work_type"] == "remote"


async def test_list_filters_by_range(async_client: AsyncClient) -> None:
    entries = [{"date": (MON + timedelta(days=i)).isoformat(), "work_type": "office"} for i in range(10)]
    await async_client.put(SCHEDULE_URL, json={"entries": entries}, headers=HEADERS)

    resp = await async_client.get(
        SCHEDULE_URL,
        params={"start": (MON + timedelta(days=2)).isoformat(), "end": (MON + timedelta(days=4)).isoformat()},
        headers=HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["total"] == 3
    assert all(item["is_anchor_day"] is None for item in resp.json()["items"])


async def test_only_owner_can_write(async_client: AsyncClient) -> None:
    resp = await async_client.put(
        SCHEDULE_URL,
        json={"entries": [{"date": MON.isoformat(), "work_type": "office"}]},
        headers={"X-User-Id": str(uuid.uuid4())},
    )
    assert resp.status_code == 403


async def test_duplicate_dates_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.put(
        SCHEDULE_URL,
        json={
            "entries": [
                {"date": MON.isoformat(), "work_type": "office"},
                {"date": MON.isoformat(), "work_type": "remote"},
            ]
        },
        headers=HEADERS,
    )
    assert resp.status_code == 422


async def test_inverted_range_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.get(
        SCHEDULE_URL,
        params={"start": (MON + timedelta(days=1)).isoformat(), "end": MON.isoformat()},
        headers=HEADERS,
    )
    assert resp.status_code == 400


async def test_racing_first_write_returns_409(async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    body = {"entries": [{"date": MON.isoformat(), "work_type": "office"}]}
    assert (await async_client.put(SCHEDULE_URL, json=body, headers=HEADERS)).status_code == 200

    # The other writer's row is committed but was not there when this write looked.
    async def _nothing_yet(*_args: Any) -> dict[date, Any]:
        return {}

    monkeypatch.setattr(schedule_service, "_existing_entries", _nothing_yet)
    body = {"entries": [{"date": MON.isoformat(), "work_type": "remote"}]}
    resp = await async_client.put(SCHEDULE_URL, json=body, headers=HEADERS)
    assert resp.status_code == 409

    resp = await async_client.get(
        SCHEDULE_URL, params={"start": MON.isoformat(), "end": MON.isoformat()}, headers=HEADERS
    )
    assert [item["work_type"] for item in resp.json()["items"]] == ["office"]
