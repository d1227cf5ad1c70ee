"""Tests for the remote-day request lifecycle: reservation, cancellation,
approval, rejection, idempotency and the team request endpoints.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta
from fractions import Fraction
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from hibridge.exceptions import InvalidRequestError, InvalidStateTransitionError
from hibridge.models.enums import LedgerEntryType, RequestStatus
from hibridge.models.ledger import RewardLedgerEntry
from hibridge.schemas.balance import BalanceState
from hibridge.services.request import cancel_request, resolve_request, submit_request

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

USER_ID = uuid.uuid4()
TEAM_ID = uuid.uuid4()
NOW = datetime(2025, 3, 21, 9, 0, tzinfo=UTC)
ON = date(2025, 3, 28)


def _balance(current: int | Fraction = 5) -> BalanceState:
    amount = Fraction(current)
    return BalanceState(user_id=USER_ID, team_id=TEAM_ID, current=amount, total_earned=amount)


# ---------------------------------------------------------------------------
# submit_request
# ---------------------------------------------------------------------------


def test_submit_reserves_balance() -> None:
    balance, request = submit_request(_balance(5), 2, ON, "Dentist", now=NOW)
    assert balance.current == 3
    assert balance.held == 2
    assert request.status == RequestStatus.PENDING
    assert request.reserved_days == 2
    assert request.reason == "Dentist"
    assert request.requires_high_limit_approval is True


def test_single_day_needs_no_high_limit_approval() -> None:
    _, request = submit_request(_balance(5), 1, ON, now=NOW)
    assert request.requires_high_limit_approval is False


def test_submit_clamps_reservation_at_zero() -> None:
    balance, request = submit_request(_balance(Fraction(1, 3)), 2, ON, now=NOW)
    assert balance.current == 0
    assert balance.held == Fraction(1, 3)
    assert request.reserved_days == Fraction(1, 3)
    assert request.days_requested == 2


@pytest.mark.parametrize("days", [0, -1])
def test_submit_rejects_non_positive_days(days: int) -> None:
    with pytest.raises(InvalidRequestError):
        submit_request(_balance(), days, ON, now=NOW)


# ---------------------------------------------------------------------------
# cancel_request
# ---------------------------------------------------------------------------


def test_submit_then_cancel_restores_exactly() -> None:
    original = _balance(5)
    reserved, request = submit_request(original, 2, ON, now=NOW)
    restored, cancelled = cancel_request(reserved, request, now=NOW)
    assert restored.current == 5
    assert restored.held == 0
    assert restored.total_used == 0
    assert cancelled.status == RequestStatus.CANCELLED


def test_cancel_twice_raises_without_balance_change() -> None:
    reserved, request = submit_request(_balance(5), 2, ON, now=NOW)
    restored, cancelled = cancel_request(reserved, request, now=NOW)
    with pytest.raises(InvalidStateTransitionError, match="already cancelled"):
        cancel_request(restored, cancelled, now=NOW)
    assert restored.current == 5


def test_cancel_with_foreign_balance_rejected() -> None:
    reserved, request = submit_request(_balance(5), 1, ON, now=NOW)
    other = BalanceState(user_id=uuid.uuid4(), team_id=TEAM_ID, current=Fraction(5), total_earned=Fraction(5))
    with pytest.raises(InvalidRequestError):
        cancel_request(other, request, now=NOW)


# ---------------------------------------------------------------------------
# resolve_request
# ---------------------------------------------------------------------------


def test_approve_commits_reservation() -> None:
    reserved, request = submit_request(_balance(5), 2, ON, now=NOW)
    decider = uuid.uuid4()
    balance, approved = resolve_request(reserved, request, True, now=NOW, decided_by=decider, note="ok")
    assert balance.current == 3
    assert balance.held == 0
    assert balance.total_used == 2
    assert balance.current == balance.total_earned - balance.total_used
    assert approved.status == RequestStatus.APPROVED
    assert approved.decided_by == decider
    assert approved.decision_note == "ok"


def test_reject_restores_like_cancel() -> None:
    reserved, request = submit_request(_balance(5), 2, ON, now=NOW)
    balance, rejected = resolve_request(reserved, request, False, now=NOW)
    assert balance.current == 5
    assert balance.held == 0
    assert balance.total_used == 0
    assert rejected.status == RequestStatus.REJECTED


def test_cancel_after_approval_rejected() -> None:
    reserved, request = submit_request(_balance(5), 1, ON, now=NOW)
    balance, approved = resolve_request(reserved, request, True, now=NOW)
    with pytest.raises(InvalidStateTransitionError):
        cancel_request(balance, approved, now=NOW)


def test_resolve_terminal_request_rejected() -> None:
    reserved, request = submit_request(_balance(5), 1, ON, now=NOW)
    balance, rejected = resolve_request(reserved, request, False, now=NOW)
    with pytest.raises(InvalidStateTransitionError):
        resolve_request(balance, rejected, True, now=NOW)


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------

LEADER_ID = uuid.uuid4()
MEMBER_ID = uuid.uuid4()
OUTSIDER_ID = uuid.uuid4()
LEADER_HEADERS = {"X-User-Id": str(LEADER_ID), "X-Role": "leader"}
MEMBER_HEADERS = {"X-User-Id": str(MEMBER_ID), "X-Role": "member"}
MON = date(2025, 3, 17)


async def _setup_team(client: AsyncClient, office_days: int = 3) -> str:
    """Create a team with MEMBER_ID and credit the member one day per 3 office days."""
    resp = await client.post("/teams", json={"name": "Requests"}, headers=LEADER_HEADERS)
    assert resp.status_code == 201
    team_id: str = resp.json()["id"]
    resp = await client.post(f"/teams/{team_id}/members", json={"user_id": str(MEMBER_ID)}, headers=LEADER_HEADERS)
    assert resp.status_code == 201
    for i in range(office_days):
        resp = await client.post(
            f"/teams/{team_id}/members/{MEMBER_ID}/attendance",
            json={"attended_on": (MON + timedelta(days=i)).isoformat()},
            headers=MEMBER_HEADERS,
        )
        assert resp.status_code == 200
    return team_id


async def _submit(client: AsyncClient, team_id: str, **body: Any) -> dict[str, Any]:
    payload = {"date": ON.isoformat(), "days_requested": 1, **body}
    resp = await client.post(f"/teams/{team_id}/requests", json=payload, headers=MEMBER_HEADERS)
    assert resp.status_code == 201, resp.text
    data: dict[str, Any] = resp.json()
    return data


async def _balance_of(client: AsyncClient, team_id: str) -> dict[str, Any]:
    resp = await client.get(f"/teams/{team_id}/members/{MEMBER_ID}/balance", headers=MEMBER_HEADERS)
    assert resp.status_code == 200
    data: dict[str, Any] = resp.json()
    return data


# ---------------------------------------------------------------------------
# API: submit / cancel / approve / reject
# ---------------------------------------------------------------------------


async def test_submit_request_reserves_balance(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id, reason="School run")
    assert request["status"] == "pending"
    assert request["requires_high_limit_approval"] is False
    assert Fraction(request["reserved_days"]) == 1

    balance = await _balance_of(async_client, team_id)
    assert Fraction(balance["current"]) == 0
    assert Fraction(balance["held"]) == 1


async def test_cancel_request_restores_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)

    resp = await async_client.post(f"/teams/{team_id}/requests/{request['id']}/cancel", headers=MEMBER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    balance = await _balance_of(async_client, team_id)
    assert Fraction(balance["current"]) == 1
    assert Fraction(balance["held"]) == 0

    result = await db_session.execute(
        select(RewardLedgerEntry.entry_type).where(col(RewardLedgerEntry.source_id) == request["id"])
    )
    assert set(result.scalars().all()) == {LedgerEntryType.RESERVATION, LedgerEntryType.RESERVATION_RELEASE}


async def test_cancel_twice_returns_409(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)
    url = f"/teams/{team_id}/requests/{request['id']}/cancel"

    assert (await async_client.post(url, headers=MEMBER_HEADERS)).status_code == 200
    resp = await async_client.post(url, headers=MEMBER_HEADERS)
    assert resp.status_code == 409
    assert resp.json()["error"] == "InvalidStateTransitionError"

    balance = await _balance_of(async_client, team_id)
    assert Fraction(balance["current"]) == 1


async def test_approve_request_moves_reservation_to_used(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)

    resp = await async_client.post(
        f"/teams/{team_id}/requests/{request['id']}/approve", json={"note": "Enjoy"}, headers=LEADER_HEADERS
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "approved"
    assert data["decided_by"] == str(LEADER_ID)
    assert data["decision_note"] == "Enjoy"

    balance = await _balance_of(async_client, team_id)
    assert Fraction(balance["current"]) == 0
    assert Fraction(balance["held"]) == 0
    assert Fraction(balance["total_used"]) == 1


async def test_reject_request_restores_balance(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)

    resp = await async_client.post(f"/teams/{team_id}/requests/{request['id']}/reject", headers=LEADER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"

    balance = await _balance_of(async_client, team_id)
    assert Fraction(balance["current"]) == 1
    assert Fraction(balance["total_used"]) == 0


async def test_member_cannot_approve(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)
    resp = await async_client.post(f"/teams/{team_id}/requests/{request['id']}/approve", headers=MEMBER_HEADERS)
    assert resp.status_code == 403


async def test_leader_header_without_team_role_cannot_approve(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)
    resp = await async_client.post(
        f"/teams/{team_id}/requests/{request['id']}/approve",
        headers={"X-User-Id": str(MEMBER_ID), "X-Role": "leader"},
    )
    assert resp.status_code == 403

    resp = await async_client.get(f"/teams/{team_id}/requests/{request['id']}", headers=MEMBER_HEADERS)
    assert resp.json()["status"] == "pending"


async def test_member_promoted_to_leader_can_approve(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    deputy_id = uuid.uuid4()
    resp = await async_client.post(
        f"/teams/{team_id}/members", json={"user_id": str(deputy_id), "role": "leader"}, headers=LEADER_HEADERS
    )
    assert resp.status_code == 201
    request = await _submit(async_client, team_id)

    resp = await async_client.post(
        f"/teams/{team_id}/requests/{request['id']}/approve",
        headers={"X-User-Id": str(deputy_id), "X-Role": "member"},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"


async def test_admin_can_approve_without_membership(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)
    resp = await async_client.post(
        f"/teams/{team_id}/requests/{request['id']}/approve",
        headers={"X-User-Id": str(OUTSIDER_ID), "X-Role": "admin"},
    )
    assert resp.status_code == 200


async def test_other_member_cannot_cancel(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    other_id = uuid.uuid4()
    await async_client.post(f"/teams/{team_id}/members", json={"user_id": str(other_id)}, headers=LEADER_HEADERS)
    request = await _submit(async_client, team_id)

    resp = await async_client.post(
        f"/teams/{team_id}/requests/{request['id']}/cancel",
        headers={"X-User-Id": str(other_id), "X-Role": "member"},
    )
    assert resp.status_code == 403


async def test_leader_can_cancel_for_member(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    request = await _submit(async_client, team_id)
    resp = await async_client.post(f"/teams/{team_id}/requests/{request['id']}/cancel", headers=LEADER_HEADERS)
    assert resp.status_code == 200


async def test_submit_with_insufficient_balance_reserves_what_is_available(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client, office_days=1)
    request = await _submit(async_client, team_id, days_requested=2)
    assert request["requires_high_limit_approval"] is True
    assert Fraction(request["reserved_days"]) == Fraction(1, 3)

    balance = await _balance_of(async_client, team_id)
    assert Fraction(balance["current"]) == 0


async def test_submit_zero_days_rejected(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    resp = await async_client.post(
        f"/teams/{team_id}/requests",
        json={"date": ON.isoformat(), "days_requested": 0},
        headers=MEMBER_HEADERS,
    )
    assert resp.status_code == 422


async def test_outsider_cannot_submit(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client)
    resp = await async_client.post(
        f"/teams/{team_id}/requests",
        json={"date": ON.isoformat()},
        headers={"X-User-Id": str(OUTSIDER_ID), "X-Role": "member"},
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# API: idempotency, listing
# ---------------------------------------------------------------------------


async def test_resubmission_with_same_key_is_idempotent(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client, office_days=5)
    first = await _submit(async_client, team_id, idempotency_key="tab-1")
    second = await _submit(async_client, team_id, idempotency_key="tab-1")
    assert first["id"] == second["id"]

    balance = await _balance_of(async_client, team_id)
    assert Fraction(balance["held"]) == 1
    assert Fraction(balance["current"]) == Fraction(2, 3)


async def test_list_and_get_requests(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client, office_days=5)
    first = await _submit(async_client, team_id)
    await _submit(async_client, team_id)
    await async_client.post(f"/teams/{team_id}/requests/{first['id']}/cancel", headers=MEMBER_HEADERS)

    resp = await async_client.get(f"/teams/{team_id}/requests", headers=LEADER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total"] == 2

    resp = await async_client.get(
        f"/teams/{team_id}/requests", params={"status": "pending", "user_id": str(MEMBER_ID)}, headers=LEADER_HEADERS
    )
    assert resp.json()["total"] == 1

    resp = await async_client.get(f"/teams/{team_id}/requests/{first['id']}", headers=MEMBER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"


async def test_get_unknown_request_returns_404(async_client: AsyncClient) -> None:
    team_id = await _setup_team(async_client, office_days=0)
    resp = await async_client.get(f"/teams/{team_id}/requests/{uuid.uuid4()}", headers=MEMBER_HEADERS)
    assert resp.status_code == 404
