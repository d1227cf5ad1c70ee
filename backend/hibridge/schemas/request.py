# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from fractions import Fraction

from pydantic import BaseModel, ConfigDict, Field

from hibridge.models.enums import RequestStatus

# ---------------------------------------------------------------------------
# Domain value
# ---------------------------------------------------------------------------


class RemoteDayRequestState(BaseModel):
    """Immutable view of a remote-day request.

    ``reserved_days`` is what submission actually took from the balance;
    it is what cancellation, rejection and approval settle.
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    user_id: uuid.UUID
    team_id: uuid.UUID
    date: date
    days_requested: int
    reserved_days: Fraction
    status: RequestStatus = RequestStatus.PENDING
    reason: str | None = None
    requires_high_limit_approval: bool = False
    created_at: datetime
    decided_at: datetime | None = None
    decided_by: uuid.UUID | None = None
    decision_note: str | None = None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitRemoteDayPayload(BaseModel):
    """Request body for spending remote-day credit."""

    date: date
    days_requested: int = Field(default=1, gt=0, le=31)
    reason: str | None = Field(default=None, max_length=1000)
    idempotency_key: str | None = Field(default=None, max_length=255)


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    note: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single remote-day request."""

    id: uuid.UUID
    user_id: uuid.UUID
    team_id: uuid.UUID
    date: date
    days_requested: int
    reserved_days: Fraction
    status: RequestStatus
    reason: str | None
    requires_high_limit_approval: bool
    decided_at: datetime | None
    decided_by: uuid.UUID | None
    decision_note: str | None
    idempotency_key: str | None
    created_at: datetime


class RequestListResponse(BaseModel):
    """Paginated list of remote-day requests."""

    items: list[RequestResponse]
    total: int
