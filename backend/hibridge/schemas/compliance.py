# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict


class ComplianceResult(BaseModel):
    """Outcome of checking a set of schedule entries against an office-day target."""

    model_config = ConfigDict(frozen=True)

    compliant: bool
    office_days: int
    remote_days: int
    required_office_days: int
    message: str | None = None

    @property
    def deficit(self) -> int:
        return max(0, self.required_office_days - self.office_days)


class UserComplianceResponse(BaseModel):
    """A member's compliance for one week."""

    user_id: uuid.UUID
    team_id: uuid.UUID
    week_start: date
    compliant: bool
    office_days: int
    remote_days: int
    required_office_days: int
    deficit: int
    message: str | None


class TeamComplianceReport(BaseModel):
    """Compliance of every team member for one week."""

    team_id: uuid.UUID
    week_start: date
    required_office_days: int
    compliant_count: int
    total: int
    items: list[UserComplianceResponse]
