from __future__ import annotations

import enum


class WorkType(enum.StrEnum):
    """Where a user works on a given date."""

    OFFICE = "office"
    REMOTE = "remote"
    FLEXIBLE = "flexible"


class AccrualModel(enum.StrEnum):
    """How office attendance converts into remote-day credit."""

    RATIO_BASED = "ratio_based"
    SIMPLE_THREE_TO_ONE = "simple_3_to_1"
    STREAK_BASED = "streak_based"


class RequestStatus(enum.StrEnum):
    """State machine for remote-day requests. Every state but PENDING is terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class TeamRole(enum.StrEnum):
    """Membership role within a team."""

    LEADER = "leader"
    MEMBER = "member"


class LedgerEntryType(enum.StrEnum):
    """Type of ledger entry affecting a reward balance."""

    ACCRUAL = "ACCRUAL"
    STREAK_BONUS = "STREAK_BONUS"
    RESERVATION = "RESERVATION"
    RESERVATION_RELEASE = "RESERVATION_RELEASE"
    USAGE = "USAGE"


class LedgerSourceType(enum.StrEnum):
    """Origin of a ledger entry."""

    ATTENDANCE = "ATTENDANCE"
    REQUEST = "REQUEST"


class Weekday(enum.StrEnum):
    """Working weekdays a team may pin as fixed office days."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
