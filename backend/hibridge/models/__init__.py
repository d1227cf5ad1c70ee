from sqlmodel import SQLModel

from hibridge.models.balance import RewardBalance
from hibridge.models.base import FractionType, TimestampMixin, UUIDBase
from hibridge.models.enums import (
    AccrualModel,
    LedgerEntryType,
    LedgerSourceType,
    RequestStatus,
    TeamRole,
    Weekday,
    WorkType,
)
from hibridge.models.ledger import RewardLedgerEntry
from hibridge.models.request import RemoteDayRequest
from hibridge.models.schedule import WorkScheduleEntry
from hibridge.models.team import Team, TeamMember
from hibridge.models.vote import TeamVote

__all__ = [
    "AccrualModel",
    "FractionType",
    "LedgerEntryType",
    "LedgerSourceType",
    "RemoteDayRequest",
    "RequestStatus",
    "RewardBalance",
    "RewardLedgerEntry",
    "SQLModel",
    "Team",
    "TeamMember",
    "TeamRole",
    "TeamVote",
    "TimestampMixin",
    "UUIDBase",
    "Weekday",
    "WorkScheduleEntry",
    "WorkType",
]
