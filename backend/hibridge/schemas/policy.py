from __future__ import annotations

from datetime import time
from fractions import Fraction
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Discriminator, Field, Tag, model_validator

from hibridge.models.enums import Weekday, WorkType

# ---------------------------------------------------------------------------
# Accrual models (discriminated union)
# ---------------------------------------------------------------------------


class RatioBasedAccrual(BaseModel):
    """Credit ``1 / office_to_remote_ratio`` remote days per qualifying office day."""

    accrual_model: Literal["ratio_based"] = "ratio_based"
    office_to_remote_ratio: int = Field(gt=0)


class SimpleThreeToOneAccrual(BaseModel):
    """Fixed three office days per remote day.

    Behaves like ``ratio_based`` with a ratio of 3 but stays a distinct
    model for teams that pinned it by name.
    """

    accrual_model: Literal["simple_3_to_1"] = "simple_3_to_1"

    @property
    def office_to_remote_ratio(self) -> int:
        return 3


class StreakBasedAccrual(BaseModel):
    """No per-day credit; a lump bonus each time the streak counter hits the threshold."""

    accrual_model: Literal["streak_based"] = "streak_based"
    streak_bonus_threshold: int = Field(gt=0)
    streak_bonus_amount: Fraction

    @model_validator(mode="after")
    def _validate_amount(self) -> Self:
        if self.streak_bonus_amount <= 0:
            msg = "streak_bonus_amount must be positive"
            raise ValueError(msg)
        return self


def _accrual_discriminator(v: Any) -> str:
    """Discriminate accrual settings by their model name."""
    m = v.get("accrual_model") if isinstance(v, dict) else getattr(v, "accrual_model", None)
    if m in ("ratio_based", "simple_3_to_1", "streak_based"):
        return m
    return "unknown"


AccrualPolicy = Annotated[
    Annotated[RatioBasedAccrual, Tag("ratio_based")]
    | Annotated[SimpleThreeToOneAccrual, Tag("simple_3_to_1")]
    | Annotated[StreakBasedAccrual, Tag("streak_based")],
    Discriminator(_accrual_discriminator),
]

# ---------------------------------------------------------------------------
# Return-to-office policy
# ---------------------------------------------------------------------------


class CoreHours(BaseModel):
    """Window during which office attendance is expected."""

    start: time
    end: time

    @model_validator(mode="after")
    def _validate_window(self) -> Self:
        if self.end <= self.start:
            msg = "core_hours.end must be after core_hours.start"
            raise ValueError(msg)
        return self


class RtoPolicy(BaseModel):
    """Per-team return-to-office rules."""

    required_office_days: int = Field(default=3, ge=0, le=5)
    core_hours: CoreHours | None = None
    allowed_work_types: list[WorkType] = Field(
        default_factory=lambda: [WorkType.OFFICE, WorkType.REMOTE, WorkType.FLEXIBLE],
        min_length=1,
    )
    fixed_days: list[Weekday] = []

    @model_validator(mode="after")
    def _validate_work_types(self) -> Self:
        if len(set(self.allowed_work_types)) != len(self.allowed_work_types):
            msg = "allowed_work_types must not repeat"
            raise ValueError(msg)
        if self.required_office_days > 0 and WorkType.OFFICE not in self.allowed_work_types:
            msg = "office must be an allowed work type when office days are required"
            raise ValueError(msg)
        return self
