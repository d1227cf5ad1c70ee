from __future__ import annotations

import uuid
from datetime import UTC, datetime
from fractions import Fraction
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _uuid_factory() -> uuid.UUID:
    """Generate a new UUID v4."""
    return uuid.uuid4()


def _now_utc() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


class FractionType(sa.TypeDecorator[Fraction]):
    """Exact rational stored as an ``"n/d"`` string.

    Remote-day credit accrues in thirds (or any 1/ratio), which neither
    floats nor fixed-scale decimals represent exactly.
    """

    impl = sa.String(64)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: sa.Dialect) -> str | None:
        if value is None:
            return None
        return str(Fraction(value))

    def process_result_value(self, value: Any, dialect: sa.Dialect) -> Fraction | None:
        if value is None:
            return None
        return Fraction(value)


def fraction_column(default: Fraction = Fraction(0)) -> sa.Column[Any]:
    """Build a non-null rational column."""
    return sa.Column(FractionType(), nullable=False, default=default, server_default=str(default))


class UUIDBase(SQLModel):
    """Base model with UUID primary key."""

    id: uuid.UUID = Field(
        default_factory=_uuid_factory,
        primary_key=True,
        sa_type=sa.Uuid,
    )


class TimestampMixin(SQLModel):
    """Mixin that adds a created_at timestamp."""

    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
