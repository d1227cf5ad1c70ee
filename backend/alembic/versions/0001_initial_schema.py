"""Initial schema: teams, schedules, votes, reward ledger, remote-day requests.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _fraction(name: str, default: str = "0") -> sa.Column:
    return sa.Column(name, sa.String(length=64), server_default=default, nullable=False)


def upgrade() -> None:
    op.create_table(
        "team",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("rto_policy_json", sa.JSON(), nullable=True),
        _created_at(),
    )

    op.create_table(
        "team_member",
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("team_id", "user_id"),
    )
    op.create_index("ix_team_member_user_id", "team_member", ["user_id"])

    op.create_table(
        "work_schedule_entry",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("work_type", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint("user_id", "date", name="uq_schedule_user_date"),
    )
    op.create_index("ix_work_schedule_entry_user_id", "work_schedule_entry", ["user_id"])
    op.create_index("ix_schedule_date", "work_schedule_entry", ["date"])

    op.create_table(
        "team_vote",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("voting_week", sa.Date(), nullable=False),
        sa.Column("voted_days", sa.JSON(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("team_id", "user_id", "voting_week", name="uq_vote_team_user_week"),
    )
    op.create_index("ix_team_vote_team_id", "team_vote", ["team_id"])
    op.create_index("ix_team_vote_user_id", "team_vote", ["user_id"])

    op.create_table(
        "reward_balance",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False),
        _fraction("current"),
        _fraction("held"),
        _fraction("total_earned"),
        _fraction("total_used"),
        sa.Column("streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("streak_progress", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_office_day", sa.Date(), nullable=True),
        sa.Column("accrual_model", sa.String(length=50), nullable=False),
        sa.Column("office_to_remote_ratio", sa.Integer(), nullable=False),
        sa.Column("streak_bonus_threshold", sa.Integer(), nullable=False),
        _fraction("streak_bonus_amount", "1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.PrimaryKeyConstraint("user_id", "team_id"),
    )
    op.create_index("ix_reward_balance_user_id", "reward_balance", ["user_id"])

    op.create_table(
        "reward_ledger_entry",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("entry_type", sa.String(length=50), nullable=False),
        _fraction("amount"),
        sa.Column("effective_on", sa.Date(), nullable=False),
        sa.Column("source_type", sa.String(length=50), nullable=False),
        sa.Column("source_id", sa.String(length=255), nullable=False),
        sa.Column("balance_version", sa.Integer(), nullable=False),
        sa.Column("metadata_json", sa.JSON(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("source_type", "source_id", "entry_type", name="uq_reward_ledger_idempotency"),
    )
    op.create_index("ix_reward_ledger_user_team", "reward_ledger_entry", ["user_id", "team_id"])
    op.create_index("ix_reward_ledger_entry_user_id", "reward_ledger_entry", ["user_id"])
    op.create_index("ix_reward_ledger_entry_team_id", "reward_ledger_entry", ["team_id"])

    op.create_table(
        "remote_day_request",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("days_requested", sa.Integer(), nullable=False),
        _fraction("reserved_days"),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=50), server_default="pending", nullable=False),
        sa.Column("requires_high_limit_approval", sa.Boolean(), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by", sa.Uuid(), nullable=True),
        sa.Column("decision_note", sa.String(), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        _created_at(),
        sa.UniqueConstraint("user_id", "team_id", "idempotency_key", name="uq_remote_request_idempotency"),
    )
    op.create_index("ix_remote_request_team_status", "remote_day_request", ["team_id", "status"])
    op.create_index("ix_remote_day_request_user_id", "remote_day_request", ["user_id"])
    op.create_index("ix_remote_day_request_team_id", "remote_day_request", ["team_id"])
    op.create_index("ix_remote_day_request_status", "remote_day_request", ["status"])


def downgrade() -> None:
    op.drop_table("remote_day_request")
    op.drop_table("reward_ledger_entry")
    op.drop_table("reward_balance")
    op.drop_table("team_vote")
    op.drop_table("work_schedule_entry")
    op.drop_table("team_member")
    op.drop_table("team")
