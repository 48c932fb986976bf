"""tianji_core_schema

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e9a7d2b40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "coin_balances",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("balance", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("balance >= 0", name="ck_coin_balances_balance_non_negative"),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "coin_ledger_entries",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("direction", sa.String(8), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(48), nullable=False),
        sa.Column("idempotency_key", sa.String(128), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_coin_ledger_entries_amount_positive"),
        sa.CheckConstraint("direction IN ('CREDIT','DEBIT')", name="ck_coin_ledger_entries_direction"),
        sa.UniqueConstraint("idempotency_key", name="uq_coin_ledger_entries_idempotency_key"),
    )
    op.create_index("idx_coin_ledger_user_created", "coin_ledger_entries", ["user_id", "created_at"])
    op.create_index("idx_coin_ledger_reason", "coin_ledger_entries", ["reason"])

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("tier", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("is_yearly", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("payment_method", sa.String(32), nullable=True),
        sa.Column("price_amount", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("tier IN ('basic','premium','vip')", name="ck_subscriptions_tier"),
        sa.CheckConstraint(
            "status IN ('pending','active','expired','cancelled')",
            name="ck_subscriptions_status",
        ),
        sa.CheckConstraint("price_amount >= 0", name="ck_subscriptions_price_non_negative"),
        sa.UniqueConstraint("order_id", name="uq_subscriptions_order_id"),
    )
    op.create_index(
        "uq_subscriptions_user_open",
        "subscriptions",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending','active')"),
    )
    op.create_index("idx_subscriptions_user_created", "subscriptions", ["user_id", "created_at"])
    op.create_index("idx_subscriptions_status_expires", "subscriptions", ["status", "expires_at"])

    op.create_table(
        "usage_counters",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("feature", sa.String(64), nullable=False),
        sa.Column("usage_date", sa.Date(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("count >= 0", name="ck_usage_counters_count_non_negative"),
        sa.PrimaryKeyConstraint("user_id", "feature", "usage_date"),
    )
    op.create_index("idx_usage_counters_date", "usage_counters", ["usage_date"])

    op.create_table(
        "time_asset_unlocks",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("dimension", sa.String(16), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("period_type", sa.String(16), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cost_coins", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("cost_coins > 0", name="ck_time_asset_unlocks_cost_positive"),
        sa.CheckConstraint(
            "dimension IN ('daily','monthly','yearly')",
            name="ck_time_asset_unlocks_dimension",
        ),
        sa.CheckConstraint(
            "period_type IN ('day','month','year')",
            name="ck_time_asset_unlocks_period_type",
        ),
        sa.CheckConstraint("period_start <= period_end", name="ck_time_asset_unlocks_period_order"),
        sa.UniqueConstraint(
            "user_id",
            "dimension",
            "period_start",
            "period_end",
            name="uq_time_asset_unlocks_user_period",
        ),
    )
    op.create_index("idx_time_asset_unlocks_user_created", "time_asset_unlocks", ["user_id", "created_at"])

    op.create_table(
        "timespace_cache_entries",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("dimension", sa.String(32), nullable=False),
        sa.Column("cache_key", sa.String(128), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("cache_data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("period_start <= period_end", name="ck_timespace_cache_period_order"),
        sa.UniqueConstraint(
            "user_id",
            "dimension",
            "cache_key",
            "period_start",
            "period_end",
            name="uq_timespace_cache_user_key_period",
        ),
    )
    op.create_index("idx_timespace_cache_expires", "timespace_cache_entries", ["expires_at"])
    op.create_index(
        "idx_timespace_cache_user_key_updated",
        "timespace_cache_entries",
        ["user_id", "dimension", "cache_key", "updated_at"],
    )

    op.create_table(
        "star_charts",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("chart_structure", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("brief_analysis_cache", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("birth_time", sa.String(8), nullable=True),
        sa.Column("birth_location", sa.String(128), nullable=True),
        sa.Column("mbti", sa.String(8), nullable=True),
        sa.Column("profession", sa.String(128), nullable=True),
        sa.Column("current_status", sa.Text(), nullable=True),
        sa.Column("identity", sa.String(64), nullable=True),
        sa.Column("energy_level", sa.String(16), nullable=True),
        sa.Column(
            "wishes",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "completeness_rewards",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("reward_type", sa.String(16), nullable=False),
        sa.Column("reward_key", sa.String(32), nullable=False),
        sa.Column("coins", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("reward_type IN ('FIELD','THRESHOLD')", name="ck_completeness_rewards_type"),
        sa.CheckConstraint("coins > 0", name="ck_completeness_rewards_coins_positive"),
        sa.UniqueConstraint(
            "user_id",
            "reward_type",
            "reward_key",
            name="uq_completeness_rewards_user_reward",
        ),
    )


def downgrade() -> None:
    op.drop_table("completeness_rewards")
    op.drop_table("user_profiles")
    op.drop_table("star_charts")
    op.drop_index("idx_timespace_cache_user_key_updated", table_name="timespace_cache_entries")
    op.drop_index("idx_timespace_cache_expires", table_name="timespace_cache_entries")
    op.drop_table("timespace_cache_entries")
    op.drop_index("idx_time_asset_unlocks_user_created", table_name="time_asset_unlocks")
    op.drop_table("time_asset_unlocks")
    op.drop_index("idx_usage_counters_date", table_name="usage_counters")
    op.drop_table("usage_counters")
    op.drop_index("idx_subscriptions_status_expires", table_name="subscriptions")
    op.drop_index("idx_subscriptions_user_created", table_name="subscriptions")
    op.drop_index("uq_subscriptions_user_open", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("idx_coin_ledger_reason", table_name="coin_ledger_entries")
    op.drop_index("idx_coin_ledger_user_created", table_name="coin_ledger_entries")
    op.drop_table("coin_ledger_entries")
    op.drop_table("coin_balances")
