"""create cookie policy and consent log tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "consent_cookie_policies",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("version", sa.String(20), nullable=False, unique=True),
        sa.Column("last_updated", sa.Date(), nullable=False),
        sa.Column("expiration_days", sa.Integer(), nullable=False, server_default="365"),
        sa.Column("cookie_prefix", sa.String(50), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index(
        "uq_consent_policy_single_active",
        "consent_cookie_policies",
        ["is_active"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    op.create_table(
        "consent_cookie_categories",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "policy_id",
            sa.Integer(),
            sa.ForeignKey("consent_cookie_policies.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("identifier", sa.String(50), nullable=False, index=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("default_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("policy_id", "identifier", name="uq_consent_category_policy_identifier"),
    )

    op.create_table(
        "consent_cookies",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("consent_cookie_categories.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(100), nullable=False, index=True),
        sa.Column("purpose", sa.Text(), nullable=False, server_default=""),
        sa.Column("provider", sa.String(100), nullable=False, server_default=""),
        sa.Column("expiry", sa.String(50), nullable=False, server_default=""),
        sa.Column("script_src", sa.String(500), nullable=True),
        sa.Column("script_async", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("init_code", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "consent_third_party_services",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "policy_id",
            sa.Integer(),
            sa.ForeignKey("consent_cookie_policies.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("identifier", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, index=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("privacy_policy_url", sa.String(500), nullable=False, server_default=""),
        sa.Column("config_key", sa.String(100), nullable=False, server_default=""),
        sa.Column("config_value", sa.String(255), nullable=False, server_default=""),
        sa.Column("preset_type", sa.String(50), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("policy_id", "identifier", name="uq_consent_service_policy_identifier"),
    )

    op.create_table(
        "consent_logs",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("session_id", sa.String(255), nullable=False),
        sa.Column("policy_version", sa.String(20), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_consent_log_session", "consent_logs", ["session_id"])
    op.create_index("idx_consent_log_user", "consent_logs", ["user_id"])
    op.create_index("idx_consent_log_created_at", "consent_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_consent_log_created_at", table_name="consent_logs")
    op.drop_index("idx_consent_log_user", table_name="consent_logs")
    op.drop_index("idx_consent_log_session", table_name="consent_logs")
    op.drop_table("consent_logs")
    op.drop_table("consent_third_party_services")
    op.drop_table("consent_cookies")
    op.drop_table("consent_cookie_categories")
    op.drop_index("uq_consent_policy_single_active", table_name="consent_cookie_policies")
    op.drop_table("consent_cookie_policies")
