"""Points ledger schema with role-based RLS.

Revision ID: 0001_points_ledger
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_points_ledger"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ROLE_SETTING = "current_setting('app.current_user_role', true)"

# table -> roles allowed to write. Reads are open to any connection; the API
# authenticates every request before it reaches the store.
RLS_WRITERS = {
    "members": ("super_admin", "editor"),
    "contributions": ("super_admin", "editor"),
    "app_users": ("super_admin",),
}


def _role_in(roles: Sequence[str]) -> str:
    quoted = ", ".join(f"'{role}'" for role in roles)
    return f"{ROLE_SETTING} IN ({quoted})"


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Identity tables (NOT RLS-scoped)
    # -----------------------------------------------------------------------

    op.create_table(
        "identity_accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_identity_accounts_email", "identity_accounts", ["email"], unique=True)

    op.create_table(
        "revoked_sessions",
        sa.Column("jti", sa.Text(), primary_key=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_revoked_sessions_expires_at", "revoked_sessions", ["expires_at"])

    # -----------------------------------------------------------------------
    # 2. Ledger tables
    # -----------------------------------------------------------------------

    op.create_table(
        "members",
        sa.Column("reg_no", sa.Text(), primary_key=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("name_with_initials", sa.Text(), nullable=False),
        sa.Column("my_lci_num", sa.Text(), nullable=True),
        sa.Column("batch", sa.Text(), nullable=False),
        sa.Column("faculty", sa.Text(), nullable=False),
        sa.Column("whatsapp", sa.Text(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("total_points >= 0", name="members_total_points_non_negative"),
    )
    op.create_index("idx_members_full_name", "members", ["full_name"])
    op.create_index("idx_members_faculty", "members", ["faculty"])
    op.create_index("idx_members_total_points", "members", [sa.text("total_points DESC"), "reg_no"])

    op.create_table(
        "contributions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("member_reg_no", sa.Text(), sa.ForeignKey("members.reg_no"), nullable=False),
        sa.Column("project_name", sa.Text(), nullable=False),
        sa.Column("time_period", sa.Text(), nullable=False),
        sa.Column("position", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("avenue", sa.Text(), nullable=True),
        sa.Column("date_added", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("added_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint("points >= 0", name="contributions_points_non_negative"),
        sa.CheckConstraint(
            "time_period ~ '^[0-9]{4}-(0[1-9]|1[0-2])$'", name="contributions_time_period_format"
        ),
    )
    op.create_index("idx_contributions_member", "contributions", ["member_reg_no"])
    op.create_index("idx_contributions_time_period", "contributions", ["time_period"])
    op.create_index("idx_contributions_date_added", "contributions", ["date_added"])

    op.create_table(
        "app_users",
        sa.Column("id", postgresql.UUID(as_uuid=True), sa.ForeignKey("identity_accounts.id"), primary_key=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("designation", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False, server_default="viewer"),
        sa.Column("linked_member_reg_no", sa.Text(), sa.ForeignKey("members.reg_no"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "role IN ('super_admin', 'editor', 'viewer')", name="app_users_role_valid"
        ),
    )
    op.create_index("idx_app_users_role", "app_users", ["role"])

    # -----------------------------------------------------------------------
    # 3. Row Level Security (RLS) policies
    # -----------------------------------------------------------------------

    for table, writers in RLS_WRITERS.items():
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"""
            CREATE POLICY {table}_read ON {table} FOR SELECT
            USING (true)
        """)
        op.execute(f"""
            CREATE POLICY {table}_write ON {table} FOR ALL
            USING ({_role_in(writers)})
            WITH CHECK ({_role_in(writers)})
        """)
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in reversed(list(RLS_WRITERS)):
        op.execute(f"DROP POLICY IF EXISTS {table}_write ON {table}")
        op.execute(f"DROP POLICY IF EXISTS {table}_read ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    op.drop_table("app_users")
    op.drop_table("contributions")
    op.drop_table("members")
    op.drop_table("revoked_sessions")
    op.drop_table("identity_accounts")
