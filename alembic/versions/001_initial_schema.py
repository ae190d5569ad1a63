"""001 – Initial schema: users, leave balances, attendance, audit trail.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+09:00
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


# ---------------------------------------------------------------------------
# Upgrade
# ---------------------------------------------------------------------------

def upgrade() -> None:
    # ── users ───────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("department", sa.String(100)),
        # Non-native enum: VARCHAR + CHECK, values match UserRole
        sa.Column(
            "role",
            sa.Enum("user", "manager", "admin", name="user_role", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_temp_password", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    # ── leave_balances ──────────────────────────────────────────────
    op.create_table(
        "leave_balances",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column(
            "leave_type",
            sa.Enum("annual", "compensatory", name="leave_pool", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("total", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("used", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("remaining", sa.Numeric(5, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", "year", "leave_type", name="uq_leave_balance"),
    )

    # ── attendance ──────────────────────────────────────────────────
    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("reason", sa.Text),
        sa.Column("start_time", sa.String(5)),
        sa.Column("end_time", sa.String(5)),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
    )
    op.create_index("ix_attendance_date", "attendance", ["date"])

    # ── audit_trail ─────────────────────────────────────────────────
    op.create_table(
        "audit_trail",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.Integer),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Integer),
        sa.Column("old_values", sa.JSON),
        sa.Column("new_values", sa.JSON),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_audit_trail_actor_id", "audit_trail", ["actor_id"])
    op.create_index("ix_audit_trail_entity", "audit_trail", ["entity_type", "entity_id"])
    op.create_index("ix_audit_trail_created_at", "audit_trail", ["created_at"])


# ---------------------------------------------------------------------------
# Downgrade
# ---------------------------------------------------------------------------

def downgrade() -> None:
    # Drop tables in reverse dependency order
    for table in ("audit_trail", "attendance", "leave_balances", "users"):
        op.drop_table(table)
