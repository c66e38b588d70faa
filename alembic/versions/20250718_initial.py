"""Initial queue schema.

Revision ID: 20250718_initial
Revises:
Create Date: 2025-07-18 16:31:02.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "20250718_initial"
down_revision = None
branch_labels = None
depends_on = None

app_role = sa.Enum("admin", name="app_role")
queue_status = sa.Enum("open", "closed", name="queue_status")
entry_status = sa.Enum("waiting", "called", "skipped", "completed", name="entry_status")
auth_actor_type = sa.Enum("ADMIN", "STAFF", name="auth_actor_type")
auth_action = sa.Enum(
    "SIGNUP",
    "LOGIN",
    "FAILED_LOGIN",
    "ACCESS_DENIED",
    "STAFF_ACCESS",
    "FAILED_STAFF_ACCESS",
    name="auth_action",
)


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("role", app_role, nullable=False, server_default="admin"),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "staff",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("department", sa.String(length=150), nullable=False),
        sa.Column("unique_id", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_staff_unique_id", "staff", ["unique_id"], unique=True)

    op.create_table(
        "queues",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("staff_id", sa.Uuid(), sa.ForeignKey("staff.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", queue_status, nullable=False, server_default="open"),
        sa.Column("last_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_queues_staff_id", "queues", ["staff_id"], unique=True)

    op.create_table(
        "queue_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("queue_id", sa.Uuid(), sa.ForeignKey("queues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("student_name", sa.String(length=150), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("queue_number", sa.Integer(), nullable=False),
        sa.Column("status", entry_status, nullable=False, server_default="waiting"),
        sa.Column("called_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("queue_id", "queue_number", name="uq_queue_entries_queue_number"),
    )
    op.create_index("ix_queue_entries_queue_id", "queue_entries", ["queue_id"])
    op.create_index("ix_queue_entries_status", "queue_entries", ["status"])

    op.create_table(
        "auth_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_type", auth_actor_type, nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("action", auth_action, nullable=False),
        sa.Column("ip", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("auth_logs")
    op.drop_index("ix_queue_entries_status", table_name="queue_entries")
    op.drop_index("ix_queue_entries_queue_id", table_name="queue_entries")
    op.drop_table("queue_entries")
    op.drop_index("ix_queues_staff_id", table_name="queues")
    op.drop_table("queues")
    op.drop_index("ix_staff_unique_id", table_name="staff")
    op.drop_table("staff")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
    bind = op.get_bind()
    for enum in (auth_action, auth_actor_type, entry_status, queue_status, app_role):
        enum.drop(bind, checkfirst=True)
