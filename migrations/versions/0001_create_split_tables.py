"""create shared expense and participant entry tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

The users and expenses tables belong to the account and expense services
and are expected to exist already.
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

split_type = sa.Enum("EQUAL", "PERCENTAGE", "EXACT_AMOUNT", "SHARES", name="splittype")
participant_status = sa.Enum("PENDING", "PAID", "DISPUTED", "WAIVED", name="participantstatus")


def upgrade():
    op.create_table(
        "shared_expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("expense_id", sa.Integer(), sa.ForeignKey("expenses.id"), nullable=False),
        sa.Column("paid_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("split_type", split_type, nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("group_name", sa.String(100), nullable=True),
        sa.Column("is_settled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
    )
    op.create_index("ix_shared_expenses_id", "shared_expenses", ["id"])
    op.create_index("ix_shared_expenses_expense_id", "shared_expenses", ["expense_id"])
    op.create_index("ix_shared_expenses_paid_by", "shared_expenses", ["paid_by"])

    op.create_table(
        "participant_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "shared_expense_id",
            sa.Integer(),
            sa.ForeignKey("shared_expenses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("external_name", sa.String(255), nullable=True),
        sa.Column("external_email", sa.String(255), nullable=True),
        sa.Column("share_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("share_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("share_units", sa.Integer(), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", participant_status, nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_participant_entries_id", "participant_entries", ["id"])
    op.create_index("ix_participant_entries_shared_expense_id", "participant_entries", ["shared_expense_id"])
    op.create_index("ix_participant_entries_user_id", "participant_entries", ["user_id"])


def downgrade():
    op.drop_table("participant_entries")
    op.drop_table("shared_expenses")
    participant_status.drop(op.get_bind(), checkfirst=True)
    split_type.drop(op.get_bind(), checkfirst=True)
