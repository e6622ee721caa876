"""Initial schema — leads, admission team, assignment cursors.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Leads
    op.create_table(
        "leads",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("dob", sa.String(20), nullable=True),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("education", sa.Text, nullable=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("source", sa.String(100), nullable=True),
        sa.Column("program", sa.String(100), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="No Contact"),
        sa.Column("Assign To", sa.String(200), nullable=True),
        sa.Column("follow_up_date", sa.Date, nullable=True),
        sa.Column("communication", sa.Text, nullable=True),
        sa.Column("pulse", sa.Text, nullable=True),
        sa.Column(
            "created_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_leads_phone", "leads", ["phone"])
    op.create_index("idx_leads_status", "leads", ["status"])
    op.create_index("idx_leads_assign_to", "leads", ["Assign To"])

    # Admission team
    op.create_table(
        "admission_team",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), unique=True, nullable=False),
        sa.Column("role", sa.String(100), nullable=False),
    )

    # Round-robin cursors, one row per program
    op.create_table(
        "assignment_state",
        sa.Column("program", sa.String(100), primary_key=True),
        sa.Column("cursor", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime,
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    op.drop_table("assignment_state")
    op.drop_table("admission_team")
    op.drop_table("leads")
