"""
Add assignments table read by the reminder job
"""

from alembic import op
import sqlalchemy as sa

# --- Alembic identifiers ---
revision = "0002_add_assignments_table"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "assignments",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subject", sa.String(length=128), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("timezone('utc', now())")),
    )
    op.create_index(
        "ix_assignments_open_due",
        "assignments",
        ["due_date"],
        postgresql_where=sa.text("is_completed = false"),
    )


def downgrade():
    op.drop_index("ix_assignments_open_due", table_name="assignments")
    op.drop_table("assignments")
