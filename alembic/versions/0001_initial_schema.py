"""
Initial schema: gamification metrics, badges, earned badges, notifications, chat history
"""

from alembic import op
import sqlalchemy as sa

# --- Alembic identifiers ---
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "gamification",
        sa.Column("user_id", sa.String(length=64), primary_key=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_login_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("timezone('utc', now())")),
    )
    op.create_index("ix_gamification_points", "gamification", ["points"])

    op.create_table(
        "badges",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=64), nullable=False, server_default="Trophy"),
        sa.Column("rarity", sa.String(length=16), nullable=False, server_default="common"),
        sa.Column("requirement_type", sa.String(length=32), nullable=False),
        sa.Column("requirement_value", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint(
            "rarity IN ('common', 'rare', 'epic', 'legendary', 'mythic')",
            name="ck_badges_rarity",
        ),
    )

    op.create_table(
        "user_badges",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("badge_id", sa.String(length=64), sa.ForeignKey("badges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("timezone('utc', now())")),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_id_badge_id"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="general"),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("timezone('utc', now())")),
    )

    op.create_table(
        "ai_chats",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("chat_id", sa.String(length=64), nullable=False, index=True),
        sa.Column("sender", sa.String(length=16), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("timezone('utc', now())")),
    )


def downgrade():
    op.drop_table("ai_chats")
    op.drop_table("notifications")
    op.drop_table("user_badges")
    op.drop_table("badges")
    op.drop_index("ix_gamification_points", table_name="gamification")
    op.drop_table("gamification")
