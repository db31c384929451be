"""Create raid_attendance table."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "202401010100"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the per-player raid presence table and lookup index."""
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")
    op.create_table(
        "raid_attendance",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            nullable=False,
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("player_name", sa.Text(), nullable=False),
        sa.Column("attended_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.CheckConstraint(
            "length(trim(player_name)) > 0",
            name="ck_raid_attendance_player_name",
        ),
    )
    op.create_index(
        "idx_raid_attendance_player_attended_at",
        "raid_attendance",
        [sa.text("lower(player_name)"), "attended_at"],
    )


def downgrade() -> None:
    """Drop the raid presence table."""
    op.drop_index(
        "idx_raid_attendance_player_attended_at", table_name="raid_attendance"
    )
    op.drop_table("raid_attendance")
