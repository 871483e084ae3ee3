"""Badge catalog and earned badges.

Revision ID: 002_badges
Revises: 001_accounts_and_events
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_badges"
down_revision: str | None = "001_accounts_and_events"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id VARCHAR(64) PRIMARY KEY,
            slug VARCHAR(64) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            points_required BIGINT NOT NULL CHECK (points_required >= 0),
            icon_url VARCHAR(256),
            sort_order INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_badges_points_required
        ON badges(points_required)
        WHERE is_active
    """)

    # UNIQUE(user_id, badge_id) makes badge grants at-most-once
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id VARCHAR(64) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES accounts(user_id),
            badge_id VARCHAR(64) NOT NULL REFERENCES badges(id),
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_badges_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS badges CASCADE")
