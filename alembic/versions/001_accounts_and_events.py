"""Accounts and the award event log.

Revision ID: 001_accounts_and_events
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_accounts_and_events"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Accounts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            user_id VARCHAR(64) PRIMARY KEY,
            role VARCHAR(16) NOT NULL DEFAULT 'learner'
                CHECK (role IN ('learner', 'instructor', 'admin')),
            points BIGINT NOT NULL DEFAULT 0,
            coins BIGINT NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_active_date DATE,
            points_updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT accounts_points_non_negative CHECK (points >= 0),
            CONSTRAINT accounts_coins_non_negative CHECK (coins >= 0),
            CONSTRAINT accounts_current_streak_non_negative CHECK (current_streak >= 0),
            CONSTRAINT accounts_streak_le_longest CHECK (current_streak <= longest_streak)
        )
    """)
    # Leaderboard ordering
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_accounts_leaderboard
        ON accounts(points DESC, points_updated_at ASC, user_id ASC)
    """)

    # --- Award events (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS gamification_events (
            id VARCHAR(64) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES accounts(user_id),
            event_type VARCHAR(64) NOT NULL,
            points_earned INTEGER NOT NULL DEFAULT 0,
            coins_earned INTEGER NOT NULL DEFAULT 0,
            description VARCHAR(256),
            metadata JSONB NOT NULL DEFAULT '{}',
            idempotency_key VARCHAR(256) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT gamification_events_idempotency_key_key UNIQUE (idempotency_key)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_gamification_events_user_time
        ON gamification_events(user_id, created_at DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS gamification_events CASCADE")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE")
