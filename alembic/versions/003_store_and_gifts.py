"""Store catalog, purchases, gifts and cash-out requests.

Revision ID: 003_store_and_gifts
Revises: 002_badges
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "003_store_and_gifts"
down_revision: str | None = "002_badges"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Store ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS store_items (
            id VARCHAR(64) PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            description TEXT,
            price BIGINT NOT NULL,
            stock_quantity INTEGER NOT NULL DEFAULT -1,
            icon_url VARCHAR(256),
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT store_items_price_non_negative CHECK (price >= 0),
            CONSTRAINT store_items_stock_valid CHECK (stock_quantity >= -1)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_purchases (
            id VARCHAR(64) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES accounts(user_id),
            item_id VARCHAR(64) NOT NULL REFERENCES store_items(id),
            quantity INTEGER NOT NULL,
            total_cost BIGINT NOT NULL,
            purchased_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_purchases_quantity_positive CHECK (quantity > 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_purchases_user
        ON user_purchases(user_id, purchased_at DESC)
    """)

    # --- Cash-out requests ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS cashout_requests (
            id VARCHAR(64) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES accounts(user_id),
            total_coins BIGINT NOT NULL CHECK (total_coins >= 0),
            total_amount NUMERIC(14, 2) NOT NULL,
            payout_bank_name VARCHAR(128) NOT NULL,
            payout_account_number VARCHAR(32) NOT NULL,
            payout_account_name VARCHAR(128) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected')),
            reviewed_by VARCHAR(64),
            reviewed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_cashout_requests_status
        ON cashout_requests(status, created_at DESC)
    """)

    # --- Gifts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS gifts (
            id VARCHAR(64) PRIMARY KEY,
            sender_id VARCHAR(64) NOT NULL REFERENCES accounts(user_id),
            recipient_id VARCHAR(64) NOT NULL REFERENCES accounts(user_id),
            gift_type VARCHAR(16) NOT NULL
                CHECK (gift_type IN ('coins', 'item', 'store_purchase')),
            coin_value BIGINT,
            item_id VARCHAR(64) REFERENCES store_items(id),
            quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity > 0),
            message VARCHAR(500),
            sent_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            cashed_out BOOLEAN NOT NULL DEFAULT false,
            cashout_id VARCHAR(64) REFERENCES cashout_requests(id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_gifts_sender ON gifts(sender_id, sent_at DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_gifts_recipient ON gifts(recipient_id, sent_at DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_gifts_cashout ON gifts(cashout_id) WHERE cashout_id IS NOT NULL")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS gifts CASCADE")
    op.execute("DROP TABLE IF EXISTS cashout_requests CASCADE")
    op.execute("DROP TABLE IF EXISTS user_purchases CASCADE")
    op.execute("DROP TABLE IF EXISTS store_items CASCADE")
