"""ORM models for the rewards economy.

Tables are created by the Alembic migrations in alembic/versions; the models
mirror them column for column. Balance columns carry CHECK constraints so a
buggy caller can never persist a negative balance.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillsage.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class Account(Base):
    """One row per user: balances and streak counters."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("points >= 0", name="accounts_points_non_negative"),
        CheckConstraint("coins >= 0", name="accounts_coins_non_negative"),
        CheckConstraint("current_streak >= 0", name="accounts_current_streak_non_negative"),
        CheckConstraint("current_streak <= longest_streak", name="accounts_streak_le_longest"),
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, server_default="learner")
    points: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    coins: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    last_active_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    points_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class GamificationEvent(Base):
    """Append-only award log. idempotency_key is UNIQUE."""

    __tablename__ = "gamification_events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.user_id"), nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    coins_earned: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    event_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSONB, nullable=False, server_default="{}")
    idempotency_key: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class Badge(Base):
    """Badge catalog entry unlocked by a points threshold."""

    __tablename__ = "badges"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    slug: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    points_required: Mapped[int] = mapped_column(BigInteger, nullable=False)
    icon_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class UserBadge(Base):
    """Badges earned by users: UNIQUE(user_id, badge_id) prevents duplicates."""

    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="user_badges_user_id_badge_id_key"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.user_id"), nullable=False)
    badge_id: Mapped[str] = mapped_column(String(64), ForeignKey("badges.id"), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))

    badge: Mapped[Badge] = relationship("Badge", lazy="joined")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class StoreItem(Base):
    """Store catalog entry. stock_quantity = -1 means unlimited."""

    __tablename__ = "store_items"
    __table_args__ = (
        CheckConstraint("price >= 0", name="store_items_price_non_negative"),
        CheckConstraint("stock_quantity >= -1", name="store_items_stock_valid"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, server_default="-1")
    icon_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class UserPurchase(Base):
    """Immutable purchase record."""

    __tablename__ = "user_purchases"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="user_purchases_quantity_positive"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.user_id"), nullable=False)
    item_id: Mapped[str] = mapped_column(String(64), ForeignKey("store_items.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    purchased_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))

    item: Mapped[StoreItem] = relationship("StoreItem", lazy="joined")


# ---------------------------------------------------------------------------
# Gifts & cash-out
# ---------------------------------------------------------------------------


class CashoutRequest(Base):
    """A request to convert received coin gifts into a bank payout."""

    __tablename__ = "cashout_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.user_id"), nullable=False)
    total_coins: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payout_bank_name: Mapped[str] = mapped_column(String(128), nullable=False)
    payout_account_number: Mapped[str] = mapped_column(String(32), nullable=False)
    payout_account_name: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")
    reviewed_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class Gift(Base):
    """Coin/item transfer record, including self-gifts from store purchases."""

    __tablename__ = "gifts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    sender_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.user_id"), nullable=False)
    recipient_id: Mapped[str] = mapped_column(String(64), ForeignKey("accounts.user_id"), nullable=False)
    gift_type: Mapped[str] = mapped_column(String(16), nullable=False)  # coins | item | store_purchase
    coin_value: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    item_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("store_items.id"), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
    cashed_out: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    cashout_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("cashout_requests.id"), nullable=True)

    item: Mapped[StoreItem | None] = relationship("StoreItem", lazy="joined")
