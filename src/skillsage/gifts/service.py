"""Coin and item gifting, and cash-out of received coin gifts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import credit_coins, debit_coins, require_account, require_role
from skillsage.config import get_settings
from skillsage.db.models import CashoutRequest, Gift
from skillsage.db.transaction import atomic
from skillsage.errors import (
    CashoutAlreadyProcessed,
    CashoutNotFound,
    InvalidGift,
    NoGiftsToCashOut,
)
from skillsage.gifts.ledger import record_gift
from skillsage.store.service import buy_item, validate_quantity

logger = logging.getLogger(__name__)

CASHOUT_ACTIONS = {"approve": "approved", "reject": "rejected"}


@dataclass
class GiftResult:
    gift: Gift
    sender_coins: int
    remaining_stock: int | None = None


@dataclass
class CashoutResult:
    cashout: CashoutRequest
    gift_ids: list[str] = field(default_factory=list)
    coins_balance: int | None = None


def _check_parties(sender_id: str, recipient_id: str) -> None:
    if sender_id == recipient_id:
        raise InvalidGift("You cannot send a gift to yourself")


async def send_coin_gift(
    db: AsyncSession,
    sender_id: str,
    recipient_id: str,
    amount: int,
    message: str | None = None,
) -> GiftResult:
    """Move ``amount`` coins from sender to recipient and record the gift.

    The sender is debited with a conditional UPDATE, so the total number of
    coins across both accounts is unchanged.
    """
    _check_parties(sender_id, recipient_id)
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
        raise InvalidGift("Gift amount must be at least 1 coin")

    async with atomic(db):
        await require_account(db, sender_id)
        await require_account(db, recipient_id)

        # Lock rows in user_id order so opposing gifts cannot deadlock.
        if sender_id < recipient_id:
            sender_coins = await debit_coins(db, sender_id, amount)
            await credit_coins(db, recipient_id, amount)
        else:
            await credit_coins(db, recipient_id, amount)
            sender_coins = await debit_coins(db, sender_id, amount)

        gift = await record_gift(
            db,
            sender_id=sender_id,
            recipient_id=recipient_id,
            gift_type="coins",
            coin_value=amount,
            message=message,
        )

    logger.info("Coin gift %s: %s -> %s (%d coins)", gift.id, sender_id, recipient_id, amount)
    return GiftResult(gift=gift, sender_coins=sender_coins)


async def send_item_gift(
    db: AsyncSession,
    sender_id: str,
    recipient_id: str,
    item_id: str,
    quantity: int = 1,
    message: str | None = None,
) -> GiftResult:
    """Buy a store item for another user.

    The sender pays, stock is claimed atomically and the purchase row is
    owned by the recipient.
    """
    _check_parties(sender_id, recipient_id)
    validate_quantity(quantity)

    async with atomic(db):
        bought = await buy_item(db, sender_id, recipient_id, item_id, quantity)
        gift = await record_gift(
            db,
            sender_id=sender_id,
            recipient_id=recipient_id,
            gift_type="item",
            coin_value=bought.purchase.total_cost,
            item_id=item_id,
            quantity=quantity,
            message=message,
        )

    logger.info("Item gift %s: %s -> %s (%d x %s)", gift.id, sender_id, recipient_id, quantity, item_id)
    return GiftResult(gift=gift, sender_coins=bought.coins_balance, remaining_stock=bought.remaining_stock)


async def request_cashout(
    db: AsyncSession,
    user_id: str,
    payout_bank_name: str,
    payout_account_number: str,
    payout_account_name: str,
) -> CashoutResult:
    """Claim all of a user's received coin gifts into one pending cash-out request.

    Gifts are claimed with a single UPDATE ... WHERE cashout_id IS NULL, so a
    gift can never be part of two requests. The claimed total is debited from
    the user's coins and refunded if the request is rejected.
    """
    if not (payout_bank_name and payout_account_number and payout_account_name):
        raise InvalidGift("Missing payout details")

    settings = get_settings()

    async with atomic(db):
        await require_account(db, user_id)

        now = datetime.now(timezone.utc)
        cashout = CashoutRequest(
            user_id=user_id,
            total_coins=0,
            total_amount=Decimal("0.00"),
            payout_bank_name=payout_bank_name,
            payout_account_number=payout_account_number,
            payout_account_name=payout_account_name,
            status="pending",
            reviewed_by=None,
            reviewed_at=None,
            created_at=now,
        )
        db.add(cashout)
        await db.flush()

        result = await db.execute(
            update(Gift)
            .where(
                Gift.recipient_id == user_id,
                Gift.sender_id != user_id,
                Gift.gift_type == "coins",
                Gift.cashed_out.is_(False),
                Gift.cashout_id.is_(None),
            )
            .values(cashout_id=cashout.id)
            .returning(Gift.id, Gift.coin_value)
            .execution_options(synchronize_session=False)
        )
        claimed = result.all()
        if not claimed:
            raise NoGiftsToCashOut(f"No coin gifts available for cash-out for {user_id}")

        total_coins = sum(coin_value or 0 for _, coin_value in claimed)
        balance = await debit_coins(db, user_id, total_coins)

        cashout.total_coins = total_coins
        cashout.total_amount = (Decimal(total_coins) / settings.coins_per_currency_unit).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        await db.flush()

    gift_ids = [gift_id for gift_id, _ in claimed]
    logger.info("Cash-out %s requested by %s: %d coins from %d gifts", cashout.id, user_id, total_coins, len(gift_ids))
    return CashoutResult(cashout=cashout, gift_ids=gift_ids, coins_balance=balance)


async def review_cashout(
    db: AsyncSession,
    cashout_id: str,
    reviewer_id: str,
    action: str,
) -> CashoutResult:
    """Approve or reject a pending cash-out request (admin only).

    approve: the claimed gifts are marked cashed_out.
    reject: the gifts are released and the coins refunded to the requester.
    """
    if action not in CASHOUT_ACTIONS:
        msg = f"action must be one of {', '.join(CASHOUT_ACTIONS)}"
        raise ValueError(msg)

    async with atomic(db):
        await require_role(db, reviewer_id, "admin")

        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(CashoutRequest)
            .where(CashoutRequest.id == cashout_id, CashoutRequest.status == "pending")
            .values(status=CASHOUT_ACTIONS[action], reviewed_by=reviewer_id, reviewed_at=now)
            .returning(CashoutRequest.user_id, CashoutRequest.total_coins)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        if row is None:
            existing = await get_cashout(db, cashout_id)
            if existing is None:
                raise CashoutNotFound(f"Cash-out request not found: {cashout_id}")
            raise CashoutAlreadyProcessed(f"Cash-out request {cashout_id} is already {existing.status}")
        owner_id, total_coins = row

        balance = None
        if action == "approve":
            gifts = await db.execute(
                update(Gift)
                .where(Gift.cashout_id == cashout_id)
                .values(cashed_out=True)
                .returning(Gift.id)
                .execution_options(synchronize_session=False)
            )
        else:
            gifts = await db.execute(
                update(Gift)
                .where(Gift.cashout_id == cashout_id)
                .values(cashout_id=None)
                .returning(Gift.id)
                .execution_options(synchronize_session=False)
            )
            balance = await credit_coins(db, owner_id, total_coins)
        gift_ids = list(gifts.scalars().all())

        cashout = await get_cashout(db, cashout_id)

    logger.info("Cash-out %s %s by %s", cashout_id, CASHOUT_ACTIONS[action], reviewer_id)
    return CashoutResult(cashout=cashout, gift_ids=gift_ids, coins_balance=balance)


async def get_cashout(db: AsyncSession, cashout_id: str) -> CashoutRequest | None:
    result = await db.execute(
        select(CashoutRequest)
        .where(CashoutRequest.id == cashout_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_cashouts(
    db: AsyncSession,
    user_id: str | None = None,
    status: str | None = None,
) -> list[CashoutRequest]:
    """Cash-out requests, newest first, optionally filtered by user and status."""
    stmt = select(CashoutRequest)
    if user_id is not None:
        stmt = stmt.where(CashoutRequest.user_id == user_id)
    if status is not None:
        stmt = stmt.where(CashoutRequest.status == status)
    result = await db.execute(stmt.order_by(CashoutRequest.created_at.desc(), CashoutRequest.id.desc()))
    return list(result.scalars().all())
