"""Store transactions: stock claim, coin debit and purchase record in one transaction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import debit_coins, require_account
from skillsage.db.models import StoreItem, UserPurchase
from skillsage.db.transaction import atomic
from skillsage.errors import InsufficientStock, InvalidQuantity, ItemNotFound
from skillsage.gifts.ledger import record_gift

logger = logging.getLogger(__name__)

UNLIMITED_STOCK = -1


@dataclass
class PurchaseResult:
    purchase: UserPurchase
    coins_balance: int
    remaining_stock: int


async def get_item(db: AsyncSession, item_id: str) -> StoreItem | None:
    result = await db.execute(
        select(StoreItem)
        .where(StoreItem.id == item_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def require_active_item(db: AsyncSession, item_id: str) -> StoreItem:
    item = await get_item(db, item_id)
    if item is None or not item.is_active:
        raise ItemNotFound(item_id)
    return item


def validate_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity!r}")


async def claim_stock(db: AsyncSession, item_id: str, quantity: int) -> int:
    """Decrement finite stock by ``quantity`` if enough remains. Returns the new stock.

    Unlimited items (-1) stay at -1. Check and decrement are one UPDATE, so
    concurrent buyers can never oversell. Does not commit.
    """
    result = await db.execute(
        update(StoreItem)
        .where(
            StoreItem.id == item_id,
            StoreItem.is_active.is_(True),
            (StoreItem.stock_quantity == UNLIMITED_STOCK) | (StoreItem.stock_quantity >= quantity),
        )
        .values(
            stock_quantity=case(
                (StoreItem.stock_quantity == UNLIMITED_STOCK, UNLIMITED_STOCK),
                else_=StoreItem.stock_quantity - quantity,
            )
        )
        .returning(StoreItem.stock_quantity)
        .execution_options(synchronize_session=False)
    )
    remaining = result.scalar_one_or_none()
    if remaining is None:
        raise InsufficientStock(f"Not enough stock for item {item_id}: {quantity} requested")
    return remaining


async def buy_item(
    db: AsyncSession,
    payer_id: str,
    owner_id: str,
    item_id: str,
    quantity: int,
) -> PurchaseResult:
    """Claim stock, debit the payer and write the owner's purchase row. Does not commit.

    Shared by direct purchases (payer == owner) and item gifts.
    """
    validate_quantity(quantity)
    item = await require_active_item(db, item_id)
    await require_account(db, payer_id)
    if owner_id != payer_id:
        await require_account(db, owner_id)

    remaining = await claim_stock(db, item_id, quantity)
    total_cost = item.price * quantity
    balance = await debit_coins(db, payer_id, total_cost)

    purchase = UserPurchase(
        user_id=owner_id,
        item_id=item_id,
        item=item,
        quantity=quantity,
        total_cost=total_cost,
        purchased_at=datetime.now(timezone.utc),
    )
    db.add(purchase)
    await db.flush()
    return PurchaseResult(purchase=purchase, coins_balance=balance, remaining_stock=remaining)


async def purchase(
    db: AsyncSession,
    user_id: str,
    item_id: str,
    quantity: int = 1,
) -> PurchaseResult:
    """Buy ``quantity`` units of a store item with coins.

    Either stock, balance, purchase row and the store_purchase self-gift all
    change, or none of them do.
    """
    async with atomic(db):
        result = await buy_item(db, user_id, user_id, item_id, quantity)
        await record_gift(
            db,
            sender_id=user_id,
            recipient_id=user_id,
            gift_type="store_purchase",
            coin_value=result.purchase.total_cost,
            item_id=item_id,
            quantity=quantity,
        )

    logger.info(
        "User %s bought %d x %s for %d coins", user_id, quantity, item_id, result.purchase.total_cost
    )
    return result


async def list_store_items(db: AsyncSession) -> list[StoreItem]:
    """Active catalog, cheapest first."""
    result = await db.execute(
        select(StoreItem)
        .where(StoreItem.is_active.is_(True))
        .order_by(StoreItem.price, StoreItem.name)
    )
    return list(result.scalars().all())


async def get_user_purchases(db: AsyncSession, user_id: str, limit: int = 50) -> list[UserPurchase]:
    await require_account(db, user_id)
    result = await db.execute(
        select(UserPurchase)
        .where(UserPurchase.user_id == user_id)
        .order_by(UserPurchase.purchased_at.desc(), UserPurchase.id.desc())
        .limit(limit)
    )
    return list(result.unique().scalars().all())


async def create_store_item(
    db: AsyncSession,
    name: str,
    price: int,
    stock_quantity: int = UNLIMITED_STOCK,
    description: str | None = None,
    icon_url: str | None = None,
    is_active: bool = True,
) -> StoreItem:
    """Add a catalog item (admin tooling and tests)."""
    if price < 0:
        msg = "Price cannot be negative"
        raise ValueError(msg)
    if stock_quantity < UNLIMITED_STOCK:
        msg = "Stock must be -1 (unlimited) or a non-negative count"
        raise ValueError(msg)

    async with atomic(db):
        item = StoreItem(
            name=name,
            description=description,
            price=price,
            stock_quantity=stock_quantity,
            icon_url=icon_url,
            is_active=is_active,
            created_at=datetime.now(timezone.utc),
        )
        db.add(item)
    logger.info("Created store item %s (%s)", item.id, name)
    return item
