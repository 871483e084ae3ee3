"""Store transactions: stock claim, coin debit, purchase record, concurrency."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select

from skillsage.accounts.service import create_account, get_account
from skillsage.db.models import Gift, UserPurchase
from skillsage.errors import (
    AccountNotFound,
    InsufficientFunds,
    InsufficientStock,
    InvalidQuantity,
    ItemNotFound,
)
from skillsage.store.service import (
    create_store_item,
    get_item,
    get_user_purchases,
    list_store_items,
    purchase,
)


async def _purchase_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(UserPurchase))).scalar_one()


class TestPurchase:
    @pytest.mark.asyncio
    async def test_successful_purchase(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=1000)
        item = await create_store_item(db, "Sticker pack", price=200, stock_quantity=5)

        result = await purchase(db, "learner-1", item.id, 2)

        assert result.coins_balance == 600
        assert result.remaining_stock == 3
        assert result.purchase.quantity == 2
        assert result.purchase.total_cost == 400
        assert result.purchase.user_id == "learner-1"
        assert (await get_account(db, "learner-1")).coins == 600
        assert (await get_item(db, item.id)).stock_quantity == 3

    @pytest.mark.asyncio
    async def test_purchase_records_self_gift(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=1000)
        item = await create_store_item(db, "Mug", price=300)

        await purchase(db, "learner-1", item.id)

        gift = (await db.execute(select(Gift))).unique().scalar_one()
        assert gift.gift_type == "store_purchase"
        assert gift.sender_id == gift.recipient_id == "learner-1"
        assert gift.coin_value == 300
        assert gift.item_id == item.id

    @pytest.mark.asyncio
    async def test_unlimited_stock_stays_unlimited(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=1000)
        item = await create_store_item(db, "Theme", price=10)

        result = await purchase(db, "learner-1", item.id, 7)

        assert result.remaining_stock == -1
        assert (await get_item(db, item.id)).stock_quantity == -1

    @pytest.mark.asyncio
    async def test_insufficient_funds_changes_nothing(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=500)
        item = await create_store_item(db, "Hoodie", price=200, stock_quantity=10)
        item_id = item.id

        with pytest.raises(InsufficientFunds):
            await purchase(db, "learner-1", item_id, 3)

        assert (await get_account(db, "learner-1")).coins == 500
        assert (await get_item(db, item_id)).stock_quantity == 10
        assert await _purchase_count(db) == 0

    @pytest.mark.asyncio
    async def test_insufficient_stock(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=5000)
        item = await create_store_item(db, "Signed book", price=100, stock_quantity=2)
        item_id = item.id

        with pytest.raises(InsufficientStock):
            await purchase(db, "learner-1", item_id, 3)

        assert (await get_account(db, "learner-1")).coins == 5000
        assert (await get_item(db, item_id)).stock_quantity == 2

    @pytest.mark.asyncio
    async def test_exact_stock_can_be_bought(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=5000)
        item = await create_store_item(db, "Signed book", price=100, stock_quantity=2)
        result = await purchase(db, "learner-1", item.id, 2)
        assert result.remaining_stock == 0

    @pytest.mark.asyncio
    async def test_exact_balance_can_be_spent(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=400)
        item = await create_store_item(db, "Cap", price=200)
        result = await purchase(db, "learner-1", item.id, 2)
        assert result.coins_balance == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_invalid_quantity(self, db_session, quantity):
        db = db_session
        await create_account(db, "learner-1", coins=400)
        item = await create_store_item(db, "Cap", price=200)
        with pytest.raises(InvalidQuantity):
            await purchase(db, "learner-1", item.id, quantity)

    @pytest.mark.asyncio
    async def test_unknown_item(self, db_session):
        await create_account(db_session, "learner-1", coins=400)
        with pytest.raises(ItemNotFound):
            await purchase(db_session, "learner-1", "no-such-item")

    @pytest.mark.asyncio
    async def test_inactive_item(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=400)
        item = await create_store_item(db, "Retired", price=10, is_active=False)
        with pytest.raises(ItemNotFound):
            await purchase(db, "learner-1", item.id)

    @pytest.mark.asyncio
    async def test_unknown_account(self, db_session):
        item = await create_store_item(db_session, "Cap", price=200)
        with pytest.raises(AccountNotFound):
            await purchase(db_session, "ghost", item.id)


class TestConcurrentPurchases:
    @pytest.mark.asyncio
    async def test_last_unit_sold_once(self, session_factory):
        async with session_factory() as db:
            await create_account(db, "alice", coins=1000)
            await create_account(db, "bob", coins=1000)
            item = await create_store_item(db, "Limited poster", price=200, stock_quantity=1)

        async def buy(user_id: str):
            async with session_factory() as db:
                return await purchase(db, user_id, item.id, 1)

        results = await asyncio.gather(buy("alice"), buy("bob"), return_exceptions=True)

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientStock)

        async with session_factory() as db:
            assert (await get_item(db, item.id)).stock_quantity == 0
            assert await _purchase_count(db) == 1
            balances = sorted([(await get_account(db, u)).coins for u in ("alice", "bob")])
            assert balances == [800, 1000]

    @pytest.mark.asyncio
    async def test_concurrent_spend_never_overdraws(self, session_factory):
        async with session_factory() as db:
            await create_account(db, "alice", coins=500)
            item = await create_store_item(db, "Badge frame", price=200)

        async def buy():
            async with session_factory() as db:
                return await purchase(db, "alice", item.id, 1)

        results = await asyncio.gather(*(buy() for _ in range(5)), return_exceptions=True)

        successes = [r for r in results if not isinstance(r, Exception)]
        assert len(successes) == 2
        assert all(isinstance(r, InsufficientFunds) for r in results if isinstance(r, Exception))
        async with session_factory() as db:
            assert (await get_account(db, "alice")).coins == 100


class TestCatalogAndHistory:
    @pytest.mark.asyncio
    async def test_list_active_items_cheapest_first(self, db_session):
        db = db_session
        await create_store_item(db, "Expensive", price=900)
        await create_store_item(db, "Cheap", price=5)
        await create_store_item(db, "Hidden", price=1, is_active=False)

        items = await list_store_items(db)

        assert [i.name for i in items] == ["Cheap", "Expensive"]

    @pytest.mark.asyncio
    async def test_purchase_history(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=1000)
        item = await create_store_item(db, "Mug", price=100)
        await purchase(db, "learner-1", item.id)
        await purchase(db, "learner-1", item.id, 2)

        rows = await get_user_purchases(db, "learner-1")

        assert [p.quantity for p in rows] == [2, 1]
        assert rows[0].item.name == "Mug"

    @pytest.mark.asyncio
    async def test_create_item_validation(self, db_session):
        with pytest.raises(ValueError):
            await create_store_item(db_session, "Bad", price=-1)
        with pytest.raises(ValueError):
            await create_store_item(db_session, "Bad", price=1, stock_quantity=-2)
