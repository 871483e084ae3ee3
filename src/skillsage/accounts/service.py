"""Account store: balances and streak counters, mutated only by conditional updates."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.db.models import Account
from skillsage.db.transaction import atomic
from skillsage.errors import AccountNotFound, InsufficientFunds, NotAuthorized

logger = logging.getLogger(__name__)

ROLES = ("learner", "instructor", "admin")


async def create_account(
    db: AsyncSession,
    user_id: str,
    role: str = "learner",
    coins: int = 0,
) -> Account:
    """Create the account row for a new user. Idempotent: an existing row is returned unchanged."""
    if role not in ROLES:
        msg = f"Unknown role: {role}"
        raise ValueError(msg)
    if coins < 0:
        msg = "Opening coin balance cannot be negative"
        raise ValueError(msg)

    async with atomic(db):
        now = datetime.now(timezone.utc)
        stmt = pg_insert(Account).values(
            user_id=user_id,
            role=role,
            coins=coins,
            points_updated_at=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["user_id"])
        result = await db.execute(stmt)
        if result.rowcount:
            logger.info("Created account %s (%s)", user_id, role)
        account = await require_account(db, user_id)
    return account


async def get_account(db: AsyncSession, user_id: str) -> Account | None:
    """Fetch an account by user id, bypassing the identity map so balances are fresh."""
    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def require_account(db: AsyncSession, user_id: str) -> Account:
    """Fetch an account or raise AccountNotFound."""
    account = await get_account(db, user_id)
    if account is None:
        raise AccountNotFound(user_id)
    return account


async def require_role(db: AsyncSession, user_id: str, role: str) -> Account:
    """Fetch an account and check its role."""
    account = await require_account(db, user_id)
    if account.role != role:
        raise NotAuthorized(f"Only {role} accounts can perform this operation")
    return account


async def credit_coins(db: AsyncSession, user_id: str, amount: int) -> int:
    """Add coins in a single UPDATE. Returns the new balance."""
    result = await db.execute(
        update(Account)
        .where(Account.user_id == user_id)
        .values(coins=Account.coins + amount, updated_at=datetime.now(timezone.utc))
        .returning(Account.coins)
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        raise AccountNotFound(user_id)
    return balance


async def debit_coins(db: AsyncSession, user_id: str, amount: int) -> int:
    """Subtract coins only if the balance covers it. Returns the new balance.

    The balance check and the write are one statement, so two concurrent
    debits can never both pass against the same stale balance.
    """
    result = await db.execute(
        update(Account)
        .where(Account.user_id == user_id, Account.coins >= amount)
        .values(coins=Account.coins - amount, updated_at=datetime.now(timezone.utc))
        .returning(Account.coins)
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        # Zero rows: either no account or not enough coins.
        await require_account(db, user_id)
        raise InsufficientFunds(f"Insufficient coins: {amount} required")
    return balance
