"""Gift ledger: append-only gift records and paginated history."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import require_account
from skillsage.config import get_settings
from skillsage.db.models import Gift

logger = logging.getLogger(__name__)

GIFT_TYPES = ("coins", "item", "store_purchase")
DIRECTIONS = ("sent", "received", "all")


async def record_gift(
    db: AsyncSession,
    sender_id: str,
    recipient_id: str,
    gift_type: str,
    coin_value: int | None = None,
    item_id: str | None = None,
    quantity: int = 1,
    message: str | None = None,
) -> Gift:
    """Append a gift row. Flushes but never commits and never touches balances."""
    if gift_type not in GIFT_TYPES:
        msg = f"Unknown gift type: {gift_type}"
        raise ValueError(msg)

    gift = Gift(
        sender_id=sender_id,
        recipient_id=recipient_id,
        gift_type=gift_type,
        coin_value=coin_value,
        item_id=item_id,
        quantity=quantity,
        message=message,
        sent_at=datetime.now(timezone.utc),
        cashed_out=False,
    )
    db.add(gift)
    await db.flush()
    logger.debug("Recorded %s gift %s -> %s", gift_type, sender_id, recipient_id)
    return gift


async def get_user_gifting_history(
    db: AsyncSession,
    user_id: str,
    direction: str = "all",
    sort: str = "desc",
    page: int = 1,
    page_size: int = 10,
    gift_type: str | None = None,
) -> tuple[list[Gift], int]:
    """One page of a user's gifts plus the total count across all pages.

    Ordered by sent_at then id in the requested direction. Self-gifts from
    store purchases appear once under "all".
    """
    if direction not in DIRECTIONS:
        msg = f"direction must be one of {', '.join(DIRECTIONS)}"
        raise ValueError(msg)
    if sort not in ("asc", "desc"):
        msg = "sort must be 'asc' or 'desc'"
        raise ValueError(msg)

    await require_account(db, user_id)

    page = max(page, 1)
    page_size = max(1, min(page_size, get_settings().gift_history_max_page_size))

    if direction == "sent":
        condition = Gift.sender_id == user_id
    elif direction == "received":
        condition = Gift.recipient_id == user_id
    else:
        condition = or_(Gift.sender_id == user_id, Gift.recipient_id == user_id)

    filters = [condition]
    if gift_type is not None:
        filters.append(Gift.gift_type == gift_type)

    total = (await db.execute(select(func.count()).select_from(Gift).where(*filters))).scalar_one()

    if sort == "asc":
        ordering = (Gift.sent_at.asc(), Gift.id.asc())
    else:
        ordering = (Gift.sent_at.desc(), Gift.id.desc())

    result = await db.execute(
        select(Gift)
        .where(*filters)
        .order_by(*ordering)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.unique().scalars().all()), total
