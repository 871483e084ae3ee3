"""Reward calculator: award points/coins with idempotency and badge evaluation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import require_account
from skillsage.db.models import Account, Badge, GamificationEvent
from skillsage.db.transaction import atomic
from skillsage.gamification.badge_service import broadcast_badges, evaluate_and_grant
from skillsage.gamification.events import EventType, RewardEvent, parse_event

logger = logging.getLogger(__name__)


@dataclass
class AwardResult:
    user_id: str
    event_type: EventType
    points_awarded: int
    coins_awarded: int
    points: int
    coins: int
    already_rewarded: bool = False
    event_id: str | None = None
    badges_granted: list[Badge] = field(default_factory=list)


async def grant_reward(
    db: AsyncSession,
    user_id: str,
    event: RewardEvent,
    description: str | None = None,
    redis: object = None,
) -> AwardResult:
    """Award the event's payout to a user.

    In one transaction:
    1. Insert the event row (its idempotency key is UNIQUE)
    2. Increment points and coins with a single UPDATE
    3. Grant any badges the new points total unlocks

    A duplicate idempotency key means the award already happened; the result
    then has already_rewarded=True and nothing is changed.
    """
    payout = event.payout
    key = event.idempotency_key(user_id)

    async with atomic(db):
        await require_account(db, user_id)

        now = datetime.now(timezone.utc)
        entry = GamificationEvent(
            user_id=user_id,
            event_type=event.type.value,
            points_earned=payout.points,
            coins_earned=payout.coins,
            description=description or event.describe(),
            event_metadata=event.metadata(),
            idempotency_key=key,
            created_at=now,
        )
        try:
            async with db.begin_nested():
                db.add(entry)
        except IntegrityError:
            logger.info("Duplicate award ignored: %s", key)
            account = await require_account(db, user_id)
            return AwardResult(
                user_id=user_id,
                event_type=event.type,
                points_awarded=0,
                coins_awarded=0,
                points=account.points,
                coins=account.coins,
                already_rewarded=True,
            )

        result = await db.execute(
            update(Account)
            .where(Account.user_id == user_id)
            .values(
                points=Account.points + payout.points,
                coins=Account.coins + payout.coins,
                points_updated_at=now if payout.points > 0 else Account.points_updated_at,
                updated_at=now,
            )
            .returning(Account.points, Account.coins)
        )
        points, coins = result.one()

        granted = await evaluate_and_grant(db, user_id)

    if granted:
        await broadcast_badges(redis, user_id, granted)

    logger.info(
        "Awarded %s to %s: +%d points, +%d coins", event.type.value, user_id, payout.points, payout.coins
    )
    return AwardResult(
        user_id=user_id,
        event_type=event.type,
        points_awarded=payout.points,
        coins_awarded=payout.coins,
        points=points,
        coins=coins,
        event_id=entry.id,
        badges_granted=granted,
    )


async def award_points(
    db: AsyncSession,
    user_id: str,
    event_type: str | EventType,
    description: str | None = None,
    metadata: dict[str, Any] | None = None,
    redis: object = None,
) -> AwardResult:
    """Award by event type name and loose metadata (validated into the typed variant)."""
    event = parse_event(event_type, metadata)
    return await grant_reward(db, user_id, event, description=description, redis=redis)


async def get_user_events(
    db: AsyncSession,
    user_id: str,
    limit: int = 20,
) -> list[GamificationEvent]:
    """Most recent award events for a user."""
    await require_account(db, user_id)
    result = await db.execute(
        select(GamificationEvent)
        .where(GamificationEvent.user_id == user_id)
        .order_by(GamificationEvent.created_at.desc(), GamificationEvent.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def has_event(db: AsyncSession, user_id: str, event: RewardEvent) -> bool:
    """Check whether the event's one-time award was already granted."""
    result = await db.execute(
        select(GamificationEvent.id).where(
            GamificationEvent.idempotency_key == event.idempotency_key(user_id)
        )
    )
    return result.scalar_one_or_none() is not None
