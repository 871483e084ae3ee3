"""Badge evaluation with duplicate prevention."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, cast, exists, func, literal, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import require_account
from skillsage.db.models import Account, Badge, UserBadge

logger = logging.getLogger(__name__)

BADGE_EARNED_CHANNEL = "pubsub:badge_earned"


async def list_badges(db: AsyncSession) -> list[Badge]:
    """Active badge catalog, lowest threshold first."""
    result = await db.execute(
        select(Badge)
        .where(Badge.is_active.is_(True))
        .order_by(Badge.points_required, Badge.sort_order)
    )
    return list(result.scalars().all())


async def get_badge(db: AsyncSession, badge_id: str) -> Badge | None:
    result = await db.execute(select(Badge).where(Badge.id == badge_id))
    return result.scalar_one_or_none()


async def get_badge_by_slug(db: AsyncSession, slug: str) -> Badge | None:
    result = await db.execute(select(Badge).where(Badge.slug == slug))
    return result.scalar_one_or_none()


async def has_badge(db: AsyncSession, user_id: str, badge_id: str) -> bool:
    """Check if user already has a specific badge."""
    result = await db.execute(
        select(UserBadge.id).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def get_user_badges(db: AsyncSession, user_id: str) -> list[UserBadge]:
    """Badges a user has earned, newest first."""
    await require_account(db, user_id)
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc())
    )
    return list(result.unique().scalars().all())


async def check_badge_eligibility(db: AsyncSession, user_id: str, badge_id: str) -> bool:
    """True if the user does not hold the badge yet and has enough points for it."""
    account = await require_account(db, user_id)
    badge = await get_badge(db, badge_id)
    if badge is None or not badge.is_active:
        return False
    if await has_badge(db, user_id, badge_id):
        return False
    return account.points >= badge.points_required


async def evaluate_and_grant(db: AsyncSession, user_id: str) -> list[Badge]:
    """Grant every active badge whose threshold the user's points reach.

    One INSERT ... SELECT ... ON CONFLICT DO NOTHING against the
    UNIQUE(user_id, badge_id) constraint, so concurrent evaluations for the
    same user grant each badge at most once. Returns the newly granted
    badges; an empty list just means nothing new is eligible.

    Runs inside the caller's transaction and does not commit.
    """
    now = datetime.now(timezone.utc)
    points = select(Account.points).where(Account.user_id == user_id).scalar_subquery()
    already_held = exists().where(
        UserBadge.user_id == user_id,
        UserBadge.badge_id == Badge.id,
    )
    eligible = select(
        cast(func.gen_random_uuid(), String),
        literal(user_id, String),
        Badge.id,
        literal(now, DateTime(timezone=True)),
    ).where(
        Badge.is_active.is_(True),
        Badge.points_required <= points,
        ~already_held,
    )

    stmt = (
        pg_insert(UserBadge)
        .from_select(["id", "user_id", "badge_id", "earned_at"], eligible)
        .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        .returning(UserBadge.badge_id)
    )
    result = await db.execute(stmt)
    badge_ids = list(result.scalars().all())
    if not badge_ids:
        return []

    badges = await db.execute(
        select(Badge).where(Badge.id.in_(badge_ids)).order_by(Badge.points_required)
    )
    granted = list(badges.scalars().all())
    for badge in granted:
        logger.info("Badge %s granted to %s", badge.slug, user_id)
    return granted


async def broadcast_badges(redis: object, user_id: str, badges: list[Badge]) -> None:
    """Publish badge-earned events for the notification system. Best effort."""
    if redis is None:
        return
    for badge in badges:
        try:
            await redis.publish(  # type: ignore[union-attr]
                BADGE_EARNED_CHANNEL,
                json.dumps({
                    "user_id": user_id,
                    "badge_id": badge.id,
                    "badge_slug": badge.slug,
                    "badge_name": badge.name,
                    "points_required": badge.points_required,
                }),
            )
        except Exception:
            logger.warning("Failed to publish badge_earned notification", exc_info=True)
