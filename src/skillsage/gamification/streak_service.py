"""Daily login streak tracking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import case, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import require_account
from skillsage.config import get_settings
from skillsage.db.models import Account
from skillsage.db.transaction import atomic

logger = logging.getLogger(__name__)


@dataclass
class StreakResult:
    user_id: str
    current_streak: int
    longest_streak: int
    last_active_date: date
    changed: bool


def engine_zone(tz_name: str | None = None) -> ZoneInfo:
    name = tz_name or get_settings().timezone
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown timezone %r, counting streak days in UTC", name)
        return ZoneInfo("UTC")


def engine_today(now: datetime | None = None, tz_name: str | None = None) -> date:
    """Calendar date in the engine timezone (not the caller's wall clock)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(engine_zone(tz_name)).date()


async def update_streak(
    db: AsyncSession,
    user_id: str,
    today: date | None = None,
) -> StreakResult:
    """Record today's activity for a user's streak.

    A second call on the same calendar day changes nothing. The day
    comparison and the write are one UPDATE guarded by
    ``last_active_date IS DISTINCT FROM today``, so concurrent calls on the
    same day extend the streak only once. longest_streak is never lowered.
    """
    if today is None:
        today = engine_today()
    yesterday = today - timedelta(days=1)

    # Longer gaps, a NULL date or a date in the future all restart at 1.
    new_streak = case(
        (Account.last_active_date == yesterday, Account.current_streak + 1),
        else_=1,
    )

    async with atomic(db):
        result = await db.execute(
            update(Account)
            .where(
                Account.user_id == user_id,
                Account.last_active_date.is_distinct_from(today),
            )
            .values(
                current_streak=new_streak,
                longest_streak=func.greatest(Account.longest_streak, new_streak),
                last_active_date=today,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(
                Account.current_streak,
                Account.longest_streak,
                Account.last_active_date,
            )
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        if row is None:
            # Same day already recorded (or no such account).
            account = await require_account(db, user_id)
            return StreakResult(
                user_id=user_id,
                current_streak=account.current_streak,
                longest_streak=account.longest_streak,
                last_active_date=account.last_active_date or today,
                changed=False,
            )

    current, longest, last_active = row
    logger.debug("Streak for %s: %d (longest %d)", user_id, current, longest)
    return StreakResult(
        user_id=user_id,
        current_streak=current,
        longest_streak=longest,
        last_active_date=last_active,
        changed=True,
    )


async def get_user_streak(db: AsyncSession, user_id: str) -> dict:
    """Current streak info for a user."""
    account = await require_account(db, user_id)
    return {
        "current_streak": account.current_streak,
        "longest_streak": account.longest_streak,
        "last_active_date": account.last_active_date.isoformat() if account.last_active_date else None,
    }
