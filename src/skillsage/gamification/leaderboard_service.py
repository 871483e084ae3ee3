"""Leaderboard ranking by points.

Ordering: points DESC, then points_updated_at ASC (whoever reached the total
first ranks higher), then user_id ASC. The ordering is total, so ranks are
deterministic and rank N is always the N-th row.

Reads come straight from PostgreSQL (index on the ordering columns); the
top-N list may be served from a short Redis cache because the leaderboard
is not authoritative state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import require_account
from skillsage.config import get_settings
from skillsage.db.models import Account

logger = logging.getLogger(__name__)

LEADERBOARD_CACHE_KEY = "leaderboard:top:{limit}"

_ORDERING = (
    Account.points.desc(),
    Account.points_updated_at.asc(),
    Account.user_id.asc(),
)


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    points: int
    coins: int
    current_streak: int
    longest_streak: int

    def to_dict(self) -> dict:
        return asdict(self)


def clamp_limit(limit: int) -> int:
    """Cap a requested leaderboard size at leaderboard_max_limit."""
    return min(limit, get_settings().leaderboard_max_limit)


async def get_leaderboard(
    db: AsyncSession,
    limit: int = 10,
    redis: object = None,
) -> list[LeaderboardEntry]:
    """Top ``limit`` accounts with 1-based ranks."""
    limit = clamp_limit(limit)
    if limit <= 0:
        return []
    cache_key = LEADERBOARD_CACHE_KEY.format(limit=limit)

    if redis is not None:
        try:
            cached = await redis.get(cache_key)  # type: ignore[union-attr]
            if cached:
                return [LeaderboardEntry(**row) for row in json.loads(cached)]
        except Exception:
            logger.warning("Leaderboard cache read failed", exc_info=True)

    result = await db.execute(
        select(
            Account.user_id,
            Account.points,
            Account.coins,
            Account.current_streak,
            Account.longest_streak,
        )
        .order_by(*_ORDERING)
        .limit(limit)
    )
    entries = [
        LeaderboardEntry(
            rank=position,
            user_id=row.user_id,
            points=row.points,
            coins=row.coins,
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
        )
        for position, row in enumerate(result, start=1)
    ]

    if redis is not None:
        try:
            await redis.setex(  # type: ignore[union-attr]
                cache_key,
                get_settings().leaderboard_cache_ttl_seconds,
                json.dumps([e.to_dict() for e in entries]),
            )
        except Exception:
            logger.warning("Leaderboard cache write failed", exc_info=True)

    return entries


def _ranks_ahead(points: int, reached_at: datetime, user_id: str):  # noqa: ANN202
    """Filter selecting every account ordered strictly before the given position."""
    return or_(
        Account.points > points,
        and_(Account.points == points, Account.points_updated_at < reached_at),
        and_(
            Account.points == points,
            Account.points_updated_at == reached_at,
            Account.user_id < user_id,
        ),
    )


async def get_user_rank(db: AsyncSession, user_id: str) -> int:
    """1-based rank of a user under the leaderboard ordering."""
    account = await require_account(db, user_id)
    result = await db.execute(
        select(func.count())
        .select_from(Account)
        .where(_ranks_ahead(account.points, account.points_updated_at, account.user_id))
    )
    return result.scalar_one() + 1
