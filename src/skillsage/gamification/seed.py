"""Badge seed data: the points-threshold badge catalog."""

from __future__ import annotations

import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.db.models import Badge

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    {
        "slug": "first_steps",
        "name": "First Steps",
        "description": "Earn your first 100 points",
        "points_required": 100,
        "sort_order": 1,
    },
    {
        "slug": "rising_learner",
        "name": "Rising Learner",
        "description": "Reach 500 points",
        "points_required": 500,
        "sort_order": 2,
    },
    {
        "slug": "dedicated_learner",
        "name": "Dedicated Learner",
        "description": "Reach 1,000 points",
        "points_required": 1_000,
        "sort_order": 3,
    },
    {
        "slug": "knowledge_seeker",
        "name": "Knowledge Seeker",
        "description": "Reach 5,000 points",
        "points_required": 5_000,
        "sort_order": 4,
    },
    {
        "slug": "scholar",
        "name": "Scholar",
        "description": "Reach 10,000 points",
        "points_required": 10_000,
        "sort_order": 5,
    },
    {
        "slug": "master_scholar",
        "name": "Master Scholar",
        "description": "Reach 50,000 points. Few get this far.",
        "points_required": 50_000,
        "sort_order": 6,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Upsert the badge catalog by slug. Returns number of badges seeded."""
    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        stmt = pg_insert(Badge).values(**badge_data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["slug"],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "points_required": stmt.excluded.points_required,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badges", seeded)
    return seeded
