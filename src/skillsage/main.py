"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from skillsage.accounts.router import router as accounts_router
from skillsage.config import get_settings
from skillsage.database import close_db, get_session, init_db
from skillsage.gamification.router import router as gamification_router
from skillsage.gamification.seed import seed_badges
from skillsage.gifts.router import router as gifts_router
from skillsage.health.router import router as health_router
from skillsage.middleware import setup_middleware
from skillsage.redis_client import close_redis, init_redis
from skillsage.store.router import router as store_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.redis_max_connections, settings.redis_timeout_seconds)

    if settings.seed_badges_on_startup:
        try:
            async for db in get_session():
                await seed_badges(db)
                break
        except Exception:
            logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SkillSage Rewards API",
        description="Points, coins, streaks, badges, store and gifting for the SkillSage learning platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(accounts_router)
    app.include_router(gamification_router)
    app.include_router(store_router)
    app.include_router(gifts_router)

    return app


app = create_app()
