"""Reward, streak, badge and leaderboard endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.database import get_session
from skillsage.gamification import triggers
from skillsage.gamification.badge_service import get_user_badges, list_badges
from skillsage.gamification.leaderboard_service import get_leaderboard, get_user_rank
from skillsage.gamification.reward_service import award_points
from skillsage.gamification.schemas import (
    AllBadgesResponse,
    AwardRequest,
    AwardResponse,
    CourseRewardRequest,
    DailyLoginResponse,
    LeaderboardResponse,
    ReferralRewardRequest,
    StreakResponse,
    UserBadgesResponse,
    UserRankResponse,
    WithdrawalRewardRequest,
    award_response,
    badge_response,
    earned_badge_response,
    leaderboard_entry_response,
    streak_response,
)
from skillsage.gamification.streak_service import get_user_streak
from skillsage.redis_client import get_optional_redis

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


# ── Rewards ──


@router.post("/accounts/{user_id}/rewards", response_model=AwardResponse)
async def award(
    user_id: str,
    body: AwardRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Any = Depends(get_optional_redis),  # noqa: B008
) -> AwardResponse:
    """Award any catalog event by type and payload."""
    result = await award_points(
        db, user_id, body.event_type, description=body.description, metadata=body.metadata, redis=redis
    )
    return award_response(result)


@router.post("/accounts/{user_id}/daily-login", response_model=DailyLoginResponse)
async def daily_login(
    user_id: str,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Any = Depends(get_optional_redis),  # noqa: B008
) -> DailyLoginResponse:
    result = await triggers.trigger_daily_login(db, user_id, redis=redis)
    return DailyLoginResponse(streak=streak_response(result.streak), award=award_response(result.award))


@router.post("/accounts/{user_id}/course-rewards", response_model=AwardResponse)
async def course_reward(
    user_id: str,
    body: CourseRewardRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Any = Depends(get_optional_redis),  # noqa: B008
) -> AwardResponse:
    """Enrollment, completion, listing or publishing reward for one course."""
    if body.action == "enrollment":
        result = await triggers.trigger_course_enrollment(db, user_id, body.course_id, body.course_title, redis=redis)
    elif body.action == "publish":
        result = await triggers.trigger_course_published(db, user_id, body.course_id, body.course_title, redis=redis)
    elif body.action == "listed":
        result = await triggers.trigger_course_listed(db, user_id, body.course_id, redis=redis)
    else:
        result = await triggers.trigger_course_completion(db, user_id, body.course_id, body.course_title, redis=redis)
    return award_response(result)


@router.post("/accounts/{user_id}/withdrawal-rewards", response_model=AwardResponse)
async def withdrawal_reward(
    user_id: str,
    body: WithdrawalRewardRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Any = Depends(get_optional_redis),  # noqa: B008
) -> AwardResponse:
    result = await triggers.trigger_instructor_withdrawal(db, user_id, body.withdrawal_id, body.amount, redis=redis)
    return award_response(result)


@router.post("/accounts/{user_id}/referral-rewards", response_model=AwardResponse)
async def referral_reward(
    user_id: str,
    body: ReferralRewardRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Any = Depends(get_optional_redis),  # noqa: B008
) -> AwardResponse:
    result = await triggers.trigger_referral_reward(db, user_id, body.referred_user_id, body.course_id, redis=redis)
    return award_response(result)


# ── Streak ──


@router.get("/accounts/{user_id}/streak", response_model=StreakResponse)
async def streak(user_id: str, db: AsyncSession = Depends(get_session)) -> StreakResponse:  # noqa: B008
    return StreakResponse(**await get_user_streak(db, user_id))


# ── Badges ──


@router.get("/badges", response_model=AllBadgesResponse)
async def badges(db: AsyncSession = Depends(get_session)) -> AllBadgesResponse:  # noqa: B008
    """Active badge catalog."""
    return AllBadgesResponse(badges=[badge_response(b) for b in await list_badges(db)])


@router.get("/accounts/{user_id}/badges", response_model=UserBadgesResponse)
async def user_badges(user_id: str, db: AsyncSession = Depends(get_session)) -> UserBadgesResponse:  # noqa: B008
    earned = await get_user_badges(db, user_id)
    return UserBadgesResponse(earned=[earned_badge_response(ub) for ub in earned], total_earned=len(earned))


# ── Leaderboard ──


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int = Query(default=10, ge=1, le=1000),
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Any = Depends(get_optional_redis),  # noqa: B008
) -> LeaderboardResponse:
    entries = await get_leaderboard(db, limit, redis=redis)
    return LeaderboardResponse(entries=[leaderboard_entry_response(e) for e in entries])


@router.get("/leaderboard/{user_id}", response_model=UserRankResponse)
async def user_rank(user_id: str, db: AsyncSession = Depends(get_session)) -> UserRankResponse:  # noqa: B008
    return UserRankResponse(user_id=user_id, rank=await get_user_rank(db, user_id))
