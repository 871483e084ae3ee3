"""Reward triggers called from the platform's course, login, withdrawal and referral flows.

Each trigger builds the typed event for one user action and hands it to the
reward calculator. Re-triggering the same action is harmless: the result
comes back with ``already_rewarded=True``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import require_account, require_role
from skillsage.gamification.badge_service import get_user_badges
from skillsage.gamification.events import (
    CourseCompletion,
    CourseEnrollment,
    DailyLogin,
    FirstCourse,
    InstructorCourseListed,
    InstructorCoursePublished,
    InstructorStorePurchase,
    InstructorWithdrawal,
    PerfectScore,
    ProfileCompletion,
    ReferralReward,
    make_event,
)
from skillsage.gamification.leaderboard_service import get_user_rank
from skillsage.gamification.reward_service import AwardResult, get_user_events, grant_reward
from skillsage.gamification.streak_service import StreakResult, engine_today, update_streak

logger = logging.getLogger(__name__)

RECENT_EVENTS_LIMIT = 10


@dataclass
class DailyLoginResult:
    streak: StreakResult
    award: AwardResult


async def trigger_daily_login(
    db: AsyncSession,
    user_id: str,
    redis: object = None,
) -> DailyLoginResult:
    """Extend the streak and pay the once-per-day login bonus.

    Two separately committed steps; both are idempotent for the day, so a
    retry after a failure in the second step completes the login.
    """
    today = engine_today()
    streak = await update_streak(db, user_id, today=today)
    award = await grant_reward(db, user_id, make_event(DailyLogin, activity_date=today), redis=redis)
    return DailyLoginResult(streak=streak, award=award)


async def trigger_course_enrollment(
    db: AsyncSession,
    user_id: str,
    course_id: str,
    course_title: str | None = None,
    redis: object = None,
) -> AwardResult:
    return await grant_reward(
        db, user_id, make_event(CourseEnrollment, course_id=course_id, course_title=course_title), redis=redis
    )


async def trigger_course_completion(
    db: AsyncSession,
    user_id: str,
    course_id: str,
    course_title: str | None = None,
    redis: object = None,
) -> AwardResult:
    return await grant_reward(
        db, user_id, make_event(CourseCompletion, course_id=course_id, course_title=course_title), redis=redis
    )


async def trigger_first_course(
    db: AsyncSession,
    user_id: str,
    course_id: str | None = None,
    redis: object = None,
) -> AwardResult:
    return await grant_reward(db, user_id, make_event(FirstCourse, course_id=course_id), redis=redis)


async def trigger_profile_completion(db: AsyncSession, user_id: str, redis: object = None) -> AwardResult:
    return await grant_reward(db, user_id, make_event(ProfileCompletion), redis=redis)


async def trigger_perfect_score(
    db: AsyncSession,
    user_id: str,
    assessment_id: str,
    redis: object = None,
) -> AwardResult:
    return await grant_reward(db, user_id, make_event(PerfectScore, assessment_id=assessment_id), redis=redis)


async def trigger_course_listed(
    db: AsyncSession,
    user_id: str,
    course_id: str,
    redis: object = None,
) -> AwardResult:
    """Reward an instructor for listing a course. Instructors only."""
    await require_role(db, user_id, "instructor")
    return await grant_reward(db, user_id, make_event(InstructorCourseListed, course_id=course_id), redis=redis)


async def trigger_course_published(
    db: AsyncSession,
    user_id: str,
    course_id: str,
    course_title: str | None = None,
    redis: object = None,
) -> AwardResult:
    """Reward an instructor for publishing a course. Instructors only."""
    await require_role(db, user_id, "instructor")
    return await grant_reward(
        db,
        user_id,
        make_event(InstructorCoursePublished, course_id=course_id, course_title=course_title),
        redis=redis,
    )


async def trigger_instructor_withdrawal(
    db: AsyncSession,
    user_id: str,
    withdrawal_id: str,
    amount: float,
    redis: object = None,
) -> AwardResult:
    return await grant_reward(
        db, user_id, make_event(InstructorWithdrawal, withdrawal_id=withdrawal_id, amount=amount), redis=redis
    )


async def trigger_instructor_store_purchase(
    db: AsyncSession,
    user_id: str,
    purchase_id: str,
    item_id: str,
    item_name: str | None = None,
    redis: object = None,
) -> AwardResult:
    return await grant_reward(
        db,
        user_id,
        make_event(InstructorStorePurchase, purchase_id=purchase_id, item_id=item_id, item_name=item_name),
        redis=redis,
    )


async def trigger_referral_reward(
    db: AsyncSession,
    referrer_id: str,
    referred_user_id: str,
    course_id: str,
    redis: object = None,
) -> AwardResult:
    """Reward the referrer once per (referred user, course)."""
    return await grant_reward(
        db,
        referrer_id,
        make_event(ReferralReward, referred_user_id=referred_user_id, course_id=course_id),
        redis=redis,
    )


async def get_user_stats(db: AsyncSession, user_id: str) -> dict:
    """Balances, streak, badges, recent events and leaderboard rank in one call."""
    account = await require_account(db, user_id)
    badges = await get_user_badges(db, user_id)
    events = await get_user_events(db, user_id, limit=RECENT_EVENTS_LIMIT)
    rank = await get_user_rank(db, user_id)
    return {
        "user_id": account.user_id,
        "role": account.role,
        "points": account.points,
        "coins": account.coins,
        "current_streak": account.current_streak,
        "longest_streak": account.longest_streak,
        "last_active_date": account.last_active_date,
        "rank": rank,
        "badges": badges,
        "recent_events": events,
    }
