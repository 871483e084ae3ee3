"""Reward calculator: balance updates, event log, idempotency, badge unlocks."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from sqlalchemy import func, select, text as sql_text, update

from skillsage.accounts.service import create_account, get_account
from skillsage.db.models import Account, GamificationEvent, UserBadge
from skillsage.errors import AccountNotFound, InvalidEvent
from skillsage.gamification.events import CourseCompletion, DailyLogin, EventType, ProfileCompletion
from skillsage.gamification.reward_service import award_points, get_user_events, grant_reward, has_event


async def _event_count(db, user_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(GamificationEvent).where(GamificationEvent.user_id == user_id)
    )
    return result.scalar_one()


class TestAwardPoints:
    """Award by event type."""

    @pytest.mark.asyncio
    async def test_daily_login_award(self, db_session):
        db = db_session
        await create_account(db, "learner-1", coins=1000)

        result = await award_points(db, "learner-1", "daily_login")

        assert result.already_rewarded is False
        assert result.points_awarded == 5
        assert result.coins_awarded == 10
        assert result.points == 5
        assert result.coins == 1010

        account = await get_account(db, "learner-1")
        assert account.coins == 1010
        assert account.points == 5
        # Awarding does not touch the streak
        assert account.current_streak == 0
        assert account.last_active_date is None
        assert await _event_count(db, "learner-1") == 1

    @pytest.mark.asyncio
    async def test_event_row_contents(self, db_session):
        db = db_session
        await create_account(db, "learner-1")

        result = await award_points(db, "learner-1", "course_completion", metadata={"course_id": "py-101"})

        events = await get_user_events(db, "learner-1")
        assert len(events) == 1
        event = events[0]
        assert event.id == result.event_id
        assert event.event_type == "course_completion"
        assert event.points_earned == 200
        assert event.coins_earned == 100
        assert event.description == "Completed a course"
        assert event.event_metadata == {"course_id": "py-101"}
        assert event.idempotency_key == "course_completion:learner-1:py-101"

    @pytest.mark.asyncio
    async def test_custom_description(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        await award_points(db, "learner-1", "profile_completion", description="Filled in bio")
        events = await get_user_events(db, "learner-1")
        assert events[0].description == "Filled in bio"

    @pytest.mark.asyncio
    async def test_unknown_account(self, db_session):
        with pytest.raises(AccountNotFound):
            await award_points(db_session, "ghost", "profile_completion")

    @pytest.mark.asyncio
    async def test_unknown_event_type(self, db_session):
        await create_account(db_session, "learner-1")
        with pytest.raises(InvalidEvent):
            await award_points(db_session, "learner-1", "free_money")

    @pytest.mark.asyncio
    async def test_zero_payout_event_is_recorded(self, db_session):
        db = db_session
        await create_account(db, "instructor-1", role="instructor", coins=40)
        result = await award_points(
            db,
            "instructor-1",
            EventType.INSTRUCTOR_STORE_PURCHASE,
            metadata={"purchase_id": "p1", "item_id": "mug", "item_name": "Mug"},
        )
        assert result.points == 0
        assert result.coins == 40
        assert await _event_count(db, "instructor-1") == 1


class TestIdempotency:
    """A repeated one-time award is a no-op success."""

    @pytest.mark.asyncio
    async def test_duplicate_course_completion(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        event = CourseCompletion(course_id="py-101")

        first = await grant_reward(db, "learner-1", event)
        second = await grant_reward(db, "learner-1", event)

        assert first.already_rewarded is False
        assert second.already_rewarded is True
        assert second.points_awarded == 0
        assert second.coins_awarded == 0
        assert second.points == 200
        assert second.coins == 100
        assert await _event_count(db, "learner-1") == 1

    @pytest.mark.asyncio
    async def test_different_courses_both_rewarded(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        await grant_reward(db, "learner-1", CourseCompletion(course_id="py-101"))
        result = await grant_reward(db, "learner-1", CourseCompletion(course_id="sql-201"))
        assert result.already_rewarded is False
        assert result.points == 400

    @pytest.mark.asyncio
    async def test_daily_login_once_per_day(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        monday = DailyLogin(activity_date=date(2026, 3, 2))
        tuesday = DailyLogin(activity_date=date(2026, 3, 3))

        await grant_reward(db, "learner-1", monday)
        again = await grant_reward(db, "learner-1", monday)
        next_day = await grant_reward(db, "learner-1", tuesday)

        assert again.already_rewarded is True
        assert next_day.already_rewarded is False
        assert next_day.coins == 20

    @pytest.mark.asyncio
    async def test_has_event(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        assert await has_event(db, "learner-1", ProfileCompletion()) is False
        await grant_reward(db, "learner-1", ProfileCompletion())
        assert await has_event(db, "learner-1", ProfileCompletion()) is True

    @pytest.mark.asyncio
    async def test_session_usable_after_duplicate(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        await grant_reward(db, "learner-1", ProfileCompletion())
        await grant_reward(db, "learner-1", ProfileCompletion())
        result = await grant_reward(db, "learner-1", CourseCompletion(course_id="c1"))
        assert result.points == 250


class TestConcurrentAwards:
    """Awards racing on separate connections."""

    @pytest.mark.asyncio
    async def test_duplicate_event_pays_once(self, session_factory):
        async with session_factory() as db:
            await create_account(db, "learner-1")

        async def award():
            async with session_factory() as db:
                return await award_points(db, "learner-1", "course_completion", metadata={"course_id": "c1"})

        results = await asyncio.gather(*(award() for _ in range(5)))

        assert sum(not r.already_rewarded for r in results) == 1
        assert sum(r.already_rewarded for r in results) == 4
        async with session_factory() as db:
            account = await get_account(db, "learner-1")
            assert (account.points, account.coins) == (200, 100)
            assert await _event_count(db, "learner-1") == 1

    @pytest.mark.asyncio
    async def test_distinct_events_all_counted(self, session_factory):
        async with session_factory() as db:
            await create_account(db, "learner-1")

        async def award(course_id: str):
            async with session_factory() as db:
                return await award_points(db, "learner-1", "course_completion", metadata={"course_id": course_id})

        results = await asyncio.gather(*(award(f"course-{i}") for i in range(8)))

        assert not any(r.already_rewarded for r in results)
        async with session_factory() as db:
            account = await get_account(db, "learner-1")
            assert (account.points, account.coins) == (1600, 800)
            assert await _event_count(db, "learner-1") == 8


class TestPointsTimestamp:
    @pytest.mark.asyncio
    async def test_points_updated_at_moves_only_with_points(self, db_session):
        db = db_session
        await create_account(db, "instructor-1", role="instructor")
        before = (await get_account(db, "instructor-1")).points_updated_at

        await award_points(db, "instructor-1", "instructor_course_published", metadata={"course_id": "c1"})
        after_coins_only = (await get_account(db, "instructor-1")).points_updated_at
        assert after_coins_only == before

        await award_points(db, "instructor-1", "instructor_course_listed", metadata={"course_id": "c1"})
        after_points = (await get_account(db, "instructor-1")).points_updated_at
        assert after_points > before


class TestBadgeUnlock:
    """Crossing a threshold grants the badge in the same award."""

    @pytest.mark.asyncio
    async def test_crossing_threshold_grants_one_badge(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        await db.execute(update(Account).where(Account.user_id == "learner-1").values(points=95))
        await db.commit()

        result = await award_points(db, "learner-1", "daily_login")

        assert result.points == 100
        assert [b.slug for b in result.badges_granted] == ["first_steps"]
        rows = await db.execute(select(UserBadge).where(UserBadge.user_id == "learner-1"))
        assert len(rows.unique().scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_large_award_grants_every_crossed_badge(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        result = await award_points(db, "learner-1", "course_enrollment", metadata={"course_id": "c1"})
        # 5000 points: first_steps, rising_learner, dedicated_learner, knowledge_seeker
        assert sorted(b.points_required for b in result.badges_granted) == [100, 500, 1000, 5000]

    @pytest.mark.asyncio
    async def test_below_threshold_grants_nothing(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        result = await award_points(db, "learner-1", "profile_completion")
        assert result.badges_granted == []

    @pytest.mark.asyncio
    async def test_already_held_badge_not_regranted(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        await award_points(db, "learner-1", "course_completion", metadata={"course_id": "c1"})
        result = await award_points(db, "learner-1", "course_completion", metadata={"course_id": "c2"})
        # 400 points: first_steps already held, rising_learner needs 500
        assert result.badges_granted == []


class TestNonNegativeBalances:
    @pytest.mark.asyncio
    async def test_check_constraint_rejects_negative_coins(self, db_session):
        db = db_session
        await create_account(db, "learner-1")
        with pytest.raises(Exception):
            await db.execute(sql_text("UPDATE accounts SET coins = -1 WHERE user_id = 'learner-1'"))
        await db.rollback()
