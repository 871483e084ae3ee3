"""Event catalog tests: payouts, idempotency keys, payload validation."""

from __future__ import annotations

from datetime import date

import pytest

from skillsage.errors import InvalidEvent
from skillsage.gamification.events import (
    PAYOUTS,
    CourseCompletion,
    DailyLogin,
    EventType,
    FirstCourse,
    InstructorCoursePublished,
    InstructorStorePurchase,
    InstructorWithdrawal,
    ProfileCompletion,
    ReferralReward,
    make_event,
    parse_event,
)


class TestPayouts:
    """Fixed payout per event type."""

    def test_every_event_type_has_a_payout(self):
        assert set(PAYOUTS) == set(EventType)

    @pytest.mark.parametrize(
        ("event_type", "points", "coins"),
        [
            (EventType.DAILY_LOGIN, 5, 10),
            (EventType.COURSE_ENROLLMENT, 5000, 5000),
            (EventType.COURSE_COMPLETION, 200, 100),
            (EventType.FIRST_COURSE, 100, 50),
            (EventType.PROFILE_COMPLETION, 50, 25),
            (EventType.PERFECT_SCORE, 100, 50),
            (EventType.INSTRUCTOR_COURSE_LISTED, 50, 100),
            (EventType.INSTRUCTOR_COURSE_PUBLISHED, 0, 100_000),
            (EventType.INSTRUCTOR_WITHDRAWAL, 20, 0),
            (EventType.INSTRUCTOR_STORE_PURCHASE, 0, 0),
            (EventType.REFERRAL_REWARD, 100, 500),
        ],
    )
    def test_payout_values(self, event_type, points, coins):
        assert PAYOUTS[event_type].points == points
        assert PAYOUTS[event_type].coins == coins

    def test_payouts_never_negative(self):
        for payout in PAYOUTS.values():
            assert payout.points >= 0
            assert payout.coins >= 0


class TestIdempotencyKeys:
    """One-time scope of each award."""

    def test_daily_login_is_per_day(self):
        monday = DailyLogin(activity_date=date(2026, 3, 2))
        tuesday = DailyLogin(activity_date=date(2026, 3, 3))
        assert monday.idempotency_key("u1") == "daily_login:u1:2026-03-02"
        assert monday.idempotency_key("u1") != tuesday.idempotency_key("u1")

    def test_course_completion_is_per_course(self):
        a = CourseCompletion(course_id="c1")
        b = CourseCompletion(course_id="c2", course_title="Other")
        assert a.idempotency_key("u1") == "course_completion:u1:c1"
        assert a.idempotency_key("u1") != b.idempotency_key("u1")

    def test_course_title_does_not_change_key(self):
        plain = CourseCompletion(course_id="c1")
        titled = CourseCompletion(course_id="c1", course_title="Python 101")
        assert plain.idempotency_key("u1") == titled.idempotency_key("u1")

    def test_first_course_and_profile_are_once_per_user(self):
        assert FirstCourse(course_id="c9").idempotency_key("u1") == "first_course:u1"
        assert ProfileCompletion().idempotency_key("u1") == "profile_completion:u1"

    def test_keys_differ_between_users(self):
        event = CourseCompletion(course_id="c1")
        assert event.idempotency_key("u1") != event.idempotency_key("u2")

    def test_referral_is_per_referred_user_and_course(self):
        event = ReferralReward(referred_user_id="friend", course_id="c1")
        assert event.idempotency_key("u1") == "referral_reward:u1:friend:c1"

    def test_withdrawal_is_per_withdrawal(self):
        event = InstructorWithdrawal(withdrawal_id="w-7", amount=12.5)
        assert event.idempotency_key("i1") == "instructor_withdrawal:i1:w-7"


class TestDescriptions:
    def test_default_description(self):
        assert DailyLogin(activity_date=date(2026, 3, 2)).describe() == "Daily login bonus"

    def test_published_course_uses_title(self):
        event = InstructorCoursePublished(course_id="c1", course_title="Data Science")
        assert event.describe() == "Published course: Data Science"

    def test_published_course_falls_back_to_id(self):
        assert InstructorCoursePublished(course_id="c1").describe() == "Published course: c1"

    def test_store_purchase_description(self):
        event = InstructorStorePurchase(purchase_id="p1", item_id="i1", item_name="Mug")
        assert event.describe() == "Purchased Mug"


class TestMetadata:
    def test_metadata_is_json_ready_payload(self):
        event = DailyLogin(activity_date=date(2026, 3, 2))
        assert event.metadata() == {"activity_date": "2026-03-02"}

    def test_metadata_drops_unset_optionals(self):
        assert CourseCompletion(course_id="c1").metadata() == {"course_id": "c1"}


class TestParseEvent:
    """Loose (event_type, metadata) input into typed variants."""

    def test_parses_known_type(self):
        event = parse_event("course_completion", {"course_id": "c1", "course_title": "Intro"})
        assert isinstance(event, CourseCompletion)
        assert event.course_title == "Intro"
        assert event.type is EventType.COURSE_COMPLETION

    def test_accepts_enum_member(self):
        event = parse_event(EventType.PROFILE_COMPLETION)
        assert isinstance(event, ProfileCompletion)

    def test_parses_daily_login_date(self):
        event = parse_event("daily_login", {"activity_date": "2026-03-02"})
        assert event.activity_date == date(2026, 3, 2)

    def test_unknown_type_rejected(self):
        with pytest.raises(InvalidEvent, match="Unknown event type"):
            parse_event("quiz_master", {})

    def test_missing_field_rejected(self):
        with pytest.raises(InvalidEvent, match="course_id"):
            parse_event("course_completion", {})

    def test_unexpected_field_rejected(self):
        with pytest.raises(InvalidEvent):
            parse_event("profile_completion", {"bonus": 1000})

    def test_negative_withdrawal_amount_rejected(self):
        with pytest.raises(InvalidEvent):
            parse_event("instructor_withdrawal", {"withdrawal_id": "w1", "amount": -5})

    def test_make_event_reports_invalid_event(self):
        with pytest.raises(InvalidEvent, match="course_completion"):
            make_event(CourseCompletion, course_id="")

    def test_events_are_immutable(self):
        event = CourseCompletion(course_id="c1")
        with pytest.raises(Exception):
            event.course_id = "c2"
