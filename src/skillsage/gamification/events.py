"""Reward event catalog.

Each event type is a pydantic model carrying its own typed payload; the
``RewardEvent`` union is discriminated on ``event_type``. A variant knows its
payout, its default description and the idempotency key that makes the
award one-time (per day, per course, per withdrawal ...).
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, NamedTuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from skillsage.errors import InvalidEvent
from skillsage.gamification.streak_service import engine_today


class EventType(str, Enum):
    DAILY_LOGIN = "daily_login"
    COURSE_ENROLLMENT = "course_enrollment"
    COURSE_COMPLETION = "course_completion"
    FIRST_COURSE = "first_course"
    PROFILE_COMPLETION = "profile_completion"
    PERFECT_SCORE = "perfect_score"
    INSTRUCTOR_COURSE_LISTED = "instructor_course_listed"
    INSTRUCTOR_COURSE_PUBLISHED = "instructor_course_published"
    INSTRUCTOR_WITHDRAWAL = "instructor_withdrawal"
    INSTRUCTOR_STORE_PURCHASE = "instructor_store_purchase"
    REFERRAL_REWARD = "referral_reward"


class Payout(NamedTuple):
    points: int
    coins: int


# Fixed payout per event type. Zero payouts are valid (descriptive events).
PAYOUTS: dict[EventType, Payout] = {
    EventType.DAILY_LOGIN: Payout(points=5, coins=10),
    EventType.COURSE_ENROLLMENT: Payout(points=5000, coins=5000),
    EventType.COURSE_COMPLETION: Payout(points=200, coins=100),
    EventType.FIRST_COURSE: Payout(points=100, coins=50),
    EventType.PROFILE_COMPLETION: Payout(points=50, coins=25),
    EventType.PERFECT_SCORE: Payout(points=100, coins=50),
    EventType.INSTRUCTOR_COURSE_LISTED: Payout(points=50, coins=100),
    EventType.INSTRUCTOR_COURSE_PUBLISHED: Payout(points=0, coins=100_000),
    EventType.INSTRUCTOR_WITHDRAWAL: Payout(points=20, coins=0),
    EventType.INSTRUCTOR_STORE_PURCHASE: Payout(points=0, coins=0),
    EventType.REFERRAL_REWARD: Payout(points=100, coins=500),
}


class _BaseEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    default_description: ClassVar[str] = ""

    @property
    def type(self) -> EventType:
        return EventType(self.event_type)  # type: ignore[attr-defined]

    @property
    def payout(self) -> Payout:
        return PAYOUTS[self.type]

    def resource_key(self) -> str | None:
        """The resource part of the idempotency key; None = once per user."""
        return None

    def idempotency_key(self, user_id: str) -> str:
        resource = self.resource_key()
        if resource is None:
            return f"{self.type.value}:{user_id}"
        return f"{self.type.value}:{user_id}:{resource}"

    def describe(self) -> str:
        return self.default_description

    def metadata(self) -> dict[str, Any]:
        """JSON payload stored on the event row."""
        return self.model_dump(mode="json", exclude={"event_type"}, exclude_none=True)


class DailyLogin(_BaseEvent):
    event_type: Literal["daily_login"] = "daily_login"
    activity_date: date = Field(default_factory=engine_today)

    default_description: ClassVar[str] = "Daily login bonus"

    def resource_key(self) -> str:
        return self.activity_date.isoformat()


class CourseEnrollment(_BaseEvent):
    event_type: Literal["course_enrollment"] = "course_enrollment"
    course_id: str = Field(min_length=1)
    course_title: str | None = None

    default_description: ClassVar[str] = "Enrolled in a new course"

    def resource_key(self) -> str:
        return self.course_id


class CourseCompletion(_BaseEvent):
    event_type: Literal["course_completion"] = "course_completion"
    course_id: str = Field(min_length=1)
    course_title: str | None = None

    default_description: ClassVar[str] = "Completed a course"

    def resource_key(self) -> str:
        return self.course_id


class FirstCourse(_BaseEvent):
    event_type: Literal["first_course"] = "first_course"
    course_id: str | None = None

    default_description: ClassVar[str] = "Completed your first course"


class ProfileCompletion(_BaseEvent):
    event_type: Literal["profile_completion"] = "profile_completion"

    default_description: ClassVar[str] = "Completed profile information"


class PerfectScore(_BaseEvent):
    event_type: Literal["perfect_score"] = "perfect_score"
    assessment_id: str = Field(min_length=1)

    default_description: ClassVar[str] = "Achieved perfect score on assessment"

    def resource_key(self) -> str:
        return self.assessment_id


class InstructorCourseListed(_BaseEvent):
    event_type: Literal["instructor_course_listed"] = "instructor_course_listed"
    course_id: str = Field(min_length=1)

    default_description: ClassVar[str] = "Listed a new course"

    def resource_key(self) -> str:
        return self.course_id


class InstructorCoursePublished(_BaseEvent):
    event_type: Literal["instructor_course_published"] = "instructor_course_published"
    course_id: str = Field(min_length=1)
    course_title: str | None = None

    def resource_key(self) -> str:
        return self.course_id

    def describe(self) -> str:
        return f"Published course: {self.course_title or self.course_id}"


class InstructorWithdrawal(_BaseEvent):
    event_type: Literal["instructor_withdrawal"] = "instructor_withdrawal"
    withdrawal_id: str = Field(min_length=1)
    amount: float = Field(ge=0)

    default_description: ClassVar[str] = "Withdrew earnings"

    def resource_key(self) -> str:
        return self.withdrawal_id


class InstructorStorePurchase(_BaseEvent):
    event_type: Literal["instructor_store_purchase"] = "instructor_store_purchase"
    purchase_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)
    item_name: str | None = None

    def resource_key(self) -> str:
        return self.purchase_id

    def describe(self) -> str:
        return f"Purchased {self.item_name or self.item_id}"


class ReferralReward(_BaseEvent):
    event_type: Literal["referral_reward"] = "referral_reward"
    referred_user_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)

    default_description: ClassVar[str] = "Referred a learner to a course"

    def resource_key(self) -> str:
        return f"{self.referred_user_id}:{self.course_id}"


RewardEvent = Annotated[
    Union[
        DailyLogin,
        CourseEnrollment,
        CourseCompletion,
        FirstCourse,
        ProfileCompletion,
        PerfectScore,
        InstructorCourseListed,
        InstructorCoursePublished,
        InstructorWithdrawal,
        InstructorStorePurchase,
        ReferralReward,
    ],
    Field(discriminator="event_type"),
]

_event_adapter: TypeAdapter[RewardEvent] = TypeAdapter(RewardEvent)


def parse_event(event_type: str | EventType, metadata: dict[str, Any] | None = None) -> RewardEvent:
    """Build the typed event variant from a loose (event_type, metadata) pair."""
    value = event_type.value if isinstance(event_type, EventType) else event_type
    try:
        EventType(value)
    except ValueError as exc:
        raise InvalidEvent(f"Unknown event type: {value}") from exc

    try:
        return _event_adapter.validate_python({**(metadata or {}), "event_type": value})
    except ValidationError as exc:
        raise InvalidEvent(f"Invalid {value} payload: {_format_errors(exc, skip=1)}") from exc


def make_event(event_cls: type[_BaseEvent], **fields: Any) -> RewardEvent:
    """Construct a specific variant, reporting bad fields as InvalidEvent."""
    try:
        return event_cls(**fields)  # type: ignore[return-value]
    except ValidationError as exc:
        name = event_cls.model_fields["event_type"].default
        raise InvalidEvent(f"Invalid {name} payload: {_format_errors(exc)}") from exc


def _format_errors(exc: ValidationError, skip: int = 0) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][skip:]) or 'payload'}: {err['msg']}" for err in exc.errors()
    )
