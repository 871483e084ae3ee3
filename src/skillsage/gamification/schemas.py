"""Pydantic request/response models for account and reward endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from skillsage.db.models import Account, Badge, GamificationEvent, UserBadge
from skillsage.gamification.leaderboard_service import LeaderboardEntry
from skillsage.gamification.reward_service import AwardResult
from skillsage.gamification.streak_service import StreakResult


# --- Requests ---


class CreateAccountRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    role: Literal["learner", "instructor", "admin"] = "learner"
    coins: int = Field(default=0, ge=0)


class AwardRequest(BaseModel):
    event_type: str
    description: str | None = Field(default=None, max_length=256)
    metadata: dict[str, Any] = {}


class CourseRewardRequest(BaseModel):
    course_id: str = Field(min_length=1)
    course_title: str | None = None
    action: Literal["enrollment", "completion", "publish", "listed"] = "completion"


class WithdrawalRewardRequest(BaseModel):
    withdrawal_id: str = Field(min_length=1)
    amount: float = Field(ge=0)


class ReferralRewardRequest(BaseModel):
    referred_user_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)


# --- Accounts ---


class AccountResponse(BaseModel):
    user_id: str
    role: str
    points: int
    coins: int
    current_streak: int
    longest_streak: int
    last_active_date: date | None = None


# --- Awards ---


class BadgeResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: str
    points_required: int
    icon_url: str | None = None


class AwardResponse(BaseModel):
    user_id: str
    event_type: str
    points_awarded: int
    coins_awarded: int
    points: int
    coins: int
    already_rewarded: bool
    event_id: str | None = None
    badges_granted: list[BadgeResponse] = []


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_active_date: date | None = None
    changed: bool = False


class DailyLoginResponse(BaseModel):
    streak: StreakResponse
    award: AwardResponse


class EventResponse(BaseModel):
    id: str
    event_type: str
    points_earned: int
    coins_earned: int
    description: str | None = None
    metadata: dict = {}
    created_at: datetime


class EventsResponse(BaseModel):
    events: list[EventResponse]


# --- Badges ---


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


class EarnedBadgeResponse(BaseModel):
    badge: BadgeResponse
    earned_at: datetime


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_earned: int


# --- Leaderboard ---


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    points: int
    coins: int
    current_streak: int
    longest_streak: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]


class UserRankResponse(BaseModel):
    user_id: str
    rank: int


# --- Stats ---


class UserStatsResponse(BaseModel):
    user_id: str
    role: str
    points: int
    coins: int
    current_streak: int
    longest_streak: int
    last_active_date: date | None = None
    rank: int
    badges: list[EarnedBadgeResponse]
    recent_events: list[EventResponse]


# --- Builders ---


def account_response(account: Account) -> AccountResponse:
    return AccountResponse(
        user_id=account.user_id,
        role=account.role,
        points=account.points,
        coins=account.coins,
        current_streak=account.current_streak,
        longest_streak=account.longest_streak,
        last_active_date=account.last_active_date,
    )


def badge_response(badge: Badge) -> BadgeResponse:
    return BadgeResponse(
        id=badge.id,
        slug=badge.slug,
        name=badge.name,
        description=badge.description,
        points_required=badge.points_required,
        icon_url=badge.icon_url,
    )


def earned_badge_response(user_badge: UserBadge) -> EarnedBadgeResponse:
    return EarnedBadgeResponse(badge=badge_response(user_badge.badge), earned_at=user_badge.earned_at)


def award_response(result: AwardResult) -> AwardResponse:
    return AwardResponse(
        user_id=result.user_id,
        event_type=result.event_type.value,
        points_awarded=result.points_awarded,
        coins_awarded=result.coins_awarded,
        points=result.points,
        coins=result.coins,
        already_rewarded=result.already_rewarded,
        event_id=result.event_id,
        badges_granted=[badge_response(b) for b in result.badges_granted],
    )


def streak_response(result: StreakResult) -> StreakResponse:
    return StreakResponse(
        current_streak=result.current_streak,
        longest_streak=result.longest_streak,
        last_active_date=result.last_active_date,
        changed=result.changed,
    )


def event_response(event: GamificationEvent) -> EventResponse:
    return EventResponse(
        id=event.id,
        event_type=event.event_type,
        points_earned=event.points_earned,
        coins_earned=event.coins_earned,
        description=event.description,
        metadata=event.event_metadata or {},
        created_at=event.created_at,
    )


def leaderboard_entry_response(entry: LeaderboardEntry) -> LeaderboardEntryResponse:
    return LeaderboardEntryResponse(**entry.to_dict())


def stats_response(stats: dict) -> UserStatsResponse:
    return UserStatsResponse(
        **{k: v for k, v in stats.items() if k not in ("badges", "recent_events")},
        badges=[earned_badge_response(ub) for ub in stats["badges"]],
        recent_events=[event_response(e) for e in stats["recent_events"]],
    )
