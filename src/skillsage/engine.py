"""RewardsEngine: the single service interface over all engine operations.

Transport adapters (the FastAPI routers, ``skillsage.rpc``) stay thin and call
into this class or the service functions it wraps. Each method opens its own
session, so one call is one unit of work.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skillsage.accounts import service as accounts
from skillsage.db.models import Account, Badge, CashoutRequest, Gift, StoreItem, UserBadge, UserPurchase
from skillsage.gamification import badge_service, leaderboard_service, reward_service, streak_service, triggers
from skillsage.gamification.events import EventType, RewardEvent
from skillsage.gifts import ledger
from skillsage.gifts import service as gifts
from skillsage.store import service as store


class RewardsEngine:
    """Async facade: one method per engine operation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], redis: Any = None) -> None:
        self._session_factory = session_factory
        self.redis = redis

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as db:
            yield db

    # --- Accounts ---

    async def create_account(self, user_id: str, role: str = "learner", coins: int = 0) -> Account:
        async with self.session() as db:
            return await accounts.create_account(db, user_id, role=role, coins=coins)

    async def get_account(self, user_id: str) -> Account:
        async with self.session() as db:
            return await accounts.require_account(db, user_id)

    async def get_user_stats(self, user_id: str) -> dict:
        async with self.session() as db:
            return await triggers.get_user_stats(db, user_id)

    # --- Rewards ---

    async def award_points(
        self,
        user_id: str,
        event_type: str | EventType,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await reward_service.award_points(
                db, user_id, event_type, description=description, metadata=metadata, redis=self.redis
            )

    async def grant_reward(
        self, user_id: str, event: RewardEvent, description: str | None = None
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await reward_service.grant_reward(db, user_id, event, description=description, redis=self.redis)

    async def get_user_events(self, user_id: str, limit: int = 20) -> list:
        async with self.session() as db:
            return await reward_service.get_user_events(db, user_id, limit=limit)

    async def daily_login(self, user_id: str) -> triggers.DailyLoginResult:
        async with self.session() as db:
            return await triggers.trigger_daily_login(db, user_id, redis=self.redis)

    async def course_enrollment(
        self, user_id: str, course_id: str, course_title: str | None = None
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_course_enrollment(db, user_id, course_id, course_title, redis=self.redis)

    async def course_completion(
        self, user_id: str, course_id: str, course_title: str | None = None
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_course_completion(db, user_id, course_id, course_title, redis=self.redis)

    async def first_course(self, user_id: str, course_id: str | None = None) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_first_course(db, user_id, course_id, redis=self.redis)

    async def profile_completion(self, user_id: str) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_profile_completion(db, user_id, redis=self.redis)

    async def perfect_score(self, user_id: str, assessment_id: str) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_perfect_score(db, user_id, assessment_id, redis=self.redis)

    async def course_listed(self, user_id: str, course_id: str) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_course_listed(db, user_id, course_id, redis=self.redis)

    async def course_published(
        self, user_id: str, course_id: str, course_title: str | None = None
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_course_published(db, user_id, course_id, course_title, redis=self.redis)

    async def instructor_withdrawal(
        self, user_id: str, withdrawal_id: str, amount: float
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_instructor_withdrawal(db, user_id, withdrawal_id, amount, redis=self.redis)

    async def instructor_store_purchase(
        self, user_id: str, purchase_id: str, item_id: str, item_name: str | None = None
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_instructor_store_purchase(
                db, user_id, purchase_id, item_id, item_name, redis=self.redis
            )

    async def referral_reward(
        self, referrer_id: str, referred_user_id: str, course_id: str
    ) -> reward_service.AwardResult:
        async with self.session() as db:
            return await triggers.trigger_referral_reward(
                db, referrer_id, referred_user_id, course_id, redis=self.redis
            )

    # --- Streaks ---

    async def update_streak(self, user_id: str, today: date | None = None) -> streak_service.StreakResult:
        async with self.session() as db:
            return await streak_service.update_streak(db, user_id, today=today)

    async def get_user_streak(self, user_id: str) -> dict:
        async with self.session() as db:
            return await streak_service.get_user_streak(db, user_id)

    # --- Badges ---

    async def list_badges(self) -> list[Badge]:
        async with self.session() as db:
            return await badge_service.list_badges(db)

    async def get_user_badges(self, user_id: str) -> list[UserBadge]:
        async with self.session() as db:
            return await badge_service.get_user_badges(db, user_id)

    async def check_badge_eligibility(self, user_id: str, badge_id: str) -> bool:
        async with self.session() as db:
            return await badge_service.check_badge_eligibility(db, user_id, badge_id)

    # --- Leaderboard ---

    async def get_leaderboard(self, limit: int = 10) -> list[leaderboard_service.LeaderboardEntry]:
        async with self.session() as db:
            return await leaderboard_service.get_leaderboard(db, limit, redis=self.redis)

    async def get_user_rank(self, user_id: str) -> int:
        async with self.session() as db:
            return await leaderboard_service.get_user_rank(db, user_id)

    # --- Store ---

    async def purchase(self, user_id: str, item_id: str, quantity: int = 1) -> store.PurchaseResult:
        async with self.session() as db:
            return await store.purchase(db, user_id, item_id, quantity)

    async def list_store_items(self) -> list[StoreItem]:
        async with self.session() as db:
            return await store.list_store_items(db)

    async def get_user_purchases(self, user_id: str) -> list[UserPurchase]:
        async with self.session() as db:
            return await store.get_user_purchases(db, user_id)

    async def create_store_item(self, name: str, price: int, stock_quantity: int = -1, **fields: Any) -> StoreItem:
        async with self.session() as db:
            return await store.create_store_item(db, name, price, stock_quantity=stock_quantity, **fields)

    # --- Gifts ---

    async def get_user_gifting_history(
        self,
        user_id: str,
        direction: str = "all",
        sort: str = "desc",
        page: int = 1,
        page_size: int = 10,
        gift_type: str | None = None,
    ) -> tuple[list[Gift], int]:
        async with self.session() as db:
            return await ledger.get_user_gifting_history(
                db, user_id, direction=direction, sort=sort, page=page, page_size=page_size, gift_type=gift_type
            )

    async def send_coin_gift(
        self, sender_id: str, recipient_id: str, amount: int, message: str | None = None
    ) -> gifts.GiftResult:
        async with self.session() as db:
            return await gifts.send_coin_gift(db, sender_id, recipient_id, amount, message=message)

    async def send_item_gift(
        self,
        sender_id: str,
        recipient_id: str,
        item_id: str,
        quantity: int = 1,
        message: str | None = None,
    ) -> gifts.GiftResult:
        async with self.session() as db:
            return await gifts.send_item_gift(db, sender_id, recipient_id, item_id, quantity, message=message)

    async def request_cashout(
        self,
        user_id: str,
        payout_bank_name: str,
        payout_account_number: str,
        payout_account_name: str,
    ) -> gifts.CashoutResult:
        async with self.session() as db:
            return await gifts.request_cashout(
                db, user_id, payout_bank_name, payout_account_number, payout_account_name
            )

    async def review_cashout(self, cashout_id: str, reviewer_id: str, action: str) -> gifts.CashoutResult:
        async with self.session() as db:
            return await gifts.review_cashout(db, cashout_id, reviewer_id, action)

    async def list_cashouts(self, user_id: str | None = None, status: str | None = None) -> list[CashoutRequest]:
        async with self.session() as db:
            return await gifts.list_cashouts(db, user_id=user_id, status=status)
