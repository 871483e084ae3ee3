"""Transport-agnostic JSON adapter over RewardsEngine.

``dispatch(engine, operation, payload)`` validates the payload for the named
operation, runs it and always returns a JSON-ready envelope:

    {"ok": true, "data": {...}}
    {"ok": false, "error": {"code": "...", "detail": "..."}}

Used by callers that reach the engine through a function-call or message
boundary instead of HTTP.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from skillsage.config import get_settings
from skillsage.engine import RewardsEngine
from skillsage.errors import RewardsError
from skillsage.gamification.schemas import award_response, streak_response
from skillsage.gifts.schemas import SendGiftRequest, history_gift_response, send_gift_response
from skillsage.store.schemas import purchase_response

logger = logging.getLogger(__name__)


class DailyLoginCall(BaseModel):
    user_id: str = Field(min_length=1)


class CourseRewardCall(BaseModel):
    user_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)
    course_title: str | None = None
    action: Literal["enrollment", "completion", "publish", "listed"] = "completion"


class WithdrawalRewardCall(BaseModel):
    user_id: str = Field(min_length=1)
    withdrawal_id: str = Field(min_length=1)
    amount: float = Field(ge=0)


class StorePurchaseCall(BaseModel):
    user_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class GiftingHistoryCall(BaseModel):
    user_id: str = Field(min_length=1)
    direction: Literal["sent", "received", "all"] = "all"
    sort: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)
    gift_type: Literal["coins", "item", "store_purchase"] | None = None


class SendGiftCall(SendGiftRequest):
    sender_id: str = Field(min_length=1)


async def _daily_login(engine: RewardsEngine, call: DailyLoginCall) -> dict[str, Any]:
    result = await engine.daily_login(call.user_id)
    return {
        "streak": streak_response(result.streak).model_dump(mode="json"),
        "award": award_response(result.award).model_dump(mode="json"),
    }


async def _course_reward(engine: RewardsEngine, call: CourseRewardCall) -> dict[str, Any]:
    if call.action == "enrollment":
        result = await engine.course_enrollment(call.user_id, call.course_id, call.course_title)
    elif call.action == "publish":
        result = await engine.course_published(call.user_id, call.course_id, call.course_title)
    elif call.action == "listed":
        result = await engine.course_listed(call.user_id, call.course_id)
    else:
        result = await engine.course_completion(call.user_id, call.course_id, call.course_title)
    return award_response(result).model_dump(mode="json")


async def _withdrawal_reward(engine: RewardsEngine, call: WithdrawalRewardCall) -> dict[str, Any]:
    result = await engine.instructor_withdrawal(call.user_id, call.withdrawal_id, call.amount)
    return award_response(result).model_dump(mode="json")


async def _store_purchase(engine: RewardsEngine, call: StorePurchaseCall) -> dict[str, Any]:
    result = await engine.purchase(call.user_id, call.item_id, call.quantity)
    return purchase_response(result).model_dump(mode="json")


async def _gifting_history(engine: RewardsEngine, call: GiftingHistoryCall) -> dict[str, Any]:
    gifts, total = await engine.get_user_gifting_history(
        call.user_id,
        direction=call.direction,
        sort=call.sort,
        page=call.page,
        page_size=call.page_size,
        gift_type=call.gift_type,
    )
    return {
        "gifts": [history_gift_response(g).model_dump(mode="json") for g in gifts],
        "total": total,
        "page": call.page,
        "page_size": min(call.page_size, get_settings().gift_history_max_page_size),
    }


async def _send_gift(engine: RewardsEngine, call: SendGiftCall) -> dict[str, Any]:
    if call.amount is not None:
        result = await engine.send_coin_gift(call.sender_id, call.recipient_id, call.amount, call.message)
    else:
        result = await engine.send_item_gift(
            call.sender_id, call.recipient_id, call.item_id, call.quantity, call.message  # type: ignore[arg-type]
        )
    return send_gift_response(result).model_dump(mode="json")


_Handler = Callable[[RewardsEngine, Any], Awaitable[dict[str, Any]]]

OPERATIONS: dict[str, tuple[type[BaseModel], _Handler]] = {
    "daily_login": (DailyLoginCall, _daily_login),
    "course_reward": (CourseRewardCall, _course_reward),
    "withdrawal_reward": (WithdrawalRewardCall, _withdrawal_reward),
    "store_purchase": (StorePurchaseCall, _store_purchase),
    "gifting_history": (GiftingHistoryCall, _gifting_history),
    "send_gift": (SendGiftCall, _send_gift),
}


def _error(code: str, detail: str) -> dict[str, Any]:
    return {"ok": False, "error": {"code": code, "detail": detail}}


async def dispatch(engine: RewardsEngine, operation: str, payload: dict[str, Any] | None) -> dict[str, Any]:
    """Run one named operation and wrap the outcome in a JSON envelope."""
    entry = OPERATIONS.get(operation)
    if entry is None:
        return _error("unknown_operation", f"Unknown operation: {operation}")
    model, handler = entry

    try:
        call = model.model_validate(payload or {})
    except ValidationError as exc:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}" for err in exc.errors()
        )
        return _error("invalid_request", detail)

    try:
        data = await handler(engine, call)
    except RewardsError as exc:
        logger.info("%s failed: %s (%s)", operation, exc.code, exc.detail)
        return {"ok": False, "error": exc.to_dict()}
    return {"ok": True, "data": data}
