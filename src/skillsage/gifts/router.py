"""Gift and cash-out endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.config import get_settings
from skillsage.database import get_session
from skillsage.gifts.ledger import get_user_gifting_history
from skillsage.gifts.schemas import (
    CashoutRequestBody,
    CashoutResultResponse,
    CashoutsResponse,
    GiftHistoryResponse,
    ReviewCashoutRequest,
    SendGiftRequest,
    SendGiftResponse,
    cashout_response,
    cashout_result_response,
    history_gift_response,
    send_gift_response,
)
from skillsage.gifts.service import list_cashouts, request_cashout, review_cashout, send_coin_gift, send_item_gift

router = APIRouter(prefix="/api/v1", tags=["Gifts"])


@router.post("/accounts/{user_id}/gifts", response_model=SendGiftResponse, status_code=201)
async def send_gift(
    user_id: str,
    body: SendGiftRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> SendGiftResponse:
    """Send coins (``amount``) or a store item (``item_id``) to another user."""
    if body.amount is not None:
        result = await send_coin_gift(db, user_id, body.recipient_id, body.amount, message=body.message)
    else:
        result = await send_item_gift(
            db, user_id, body.recipient_id, body.item_id, body.quantity, message=body.message  # type: ignore[arg-type]
        )
    return send_gift_response(result)


@router.get("/accounts/{user_id}/gifts", response_model=GiftHistoryResponse)
async def gifting_history(
    user_id: str,
    direction: Literal["sent", "received", "all"] = "all",
    sort: Literal["asc", "desc"] = "desc",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1),
    gift_type: Literal["coins", "item", "store_purchase"] | None = None,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> GiftHistoryResponse:
    gifts, total = await get_user_gifting_history(
        db, user_id, direction=direction, sort=sort, page=page, page_size=page_size, gift_type=gift_type
    )
    return GiftHistoryResponse(
        gifts=[history_gift_response(g) for g in gifts],
        total=total,
        page=page,
        page_size=min(page_size, get_settings().gift_history_max_page_size),
    )


@router.post("/accounts/{user_id}/cashouts", response_model=CashoutResultResponse, status_code=201)
async def create_cashout(
    user_id: str,
    body: CashoutRequestBody,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CashoutResultResponse:
    """Claim all received coin gifts into a pending cash-out request."""
    result = await request_cashout(
        db, user_id, body.payout_bank_name, body.payout_account_number, body.payout_account_name
    )
    return cashout_result_response(result)


@router.get("/accounts/{user_id}/cashouts", response_model=CashoutsResponse)
async def user_cashouts(user_id: str, db: AsyncSession = Depends(get_session)) -> CashoutsResponse:  # noqa: B008
    return CashoutsResponse(cashouts=[cashout_response(c) for c in await list_cashouts(db, user_id=user_id)])


@router.post("/cashouts/{cashout_id}/review", response_model=CashoutResultResponse)
async def review(
    cashout_id: str,
    body: ReviewCashoutRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CashoutResultResponse:
    """Approve or reject a pending cash-out (admin accounts only)."""
    return cashout_result_response(await review_cashout(db, cashout_id, body.reviewer_id, body.action))
