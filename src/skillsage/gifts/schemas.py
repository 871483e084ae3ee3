"""Pydantic models for gift and cash-out endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from skillsage.db.models import CashoutRequest, Gift
from skillsage.gifts.service import CashoutResult, GiftResult


class SendGiftRequest(BaseModel):
    """Coins when ``amount`` is set, a store item when ``item_id`` is set."""

    recipient_id: str = Field(min_length=1)
    amount: int | None = Field(default=None, ge=1)
    item_id: str | None = None
    quantity: int = Field(default=1, ge=1)
    message: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _one_kind(self) -> SendGiftRequest:
        if (self.amount is None) == (self.item_id is None):
            msg = "Provide exactly one of amount or item_id"
            raise ValueError(msg)
        return self


class CashoutRequestBody(BaseModel):
    payout_bank_name: str = Field(min_length=1, max_length=128)
    payout_account_number: str = Field(min_length=1, max_length=32)
    payout_account_name: str = Field(min_length=1, max_length=128)


class ReviewCashoutRequest(BaseModel):
    reviewer_id: str = Field(min_length=1)
    action: Literal["approve", "reject"]


class GiftResponse(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    gift_type: str
    coin_value: int | None = None
    item_id: str | None = None
    item_name: str | None = None
    quantity: int
    message: str | None = None
    sent_at: datetime
    cashed_out: bool


class SendGiftResponse(BaseModel):
    gift: GiftResponse
    sender_coins: int
    remaining_stock: int | None = None


class GiftHistoryResponse(BaseModel):
    gifts: list[GiftResponse]
    total: int
    page: int
    page_size: int


class CashoutResponse(BaseModel):
    id: str
    user_id: str
    total_coins: int
    total_amount: Decimal
    payout_bank_name: str
    payout_account_number: str
    payout_account_name: str
    status: str
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime


class CashoutResultResponse(BaseModel):
    cashout: CashoutResponse
    gift_ids: list[str]
    coins_balance: int | None = None


class CashoutsResponse(BaseModel):
    cashouts: list[CashoutResponse]


def gift_response(gift: Gift, item_name: str | None = None) -> GiftResponse:
    return GiftResponse(
        id=gift.id,
        sender_id=gift.sender_id,
        recipient_id=gift.recipient_id,
        gift_type=gift.gift_type,
        coin_value=gift.coin_value,
        item_id=gift.item_id,
        item_name=item_name,
        quantity=gift.quantity,
        message=gift.message,
        sent_at=gift.sent_at,
        cashed_out=gift.cashed_out,
    )


def history_gift_response(gift: Gift) -> GiftResponse:
    """History rows are loaded with their item joined."""
    return gift_response(gift, item_name=gift.item.name if gift.item else None)


def send_gift_response(result: GiftResult) -> SendGiftResponse:
    return SendGiftResponse(
        gift=gift_response(result.gift),
        sender_coins=result.sender_coins,
        remaining_stock=result.remaining_stock,
    )


def cashout_response(cashout: CashoutRequest) -> CashoutResponse:
    return CashoutResponse(
        id=cashout.id,
        user_id=cashout.user_id,
        total_coins=cashout.total_coins,
        total_amount=cashout.total_amount,
        payout_bank_name=cashout.payout_bank_name,
        payout_account_number=cashout.payout_account_number,
        payout_account_name=cashout.payout_account_name,
        status=cashout.status,
        reviewed_by=cashout.reviewed_by,
        reviewed_at=cashout.reviewed_at,
        created_at=cashout.created_at,
    )


def cashout_result_response(result: CashoutResult) -> CashoutResultResponse:
    return CashoutResultResponse(
        cashout=cashout_response(result.cashout),
        gift_ids=result.gift_ids,
        coins_balance=result.coins_balance,
    )
