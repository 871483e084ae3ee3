"""Pydantic models for store endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from skillsage.db.models import StoreItem, UserPurchase
from skillsage.store.service import PurchaseResult


class PurchaseRequest(BaseModel):
    item_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class CreateStoreItemRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    price: int = Field(ge=0)
    stock_quantity: int = Field(default=-1, ge=-1)
    description: str | None = None
    icon_url: str | None = None


class StoreItemResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: int
    stock_quantity: int
    icon_url: str | None = None


class StoreItemsResponse(BaseModel):
    items: list[StoreItemResponse]


class PurchaseRecordResponse(BaseModel):
    id: str
    item_id: str
    item_name: str | None = None
    quantity: int
    total_cost: int
    purchased_at: datetime


class PurchaseResponse(BaseModel):
    purchase: PurchaseRecordResponse
    coins_balance: int
    remaining_stock: int


class PurchasesResponse(BaseModel):
    purchases: list[PurchaseRecordResponse]


def store_item_response(item: StoreItem) -> StoreItemResponse:
    return StoreItemResponse(
        id=item.id,
        name=item.name,
        description=item.description,
        price=item.price,
        stock_quantity=item.stock_quantity,
        icon_url=item.icon_url,
    )


def purchase_record_response(purchase: UserPurchase) -> PurchaseRecordResponse:
    return PurchaseRecordResponse(
        id=purchase.id,
        item_id=purchase.item_id,
        item_name=purchase.item.name if purchase.item else None,
        quantity=purchase.quantity,
        total_cost=purchase.total_cost,
        purchased_at=purchase.purchased_at,
    )


def purchase_response(result: PurchaseResult) -> PurchaseResponse:
    return PurchaseResponse(
        purchase=purchase_record_response(result.purchase),
        coins_balance=result.coins_balance,
        remaining_stock=result.remaining_stock,
    )
