"""Store endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.database import get_session
from skillsage.store.schemas import (
    CreateStoreItemRequest,
    PurchaseRequest,
    PurchaseResponse,
    PurchasesResponse,
    StoreItemResponse,
    StoreItemsResponse,
    purchase_record_response,
    purchase_response,
    store_item_response,
)
from skillsage.store.service import create_store_item, get_user_purchases, list_store_items, purchase

router = APIRouter(prefix="/api/v1", tags=["Store"])


@router.get("/store/items", response_model=StoreItemsResponse)
async def items(db: AsyncSession = Depends(get_session)) -> StoreItemsResponse:  # noqa: B008
    return StoreItemsResponse(items=[store_item_response(i) for i in await list_store_items(db)])


@router.post("/store/items", response_model=StoreItemResponse, status_code=201)
async def create_item(
    body: CreateStoreItemRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> StoreItemResponse:
    """Add a catalog item. Meant for internal admin tooling."""
    item = await create_store_item(
        db,
        body.name,
        body.price,
        stock_quantity=body.stock_quantity,
        description=body.description,
        icon_url=body.icon_url,
    )
    return store_item_response(item)


@router.post("/accounts/{user_id}/purchases", response_model=PurchaseResponse, status_code=201)
async def buy(
    user_id: str,
    body: PurchaseRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PurchaseResponse:
    return purchase_response(await purchase(db, user_id, body.item_id, body.quantity))


@router.get("/accounts/{user_id}/purchases", response_model=PurchasesResponse)
async def purchases(
    user_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PurchasesResponse:
    rows = await get_user_purchases(db, user_id, limit=limit)
    return PurchasesResponse(purchases=[purchase_record_response(p) for p in rows])
