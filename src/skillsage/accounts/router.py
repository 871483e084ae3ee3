"""Account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillsage.accounts.service import create_account, require_account
from skillsage.database import get_session
from skillsage.gamification.reward_service import get_user_events
from skillsage.gamification.schemas import (
    AccountResponse,
    CreateAccountRequest,
    EventsResponse,
    UserStatsResponse,
    account_response,
    event_response,
    stats_response,
)
from skillsage.gamification.triggers import get_user_stats

router = APIRouter(prefix="/api/v1/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
async def create(
    body: CreateAccountRequest,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> AccountResponse:
    """Create the account for a newly registered user (returns the existing one if present)."""
    account = await create_account(db, body.user_id, role=body.role, coins=body.coins)
    return account_response(account)


@router.get("/{user_id}", response_model=AccountResponse)
async def get_account(user_id: str, db: AsyncSession = Depends(get_session)) -> AccountResponse:  # noqa: B008
    return account_response(await require_account(db, user_id))


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def get_stats(user_id: str, db: AsyncSession = Depends(get_session)) -> UserStatsResponse:  # noqa: B008
    """Balances, streak, badges, recent events and rank."""
    return stats_response(await get_user_stats(db, user_id))


@router.get("/{user_id}/events", response_model=EventsResponse)
async def get_events(
    user_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> EventsResponse:
    events = await get_user_events(db, user_id, limit=limit)
    return EventsResponse(events=[event_response(e) for e in events])
