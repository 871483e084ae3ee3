"""Error taxonomy: codes, HTTP statuses, payloads."""

from __future__ import annotations

import pytest

from skillsage.errors import (
    AccountNotFound,
    CashoutAlreadyProcessed,
    CashoutNotFound,
    InsufficientFunds,
    InsufficientStock,
    InvalidEvent,
    InvalidGift,
    InvalidQuantity,
    ItemNotFound,
    NoGiftsToCashOut,
    NotAuthorized,
    PersistenceError,
    RewardsError,
)


@pytest.mark.parametrize(
    ("error", "code", "status"),
    [
        (AccountNotFound("u1"), "account_not_found", 404),
        (ItemNotFound("i1"), "item_not_found", 404),
        (InsufficientStock(), "insufficient_stock", 409),
        (InsufficientFunds(), "insufficient_funds", 409),
        (NotAuthorized(), "not_authorized", 403),
        (PersistenceError(), "persistence_error", 503),
        (InvalidEvent(), "invalid_event", 422),
        (InvalidQuantity(), "invalid_quantity", 422),
        (InvalidGift(), "invalid_gift", 422),
        (NoGiftsToCashOut(), "no_gifts_to_cash_out", 409),
        (CashoutNotFound(), "cashout_not_found", 404),
        (CashoutAlreadyProcessed(), "cashout_already_processed", 409),
    ],
)
def test_codes_and_statuses(error, code, status):
    assert isinstance(error, RewardsError)
    assert error.code == code
    assert error.status_code == status


def test_detail_defaults_to_docstring():
    assert InsufficientFunds().detail == "Not enough coins for this operation."


def test_custom_detail():
    err = InsufficientStock("Only 2 left")
    assert str(err) == "Only 2 left"
    assert err.to_dict() == {"code": "insufficient_stock", "detail": "Only 2 left"}


def test_not_found_errors_carry_ids():
    assert AccountNotFound("learner-1").user_id == "learner-1"
    assert "learner-1" in AccountNotFound("learner-1").detail
    assert ItemNotFound("mug").item_id == "mug"
