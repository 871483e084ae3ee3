"""Typed errors surfaced by the rewards engine.

Every error carries a stable machine-readable ``code`` and the HTTP status the
web adapter maps it to. Duplicate awards are not errors: they come back as a
successful result with ``already_rewarded=True``.
"""

from __future__ import annotations


class RewardsError(Exception):
    """Base class for all engine errors."""

    code: str = "rewards_error"
    status_code: int = 400

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.__class__.__doc__ or self.code
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "detail": self.detail}


class AccountNotFound(RewardsError):
    """Account not found."""

    code = "account_not_found"
    status_code = 404

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"Account not found: {user_id}")


class ItemNotFound(RewardsError):
    """Store item not found or inactive."""

    code = "item_not_found"
    status_code = 404

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Store item not found: {item_id}")


class InsufficientStock(RewardsError):
    """Not enough stock for this purchase."""

    code = "insufficient_stock"
    status_code = 409


class InsufficientFunds(RewardsError):
    """Not enough coins for this operation."""

    code = "insufficient_funds"
    status_code = 409


class NotAuthorized(RewardsError):
    """The account's role does not allow this operation."""

    code = "not_authorized"
    status_code = 403


class PersistenceError(RewardsError):
    """The store could not commit the operation. Safe to retry."""

    code = "persistence_error"
    status_code = 503


class InvalidEvent(RewardsError):
    """Unknown event type or malformed event payload."""

    code = "invalid_event"
    status_code = 422


class InvalidQuantity(RewardsError):
    """Quantity must be a positive integer."""

    code = "invalid_quantity"
    status_code = 422


class InvalidGift(RewardsError):
    """Gift parameters are not valid."""

    code = "invalid_gift"
    status_code = 422


class NoGiftsToCashOut(RewardsError):
    """No coin gifts are available for cash-out."""

    code = "no_gifts_to_cash_out"
    status_code = 409


class CashoutNotFound(RewardsError):
    """Cash-out request not found."""

    code = "cashout_not_found"
    status_code = 404


class CashoutAlreadyProcessed(RewardsError):
    """Cash-out request was already reviewed."""

    code = "cashout_already_processed"
    status_code = 409
