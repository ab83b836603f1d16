"""
Error taxonomy for Arc Pay.

Validation and not-found errors are raised before any side effect. Budget
outcomes of content processing are decisions, not errors; only manual tips
raise BudgetExceededError.
"""

from typing import Optional


class ArcPayError(Exception):
    """Base class for every error raised by arcpay."""


class ValidationError(ArcPayError):
    """Request is missing a field or carries a malformed value."""


class NotFoundError(ArcPayError):
    """Preferences, subscription or wallet record does not exist."""


class BudgetExceededError(ValidationError):
    """A manual payment would exceed the remaining daily budget."""

    def __init__(self, remaining: float):
        self.remaining = remaining
        super().__init__(f"Tip exceeds remaining daily budget ({remaining} USD)")


class SubscriptionInactiveError(ArcPayError):
    """Charge attempted on a cancelled subscription."""


class PaymentError(ArcPayError):
    """Payment provider rejected or failed a call. Message is the provider's."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ScorerError(ArcPayError):
    """Content scorer call failed; callers fall back to the keyword heuristic."""


class LedgerError(ArcPayError):
    """Stored spend total is unreadable; payments for the day are refused."""
