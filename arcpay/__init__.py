"""
Arc Pay: AI-assisted USDC micropayments for content.

The decision engine scores content against a user's interests and quality
bar, pays creators through a custodial wallet, and keeps cumulative daily
spend under the user's budget. Recurring creator subscriptions are charged
by a scheduled sweep.
"""

__version__ = "1.0.0"

from arcpay.config import ArcPayConfig
from arcpay.decision import (
    apply_budget_cap,
    check_daily_budget,
    make_payment_decision,
)
from arcpay.flow import ContentPaymentFlow
from arcpay.ledger import SpendLedger
from arcpay.schema import (
    Analysis,
    ContentItem,
    PaymentDecision,
    Subscription,
    Transaction,
    UserPreferences,
)
from arcpay.subscriptions import SubscriptionService
from arcpay.wallets import WalletRegistry

__all__ = [
    "__version__",
    "ArcPayConfig",
    "Analysis",
    "ContentItem",
    "PaymentDecision",
    "Subscription",
    "Transaction",
    "UserPreferences",
    "make_payment_decision",
    "check_daily_budget",
    "apply_budget_cap",
    "ContentPaymentFlow",
    "SpendLedger",
    "SubscriptionService",
    "WalletRegistry",
]
