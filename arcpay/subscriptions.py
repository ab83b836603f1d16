"""
Recurring creator subscriptions.

State per subscription: active <-> cancelled. Due subscriptions are charged
unconditionally (no quality or relevance checks, no ledger update) and the
next charge is scheduled 30 days from the charge time, not from the previous
due date, so late sweeps push the schedule back.

check_due() is the cron entry point: it walks every stored subscription in
order, logs and skips failures, and never retries within a sweep.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from arcpay.decision import REASON_SUBSCRIPTION, forced_decision
from arcpay.errors import NotFoundError, PaymentError, SubscriptionInactiveError
from arcpay.schema import Subscription, SweepReport, Transaction
from arcpay.storage import KVStore
from arcpay.validation import validate_payment_request
from arcpay.wallets import WalletRegistry

logger = logging.getLogger(__name__)

BILLING_PERIOD = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriptionService:
    def __init__(
        self,
        store: KVStore,
        wallets: WalletRegistry,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._wallets = wallets
        self._clock = clock

    def get(self, subscription_id: str) -> Optional[Subscription]:
        raw = self._store.get(subscription_id)
        return Subscription.model_validate_json(raw) if raw else None

    def _save(self, subscription: Subscription) -> None:
        self._store.put(subscription.subscription_id, subscription.to_json())

    def create(self, user_id: str, creator_address: Optional[str], amount: Optional[float]) -> Subscription:
        """Store a new subscription and charge the first period right away."""
        creator_address, amount = validate_payment_request(creator_address, amount)
        now = self._clock()
        subscription = Subscription(
            subscription_id=f"{user_id}-{creator_address}-{int(time.time() * 1000)}",
            user_id=user_id,
            creator_address=creator_address,
            amount=amount,
            active=True,
            next_payment_date=now + BILLING_PERIOD,
            last_payment_date=now,
            created_at=now,
        )
        self._save(subscription)
        logger.info("Created subscription %s (%.4f USDC)", subscription.subscription_id, amount)

        try:
            self.process_payment(subscription.subscription_id)
        except (PaymentError, NotFoundError, SubscriptionInactiveError) as e:
            # stays active; next_payment_date is already now + 30d, so the sweep charges it then
            logger.error("First payment failed for %s: %s", subscription.subscription_id, e)
        return self.get(subscription.subscription_id) or subscription

    def process_payment(self, subscription_id: str) -> Transaction:
        """Charge one period and push next_payment_date 30 days past now."""
        subscription = self.get(subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription not found")
        if not subscription.active:
            raise SubscriptionInactiveError("Subscription is not active")

        decision = forced_decision(
            content_id=f"sub-{subscription_id}",
            creator_address=subscription.creator_address,
            amount=subscription.amount,
            reason=REASON_SUBSCRIPTION,
        )
        tx = self._wallets.process_micropayment(subscription.user_id, decision)

        now = self._clock()
        self._save(
            subscription.model_copy(
                update={"last_payment_date": now, "next_payment_date": now + BILLING_PERIOD}
            )
        )
        return tx

    def check_due(self, now: Optional[datetime] = None) -> SweepReport:
        """Charge every active subscription whose next_payment_date has passed."""
        now = now or self._clock()
        report = SweepReport()
        for key in self._store.list():
            try:
                subscription = self.get(key)
                if subscription is None:
                    continue
                if subscription.active and subscription.next_payment_date <= now:
                    logger.info("Processing due subscription: %s", subscription.subscription_id)
                    self.process_payment(subscription.subscription_id)
                    report.processed.append(subscription.subscription_id)
            except Exception as e:
                logger.error("Failed to process subscription %s: %s", key, e)
                report.failed[key] = str(e)
        logger.info("Subscription sweep done: %d charged, %d failed", len(report.processed), len(report.failed))
        return report

    def cancel(self, subscription_id: str) -> bool:
        subscription = self.get(subscription_id)
        if subscription is None:
            return False
        self._save(subscription.model_copy(update={"active": False, "cancelled_at": self._clock()}))
        logger.info("Cancelled subscription %s", subscription_id)
        return True

    def reactivate(self, subscription_id: str) -> bool:
        subscription = self.get(subscription_id)
        if subscription is None:
            return False
        self._save(
            subscription.model_copy(
                update={
                    "active": True,
                    "cancelled_at": None,
                    "next_payment_date": self._clock() + BILLING_PERIOD,
                }
            )
        )
        logger.info("Reactivated subscription %s", subscription_id)
        return True

    def list_for_user(self, user_id: str) -> List[Subscription]:
        subscriptions = []
        for key in self._store.list(prefix=f"{user_id}-"):
            subscription = self.get(key)
            if subscription is not None and subscription.user_id == user_id:
                subscriptions.append(subscription)
        return subscriptions
