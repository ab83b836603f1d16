"""
Content payment flow: budget pre-check → analyze → decide → budget post-check
→ pay → update ledger → record transaction.

Budget violations come back as negative decisions, not errors. A failed
transfer turns the decision negative ("Payment failed: ...") and leaves the
ledger untouched, so there is no partial charge.

The ledger read-check-write is not transactional. Two concurrent requests for
one user can both pass the budget check.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from arcpay.config import ArcPayConfig
from arcpay.decision import (
    REASON_MANUAL_TIP,
    apply_budget_cap,
    check_daily_budget,
    forced_decision,
    make_payment_decision,
    payment_failed,
    resolve_thresholds,
)
from arcpay.errors import BudgetExceededError, PaymentError
from arcpay.ledger import SpendLedger
from arcpay.preferences import PreferenceStore
from arcpay.schema import (
    ContentItem,
    PaymentDecision,
    ProcessResult,
    SpendingSummary,
    Transaction,
    TransactionRecord,
)
from arcpay.scoring import Scorer
from arcpay.storage import Stores
from arcpay.validation import validate_payment_request
from arcpay.wallets import WalletRegistry

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def transaction_key(user_id: str, tx_hash: str) -> str:
    return f"tx-{user_id}-{tx_hash}"


class ContentPaymentFlow:
    """Request-level orchestration around the decision engine."""

    def __init__(
        self,
        stores: Stores,
        scorer: Scorer,
        wallets: WalletRegistry,
        config: Optional[ArcPayConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._config = config or ArcPayConfig()
        self._stores = stores
        self._scorer = scorer
        self._wallets = wallets
        self._clock = clock
        self.preferences = PreferenceStore(stores.preferences, self._config)
        self.ledger = SpendLedger(stores.history, clock=clock)

    def process_content(self, user_id: str, content: ContentItem) -> ProcessResult:
        """Decide on one content item and pay for it if the decision is positive."""
        prefs = self.preferences.require(user_id)
        daily_spend = self.ledger.read(user_id)

        blocked = check_daily_budget(content, daily_spend, prefs.max_daily_budget)
        if blocked is not None:
            logger.info("User %s: daily budget exhausted (%.4f / %.4f)", user_id, daily_spend, prefs.max_daily_budget)
            return ProcessResult(decision=blocked)

        analysis = self._scorer.analyze(content, prefs)
        min_quality, threshold = resolve_thresholds(prefs, self._config)
        decision = make_payment_decision(content, analysis, prefs, min_quality, threshold)
        decision = apply_budget_cap(decision, daily_spend, prefs.max_daily_budget)
        logger.info(
            "User %s content %s: should_pay=%s amount=%.4f reason=%r",
            user_id, content.content_id, decision.should_pay, decision.amount, decision.reason,
        )
        if not decision.should_pay:
            return ProcessResult(decision=decision)

        try:
            tx = self._wallets.process_micropayment(user_id, decision)
        except PaymentError as e:
            logger.error("Payment failed for user %s content %s: %s", user_id, content.content_id, e)
            return ProcessResult(decision=payment_failed(decision, str(e)))

        self.ledger.increment(user_id, decision.amount)
        self._record(user_id, content.content_id, tx, decision)
        return ProcessResult(decision=decision, transaction=tx)

    def send_tip(self, user_id: str, creator_address: Optional[str], amount: Optional[float]) -> Transaction:
        """
        Manual tip. Rejected if it exceeds today's remaining budget.
        Payment errors propagate to the caller.
        """
        creator_address, amount = validate_payment_request(creator_address, amount)
        prefs = self.preferences.require(user_id)
        daily_spend = self.ledger.read(user_id)
        remaining = prefs.max_daily_budget - daily_spend
        if amount > remaining:
            raise BudgetExceededError(remaining)

        decision = forced_decision(
            content_id=f"tip-{int(time.time() * 1000)}",
            creator_address=creator_address,
            amount=amount,
            reason=REASON_MANUAL_TIP,
        )
        tx = self._wallets.process_micropayment(user_id, decision)
        self.ledger.increment(user_id, amount)
        self._record(user_id, decision.content_id, tx, decision)
        return tx

    def recommend(self, user_id: str, items: List[ContentItem]) -> List[ContentItem]:
        """Top items by mean of quality and relevance, best first."""
        if not items:
            return []
        prefs = self.preferences.require(user_id)
        scored = []
        for item in items:
            analysis = self._scorer.analyze(item, prefs)
            scored.append(((analysis.quality_score + analysis.relevance_score) / 2, item))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [item for _, item in scored[:MAX_RECOMMENDATIONS]]

    def spending_summary(self, user_id: str) -> SpendingSummary:
        prefs = self.preferences.require(user_id)
        spent = self.ledger.read(user_id)
        return SpendingSummary(
            user_id=user_id,
            daily_spend=spent,
            max_daily_budget=prefs.max_daily_budget,
            remaining=max(prefs.max_daily_budget - spent, 0.0),
        )

    def list_transactions(self, user_id: str) -> List[TransactionRecord]:
        records = []
        for key in self._stores.history.list(prefix=f"tx-{user_id}-"):
            raw = self._stores.history.get(key)
            if not raw:
                continue
            record = TransactionRecord.model_validate_json(raw)
            # prefix also matches longer ids such as "<user_id>-x"
            if record.user_id == user_id:
                records.append(record)
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records

    def _record(self, user_id: str, content_id: str, tx: Transaction, decision: PaymentDecision) -> None:
        record = TransactionRecord(
            user_id=user_id,
            content_id=content_id,
            transaction=tx,
            decision=decision,
            timestamp=self._clock(),
        )
        self._stores.history.put(transaction_key(user_id, tx.tx_hash), record.to_json())
