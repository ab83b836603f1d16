"""
Spend ledger: cumulative USD spent per user per UTC day.

Keys look like spend-<user_id>-2026-10-19 and expire 24 hours after the last
write. increment() is a plain read-then-write, so two concurrent requests for
the same user can both read the old total and both pass the budget check.
"""

import logging
import math
from datetime import date, datetime, timezone
from typing import Callable, Optional

from arcpay.errors import LedgerError
from arcpay.storage import KVStore

logger = logging.getLogger(__name__)

LEDGER_TTL_SECONDS = 24 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SpendLedger:
    def __init__(self, store: KVStore, clock: Callable[[], datetime] = _utcnow):
        self._store = store
        self._clock = clock

    def key_for(self, user_id: str, day: Optional[date] = None) -> str:
        day = day or self._clock().date()
        return f"spend-{user_id}-{day.isoformat()}"

    def read(self, user_id: str) -> float:
        """
        Today's spend for user_id; 0.0 when nothing was recorded.

        An unreadable or non-finite total raises LedgerError rather than
        reading as zero, so a damaged record cannot reset the budget.
        """
        key = self.key_for(user_id)
        raw = self._store.get(key)
        if not raw:
            return 0.0
        try:
            total = float(raw)
        except ValueError:
            total = math.nan
        if not math.isfinite(total):
            logger.error("Corrupt ledger value %r under %s", raw, key)
            raise LedgerError(f"Spend ledger for {user_id} is unreadable")
        return total

    def increment(self, user_id: str, delta: float) -> float:
        """Add delta to today's spend and return the new total."""
        if not math.isfinite(delta) or delta < 0:
            raise ValueError(f"ledger delta must be a finite non-negative number, got {delta!r}")
        key = self.key_for(user_id)
        total = self.read(user_id) + delta
        self._store.put(key, repr(total), ttl_seconds=LEDGER_TTL_SECONDS)
        logger.debug("Ledger %s += %.4f -> %.4f", key, delta, total)
        return total
