"""
User wallets: get-or-create a custodial wallet per user, then pay from it.

The wallet record is cached in the preferences namespace under
wallet-<user_id>, so the provider is asked to create a wallet only once.
"""

import logging
import time
from typing import Optional

from arcpay.payments import PaymentProvider
from arcpay.schema import PaymentDecision, Transaction, Wallet
from arcpay.storage import KVStore

logger = logging.getLogger(__name__)


def wallet_key(user_id: str) -> str:
    return f"wallet-{user_id}"


class WalletRegistry:
    def __init__(self, store: KVStore, payments: PaymentProvider):
        self._store = store
        self._payments = payments

    @property
    def payments(self) -> PaymentProvider:
        return self._payments

    def get(self, user_id: str) -> Optional[Wallet]:
        raw = self._store.get(wallet_key(user_id))
        return Wallet.model_validate_json(raw) if raw else None

    def get_or_create(self, user_id: str) -> Wallet:
        wallet = self.get(user_id)
        if wallet is not None:
            return wallet
        wallet = self._payments.create_wallet(user_id)
        self._store.put(wallet_key(user_id), wallet.to_json())
        logger.info("Registered wallet %s for user %s", wallet.wallet_id, user_id)
        return wallet

    def balance(self, user_id: str) -> float:
        return self._payments.get_balance(self.get_or_create(user_id).wallet_id)

    def process_micropayment(self, user_id: str, decision: PaymentDecision) -> Transaction:
        """Pay decision.amount to decision.creator_address from the user's wallet."""
        if not decision.should_pay:
            raise ValueError("Payment decision is negative")
        wallet = self.get_or_create(user_id)
        idempotency_key = f"payment-{decision.content_id}-{int(time.time() * 1000)}"
        tx = self._payments.transfer(
            wallet.wallet_id, decision.creator_address, decision.amount, idempotency_key
        )
        logger.info(
            "Paid %.4f USDC from %s to %s for %s (tx %s)",
            decision.amount, wallet.wallet_id, decision.creator_address, decision.content_id, tx.tx_hash,
        )
        return tx.model_copy(update={"content_id": decision.content_id})
