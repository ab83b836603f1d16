"""
In-memory payment backend for local runs and tests.

Wallets get a random 0x address and a starting USDC balance; transfers move
balance between sandbox wallets (or out to any external address) and return
a fake tx hash. Same contract and failure modes as the Circle backend.
"""

import logging
import secrets
import threading
import uuid
from typing import Dict

from arcpay.errors import PaymentError
from arcpay.schema import Transaction, Wallet

logger = logging.getLogger(__name__)


class SandboxPaymentProvider:
    name = "sandbox"

    def __init__(self, starting_balance: float = 10.0):
        self._starting_balance = starting_balance
        self._balances: Dict[str, float] = {}
        self._addresses: Dict[str, str] = {}
        self._transactions: Dict[str, Transaction] = {}
        self._seen_keys: Dict[str, str] = {}
        self._lock = threading.Lock()

    def create_wallet(self, user_id: str) -> Wallet:
        wallet_id = str(uuid.uuid4())
        address = "0x" + secrets.token_hex(20)
        with self._lock:
            self._balances[wallet_id] = self._starting_balance
            self._addresses[address.lower()] = wallet_id
        logger.info("Sandbox wallet %s (%s) for user %s", wallet_id, address, user_id)
        return Wallet(wallet_id=wallet_id, address=address, user_id=user_id)

    def fund(self, wallet_id: str, amount: float) -> float:
        """Credit a sandbox wallet; returns the new balance."""
        with self._lock:
            if wallet_id not in self._balances:
                raise PaymentError(f"Unknown wallet: {wallet_id}")
            self._balances[wallet_id] += amount
            return self._balances[wallet_id]

    def get_balance(self, wallet_id: str) -> float:
        with self._lock:
            return self._balances.get(wallet_id, 0.0)

    def transfer(self, wallet_id: str, to_address: str, amount: float, idempotency_key: str) -> Transaction:
        with self._lock:
            if idempotency_key in self._seen_keys:
                return self._transactions[self._seen_keys[idempotency_key]]
            if wallet_id not in self._balances:
                raise PaymentError(f"Unknown wallet: {wallet_id}")
            if amount <= 0:
                raise PaymentError(f"Invalid amount: {amount}")
            balance = self._balances[wallet_id]
            if balance < amount:
                raise PaymentError(
                    f"Insufficient balance: {balance} USDC available, {amount} USDC required"
                )
            self._balances[wallet_id] = balance - amount
            dest = self._addresses.get(to_address.lower())
            if dest is not None:
                self._balances[dest] += amount
            tx = Transaction(
                tx_hash="0x" + secrets.token_hex(32),
                from_wallet=wallet_id,
                to=to_address,
                amount=amount,
                status="COMPLETE",
            )
            self._transactions[tx.tx_hash] = tx
            self._seen_keys[idempotency_key] = tx.tx_hash
        return tx

    def get_transaction_status(self, tx_id: str) -> str:
        with self._lock:
            tx = self._transactions.get(tx_id)
        return tx.status if tx else "UNKNOWN"
