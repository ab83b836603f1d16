"""
Payment backends: Circle Programmable Wallets (when CIRCLE_API_KEY is set),
else an in-memory sandbox.
"""

from typing import Protocol

from arcpay.config import ArcPayConfig
from arcpay.payments.circle import CirclePaymentProvider
from arcpay.payments.sandbox import SandboxPaymentProvider
from arcpay.schema import Transaction, Wallet


class PaymentProvider(Protocol):
    name: str

    def create_wallet(self, user_id: str) -> Wallet: ...

    def get_balance(self, wallet_id: str) -> float: ...

    def transfer(self, wallet_id: str, to_address: str, amount: float, idempotency_key: str) -> Transaction: ...

    def get_transaction_status(self, tx_id: str) -> str: ...


def get_payment_provider(config: ArcPayConfig) -> PaymentProvider:
    """
    Single entry point: returns the payment backend for this deployment.

    Circle if CIRCLE_API_KEY is configured, else the sandbox (no money moves).
    """
    if config.circle_configured:
        return CirclePaymentProvider(
            api_key=config.circle_api_key,
            entity_secret=config.circle_entity_secret,
            api_url=config.circle_api_url,
            blockchain=config.circle_blockchain,
            usdc_address=config.usdc_address,
            timeout=config.http_timeout,
        )
    return SandboxPaymentProvider(starting_balance=config.sandbox_starting_balance)


__all__ = [
    "PaymentProvider",
    "CirclePaymentProvider",
    "SandboxPaymentProvider",
    "get_payment_provider",
]
