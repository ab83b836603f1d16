"""
Circle Programmable Wallets payment backend (USDC).

Requires CIRCLE_API_KEY, and CIRCLE_ENTITY_SECRET for transfers.
See: https://developers.circle.com/wallets
"""

import logging
import math
import time
from typing import Any, Dict, Optional

import requests

from arcpay.errors import PaymentError
from arcpay.schema import Transaction, Wallet

logger = logging.getLogger(__name__)

USDC_SYMBOL = "USDC"
USDC_DECIMALS = 6


def _format_units(amount: float) -> str:
    return f"{amount:.{USDC_DECIMALS}f}"


class CirclePaymentProvider:
    """Creates custodial wallets and moves USDC through the Circle REST API."""

    name = "circle"

    def __init__(
        self,
        api_key: str,
        entity_secret: Optional[str] = None,
        api_url: str = "https://api.circle.com/v1",
        blockchain: str = "ARB-SEPOLIA",
        usdc_address: str = "",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise RuntimeError("Circle is not configured. Set CIRCLE_API_KEY (and CIRCLE_ENTITY_SECRET).")
        self._api_url = api_url.rstrip("/")
        self._entity_secret = entity_secret
        self._blockchain = blockchain
        self._usdc_address = usdc_address
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self._api_url}{path}"
        try:
            r = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise PaymentError(f"Circle request failed: {e}") from e
        if not r.ok:
            raise PaymentError(f"Circle API error: {r.text}", status_code=r.status_code)
        try:
            body = r.json()
        except ValueError as e:
            raise PaymentError(f"Circle returned invalid JSON: {e}", status_code=r.status_code) from e
        data = body.get("data") if isinstance(body, dict) else None
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise PaymentError("Circle API error: unexpected response shape", status_code=r.status_code)
        return data

    def create_wallet(self, user_id: str) -> Wallet:
        data = self._request(
            "POST",
            "/wallets",
            json={
                "idempotencyKey": f"wallet-{user_id}-{int(time.time() * 1000)}",
                "accountType": "SCA",
                "blockchains": [self._blockchain],
                "count": 1,
                "walletSetId": user_id,
            },
        )
        wallets = data.get("wallets")
        if not isinstance(wallets, list) or not wallets:
            raise PaymentError("Circle API error: no wallet in create response")
        w = wallets[0] if isinstance(wallets[0], dict) else {}
        wallet_id, address = w.get("id"), w.get("address")
        if not wallet_id or not address:
            raise PaymentError("Circle API error: incomplete wallet in create response")
        logger.info("Created Circle wallet %s for user %s", wallet_id, user_id)
        return Wallet(wallet_id=wallet_id, address=address, user_id=user_id)

    def get_balance(self, wallet_id: str) -> float:
        """USDC balance; 0.0 if Circle cannot be reached (logged)."""
        try:
            data = self._request("GET", f"/wallets/{wallet_id}")
        except PaymentError as e:
            logger.error("Error getting balance for wallet %s: %s", wallet_id, e)
            return 0.0
        wallet = data.get("wallet")
        balances = wallet.get("balances") if isinstance(wallet, dict) else None
        for b in balances if isinstance(balances, list) else []:
            token = b.get("token") if isinstance(b, dict) else None
            if isinstance(token, dict) and token.get("symbol") == USDC_SYMBOL:
                try:
                    amount = float(b.get("amount") or 0)
                except (TypeError, ValueError):
                    return 0.0
                return amount if math.isfinite(amount) else 0.0
        return 0.0

    def transfer(self, wallet_id: str, to_address: str, amount: float, idempotency_key: str) -> Transaction:
        balance = self.get_balance(wallet_id)
        if balance < amount:
            raise PaymentError(
                f"Insufficient balance: {balance} USDC available, {amount} USDC required"
            )

        headers = {"Content-Type": "application/json"}
        if self._entity_secret:
            headers["X-User-Token"] = self._entity_secret
        data = self._request(
            "POST",
            "/w3s/developer/transactions/transfer",
            headers=headers,
            json={
                "idempotencyKey": idempotency_key,
                "walletId": wallet_id,
                "blockchain": self._blockchain,
                "destinationAddress": to_address,
                "tokenAddress": self._usdc_address,
                "amounts": [_format_units(amount)],
                "fee": {"type": "level", "config": {"feeLevel": "MEDIUM"}},
            },
        )
        tx = data.get("transaction")
        if not isinstance(tx, dict):
            tx = {}
        tx_hash = tx.get("txHash") or tx.get("id")
        if not tx_hash:
            raise PaymentError("Circle transaction error: no transaction id in response")
        return Transaction(
            tx_hash=str(tx_hash),
            from_wallet=wallet_id,
            to=to_address,
            amount=amount,
            status=str(tx.get("state") or "PENDING"),
        )

    def get_transaction_status(self, tx_id: str) -> str:
        try:
            data = self._request("GET", f"/w3s/transactions/{tx_id}")
        except PaymentError as e:
            logger.error("Error getting transaction status for %s: %s", tx_id, e)
            return "UNKNOWN"
        tx = data.get("transaction")
        return str((tx.get("state") if isinstance(tx, dict) else None) or "UNKNOWN")
