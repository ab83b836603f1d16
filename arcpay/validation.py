"""Request validation for manual payments (tips and subscriptions)."""

import math
from typing import Optional, Tuple

from web3 import Web3

from arcpay.errors import ValidationError


def validate_payment_request(creator_address: Optional[str], amount: Optional[float]) -> Tuple[str, float]:
    """Return (address, amount) or raise ValidationError before any side effect."""
    if not creator_address or amount is None or amount == 0:
        raise ValidationError("Missing required fields")
    creator_address = creator_address.strip()
    if not Web3.is_address(creator_address):
        raise ValidationError(f"Invalid creator address: {creator_address}")
    if not math.isfinite(amount):
        raise ValidationError("Amount must be a finite number")
    if amount < 0:
        raise ValidationError("Amount must be positive")
    return creator_address, float(amount)
