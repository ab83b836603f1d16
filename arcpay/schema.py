"""
Data model for payment decisions, wallets and subscriptions.

Field names are snake_case in Python and camelCase on the wire, so the
frontend can post {"contentId": ..., "creatorAddress": ...} unchanged.
Serialize with to_wire() to get the camelCase JSON form.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """Base for every model that crosses the HTTP or KV boundary."""

    # NaN or inf amounts would slip past every budget comparison
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-safe dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class UserPreferences(WireModel):
    """Per-user budget, interest and quality settings."""

    user_id: str
    interests: List[str] = Field(default_factory=list, description="Interest keywords")
    favorite_creators: List[str] = Field(default_factory=list, description="Creator addresses")
    minimum_quality_score: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="Quality gate; configured default when unset"
    )
    payment_threshold: Optional[float] = Field(
        None, ge=0.0, description="Smallest USD amount worth paying; configured default when unset"
    )
    max_daily_budget: float = Field(5.0, ge=0.0, description="USD cap on spend per day")
    monthly_limit: float = Field(100.0, ge=0.0, description="USD cap per month (stored, not enforced)")
    auto_pay: bool = False
    updated_at: Optional[datetime] = None

    def is_favorite(self, creator_address: Optional[str]) -> bool:
        return bool(creator_address) and creator_address in self.favorite_creators


class PreferencesUpdate(WireModel):
    """Partial preference update; unset fields keep their stored value."""

    interests: Optional[List[str]] = None
    favorite_creators: Optional[List[str]] = None
    minimum_quality_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    payment_threshold: Optional[float] = Field(None, ge=0.0)
    max_daily_budget: Optional[float] = Field(None, ge=0.0)
    monthly_limit: Optional[float] = Field(None, ge=0.0)
    auto_pay: Optional[bool] = None


class ContentItem(WireModel):
    """Content the user is looking at. Read-only input to the decision engine."""

    content_id: str
    creator_address: str
    title: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    price: Optional[float] = Field(None, ge=0.0, description="Listed USD price, if any")
    type: str = "article"


class Analysis(WireModel):
    """Scorer output for one content item."""

    quality_score: float = Field(..., ge=0.0, le=1.0)
    relevance_score: float = Field(..., ge=0.0, le=1.0)
    detected_topics: List[str] = Field(default_factory=list)
    estimated_value: float = Field(0.25, ge=0.0)
    summary: str = ""


class PaymentDecision(WireModel):
    """Pay / no-pay verdict with amount and reason."""

    should_pay: bool
    amount: float = 0.0
    reason: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    content_id: str
    creator_address: str


class Wallet(WireModel):
    """Custodial wallet that pays on behalf of a user."""

    wallet_id: str
    address: str
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)


class Transaction(WireModel):
    """Payment provider's record of one transfer."""

    tx_hash: str
    from_wallet: str
    to: str
    amount: float
    content_id: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    status: str = "PENDING"


class TransactionRecord(WireModel):
    """Stored alongside the ledger after a successful payment."""

    user_id: str
    content_id: str
    transaction: Transaction
    decision: PaymentDecision
    timestamp: datetime = Field(default_factory=utcnow)


class ProcessResult(WireModel):
    """Outcome of processing one content item."""

    decision: PaymentDecision
    transaction: Optional[Transaction] = None


class Subscription(WireModel):
    """Recurring payment to a creator."""

    subscription_id: str
    user_id: str
    creator_address: str
    amount: float = Field(..., gt=0.0)
    active: bool = True
    next_payment_date: datetime
    last_payment_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    cancelled_at: Optional[datetime] = None


class SweepReport(WireModel):
    """Result of one scheduled subscription sweep."""

    processed: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict, description="Key -> error message")


class SpendingSummary(WireModel):
    user_id: str
    daily_spend: float
    max_daily_budget: float
    remaining: float


class TipRequest(WireModel):
    creator_address: Optional[str] = None
    amount: Optional[float] = None


class SubscriptionRequest(WireModel):
    creator_address: Optional[str] = None
    amount: Optional[float] = None


class RecommendationRequest(WireModel):
    content: List[ContentItem] = Field(default_factory=list)
