"""
Payment decision engine.

make_payment_decision() is pure: same content, analysis and preferences give
the same PaymentDecision. The budget guard is two-stage. check_daily_budget()
runs before the scorer is called, apply_budget_cap() runs once the amount is
known.

Amount rule:

    base     = content.price            (if present and nonzero)
             = analysis.estimated_value * 0.25   (otherwise)
    adjusted = base * relevance_score * quality_score
"""

from typing import Optional, Tuple

from arcpay.config import ArcPayConfig
from arcpay.schema import Analysis, ContentItem, PaymentDecision, UserPreferences

ESTIMATED_VALUE_SHARE = 0.25

REASON_LOW_QUALITY = "Content quality below threshold"
REASON_BELOW_THRESHOLD = "Payment amount below threshold"
REASON_FAVORITE = "Favorite creator with high-quality content"
REASON_MEETS_CRITERIA = "Content meets quality and relevance criteria"
REASON_BUDGET_EXCEEDED = "Daily budget exceeded"
REASON_WOULD_EXCEED = "Would exceed daily budget"
REASON_MANUAL_TIP = "Manual tip"
REASON_SUBSCRIPTION = "Subscription payment"


def resolve_thresholds(preferences: UserPreferences, config: ArcPayConfig) -> Tuple[float, float]:
    """(min_quality_score, payment_threshold): user's own values, else configured defaults."""
    min_quality = preferences.minimum_quality_score
    if min_quality is None:
        min_quality = config.min_quality_score
    threshold = preferences.payment_threshold
    if threshold is None:
        threshold = config.payment_threshold
    return min_quality, threshold


def base_amount(content: ContentItem, analysis: Analysis) -> float:
    if content.price:
        return content.price
    return analysis.estimated_value * ESTIMATED_VALUE_SHARE


def adjusted_amount(base: float, quality_score: float, relevance_score: float) -> float:
    """Lower confidence on either axis lowers the willingness to pay."""
    return base * relevance_score * quality_score


def _decline(content: ContentItem, reason: str, confidence: float) -> PaymentDecision:
    return PaymentDecision(
        should_pay=False,
        amount=0.0,
        reason=reason,
        confidence_score=confidence,
        content_id=content.content_id,
        creator_address=content.creator_address,
    )


def make_payment_decision(
    content: ContentItem,
    analysis: Analysis,
    preferences: UserPreferences,
    min_quality_score: float = 0.7,
    payment_threshold: float = 0.10,
) -> PaymentDecision:
    """Decide whether to pay for content, and how much."""
    if analysis.quality_score < min_quality_score:
        return _decline(content, REASON_LOW_QUALITY, 0.9)

    amount = adjusted_amount(
        base_amount(content, analysis), analysis.quality_score, analysis.relevance_score
    )
    if amount < payment_threshold:
        return _decline(content, REASON_BELOW_THRESHOLD, 0.8)

    reason = REASON_FAVORITE if preferences.is_favorite(content.creator_address) else REASON_MEETS_CRITERIA
    return PaymentDecision(
        should_pay=True,
        amount=amount,
        reason=reason,
        confidence_score=(analysis.quality_score + analysis.relevance_score) / 2,
        content_id=content.content_id,
        creator_address=content.creator_address,
    )


def check_daily_budget(
    content: ContentItem, daily_spend: float, max_daily_budget: float
) -> Optional[PaymentDecision]:
    """Pre-check: the 'Daily budget exceeded' decision if the day is spent, else None."""
    if daily_spend >= max_daily_budget:
        return _decline(content, REASON_BUDGET_EXCEEDED, 1.0)
    return None


def apply_budget_cap(decision: PaymentDecision, daily_spend: float, max_daily_budget: float) -> PaymentDecision:
    """Post-check: decline a positive decision whose amount exceeds what is left today."""
    if decision.should_pay and decision.amount > max_daily_budget - daily_spend:
        return decision.model_copy(update={"should_pay": False, "reason": REASON_WOULD_EXCEED})
    return decision


def payment_failed(decision: PaymentDecision, message: str) -> PaymentDecision:
    """Retroactively decline a decision whose transfer failed."""
    return decision.model_copy(update={"should_pay": False, "reason": f"Payment failed: {message}"})


def forced_decision(
    content_id: str, creator_address: str, amount: float, reason: str
) -> PaymentDecision:
    """Unconditional positive decision for tips and subscription charges."""
    return PaymentDecision(
        should_pay=True,
        amount=amount,
        reason=reason,
        confidence_score=1.0,
        content_id=content_id,
        creator_address=creator_address,
    )
