"""Shared pytest fixtures for arcpay tests."""

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from arcpay.config import ArcPayConfig
from arcpay.flow import ContentPaymentFlow
from arcpay.payments.sandbox import SandboxPaymentProvider
from arcpay.preferences import PreferenceStore
from arcpay.schema import Analysis, ContentItem, PreferencesUpdate, UserPreferences
from arcpay.storage import Stores, memory_stores
from arcpay.wallets import WalletRegistry

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

CREATOR = "0x1111111111111111111111111111111111111111"
FAVORITE = "0x2222222222222222222222222222222222222222"


class StubScorer:
    """Returns a fixed Analysis and records every call."""

    name = "stub"

    def __init__(self, quality: float = 0.9, relevance: float = 0.8, estimated_value: float = 0.25):
        self.analysis = Analysis(
            quality_score=quality,
            relevance_score=relevance,
            estimated_value=estimated_value,
        )
        self.calls: List[str] = []

    def analyze(self, content: ContentItem, preferences: UserPreferences) -> Analysis:
        self.calls.append(content.content_id)
        return self.analysis


class FailingPaymentProvider(SandboxPaymentProvider):
    """Sandbox whose transfers always fail with a provider message."""

    name = "failing"

    def __init__(self, message: str = "Insufficient balance: 0 USDC available, 0.72 USDC required"):
        super().__init__(starting_balance=0.0)
        self.message = message

    def transfer(self, wallet_id, to_address, amount, idempotency_key):
        from arcpay.errors import PaymentError

        raise PaymentError(self.message)


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> ArcPayConfig:
    return ArcPayConfig(min_quality_score=0.7, payment_threshold=0.10)


@pytest.fixture
def preferences() -> UserPreferences:
    return UserPreferences(
        user_id="u1",
        interests=["python", "ai"],
        favorite_creators=[FAVORITE],
        minimum_quality_score=0.7,
        payment_threshold=0.10,
        max_daily_budget=5.0,
    )


@pytest.fixture
def content() -> ContentItem:
    return ContentItem(
        content_id="c1",
        creator_address=CREATOR,
        title="Intro to AI agents",
        description="How agents pay for content",
        tags=["ai", "payments"],
        price=1.00,
    )


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Stores:
    return memory_stores()


@pytest.fixture
def payments() -> SandboxPaymentProvider:
    return SandboxPaymentProvider(starting_balance=10.0)


@pytest.fixture
def wallets(stores, payments) -> WalletRegistry:
    return WalletRegistry(stores.preferences, payments)


@pytest.fixture
def scorer() -> StubScorer:
    return StubScorer()


def save_preferences(stores: Stores, prefs: UserPreferences, config: Optional[ArcPayConfig] = None) -> None:
    PreferenceStore(stores.preferences, config).update(
        prefs.user_id, PreferencesUpdate(**prefs.model_dump(exclude={"user_id", "updated_at"}))
    )


@pytest.fixture
def flow(stores, scorer, wallets, config, preferences) -> ContentPaymentFlow:
    save_preferences(stores, preferences, config)
    return ContentPaymentFlow(stores, scorer, wallets, config, clock=lambda: NOW)
