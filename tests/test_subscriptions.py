"""Tests for SubscriptionService: first charge, sweeps, cancel and reactivate."""

from datetime import timedelta

import pytest

from arcpay.errors import NotFoundError, SubscriptionInactiveError, ValidationError
from arcpay.storage import MemoryKVStore
from arcpay.subscriptions import BILLING_PERIOD, SubscriptionService
from arcpay.wallets import WalletRegistry

from conftest import CREATOR, FAVORITE, NOW, FailingPaymentProvider


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> Clock:
    return Clock(NOW)


@pytest.fixture
def service(stores, wallets, clock) -> SubscriptionService:
    return SubscriptionService(stores.subscriptions, wallets, clock=clock)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_charges_first_period(self, service, wallets) -> None:
        sub = service.create("u1", CREATOR, 2.0)
        assert sub.active
        assert sub.subscription_id.startswith(f"u1-{CREATOR}-")
        assert sub.last_payment_date == NOW
        assert sub.next_payment_date == NOW + BILLING_PERIOD
        assert wallets.balance("u1") == pytest.approx(8.0)
        assert service.get(sub.subscription_id) == sub

    def test_failed_first_payment_keeps_subscription(self, stores, clock) -> None:
        wallets = WalletRegistry(stores.preferences, FailingPaymentProvider())
        service = SubscriptionService(stores.subscriptions, wallets, clock=clock)
        sub = service.create("u1", CREATOR, 2.0)
        assert sub.active
        assert service.get(sub.subscription_id) is not None
        assert sub.next_payment_date == NOW + BILLING_PERIOD
        clock.advance(timedelta(days=1))
        assert service.check_due().processed == []

    @pytest.mark.parametrize(
        "creator,amount",
        [
            (None, 1.0),
            (CREATOR, 0),
            ("0x123", 1.0),
            (CREATOR, -2.0),
            (CREATOR, float("nan")),
            (CREATOR, float("inf")),
        ],
    )
    def test_invalid_request_stores_nothing(self, service, stores, creator, amount) -> None:
        with pytest.raises(ValidationError):
            service.create("u1", creator, amount)
        assert stores.subscriptions.list() == []

    def test_list_for_user(self, service) -> None:
        service.create("u1", CREATOR, 1.0)
        service.create("u1", FAVORITE, 1.0)
        service.create("u2", CREATOR, 1.0)
        assert {s.creator_address for s in service.list_for_user("u1")} == {CREATOR, FAVORITE}
        assert [s.user_id for s in service.list_for_user("u2")] == ["u2"]
        assert service.list_for_user("u3") == []


# ---------------------------------------------------------------------------
# Charging
# ---------------------------------------------------------------------------


class TestProcessPayment:
    def test_missing(self, service) -> None:
        with pytest.raises(NotFoundError):
            service.process_payment("nope")

    def test_inactive(self, service) -> None:
        sub = service.create("u1", CREATOR, 1.0)
        service.cancel(sub.subscription_id)
        with pytest.raises(SubscriptionInactiveError):
            service.process_payment(sub.subscription_id)

    def test_subscription_charge_skips_ledger(self, service, stores) -> None:
        service.create("u1", CREATOR, 1.0)
        assert stores.history.list(prefix="spend-") == []


class TestCheckDue:
    def test_only_due_active_subscriptions_are_charged(self, service, clock, wallets) -> None:
        due = service.create("u1", CREATOR, 1.0)
        cancelled = service.create("u1", FAVORITE, 1.0)
        service.cancel(cancelled.subscription_id)

        clock.advance(timedelta(days=10))
        not_yet = service.create("u2", CREATOR, 1.0)

        clock.advance(timedelta(days=21))
        report = service.check_due()
        assert report.processed == [due.subscription_id]
        assert report.failed == {}
        assert service.get(not_yet.subscription_id).last_payment_date == NOW + timedelta(days=10)
        assert wallets.balance("u1") == pytest.approx(10.0 - 3.0)

    def test_next_charge_drifts_from_charge_time(self, service, clock) -> None:
        sub = service.create("u1", CREATOR, 1.0)
        clock.advance(timedelta(days=33, hours=5))
        service.check_due()
        charged = service.get(sub.subscription_id)
        assert charged.last_payment_date == clock.now
        assert charged.next_payment_date == clock.now + BILLING_PERIOD
        assert charged.next_payment_date != sub.next_payment_date + BILLING_PERIOD

    def test_sweep_continues_after_failure(self, service, clock, stores) -> None:
        broke = service.create("u2", CREATOR, 50.0)
        ok = service.create("u1", CREATOR, 1.0)
        stores.subscriptions.put("u3-garbage", "not json")

        clock.advance(timedelta(days=31))
        report = service.check_due()
        assert report.processed == [ok.subscription_id]
        assert set(report.failed) == {broke.subscription_id, "u3-garbage"}
        assert "Insufficient balance" in report.failed[broke.subscription_id]
        assert service.get(broke.subscription_id).active

    def test_explicit_now(self, service) -> None:
        service.create("u1", CREATOR, 1.0)
        assert service.check_due(now=NOW + timedelta(days=1)).processed == []
        assert len(service.check_due(now=NOW + BILLING_PERIOD).processed) == 1

    def test_empty_store(self, wallets, clock) -> None:
        report = SubscriptionService(MemoryKVStore(), wallets, clock=clock).check_due()
        assert report.processed == [] and report.failed == {}


# ---------------------------------------------------------------------------
# Cancel / reactivate
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_cancel(self, service, clock) -> None:
        sub = service.create("u1", CREATOR, 1.0)
        clock.advance(timedelta(days=2))
        assert service.cancel(sub.subscription_id)
        cancelled = service.get(sub.subscription_id)
        assert not cancelled.active
        assert cancelled.cancelled_at == clock.now

    def test_reactivate_reschedules(self, service, clock) -> None:
        sub = service.create("u1", CREATOR, 1.0)
        service.cancel(sub.subscription_id)
        clock.advance(timedelta(days=45))
        assert service.reactivate(sub.subscription_id)
        again = service.get(sub.subscription_id)
        assert again.active
        assert again.cancelled_at is None
        assert again.next_payment_date == clock.now + BILLING_PERIOD
        assert service.check_due().processed == []

    def test_missing_ids(self, service) -> None:
        assert service.cancel("nope") is False
        assert service.reactivate("nope") is False
