"""Tests for SubscriptionStore upgrade/cancel flows."""

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from nutricart.api.errors import NetworkError, PaymentError
from nutricart.api.models import Feature, Subscription, Tier, User
from nutricart.store.subscription import (
    SESSION_CHANGED_MESSAGE,
    PaymentProcessor,
    SimulatedPaymentProcessor,
    SubscriptionStore,
    add_one_month,
)
from nutricart.tiers import TIER_FEATURES

NOW = datetime(2025, 1, 31, 9, 30, tzinfo=timezone.utc)


class DecliningProcessor(PaymentProcessor):
    async def charge(self, tier, payment_details):
        raise PaymentError("Card declined")


@pytest.fixture
def store(client):
    s = SubscriptionStore(client, payment_processor=SimulatedPaymentProcessor(delay=0))
    s.initialize(User(id="u1", email="a@example.com"))
    return s


def test_initialize_defaults_to_free(client):
    """Users without a subscription start on free."""
    store = SubscriptionStore(client)
    sub = store.initialize(User(id="u1"))
    assert sub.tier is Tier.FREE
    assert sub.is_active is True


def test_initialize_uses_user_subscription(client):
    """The user's subscription is adopted."""
    user = User.from_dict({"id": "u1", "subscription": {"tier": "premium", "isActive": True}})
    store = SubscriptionStore(client)
    store.initialize(user)
    assert store.subscription.tier is Tier.PREMIUM
    assert store.can_access(Tier.PREMIUM)
    assert not store.can_access(Tier.PRO)


@pytest.mark.asyncio
async def test_upgrade_builds_new_subscription(store, backend):
    """Upgrade builds a fresh one-month subscription."""
    backend.on("PUT", "/users/u1/subscription", body={"ok": True})
    old = store.subscription

    result = await store.upgrade("premium", {"cardNumber": "4111"}, now=NOW)

    assert result.success
    sub = result.subscription
    assert sub is store.subscription
    assert sub is not old
    assert sub.tier is Tier.PREMIUM
    assert sub.start_date == NOW
    assert sub.end_date == datetime(2025, 2, 28, 9, 30, tzinfo=timezone.utc)
    assert sub.is_active is True
    assert sub.features == TIER_FEATURES[Tier.PREMIUM]
    assert sub.payment_id.startswith("pay_")
    assert store.has_feature(Feature.PROGRESS_TRACKING)
    assert not store.has_feature("advancedAnalytics")


@pytest.mark.asyncio
async def test_upgrade_persists_to_backend(store, backend):
    """Upgrade pushes the subscription to the backend."""
    backend.on("PUT", "/users/u1/subscription", body={"ok": True})

    await store.upgrade(Tier.PRO, now=NOW)

    assert backend.paths() == [("PUT", "/users/u1/subscription")]
    body = backend.last_json()["subscription"]
    assert body["tier"] == "pro"
    assert body["features"]["oneOnOneConsultation"] is True


@pytest.mark.asyncio
async def test_persistence_failure_keeps_local_upgrade(store, backend, caplog):
    """A failed save keeps the local upgrade."""
    backend.on("PUT", "/users/u1/subscription", status=500, body={"message": "db down"})
    refresh = AsyncMock()
    store._refresh_user = refresh

    with caplog.at_level(logging.WARNING):
        result = await store.upgrade("pro", now=NOW)

    assert result.success
    assert store.subscription.tier is Tier.PRO
    assert "keeping local upgrade" in caplog.text
    refresh.assert_not_awaited()


@pytest.mark.asyncio
async def test_refresh_after_successful_persist(client, backend):
    """User refresh runs after saving; its failure is ignored."""
    backend.on("PUT", "/users/u1/subscription", body={"ok": True})
    refresh = AsyncMock(side_effect=NetworkError())
    store = SubscriptionStore(
        client,
        payment_processor=SimulatedPaymentProcessor(delay=0),
        refresh_user=refresh,
    )
    store.initialize(User(id="u1"))

    result = await store.upgrade("premium", now=NOW)

    assert result.success
    refresh.assert_awaited_once()
    assert store.subscription.tier is Tier.PREMIUM


@pytest.mark.asyncio
async def test_payment_failure_keeps_old_subscription(client, backend):
    """A declined payment keeps the old subscription."""
    store = SubscriptionStore(client, payment_processor=DecliningProcessor())
    store.initialize(User(id="u1"))

    result = await store.upgrade("pro", now=NOW)

    assert result.success is False
    assert result.error == "Card declined"
    assert store.subscription.tier is Tier.FREE
    assert backend.requests == []
    assert store.loading is False


@pytest.mark.asyncio
async def test_upgrade_without_user_skips_persist(client, backend):
    """Without a user the upgrade is local only."""
    store = SubscriptionStore(client, payment_processor=SimulatedPaymentProcessor(delay=0))
    store.initialize(None)

    result = await store.upgrade("premium", now=NOW)

    assert result.success
    assert backend.requests == []


@pytest.mark.asyncio
async def test_cancel_keeps_tier_and_dates(store, backend):
    """Cancel deactivates but keeps tier and dates."""
    backend.on("PUT", "/users/u1/subscription", body={"ok": True})
    await store.upgrade("premium", now=NOW)
    upgraded = store.subscription

    result = await store.cancel()

    assert result.success
    sub = store.subscription
    assert sub.is_active is False
    assert sub.tier is Tier.PREMIUM
    assert sub.start_date == upgraded.start_date
    assert sub.end_date == upgraded.end_date
    assert not store.is_active(now=NOW)


def test_reset_returns_to_free(store):
    """Reset returns to the free tier."""
    store._subscription = Subscription(tier=Tier.PRO)
    store.reset()
    assert store.subscription.tier is Tier.FREE
    assert store.limits()["max_diet_plans"] == 3


@pytest.mark.parametrize(
    "start, expected",
    [
        (datetime(2025, 1, 15), datetime(2025, 2, 15)),
        (datetime(2025, 1, 31), datetime(2025, 2, 28)),
        (datetime(2024, 1, 31), datetime(2024, 2, 29)),
        (datetime(2025, 12, 20), datetime(2026, 1, 20)),
        (datetime(2025, 3, 31), datetime(2025, 4, 30)),
    ],
)
def test_add_one_month(start, expected):
    """One month later, clamped to the month's last day."""
    assert add_one_month(start) == expected


class LogoutDuringPayment(PaymentProcessor):
    """Resets the store while the charge is in flight, as a logout would."""

    def __init__(self):
        self.store = None

    async def charge(self, tier, payment_details):
        self.store.reset()
        return "pay_1"


@pytest.mark.asyncio
async def test_logout_during_payment_discards_upgrade(client, backend):
    """A logout during the payment step leaves the store on the free tier."""
    processor = LogoutDuringPayment()
    store = SubscriptionStore(client, payment_processor=processor)
    processor.store = store
    store.initialize(User(id="u1"))

    result = await store.upgrade("pro", now=NOW)

    assert result.success is False
    assert result.error == SESSION_CHANGED_MESSAGE
    assert store.subscription.tier is Tier.FREE
    assert backend.requests == []
    assert store.loading is False
