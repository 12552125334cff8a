"""Client-side subscription state and (simulated) upgrade/cancel flows."""

from __future__ import annotations

import asyncio
import calendar
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from ..api.client import NutriCartClient
from ..api.errors import NutriCartError, PaymentError
from ..api.models import Feature, Subscription, Tier, User
from .. import tiers

logger = logging.getLogger(__name__)

SESSION_CHANGED_MESSAGE = "Your session changed during the upgrade. Please try again."


class PaymentProcessor(ABC):
    """Abstract base class for charging a subscription upgrade."""

    @abstractmethod
    async def charge(self, tier: Tier, payment_details: dict[str, Any]) -> str:
        """Charge for ``tier`` and return a payment reference.

        Raises:
            PaymentError: If the payment is declined.
        """
        ...


class SimulatedPaymentProcessor(PaymentProcessor):
    """Waits ``delay`` seconds and always succeeds."""

    def __init__(self, delay: float = 2.0) -> None:
        self._delay = delay

    async def charge(self, tier: Tier, payment_details: dict[str, Any]) -> str:
        await asyncio.sleep(self._delay)
        return f"pay_{int(time.time() * 1000)}"


@dataclass
class SubscriptionResult:
    success: bool
    subscription: Subscription | None = None
    error: str = ""


def add_one_month(moment: datetime) -> datetime:
    """Same day next month, clamped to the last day of that month."""
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class SubscriptionStore:
    """Holds the current user's subscription.

    Local state is the source of truth for the session. After an upgrade
    the new subscription is pushed to the backend best-effort: failures to
    persist are logged and do not undo the upgrade.
    """

    def __init__(
        self,
        client: NutriCartClient,
        payment_processor: PaymentProcessor | None = None,
        refresh_user: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._client = client
        self._payments = payment_processor or SimulatedPaymentProcessor()
        self._refresh_user = refresh_user
        self._user_id: str | None = None
        self._subscription: Subscription = Subscription.default()
        self.loading = False

    @property
    def subscription(self) -> Subscription:
        return self._subscription

    def initialize(self, user: User | None) -> Subscription:
        """Adopt the user's subscription, or the free default."""
        self._user_id = user.id if user is not None and user.id else None
        if user is not None and user.subscription is not None:
            self._subscription = user.subscription
        else:
            self._subscription = Subscription.default()
        return self._subscription

    def reset(self) -> None:
        self.initialize(None)

    async def upgrade(
        self,
        target_tier: Tier | str,
        payment_details: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> SubscriptionResult:
        tier = Tier.parse(target_tier)
        user_id = self._user_id
        self.loading = True
        try:
            try:
                payment_id = await self._payments.charge(tier, payment_details or {})
            except PaymentError as e:
                logger.error("Subscription upgrade failed: %s", e)
                return SubscriptionResult(success=False, error=str(e))

            if self._user_id != user_id:
                # logout or a different login happened during the payment step
                logger.warning("Session changed during upgrade; discarding new subscription")
                return SubscriptionResult(success=False, error=SESSION_CHANGED_MESSAGE)

            start = now or datetime.now(timezone.utc)
            subscription = Subscription(
                tier=tier,
                start_date=start,
                end_date=add_one_month(start),
                is_active=True,
                features=tiers.features_for(tier),
                payment_id=payment_id,
            )
            self._subscription = subscription
            logger.info("Subscription upgraded to: %s", tier.value)

            await self._persist(subscription)
            return SubscriptionResult(success=True, subscription=subscription)
        finally:
            self.loading = False

    async def _persist(self, subscription: Subscription) -> None:
        if not self._user_id:
            return
        try:
            await self._client.update_subscription(self._user_id, subscription)
        except NutriCartError:
            logger.warning(
                "Failed to update subscription in database; keeping local upgrade",
                exc_info=True,
            )
            return
        logger.info("Subscription updated in database")

        if self._refresh_user is None:
            return
        try:
            await self._refresh_user()
        except NutriCartError as e:
            logger.info("Could not auto-refresh user data: %s", e)

    async def cancel(self) -> SubscriptionResult:
        """Mark the subscription inactive; tier and dates stay for display."""
        self._subscription = self._subscription.cancelled()
        logger.info("Subscription cancelled")
        return SubscriptionResult(success=True, subscription=self._subscription)

    # -- policy shortcuts ----------------------------------------------------

    def has_feature(self, feature: Feature | str) -> bool:
        return tiers.has_feature(self._subscription, feature)

    def can_access(self, content_tier: Tier | str) -> bool:
        return tiers.can_access_content(self._subscription, content_tier)

    def limits(self) -> dict[str, int]:
        return tiers.subscription_limits(self._subscription)

    def is_active(self, now: datetime | None = None) -> bool:
        return tiers.is_subscription_active(self._subscription, now)
