"""Session-scoped wiring of auth, cart and subscription state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..api.auth import AuthSession, Authenticator
from ..api.client import NutriCartClient
from ..api.errors import APIError, NetworkError
from ..api.models import Order, User
from ..db import LocalStorage
from ..notify import LogNotifier, Notifier
from .cart import CartStore
from .subscription import PaymentProcessor, SubscriptionStore

logger = logging.getLogger(__name__)

_ORDER_FAILED = "Failed to place order. Please try again."


@dataclass
class OrderResult:
    success: bool
    order: Order | None = None
    message: str = ""


class StoreSession:
    """Owns one user's session state.

    Login initializes the subscription from the user and fetches the cart;
    logout discards both. Stores are passed around explicitly rather than
    living in module globals.
    """

    def __init__(
        self,
        client: NutriCartClient,
        storage: LocalStorage,
        notifier: Notifier | None = None,
        payment_processor: PaymentProcessor | None = None,
    ) -> None:
        self.client = client
        self.notifier = notifier or LogNotifier()
        self.auth = Authenticator(client, storage)
        self.cart = CartStore(client, notifier=self.notifier)
        self.subscription = SubscriptionStore(
            client,
            payment_processor=payment_processor,
            refresh_user=self._refresh_user,
        )
        self.subscription.initialize(None)

    @property
    def user(self) -> User | None:
        return self.auth.user

    async def login(self, email: str, password: str) -> AuthSession:
        session = await self.auth.login(email, password)
        await self._on_login(session.user)
        return session

    async def register(self, user_data: dict) -> AuthSession:
        session = await self.auth.register(user_data)
        await self._on_login(session.user)
        return session

    async def restore(self) -> AuthSession | None:
        """Resume a stored session, if any, and load its state."""
        session = self.auth.restore()
        if session is not None:
            await self._on_login(session.user)
        return session

    def logout(self) -> None:
        self.auth.logout()
        self._on_logout()

    async def _on_login(self, user: User) -> None:
        self.subscription.initialize(user)
        await self.cart.fetch_cart()

    def _on_logout(self) -> None:
        self.cart.reset()
        self.subscription.reset()

    async def _refresh_user(self) -> None:
        user = await self.auth.refresh_user()
        if user is None:
            # refresh failure logs the user out
            if not self.auth.is_authenticated:
                self._on_logout()
            return
        if user.subscription is not None:
            self.subscription.initialize(user)

    async def place_order(
        self,
        shipping: dict[str, Any],
        payment_details: dict[str, Any] | None = None,
        auto_delivery: bool = False,
    ) -> OrderResult:
        """Create an order from the server cart, then clear the cart.

        The order total is the server-supplied cart total.
        """
        user = self.auth.user
        cart = self.cart.cart
        if user is None or not self.client.authenticated:
            return OrderResult(success=False, message="Please login to place an order.")
        if cart is None or not cart.items:
            return OrderResult(success=False, message="Your cart is empty.")

        order_data = {
            "items": [item.to_dict() for item in cart.items],
            "total": str(cart.total),
            "couponCode": cart.coupon_code,
            "shipping": shipping,
            "autoDelivery": auto_delivery,
            "payment": _masked_payment(payment_details or {}),
        }
        try:
            order = await self.client.create_order(user.id, order_data)
        except (APIError, NetworkError) as e:
            logger.warning("Error placing order: %s", e)
            message = _ORDER_FAILED
            if isinstance(e, APIError) and e.from_server:
                message = e.message
            self.notifier.error(message)
            return OrderResult(success=False, message=message)

        self.notifier.success("Order Placed", "Your order has been placed successfully!")
        await self.cart.clear_cart()
        return OrderResult(success=True, order=order)

    async def orders(self) -> list[Order]:
        user = self.auth.user
        if user is None or not self.client.authenticated:
            return []
        return await self.client.get_orders(user.id)


def _masked_payment(details: dict[str, Any]) -> dict[str, Any]:
    """Keep only the last four card digits; never send CVV."""
    masked = {k: v for k, v in details.items() if k not in ("cardNumber", "cvv")}
    number = str(details.get("cardNumber", "")).replace(" ", "")
    if number:
        masked["cardLast4"] = number[-4:]
    return masked
