"""Client-side cart state synchronized with the backend cart API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable

from ..api.client import NutriCartClient
from ..api.errors import APIError, NetworkError
from ..api.models import Cart
from ..notify import LogNotifier, Notifier

logger = logging.getLogger(__name__)


@dataclass
class CartResult:
    success: bool
    cart: Cart | None = None
    message: str = ""


class CartStore:
    """Holds the authenticated user's cart.

    The server is authoritative: every successful call replaces the local
    cart wholesale with the server's answer, and a failed call leaves it
    untouched. Without a token nothing is sent and the call returns
    ``success=False`` silently.

    Concurrent mutations are not serialized; whichever response lands
    last wins.
    """

    def __init__(
        self,
        client: NutriCartClient,
        notifier: Notifier | None = None,
    ) -> None:
        self._client = client
        self._notifier = notifier or LogNotifier()
        self._cart: Cart | None = None
        self._updating: set[str] = set()
        self.loading = False

    @property
    def cart(self) -> Cart | None:
        return self._cart

    def reset(self) -> None:
        """Drop the local cart (logout)."""
        self._cart = None
        self._updating.clear()

    # -- derived -----------------------------------------------------------

    def item_count(self) -> int:
        return self._cart.item_count if self._cart else 0

    def total(self) -> Decimal:
        """Server-supplied total; never recomputed locally."""
        return self._cart.total if self._cart else Decimal("0")

    def get_item_quantity(self, product_id: str) -> int:
        item = self._cart.find(product_id) if self._cart else None
        return item.quantity if item else 0

    def is_in_cart(self, product_id: str) -> bool:
        return self.get_item_quantity(product_id) > 0

    def is_item_updating(self, product_id: str) -> bool:
        return str(product_id) in self._updating

    # -- operations --------------------------------------------------------

    async def fetch_cart(self) -> CartResult:
        if not self._client.authenticated:
            self._cart = None
            return CartResult(success=False)

        self.loading = True
        try:
            return await self._run(
                self._client.get_cart,
                failure="Failed to load cart. Please try again.",
            )
        finally:
            self.loading = False

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> CartResult:
        return await self._run(
            lambda: self._client.add_to_cart(product_id, quantity),
            product_id=product_id,
            failure="Failed to add item to cart. Please try again.",
            success=("Added to Cart", "Item has been added to your cart successfully!"),
        )

    async def update_cart_item(self, product_id: str, quantity: int) -> CartResult:
        """Set a line's quantity. Callers route ``quantity <= 0`` to removal."""
        return await self._run(
            lambda: self._client.update_cart_item(product_id, quantity),
            product_id=product_id,
            failure="Failed to update cart. Please try again.",
            success=("Cart Updated", "Cart quantity has been updated successfully!"),
        )

    async def remove_from_cart(self, product_id: str) -> CartResult:
        return await self._run(
            lambda: self._client.remove_from_cart(product_id),
            product_id=product_id,
            failure="Failed to remove item from cart. Please try again.",
            success=("Removed from Cart", "Item has been removed from your cart."),
        )

    async def clear_cart(self) -> CartResult:
        return await self._run(
            self._client.clear_cart,
            failure="Failed to clear cart. Please try again.",
            success=("Cart Cleared", "Your cart has been cleared successfully."),
        )

    async def apply_coupon(self, code: str) -> CartResult:
        return await self._run(
            lambda: self._client.apply_coupon(code),
            failure="Failed to apply coupon. Please try again.",
            success=("Coupon Applied", f"Coupon {code} has been applied to your cart."),
        )

    async def remove_coupon(self) -> CartResult:
        return await self._run(
            self._client.remove_coupon,
            failure="Failed to remove coupon. Please try again.",
            success=("Coupon Removed", "The coupon has been removed from your cart."),
        )

    async def _run(
        self,
        call: Callable[[], Awaitable[Cart]],
        *,
        failure: str,
        product_id: str | None = None,
        success: tuple[str, str] | None = None,
    ) -> CartResult:
        if not self._client.authenticated:
            return CartResult(success=False, cart=self._cart)

        key = str(product_id) if product_id is not None else None
        if key is not None:
            self._updating.add(key)
        try:
            cart = await call()
        except APIError as e:
            message = e.message if e.from_server else failure
            logger.warning("Cart request rejected (%d): %s", e.status_code, e.message)
            self._notifier.error(message)
            return CartResult(success=False, cart=self._cart, message=message)
        except NetworkError as e:
            logger.warning("Cart request failed: %s", e.message)
            self._notifier.error(failure)
            return CartResult(success=False, cart=self._cart, message=failure)
        finally:
            if key is not None:
                self._updating.discard(key)

        self._cart = cart
        if success is not None:
            self._notifier.success(*success)
        return CartResult(success=True, cart=cart)
