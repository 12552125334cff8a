"""Async HTTP client for the NutriCart REST backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import APIError, NetworkError
from .models import (
    Cart,
    DietPlan,
    Order,
    Product,
    Recipe,
    Subscription,
    User,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:4000/api"

INVALID_RESPONSE_MESSAGE = "Invalid response from server"


class NutriCartClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the ``/api`` surface.

    Use as an async context manager::

        async with NutriCartClient(base_url, token=token) as client:
            cart = await client.get_cart()

    Every call raises :class:`APIError` for non-2xx answers and
    :class:`NetworkError` when the server cannot be reached.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.token = token
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def __aenter__(self) -> NutriCartClient:
        self._ensure_http()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _ensure_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    async def _request(
        self, method: str, path: str, json: Any = None
    ) -> Any:
        http = self._ensure_http()
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await http.request(method, path, json=json, headers=headers)
        except httpx.RequestError as e:
            logger.error("NutriCart %s %s failed: %s", method, path, e)
            raise NetworkError() from e

        if response.is_error:
            message, from_server = _error_message(response)
            logger.warning(
                "NutriCart %s %s -> %d: %s",
                method, path, response.status_code, message,
            )
            raise APIError(response.status_code, message, from_server=from_server)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error("NutriCart %s %s returned a non-JSON body", method, path)
            raise APIError(response.status_code, INVALID_RESPONSE_MESSAGE) from e

    # -- auth ------------------------------------------------------------

    async def login(self, email: str, password: str) -> dict:
        return await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )

    async def register(self, user_data: dict) -> dict:
        return await self._request("POST", "/auth/register", json=user_data)

    async def update_profile(self, profile_data: dict) -> dict:
        return await self._request("PUT", "/auth/profile", json=profile_data)

    async def change_password(self, current_password: str, new_password: str) -> dict:
        return await self._request(
            "POST",
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    async def me(self) -> User:
        return User.from_dict(await self._request("GET", "/auth/me"))

    # -- catalog ---------------------------------------------------------

    async def get_diet_plans(self) -> list[DietPlan]:
        data = await self._request("GET", "/diet-plans")
        return [DietPlan.from_dict(d) for d in data or []]

    async def get_diet_plan(self, plan_id: str) -> DietPlan:
        return DietPlan.from_dict(await self._request("GET", f"/diet-plans/{plan_id}"))

    async def get_products(self) -> list[Product]:
        data = await self._request("GET", "/products")
        return [Product.from_dict(d) for d in data or []]

    async def get_product(self, product_id: str) -> Product:
        return Product.from_dict(await self._request("GET", f"/products/{product_id}"))

    async def get_categories(self) -> list[dict]:
        return await self._request("GET", "/categories") or []

    async def get_recipes(self) -> list[Recipe]:
        data = await self._request("GET", "/recipes")
        return [Recipe.from_dict(d) for d in data or []]

    async def get_recipe(self, recipe_id: str) -> Recipe:
        return Recipe.from_dict(await self._request("GET", f"/recipes/{recipe_id}"))

    async def get_partnerships(self) -> list[dict]:
        return await self._request("GET", "/partnerships") or []

    async def get_partnership(self, partnership_id: str) -> dict:
        return await self._request("GET", f"/partnerships/{partnership_id}")

    # -- cart ------------------------------------------------------------

    async def get_cart(self) -> Cart:
        return Cart.from_dict(await self._request("GET", "/cart"))

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> Cart:
        data = await self._request(
            "POST", "/cart/add", json={"productId": product_id, "quantity": quantity}
        )
        return Cart.from_dict(data)

    async def update_cart_item(self, product_id: str, quantity: int) -> Cart:
        data = await self._request(
            "PUT", "/cart/update", json={"productId": product_id, "quantity": quantity}
        )
        return Cart.from_dict(data)

    async def remove_from_cart(self, product_id: str) -> Cart:
        return Cart.from_dict(
            await self._request("DELETE", f"/cart/remove/{product_id}")
        )

    async def clear_cart(self) -> Cart:
        return Cart.from_dict(await self._request("POST", "/cart/clear"))

    async def apply_coupon(self, code: str) -> Cart:
        return Cart.from_dict(
            await self._request("POST", "/cart/apply-coupon", json={"code": code})
        )

    async def remove_coupon(self) -> Cart:
        return Cart.from_dict(await self._request("POST", "/cart/remove-coupon"))

    # -- orders / subscription --------------------------------------------

    async def create_order(self, user_id: str, order_data: dict) -> Order:
        data = await self._request("POST", f"/users/{user_id}/orders", json=order_data)
        return Order.from_dict(data or {})

    async def get_orders(self, user_id: str) -> list[Order]:
        data = await self._request("GET", f"/users/{user_id}/orders")
        return [Order.from_dict(d) for d in data or []]

    async def update_subscription(
        self, user_id: str, subscription: Subscription
    ) -> dict | None:
        return await self._request(
            "PUT",
            f"/users/{user_id}/subscription",
            json={"subscription": subscription.to_dict()},
        )


def _error_message(response: httpx.Response) -> tuple[str, bool]:
    """Pick the server's message from an error body, else a generic one.

    Returns:
        (message, True if the message came from the body)
    """
    fallback = f"Request failed ({response.status_code})"
    try:
        body = response.json()
    except ValueError:
        return fallback, False
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message), True
    return fallback, False
